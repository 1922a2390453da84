"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from rulebook.domain.entities import (
    EntityKind,
    ReconciliationRule,
    ReferenceEntity,
    TransactionType,
)


class Database(ABC):
    """Abstract storage collaborator for rulebook.

    Offers load-all and upsert-by-id operations over rules, reference
    entities and transaction types.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Rule operations
    @abstractmethod
    def load_rules(self) -> list[ReconciliationRule]:
        """Load all rules, ordered by priority (highest first) then id."""
        pass

    @abstractmethod
    def get_rule(self, rule_id: str) -> Optional[ReconciliationRule]:
        """Get rule by ID."""
        pass

    @abstractmethod
    def upsert_rule(self, rule: ReconciliationRule) -> None:
        """Insert a rule, or replace the stored rule with the same ID."""
        pass

    # Reference entity operations
    @abstractmethod
    def load_entities(self, kind: EntityKind) -> list[ReferenceEntity]:
        """Load all entities of a kind, ordered by name."""
        pass

    @abstractmethod
    def create_entities(self, kind: EntityKind, entities: list[ReferenceEntity]) -> None:
        """Create entities of a kind in one call; all or none are stored."""
        pass

    # Transaction type operations
    @abstractmethod
    def load_transaction_types(self) -> list[TransactionType]:
        """Load all transaction types, ordered by name."""
        pass

    @abstractmethod
    def create_transaction_types(self, types: list[TransactionType]) -> None:
        """Create transaction types in one call."""
        pass
