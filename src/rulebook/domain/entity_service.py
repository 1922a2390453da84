"""Reference entity and transaction type domain service."""

from typing import Any, Optional

from rulebook.database.base import Database
from rulebook.domain.entities import EntityKind, ReferenceEntity, TransactionType
from rulebook.domain.entity_resolver import find_by_name, new_id
from rulebook.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_entity_name,
    entity_not_found,
)
from rulebook.utils.text import normalize_name


class EntityService:
    """Service for managing categories, counterparties, locations and types."""

    def __init__(self, db: Database):
        """Initialize entity service.

        Args:
            db: Database instance
        """
        self.db = db

    def list_entities(self, kind: EntityKind) -> list[ReferenceEntity]:
        """List all entities of a kind, ordered by name."""
        return self.db.load_entities(kind)

    def load_registries(self) -> dict[EntityKind, list[ReferenceEntity]]:
        """Snapshot of every entity registry, keyed by kind."""
        return {kind: self.db.load_entities(kind) for kind in EntityKind}

    def get_entity_by_name(self, kind: EntityKind, name: str) -> Optional[ReferenceEntity]:
        """Get an entity by case-insensitive name.

        Returns:
            Entity or None if not found
        """
        return find_by_name(self.db.load_entities(kind), name)

    def create_entity(
        self, kind: EntityKind, name: str, parent_name: Optional[str] = None
    ) -> str:
        """Create a reference entity.

        Args:
            kind: Entity kind
            name: Entity name
            parent_name: Optional name of an existing parent of the same kind

        Returns:
            Entity ID

        Raises:
            ValidationError: If the name is blank
            ConflictError: If an entity with the same name exists
            NotFoundError: If the parent doesn't exist
        """
        if not normalize_name(name):
            raise ValidationError(f"{kind.value.capitalize()} name cannot be empty")

        existing = self.db.load_entities(kind)
        if find_by_name(existing, name) is not None:
            raise ConflictError(duplicate_entity_name(kind.value, name.strip()))

        parent_id = None
        if parent_name is not None:
            parent = find_by_name(existing, parent_name)
            if parent is None:
                raise NotFoundError(entity_not_found(kind.value, parent_name))
            parent_id = parent.id

        entity = ReferenceEntity(id=new_id(), name=name.strip(), kind=kind, parent_id=parent_id)
        self.db.create_entities(kind, [entity])
        return entity.id

    def get_entity_tree(self, kind: EntityKind) -> list[dict[str, Any]]:
        """Get the entity forest as nested dicts.

        Returns:
            List of root entities, each with a nested 'children' list
        """
        entities = self.db.load_entities(kind)

        def build_tree(parent_id: Optional[str]) -> list[dict[str, Any]]:
            return [
                {
                    "id": entity.id,
                    "name": entity.name,
                    "parent_id": entity.parent_id,
                    "children": build_tree(entity.id),
                }
                for entity in entities
                if entity.parent_id == parent_id
            ]

        return build_tree(None)

    def format_entity_path(self, kind: EntityKind, entity_id: Optional[str]) -> str:
        """Get full path for an entity (e.g., "Food & Dining > Coffee").

        Returns:
            Path string, or "" if the entity doesn't exist
        """
        by_id = {entity.id: entity for entity in self.db.load_entities(kind)}
        entity = by_id.get(entity_id)
        if entity is None:
            return ""

        path_parts = [entity.name]
        seen = {entity.id}
        while entity.parent_id is not None and entity.parent_id not in seen:
            entity = by_id.get(entity.parent_id)
            if entity is None:
                break
            seen.add(entity.id)
            path_parts.append(entity.name)

        return " > ".join(reversed(path_parts))

    def list_transaction_types(self) -> list[TransactionType]:
        """List all transaction types."""
        return self.db.load_transaction_types()

    def create_transaction_type(self, name: str) -> str:
        """Create a transaction type.

        Returns:
            Transaction type ID

        Raises:
            ValidationError: If the name is blank
            ConflictError: If a type with the same name exists
        """
        key = normalize_name(name)
        if not key:
            raise ValidationError("Transaction type name cannot be empty")
        if any(normalize_name(t.name) == key for t in self.db.load_transaction_types()):
            raise ConflictError(duplicate_entity_name("transaction type", name.strip()))

        transaction_type = TransactionType(id=new_id(), name=name.strip())
        self.db.create_transaction_types([transaction_type])
        return transaction_type.id
