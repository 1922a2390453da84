"""Domain model entities for rulebook.

These are pure, immutable data classes. Rule evaluation only ever reads
them, so a list of rules loaded once is a safe snapshot for a whole
ingestion sweep.
"""

from dataclasses import dataclass, field, fields, replace
import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from rulebook.utils.text import join_alternatives, split_alternatives


class ChainOperator(str, Enum):
    """How a condition's result combines with the next condition's."""

    AND = "AND"
    OR = "OR"


class MappingMode(str, Enum):
    """Whether a suggested entity name should match or be created."""

    MATCH = "match"
    CREATE = "create"


class EntityKind(str, Enum):
    """Reference entity kinds a rule can assign."""

    CATEGORY = "category"
    COUNTERPARTY = "counterparty"
    LOCATION = "location"

    @property
    def rule_field(self) -> str:
        """Rule attribute holding the assigned entity id."""
        match self:
            case EntityKind.CATEGORY:
                return "set_category_id"
            case EntityKind.COUNTERPARTY:
                return "set_counterparty_id"
            case EntityKind.LOCATION:
                return "set_location_id"

    @property
    def suggestion_field(self) -> str:
        """Draft attribute holding the suggested entity name."""
        match self:
            case EntityKind.CATEGORY:
                return "suggested_category_name"
            case EntityKind.COUNTERPARTY:
                return "suggested_counterparty_name"
            case EntityKind.LOCATION:
                return "suggested_location_name"


@dataclass(frozen=True)
class RuleCondition:
    """One trigger condition of a rule.

    ``alternatives`` holds the accepted values; the condition matches when
    any of them satisfies the operator. The " || " joined form is only
    used at storage and document boundaries (see ``value``/``from_value``).
    """

    id: str
    field: str
    operator: str
    alternatives: tuple[str, ...]
    chain: ChainOperator = ChainOperator.AND
    kind: str = "basic"

    @property
    def value(self) -> str:
        """Alternatives encoded as a single " || " separated string."""
        return join_alternatives(self.alternatives)

    @classmethod
    def from_value(
        cls,
        id: str,
        field: str,
        operator: str,
        value: str,
        chain: ChainOperator | str = ChainOperator.AND,
        kind: str = "basic",
    ) -> "RuleCondition":
        """Build a condition from its encoded value string."""
        return cls(
            id=id,
            field=field,
            operator=operator,
            alternatives=split_alternatives(value),
            chain=ChainOperator(chain),
            kind=kind,
        )


@dataclass(frozen=True)
class ReconciliationRule:
    """A persisted condition set plus the assignments it applies on match."""

    id: str
    name: str
    conditions: tuple[RuleCondition, ...] = ()
    priority: int = 0
    skip_import: bool = False
    set_category_id: Optional[str] = None
    set_counterparty_id: Optional[str] = None
    set_location_id: Optional[str] = None
    set_user_id: Optional[str] = None
    set_transaction_type_id: Optional[str] = None
    set_description: Optional[str] = None
    assign_tag_ids: tuple[str, ...] = ()

    def target_id(self, kind: EntityKind) -> Optional[str]:
        """Return the entity id this rule assigns for ``kind``."""
        return getattr(self, kind.rule_field)


@dataclass(frozen=True)
class MappingStatus:
    """Per-kind match/create hints attached to a draft."""

    category: MappingMode = MappingMode.MATCH
    counterparty: MappingMode = MappingMode.MATCH
    location: MappingMode = MappingMode.MATCH

    def for_kind(self, kind: EntityKind) -> MappingMode:
        match kind:
            case EntityKind.CATEGORY:
                return self.category
            case EntityKind.COUNTERPARTY:
                return self.counterparty
            case EntityKind.LOCATION:
                return self.location


@dataclass(frozen=True)
class RuleImportDraft:
    """A candidate rule proposed for import, with reconciliation metadata.

    Drafts are never persisted; ``to_rule`` strips the transient fields.
    """

    id: str
    name: str
    conditions: tuple[RuleCondition, ...] = ()
    priority: int = 0
    skip_import: bool = False
    set_category_id: Optional[str] = None
    set_counterparty_id: Optional[str] = None
    set_location_id: Optional[str] = None
    set_user_id: Optional[str] = None
    set_transaction_type_id: Optional[str] = None
    set_description: Optional[str] = None
    assign_tag_ids: tuple[str, ...] = ()
    is_selected: bool = True
    mapping_status: MappingStatus = field(default_factory=MappingStatus)
    suggested_category_name: Optional[str] = None
    suggested_counterparty_name: Optional[str] = None
    suggested_location_name: Optional[str] = None
    suggested_type_name: Optional[str] = None

    def suggested_name(self, kind: EntityKind) -> Optional[str]:
        """Return the suggested entity name for ``kind``."""
        return getattr(self, kind.suggestion_field)

    def to_rule(self, **changes) -> ReconciliationRule:
        """Return the rule part of this draft, with optional overrides."""
        rule_fields = {f.name for f in fields(ReconciliationRule)}
        rule = ReconciliationRule(
            **{name: getattr(self, name) for name in rule_fields}
        )
        return replace(rule, **changes) if changes else rule


@dataclass(frozen=True)
class ReferenceEntity:
    """Named lookup target (category, counterparty or location)."""

    id: str
    name: str
    kind: EntityKind
    parent_id: Optional[str] = None


@dataclass(frozen=True)
class TransactionType:
    """Transaction type; matched by name, never auto-created on import."""

    id: str
    name: str


@dataclass(frozen=True)
class TransactionRecord:
    """Transaction-like record evaluated against rules."""

    description: str = ""
    amount: Decimal = Decimal("0")
    id: Optional[str] = None
    date: Optional[datetime.date] = None
    original_description: Optional[str] = None
    account_id: Optional[str] = None
    counterparty_id: Optional[str] = None
    location_id: Optional[str] = None
    user_id: Optional[str] = None
    tag_ids: tuple[str, ...] = ()
    category_id: Optional[str] = None
    type_id: Optional[str] = None
