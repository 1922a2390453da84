"""Import reconciliation: classify drafts against existing rules and build
the persistence plan for a batch.

Each selected draft ends in one of three outcomes:

- NEW: no existing rule has the same (normalized) name. Entity suggestions
  are resolved and the draft becomes a new rule.
- MERGE: a same-named rule targets the same category. The existing rule
  keeps its id and its conditions collapse into one condition whose
  alternatives are the existing values followed by the draft's values.
- COLLISION: a same-named rule targets a different category. The draft is
  committed as a separate rule and the existing one is left untouched;
  callers should warn about the naming ambiguity.

Nothing here writes to storage. ``commit_batch`` returns a CommitPlan and
the caller persists ``entities_to_create`` before ``rules_to_upsert``.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Optional

from rulebook.domain.entities import (
    ChainOperator,
    EntityKind,
    MappingMode,
    ReconciliationRule,
    ReferenceEntity,
    RuleCondition,
    RuleImportDraft,
    TransactionType,
)
from rulebook.domain.entity_resolver import EntityResolver, IdFactory, find_by_name, new_id
from rulebook.domain.errors import MappingInconsistency, ValidationError, empty_draft_name
from rulebook.utils.text import normalize_name

logger = logging.getLogger(__name__)

DEFAULT_MERGE_FIELD = "description"
DEFAULT_MERGE_OPERATOR = "contains"

EntityRegistries = dict[EntityKind, list[ReferenceEntity]]


class DraftOutcome(str, Enum):
    """Classification of a draft against the existing rule set."""

    MERGE = "merge"
    COLLISION = "collision"
    NEW = "new"


@dataclass(frozen=True)
class DraftClassification:
    """A draft's outcome and the rule it would commit."""

    draft: RuleImportDraft
    outcome: DraftOutcome
    existing_rule: Optional[ReconciliationRule]
    preview: ReconciliationRule


@dataclass(frozen=True)
class RejectedDraft:
    """A draft excluded from the batch, with the reason."""

    draft: RuleImportDraft
    error: ValidationError


@dataclass
class CommitPlan:
    """Everything a batch commit has to persist, plus its audit trail."""

    rules_to_upsert: list[ReconciliationRule] = field(default_factory=list)
    entities_to_create: dict[EntityKind, list[ReferenceEntity]] = field(default_factory=dict)
    classifications: list[DraftClassification] = field(default_factory=list)
    rejected: list[RejectedDraft] = field(default_factory=list)
    inconsistencies: list[MappingInconsistency] = field(default_factory=list)

    def count(self, outcome: DraftOutcome) -> int:
        """Number of drafts classified with ``outcome``."""
        return sum(1 for c in self.classifications if c.outcome == outcome)


def find_rule_by_name(
    rules: Iterable[ReconciliationRule], name: Optional[str]
) -> Optional[ReconciliationRule]:
    """Find a rule by normalized name, or None."""
    key = normalize_name(name)
    if not key:
        return None
    for rule in rules:
        if normalize_name(rule.name) == key:
            return rule
    return None


def _require_name(draft: RuleImportDraft) -> None:
    if not normalize_name(draft.name):
        raise ValidationError(empty_draft_name(draft.id))


def _registries(existing_entities: Optional[EntityRegistries]) -> EntityRegistries:
    existing_entities = existing_entities or {}
    return {kind: list(existing_entities.get(kind, ())) for kind in EntityKind}


def same_category_target(
    existing: ReconciliationRule,
    draft: RuleImportDraft,
    categories: list[ReferenceEntity],
) -> bool:
    """Whether a draft assigns the same category as an existing rule.

    Equal when the draft's resolved category id equals the rule's (two
    rules without a category count as equal), or when the draft's
    suggested category name matches the name of the rule's category.
    """
    suggested = draft.suggested_category_name
    draft_target = draft.set_category_id
    if normalize_name(suggested):
        draft_target = None
        if draft.mapping_status.category == MappingMode.MATCH:
            found = find_by_name(categories, suggested)
            draft_target = found.id if found is not None else None

        if existing.set_category_id is not None:
            if draft_target == existing.set_category_id:
                return True
            existing_category = next(
                (c for c in categories if c.id == existing.set_category_id), None
            )
            return (
                existing_category is not None
                and normalize_name(existing_category.name) == normalize_name(suggested)
            )
        return False

    return draft_target == existing.set_category_id


def _alternatives(conditions: Iterable[RuleCondition]) -> list[str]:
    return [alt for condition in conditions for alt in condition.alternatives if alt.strip()]


def merge_rules(
    existing: ReconciliationRule,
    draft: RuleImportDraft,
    *,
    dedupe_alternatives: bool = False,
    id_factory: IdFactory = new_id,
) -> ReconciliationRule:
    """Fold a draft's match values into an existing rule.

    The result keeps the existing rule's id and assignments and has a
    single condition. Its field and operator come from the existing rule's
    first condition (``description``/``contains`` if it had none); its
    alternatives are the existing values followed by the draft's values.

    Merging the same draft twice repeats its values unless
    ``dedupe_alternatives`` is set, which drops repeats by normalized text.
    """
    template = existing.conditions[0] if existing.conditions else None
    alternatives = _alternatives(existing.conditions) + _alternatives(draft.conditions)

    if dedupe_alternatives:
        seen = set()
        unique = []
        for alt in alternatives:
            key = normalize_name(alt)
            if key not in seen:
                seen.add(key)
                unique.append(alt)
        alternatives = unique

    merged_condition = RuleCondition(
        id=template.id if template is not None else id_factory(),
        field=template.field if template is not None else DEFAULT_MERGE_FIELD,
        operator=template.operator if template is not None else DEFAULT_MERGE_OPERATOR,
        alternatives=tuple(alternatives) or ("",),
        chain=ChainOperator.AND,
        kind=template.kind if template is not None else "basic",
    )
    return replace(existing, conditions=(merged_condition,))


def _build_rule(
    draft: RuleImportDraft,
    resolver: EntityResolver,
    transaction_types: Iterable[TransactionType],
    taken_ids: set[str],
) -> ReconciliationRule:
    """Resolve a draft's suggestions and strip it down to a rule."""
    rule_id = draft.id
    if not rule_id or rule_id in taken_ids:
        rule_id = resolver.id_factory()

    changes = {"id": rule_id, "name": draft.name.strip()}
    for kind in EntityKind:
        suggested = draft.suggested_name(kind)
        if normalize_name(suggested):
            changes[kind.rule_field] = resolver.resolve(
                kind, suggested, draft.mapping_status.for_kind(kind)
            )

    if normalize_name(draft.suggested_type_name):
        key = normalize_name(draft.suggested_type_name)
        matched = next((t for t in transaction_types if normalize_name(t.name) == key), None)
        if matched is not None:
            changes["set_transaction_type_id"] = matched.id
        else:
            logger.info("No transaction type named '%s'; leaving type unset", draft.suggested_type_name)

    return draft.to_rule(**changes)


def _classify(
    draft: RuleImportDraft,
    existing_rules: list[ReconciliationRule],
    categories: list[ReferenceEntity],
) -> tuple[DraftOutcome, Optional[ReconciliationRule]]:
    existing = find_rule_by_name(existing_rules, draft.name)
    if existing is None:
        return DraftOutcome.NEW, None
    if same_category_target(existing, draft, categories):
        return DraftOutcome.MERGE, existing
    return DraftOutcome.COLLISION, existing


def classify_draft(
    draft: RuleImportDraft,
    existing_rules: Iterable[ReconciliationRule],
    existing_entities: Optional[EntityRegistries] = None,
    transaction_types: Iterable[TransactionType] = (),
    *,
    id_factory: IdFactory = new_id,
) -> DraftClassification:
    """Classify a single draft for pre-commit warnings.

    The preview resolves the draft's entity suggestions in isolation, so
    deduplication against other drafts of the batch is not reflected.

    Raises:
        ValidationError: If the draft name is blank
    """
    _require_name(draft)
    existing_rules = list(existing_rules)
    registries = _registries(existing_entities)

    outcome, existing = _classify(draft, existing_rules, registries[EntityKind.CATEGORY])
    if outcome == DraftOutcome.MERGE:
        preview = merge_rules(existing, draft, id_factory=id_factory)
    else:
        taken = {rule.id for rule in existing_rules}
        preview = _build_rule(draft, EntityResolver(registries, id_factory), transaction_types, taken)
    return DraftClassification(draft=draft, outcome=outcome, existing_rule=existing, preview=preview)


def commit_batch(
    drafts: Iterable[RuleImportDraft],
    existing_rules: Iterable[ReconciliationRule],
    existing_entities: Optional[EntityRegistries] = None,
    transaction_types: Iterable[TransactionType] = (),
    *,
    id_factory: IdFactory = new_id,
    dedupe_alternatives: bool = False,
) -> CommitPlan:
    """Reconcile a batch of drafts into a persistence plan.

    Unselected drafts are ignored. Drafts with a blank name are rejected
    before any classification or entity resolution. New entities are
    deduplicated across the whole batch, and several drafts merging into
    the same rule accumulate onto a single upsert. Names are matched
    against the rules as they were before the batch.

    Args:
        drafts: Drafts from the staging step
        existing_rules: Current rule set
        existing_entities: Current entities per kind
        transaction_types: Known transaction types (matched by name only)
        id_factory: Id generator for new rules and entities
        dedupe_alternatives: Drop repeated alternatives when merging

    Returns:
        CommitPlan with rule upserts, entity creations and the audit trail
    """
    existing_rules = list(existing_rules)
    transaction_types = list(transaction_types)
    registries = _registries(existing_entities)
    resolver = EntityResolver(registries, id_factory)
    taken_ids = {rule.id for rule in existing_rules}

    plan = CommitPlan()
    upserts: dict[str, ReconciliationRule] = {}

    for draft in drafts:
        if not draft.is_selected:
            continue
        try:
            _require_name(draft)
        except ValidationError as e:
            logger.warning("Rejected draft %s: %s", draft.id, e)
            plan.rejected.append(RejectedDraft(draft=draft, error=e))
            continue

        outcome, existing = _classify(draft, existing_rules, registries[EntityKind.CATEGORY])
        if outcome == DraftOutcome.MERGE:
            base = upserts.get(existing.id, existing)
            rule = merge_rules(
                base, draft, dedupe_alternatives=dedupe_alternatives, id_factory=id_factory
            )
        else:
            rule = _build_rule(draft, resolver, transaction_types, taken_ids)
            taken_ids.add(rule.id)

        logger.debug("Draft '%s' classified as %s -> rule %s", draft.name, outcome.value, rule.id)
        upserts[rule.id] = rule
        plan.classifications.append(
            DraftClassification(draft=draft, outcome=outcome, existing_rule=existing, preview=rule)
        )

    plan.rules_to_upsert = list(upserts.values())
    plan.entities_to_create = resolver.pending_creations()
    plan.inconsistencies = list(resolver.inconsistencies)
    return plan
