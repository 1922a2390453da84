"""Rule domain service: wires the rule engine to the database."""

import logging
from typing import Iterable, Optional

from rulebook.database.base import Database
from rulebook.domain.entities import (
    EntityKind,
    ReconciliationRule,
    RuleCondition,
    RuleImportDraft,
    TransactionRecord,
)
from rulebook.domain.entity_resolver import new_id
from rulebook.domain.entity_service import EntityService
from rulebook.domain.errors import (
    CommitFailure,
    ConflictError,
    NotFoundError,
    ValidationError,
    entity_not_found,
    rule_not_found,
)
from rulebook.domain.evaluator import validate_rule
from rulebook.domain.reconciler import (
    CommitPlan,
    DraftClassification,
    RejectedDraft,
    classify_draft,
    commit_batch,
    find_rule_by_name,
)
from rulebook.domain.selector import (
    SelectionOutcome,
    SelectionResult,
    apply_rule,
    find_matching_transactions,
    select_rule,
)
from rulebook.utils.text import normalize_name

logger = logging.getLogger(__name__)


class RuleService:
    """Service for managing, applying and importing rules."""

    def __init__(self, db: Database):
        """Initialize rule service.

        Args:
            db: Database instance
        """
        self.db = db
        self.entity_service = EntityService(db)

    def list_rules(self) -> list[ReconciliationRule]:
        """List all rules, highest priority first."""
        return self.db.load_rules()

    def get_rule(self, rule_ref: str) -> Optional[ReconciliationRule]:
        """Get a rule by ID, falling back to case-insensitive name.

        Returns:
            Rule or None if not found
        """
        rule = self.db.get_rule(rule_ref)
        if rule is not None:
            return rule
        return find_rule_by_name(self.db.load_rules(), rule_ref)

    def create_rule(
        self,
        name: str,
        field: str,
        operator: str,
        value: str,
        priority: int = 0,
        skip_import: bool = False,
        category: Optional[str] = None,
        counterparty: Optional[str] = None,
        location: Optional[str] = None,
        set_description: Optional[str] = None,
        tag_ids: Iterable[str] = (),
    ) -> str:
        """Create a single-condition rule.

        Args:
            name: Rule name (must be unique, case-insensitive)
            field: Condition field (e.g., "description")
            operator: Condition operator (e.g., "contains")
            value: Condition value; "A || B" accepts either alternative
            priority: Higher priority wins when several rules match
            skip_import: Drop matching records instead of categorizing them
            category: Name of the category to assign
            counterparty: Name of the counterparty to assign
            location: Name of the location to assign
            set_description: Replacement description
            tag_ids: Tags to add to matching records

        Returns:
            Rule ID

        Raises:
            ValidationError: If the name is blank
            ConflictError: If a rule with the same name exists
            NotFoundError: If a named entity doesn't exist
            InvalidRuleError: If the condition cannot be evaluated
        """
        if not normalize_name(name):
            raise ValidationError("Rule name cannot be empty")
        if find_rule_by_name(self.db.load_rules(), name) is not None:
            raise ConflictError(f"Rule with name '{name.strip()}' already exists")

        targets = {}
        for kind, entity_name in (
            (EntityKind.CATEGORY, category),
            (EntityKind.COUNTERPARTY, counterparty),
            (EntityKind.LOCATION, location),
        ):
            if entity_name is None:
                continue
            entity = self.entity_service.get_entity_by_name(kind, entity_name)
            if entity is None:
                raise NotFoundError(entity_not_found(kind.value, entity_name))
            targets[kind.rule_field] = entity.id

        rule = ReconciliationRule(
            id=new_id(),
            name=name.strip(),
            conditions=(RuleCondition.from_value(id=new_id(), field=field, operator=operator, value=value),),
            priority=priority,
            skip_import=skip_import,
            set_description=set_description,
            assign_tag_ids=tuple(tag_ids),
            **targets,
        )
        validate_rule(rule)
        self.db.upsert_rule(rule)
        return rule.id

    def select_for_record(self, record: TransactionRecord) -> SelectionResult:
        """Select the rule governing a single record."""
        return select_rule(self.db.load_rules(), record)

    def categorize_records(
        self, records: Iterable[TransactionRecord]
    ) -> list[tuple[TransactionRecord, SelectionResult]]:
        """Apply the governing rule to each record.

        The rule set is loaded once and used as a snapshot for the whole
        sweep.

        Returns:
            (record, selection) pairs; matched records come back with the
            winning rule's assignments applied
        """
        rules = self.db.load_rules()
        results = []
        for record in records:
            selection = select_rule(rules, record)
            if selection.outcome == SelectionOutcome.MATCHED:
                record = apply_rule(selection.rule, record)
            results.append((record, selection))
        return results

    def preview_rule(
        self, rule_ref: str, records: Iterable[TransactionRecord]
    ) -> list[tuple[TransactionRecord, TransactionRecord]]:
        """Show which records a stored rule would change.

        Raises:
            NotFoundError: If the rule doesn't exist
            InvalidRuleError: If the rule cannot be evaluated
        """
        rule = self.get_rule(rule_ref)
        if rule is None:
            raise NotFoundError(rule_not_found(rule_ref))
        return find_matching_transactions(records, rule)

    def classify_drafts(
        self, drafts: Iterable[RuleImportDraft]
    ) -> list[DraftClassification | RejectedDraft]:
        """Classify drafts one by one for pre-commit review."""
        rules = self.db.load_rules()
        registries = self.entity_service.load_registries()
        types = self.db.load_transaction_types()

        results: list[DraftClassification | RejectedDraft] = []
        for draft in drafts:
            try:
                results.append(classify_draft(draft, rules, registries, types))
            except ValidationError as e:
                results.append(RejectedDraft(draft=draft, error=e))
        return results

    def import_drafts(
        self,
        drafts: Iterable[RuleImportDraft],
        dry_run: bool = False,
        dedupe_alternatives: bool = False,
    ) -> CommitPlan:
        """Reconcile a batch of drafts and persist the result.

        All new entities are created before any rule is upserted. If entity
        creation fails no rule is written.

        Args:
            drafts: Drafts to import (unselected drafts are ignored)
            dry_run: Build the plan without writing anything
            dedupe_alternatives: Drop repeated alternatives when merging

        Returns:
            The CommitPlan that was (or, for a dry run, would be) persisted

        Raises:
            CommitFailure: If a storage call fails
        """
        plan = commit_batch(
            drafts,
            self.db.load_rules(),
            self.entity_service.load_registries(),
            self.db.load_transaction_types(),
            dedupe_alternatives=dedupe_alternatives,
        )
        if dry_run:
            return plan

        for kind, entities in plan.entities_to_create.items():
            try:
                self.db.create_entities(kind, entities)
            except Exception as e:
                raise CommitFailure(
                    f"Creating {len(entities)} new {kind.value} entities failed: {e}; "
                    "no rules were saved"
                ) from e
            logger.info("Created %d %s entities", len(entities), kind.value)

        committed: list[str] = []
        for rule in plan.rules_to_upsert:
            try:
                self.db.upsert_rule(rule)
            except Exception as e:
                raise CommitFailure(
                    f"Saving rule '{rule.name}' failed: {e}", tuple(committed)
                ) from e
            committed.append(rule.id)

        logger.info("Imported %d rules", len(committed))
        return plan
