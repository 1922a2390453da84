"""Rule selection and application for incoming transaction records."""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional

from rulebook.domain.entities import ReconciliationRule, TransactionRecord
from rulebook.domain.errors import InvalidRuleError
from rulebook.domain.evaluator import matches, validate_rule

logger = logging.getLogger(__name__)


class SelectionOutcome(str, Enum):
    """What the ingestion pipeline should do with a record."""

    MATCHED = "matched"
    SUPPRESSED = "suppressed"
    NONE = "none"


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of selecting the governing rule for one record."""

    rule: Optional[ReconciliationRule]
    outcome: SelectionOutcome
    invalid_rules: tuple[InvalidRuleError, ...] = ()


def _precedence(rule: ReconciliationRule) -> tuple[int, str]:
    # Highest priority first, then the smallest id.
    return (-rule.priority, rule.id)


def select_rule(
    active_rules: Iterable[ReconciliationRule], record: TransactionRecord
) -> SelectionResult:
    """Select the single rule that governs a record.

    Among matching rules the highest ``priority`` wins and ties go to the
    smallest id, so the result does not depend on rule order. When the
    winner has ``skip_import`` set the outcome is SUPPRESSED: the caller
    should drop the record rather than leave it uncategorized.

    Rules that cannot be evaluated are excluded and reported in
    ``invalid_rules``.

    Args:
        active_rules: Snapshot of the active rule set
        record: Record to classify

    Returns:
        SelectionResult with the winning rule (or None) and the outcome
    """
    winner: Optional[ReconciliationRule] = None
    invalid: list[InvalidRuleError] = []

    for rule in active_rules:
        try:
            validate_rule(rule)
            if not matches(rule, record):
                continue
        except InvalidRuleError as e:
            logger.warning("Skipping invalid rule %s: %s", rule.id, e)
            invalid.append(e)
            continue
        if winner is None or _precedence(rule) < _precedence(winner):
            winner = rule

    if winner is None:
        return SelectionResult(rule=None, outcome=SelectionOutcome.NONE, invalid_rules=tuple(invalid))
    outcome = SelectionOutcome.SUPPRESSED if winner.skip_import else SelectionOutcome.MATCHED
    return SelectionResult(rule=winner, outcome=outcome, invalid_rules=tuple(invalid))


def apply_rule(rule: ReconciliationRule, record: TransactionRecord) -> TransactionRecord:
    """Return a copy of ``record`` with the rule's assignments applied.

    Tags are added to the record's existing tags; the bank description is
    kept in ``original_description`` when the rule rewrites it.
    """
    changes = {}
    if rule.set_category_id:
        changes["category_id"] = rule.set_category_id
    if rule.set_counterparty_id:
        changes["counterparty_id"] = rule.set_counterparty_id
    if rule.set_location_id:
        changes["location_id"] = rule.set_location_id
    if rule.set_user_id:
        changes["user_id"] = rule.set_user_id
    if rule.set_transaction_type_id:
        changes["type_id"] = rule.set_transaction_type_id
    if rule.set_description:
        changes["description"] = rule.set_description
        if not record.original_description:
            changes["original_description"] = record.description
    if rule.assign_tag_ids:
        tags = tuple(dict.fromkeys(record.tag_ids + tuple(t for t in rule.assign_tag_ids if t)))
        if tags != record.tag_ids:
            changes["tag_ids"] = tags

    return replace(record, **changes) if changes else record


def find_matching_transactions(
    records: Iterable[TransactionRecord], rule: ReconciliationRule
) -> list[tuple[TransactionRecord, TransactionRecord]]:
    """Preview a rule against existing records.

    Returns:
        (original, updated) pairs for records the rule matches and would
        actually change

    Raises:
        InvalidRuleError: If the rule cannot be evaluated
    """
    validate_rule(rule)
    pairs = []
    for record in records:
        if not matches(rule, record):
            continue
        updated = apply_rule(rule, record)
        if _assignments_differ(record, updated):
            pairs.append((record, updated))
    return pairs


def _assignments_differ(original: TransactionRecord, updated: TransactionRecord) -> bool:
    # original_description alone is bookkeeping, not a visible change
    return replace(updated, original_description=original.original_description) != original
