"""Condition evaluation with per-operator predicates."""

import re
from decimal import Decimal, InvalidOperation
from functools import lru_cache

from rulebook.domain.entities import RuleCondition, TransactionRecord
from rulebook.domain.errors import (
    InvalidRuleError,
    unknown_field,
    unknown_operator,
    unsupported_operator,
)
from rulebook.utils.text import normalize_name

TEXT_FIELDS = (
    "description",
    "counterparty_id",
    "location_id",
    "user_id",
    "account_id",
    "tag_ids",
)
NUMERIC_FIELDS = ("amount",)
FIELDS = TEXT_FIELDS + NUMERIC_FIELDS

TEXT_OPERATORS = (
    "contains",
    "does_not_contain",
    "equals",
    "starts_with",
    "ends_with",
    "regex_match",
)
NUMERIC_OPERATORS = ("equals", "greater_than", "less_than")
OPERATORS = tuple(dict.fromkeys(TEXT_OPERATORS + NUMERIC_OPERATORS))

AMOUNT_TOLERANCE = Decimal("0.01")

_TEXT_PREDICATES = {
    "contains": lambda actual, expected: expected in actual,
    "equals": lambda actual, expected: actual == expected,
    "starts_with": lambda actual, expected: actual.startswith(expected),
    "ends_with": lambda actual, expected: actual.endswith(expected),
}

_AMOUNT_PREDICATES = {
    "equals": lambda actual, expected: abs(actual - expected) < AMOUNT_TOLERANCE,
    "greater_than": lambda actual, expected: actual > expected,
    "less_than": lambda actual, expected: actual < expected,
}


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise InvalidRuleError(f"Invalid regex pattern '{pattern}': {e}")


def _parse_amount(value: str) -> Decimal:
    try:
        amount = Decimal(value.strip())
    except InvalidOperation:
        raise InvalidRuleError(f"Amount condition value '{value}' is not a number")
    if not amount.is_finite():
        raise InvalidRuleError(f"Amount condition value '{value}' is not a finite number")
    return amount


def check_condition(condition: RuleCondition) -> None:
    """Raise InvalidRuleError if the condition cannot be evaluated."""
    if condition.field not in FIELDS:
        raise InvalidRuleError(unknown_field(condition.field))
    if condition.operator not in OPERATORS:
        raise InvalidRuleError(unknown_operator(condition.operator))

    if condition.field in NUMERIC_FIELDS:
        if condition.operator not in NUMERIC_OPERATORS:
            raise InvalidRuleError(unsupported_operator(condition.operator, condition.field))
        for alternative in condition.alternatives:
            _parse_amount(alternative)
        return

    if condition.operator not in TEXT_OPERATORS:
        raise InvalidRuleError(unsupported_operator(condition.operator, condition.field))
    if condition.operator == "regex_match":
        for alternative in condition.alternatives:
            if alternative.strip():
                _compile(alternative.strip())


def field_values(field: str, record: TransactionRecord) -> tuple[str, ...]:
    """Resolve a record attribute to the text values a condition tests.

    The description field reads the original bank description when a rule
    has already rewritten the visible one.
    """
    if field == "description":
        return (record.original_description or record.description or "",)
    if field == "tag_ids":
        return tuple(record.tag_ids)
    if field in TEXT_FIELDS:
        return (getattr(record, field) or "",)
    raise InvalidRuleError(unknown_field(field))


def _text_matches(operator: str, actual: str, expected: str) -> bool:
    if operator == "regex_match":
        pattern = expected.strip()
        if not pattern:
            return False
        return _compile(pattern).search(actual) is not None

    norm_expected = normalize_name(expected)
    if not norm_expected:
        return False
    return _TEXT_PREDICATES[operator](normalize_name(actual), norm_expected)


def evaluate(condition: RuleCondition, record: TransactionRecord) -> bool:
    """Evaluate one condition against a record.

    The condition holds when any of its alternatives satisfies the operator.
    ``does_not_contain`` is the complement of ``contains``: it holds only
    when none of the alternatives is contained.

    Raises:
        InvalidRuleError: If the field or operator is unknown or the
            operator does not apply to the field
    """
    check_condition(condition)

    if condition.field in NUMERIC_FIELDS:
        predicate = _AMOUNT_PREDICATES[condition.operator]
        actual = Decimal(record.amount)
        if not actual.is_finite():
            return False
        return any(
            predicate(actual, _parse_amount(alternative))
            for alternative in condition.alternatives
        )

    values = field_values(condition.field, record)
    if condition.operator == "does_not_contain":
        return not any(
            _text_matches("contains", actual, alternative)
            for actual in values
            for alternative in condition.alternatives
        )
    return any(
        _text_matches(condition.operator, actual, alternative)
        for actual in values
        for alternative in condition.alternatives
    )
