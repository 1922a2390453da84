"""Rule evaluation: folds condition results into a single match decision."""

from rulebook.domain.conditions import check_condition, evaluate
from rulebook.domain.entities import ChainOperator, ReconciliationRule, TransactionRecord
from rulebook.domain.errors import InvalidRuleError


def validate_rule(rule: ReconciliationRule) -> None:
    """Check that a rule can be evaluated.

    Raises:
        InvalidRuleError: If the rule has no conditions or any condition
            uses an unknown field, operator or an invalid pattern
    """
    if not rule.conditions:
        raise InvalidRuleError(f"Rule '{rule.name}' has no conditions", rule_id=rule.id)
    for condition in rule.conditions:
        try:
            check_condition(condition)
        except InvalidRuleError as e:
            raise InvalidRuleError(f"Rule '{rule.name}': {e}", rule_id=rule.id) from e


def matches(rule: ReconciliationRule, record: TransactionRecord) -> bool:
    """Decide whether a rule matches a record.

    Conditions form a flat boolean chain evaluated left to right: the first
    condition seeds the result, and each condition's ``chain`` combines the
    running result with the next condition's result. There is no
    precedence grouping, so ``A OR B AND C`` reads as ``(A OR B) AND C``.

    A rule without conditions never matches.

    Raises:
        InvalidRuleError: If a condition cannot be evaluated
    """
    if not rule.conditions:
        return False

    conditions = rule.conditions
    result = evaluate(conditions[0], record)
    for current, following in zip(conditions, conditions[1:]):
        next_result = evaluate(following, record)
        if current.chain == ChainOperator.OR:
            result = result or next_result
        else:
            result = result and next_result
    return result
