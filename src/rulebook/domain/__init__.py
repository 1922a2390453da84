"""Domain layer for rulebook application.

Only the pure rule engine is re-exported here; the database-backed services
live in ``rulebook.domain.rule_service`` and ``rulebook.domain.entity_service``.
"""

from rulebook.domain.conditions import evaluate
from rulebook.domain.evaluator import matches, validate_rule
from rulebook.domain.selector import SelectionOutcome, select_rule, apply_rule
from rulebook.domain.entity_resolver import EntityResolver, resolve_entity
from rulebook.domain.reconciler import DraftOutcome, classify_draft, commit_batch

__all__ = [
    "evaluate",
    "matches",
    "validate_rule",
    "SelectionOutcome",
    "select_rule",
    "apply_rule",
    "EntityResolver",
    "resolve_entity",
    "DraftOutcome",
    "classify_draft",
    "commit_batch",
]
