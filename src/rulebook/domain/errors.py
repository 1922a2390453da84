"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input, such as a draft without a usable name."""


class InvalidRuleError(DomainError):
    """A rule cannot be evaluated: unknown field or operator, bad pattern,
    or no conditions at all."""

    def __init__(self, message: str, rule_id: str | None = None):
        super().__init__(message)
        self.rule_id = rule_id


class MappingInconsistency(DomainError):
    """A "match" hint whose name no longer resolves in the registry.

    Recovered by creating the entity instead; reported, never raised out of
    the reconciler.
    """

    def __init__(self, kind: str, name: str):
        super().__init__(mapping_inconsistency(kind, name))
        self.kind = kind
        self.name = name


class CommitFailure(DomainError):
    """Persisting an import batch failed."""

    def __init__(self, message: str, committed_rule_ids: tuple[str, ...] = ()):
        super().__init__(message)
        self.committed_rule_ids = committed_rule_ids


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


def empty_draft_name(draft_id: str) -> str:
    """Return message for a draft whose name is blank."""
    return f"Draft {draft_id} has an empty name"


def mapping_inconsistency(kind: str, name: str) -> str:
    """Return message for a stale "match" hint."""
    return f"No existing {kind} named '{name}'; it will be created instead"


def unknown_field(field: str) -> str:
    """Return message for an unknown condition field."""
    return f"Unknown condition field '{field}'"


def unknown_operator(operator: str) -> str:
    """Return message for an unknown condition operator."""
    return f"Unknown condition operator '{operator}'"


def unsupported_operator(operator: str, field: str) -> str:
    """Return message for an operator that cannot apply to a field."""
    return f"Operator '{operator}' is not supported for field '{field}'"


def rule_not_found(rule_ref: str) -> str:
    """Return message for missing rule by ID or name."""
    return f"Rule '{rule_ref}' not found"


def entity_not_found(kind: str, ref: str) -> str:
    """Return message for missing reference entity."""
    return f"{kind.capitalize()} '{ref}' not found"


def duplicate_entity_name(kind: str, name: str) -> str:
    """Return message for a reference entity whose name is taken."""
    return f"{kind.capitalize()} with name '{name}' already exists"
