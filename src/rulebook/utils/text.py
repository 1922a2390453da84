"""Text normalization helpers shared by matching and reconciliation."""

import re

ALTERNATIVE_SEPARATOR = " || "

_WHITESPACE = re.compile(r"\s+")
_SEPARATOR = re.compile(r"\s*\|\|\s*")


def normalize_name(text: str | None) -> str:
    """Normalize a name or match token for comparison.

    Collapses whitespace runs, trims and lowercases, so that
    "  Costco   Wholesale" and "costco wholesale" compare equal.

    Args:
        text: Raw text (None is treated as empty)

    Returns:
        Normalized text
    """
    return _WHITESPACE.sub(" ", text or "").strip().lower()


def split_alternatives(value: str | None) -> tuple[str, ...]:
    """Split an encoded condition value into its alternatives.

    Args:
        value: Value such as "STARBUCKS || PEETS"

    Returns:
        Tuple of trimmed alternatives. A value without separator yields a
        single alternative; empty pieces are dropped.
    """
    raw = value or ""
    parts = tuple(part.strip() for part in _SEPARATOR.split(raw) if part.strip())
    if not parts:
        return (raw.strip(),)
    return parts


def join_alternatives(alternatives) -> str:
    """Encode alternatives into the stored " || " form."""
    return ALTERNATIVE_SEPARATOR.join(alternatives)
