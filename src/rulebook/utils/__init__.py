"""Utility functions for rulebook."""

from rulebook.utils.text import normalize_name, split_alternatives, join_alternatives
from rulebook.utils.parsers import parse_date, parse_amount

__all__ = [
    "normalize_name",
    "split_alternatives",
    "join_alternatives",
    "parse_date",
    "parse_amount",
]
