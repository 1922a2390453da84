"""Parsing helpers for record files."""

import re
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation

from dateutil import parser as date_parser

_CURRENCY_SYMBOLS = re.compile(r"[$€£¥]")


def parse_date(date_str: str) -> date:
    """Parse a record date.

    Accepts anything dateutil understands ("2024-01-15", "Jan 15 2024",
    "15/01/2024") plus "today" and "yesterday".

    Raises:
        ValueError: If the string cannot be parsed
    """
    text = date_str.strip().lower()
    if text == "today":
        return date.today()
    if text == "yesterday":
        return date.today() - timedelta(days=1)

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_amount(amount_str: str) -> Decimal:
    """Parse a record amount into a Decimal.

    Handles currency symbols, thousands separators and the accounting
    "(12.50)" negative notation.

    Raises:
        ValueError: If the string is empty or not a number
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]
    text = _CURRENCY_SYMBOLS.sub("", text).replace(",", "").strip()

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Amount '{amount_str}' is not a finite number")
    return -amount if negative else amount
