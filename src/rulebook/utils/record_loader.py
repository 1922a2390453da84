"""Load transaction records from CSV files for rule matching."""

import csv
from pathlib import Path
from typing import Any

from rulebook.domain.entities import TransactionRecord
from rulebook.domain.errors import ValidationError
from rulebook.utils.parsers import parse_amount, parse_date

REQUIRED_COLUMNS = ("description", "amount")
REFERENCE_COLUMNS = ("account_id", "counterparty_id", "location_id", "user_id")
TAG_SEPARATOR = ";"


def load_records(csv_file_path: str | Path) -> dict[str, Any]:
    """Load records from a CSV file.

    Columns: description and amount are required; id, date, account_id,
    counterparty_id, location_id, user_id and tags (";" separated) are
    optional.

    Returns:
        Dict with:
        - records: list of TransactionRecord
        - errors: list of row error messages

    Raises:
        ValidationError: If the file has no header or lacks required columns
        FileNotFoundError: If the file doesn't exist
    """
    csv_path = Path(csv_file_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

    records = []
    errors = []

    with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
        sample = f.read(1024)
        f.seek(0)
        try:
            delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t").delimiter
        except csv.Error:
            delimiter = ","

        reader = csv.DictReader(f, delimiter=delimiter)
        if reader.fieldnames is None:
            raise ValidationError("CSV file has no columns")

        columns = {name.strip().lower(): name for name in reader.fieldnames if name}
        missing = [col for col in REQUIRED_COLUMNS if col not in columns]
        if missing:
            raise ValidationError(f"CSV file missing required columns: {', '.join(missing)}")

        def cell(row: dict, column: str) -> str:
            value = row.get(columns.get(column, ""), "")
            return (value or "").strip()

        for row_num, row in enumerate(reader, start=2):
            try:
                amount = parse_amount(cell(row, "amount"))
                date_str = cell(row, "date")
                record = TransactionRecord(
                    id=cell(row, "id") or None,
                    description=cell(row, "description"),
                    amount=amount,
                    date=parse_date(date_str) if date_str else None,
                    tag_ids=tuple(
                        tag.strip() for tag in cell(row, "tags").split(TAG_SEPARATOR) if tag.strip()
                    ),
                    **{col: cell(row, col) or None for col in REFERENCE_COLUMNS},
                )
            except ValueError as e:
                errors.append(f"Row {row_num}: {e}")
                continue
            records.append(record)

    return {"records": records, "errors": errors}
