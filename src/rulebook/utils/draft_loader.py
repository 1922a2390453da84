"""Load rule import drafts from the JSON documents the suggestion service emits."""

import json
from pathlib import Path
from typing import Any

from rulebook.domain.entities import (
    ChainOperator,
    MappingMode,
    MappingStatus,
    RuleCondition,
    RuleImportDraft,
)
from rulebook.domain.entity_resolver import new_id
from rulebook.domain.errors import ValidationError

# Field tags used by the suggestion service mapped to record attributes
FIELD_ALIASES = {
    "accountId": "account_id",
    "counterpartyId": "counterparty_id",
    "payeeId": "counterparty_id",
    "locationId": "location_id",
    "userId": "user_id",
    "tagIds": "tag_ids",
    "tags": "tag_ids",
}


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def parse_condition(data: dict[str, Any]) -> RuleCondition:
    """Parse one condition object.

    Raises:
        ValidationError: If field or operator is missing, or the chain
            operator is not AND/OR
    """
    if not isinstance(data, dict):
        raise ValidationError("Condition must be an object")
    field = data.get("field")
    operator = data.get("operator")
    if not field or not operator:
        raise ValidationError("Condition requires 'field' and 'operator'")

    chain = str(data.get("nextLogic") or data.get("chain") or "AND").upper()
    if chain not in ChainOperator.__members__:
        raise ValidationError(f"Unknown chain operator '{chain}'")

    return RuleCondition.from_value(
        id=str(data.get("id") or new_id()),
        field=FIELD_ALIASES.get(field, field),
        operator=operator,
        value=_text(data.get("value")) or "",
        chain=ChainOperator(chain),
        kind=data.get("type") or data.get("kind") or "basic",
    )


def _flag(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"Draft '{key}' must be true or false, got {value!r}")
    return value


def _tag_ids(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValidationError(f"Draft 'assignTagIds' must be a list, got {value!r}")
    return tuple(str(tag) for tag in value if tag)


def _parse_mapping_status(data: Any) -> MappingStatus:
    data = data or {}
    if not isinstance(data, dict):
        raise ValidationError("mappingStatus must be an object")
    values = {}
    for key in ("category", "counterparty", "location"):
        raw = data.get(key, MappingMode.MATCH.value)
        try:
            values[key] = MappingMode(raw)
        except ValueError:
            raise ValidationError(f"mappingStatus.{key} must be 'match' or 'create', got '{raw}'")
    return MappingStatus(**values)


def parse_draft(data: dict[str, Any]) -> RuleImportDraft:
    """Parse one draft object.

    The name is not validated here; blank names are rejected per draft by
    the reconciler so the rest of the batch still imports.

    Raises:
        ValidationError: If the object does not have the draft shape
    """
    if not isinstance(data, dict):
        raise ValidationError("Draft must be an object")

    conditions = data.get("conditions") or []
    if not isinstance(conditions, list):
        raise ValidationError("Draft 'conditions' must be a list")

    try:
        priority = int(data.get("priority") or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"Draft priority must be an integer, got {data.get('priority')!r}")

    return RuleImportDraft(
        id=str(data.get("id") or new_id()),
        name=str(data.get("name") or ""),
        conditions=tuple(parse_condition(c) for c in conditions),
        priority=priority,
        skip_import=_flag(data, "skipImport", False),
        set_category_id=_text(data.get("setCategoryId")),
        set_counterparty_id=_text(data.get("setCounterpartyId") or data.get("setPayeeId")),
        set_location_id=_text(data.get("setLocationId")),
        set_user_id=_text(data.get("setUserId")),
        set_transaction_type_id=_text(data.get("setTransactionTypeId")),
        set_description=_text(data.get("setDescription")),
        assign_tag_ids=_tag_ids(data.get("assignTagIds")),
        is_selected=_flag(data, "isSelected", True),
        mapping_status=_parse_mapping_status(data.get("mappingStatus")),
        suggested_category_name=_text(data.get("suggestedCategoryName")),
        suggested_counterparty_name=_text(data.get("suggestedCounterpartyName")),
        suggested_location_name=_text(data.get("suggestedLocationName")),
        suggested_type_name=_text(data.get("suggestedTypeName")),
    )


def load_drafts(path: str | Path) -> list[RuleImportDraft]:
    """Load drafts from a JSON file.

    The document is either a list of drafts or an object with a "drafts"
    list.

    Raises:
        ValidationError: If the file is not valid JSON or a draft is malformed
        FileNotFoundError: If the file doesn't exist
    """
    draft_path = Path(path)
    if not draft_path.exists():
        raise FileNotFoundError(f"Draft file not found: {path}")

    try:
        document = json.loads(draft_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Draft file is not valid JSON: {e}")

    if isinstance(document, dict):
        document = document.get("drafts")
    if not isinstance(document, list):
        raise ValidationError("Draft file must contain a list of drafts")

    drafts = []
    for index, item in enumerate(document, start=1):
        try:
            drafts.append(parse_draft(item))
        except ValidationError as e:
            raise ValidationError(f"Draft {index}: {e}") from e
    return drafts
