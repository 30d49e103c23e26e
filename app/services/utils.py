"""
Shared helpers for the service layer
"""
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel

INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO timestamp from storage, treating naive values as UTC
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def convert_datetime_to_iso(data: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """
    Convert datetime objects to ISO strings for JSON storage

    Args:
        data: Dictionary to convert
        fields: List of field names to convert

    Returns:
        Dictionary with datetime fields converted to ISO strings
    """
    result = data.copy()
    for field in fields:
        if isinstance(result.get(field), datetime):
            result[field] = result[field].isoformat()
    return result


def to_document(model: BaseModel, datetime_fields: Iterable[str] = ("createdAt", "updatedAt")) -> Dict[str, Any]:
    """
    Dump a model with its camelCase keys, ready for JSON storage
    """
    return convert_datetime_to_iso(model.model_dump(by_alias=True), datetime_fields)


def to_int(value: Any) -> Optional[int]:
    """
    Parse an integer from a JSON number or a numeric form string

    Returns None for anything that is not a whole number.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if INTEGER_PATTERN.fullmatch(text):
            return int(text)
    return None
