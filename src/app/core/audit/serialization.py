"""Helpers turning model state into JSON-safe audit payloads."""

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import inspect


def to_json_value(value: Any) -> Any:
    """Convert a column value into something a JSON column accepts."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, list):
        return [to_json_value(item) for item in value]
    if isinstance(value, dict):
        return {str(key): to_json_value(item) for key, item in value.items()}
    return value


def snapshot(obj: Any, exclude: tuple[str, ...] = ("created_at", "updated_at")) -> dict[str, Any]:
    """Capture the loaded column values of a model instance.

    Args:
        obj: SQLAlchemy model instance
        exclude: Column attributes to leave out

    Returns:
        Dictionary of attribute name to JSON-safe value
    """
    state = inspect(obj)
    return {
        attr.key: to_json_value(getattr(obj, attr.key))
        for attr in state.mapper.column_attrs
        if attr.key not in exclude and attr.key not in state.unloaded
    }


def diff_changes(before: dict[str, Any], after: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Build a per-field before/after diff.

    Fields whose value did not change are omitted.

    Example:
        >>> diff_changes({"name": "A", "version": 1}, {"name": "B", "version": 1})
        {'name': {'before': 'A', 'after': 'B'}}
    """
    changes: dict[str, dict[str, Any]] = {}
    for key in before.keys() | after.keys():
        old_value = before.get(key)
        new_value = after.get(key)
        if old_value != new_value:
            changes[key] = {"before": old_value, "after": new_value}
    return changes
