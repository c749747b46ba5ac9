"""Parser helpers for tracker database rows."""

import json
import sqlite3
from collections.abc import Iterable
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel

# Columns stored as JSON text
JSON_COLUMNS = frozenset({"tags", "metadata", "source_ref", "extra", "tasks"})

RecordT = TypeVar("RecordT", bound=BaseModel)


def _decode_row(row: sqlite3.Row | dict[str, Any]) -> dict[str, Any]:
    """
    Turn a database row into a plain dict, decoding JSON columns.

    Args:
        row: Row from the tracker database

    Returns:
        Dict suitable for model validation
    """
    data = dict(row)
    for column in JSON_COLUMNS.intersection(data):
        raw = data[column]
        if isinstance(raw, str):
            data[column] = json.loads(raw) if raw else None
    return data


def _parse_record(model: type[RecordT], row: sqlite3.Row | dict[str, Any]) -> RecordT:
    """
    Parse a database row into a record model.

    Args:
        model: Record model class to validate against
        row: Row from the tracker database

    Returns:
        Validated, immutable record snapshot
    """
    return model.model_validate(_decode_row(row))


def _parse_records(model: type[RecordT], rows: Iterable[sqlite3.Row]) -> list[RecordT]:
    """Parse several rows into record models, preserving order."""
    return [_parse_record(model, r) for r in rows]


def _encode_value(column: str, value: Any) -> Any:
    """Encode a Python value for storage in ``column``."""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", exclude_none=True)
    if column in JSON_COLUMNS:
        if value is None:
            return None if column == "source_ref" else json.dumps([] if column == "tags" else {})
        return json.dumps(value, separators=(",", ":"))
    if isinstance(value, Enum):
        return value.value
    return value
