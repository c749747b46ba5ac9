"""Append-only activity log of field-level changes."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

from tracker_mcp.enums import ActivityAction, EntityType
from tracker_mcp.errors import StoreUnavailable
from tracker_mcp.models.activity import ActivityEntry
from tracker_mcp.store.database import Database, format_timestamp, parse_timestamp
from tracker_mcp.utils.parsers import _parse_record, _parse_records

logger = logging.getLogger(__name__)

# Fields whose changes are written to the log when a record is updated
TRACKED_FIELDS: dict[EntityType, tuple[str, ...]] = {
    EntityType.PROJECT: ("name", "status"),
    EntityType.EPIC: ("name", "status", "priority"),
    EntityType.TASK: (
        "title",
        "status",
        "priority",
        "assigned_to",
        "estimated_hours",
        "actual_hours",
        "due_date",
    ),
    EntityType.SUBTASK: ("title", "status"),
    EntityType.NOTE: ("title", "note_type", "related_entity_type", "related_entity_id"),
}


def stringify(value: Any) -> str:
    """Render a field value the way it is stored in the log."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=(",", ":"), sort_keys=True)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _field(record: BaseModel | Mapping[str, Any], name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


class AuditLog:
    """
    Append-only store of activity entries.

    Entries are only ever inserted. They are ordered by creation timestamp,
    ties broken by their monotonically increasing id.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def record(
        self,
        entity_type: EntityType | str,
        entity_id: int,
        action: ActivityAction | str,
        *,
        summary: str,
        field_name: str | None = None,
        old_value: str | None = None,
        new_value: str | None = None,
    ) -> ActivityEntry:
        """Append one entry and return it."""
        with self.db.transaction():
            row = self.db.fetch_one(
                """INSERT INTO activity_log
                   (entity_type, entity_id, action, field_name, old_value, new_value, summary, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?) RETURNING *""",
                (
                    EntityType(entity_type).value,
                    entity_id,
                    ActivityAction(action).value,
                    field_name,
                    old_value,
                    new_value,
                    summary,
                    self.db.timestamp(),
                ),
            )
        if row is None:
            raise StoreUnavailable("Insert into activity_log returned no row")
        logger.debug("Activity: %s", summary)
        return _parse_record(ActivityEntry, row)

    def diff_and_record(
        self,
        entity_type: EntityType | str,
        entity_id: int,
        display_name: str,
        old: BaseModel | Mapping[str, Any],
        new: BaseModel | Mapping[str, Any],
        tracked_fields: Sequence[str] | None = None,
    ) -> list[ActivityEntry]:
        """
        Append one entry per tracked field whose rendered value changed.

        Every tracked field is compared, so several fields changed by one
        operation produce several entries. A change to ``status`` is logged as
        ``status_changed``; anything else as ``updated``.
        """
        kind = EntityType(entity_type)
        fields = tracked_fields if tracked_fields is not None else TRACKED_FIELDS[kind]
        entries = []
        with self.db.transaction():
            for name in fields:
                old_value = stringify(_field(old, name))
                new_value = stringify(_field(new, name))
                if old_value == new_value:
                    continue
                action = ActivityAction.STATUS_CHANGED if name == "status" else ActivityAction.UPDATED
                entries.append(
                    self.record(
                        kind,
                        entity_id,
                        action,
                        field_name=name,
                        old_value=old_value,
                        new_value=new_value,
                        summary=f"{kind.value.capitalize()} '{display_name}' {name}: {old_value} -> {new_value}",
                    )
                )
        return entries

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query(
        self,
        entity_type: EntityType | str | None = None,
        entity_id: int | None = None,
        action: ActivityAction | str | None = None,
        since: datetime | str | None = None,
        limit: int = 50,
    ) -> list[ActivityEntry]:
        """Filtered browse of the log, newest first."""
        where: list[str] = []
        params: list[Any] = []

        if entity_type:
            where.append("entity_type = ?")
            params.append(EntityType(entity_type).value)
        if entity_id is not None:
            where.append("entity_id = ?")
            params.append(entity_id)
        if action:
            where.append("action = ?")
            params.append(ActivityAction(action).value)
        if since is not None:
            where.append("created_at > ?")
            params.append(format_timestamp(parse_timestamp(since)))

        where_str = f"WHERE {' AND '.join(where)}" if where else ""
        params.append(limit)
        rows = self.db.fetch_all(
            f"SELECT * FROM activity_log {where_str} ORDER BY created_at DESC, id DESC LIMIT ?",
            params,
        )
        return _parse_records(ActivityEntry, rows)

    def since(self, timestamp: datetime | str) -> list[ActivityEntry]:
        """Every entry created strictly after ``timestamp``, oldest first."""
        rows = self.db.fetch_all(
            "SELECT * FROM activity_log WHERE created_at > ? ORDER BY created_at ASC, id ASC",
            (format_timestamp(parse_timestamp(timestamp)),),
        )
        return _parse_records(ActivityEntry, rows)

    def last_transition(
        self,
        entity_type: EntityType | str,
        entity_id: int,
        field_name: str,
        new_value: str,
    ) -> ActivityEntry | None:
        """Most recent entry that set ``field_name`` to ``new_value`` on one entity."""
        row = self.db.fetch_one(
            """SELECT * FROM activity_log
               WHERE entity_type = ? AND entity_id = ? AND field_name = ? AND new_value = ?
               ORDER BY created_at DESC, id DESC
               LIMIT 1""",
            (EntityType(entity_type).value, entity_id, field_name, new_value),
        )
        return _parse_record(ActivityEntry, row) if row else None
