"""Entity store: current field values for every record kind the tracker keeps."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple

from pydantic import BaseModel

from tracker_mcp.enums import EntityType
from tracker_mcp.errors import NotFoundError, StoreUnavailable, ValidationFailure
from tracker_mcp.models.task import CommentModel, EpicModel, NoteModel, ProjectModel, SubtaskModel, TaskModel
from tracker_mcp.models.templates import TemplateModel
from tracker_mcp.store.database import Database
from tracker_mcp.utils.parsers import _encode_value, _parse_record

logger = logging.getLogger(__name__)


class _Table(NamedTuple):
    name: str
    model: type[BaseModel]
    parent: str | None
    updatable: frozenset[str]


_TABLES: dict[EntityType, _Table] = {
    EntityType.PROJECT: _Table(
        "projects",
        ProjectModel,
        None,
        frozenset({"name", "description", "status", "tags", "metadata"}),
    ),
    EntityType.EPIC: _Table(
        "epics",
        EpicModel,
        "project_id",
        frozenset({"name", "description", "status", "priority", "sort_order", "tags", "metadata"}),
    ),
    EntityType.TASK: _Table(
        "tasks",
        TaskModel,
        "epic_id",
        frozenset(
            {
                "title",
                "description",
                "status",
                "priority",
                "sort_order",
                "assigned_to",
                "estimated_hours",
                "actual_hours",
                "due_date",
                "source_ref",
                "tags",
                "metadata",
                "extra",
            }
        ),
    ),
    EntityType.SUBTASK: _Table(
        "subtasks",
        SubtaskModel,
        "task_id",
        frozenset({"title", "status", "sort_order"}),
    ),
    EntityType.NOTE: _Table(
        "notes",
        NoteModel,
        None,
        frozenset(
            {"title", "content", "note_type", "related_entity_type", "related_entity_id", "tags", "metadata"}
        ),
    ),
    EntityType.COMMENT: _Table(
        "comments",
        CommentModel,
        "task_id",
        frozenset({"author", "content"}),
    ),
    EntityType.TEMPLATE: _Table(
        "templates",
        TemplateModel,
        None,
        frozenset({"name", "description", "tasks"}),
    ),
}


def _table(entity_type: EntityType | str) -> _Table:
    return _TABLES[EntityType(entity_type)]


class EntityStore:
    """
    Durable mapping from entity id to its current field values.

    Reads return immutable snapshots. Every write runs inside
    ``Database.transaction()``, so when a caller already holds a unit of work
    (for example to record audit entries alongside the write) the write joins
    it and commits or rolls back together with everything else.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def find(self, entity_type: EntityType | str, entity_id: int) -> Any | None:
        """Return the current snapshot, or None if the id does not exist."""
        table = _table(entity_type)
        row = self.db.fetch_one(f"SELECT * FROM {table.name} WHERE id = ?", (entity_id,))
        return _parse_record(table.model, row) if row else None

    def get(self, entity_type: EntityType | str, entity_id: int) -> Any:
        """
        Return the current snapshot.

        Raises:
            NotFoundError: the id does not exist
        """
        record = self.find(entity_type, entity_id)
        if record is None:
            raise NotFoundError(EntityType(entity_type).value, entity_id)
        return record

    def get_many(self, entity_type: EntityType | str, entity_ids: Sequence[int]) -> list[Any]:
        """Return snapshots in the order of ``entity_ids``; the first missing id raises NotFoundError."""
        table = _table(entity_type)
        if not entity_ids:
            return []
        placeholders = ", ".join("?" for _ in entity_ids)
        rows = self.db.fetch_all(f"SELECT * FROM {table.name} WHERE id IN ({placeholders})", entity_ids)
        by_id = {row["id"]: row for row in rows}
        records = []
        for entity_id in entity_ids:
            if entity_id not in by_id:
                raise NotFoundError(EntityType(entity_type).value, entity_id)
            records.append(_parse_record(table.model, by_id[entity_id]))
        return records

    def insert(self, entity_type: EntityType | str, values: Mapping[str, Any]) -> Any:
        """Insert a new record and return its snapshot."""
        table = _table(entity_type)
        allowed = table.updatable | ({table.parent} if table.parent else set())
        self._check_columns(table, values, allowed)

        now = self.db.timestamp()
        columns = list(values) + ["created_at", "updated_at"]
        params = [_encode_value(c, values[c]) for c in values] + [now, now]
        placeholders = ", ".join("?" for _ in columns)
        with self.db.transaction():
            row = self.db.fetch_one(
                f"INSERT INTO {table.name} ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
                params,
            )
        if row is None:
            raise StoreUnavailable(f"Insert into {table.name} returned no row")
        return _parse_record(table.model, row)

    def apply(self, entity_type: EntityType | str, entity_id: int, changes: Mapping[str, Any]) -> Any:
        """
        Write ``changes`` to one record and return the new snapshot.

        The record's ``updated_at`` is refreshed on every successful call.

        Raises:
            NotFoundError: the id does not exist
            ValidationFailure: no changes, or a column that cannot be updated
        """
        return self.apply_many(entity_type, [entity_id], changes)[0]

    def apply_many(
        self,
        entity_type: EntityType | str,
        entity_ids: Sequence[int],
        changes: Mapping[str, Any],
    ) -> list[Any]:
        """
        Write the same ``changes`` to every id as one atomic unit.

        If any id does not exist nothing is written and NotFoundError names the
        first missing id (in the order given).
        """
        table = _table(entity_type)
        if not changes:
            raise ValidationFailure("No fields to update")
        self._check_columns(table, changes, table.updatable)
        ids = list(dict.fromkeys(entity_ids))
        if not ids:
            raise ValidationFailure("No ids to update")

        assignments = [f"{column} = ?" for column in changes] + ["updated_at = ?"]
        params = [_encode_value(c, v) for c, v in changes.items()] + [self.db.timestamp()]
        placeholders = ", ".join("?" for _ in ids)

        with self.db.transaction():
            self.get_many(entity_type, ids)
            rows = self.db.fetch_all(
                f"UPDATE {table.name} SET {', '.join(assignments)} WHERE id IN ({placeholders}) RETURNING *",
                params + ids,
            )
        by_id = {row["id"]: row for row in rows}
        logger.debug("Updated %s %s: %s", table.name, ids, sorted(changes))
        return [_parse_record(table.model, by_id[i]) for i in ids]

    def delete(self, entity_type: EntityType | str, entity_id: int) -> Any:
        """Delete one record and return its last snapshot."""
        table = _table(entity_type)
        with self.db.transaction():
            record = self.get(entity_type, entity_id)
            self.db.execute(f"DELETE FROM {table.name} WHERE id = ?", (entity_id,))
        return record

    @staticmethod
    def _check_columns(table: _Table, values: Mapping[str, Any], allowed: frozenset[str] | set[str]) -> None:
        unknown = sorted(set(values) - set(allowed))
        if unknown:
            raise ValidationFailure(f"Cannot set {', '.join(unknown)} on {table.name}")
