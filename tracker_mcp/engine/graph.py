"""Dependency graph: directed edges from a task to its prerequisite tasks."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tracker_mcp.engine.audit import AuditLog
from tracker_mcp.enums import ActivityAction, EntityType, TaskStatus
from tracker_mcp.errors import NotFoundError
from tracker_mcp.models.task import DependencyRef
from tracker_mcp.store.database import Database
from tracker_mcp.utils.parsers import _parse_records

logger = logging.getLogger(__name__)


def _render_ids(ids: Iterable[int]) -> str:
    return ",".join(str(i) for i in sorted(ids))


class DependencyGraph:
    """
    Edge set ``task -> prerequisite``, stored beside the tasks it links.

    The graph is local: it answers questions about one task's direct
    predecessors and successors and makes no claim about transitive order.
    """

    def __init__(self, db: Database, audit: AuditLog) -> None:
        self.db = db
        self.audit = audit

    def set_predecessors(self, task_id: int, predecessor_ids: Iterable[int]) -> frozenset[int]:
        """
        Replace the full predecessor set of ``task_id``.

        ``task_id`` itself is silently dropped from the set. Re-setting the
        current set is a no-op and writes nothing to the activity log.

        Returns:
            The stored predecessor set

        Raises:
            NotFoundError: ``task_id`` or one of the predecessors does not exist
        """
        wanted = frozenset(int(p) for p in predecessor_ids if int(p) != task_id)

        with self.db.transaction():
            self._require_tasks([task_id, *sorted(wanted)])
            current = self.predecessors_of(task_id)
            if current == wanted:
                return current

            self.db.execute("DELETE FROM task_dependencies WHERE task_id = ?", (task_id,))
            now = self.db.timestamp()
            for predecessor_id in sorted(wanted):
                self.db.execute(
                    "INSERT OR IGNORE INTO task_dependencies (task_id, depends_on_id, created_at) VALUES (?, ?, ?)",
                    (task_id, predecessor_id, now),
                )

            old_value, new_value = _render_ids(current), _render_ids(wanted)
            self.audit.record(
                EntityType.TASK,
                task_id,
                ActivityAction.UPDATED,
                field_name="dependencies",
                old_value=old_value,
                new_value=new_value,
                summary=f"Task #{task_id} dependencies: [{old_value}] -> [{new_value}]",
            )

        logger.debug("Task %s predecessors: %s -> %s", task_id, sorted(current), sorted(wanted))
        return wanted

    def predecessors_of(self, task_id: int) -> frozenset[int]:
        rows = self.db.fetch_all("SELECT depends_on_id FROM task_dependencies WHERE task_id = ?", (task_id,))
        return frozenset(row["depends_on_id"] for row in rows)

    def successors_of(self, task_id: int) -> frozenset[int]:
        rows = self.db.fetch_all("SELECT task_id FROM task_dependencies WHERE depends_on_id = ?", (task_id,))
        return frozenset(row["task_id"] for row in rows)

    def predecessor_refs(self, task_id: int) -> list[DependencyRef]:
        """Predecessors of ``task_id`` with their title and status, ordered by id."""
        rows = self.db.fetch_all(
            """SELECT t.id, t.title, t.status
               FROM task_dependencies d
               JOIN tasks t ON t.id = d.depends_on_id
               WHERE d.task_id = ?
               ORDER BY t.id""",
            (task_id,),
        )
        return _parse_records(DependencyRef, rows)

    def successor_refs(self, task_id: int) -> list[DependencyRef]:
        """Tasks that depend on ``task_id``, ordered by id."""
        rows = self.db.fetch_all(
            """SELECT t.id, t.title, t.status
               FROM task_dependencies d
               JOIN tasks t ON t.id = d.task_id
               WHERE d.depends_on_id = ?
               ORDER BY t.id""",
            (task_id,),
        )
        return _parse_records(DependencyRef, rows)

    def unmet_predecessors(self, task_id: int) -> list[DependencyRef]:
        """
        Predecessors that are not yet done.

        An empty list means every prerequisite is satisfied, including the
        case of having none at all.
        """
        return [ref for ref in self.predecessor_refs(task_id) if ref.status != TaskStatus.DONE]

    def _require_tasks(self, task_ids: list[int]) -> None:
        if not task_ids:
            return
        placeholders = ", ".join("?" for _ in task_ids)
        rows = self.db.fetch_all(f"SELECT id FROM tasks WHERE id IN ({placeholders})", task_ids)
        found = {row["id"] for row in rows}
        for task_id in task_ids:
            if task_id not in found:
                raise NotFoundError(EntityType.TASK.value, task_id)
