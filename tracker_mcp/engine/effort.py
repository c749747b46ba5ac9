"""Time tracking: infer actual effort from the activity log."""

from __future__ import annotations

import logging
import math

from tracker_mcp.engine.audit import AuditLog, stringify
from tracker_mcp.engine.entities import EntityStore
from tracker_mcp.enums import ActivityAction, EntityType, TaskStatus
from tracker_mcp.models.task import TaskModel
from tracker_mcp.store.database import Database

logger = logging.getLogger(__name__)


def _round_hours(hours: float) -> float:
    """Round half up to one decimal place."""
    return math.floor(hours * 10 + 0.5) / 10


class EffortEstimator:
    """Records elapsed hours when a task that was in progress is completed."""

    def __init__(self, db: Database, entities: EntityStore, audit: AuditLog) -> None:
        self.db = db
        self.entities = entities
        self.audit = audit

    def record_completion(self, task: TaskModel) -> TaskModel | None:
        """
        Set ``actual_hours`` from the last move into ``in_progress``.

        Call only for a task that has just become done and whose caller did
        not supply ``actual_hours``. A task that never went through
        ``in_progress`` gets no value.

        Returns:
            The new snapshot if effort was recorded, otherwise None
        """
        started = self.audit.last_transition(EntityType.TASK, task.id, "status", TaskStatus.IN_PROGRESS.value)
        if started is None:
            return None

        elapsed = (self.db.now() - started.created_at).total_seconds() / 3600
        hours = _round_hours(elapsed)
        if hours <= 0:
            return None

        with self.db.transaction():
            updated: TaskModel = self.entities.apply(EntityType.TASK, task.id, {"actual_hours": hours})
            old_value, new_value = stringify(task.actual_hours), stringify(hours)
            self.audit.record(
                EntityType.TASK,
                task.id,
                ActivityAction.UPDATED,
                field_name="actual_hours",
                old_value=old_value,
                new_value=new_value,
                summary=f"Task '{task.title}' actual_hours: {old_value or '-'} -> {new_value} (auto-tracked)",
            )

        logger.debug("Task %s took %.1f h", task.id, hours)
        return updated
