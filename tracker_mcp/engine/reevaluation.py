"""Reevaluation engine: keeps task status consistent with its prerequisites."""

from __future__ import annotations

import logging

from tracker_mcp.engine.audit import AuditLog
from tracker_mcp.engine.entities import EntityStore
from tracker_mcp.engine.graph import DependencyGraph
from tracker_mcp.engine.resolver import resolve_status
from tracker_mcp.enums import ActivityAction, EntityType, TaskStatus
from tracker_mcp.errors import NotFoundError, StoreUnavailable, TrackerError
from tracker_mcp.models.results import CascadeFailure, CascadeReport
from tracker_mcp.models.task import DependencyRef, TaskModel
from tracker_mcp.store.database import Database

logger = logging.getLogger(__name__)

# Failure kind reported for a successor that failed outside the tracker error taxonomy
UNEXPECTED_FAILURE = "unexpected_error"


def _blocked_summary(task: TaskModel, unmet: list[DependencyRef]) -> str:
    blockers = ", ".join(f"#{ref.id} '{ref.title}' ({ref.status})" for ref in unmet)
    return f"Task '{task.title}' blocked by: {blockers}"


class ReevaluationEngine:
    """
    Re-derives task status after the dependency picture changes.

    Two triggers exist. When a task's predecessor set is replaced or its
    status is set explicitly, the task itself is reevaluated inside the
    caller's unit of work. When a task becomes done, each of its direct
    successors is reevaluated in its own unit of work. The fan-out is single-hop: unblocking a successor only moves it
    to ``todo``, never to ``done``, so there is nothing further to propagate.
    """

    def __init__(self, db: Database, entities: EntityStore, graph: DependencyGraph, audit: AuditLog) -> None:
        self.db = db
        self.entities = entities
        self.graph = graph
        self.audit = audit

    def reevaluate(self, task_id: int) -> TaskModel | None:
        """
        Apply the blocking rule to one task.

        Tasks without predecessors are never touched.

        Returns:
            The new snapshot if the status changed, otherwise None

        Raises:
            NotFoundError: the task does not exist
        """
        with self.db.transaction():
            task: TaskModel = self.entities.get(EntityType.TASK, task_id)
            if not self.graph.predecessors_of(task_id):
                return None

            unmet = self.graph.unmet_predecessors(task_id)
            new_status = resolve_status(task.status, len(unmet))
            if new_status is None:
                return None

            updated: TaskModel = self.entities.apply(EntityType.TASK, task_id, {"status": new_status})
            if new_status == TaskStatus.BLOCKED:
                summary = _blocked_summary(updated, unmet)
            else:
                summary = f"Task '{updated.title}' unblocked: all dependencies met"
            self.audit.record(
                EntityType.TASK,
                task_id,
                ActivityAction.STATUS_CHANGED,
                field_name="status",
                old_value=task.status,
                new_value=updated.status,
                summary=summary,
            )

        logger.info("Task %s status %s -> %s", task_id, task.status, updated.status)
        return updated

    def cascade_from(self, task_id: int) -> CascadeReport:
        """
        Reevaluate every direct successor of a task that just became done.

        Each successor is its own atomic unit: a failure on one is reported
        and the rest still run, and successors already updated stay updated.
        A successor that vanished before it could be read is skipped.
        Any other failure, including one outside the tracker error taxonomy,
        is reported against its successor. Only StoreUnavailable aborts the
        fan-out.
        """
        report = CascadeReport(source_id=task_id)
        try:
            successors = sorted(self.graph.successors_of(task_id))
        except StoreUnavailable:
            raise
        except TrackerError as e:
            logger.warning("Could not look up successors of task %s: %s", task_id, e)
            report.failed.append(CascadeFailure(task_id=task_id, kind=e.kind, message=e.message))
            return report
        except Exception as e:
            logger.exception("Could not look up successors of task %s", task_id)
            report.failed.append(CascadeFailure(task_id=task_id, kind=UNEXPECTED_FAILURE, message=str(e)))
            return report

        for successor_id in successors:
            try:
                updated = self.reevaluate(successor_id)
            except NotFoundError:
                report.skipped.append(successor_id)
                continue
            except StoreUnavailable:
                raise
            except TrackerError as e:
                logger.warning("Reevaluation of task %s after %s completed failed: %s", successor_id, task_id, e)
                report.failed.append(CascadeFailure(task_id=successor_id, kind=e.kind, message=e.message))
                continue
            except Exception as e:
                logger.exception("Reevaluation of task %s after %s completed failed", successor_id, task_id)
                report.failed.append(CascadeFailure(task_id=successor_id, kind=UNEXPECTED_FAILURE, message=str(e)))
                continue
            if updated is not None:
                report.changed.append(updated)

        return report
