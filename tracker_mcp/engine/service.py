"""Tracker service: the operations collaborators call to read and mutate work items."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from tracker_mcp.engine.audit import AuditLog
from tracker_mcp.engine.effort import EffortEstimator
from tracker_mcp.engine.entities import EntityStore
from tracker_mcp.engine.graph import DependencyGraph
from tracker_mcp.engine.reevaluation import ReevaluationEngine
from tracker_mcp.enums import ActivityAction, EntityType, LinkableType, SearchableType, TaskStatus
from tracker_mcp.errors import NotFoundError, ValidationFailure
from tracker_mcp.models.activity import ActivityEntry
from tracker_mcp.models.results import (
    BatchUpdateResult,
    BlockedTaskInfo,
    Dashboard,
    EpicSummary,
    ProjectStats,
    SearchResults,
    TaskUpdateResult,
    TemplateApplyResult,
)
from tracker_mcp.models.task import (
    CommentModel,
    EpicModel,
    NoteModel,
    ProjectModel,
    SubtaskModel,
    TaskDetail,
    TaskModel,
)
from tracker_mcp.models.templates import TemplateModel, TemplateTask
from tracker_mcp.models.transfer import (
    EXPORT_FORMAT_VERSION,
    ExportedEpic,
    ExportedNote,
    ExportedProject,
    ExportedSubtask,
    ExportedTask,
    ImportCounts,
    ImportResult,
    ProjectExport,
)
from tracker_mcp.store.database import Database
from tracker_mcp.utils.parsers import _parse_record, _parse_records

logger = logging.getLogger(__name__)

# Fields a batch update may set on every task in the batch
BATCH_FIELDS = frozenset({"status", "priority", "assigned_to"})

# Optional text fields an empty string clears
CLEARABLE_FIELDS = frozenset({"description", "assigned_to", "due_date"})

_PRIORITY_ORDER_SQL = "CASE t.priority WHEN 'critical' THEN 0 WHEN 'high' THEN 1 WHEN 'medium' THEN 2 ELSE 3 END"


def _clean(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Drop fields the caller left unset; an empty string clears a clearable field."""
    cleaned: dict[str, Any] = {}
    for key, value in changes.items():
        if value is None:
            continue
        cleaned[key] = None if value == "" and key in CLEARABLE_FIELDS else value
    return cleaned


def _value(value: Any) -> Any:
    """Plain value of an enum member; anything else unchanged."""
    return getattr(value, "value", value)


def _like_pattern(query: str) -> str:
    escaped = query.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _substitute(text: str, variables: Mapping[str, str]) -> str:
    """Replace {name} placeholders that have a value in ``variables``."""
    return re.sub(r"\{(\w+)\}", lambda m: variables.get(m.group(1), m.group(0)), text)


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


class TrackerService:
    """
    Entry point for every read and write against one tracker database.

    Builds the audit log, entity store, dependency graph, reevaluation engine
    and effort estimator on top of an explicitly opened ``Database`` handle.
    Each public mutation runs as one atomic unit; the follow-up cascade to
    successors of newly completed tasks runs after it commits.
    """

    def __init__(self, db: Database) -> None:
        self.db = db
        self.audit = AuditLog(db)
        self.entities = EntityStore(db)
        self.graph = DependencyGraph(db, self.audit)
        self.reevaluation = ReevaluationEngine(db, self.entities, self.graph, self.audit)
        self.effort = EffortEstimator(db, self.entities, self.audit)

    # ==================================================================
    # Tasks
    # ==================================================================

    def create_task(
        self,
        epic_id: int,
        fields: Mapping[str, Any],
        predecessor_ids: Iterable[int] | None = None,
    ) -> TaskModel:
        """
        Create a task in an epic, optionally with its initial predecessors.

        When predecessors are given the new task is reevaluated straight away,
        in the same unit of work, so it is created already blocked if any of
        them is unfinished.
        """
        values = _clean(fields)
        if not values.get("title"):
            raise ValidationFailure("Task title is required")

        with self.db.transaction():
            self.entities.get(EntityType.EPIC, epic_id)
            task: TaskModel = self.entities.insert(EntityType.TASK, {"epic_id": epic_id, **values})
            self.audit.record(
                EntityType.TASK,
                task.id,
                ActivityAction.CREATED,
                summary=f"Task '{task.title}' created",
            )
            if task.status != TaskStatus.TODO:
                # Effort inference looks for the move into in_progress
                self.audit.record(
                    EntityType.TASK,
                    task.id,
                    ActivityAction.STATUS_CHANGED,
                    field_name="status",
                    new_value=task.status,
                    summary=f"Task '{task.title}' created as {task.status}",
                )
            if predecessor_ids is not None:
                self.graph.set_predecessors(task.id, predecessor_ids)
                task = self.reevaluation.reevaluate(task.id) or task

        logger.info("Created task %s in epic %s", task.id, epic_id)
        return task

    def update_task(
        self,
        task_id: int,
        changes: Mapping[str, Any],
        predecessor_ids: Iterable[int] | None = None,
    ) -> TaskUpdateResult:
        """
        Update a task's fields and, optionally, replace its predecessor set.

        Order of effects, all in one unit of work: field writes and their
        activity entries, edge-set replacement, self-reevaluation whenever the
        status or the edge set was touched, then effort inference if the task
        just became done. After commit, direct successors of a newly completed
        task are reevaluated.

        An explicit status may be overridden: asking for ``in_progress`` while
        a prerequisite is unfinished leaves the task ``blocked``, and asking
        for ``blocked`` when every prerequisite is done leaves it ``todo``.

        Raises:
            NotFoundError: the task or a predecessor does not exist
            ValidationFailure: nothing to update
        """
        fields = _clean(changes)
        wanted = None if predecessor_ids is None else [int(p) for p in predecessor_ids]
        if not fields and wanted is None:
            raise ValidationFailure("No fields to update", entity_id=task_id)
        if not fields and wanted and all(p == task_id for p in wanted):
            raise ValidationFailure(f"Task {task_id} cannot depend on itself", entity_id=task_id)

        with self.db.transaction():
            old: TaskModel = self.entities.get(EntityType.TASK, task_id)
            task = old
            if fields:
                task = self.entities.apply(EntityType.TASK, task_id, fields)
                self.audit.diff_and_record(EntityType.TASK, task_id, task.title, old, task)
            if wanted is not None:
                self.graph.set_predecessors(task_id, wanted)
            if wanted is not None or "status" in fields:
                task = self.reevaluation.reevaluate(task_id) or task

            completed = old.status != TaskStatus.DONE and task.status == TaskStatus.DONE
            if completed and "actual_hours" not in fields:
                task = self.effort.record_completion(task) or task

        cascade = self.reevaluation.cascade_from(task_id) if completed else None
        return TaskUpdateResult(task=task, cascade=cascade)

    def batch_update_tasks(self, task_ids: Sequence[int], changes: Mapping[str, Any]) -> BatchUpdateResult:
        """
        Apply the same field changes to several tasks as one atomic unit.

        If any id is missing the whole batch fails with NotFoundError and no
        task is modified.
        A status change is checked against each task's prerequisites the
        same way ``update_task`` checks it.
        """
        fields = _clean(changes)
        if not fields:
            raise ValidationFailure("Provide at least one field to update: status, priority, or assigned_to")
        unsupported = sorted(set(fields) - BATCH_FIELDS)
        if unsupported:
            raise ValidationFailure(f"Batch updates cannot set: {', '.join(unsupported)}")
        ids = list(dict.fromkeys(int(i) for i in task_ids))
        if not ids:
            raise ValidationFailure("Provide at least one task id")

        completed: list[int] = []
        with self.db.transaction():
            olds: list[TaskModel] = self.entities.get_many(EntityType.TASK, ids)
            news: list[TaskModel] = self.entities.apply_many(EntityType.TASK, ids, fields)
            tasks = []
            for old, new in zip(olds, news):
                self.audit.diff_and_record(EntityType.TASK, new.id, new.title, old, new)
                if "status" in fields:
                    new = self.reevaluation.reevaluate(new.id) or new
                if old.status != TaskStatus.DONE and new.status == TaskStatus.DONE:
                    completed.append(new.id)
                    new = self.effort.record_completion(new) or new
                tasks.append(new)

        cascades = [self.reevaluation.cascade_from(task_id) for task_id in completed]
        logger.info("Batch updated %d task(s)", len(tasks))
        return BatchUpdateResult(tasks=tasks, cascades=cascades)

    def get_task(self, task_id: int) -> TaskDetail:
        """A task with its predecessors, successors, subtasks and linked notes."""
        row = self.db.fetch_one(
            "SELECT t.*, e.name AS epic_name FROM tasks t JOIN epics e ON e.id = t.epic_id WHERE t.id = ?",
            (task_id,),
        )
        if row is None:
            raise NotFoundError(EntityType.TASK.value, task_id)

        detail = _parse_record(TaskDetail, row)
        predecessors = self.graph.predecessor_refs(task_id)
        subtasks = self.db.fetch_all(
            "SELECT * FROM subtasks WHERE task_id = ? ORDER BY sort_order, id",
            (task_id,),
        )
        return detail.model_copy(
            update={
                "predecessors": predecessors,
                "successors": self.graph.successor_refs(task_id),
                "unmet_predecessors": [p for p in predecessors if p.status != TaskStatus.DONE],
                "subtasks": _parse_records(SubtaskModel, subtasks),
                "notes": self.list_notes(related_entity_type=LinkableType.TASK, related_entity_id=task_id, limit=None),
            }
        )

    def list_tasks(
        self,
        epic_id: int | None = None,
        status: str | None = None,
        priority: str | None = None,
        assigned_to: str | None = None,
        tag: str | None = None,
        limit: int = 50,
    ) -> list[TaskModel]:
        """Tasks matching every given filter, in epic sort order."""
        where: list[str] = []
        params: list[Any] = []

        if epic_id is not None:
            where.append("t.epic_id = ?")
            params.append(epic_id)
        if status:
            where.append("t.status = ?")
            params.append(TaskStatus(status).value)
        if priority:
            where.append("t.priority = ?")
            params.append(_value(priority))
        if assigned_to:
            where.append("t.assigned_to = ?")
            params.append(assigned_to)
        if tag:
            where.append("EXISTS (SELECT 1 FROM json_each(t.tags) WHERE json_each.value = ?)")
            params.append(tag)

        where_str = f"WHERE {' AND '.join(where)}" if where else ""
        params.append(limit)
        rows = self.db.fetch_all(
            f"SELECT t.* FROM tasks t {where_str} ORDER BY t.sort_order, t.created_at, t.id LIMIT ?",
            params,
        )
        return _parse_records(TaskModel, rows)

    # ==================================================================
    # Activity
    # ==================================================================

    def query_activity_since(self, timestamp: datetime | str) -> list[ActivityEntry]:
        """Everything that happened after ``timestamp``, oldest first."""
        return self.audit.since(timestamp)

    def query_activity(self, **filters: Any) -> list[ActivityEntry]:
        """Filtered activity, newest first. See ``AuditLog.query``."""
        return self.audit.query(**filters)

    # ==================================================================
    # Projects and epics
    # ==================================================================

    def create_project(self, fields: Mapping[str, Any]) -> ProjectModel:
        values = _clean(fields)
        if not values.get("name"):
            raise ValidationFailure("Project name is required")
        with self.db.transaction():
            project: ProjectModel = self.entities.insert(EntityType.PROJECT, values)
            self.audit.record(
                EntityType.PROJECT,
                project.id,
                ActivityAction.CREATED,
                summary=f"Project '{project.name}' created",
            )
        return project

    def list_projects(self, status: str | None = None) -> list[ProjectModel]:
        if status:
            rows = self.db.fetch_all(
                "SELECT * FROM projects WHERE status = ? ORDER BY id",
                (_value(status),),
            )
        else:
            rows = self.db.fetch_all("SELECT * FROM projects ORDER BY id")
        return _parse_records(ProjectModel, rows)

    def update_project(self, project_id: int, changes: Mapping[str, Any]) -> ProjectModel:
        return self._update_record(EntityType.PROJECT, project_id, changes, lambda r: r.name)

    def create_epic(self, project_id: int, fields: Mapping[str, Any]) -> EpicModel:
        values = _clean(fields)
        if not values.get("name"):
            raise ValidationFailure("Epic name is required")
        with self.db.transaction():
            self.entities.get(EntityType.PROJECT, project_id)
            epic: EpicModel = self.entities.insert(EntityType.EPIC, {"project_id": project_id, **values})
            self.audit.record(
                EntityType.EPIC,
                epic.id,
                ActivityAction.CREATED,
                summary=f"Epic '{epic.name}' created in project {project_id}",
            )
        return epic

    def list_epics(
        self,
        project_id: int,
        status: str | None = None,
        priority: str | None = None,
    ) -> list[EpicSummary]:
        """Epics of a project with task counts and completion percentage."""
        where = ["e.project_id = ?"]
        params: list[Any] = [project_id]
        if status:
            where.append("e.status = ?")
            params.append(_value(status))
        if priority:
            where.append("e.priority = ?")
            params.append(_value(priority))

        rows = self.db.fetch_all(
            f"""SELECT e.*,
                  COUNT(t.id) AS task_count,
                  COALESCE(SUM(CASE WHEN t.status = 'done' THEN 1 ELSE 0 END), 0) AS done_count,
                  COALESCE(SUM(CASE WHEN t.status = 'blocked' THEN 1 ELSE 0 END), 0) AS blocked_count,
                  CASE WHEN COUNT(t.id) > 0
                    THEN ROUND(SUM(CASE WHEN t.status = 'done' THEN 1 ELSE 0 END) * 100.0 / COUNT(t.id), 1)
                    ELSE 0 END AS completion_pct
                FROM epics e
                LEFT JOIN tasks t ON t.epic_id = e.id
                WHERE {' AND '.join(where)}
                GROUP BY e.id
                ORDER BY e.sort_order, e.created_at, e.id""",
            params,
        )
        return _parse_records(EpicSummary, rows)

    def update_epic(self, epic_id: int, changes: Mapping[str, Any]) -> EpicModel:
        return self._update_record(EntityType.EPIC, epic_id, changes, lambda r: r.name)

    # ==================================================================
    # Subtasks
    # ==================================================================

    def create_subtasks(self, task_id: int, titles: Sequence[str]) -> list[SubtaskModel]:
        cleaned = [t.strip() for t in titles if t and t.strip()]
        if not cleaned:
            raise ValidationFailure("Provide at least one subtask title", entity_id=task_id)
        created = []
        with self.db.transaction():
            self.entities.get(EntityType.TASK, task_id)
            for title in cleaned:
                created.append(self._insert_subtask(task_id, {"title": title}))
        return created

    def update_subtask(self, subtask_id: int, changes: Mapping[str, Any]) -> SubtaskModel:
        return self._update_record(EntityType.SUBTASK, subtask_id, changes, lambda r: r.title)

    def delete_subtasks(self, subtask_ids: Sequence[int]) -> list[SubtaskModel]:
        """Delete several subtasks atomically; a missing id aborts the whole call."""
        deleted = []
        with self.db.transaction():
            for subtask_id in dict.fromkeys(subtask_ids):
                subtask: SubtaskModel = self.entities.delete(EntityType.SUBTASK, subtask_id)
                self.audit.record(
                    EntityType.SUBTASK,
                    subtask_id,
                    ActivityAction.DELETED,
                    summary=f"Subtask '{subtask.title}' deleted",
                )
                deleted.append(subtask)
        return deleted

    # ==================================================================
    # Overview
    # ==================================================================

    def dashboard(self, project_id: int | None = None) -> Dashboard | None:
        """
        Project overview in one call.

        Uses the first project when ``project_id`` is omitted; returns None if
        the database holds no projects at all.
        """
        if project_id is None:
            first = self.db.fetch_one("SELECT id FROM projects ORDER BY id LIMIT 1")
            if first is None:
                return None
            project_id = first["id"]

        project: ProjectModel = self.entities.get(EntityType.PROJECT, project_id)
        stats_row = self.db.fetch_one(
            """WITH task_stats AS (
                 SELECT
                   COUNT(*) AS total_tasks,
                   COALESCE(SUM(CASE WHEN status = 'done' THEN 1 ELSE 0 END), 0) AS tasks_done,
                   COALESCE(SUM(CASE WHEN status = 'in_progress' THEN 1 ELSE 0 END), 0) AS tasks_in_progress,
                   COALESCE(SUM(CASE WHEN status = 'blocked' THEN 1 ELSE 0 END), 0) AS tasks_blocked,
                   COALESCE(SUM(CASE WHEN status = 'todo' THEN 1 ELSE 0 END), 0) AS tasks_todo,
                   COALESCE(SUM(CASE WHEN status = 'review' THEN 1 ELSE 0 END), 0) AS tasks_review,
                   COALESCE(SUM(estimated_hours), 0) AS total_estimated_hours,
                   COALESCE(SUM(actual_hours), 0) AS total_actual_hours
                 FROM tasks WHERE epic_id IN (SELECT id FROM epics WHERE project_id = ?)
               )
               SELECT
                 (SELECT COUNT(*) FROM epics WHERE project_id = ?) AS total_epics,
                 ts.*,
                 CASE WHEN ts.total_tasks > 0
                   THEN ROUND(ts.tasks_done * 100.0 / ts.total_tasks, 1)
                   ELSE 0 END AS completion_pct
               FROM task_stats ts""",
            (project_id, project_id),
        )
        stats = ProjectStats.model_validate(dict(stats_row)) if stats_row else ProjectStats()

        blocked_rows = self.db.fetch_all(
            f"""SELECT t.*, e.name AS epic_name
                FROM tasks t
                JOIN epics e ON e.id = t.epic_id
                WHERE e.project_id = ? AND t.status = 'blocked'
                ORDER BY {_PRIORITY_ORDER_SQL}, t.id""",
            (project_id,),
        )
        blocked = [
            BlockedTaskInfo(
                task=_parse_record(TaskModel, row),
                epic_name=row["epic_name"],
                blockers=self.graph.unmet_predecessors(row["id"]),
            )
            for row in blocked_rows
        ]

        return Dashboard(
            project=project,
            stats=stats,
            epics=self.list_epics(project_id),
            blocked_tasks=blocked,
            recent_activity=self.audit.query(limit=10),
            recent_notes=self.list_notes(limit=5),
        )

    def init_tracker(self, name: str | None = None, description: str | None = None) -> tuple[ProjectModel | None, bool]:
        """
        Return the existing first project, or create one named ``name``.

        Returns:
            Tuple of (project or None if the database is empty and no name was given, created)
        """
        existing = self.db.fetch_one("SELECT * FROM projects ORDER BY id LIMIT 1")
        if existing is not None:
            return _parse_record(ProjectModel, existing), False
        if not name:
            return None, False
        return self.create_project({"name": name, "description": description}), True

    # ==================================================================
    # Notes
    # ==================================================================

    def save_note(self, fields: Mapping[str, Any], note_id: int | None = None) -> NoteModel:
        """
        Create a note, or update note ``note_id`` when it is given.

        A note may be linked to one project, epic or task; the link needs both
        ``related_entity_type`` and ``related_entity_id``, and the entity must exist.

        Raises:
            NotFoundError: the note or the linked entity does not exist
            ValidationFailure: missing title/content, a half-specified link, or nothing to update
        """
        values = _clean(fields)
        with self.db.transaction():
            if note_id is None:
                if not values.get("title") or not values.get("content"):
                    raise ValidationFailure("Note title and content are required")
                self._check_note_link(values.get("related_entity_type"), values.get("related_entity_id"))
                note: NoteModel = self.entities.insert(EntityType.NOTE, values)
                self.audit.record(
                    EntityType.NOTE, note.id, ActivityAction.CREATED, summary=f"Note '{note.title}' created"
                )
                return note

            old: NoteModel = self.entities.get(EntityType.NOTE, note_id)
            if not values:
                raise ValidationFailure("No fields to update", entity_id=note_id)
            if "related_entity_type" in values or "related_entity_id" in values:
                self._check_note_link(values.get("related_entity_type"), values.get("related_entity_id"))
            note = self.entities.apply(EntityType.NOTE, note_id, values)
            if not self.audit.diff_and_record(EntityType.NOTE, note_id, note.title, old, note):
                self.audit.record(
                    EntityType.NOTE, note_id, ActivityAction.UPDATED, summary=f"Note '{note.title}' updated"
                )
        return note

    def list_notes(
        self,
        note_type: str | None = None,
        related_entity_type: str | None = None,
        related_entity_id: int | None = None,
        tag: str | None = None,
        limit: int | None = 30,
    ) -> list[NoteModel]:
        """Notes matching every given filter, newest first. ``limit=None`` returns all of them."""
        where: list[str] = []
        params: list[Any] = []

        if note_type:
            where.append("note_type = ?")
            params.append(_value(note_type))
        if related_entity_type:
            where.append("related_entity_type = ?")
            params.append(_value(related_entity_type))
        if related_entity_id is not None:
            where.append("related_entity_id = ?")
            params.append(related_entity_id)
        if tag:
            where.append("EXISTS (SELECT 1 FROM json_each(notes.tags) WHERE json_each.value = ?)")
            params.append(tag)

        where_str = f"WHERE {' AND '.join(where)}" if where else ""
        limit_str = ""
        if limit is not None:
            limit_str = "LIMIT ?"
            params.append(limit)
        rows = self.db.fetch_all(
            f"SELECT * FROM notes {where_str} ORDER BY created_at DESC, id DESC {limit_str}",
            params,
        )
        return _parse_records(NoteModel, rows)

    def search_notes(self, query: str, note_type: str | None = None, limit: int = 20) -> list[NoteModel]:
        """Notes whose title or content contains ``query`` (case-insensitive), newest first."""
        if not query or not query.strip():
            raise ValidationFailure("Search query cannot be empty")
        pattern = _like_pattern(query)
        where = ["(title LIKE ? ESCAPE '\\' OR content LIKE ? ESCAPE '\\')"]
        params: list[Any] = [pattern, pattern]
        if note_type:
            where.append("note_type = ?")
            params.append(_value(note_type))
        params.append(limit)
        rows = self.db.fetch_all(
            f"SELECT * FROM notes WHERE {' AND '.join(where)} ORDER BY created_at DESC, id DESC LIMIT ?",
            params,
        )
        return _parse_records(NoteModel, rows)

    def delete_note(self, note_id: int) -> NoteModel:
        with self.db.transaction():
            note: NoteModel = self.entities.delete(EntityType.NOTE, note_id)
            self.audit.record(EntityType.NOTE, note_id, ActivityAction.DELETED, summary=f"Note '{note.title}' deleted")
        return note

    def _check_note_link(self, entity_type: Any, entity_id: int | None) -> None:
        if (entity_type is None) != (entity_id is None):
            raise ValidationFailure("related_entity_type and related_entity_id must be given together")
        if entity_type is not None:
            kind = LinkableType(_value(entity_type))
            self.entities.get(EntityType(kind.value), entity_id)

    # ==================================================================
    # Comments
    # ==================================================================

    def add_comment(self, task_id: int, content: str, author: str | None = None) -> CommentModel:
        text = (content or "").strip()
        if not text:
            raise ValidationFailure("Comment content cannot be empty", entity_id=task_id)
        with self.db.transaction():
            task: TaskModel = self.entities.get(EntityType.TASK, task_id)
            comment: CommentModel = self.entities.insert(
                EntityType.COMMENT,
                {"task_id": task_id, "content": text, "author": author or None},
            )
            by = f" by {author}" if author else ""
            self.audit.record(
                EntityType.COMMENT,
                comment.id,
                ActivityAction.CREATED,
                summary=f"Comment added to task '{task.title}'{by}",
            )
        return comment

    def list_comments(self, task_id: int) -> list[CommentModel]:
        """The comment thread of a task, oldest first."""
        self.entities.get(EntityType.TASK, task_id)
        rows = self.db.fetch_all(
            "SELECT * FROM comments WHERE task_id = ? ORDER BY created_at, id",
            (task_id,),
        )
        return _parse_records(CommentModel, rows)

    # ==================================================================
    # Templates
    # ==================================================================

    def create_template(
        self,
        name: str,
        tasks: Sequence[TemplateTask | Mapping[str, Any]],
        description: str | None = None,
    ) -> TemplateModel:
        """
        Store a named set of task definitions.

        Raises:
            ValidationFailure: empty name, no tasks, an invalid task definition, or a duplicate name
        """
        name = (name or "").strip()
        if not name:
            raise ValidationFailure("Template name is required")
        if not tasks:
            raise ValidationFailure("A template needs at least one task")
        try:
            definitions = [TemplateTask.model_validate(t) for t in tasks]
        except ValidationError as e:
            raise ValidationFailure(f"Invalid template task: {_first_error(e)}") from e

        with self.db.transaction():
            if self.db.fetch_one("SELECT id FROM templates WHERE name = ?", (name,)) is not None:
                raise ValidationFailure(f"Template '{name}' already exists")
            template: TemplateModel = self.entities.insert(
                EntityType.TEMPLATE,
                {
                    "name": name,
                    "description": description or None,
                    "tasks": [d.model_dump(mode="json") for d in definitions],
                },
            )
            self.audit.record(
                EntityType.TEMPLATE,
                template.id,
                ActivityAction.CREATED,
                summary=f"Template '{name}' created with {template.task_count} task(s)",
            )
        return template

    def list_templates(self) -> list[TemplateModel]:
        rows = self.db.fetch_all("SELECT * FROM templates ORDER BY created_at DESC, id DESC")
        return _parse_records(TemplateModel, rows)

    def apply_template(
        self,
        template_id: int,
        epic_id: int,
        variables: Mapping[str, str] | None = None,
    ) -> TemplateApplyResult:
        """
        Create one task in ``epic_id`` per template task, as one atomic unit.

        ``{name}`` placeholders in titles and descriptions are replaced from
        ``variables``; placeholders without a value are left as they are.
        """
        values = dict(variables or {})
        with self.db.transaction():
            template: TemplateModel = self.entities.get(EntityType.TEMPLATE, template_id)
            epic: EpicModel = self.entities.get(EntityType.EPIC, epic_id)
            tasks = []
            for definition in template.tasks:
                fields = definition.model_dump(exclude_none=True)
                fields["title"] = _substitute(definition.title, values)
                if definition.description:
                    fields["description"] = _substitute(definition.description, values)
                tasks.append(self.create_task(epic_id, fields))

        logger.info("Applied template %s to epic %s: %d task(s)", template_id, epic_id, len(tasks))
        return TemplateApplyResult(template=template, epic=epic, tasks=tasks)

    def delete_template(self, template_id: int) -> TemplateModel:
        with self.db.transaction():
            template: TemplateModel = self.entities.delete(EntityType.TEMPLATE, template_id)
            self.audit.record(
                EntityType.TEMPLATE,
                template_id,
                ActivityAction.DELETED,
                summary=f"Template '{template.name}' deleted",
            )
        return template

    # ==================================================================
    # Search
    # ==================================================================

    def search(
        self,
        query: str,
        entity_types: Iterable[str] | None = None,
        limit: int = 20,
    ) -> SearchResults:
        """
        Case-insensitive keyword search over names, titles, descriptions and note content.

        ``limit`` applies to each entity type separately.
        """
        if not query or not query.strip():
            raise ValidationFailure("Search query cannot be empty")
        kinds = {SearchableType(_value(t)) for t in entity_types} if entity_types else set(SearchableType)
        pattern = _like_pattern(query)
        results = SearchResults(query=query)

        if SearchableType.PROJECT in kinds:
            rows = self.db.fetch_all(
                """SELECT * FROM projects
                   WHERE name LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\'
                   ORDER BY id LIMIT ?""",
                (pattern, pattern, limit),
            )
            results.projects = _parse_records(ProjectModel, rows)
        if SearchableType.EPIC in kinds:
            rows = self.db.fetch_all(
                """SELECT * FROM epics
                   WHERE name LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\'
                   ORDER BY id LIMIT ?""",
                (pattern, pattern, limit),
            )
            results.epics = _parse_records(EpicModel, rows)
        if SearchableType.TASK in kinds:
            rows = self.db.fetch_all(
                """SELECT t.*, e.name AS epic_name
                   FROM tasks t
                   JOIN epics e ON e.id = t.epic_id
                   WHERE t.title LIKE ? ESCAPE '\\' OR t.description LIKE ? ESCAPE '\\'
                   ORDER BY t.id LIMIT ?""",
                (pattern, pattern, limit),
            )
            results.tasks = _parse_records(TaskDetail, rows)
        if SearchableType.NOTE in kinds:
            results.notes = self.search_notes(query, limit=limit)

        return results

    # ==================================================================
    # Export and import
    # ==================================================================

    def export_project(self, project_id: int | None = None) -> ProjectExport:
        """
        A whole project as one nested document.

        Includes epics, tasks (with their dependency edges), subtasks, the
        notes linked to any of them, and every unlinked note.
        """
        if project_id is None:
            first = self.db.fetch_one("SELECT id FROM projects ORDER BY id LIMIT 1")
            if first is None:
                raise ValidationFailure("No projects found. Create a project first.")
            project_id = first["id"]

        project: ProjectModel = self.entities.get(EntityType.PROJECT, project_id)
        epic_rows = self.db.fetch_all(
            "SELECT * FROM epics WHERE project_id = ? ORDER BY sort_order, created_at, id",
            (project_id,),
        )

        epics = []
        task_ids: list[int] = []
        for epic in _parse_records(EpicModel, epic_rows):
            task_rows = self.db.fetch_all(
                "SELECT * FROM tasks WHERE epic_id = ? ORDER BY sort_order, created_at, id",
                (epic.id,),
            )
            tasks = []
            for task in _parse_records(TaskModel, task_rows):
                task_ids.append(task.id)
                subtask_rows = self.db.fetch_all(
                    "SELECT * FROM subtasks WHERE task_id = ? ORDER BY sort_order, created_at, id",
                    (task.id,),
                )
                tasks.append(
                    ExportedTask(
                        original_id=task.id,
                        depends_on=sorted(self.graph.predecessors_of(task.id)),
                        subtasks=[
                            ExportedSubtask.model_validate(s.model_dump())
                            for s in _parse_records(SubtaskModel, subtask_rows)
                        ],
                        **task.model_dump(exclude={"id", "epic_id", "created_at", "updated_at"}),
                    )
                )
            epics.append(
                ExportedEpic(
                    original_id=epic.id,
                    tasks=tasks,
                    **epic.model_dump(exclude={"id", "project_id", "created_at", "updated_at"}),
                )
            )

        linked = {
            LinkableType.PROJECT.value: {project_id},
            LinkableType.EPIC.value: {e.original_id for e in epics},
            LinkableType.TASK.value: set(task_ids),
        }
        notes = [
            ExportedNote(original_related_entity_id=note.related_entity_id, **note.model_dump())
            for note in self.list_notes(limit=None)[::-1]
            if note.related_entity_type is None or note.related_entity_id in linked[note.related_entity_type]
        ]

        return ProjectExport(
            format_version=EXPORT_FORMAT_VERSION,
            exported_at=self.db.now(),
            project=ExportedProject(
                epics=epics,
                **project.model_dump(exclude={"id", "created_at", "updated_at"}),
            ),
            notes=notes,
        )

    def import_project(self, data: ProjectExport | Mapping[str, Any]) -> ImportResult:
        """
        Recreate an exported project, with new ids, as one atomic unit.

        Dependency edges and note links are remapped to the new ids; those
        that point outside the document are dropped. Imported tasks are
        reevaluated against their prerequisites once every edge is in place.

        Raises:
            ValidationFailure: unsupported format version or malformed document
        """
        if isinstance(data, ProjectExport):
            doc = data
        else:
            version = data.get("format_version")
            if version != EXPORT_FORMAT_VERSION:
                raise ValidationFailure(
                    f"Unsupported format version: {version!r}. Expected '{EXPORT_FORMAT_VERSION}'."
                )
            try:
                doc = ProjectExport.model_validate(data)
            except ValidationError as e:
                raise ValidationFailure(f"Invalid import data: {_first_error(e)}") from e

        counts = ImportCounts()
        epic_ids: dict[int, int] = {}
        task_ids: dict[int, int] = {}
        edges: list[tuple[int, list[int]]] = []

        with self.db.transaction():
            project = self.create_project(doc.project.model_dump(exclude={"epics"}))

            for epic_data in doc.project.epics:
                epic = self.create_epic(project.id, epic_data.model_dump(exclude={"original_id", "tasks"}))
                counts.epics += 1
                if epic_data.original_id is not None:
                    epic_ids[epic_data.original_id] = epic.id

                for task_data in epic_data.tasks:
                    task = self.create_task(
                        epic.id,
                        task_data.model_dump(exclude={"original_id", "depends_on", "subtasks"}),
                    )
                    counts.tasks += 1
                    if task_data.original_id is not None:
                        task_ids[task_data.original_id] = task.id
                    if task_data.depends_on:
                        edges.append((task.id, task_data.depends_on))

                    for subtask_data in task_data.subtasks:
                        self._insert_subtask(task.id, subtask_data.model_dump())
                        counts.subtasks += 1

            for task_id, originals in edges:
                predecessors = [task_ids[o] for o in originals if o in task_ids]
                if not predecessors:
                    continue
                counts.dependencies += len(self.graph.set_predecessors(task_id, predecessors))
                self.reevaluation.reevaluate(task_id)

            remap = {
                LinkableType.PROJECT.value: lambda _original: project.id,
                LinkableType.EPIC.value: epic_ids.get,
                LinkableType.TASK.value: task_ids.get,
            }
            for note_data in doc.notes:
                fields = note_data.model_dump(exclude={"related_entity_type", "original_related_entity_id"})
                original = note_data.original_related_entity_id
                if note_data.related_entity_type is not None and original is not None:
                    new_id = remap[note_data.related_entity_type](original)
                    if new_id is not None:
                        fields.update(related_entity_type=note_data.related_entity_type, related_entity_id=new_id)
                self.save_note(fields)
                counts.notes += 1

        logger.info("Imported project %s as #%s: %s", project.name, project.id, counts.model_dump())
        return ImportResult(project_id=project.id, project_name=project.name, counts=counts)

    # ==================================================================
    # Helpers
    # ==================================================================

    def _insert_subtask(self, task_id: int, values: Mapping[str, Any]) -> SubtaskModel:
        subtask: SubtaskModel = self.entities.insert(EntityType.SUBTASK, {"task_id": task_id, **values})
        self.audit.record(
            EntityType.SUBTASK,
            subtask.id,
            ActivityAction.CREATED,
            summary=f"Subtask '{subtask.title}' created",
        )
        return subtask

    def _update_record(
        self,
        entity_type: EntityType,
        entity_id: int,
        changes: Mapping[str, Any],
        display: Callable[[Any], str],
    ) -> Any:
        fields = _clean(changes)
        if not fields:
            raise ValidationFailure("No fields to update", entity_id=entity_id)
        with self.db.transaction():
            old = self.entities.get(entity_type, entity_id)
            new = self.entities.apply(entity_type, entity_id, fields)
            self.audit.diff_and_record(entity_type, entity_id, display(new), old, new)
        return new

