"""Output models for multi-step operations and reporting."""

from pydantic import BaseModel, Field

from tracker_mcp.models.activity import ActivityEntry
from tracker_mcp.models.task import DependencyRef, EpicModel, NoteModel, ProjectModel, TaskDetail, TaskModel
from tracker_mcp.models.templates import TemplateModel


class CascadeFailure(BaseModel):
    """A successor whose reevaluation could not be applied."""

    task_id: int
    kind: str
    message: str


class CascadeReport(BaseModel):
    """Outcome of re-deriving the direct successors of a completed task."""

    source_id: int
    changed: list[TaskModel] = Field(default_factory=list)
    skipped: list[int] = Field(default_factory=list)  # vanished before they could be updated
    failed: list[CascadeFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class TaskUpdateResult(BaseModel):
    """Result of a single task update."""

    task: TaskModel
    cascade: CascadeReport | None = None


class BatchUpdateResult(BaseModel):
    """Result of a batch update: the new snapshots and one report per completion."""

    tasks: list[TaskModel]
    cascades: list[CascadeReport] = Field(default_factory=list)

    @property
    def updated(self) -> int:
        return len(self.tasks)


class EpicSummary(EpicModel):
    """An epic with its task counts."""

    task_count: int = 0
    done_count: int = 0
    blocked_count: int = 0
    completion_pct: float = 0.0


class ProjectStats(BaseModel):
    """Aggregate task statistics for one project."""

    total_epics: int = 0
    total_tasks: int = 0
    tasks_done: int = 0
    tasks_in_progress: int = 0
    tasks_blocked: int = 0
    tasks_todo: int = 0
    tasks_review: int = 0
    total_estimated_hours: float = 0.0
    total_actual_hours: float = 0.0
    completion_pct: float = 0.0


class BlockedTaskInfo(BaseModel):
    """A blocked task and the predecessors it is waiting on."""

    task: TaskModel
    epic_name: str | None = None
    blockers: list[DependencyRef] = Field(default_factory=list)


class Dashboard(BaseModel):
    """Single-call overview of a project."""

    project: ProjectModel
    stats: ProjectStats
    epics: list[EpicSummary] = Field(default_factory=list)
    blocked_tasks: list[BlockedTaskInfo] = Field(default_factory=list)
    recent_activity: list[ActivityEntry] = Field(default_factory=list)
    recent_notes: list[NoteModel] = Field(default_factory=list)


class TemplateApplyResult(BaseModel):
    """Tasks created in an epic from a template."""

    template: TemplateModel
    epic: EpicModel
    tasks: list[TaskModel] = Field(default_factory=list)


class SearchResults(BaseModel):
    """Keyword matches grouped by entity type; None for types not searched."""

    query: str
    projects: list[ProjectModel] | None = None
    epics: list[EpicModel] | None = None
    tasks: list[TaskDetail] | None = None
    notes: list[NoteModel] | None = None

    @property
    def total(self) -> int:
        return sum(len(group or []) for group in (self.projects, self.epics, self.tasks, self.notes))
