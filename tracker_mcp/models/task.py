"""Record models for the project → epic → task → subtask hierarchy, notes and comments.

Records are immutable snapshots: the store returns a fresh instance after
every write rather than mutating a shared object.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from tracker_mcp.enums import EpicStatus, LinkableType, NoteType, Priority, ProjectStatus, SubtaskStatus, TaskStatus

# Closed set of scalar kinds allowed in metadata maps.
MetadataValue = Union[str, int, float, bool, list[str]]


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)


class SourceRef(BaseModel):
    """Link from a task to a location in source code."""

    model_config = ConfigDict(frozen=True)

    file: str = Field(..., min_length=1)
    line_start: int | None = Field(default=None, ge=1)
    line_end: int | None = Field(default=None, ge=1)
    repo: str | None = None
    commit: str | None = None


class ProjectModel(_Record):
    """A top-level project."""

    id: int
    name: str
    description: str | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class EpicModel(_Record):
    """A group of related tasks inside a project."""

    id: int
    project_id: int
    name: str
    description: str | None = None
    status: EpicStatus = EpicStatus.PLANNED
    priority: Priority = Priority.MEDIUM
    sort_order: int = 0
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class TaskModel(_Record):
    """The primary unit of work."""

    id: int
    epic_id: int
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    sort_order: int = 0
    assigned_to: str | None = None
    estimated_hours: float | None = None
    actual_hours: float | None = None
    due_date: str | None = None
    source_ref: SourceRef | None = None
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)
    # Opaque pass-through blob; stored and returned verbatim, never interpreted.
    extra: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class SubtaskModel(_Record):
    """A checklist item under a task."""

    id: int
    task_id: int
    title: str
    status: SubtaskStatus = SubtaskStatus.TODO
    sort_order: int = 0
    created_at: datetime
    updated_at: datetime


class NoteModel(_Record):
    """A free-form note, optionally linked to a project, epic or task."""

    id: int
    title: str
    content: str
    note_type: NoteType = NoteType.GENERAL
    related_entity_type: LinkableType | None = None
    related_entity_id: int | None = None
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class CommentModel(_Record):
    """One entry in a task's discussion thread."""

    id: int
    task_id: int
    author: str | None = None
    content: str
    created_at: datetime
    updated_at: datetime


class DependencyRef(_Record):
    """Lightweight reference to a task on the other end of a dependency edge."""

    id: int
    title: str
    status: TaskStatus


class TaskDetail(TaskModel):
    """A task together with its dependency neighbourhood, subtasks and linked notes."""

    epic_name: str | None = None
    predecessors: list[DependencyRef] = Field(default_factory=list)
    successors: list[DependencyRef] = Field(default_factory=list)
    unmet_predecessors: list[DependencyRef] = Field(default_factory=list)
    subtasks: list[SubtaskModel] = Field(default_factory=list)
    notes: list[NoteModel] = Field(default_factory=list)
