"""Export format for moving a whole project between tracker databases.

An export is a nested document: project > epics > tasks > subtasks, plus the
notes linked to any of them (and the unlinked ones). Epics and tasks carry
their id in the source database as ``original_id`` so that dependency edges
and note links can be remapped to the ids assigned on import.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from tracker_mcp.enums import (
    EpicStatus,
    LinkableType,
    NoteType,
    Priority,
    ProjectStatus,
    SubtaskStatus,
    TaskStatus,
)
from tracker_mcp.models.task import MetadataValue, SourceRef

EXPORT_FORMAT_VERSION = "1.0"


class _Exported(BaseModel):
    model_config = ConfigDict(use_enum_values=True, extra="ignore")


class ExportedSubtask(_Exported):
    title: str = Field(..., min_length=1)
    status: SubtaskStatus = SubtaskStatus.TODO
    sort_order: int = 0


class ExportedTask(_Exported):
    original_id: int | None = None
    title: str = Field(..., min_length=1)
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    sort_order: int = 0
    assigned_to: str | None = None
    estimated_hours: float | None = Field(default=None, ge=0)
    actual_hours: float | None = Field(default=None, ge=0)
    due_date: str | None = None
    source_ref: SourceRef | None = None
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)
    extra: dict[str, Any] = Field(default_factory=dict)
    depends_on: list[int] = Field(default_factory=list)  # original ids
    subtasks: list[ExportedSubtask] = Field(default_factory=list)


class ExportedEpic(_Exported):
    original_id: int | None = None
    name: str = Field(..., min_length=1)
    description: str | None = None
    status: EpicStatus = EpicStatus.PLANNED
    priority: Priority = Priority.MEDIUM
    sort_order: int = 0
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)
    tasks: list[ExportedTask] = Field(default_factory=list)


class ExportedProject(_Exported):
    name: str = Field(..., min_length=1)
    description: str | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)
    epics: list[ExportedEpic] = Field(default_factory=list)


class ExportedNote(_Exported):
    title: str = Field(..., min_length=1)
    content: str
    note_type: NoteType = NoteType.GENERAL
    related_entity_type: LinkableType | None = None
    original_related_entity_id: int | None = None
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)


class ProjectExport(_Exported):
    """A complete project document as produced by ``tracker_export``."""

    format_version: Literal["1.0"] = EXPORT_FORMAT_VERSION
    exported_at: datetime | None = None
    project: ExportedProject
    notes: list[ExportedNote] = Field(default_factory=list)


class ImportCounts(BaseModel):
    epics: int = 0
    tasks: int = 0
    subtasks: int = 0
    dependencies: int = 0
    notes: int = 0


class ImportResult(BaseModel):
    """Outcome of importing a project document."""

    project_id: int
    project_name: str
    counts: ImportCounts = Field(default_factory=ImportCounts)
