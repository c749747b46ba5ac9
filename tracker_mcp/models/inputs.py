"""Input models for Tracker MCP tools."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tracker_mcp.enums import (
    ActivityAction,
    EntityType,
    EpicStatus,
    LinkableType,
    NoteType,
    Priority,
    ProjectStatus,
    ResponseFormat,
    SearchableType,
    SubtaskStatus,
    TaskStatus,
)
from tracker_mcp.models.task import MetadataValue, SourceRef
from tracker_mcp.models.templates import TemplateTask

DATE_PATTERN = r"^(\d{4}-\d{2}-\d{2})?$"


def _normalize_tags(v: list[str] | None) -> list[str] | None:
    """Strip tags, drop blanks and duplicates, keep first-seen order."""
    if v is None:
        return None
    return list(dict.fromkeys(t.strip() for t in v if t.strip()))


def _response_format() -> Any:
    return Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown' for human-readable, 'concise' for compact, or 'json'",
    )


# ============================================================================
# Task Tool Input Models
# ============================================================================


class CreateTaskInput(BaseModel):
    """Input model for creating a task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    epic_id: int = Field(..., description="Parent epic ID", ge=1)
    title: str = Field(..., description="Task title (required)", min_length=1, max_length=500)
    description: str | None = Field(default=None, description="Task description")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Initial status")
    priority: Priority = Field(default=Priority.MEDIUM, description="Priority: low, medium, high, critical")
    assigned_to: str | None = Field(default=None, description="Assignee name")
    estimated_hours: float | None = Field(default=None, description="Estimated effort in hours", ge=0)
    due_date: str | None = Field(default=None, description="Due date (YYYY-MM-DD)", pattern=DATE_PATTERN)
    source_ref: SourceRef | None = Field(default=None, description="Link to a source code location")
    tags: list[str] | None = Field(default=None, description="Tags to apply", max_length=20)
    metadata: dict[str, MetadataValue] | None = Field(
        default=None, description="Key-value metadata (string, number, boolean, or list of strings)"
    )
    extra: dict[str, Any] | None = Field(default=None, description="Opaque JSON stored with the task as-is")
    depends_on: list[int] | None = Field(
        default=None, description="IDs of tasks that must be done before this one can start", max_length=100
    )
    response_format: ResponseFormat = _response_format()

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tags(v)


class ListTasksInput(BaseModel):
    """Input model for listing tasks."""

    model_config = ConfigDict(str_strip_whitespace=True)

    epic_id: int | None = Field(default=None, description="Filter by epic (omit for all tasks)")
    status: TaskStatus | None = Field(default=None, description="Filter by status")
    priority: Priority | None = Field(default=None, description="Filter by priority")
    assigned_to: str | None = Field(default=None, description="Filter by assignee")
    tag: str | None = Field(default=None, description="Filter by tag")
    limit: int | None = Field(
        default=None, description="Maximum number of tasks to return (defaults to the configured limit)", ge=1, le=500
    )
    response_format: ResponseFormat = _response_format()


class GetTaskInput(BaseModel):
    """Input model for getting a single task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: int = Field(..., description="Task ID to retrieve", ge=1)
    response_format: ResponseFormat = _response_format()


class UpdateTaskInput(BaseModel):
    """Input model for updating a task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: int = Field(..., description="Task ID to update", ge=1)
    title: str | None = Field(default=None, description="New title", min_length=1, max_length=500)
    description: str | None = Field(default=None, description="New description (empty string to clear)")
    status: TaskStatus | None = Field(default=None, description="New status")
    priority: Priority | None = Field(default=None, description="New priority")
    assigned_to: str | None = Field(default=None, description="New assignee (empty string to clear)")
    estimated_hours: float | None = Field(default=None, description="Estimated effort in hours", ge=0)
    actual_hours: float | None = Field(
        default=None, description="Actual effort in hours; when omitted on completion it is inferred", ge=0
    )
    due_date: str | None = Field(
        default=None, description="Due date YYYY-MM-DD (empty string to clear)", pattern=DATE_PATTERN
    )
    source_ref: SourceRef | None = Field(default=None, description="Link to a source code location")
    sort_order: int | None = Field(default=None, description="Position within the epic")
    tags: list[str] | None = Field(default=None, description="Replacement tag list", max_length=20)
    metadata: dict[str, MetadataValue] | None = Field(default=None, description="Replacement metadata map")
    extra: dict[str, Any] | None = Field(default=None, description="Replacement opaque JSON blob")
    depends_on: list[int] | None = Field(
        default=None,
        description="Complete new list of prerequisite task IDs ([] clears; omit to keep the current list)",
        max_length=100,
    )
    response_format: ResponseFormat = _response_format()

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tags(v)


class BatchUpdateTasksInput(BaseModel):
    """Input model for updating several tasks at once."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_ids: list[int] = Field(..., description="Task IDs to update", min_length=1, max_length=100)
    status: TaskStatus | None = Field(default=None, description="New status for every task")
    priority: Priority | None = Field(default=None, description="New priority for every task")
    assigned_to: str | None = Field(default=None, description="New assignee for every task")
    response_format: ResponseFormat = _response_format()


# ============================================================================
# Activity Tool Input Models
# ============================================================================


class ActivityLogInput(BaseModel):
    """Input model for browsing the activity log."""

    model_config = ConfigDict(str_strip_whitespace=True)

    entity_type: EntityType | None = Field(default=None, description="Filter by entity type")
    entity_id: int | None = Field(default=None, description="Filter by a specific entity")
    action: ActivityAction | None = Field(default=None, description="Filter by action type")
    since: str | None = Field(default=None, description="ISO 8601 datetime; only activity after this time")
    limit: int | None = Field(
        default=None, description="Maximum number of entries (defaults to the configured limit)", ge=1, le=500
    )
    response_format: ResponseFormat = _response_format()


class ActivitySinceInput(BaseModel):
    """Input model for the session diff: everything after a point in time."""

    model_config = ConfigDict(str_strip_whitespace=True)

    since: str = Field(..., description="ISO 8601 datetime, e.g. the end of your last session", min_length=1)
    response_format: ResponseFormat = _response_format()


# ============================================================================
# Project / Epic Tool Input Models
# ============================================================================


class CreateProjectInput(BaseModel):
    """Input model for creating a project."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., description="Project name", min_length=1, max_length=200)
    description: str | None = Field(default=None, description="Project description")
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE, description="Initial status")
    tags: list[str] | None = Field(default=None, description="Tags to apply", max_length=20)
    metadata: dict[str, MetadataValue] | None = Field(default=None, description="Key-value metadata")

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tags(v)


class ListProjectsInput(BaseModel):
    """Input model for listing projects."""

    model_config = ConfigDict(str_strip_whitespace=True)

    status: ProjectStatus | None = Field(default=None, description="Filter by status")
    response_format: ResponseFormat = _response_format()


class UpdateProjectInput(BaseModel):
    """Input model for updating a project."""

    model_config = ConfigDict(str_strip_whitespace=True)

    project_id: int = Field(..., description="Project ID", ge=1)
    name: str | None = Field(default=None, description="New name", min_length=1, max_length=200)
    description: str | None = Field(default=None, description="New description (empty string to clear)")
    status: ProjectStatus | None = Field(default=None, description="New status")
    tags: list[str] | None = Field(default=None, description="Replacement tag list", max_length=20)
    metadata: dict[str, MetadataValue] | None = Field(default=None, description="Replacement metadata map")

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tags(v)


class CreateEpicInput(BaseModel):
    """Input model for creating an epic."""

    model_config = ConfigDict(str_strip_whitespace=True)

    project_id: int = Field(..., description="Parent project ID", ge=1)
    name: str = Field(..., description="Epic name", min_length=1, max_length=200)
    description: str | None = Field(default=None, description="Epic description")
    status: EpicStatus = Field(default=EpicStatus.PLANNED, description="Initial status")
    priority: Priority = Field(default=Priority.MEDIUM, description="Priority")
    tags: list[str] | None = Field(default=None, description="Tags to apply", max_length=20)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tags(v)


class ListEpicsInput(BaseModel):
    """Input model for listing the epics of a project."""

    model_config = ConfigDict(str_strip_whitespace=True)

    project_id: int = Field(..., description="Project ID", ge=1)
    status: EpicStatus | None = Field(default=None, description="Filter by status")
    priority: Priority | None = Field(default=None, description="Filter by priority")
    response_format: ResponseFormat = _response_format()


class UpdateEpicInput(BaseModel):
    """Input model for updating an epic."""

    model_config = ConfigDict(str_strip_whitespace=True)

    epic_id: int = Field(..., description="Epic ID", ge=1)
    name: str | None = Field(default=None, description="New name", min_length=1, max_length=200)
    description: str | None = Field(default=None, description="New description (empty string to clear)")
    status: EpicStatus | None = Field(default=None, description="New status ('cancelled' to soft-delete)")
    priority: Priority | None = Field(default=None, description="New priority")
    sort_order: int | None = Field(default=None, description="Position within the project")
    tags: list[str] | None = Field(default=None, description="Replacement tag list", max_length=20)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tags(v)


# ============================================================================
# Subtask Tool Input Models
# ============================================================================


class CreateSubtasksInput(BaseModel):
    """Input model for adding subtasks to a task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: int = Field(..., description="Parent task ID", ge=1)
    titles: list[str] = Field(..., description="One title per subtask", min_length=1, max_length=50)


class UpdateSubtaskInput(BaseModel):
    """Input model for updating a subtask."""

    model_config = ConfigDict(str_strip_whitespace=True)

    subtask_id: int = Field(..., description="Subtask ID", ge=1)
    title: str | None = Field(default=None, description="New title", min_length=1, max_length=500)
    status: SubtaskStatus | None = Field(default=None, description="New status")
    sort_order: int | None = Field(default=None, description="Position within the task")


class DeleteSubtasksInput(BaseModel):
    """Input model for deleting subtasks."""

    model_config = ConfigDict(str_strip_whitespace=True)

    subtask_ids: list[int] = Field(..., description="Subtask IDs to delete", min_length=1, max_length=50)


# ============================================================================
# Note / Comment Tool Input Models
# ============================================================================


class SaveNoteInput(BaseModel):
    """Input model for creating or updating a note."""

    model_config = ConfigDict(str_strip_whitespace=True)

    note_id: int | None = Field(default=None, description="Note ID to update (omit to create a new note)", ge=1)
    title: str | None = Field(default=None, description="Note title (required for a new note)", max_length=500)
    content: str | None = Field(default=None, description="Full note content, markdown supported")
    note_type: NoteType | None = Field(
        default=None,
        description="general, decision, context, meeting, technical, blocker, progress or release",
    )
    related_entity_type: LinkableType | None = Field(
        default=None, description="Link the note to a project, epic or task"
    )
    related_entity_id: int | None = Field(default=None, description="ID of the linked entity", ge=1)
    tags: list[str] | None = Field(default=None, description="Tags to apply", max_length=20)
    metadata: dict[str, MetadataValue] | None = Field(default=None, description="Key-value metadata")
    response_format: ResponseFormat = _response_format()

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_tags(v)


class ListNotesInput(BaseModel):
    """Input model for listing notes."""

    model_config = ConfigDict(str_strip_whitespace=True)

    note_type: NoteType | None = Field(default=None, description="Filter by note type")
    related_entity_type: LinkableType | None = Field(default=None, description="Filter by linked entity type")
    related_entity_id: int | None = Field(default=None, description="Filter by linked entity ID")
    tag: str | None = Field(default=None, description="Filter by tag")
    limit: int = Field(default=30, description="Maximum number of notes", ge=1, le=500)
    response_format: ResponseFormat = _response_format()


class SearchNotesInput(BaseModel):
    """Input model for keyword search over notes."""

    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(..., description="Keywords to look for in titles and content", min_length=1)
    note_type: NoteType | None = Field(default=None, description="Only search notes of this type")
    limit: int = Field(default=20, description="Maximum number of notes", ge=1, le=500)
    response_format: ResponseFormat = _response_format()


class DeleteNoteInput(BaseModel):
    """Input model for deleting a note."""

    model_config = ConfigDict(str_strip_whitespace=True)

    note_id: int = Field(..., description="Note ID", ge=1)


class AddCommentInput(BaseModel):
    """Input model for commenting on a task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: int = Field(..., description="Task ID to comment on", ge=1)
    content: str = Field(..., description="Comment text", min_length=1)
    author: str | None = Field(default=None, description="Author name")


class ListCommentsInput(BaseModel):
    """Input model for reading a task's comment thread."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: int = Field(..., description="Task ID", ge=1)
    response_format: ResponseFormat = _response_format()


# ============================================================================
# Template Tool Input Models
# ============================================================================


class CreateTemplateInput(BaseModel):
    """Input model for creating a task template."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., description="Template name (must be unique)", min_length=1, max_length=200)
    description: str | None = Field(default=None, description="What the template is for")
    tasks: list[TemplateTask] = Field(
        ...,
        description="Task definitions; titles and descriptions may use {variable} placeholders",
        min_length=1,
        max_length=100,
    )


class ListTemplatesInput(BaseModel):
    """Input model for listing templates."""

    model_config = ConfigDict(str_strip_whitespace=True)

    response_format: ResponseFormat = _response_format()


class ApplyTemplateInput(BaseModel):
    """Input model for instantiating a template into an epic."""

    model_config = ConfigDict(str_strip_whitespace=True)

    template_id: int = Field(..., description="Template ID to apply", ge=1)
    epic_id: int = Field(..., description="Epic to create the tasks in", ge=1)
    variables: dict[str, str] | None = Field(
        default=None, description='Values for {variable} placeholders, e.g. {"feature": "auth"}'
    )
    response_format: ResponseFormat = _response_format()


class DeleteTemplateInput(BaseModel):
    """Input model for deleting a template."""

    model_config = ConfigDict(str_strip_whitespace=True)

    template_id: int = Field(..., description="Template ID", ge=1)


# ============================================================================
# Search / Export Tool Input Models
# ============================================================================


class SearchInput(BaseModel):
    """Input model for the global keyword search."""

    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(..., description="Keywords to search for", min_length=1)
    entity_types: list[SearchableType] | None = Field(
        default=None, description="Limit the search to these entity types (omit for all)"
    )
    limit: int = Field(default=20, description="Maximum results per entity type", ge=1, le=200)
    response_format: ResponseFormat = _response_format()


class ExportInput(BaseModel):
    """Input model for exporting a project."""

    model_config = ConfigDict(str_strip_whitespace=True)

    project_id: int | None = Field(default=None, description="Project ID to export (omit for the first project)")


class ImportInput(BaseModel):
    """Input model for importing a project document."""

    data: dict[str, Any] = Field(..., description="Project document as produced by tracker_export")


# ============================================================================
# Overview Tool Input Models
# ============================================================================


class DashboardInput(BaseModel):
    """Input model for the project dashboard."""

    model_config = ConfigDict(str_strip_whitespace=True)

    project_id: int | None = Field(default=None, description="Project ID (omit if only one project exists)")
    response_format: ResponseFormat = _response_format()


class InitTrackerInput(BaseModel):
    """Input model for initialising the tracker."""

    model_config = ConfigDict(str_strip_whitespace=True)

    project_name: str | None = Field(default=None, description="Name for a new project (only used if DB is empty)")
    project_description: str | None = Field(default=None, description="Description for the new project")
