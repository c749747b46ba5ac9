"""Pydantic models for Tracker MCP."""

from tracker_mcp.models.activity import ActivityEntry
from tracker_mcp.models.inputs import (
    ActivityLogInput,
    ActivitySinceInput,
    AddCommentInput,
    ApplyTemplateInput,
    BatchUpdateTasksInput,
    CreateEpicInput,
    CreateProjectInput,
    CreateSubtasksInput,
    CreateTaskInput,
    CreateTemplateInput,
    DashboardInput,
    DeleteNoteInput,
    DeleteSubtasksInput,
    DeleteTemplateInput,
    ExportInput,
    GetTaskInput,
    ImportInput,
    InitTrackerInput,
    ListCommentsInput,
    ListEpicsInput,
    ListNotesInput,
    ListProjectsInput,
    ListTasksInput,
    ListTemplatesInput,
    SaveNoteInput,
    SearchInput,
    SearchNotesInput,
    UpdateEpicInput,
    UpdateProjectInput,
    UpdateSubtaskInput,
    UpdateTaskInput,
)
from tracker_mcp.models.results import (
    BatchUpdateResult,
    BlockedTaskInfo,
    CascadeFailure,
    CascadeReport,
    Dashboard,
    EpicSummary,
    ProjectStats,
    SearchResults,
    TaskUpdateResult,
    TemplateApplyResult,
)
from tracker_mcp.models.task import (
    CommentModel,
    DependencyRef,
    EpicModel,
    MetadataValue,
    NoteModel,
    ProjectModel,
    SourceRef,
    SubtaskModel,
    TaskDetail,
    TaskModel,
)
from tracker_mcp.models.templates import TemplateModel, TemplateTask
from tracker_mcp.models.transfer import ImportCounts, ImportResult, ProjectExport

__all__ = [
    # Record models
    "ProjectModel",
    "EpicModel",
    "TaskModel",
    "TaskDetail",
    "SubtaskModel",
    "NoteModel",
    "CommentModel",
    "TemplateModel",
    "TemplateTask",
    "SourceRef",
    "DependencyRef",
    "MetadataValue",
    "ActivityEntry",
    # Result models
    "TaskUpdateResult",
    "BatchUpdateResult",
    "CascadeReport",
    "CascadeFailure",
    "Dashboard",
    "EpicSummary",
    "ProjectStats",
    "BlockedTaskInfo",
    "SearchResults",
    "TemplateApplyResult",
    # Export format
    "ProjectExport",
    "ImportResult",
    "ImportCounts",
    # Tool input models
    "CreateTaskInput",
    "ListTasksInput",
    "GetTaskInput",
    "UpdateTaskInput",
    "BatchUpdateTasksInput",
    "ActivityLogInput",
    "ActivitySinceInput",
    "CreateProjectInput",
    "ListProjectsInput",
    "UpdateProjectInput",
    "CreateEpicInput",
    "ListEpicsInput",
    "UpdateEpicInput",
    "CreateSubtasksInput",
    "UpdateSubtaskInput",
    "DeleteSubtasksInput",
    "SaveNoteInput",
    "ListNotesInput",
    "SearchNotesInput",
    "DeleteNoteInput",
    "AddCommentInput",
    "ListCommentsInput",
    "CreateTemplateInput",
    "ListTemplatesInput",
    "ApplyTemplateInput",
    "DeleteTemplateInput",
    "SearchInput",
    "ExportInput",
    "ImportInput",
    "DashboardInput",
    "InitTrackerInput",
]
