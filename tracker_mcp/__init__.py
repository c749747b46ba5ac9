"""
MCP Server for a project tracker.

This server stores projects, epics, tasks and subtasks in a local SQLite
database and keeps task status consistent with task dependencies: tasks
waiting on unfinished work are blocked, and are unblocked automatically
when their prerequisites are done. Every change is written to an activity
log that can be browsed or diffed against a point in time. Notes, task
comments, reusable task templates, keyword search and whole-project
export/import round it out.
"""

# Re-export enums
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

# Re-export the engine
from tracker_mcp.engine import TrackerService

# Re-export errors
from tracker_mcp.errors import (
    ConcurrencyTimeout,
    NotFoundError,
    StoreUnavailable,
    TrackerError,
    ValidationFailure,
)

# Re-export models
from tracker_mcp.models import (
    ActivityEntry,
    BatchUpdateResult,
    CascadeReport,
    CommentModel,
    Dashboard,
    EpicModel,
    ImportResult,
    NoteModel,
    ProjectExport,
    ProjectModel,
    SearchResults,
    SubtaskModel,
    TaskDetail,
    TaskModel,
    TaskUpdateResult,
    TemplateApplyResult,
    TemplateModel,
)

# Re-export MCP server instance
from tracker_mcp.server import bind_service, get_service, mcp

# Re-export the store
from tracker_mcp.store import Database

# Re-export tools
from tracker_mcp.tools import (
    activity_log,
    activity_since,
    comment_add,
    comment_list,
    epic_create,
    epic_list,
    epic_update,
    note_delete,
    note_list,
    note_save,
    note_search,
    project_create,
    project_list,
    project_update,
    subtask_create,
    subtask_delete,
    subtask_update,
    task_batch_update,
    task_create,
    task_get,
    task_list,
    task_update,
    template_apply,
    template_create,
    template_delete,
    template_list,
    tracker_dashboard,
    tracker_export,
    tracker_import,
    tracker_init,
    tracker_search,
)

__all__ = [
    # Enums
    "ResponseFormat",
    "TaskStatus",
    "Priority",
    "ProjectStatus",
    "EpicStatus",
    "SubtaskStatus",
    "EntityType",
    "ActivityAction",
    "NoteType",
    "LinkableType",
    "SearchableType",
    # Errors
    "TrackerError",
    "NotFoundError",
    "ValidationFailure",
    "ConcurrencyTimeout",
    "StoreUnavailable",
    # Models
    "ProjectModel",
    "EpicModel",
    "TaskModel",
    "TaskDetail",
    "SubtaskModel",
    "NoteModel",
    "CommentModel",
    "TemplateModel",
    "ActivityEntry",
    "TaskUpdateResult",
    "BatchUpdateResult",
    "CascadeReport",
    "Dashboard",
    "SearchResults",
    "TemplateApplyResult",
    "ProjectExport",
    "ImportResult",
    # Engine and store
    "Database",
    "TrackerService",
    # Tools
    "task_create",
    "task_list",
    "task_get",
    "task_update",
    "task_batch_update",
    "activity_log",
    "activity_since",
    "project_create",
    "project_list",
    "project_update",
    "epic_create",
    "epic_list",
    "epic_update",
    "subtask_create",
    "subtask_update",
    "subtask_delete",
    "note_save",
    "note_list",
    "note_search",
    "note_delete",
    "comment_add",
    "comment_list",
    "template_create",
    "template_list",
    "template_apply",
    "template_delete",
    "tracker_search",
    "tracker_export",
    "tracker_import",
    "tracker_dashboard",
    "tracker_init",
    # MCP server instance
    "mcp",
    "bind_service",
    "get_service",
]
