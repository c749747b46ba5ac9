"""MCP tool definitions for Tracker MCP."""

# Import all tools to register them with the MCP server
from tracker_mcp.tools.activity import activity_log, activity_since
from tracker_mcp.tools.dashboard import tracker_dashboard, tracker_init
from tracker_mcp.tools.hierarchy import (
    epic_create,
    epic_list,
    epic_update,
    project_create,
    project_list,
    project_update,
    subtask_create,
    subtask_delete,
    subtask_update,
)
from tracker_mcp.tools.notes import (
    comment_add,
    comment_list,
    note_delete,
    note_list,
    note_save,
    note_search,
)
from tracker_mcp.tools.tasks import (
    task_batch_update,
    task_create,
    task_get,
    task_list,
    task_update,
)
from tracker_mcp.tools.templates import (
    template_apply,
    template_create,
    template_delete,
    template_list,
)
from tracker_mcp.tools.transfer import tracker_export, tracker_import, tracker_search

__all__ = [
    # Task tools
    "task_create",
    "task_list",
    "task_get",
    "task_update",
    "task_batch_update",
    # Activity tools
    "activity_log",
    "activity_since",
    # Hierarchy tools
    "project_create",
    "project_list",
    "project_update",
    "epic_create",
    "epic_list",
    "epic_update",
    "subtask_create",
    "subtask_update",
    "subtask_delete",
    # Note and comment tools
    "note_save",
    "note_list",
    "note_search",
    "note_delete",
    "comment_add",
    "comment_list",
    # Template tools
    "template_create",
    "template_list",
    "template_apply",
    "template_delete",
    # Search and transfer tools
    "tracker_search",
    "tracker_export",
    "tracker_import",
    # Overview tools
    "tracker_dashboard",
    "tracker_init",
]
