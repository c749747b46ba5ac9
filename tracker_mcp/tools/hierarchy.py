"""Project, epic and subtask MCP tool definitions for Tracker MCP."""

from mcp.types import ToolAnnotations

from tracker_mcp.enums import ResponseFormat
from tracker_mcp.errors import TrackerError
from tracker_mcp.models.inputs import (
    CreateEpicInput,
    CreateProjectInput,
    CreateSubtasksInput,
    DeleteSubtasksInput,
    ListEpicsInput,
    ListProjectsInput,
    UpdateEpicInput,
    UpdateProjectInput,
    UpdateSubtaskInput,
)
from tracker_mcp.server import get_service, mcp
from tracker_mcp.utils.formatters import (
    _format_epic_markdown,
    _format_error,
    _format_project_markdown,
    _to_json,
)

# ============================================================================
# Projects
# ============================================================================


@mcp.tool(
    name="project_create",
    annotations=ToolAnnotations(
        title="Create Project",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def project_create(params: CreateProjectInput) -> str:
    """
    Create a new top-level project.

    Args:
        params: CreateProjectInput with name and optional description, status, tags, metadata

    Returns:
        Confirmation with the new project's ID
    """
    try:
        project = get_service().create_project(params.model_dump(exclude_none=True))
    except TrackerError as e:
        return _format_error(e)
    return f"Project created successfully.\n{_format_project_markdown(project)}"


@mcp.tool(
    name="project_list",
    annotations=ToolAnnotations(
        title="List Projects",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def project_list(params: ListProjectsInput) -> str:
    """
    List projects, optionally filtered by status.

    Args:
        params: ListProjectsInput with optional status and response_format

    Returns:
        List of projects
    """
    try:
        projects = get_service().list_projects(params.status)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json({"projects": projects})
    if not projects:
        return "No projects found. Use tracker_init or project_create to start one."
    if params.response_format == ResponseFormat.CONCISE:
        return "\n".join(f"#{p.id}: {p.name} ({p.status})" for p in projects)
    return "\n".join(["# Projects", "", *(_format_project_markdown(p) for p in projects)])


@mcp.tool(
    name="project_update",
    annotations=ToolAnnotations(
        title="Update Project",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def project_update(params: UpdateProjectInput) -> str:
    """
    Update a project's name, description, status, tags or metadata.

    Args:
        params: UpdateProjectInput with project_id and fields to change

    Returns:
        The updated project
    """
    try:
        changes = params.model_dump(exclude={"project_id"}, exclude_none=True)
        project = get_service().update_project(params.project_id, changes)
    except TrackerError as e:
        return _format_error(e)
    return f"Project updated successfully.\n{_format_project_markdown(project)}"


# ============================================================================
# Epics
# ============================================================================


@mcp.tool(
    name="epic_create",
    annotations=ToolAnnotations(
        title="Create Epic",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def epic_create(params: CreateEpicInput) -> str:
    """
    Create an epic (a group of related tasks) inside a project.

    Args:
        params: CreateEpicInput with project_id, name and optional fields

    Returns:
        Confirmation with the new epic's ID
    """
    try:
        fields = params.model_dump(exclude={"project_id"}, exclude_none=True)
        epic = get_service().create_epic(params.project_id, fields)
    except TrackerError as e:
        return _format_error(e)
    return f"Epic created successfully.\n{_format_epic_markdown(epic)}"


@mcp.tool(
    name="epic_list",
    annotations=ToolAnnotations(
        title="List Epics",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def epic_list(params: ListEpicsInput) -> str:
    """
    List the epics of a project with task counts and completion percentage.

    Args:
        params: ListEpicsInput with project_id and optional status/priority filters

    Returns:
        Epics with progress
    """
    try:
        epics = get_service().list_epics(params.project_id, params.status, params.priority)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json({"epics": epics})
    if not epics:
        return f"No epics found in project {params.project_id}."
    if params.response_format == ResponseFormat.CONCISE:
        return "\n".join(f"#{e.id}: {e.name} ({e.status}, {e.done_count}/{e.task_count})" for e in epics)
    return "\n".join([f"# Epics in project {params.project_id}", "", *(_format_epic_markdown(e) for e in epics)])


@mcp.tool(
    name="epic_update",
    annotations=ToolAnnotations(
        title="Update Epic",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def epic_update(params: UpdateEpicInput) -> str:
    """
    Update an epic. Set status to 'cancelled' to retire it.

    Args:
        params: UpdateEpicInput with epic_id and fields to change

    Returns:
        The updated epic
    """
    try:
        changes = params.model_dump(exclude={"epic_id"}, exclude_none=True)
        epic = get_service().update_epic(params.epic_id, changes)
    except TrackerError as e:
        return _format_error(e)
    return f"Epic updated successfully.\n{_format_epic_markdown(epic)}"


# ============================================================================
# Subtasks
# ============================================================================


@mcp.tool(
    name="subtask_create",
    annotations=ToolAnnotations(
        title="Create Subtasks",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def subtask_create(params: CreateSubtasksInput) -> str:
    """
    Add checklist items to a task.

    Args:
        params: CreateSubtasksInput with task_id and one title per subtask

    Returns:
        The created subtasks
    """
    try:
        subtasks = get_service().create_subtasks(params.task_id, params.titles)
    except TrackerError as e:
        return _format_error(e)
    lines = [f"Created {len(subtasks)} subtask(s) on task #{params.task_id}:"]
    lines += [f"- #{s.id}: {s.title}" for s in subtasks]
    return "\n".join(lines)


@mcp.tool(
    name="subtask_update",
    annotations=ToolAnnotations(
        title="Update Subtask",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def subtask_update(params: UpdateSubtaskInput) -> str:
    """
    Rename, reorder or tick off a subtask.

    Args:
        params: UpdateSubtaskInput with subtask_id and fields to change

    Returns:
        The updated subtask
    """
    try:
        changes = params.model_dump(exclude={"subtask_id"}, exclude_none=True)
        subtask = get_service().update_subtask(params.subtask_id, changes)
    except TrackerError as e:
        return _format_error(e)
    return f"Subtask #{subtask.id} '{subtask.title}' is {subtask.status}."


@mcp.tool(
    name="subtask_delete",
    annotations=ToolAnnotations(
        title="Delete Subtasks",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def subtask_delete(params: DeleteSubtasksInput) -> str:
    """
    Delete subtasks. If any ID does not exist, nothing is deleted.

    Args:
        params: DeleteSubtasksInput with subtask_ids

    Returns:
        Confirmation of deleted subtasks
    """
    try:
        deleted = get_service().delete_subtasks(params.subtask_ids)
    except TrackerError as e:
        return _format_error(e)
    return f"Deleted {len(deleted)} subtask(s): {', '.join(f'#{s.id}' for s in deleted)}"
