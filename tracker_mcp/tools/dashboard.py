"""Overview MCP tool definitions for Tracker MCP."""

from mcp.types import ToolAnnotations

from tracker_mcp.config import get_settings
from tracker_mcp.enums import ResponseFormat
from tracker_mcp.errors import TrackerError
from tracker_mcp.models.inputs import DashboardInput, InitTrackerInput
from tracker_mcp.server import get_service, mcp
from tracker_mcp.utils.formatters import _format_dashboard_markdown, _format_error, _to_json


@mcp.tool(
    name="tracker_dashboard",
    annotations=ToolAnnotations(
        title="Project Dashboard",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def tracker_dashboard(params: DashboardInput) -> str:
    """
    One-call project overview: progress, epics, blocked tasks, recent activity.

    USE THIS WHEN:
    - Starting a session and orienting yourself
    - Reporting on overall project progress

    Args:
        params: DashboardInput with optional project_id and response_format

    Returns:
        Dashboard for the project (or the first project if none is given)
    """
    try:
        dashboard = get_service().dashboard(params.project_id)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if dashboard is None:
        if params.response_format == ResponseFormat.JSON:
            return _to_json({"project": None, "message": "No projects found"})
        return "No projects found. Use tracker_init to create one."

    if params.response_format == ResponseFormat.JSON:
        return _to_json(dashboard)
    if params.response_format == ResponseFormat.CONCISE:
        stats = dashboard.stats
        return (
            f"{dashboard.project.name}: {stats.tasks_done}/{stats.total_tasks} done ({stats.completion_pct:g}%), "
            f"{stats.tasks_in_progress} in progress, {stats.tasks_blocked} blocked"
        )
    return _format_dashboard_markdown(dashboard)


@mcp.tool(
    name="tracker_init",
    annotations=ToolAnnotations(
        title="Initialise Tracker",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def tracker_init(params: InitTrackerInput) -> str:
    """
    Check the tracker database and create the first project if it is empty.

    Args:
        params: InitTrackerInput with an optional project name and description

    Returns:
        Database location and the current (or newly created) project
    """
    try:
        project, created = get_service().init_tracker(params.project_name, params.project_description)
    except TrackerError as e:
        return _format_error(e)

    lines = [f"Tracker database: {get_settings().db_path}"]
    if project is None:
        lines.append("The database is empty. Call tracker_init with project_name to create a project.")
    elif created:
        lines.append(f"Created project #{project.id} '{project.name}'.")
    else:
        lines.append(f"Using existing project #{project.id} '{project.name}'.")
    return "\n".join(lines)
