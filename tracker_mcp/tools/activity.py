"""Activity log MCP tool definitions for Tracker MCP."""

from mcp.types import ToolAnnotations

from tracker_mcp.config import get_settings
from tracker_mcp.enums import ResponseFormat
from tracker_mcp.errors import TrackerError
from tracker_mcp.models.inputs import ActivityLogInput, ActivitySinceInput
from tracker_mcp.server import get_service, mcp
from tracker_mcp.utils.formatters import (
    _format_activity_concise,
    _format_activity_markdown,
    _format_error,
    _to_json,
)


@mcp.tool(
    name="activity_log",
    annotations=ToolAnnotations(
        title="Browse Activity Log",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def activity_log(params: ActivityLogInput) -> str:
    """
    Browse the audit trail of changes, newest first.

    USE THIS WHEN:
    - Checking the history of one task, epic or project
    - Looking for all status changes, creations, or deletions

    DO NOT USE WHEN:
    - Catching up on everything since your last session → use activity_since

    Args:
        params: ActivityLogInput with optional entity_type, entity_id, action, since, limit

    Returns:
        Activity entries, newest first
    """
    try:
        entries = get_service().query_activity(
            entity_type=params.entity_type,
            entity_id=params.entity_id,
            action=params.action,
            since=params.since,
            limit=params.limit or get_settings().default_list_limit,
        )
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json({"count": len(entries), "entries": entries})
    if params.response_format == ResponseFormat.CONCISE:
        return _format_activity_concise(entries)

    title = "Activity"
    if params.entity_type and params.entity_id is not None:
        title = f"Activity for {params.entity_type.value} {params.entity_id}"
    return _format_activity_markdown(entries, title)


@mcp.tool(
    name="activity_since",
    annotations=ToolAnnotations(
        title="Changes Since",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def activity_since(params: ActivitySinceInput) -> str:
    """
    Everything that changed after a point in time, oldest first.

    USE THIS WHEN:
    - Starting a session and catching up on what happened since the last one

    Args:
        params: ActivitySinceInput with an ISO 8601 'since' timestamp

    Returns:
        Activity entries in the order they happened
    """
    try:
        entries = get_service().query_activity_since(params.since)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json({"since": params.since, "count": len(entries), "entries": entries})
    if params.response_format == ResponseFormat.CONCISE:
        return _format_activity_concise(entries)
    return _format_activity_markdown(entries, f"Changes since {params.since}")
