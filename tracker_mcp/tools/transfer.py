"""Search, export and import MCP tool definitions for Tracker MCP."""

from mcp.types import ToolAnnotations

from tracker_mcp.enums import ResponseFormat
from tracker_mcp.errors import TrackerError
from tracker_mcp.models.inputs import ExportInput, ImportInput, SearchInput
from tracker_mcp.server import get_service, mcp
from tracker_mcp.utils.formatters import _format_error, _format_search_markdown, _to_json


@mcp.tool(
    name="tracker_search",
    annotations=ToolAnnotations(
        title="Search Tracker",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def tracker_search(params: SearchInput) -> str:
    """
    Keyword search across projects, epics, tasks and notes.

    Matches names, titles, descriptions and note content, case-insensitively.
    Results are grouped by entity type; limit applies to each group.

    USE THIS WHEN:
    - You remember a word but not where it lives

    DO NOT USE WHEN:
    - Filtering tasks by status, priority or tag → use task_list instead

    Args:
        params: SearchInput with query, optional entity_types, limit and response_format

    Returns:
        Matching entities grouped by type
    """
    try:
        results = get_service().search(params.query, entity_types=params.entity_types, limit=params.limit)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json(results)
    if params.response_format == ResponseFormat.CONCISE:
        counts = [
            f"{len(group)} {name}"
            for name, group in (
                ("project(s)", results.projects),
                ("epic(s)", results.epics),
                ("task(s)", results.tasks),
                ("note(s)", results.notes),
            )
            if group
        ]
        return f"'{results.query}': {', '.join(counts)}" if counts else f"'{results.query}': no matches"
    return _format_search_markdown(results)


@mcp.tool(
    name="tracker_export",
    annotations=ToolAnnotations(
        title="Export Project",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def tracker_export(params: ExportInput) -> str:
    """
    Export a whole project as a JSON document.

    The document holds the project, its epics, tasks with their dependencies,
    subtasks and related notes. Feed it to tracker_import to recreate the
    project in another tracker database.

    Args:
        params: ExportInput with optional project_id (defaults to the first project)

    Returns:
        The export document as JSON
    """
    try:
        export = get_service().export_project(params.project_id)
    except TrackerError as e:
        return _format_error(e, ResponseFormat.JSON)
    return _to_json(export)


@mcp.tool(
    name="tracker_import",
    annotations=ToolAnnotations(
        title="Import Project",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def tracker_import(params: ImportInput) -> str:
    """
    Import a project document produced by tracker_export.

    Always creates a new project with new IDs; dependencies and note links
    are remapped. Nothing is written if any part of the document fails.

    Args:
        params: ImportInput with the export document

    Returns:
        Summary of what was imported
    """
    try:
        result = get_service().import_project(params.data)
    except TrackerError as e:
        return _format_error(e)

    c = result.counts
    return (
        f"Imported project '{result.project_name}' (ID: {result.project_id}): "
        f"{c.epics} epic(s), {c.tasks} task(s), {c.subtasks} subtask(s), "
        f"{c.dependencies} dependency(ies), {c.notes} note(s)"
    )
