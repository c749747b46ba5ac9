"""Task template MCP tool definitions for Tracker MCP."""

from mcp.types import ToolAnnotations

from tracker_mcp.enums import ResponseFormat
from tracker_mcp.errors import TrackerError
from tracker_mcp.models.inputs import (
    ApplyTemplateInput,
    CreateTemplateInput,
    DeleteTemplateInput,
    ListTemplatesInput,
)
from tracker_mcp.server import get_service, mcp
from tracker_mcp.utils.formatters import (
    _format_error,
    _format_task_concise,
    _format_template_markdown,
    _to_json,
)


@mcp.tool(
    name="template_create",
    annotations=ToolAnnotations(
        title="Create Template",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def template_create(params: CreateTemplateInput) -> str:
    """
    Create a reusable set of tasks that can be instantiated into any epic.

    Titles and descriptions may use {variable} placeholders, filled in by
    template_apply.

    Args:
        params: CreateTemplateInput with a unique name, optional description and task definitions

    Returns:
        Confirmation with the new template's ID
    """
    try:
        template = get_service().create_template(params.name, params.tasks, params.description)
    except TrackerError as e:
        return _format_error(e)
    return f"Template created successfully.\n{_format_template_markdown(template)}"


@mcp.tool(
    name="template_list",
    annotations=ToolAnnotations(
        title="List Templates",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def template_list(params: ListTemplatesInput) -> str:
    """
    List all task templates, newest first.

    Args:
        params: ListTemplatesInput with response_format

    Returns:
        Templates with their task counts
    """
    try:
        templates = get_service().list_templates()
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json({"count": len(templates), "templates": templates})
    if not templates:
        return "No templates found. Use template_create to add one."
    if params.response_format == ResponseFormat.CONCISE:
        return "\n".join(f"#{t.id}: {t.name} ({t.task_count} task(s))" for t in templates)
    return "\n".join(["# Templates", "", *(_format_template_markdown(t) for t in templates)])


@mcp.tool(
    name="template_apply",
    annotations=ToolAnnotations(
        title="Apply Template",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def template_apply(params: ApplyTemplateInput) -> str:
    """
    Create the tasks of a template in an epic, all or nothing.

    Placeholders like {feature} are replaced with the matching entry of
    variables; placeholders without a value are kept as written.

    Args:
        params: ApplyTemplateInput with template_id, epic_id and optional variables

    Returns:
        The created tasks
    """
    try:
        result = get_service().apply_template(params.template_id, params.epic_id, params.variables)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json(result)
    header = f"Applied template '{result.template.name}' to epic '{result.epic.name}': {len(result.tasks)} task(s)"
    return "\n".join([header, *(f"- {_format_task_concise(task)}" for task in result.tasks)])


@mcp.tool(
    name="template_delete",
    annotations=ToolAnnotations(
        title="Delete Template",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def template_delete(params: DeleteTemplateInput) -> str:
    """
    Delete a task template. Tasks already created from it are kept.

    Args:
        params: DeleteTemplateInput with template_id

    Returns:
        Confirmation of the deleted template
    """
    try:
        template = get_service().delete_template(params.template_id)
    except TrackerError as e:
        return _format_error(e)
    return f"Template '{template.name}' deleted."
