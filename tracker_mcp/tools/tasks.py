"""Task MCP tool definitions for Tracker MCP."""

from mcp.types import ToolAnnotations

from tracker_mcp.config import get_settings
from tracker_mcp.enums import ResponseFormat
from tracker_mcp.errors import TrackerError
from tracker_mcp.models.inputs import (
    BatchUpdateTasksInput,
    CreateTaskInput,
    GetTaskInput,
    ListTasksInput,
    UpdateTaskInput,
)
from tracker_mcp.server import get_service, mcp
from tracker_mcp.utils.formatters import (
    _format_cascade,
    _format_error,
    _format_task_concise,
    _format_task_markdown,
    _format_tasks_concise,
    _format_tasks_markdown,
    _to_json,
)

# Task fields a tool may pass straight through to the service
TASK_FIELDS = {
    "title",
    "description",
    "status",
    "priority",
    "assigned_to",
    "estimated_hours",
    "actual_hours",
    "due_date",
    "source_ref",
    "sort_order",
    "tags",
    "metadata",
    "extra",
}


@mcp.tool(
    name="task_create",
    annotations=ToolAnnotations(
        title="Create Task",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def task_create(params: CreateTaskInput) -> str:
    """
    Create a task in an epic, optionally depending on other tasks.

    USE THIS WHEN:
    - Adding a new unit of work to an epic
    - Recording work that must wait for other tasks (pass depends_on)

    DO NOT USE WHEN:
    - Changing an existing task → use task_update instead
    - Adding checklist items to a task → use subtask_create instead

    A task created with unfinished prerequisites starts out 'blocked' and is
    moved back to 'todo' automatically once they are all done.

    Args:
        params: CreateTaskInput with epic_id, title, optional fields and depends_on

    Returns:
        The created task
    """
    try:
        fields = params.model_dump(include=TASK_FIELDS, exclude_none=True)
        task = get_service().create_task(params.epic_id, fields, params.depends_on)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json(task)
    if params.response_format == ResponseFormat.CONCISE:
        return f"Created {_format_task_concise(task)}"
    return f"Task created successfully.\n\n{_format_task_markdown(task)}"


@mcp.tool(
    name="task_list",
    annotations=ToolAnnotations(
        title="List Tasks",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def task_list(params: ListTasksInput) -> str:
    """
    List tasks, filtered by epic, status, priority, assignee or tag.

    USE THIS WHEN:
    - Browsing the tasks of an epic
    - Finding tasks in a given state (e.g. everything 'blocked')

    DO NOT USE WHEN:
    - You have a specific task ID → use task_get instead
    - You want a whole-project overview → use tracker_dashboard instead

    Args:
        params: ListTasksInput with optional filters, limit, and response_format

    Returns:
        Formatted list of tasks
    """
    try:
        tasks = get_service().list_tasks(
            epic_id=params.epic_id,
            status=params.status,
            priority=params.priority,
            assigned_to=params.assigned_to,
            tag=params.tag,
            limit=params.limit or get_settings().default_list_limit,
        )
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json({"count": len(tasks), "tasks": tasks})

    filters = []
    if params.epic_id is not None:
        filters.append(f"epic {params.epic_id}")
    if params.status:
        filters.append(params.status.value)
    if params.tag:
        filters.append(f"+{params.tag}")

    if params.response_format == ResponseFormat.CONCISE:
        return _format_tasks_concise(tasks, ", ".join(filters) or None)

    title = "Tasks"
    if filters:
        title += f" ({', '.join(filters)})"
    return _format_tasks_markdown(tasks, title)


@mcp.tool(
    name="task_get",
    annotations=ToolAnnotations(
        title="Get Task Details",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def task_get(params: GetTaskInput) -> str:
    """
    Get full details for one task: dependencies, dependents and subtasks.

    USE THIS WHEN:
    - You need to know why a task is blocked
    - You need the subtask checklist of a task

    Args:
        params: GetTaskInput with task_id and response_format

    Returns:
        Task details
    """
    try:
        task = get_service().get_task(params.task_id)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json(task)
    if params.response_format == ResponseFormat.CONCISE:
        line = _format_task_concise(task)
        if task.unmet_predecessors:
            line += f" waiting on {', '.join(f'#{ref.id}' for ref in task.unmet_predecessors)}"
        return line
    return _format_task_markdown(task)


@mcp.tool(
    name="task_update",
    annotations=ToolAnnotations(
        title="Update Task",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def task_update(params: UpdateTaskInput) -> str:
    """
    Update a task's fields and/or replace its list of prerequisites.

    USE THIS WHEN:
    - Changing status (e.g. starting work with 'in_progress', finishing with 'done')
    - Reassigning, reprioritising, or re-estimating a task
    - Changing what a task depends on (depends_on replaces the whole list)

    DO NOT USE WHEN:
    - Applying the same status/priority/assignee to many tasks → use task_batch_update

    Side effects:
    - Marking a task 'done' unblocks dependents whose prerequisites are now all done
    - Marking a task 'done' without actual_hours records the time since it went 'in_progress'
    - Every changed field is written to the activity log

    Args:
        params: UpdateTaskInput with task_id and the fields to change

    Returns:
        The updated task and any dependent tasks whose status changed
    """
    try:
        changes = params.model_dump(include=TASK_FIELDS, exclude_none=True)
        result = get_service().update_task(params.task_id, changes, params.depends_on)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json(result)

    cascade = _format_cascade(result.cascade)
    if params.response_format == ResponseFormat.CONCISE:
        return "\n".join([f"Updated {_format_task_concise(result.task)}", *cascade])

    lines = ["Task updated successfully.", "", _format_task_markdown(result.task)]
    if cascade:
        lines += ["", "**Dependent tasks:**", *cascade]
    return "\n".join(lines)


@mcp.tool(
    name="task_batch_update",
    annotations=ToolAnnotations(
        title="Batch Update Tasks",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def task_batch_update(params: BatchUpdateTasksInput) -> str:
    """
    Set status, priority and/or assignee on several tasks in one atomic call.

    If any task ID does not exist, nothing is changed.

    Args:
        params: BatchUpdateTasksInput with task_ids and the fields to set

    Returns:
        Summary of updated tasks and any dependent tasks whose status changed
    """
    try:
        changes = params.model_dump(include={"status", "priority", "assigned_to"}, exclude_none=True)
        result = get_service().batch_update_tasks(params.task_ids, changes)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json({"updated": result.updated, "tasks": result.tasks, "cascades": result.cascades})

    cascade = [line for report in result.cascades for line in _format_cascade(report)]
    if params.response_format == ResponseFormat.CONCISE:
        return "\n".join([f"Updated {result.updated} task(s)", *cascade])

    lines = [f"Updated {result.updated} task(s).", ""]
    lines += [f"- {_format_task_concise(task)}" for task in result.tasks]
    if cascade:
        lines += ["", "**Dependent tasks:**", *cascade]
    return "\n".join(lines)
