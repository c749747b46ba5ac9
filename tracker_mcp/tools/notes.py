"""Note and comment MCP tool definitions for Tracker MCP."""

from mcp.types import ToolAnnotations

from tracker_mcp.enums import ResponseFormat
from tracker_mcp.errors import TrackerError
from tracker_mcp.models.inputs import (
    AddCommentInput,
    DeleteNoteInput,
    ListCommentsInput,
    ListNotesInput,
    SaveNoteInput,
    SearchNotesInput,
)
from tracker_mcp.server import get_service, mcp
from tracker_mcp.utils.formatters import (
    _format_comment_line,
    _format_error,
    _format_note_line,
    _format_note_markdown,
    _format_notes_concise,
    _format_notes_markdown,
    _to_json,
)

# ============================================================================
# Notes
# ============================================================================


@mcp.tool(
    name="note_save",
    annotations=ToolAnnotations(
        title="Save Note",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def note_save(params: SaveNoteInput) -> str:
    """
    Create or update a note.

    Notes capture decisions, context, progress, meeting notes, blockers,
    technical details or release info, optionally linked to a project, epic
    or task. With note_id the existing note is updated; without it a new one
    is created (title and content required).

    USE THIS WHEN:
    - Recording why something was decided
    - Leaving context for whoever picks the work up next

    DO NOT USE WHEN:
    - Discussing one task back and forth → use comment_add instead

    Args:
        params: SaveNoteInput with optional note_id, title, content, note_type and link

    Returns:
        The saved note
    """
    try:
        fields = params.model_dump(exclude={"note_id", "response_format"}, exclude_none=True)
        note = get_service().save_note(fields, params.note_id)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json(note)
    verb = "Created" if params.note_id is None else "Updated"
    if params.response_format == ResponseFormat.CONCISE:
        return f"{verb} {_format_note_line(note)}"
    return f"Note {verb.lower()} successfully.\n\n{_format_note_markdown(note)}"


@mcp.tool(
    name="note_list",
    annotations=ToolAnnotations(
        title="List Notes",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def note_list(params: ListNotesInput) -> str:
    """
    List notes, most recent first, filtered by type, linked entity or tag.

    Args:
        params: ListNotesInput with optional filters, limit, and response_format

    Returns:
        Formatted list of notes
    """
    try:
        notes = get_service().list_notes(
            note_type=params.note_type,
            related_entity_type=params.related_entity_type,
            related_entity_id=params.related_entity_id,
            tag=params.tag,
            limit=params.limit,
        )
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json({"count": len(notes), "notes": notes})
    if params.response_format == ResponseFormat.CONCISE:
        return _format_notes_concise(notes)
    return _format_notes_markdown(notes)


@mcp.tool(
    name="note_search",
    annotations=ToolAnnotations(
        title="Search Notes",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def note_search(params: SearchNotesInput) -> str:
    """
    Search note titles and content by keyword.

    DO NOT USE WHEN:
    - Searching projects, epics and tasks as well → use tracker_search

    Args:
        params: SearchNotesInput with query, optional note_type and limit

    Returns:
        Matching notes, most recent first
    """
    try:
        notes = get_service().search_notes(params.query, note_type=params.note_type, limit=params.limit)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json({"query": params.query, "count": len(notes), "notes": notes})
    if params.response_format == ResponseFormat.CONCISE:
        return _format_notes_concise(notes)
    return _format_notes_markdown(notes, f"Notes matching '{params.query}'")


@mcp.tool(
    name="note_delete",
    annotations=ToolAnnotations(
        title="Delete Note",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def note_delete(params: DeleteNoteInput) -> str:
    """
    Delete a note by ID.

    Args:
        params: DeleteNoteInput with note_id

    Returns:
        Confirmation of the deleted note
    """
    try:
        note = get_service().delete_note(params.note_id)
    except TrackerError as e:
        return _format_error(e)
    return f"Deleted note #{note.id} '{note.title}'."


# ============================================================================
# Comments
# ============================================================================


@mcp.tool(
    name="comment_add",
    annotations=ToolAnnotations(
        title="Add Comment",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def comment_add(params: AddCommentInput) -> str:
    """
    Add a comment to a task's discussion thread.

    Useful for leaving breadcrumbs across sessions.

    Args:
        params: AddCommentInput with task_id, content and optional author

    Returns:
        Confirmation with the new comment
    """
    try:
        comment = get_service().add_comment(params.task_id, params.content, params.author)
    except TrackerError as e:
        return _format_error(e)
    return f"Comment #{comment.id} added to task #{comment.task_id}.\n{_format_comment_line(comment)}"


@mcp.tool(
    name="comment_list",
    annotations=ToolAnnotations(
        title="List Comments",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def comment_list(params: ListCommentsInput) -> str:
    """
    List all comments on a task in chronological order.

    Args:
        params: ListCommentsInput with task_id and response_format

    Returns:
        The comment thread, oldest first
    """
    try:
        comments = get_service().list_comments(params.task_id)
    except TrackerError as e:
        return _format_error(e, params.response_format)

    if params.response_format == ResponseFormat.JSON:
        return _to_json({"task_id": params.task_id, "count": len(comments), "comments": comments})
    if not comments:
        return f"No comments on task #{params.task_id}."
    header = f"{len(comments)} comment(s) on task #{params.task_id}"
    if params.response_format == ResponseFormat.MARKDOWN:
        header = f"# Comments on task #{params.task_id}\n*{len(comments)} comment(s)*\n"
    return "\n".join([header, *(f"- {_format_comment_line(c)}" for c in comments)])
