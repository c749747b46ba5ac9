"""Formatting utilities for tracker output."""

import json
from typing import Any

from pydantic import BaseModel

from tracker_mcp.enums import ResponseFormat
from tracker_mcp.errors import TrackerError
from tracker_mcp.models.activity import ActivityEntry
from tracker_mcp.models.results import CascadeReport, Dashboard, EpicSummary, SearchResults
from tracker_mcp.models.task import (
    CommentModel,
    DependencyRef,
    EpicModel,
    NoteModel,
    ProjectModel,
    TaskDetail,
    TaskModel,
)
from tracker_mcp.models.templates import TemplateModel

PRIORITY_SHORT = {"critical": "C", "high": "H", "medium": "M", "low": "L"}


def _to_json(data: Any) -> str:
    """Serialize a model, a list of models, or plain data as indented JSON."""

    def convert(value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        if isinstance(value, list):
            return [convert(v) for v in value]
        if isinstance(value, dict):
            return {k: convert(v) for k, v in value.items()}
        return value

    return json.dumps(convert(data), indent=2)


def _format_error(error: TrackerError, response_format: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    """
    Render a tracker failure for a tool caller.

    JSON callers get ``{"error": {...}}``; everyone else gets an "Error: ..."
    line, with a retry hint for retryable failures.
    """
    if response_format == ResponseFormat.JSON:
        return json.dumps({"error": error.to_dict()}, indent=2)
    message = f"Error: {error.message}"
    if error.retryable:
        message += "\nTip: The database was busy. Retry the call."
    return message


def _format_ref(ref: DependencyRef) -> str:
    return f"#{ref.id} '{ref.title}' ({ref.status})"


def _format_task_concise(task: TaskModel) -> str:
    """
    Format a single task in concise format for token efficiency.

    Output: "#5: Title [blocked] (H, due:2024-12-31, @alice)"
    """
    title = task.title[:50]

    meta = [PRIORITY_SHORT.get(task.priority, task.priority)]
    if task.due_date:
        meta.append(f"due:{task.due_date}")
    if task.assigned_to:
        meta.append(f"@{task.assigned_to}")

    return f"#{task.id}: {title} [{task.status}] ({', '.join(meta)})"


def _format_tasks_concise(tasks: list[TaskModel], title: str | None = None) -> str:
    """
    Format a list of tasks in concise format.

    Output:
    2 task(s) | epic 3
    #1: Task one [todo] (H)
    #2: Task two [blocked] (M)
    """
    if not tasks:
        return "0 tasks"

    header = f"{len(tasks)} task(s)"
    if title:
        header = f"{len(tasks)} task(s) | {title}"
    return "\n".join([header, *(_format_task_concise(task) for task in tasks)])


def _format_task_markdown(task: TaskModel) -> str:
    """Format a single task as markdown, with dependencies and subtasks when present."""
    lines = [f"### [{task.id}] {task.title}"]

    details = [f"**Status**: {task.status}", f"**Priority**: {task.priority}"]
    if isinstance(task, TaskDetail) and task.epic_name:
        details.append(f"**Epic**: {task.epic_name}")
    if task.assigned_to:
        details.append(f"**Assigned**: {task.assigned_to}")
    if task.due_date:
        details.append(f"**Due**: {task.due_date}")
    if task.estimated_hours is not None or task.actual_hours is not None:
        est = "-" if task.estimated_hours is None else f"{task.estimated_hours:g}h"
        act = "-" if task.actual_hours is None else f"{task.actual_hours:g}h"
        details.append(f"**Effort**: {act} / {est}")
    if task.tags:
        details.append(f"**Tags**: {', '.join(task.tags)}")
    lines.append(" | ".join(details))

    if task.description:
        lines.append("")
        lines.append(task.description)

    if task.source_ref:
        ref = task.source_ref
        location = ref.file
        if ref.line_start:
            location += f":{ref.line_start}"
            if ref.line_end and ref.line_end != ref.line_start:
                location += f"-{ref.line_end}"
        lines.append(f"**Source**: `{location}`")

    if isinstance(task, TaskDetail):
        if task.predecessors:
            lines.append("**Depends on:**")
            lines.extend(f"  - {_format_ref(ref)}" for ref in task.predecessors)
        if task.unmet_predecessors:
            lines.append(f"**Waiting on**: {', '.join(f'#{ref.id}' for ref in task.unmet_predecessors)}")
        if task.successors:
            lines.append("**Blocks:**")
            lines.extend(f"  - {_format_ref(ref)}" for ref in task.successors)
        if task.subtasks:
            done = sum(1 for s in task.subtasks if s.status == "done")
            lines.append(f"**Subtasks** ({done}/{len(task.subtasks)}):")
            for subtask in task.subtasks:
                mark = "x" if subtask.status == "done" else " "
                lines.append(f"  - [{mark}] {subtask.title} (#{subtask.id})")
        if task.notes:
            lines.append("**Notes:**")
            lines.extend(f"  - {_format_note_line(note)}" for note in task.notes)

    return "\n".join(lines)


def _format_tasks_markdown(tasks: list[TaskModel], title: str = "Tasks") -> str:
    """Format a list of tasks as markdown."""
    if not tasks:
        return f"# {title}\n\nNo tasks found."

    lines = [f"# {title}", f"*{len(tasks)} task(s)*", ""]
    for task in tasks:
        lines.append(_format_task_markdown(task))
        lines.append("")
    return "\n".join(lines)


def _format_cascade(report: CascadeReport | None) -> list[str]:
    """Lines describing which dependent tasks changed after a completion."""
    if report is None:
        return []
    lines = []
    for task in report.changed:
        lines.append(f"- Task #{task.id} '{task.title}' is now {task.status}")
    for task_id in report.skipped:
        lines.append(f"- Task #{task_id} no longer exists (skipped)")
    for failure in report.failed:
        lines.append(f"- Task #{failure.task_id} could not be reevaluated: {failure.message}")
    return lines


def _format_activity_line(entry: ActivityEntry) -> str:
    stamp = entry.created_at.strftime("%Y-%m-%d %H:%M:%S")
    summary = entry.summary or f"{entry.entity_type} {entry.entity_id} {entry.action}"
    return f"[{stamp}] {summary}"


def _format_activity_concise(entries: list[ActivityEntry]) -> str:
    if not entries:
        return "0 entries"
    return "\n".join([f"{len(entries)} entries", *(_format_activity_line(e) for e in entries)])


def _format_activity_markdown(entries: list[ActivityEntry], title: str = "Activity") -> str:
    """Format activity entries as a markdown list."""
    if not entries:
        return f"# {title}\n\nNo activity found."

    lines = [f"# {title}", f"*{len(entries)} entries*", ""]
    lines.extend(f"- {_format_activity_line(entry)}" for entry in entries)
    return "\n".join(lines)


def _format_project_markdown(project: ProjectModel) -> str:
    line = f"- **[{project.id}] {project.name}** ({project.status})"
    if project.description:
        line += f": {project.description}"
    return line


def _format_epic_markdown(epic: EpicModel) -> str:
    line = f"- **[{epic.id}] {epic.name}** ({epic.status}, {epic.priority})"
    if isinstance(epic, EpicSummary):
        line += f" {epic.done_count}/{epic.task_count} done ({epic.completion_pct:g}%)"
        if epic.blocked_count:
            line += f", {epic.blocked_count} blocked"
    return line


def _format_dashboard_markdown(dashboard: Dashboard) -> str:
    """Format a project dashboard as markdown."""
    project, stats = dashboard.project, dashboard.stats
    lines = [f"# {project.name}"]
    if project.description:
        lines.append(project.description)
    lines.append("")

    lines.append("## Progress")
    lines.append(
        f"**{stats.completion_pct:g}%** complete: {stats.tasks_done}/{stats.total_tasks} tasks "
        f"across {stats.total_epics} epic(s)"
    )
    lines.append(
        f"- todo: {stats.tasks_todo} | in progress: {stats.tasks_in_progress} | "
        f"review: {stats.tasks_review} | blocked: {stats.tasks_blocked}"
    )
    lines.append(f"- hours: {stats.total_actual_hours:g} actual / {stats.total_estimated_hours:g} estimated")
    lines.append("")

    if dashboard.epics:
        lines.append("## Epics")
        lines.extend(_format_epic_markdown(epic) for epic in dashboard.epics)
        lines.append("")

    if dashboard.blocked_tasks:
        lines.append("## Blocked")
        for info in dashboard.blocked_tasks:
            blockers = ", ".join(_format_ref(ref) for ref in info.blockers) or "unknown"
            lines.append(f"- #{info.task.id} '{info.task.title}' ({info.epic_name}) waiting on {blockers}")
        lines.append("")

    if dashboard.recent_activity:
        lines.append("## Recent Activity")
        lines.extend(f"- {_format_activity_line(entry)}" for entry in dashboard.recent_activity)
        lines.append("")

    if dashboard.recent_notes:
        lines.append("## Recent Notes")
        lines.extend(f"- {_format_note_line(note)}" for note in dashboard.recent_notes)

    return "\n".join(lines).rstrip()


def _format_note_line(note: NoteModel) -> str:
    """
    Format a note as one line.

    Output: "#3: Use SQLite [decision] (task 12)"
    """
    line = f"#{note.id}: {note.title} [{note.note_type}]"
    if note.related_entity_type:
        line += f" ({note.related_entity_type} {note.related_entity_id})"
    return line


def _format_note_markdown(note: NoteModel) -> str:
    lines = [f"### [{note.id}] {note.title}"]
    details = [f"**Type**: {note.note_type}"]
    if note.related_entity_type:
        details.append(f"**Linked to**: {note.related_entity_type} {note.related_entity_id}")
    if note.tags:
        details.append(f"**Tags**: {', '.join(note.tags)}")
    details.append(f"**Updated**: {note.updated_at.strftime('%Y-%m-%d %H:%M')}")
    lines.append(" | ".join(details))
    lines.append("")
    lines.append(note.content)
    return "\n".join(lines)


def _format_notes_concise(notes: list[NoteModel]) -> str:
    if not notes:
        return "0 notes"
    return "\n".join([f"{len(notes)} note(s)", *(_format_note_line(n) for n in notes)])


def _format_notes_markdown(notes: list[NoteModel], title: str = "Notes") -> str:
    """Format a list of notes as markdown."""
    if not notes:
        return f"# {title}\n\nNo notes found."

    lines = [f"# {title}", f"*{len(notes)} note(s)*", ""]
    for note in notes:
        lines.append(_format_note_markdown(note))
        lines.append("")
    return "\n".join(lines).rstrip()


def _format_comment_line(comment: CommentModel) -> str:
    stamp = comment.created_at.strftime("%Y-%m-%d %H:%M")
    author = comment.author or "anonymous"
    return f"[{stamp}] {author}: {comment.content}"


def _format_template_markdown(template: TemplateModel) -> str:
    line = f"- **[{template.id}] {template.name}** ({template.task_count} task(s))"
    if template.description:
        line += f": {template.description}"
    return line


def _format_search_markdown(results: SearchResults) -> str:
    """Format global search results grouped by entity type."""
    lines = [f"# Search: {results.query}", f"*{results.total} result(s)*"]

    if results.projects:
        lines += ["", "## Projects"]
        lines.extend(_format_project_markdown(project) for project in results.projects)
    if results.epics:
        lines += ["", "## Epics"]
        lines.extend(_format_epic_markdown(epic) for epic in results.epics)
    if results.tasks:
        lines += ["", "## Tasks"]
        for task in results.tasks:
            line = f"- {_format_task_concise(task)}"
            if task.epic_name:
                line += f" in {task.epic_name}"
            lines.append(line)
    if results.notes:
        lines += ["", "## Notes"]
        lines.extend(f"- {_format_note_line(note)}" for note in results.notes)

    if not results.total:
        lines += ["", "No matches found."]
    return "\n".join(lines)
