"""Enums for Tracker MCP."""

from enum import Enum


class ResponseFormat(str, Enum):
    """Output format for tool responses."""

    CONCISE = "concise"  # Minimal output for chaining
    MARKDOWN = "markdown"  # Human-readable (default)
    JSON = "json"  # Machine-readable with all fields


class TaskStatus(str, Enum):
    """Workflow status of a task."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"
    BLOCKED = "blocked"


class Priority(str, Enum):
    """Priority levels shared by epics and tasks."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ProjectStatus(str, Enum):
    """Lifecycle status of a project."""

    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class EpicStatus(str, Enum):
    """Lifecycle status of an epic."""

    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SubtaskStatus(str, Enum):
    """Checklist status of a subtask."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class EntityType(str, Enum):
    """Entities that appear in the activity log."""

    PROJECT = "project"
    EPIC = "epic"
    TASK = "task"
    SUBTASK = "subtask"
    NOTE = "note"
    COMMENT = "comment"
    TEMPLATE = "template"


class ActivityAction(str, Enum):
    """Kinds of activity log entries."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    STATUS_CHANGED = "status_changed"


class NoteType(str, Enum):
    """Kinds of notes."""

    GENERAL = "general"
    DECISION = "decision"
    CONTEXT = "context"
    MEETING = "meeting"
    TECHNICAL = "technical"
    BLOCKER = "blocker"
    PROGRESS = "progress"
    RELEASE = "release"


class LinkableType(str, Enum):
    """Entities a note can be linked to."""

    PROJECT = "project"
    EPIC = "epic"
    TASK = "task"


class SearchableType(str, Enum):
    """Entities covered by the global search."""

    PROJECT = "project"
    EPIC = "epic"
    TASK = "task"
    NOTE = "note"
