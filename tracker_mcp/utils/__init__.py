"""Utility functions for Tracker MCP."""

from tracker_mcp.utils.formatters import (
    _format_activity_markdown,
    _format_dashboard_markdown,
    _format_error,
    _format_task_concise,
    _format_task_markdown,
    _format_tasks_concise,
    _format_tasks_markdown,
)
from tracker_mcp.utils.parsers import _encode_value, _parse_record, _parse_records

__all__ = [
    "_parse_record",
    "_parse_records",
    "_encode_value",
    "_format_error",
    "_format_task_concise",
    "_format_task_markdown",
    "_format_tasks_concise",
    "_format_tasks_markdown",
    "_format_activity_markdown",
    "_format_dashboard_markdown",
]
