"""Tests for the pure blocking rule."""

import pytest

from tracker_mcp.engine.resolver import resolve_status
from tracker_mcp.enums import TaskStatus


class TestResolveStatus:
    """Tests for resolve_status."""

    @pytest.mark.parametrize(
        "current",
        [TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.REVIEW],
    )
    def test_unmet_prerequisites_block(self, current):
        """Any active status with unmet prerequisites becomes blocked."""
        assert resolve_status(current, 1) == TaskStatus.BLOCKED
        assert resolve_status(current, 3) == TaskStatus.BLOCKED

    def test_already_blocked_stays(self):
        """A blocked task with unmet prerequisites is left alone."""
        assert resolve_status(TaskStatus.BLOCKED, 2) is None

    def test_done_is_never_overridden(self):
        """A finished task is not reblocked by new prerequisites."""
        assert resolve_status(TaskStatus.DONE, 1) is None
        assert resolve_status(TaskStatus.DONE, 0) is None

    def test_blocked_unblocks_to_todo(self):
        """Once every prerequisite is done a blocked task returns to todo."""
        assert resolve_status(TaskStatus.BLOCKED, 0) == TaskStatus.TODO

    @pytest.mark.parametrize(
        "current",
        [TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.REVIEW],
    )
    def test_never_advances_past_todo(self, current):
        """Met prerequisites never change an explicitly chosen status."""
        assert resolve_status(current, 0) is None

    def test_accepts_plain_strings(self):
        """Stored statuses arrive as plain strings."""
        assert resolve_status("in_progress", 1) == TaskStatus.BLOCKED
        assert resolve_status("blocked", 0) == TaskStatus.TODO
