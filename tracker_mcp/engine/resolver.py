"""Status resolver: the pure blocking rule."""

from __future__ import annotations

from tracker_mcp.enums import TaskStatus


def resolve_status(current: TaskStatus | str, unmet_count: int) -> TaskStatus | None:
    """
    Decide the status a task with at least one predecessor should move to.

    Only ever blocks or unblocks: a task with unmet prerequisites that is not
    already blocked or done becomes ``blocked``; a blocked task whose
    prerequisites are all done returns to ``todo``. Progress past ``todo`` is
    left to callers.

    Args:
        current: The task's current status
        unmet_count: Number of predecessors not yet done

    Returns:
        The new status, or None when the status should stay as it is
    """
    status = TaskStatus(current)
    if unmet_count > 0 and status not in (TaskStatus.BLOCKED, TaskStatus.DONE):
        return TaskStatus.BLOCKED
    if unmet_count == 0 and status == TaskStatus.BLOCKED:
        return TaskStatus.TODO
    return None
