"""Tests for best-effort fan-out to successors."""

import pytest

from tracker_mcp.enums import TaskStatus
from tracker_mcp.errors import ConcurrencyTimeout, NotFoundError, StoreUnavailable


@pytest.fixture
def fan_out(make_task):
    """A with three blocked dependents."""
    a = make_task("A")
    dependents = [make_task(f"B{n}", depends_on=[a.id]) for n in range(3)]
    return a, dependents


def _patch_reevaluate(monkeypatch, service, failures):
    original = service.reevaluation.reevaluate

    def reevaluate(task_id):
        if task_id in failures:
            raise failures[task_id]
        return original(task_id)

    monkeypatch.setattr(service.reevaluation, "reevaluate", reevaluate)


class TestCascadeFailures:
    """Tests for cascade reporting when a successor cannot be reevaluated."""

    def test_failure_is_reported_and_others_continue(self, service, fan_out, monkeypatch):
        a, (b0, b1, b2) = fan_out
        _patch_reevaluate(monkeypatch, service, {b1.id: ConcurrencyTimeout("busy", entity_id=b1.id)})

        result = service.update_task(a.id, {"status": "done"})

        assert result.task.status == TaskStatus.DONE
        assert [t.id for t in result.cascade.changed] == [b0.id, b2.id]
        assert not result.cascade.ok
        [failure] = result.cascade.failed
        assert (failure.task_id, failure.kind) == (b1.id, "concurrency_timeout")
        assert service.get_task(b0.id).status == TaskStatus.TODO
        assert service.get_task(b1.id).status == TaskStatus.BLOCKED

    def test_vanished_successor_is_skipped(self, service, fan_out, monkeypatch):
        a, (b0, b1, b2) = fan_out
        _patch_reevaluate(monkeypatch, service, {b0.id: NotFoundError("task", b0.id)})

        result = service.update_task(a.id, {"status": "done"})

        assert result.cascade.skipped == [b0.id]
        assert result.cascade.ok
        assert [t.id for t in result.cascade.changed] == [b1.id, b2.id]

    def test_store_unavailable_aborts(self, service, fan_out, monkeypatch):
        """A fatal store error is not swallowed, but the completion itself is committed."""
        a, (b0, _, _) = fan_out
        _patch_reevaluate(monkeypatch, service, {b0.id: StoreUnavailable("gone")})

        with pytest.raises(StoreUnavailable):
            service.update_task(a.id, {"status": "done"})
        monkeypatch.undo()
        assert service.get_task(a.id).status == TaskStatus.DONE

    def test_direct_reevaluate_of_missing_task(self, service):
        with pytest.raises(NotFoundError):
            service.reevaluation.reevaluate(4040)

    def test_unexpected_error_is_reported_and_others_continue(self, service, fan_out, monkeypatch):
        """A failure outside the tracker error taxonomy is still reported against its successor."""
        a, (b0, b1, b2) = fan_out
        _patch_reevaluate(monkeypatch, service, {b0.id: RuntimeError("disk gremlin")})

        result = service.update_task(a.id, {"status": "done"})

        assert result.task.status == TaskStatus.DONE
        assert [t.id for t in result.cascade.changed] == [b1.id, b2.id]
        [failure] = result.cascade.failed
        assert (failure.task_id, failure.kind, failure.message) == (b0.id, "unexpected_error", "disk gremlin")
        monkeypatch.undo()
        assert service.get_task(a.id).status == TaskStatus.DONE
        assert service.get_task(b0.id).status == TaskStatus.BLOCKED

    def test_unexpected_error_looking_up_successors(self, service, fan_out, monkeypatch):
        a, _ = fan_out

        def broken(task_id):
            raise KeyError("index")

        monkeypatch.setattr(service.graph, "successors_of", broken)
        result = service.update_task(a.id, {"status": "done"})

        [failure] = result.cascade.failed
        assert (failure.task_id, failure.kind) == (a.id, "unexpected_error")
        assert result.cascade.changed == []
