"""Pytest configuration and fixtures for tracker-mcp tests."""

from datetime import datetime, timedelta, timezone

import pytest

from tracker_mcp.engine.service import TrackerService
from tracker_mcp.server import bind_service
from tracker_mcp.store.database import Database


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock():
    """A controllable clock starting at 2025-03-03 09:00 UTC."""
    return FakeClock()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "tracker.db"


@pytest.fixture
def db(db_path, clock):
    """A fresh on-disk tracker database using the fake clock."""
    database = Database.open(db_path, busy_timeout_ms=200, clock=clock)
    yield database
    database.close()


@pytest.fixture
def service(db):
    """A service on the temporary database, bound for the MCP tools."""
    svc = TrackerService(db)
    bind_service(svc)
    yield svc
    bind_service(None)


@pytest.fixture
def project(service):
    return service.create_project({"name": "Apollo", "description": "Moon programme"})


@pytest.fixture
def epic(service, project):
    return service.create_epic(project.id, {"name": "Launch"})


@pytest.fixture
def make_task(service, epic):
    """Factory creating tasks in the seeded epic: make_task("Title", depends_on=[...], **fields)."""

    def _make(title, depends_on=None, **fields):
        return service.create_task(epic.id, {"title": title, **fields}, depends_on)

    return _make
