"""FastMCP server initialization for Tracker MCP."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from mcp.server.fastmcp import FastMCP

from tracker_mcp.config import get_settings
from tracker_mcp.engine.service import TrackerService
from tracker_mcp.errors import StoreUnavailable
from tracker_mcp.store.database import Database

logger = logging.getLogger(__name__)

_service: TrackerService | None = None


def bind_service(service: TrackerService | None) -> None:
    """Make ``service`` the one the tools talk to (None unbinds)."""
    global _service
    _service = service


def get_service() -> TrackerService:
    """Return the bound service, or fail if the database was never opened."""
    if _service is None:
        raise StoreUnavailable("Tracker database is not open")
    return _service


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Open the database for the lifetime of the server and close it on shutdown."""
    settings = get_settings()
    db = Database.open(settings.db_path, busy_timeout_ms=settings.busy_timeout_ms)
    service = TrackerService(db)
    bind_service(service)
    logger.info("Tracker database opened at %s", settings.db_path)
    try:
        yield {"service": service}
    finally:
        bind_service(None)
        db.close()
        logger.info("Tracker database closed")


# Initialize the MCP server
mcp = FastMCP("tracker_mcp", lifespan=lifespan)


def configure_logging(level: str) -> None:
    """Send log records to stderr; stdout belongs to the MCP transport."""
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run() -> None:
    """Run the MCP server."""
    configure_logging(get_settings().log_level)
    mcp.run()

