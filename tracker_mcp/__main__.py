"""Allow ``python -m tracker_mcp``."""

from tracker_mcp.server import run

run()
