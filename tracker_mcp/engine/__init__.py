"""Task dependency resolution engine and activity logging."""

from tracker_mcp.engine.audit import TRACKED_FIELDS, AuditLog, stringify
from tracker_mcp.engine.effort import EffortEstimator
from tracker_mcp.engine.entities import EntityStore
from tracker_mcp.engine.graph import DependencyGraph
from tracker_mcp.engine.reevaluation import ReevaluationEngine
from tracker_mcp.engine.resolver import resolve_status
from tracker_mcp.engine.service import TrackerService

__all__ = [
    "AuditLog",
    "DependencyGraph",
    "EffortEstimator",
    "EntityStore",
    "ReevaluationEngine",
    "TRACKED_FIELDS",
    "TrackerService",
    "resolve_status",
    "stringify",
]
