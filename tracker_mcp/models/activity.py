"""Activity log entry model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from tracker_mcp.enums import ActivityAction, EntityType


class ActivityEntry(BaseModel):
    """An immutable fact about one field-level change."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: int
    entity_type: EntityType
    entity_id: int
    action: ActivityAction
    field_name: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    summary: str | None = None
    created_at: datetime
