"""Task template models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from tracker_mcp.enums import Priority


class TemplateTask(BaseModel):
    """
    A task definition inside a template.

    ``title`` and ``description`` may contain ``{variable}`` placeholders that
    are filled in when the template is applied.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True, str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    priority: Priority = Priority.MEDIUM
    estimated_hours: float | None = Field(default=None, ge=0)
    tags: list[str] = Field(default_factory=list)


class TemplateModel(BaseModel):
    """A named, reusable set of task definitions."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str | None = None
    tasks: list[TemplateTask] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @property
    def task_count(self) -> int:
        return len(self.tasks)
