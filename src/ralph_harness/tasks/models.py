"""Task models shared by the tracker and checklist backends."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskSource(str, Enum):
    """Which backend currently supplies tasks."""

    BEADS = "beads"
    FIX_PLAN = "fix_plan.md"
    NONE = "none"

    def __str__(self) -> str:
        return self.value


class Task(BaseModel):
    """A unit of work as reported by the active task source."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Tracker id, or the checklist sentinel.")
    title: str = Field(default="", description="Free-text task title.")
    source: TaskSource = Field(default=TaskSource.BEADS)
    priority: int | None = Field(
        default=None,
        description="Tracker priority; lower is more urgent. Absent for checklist tasks.",
    )

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> str:
        if value is None:
            raise ValueError("Task id must not be empty")
        normalized = str(value).strip()
        if not normalized:
            raise ValueError("Task id must not be empty")
        return normalized

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)


__all__ = ["Task", "TaskSource"]
