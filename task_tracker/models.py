"""Row shapes for the applications and tasks tables."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, field_validator


class TaskType(str, Enum):
    CALL = "call"
    EMAIL = "email"
    REVIEW = "review"


class TaskStatus(str, Enum):
    OPEN = "open"
    COMPLETED = "completed"


TASK_TYPES: list[str] = [t.value for t in TaskType]


def _id_to_str(value: object) -> object:
    if value is None or isinstance(value, str):
        return value
    return str(value)


class Application(BaseModel):
    """Read-only here; only ``tenant_id`` matters to task creation."""

    id: str | None = None
    tenant_id: str

    model_config = {"extra": "ignore"}

    @field_validator("id", "tenant_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: object) -> object:
        return _id_to_str(value)


class Task(BaseModel):
    id: str
    tenant_id: str | None = None
    related_id: str
    type: str
    due_at: datetime
    title: str | None = None
    status: str = TaskStatus.OPEN.value

    model_config = {"extra": "ignore"}

    @field_validator("id", "related_id", "tenant_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: object) -> object:
        return _id_to_str(value)

    @field_validator("due_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Stores hand back UTC; SQLite drops the offset on the way out.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED.value

    def __repr__(self) -> str:
        return f"<Task {self.id!r} {self.status}>"
