"""Task and daily progress models for eisen.

Attributes use snake_case in Python and serialise with the camelCase keys of
the stored collection (``isCompleted``, ``dailyProgress``...), so existing
``eisenhower-todos`` blobs load unchanged.
"""

from __future__ import annotations

import uuid
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

Priority = Literal[
    "urgent-important",
    "urgent-unimportant",
    "unurgent-important",
    "unurgent-unimportant",
]

# Display order of the matrix: do first, schedule, delegate, eliminate
PRIORITIES: tuple[Priority, ...] = (
    "urgent-important",
    "unurgent-important",
    "urgent-unimportant",
    "unurgent-unimportant",
)

QUADRANT_LABELS: dict[str, str] = {
    "urgent-important": "Do First",
    "unurgent-important": "Schedule",
    "urgent-unimportant": "Delegate",
    "unurgent-unimportant": "Eliminate",
}


def new_id() -> str:
    """Generate a fresh opaque identifier."""
    return str(uuid.uuid4())


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubTask(_CamelModel):
    """A checklist item of a daily task."""

    id: str = Field(default_factory=new_id)
    title: str


class DailyProgress(_CamelModel):
    """One calendar day's state for a daily task."""

    is_completed: bool = False
    completed_sub_tasks: list[str] = Field(default_factory=list)
    """Sub-task ids checked on that day. Treated as a set."""

    notes: str = ""

    @model_validator(mode="after")
    def _dedupe_sub_tasks(self) -> DailyProgress:
        if len(set(self.completed_sub_tasks)) != len(self.completed_sub_tasks):
            self.completed_sub_tasks = list(dict.fromkeys(self.completed_sub_tasks))
        return self


class Task(_CamelModel):
    """One actionable item in a quadrant."""

    id: str
    title: str
    description: str | None = None
    priority: Priority
    is_completed: bool = False
    order: int = 0
    created_at: int
    updated_at: int
    is_daily: bool = False
    sub_tasks: list[SubTask] = Field(default_factory=list)
    daily_progress: dict[str, DailyProgress] = Field(default_factory=dict)

    @property
    def sub_task_ids(self) -> list[str]:
        return [st.id for st in self.sub_tasks]

    def to_record(self) -> dict:
        """Convert to the stored camelCase record."""
        return self.model_dump(by_alias=True, exclude_none=True)


class TaskDraft(_CamelModel):
    """Validated input for creating a task.

    Mirrors the task form: title 3-100 characters, description up to 500,
    priority one of the four quadrants. Sub-tasks only apply to daily tasks
    and are dropped otherwise.
    """

    title: str = Field(min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    priority: Priority = "urgent-important"
    is_daily: bool = False
    sub_tasks: list[SubTask] = Field(default_factory=list)

    @model_validator(mode="after")
    def _drop_sub_tasks_unless_daily(self) -> TaskDraft:
        if not self.is_daily and self.sub_tasks:
            self.sub_tasks = []
        return self


def field_name(key: str) -> str | None:
    """Map a Task attribute name or camelCase alias to the attribute name."""
    if key in Task.model_fields:
        return key
    for name, info in Task.model_fields.items():
        if info.alias == key:
            return name
    return None
