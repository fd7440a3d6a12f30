"""Shared fixtures for eisen tests."""

from __future__ import annotations

import itertools
import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from eisen.models import SubTask, TaskDraft
from eisen.store import TaskStore


class FakeClock:
    """Epoch-millisecond clock that advances by one on every call."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now


@pytest.fixture
def temp_project(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary project directory and change to it."""
    original_dir = os.getcwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(original_dir)


@pytest.fixture
def temp_eisen_dir(temp_project: Path) -> Path:
    """Create a temporary .eisen directory."""
    eisen_dir = temp_project / ".eisen"
    eisen_dir.mkdir()
    return eisen_dir


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def id_factory() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"task-{next(counter)}"


@pytest.fixture
def store(clock: FakeClock, id_factory: Callable[[], str]) -> TaskStore:
    """An empty store with deterministic ids and timestamps."""
    return TaskStore(clock=clock, id_factory=id_factory)


@pytest.fixture
def make_draft() -> Callable[..., TaskDraft]:
    """Build a TaskDraft with sensible defaults."""

    def _make(title: str = "Write report", **kwargs: object) -> TaskDraft:
        return TaskDraft(title=title, **kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def daily_draft() -> TaskDraft:
    """A daily task draft with two sub-tasks."""
    return TaskDraft(
        title="Morning routine",
        priority="unurgent-important",
        is_daily=True,
        sub_tasks=[SubTask(id="sub-a", title="Stretch"), SubTask(id="sub-b", title="Read")],
    )


@pytest.fixture
def sample_tasks_data() -> list[dict]:
    """Stored task records as written by the web app."""
    return [
        {
            "id": "a1",
            "title": "Pay rent",
            "priority": "urgent-important",
            "isCompleted": False,
            "order": 0,
            "createdAt": 1709000000000,
            "updatedAt": 1709000000000,
        },
        {
            "id": "b2",
            "title": "Plan trip",
            "description": "Book flights",
            "priority": "unurgent-important",
            "isCompleted": True,
            "order": 3,
            "createdAt": 1709000000001,
            "updatedAt": 1709000000005,
        },
        {
            "id": "c3",
            "title": "Workout",
            "priority": "unurgent-important",
            "isCompleted": False,
            "createdAt": 1709000000002,
            "updatedAt": 1709000000002,
            "isDaily": True,
            "subTasks": [{"id": "s1", "title": "Run"}, {"id": "s2", "title": "Stretch"}],
            "dailyProgress": {
                "2024-03-01": {"isCompleted": True, "completedSubTasks": ["s1", "s2"], "notes": ""},
                "2024-03-02": {"isCompleted": False, "completedSubTasks": ["s1"], "notes": "sore"},
            },
        },
    ]
