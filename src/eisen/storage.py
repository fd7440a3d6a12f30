"""JSON blob store for the task collection.

Each key maps to one file, ``<directory>/<key>.json``, holding the whole
serialised value. There is no schema versioning: a blob that cannot be read
back is treated as missing data rather than an error.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from eisen.config import EISEN_DIR, TASKS_KEY
from eisen.models import Task
from eisen.store import Snapshot, TaskStore

logger = logging.getLogger(__name__)

_TASK_LIST = TypeAdapter(list[Task])


class BlobStore:
    """Key-value store of JSON documents in a directory."""

    def __init__(self, directory: str | Path = EISEN_DIR) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def load(self, key: str) -> Any | None:
        """Load the value stored under ``key``.

        Returns:
            The decoded JSON value, or None when the blob is missing or
            cannot be decoded.
        """
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            with open(path) as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Failed to read blob %s; treating as empty.", path, exc_info=True)
            return None

    def save(self, key: str, value: Any) -> None:
        """Write ``value`` under ``key``, replacing any previous blob."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(value, f, indent=2)

    def load_tasks(self, key: str = TASKS_KEY) -> list[Task]:
        """Load the task collection, falling back to an empty one."""
        data = self.load(key)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Task blob %r is not a list; starting empty.", key)
            return []

        try:
            return _TASK_LIST.validate_python(data)
        except ValidationError as e:
            logger.warning(
                "Task blob %r is malformed (%s errors); starting empty.", key, e.error_count()
            )
            return []

    def save_tasks(self, tasks: Snapshot | list[Task], key: str = TASKS_KEY) -> None:
        """Write the task collection with camelCase record keys."""
        self.save(key, [task.to_record() for task in tasks])

    def attach(self, store: TaskStore, key: str = TASKS_KEY) -> Callable[[], None]:
        """Save every new snapshot of ``store`` under ``key``.

        Returns:
            A callable that stops saving.
        """
        return store.subscribe(lambda tasks: self.save_tasks(tasks, key))


def open_store(blobs: BlobStore, key: str = TASKS_KEY, **kwargs: Any) -> TaskStore:
    """Load a TaskStore from ``blobs`` and keep it saved there."""
    store = TaskStore(blobs.load_tasks(key), **kwargs)
    blobs.attach(store, key)
    logger.debug("Opened task store key=%s total=%s", key, len(store.tasks))
    return store
