"""Task store and reordering engine.

The store holds the whole collection as an immutable snapshot. Every
operation builds a new tuple, leaves untouched tasks as the same objects,
and notifies subscribers only when something actually changed.

Misses are absorbed: updating or deleting an unknown id, or reordering with
a stale index, returns the collection unchanged instead of raising.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from eisen import daily
from eisen.models import DailyProgress, Priority, Task, TaskDraft, field_name, new_id

logger = logging.getLogger(__name__)

Snapshot = tuple[Task, ...]
Listener = Callable[[Snapshot], None]

# Fields that never change after creation
_IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def sort_by_order(tasks: Iterable[Task]) -> list[Task]:
    """Sort tasks ascending by order, keeping insertion order on ties."""
    return sorted(tasks, key=lambda t: t.order)


def _clamp(index: int, length: int) -> int:
    return max(0, min(index, length))


class TaskStore:
    """In-memory task collection with observer notifications.

    Operations are serialised with a re-entrant lock so a reorder always
    reads and rewrites a quadrant in one step, even from a threaded host.
    """

    def __init__(
        self,
        tasks: Iterable[Task] = (),
        *,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._tasks: Snapshot = tuple(tasks)
        self._clock = clock
        self._id_factory = id_factory
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()

    @property
    def tasks(self) -> Snapshot:
        """The current snapshot."""
        return self._tasks

    # ---- observers ----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with every new snapshot.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, tasks: Snapshot) -> Snapshot:
        self._tasks = tasks
        for listener in list(self._listeners):
            listener(tasks)
        return tasks

    # ---- reads ----

    def get(self, task_id: str) -> Task | None:
        """Get a task by ID."""
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def by_priority(self, priority: Priority) -> list[Task]:
        """Tasks of one quadrant, sorted by order."""
        return sort_by_order(t for t in self._tasks if t.priority == priority)

    def daily_tasks(self) -> list[Task]:
        """Tasks tracked per calendar day."""
        return [t for t in self._tasks if t.is_daily]

    # ---- mutations ----

    def create(self, draft: TaskDraft) -> Snapshot:
        """Append a new task at the end of its quadrant."""
        with self._lock:
            order = self._next_order(draft.priority)
            now = self._clock()

            task = Task(
                id=self._id_factory(),
                title=draft.title,
                description=draft.description,
                priority=draft.priority,
                is_completed=False,
                order=order,
                created_at=now,
                updated_at=now,
                is_daily=draft.is_daily,
                sub_tasks=[st.model_copy() for st in draft.sub_tasks],
            )
            logger.debug("Task created id=%s priority=%s order=%s", task.id, task.priority, order)
            return self._commit((*self._tasks, task))

    def update(self, task_id: str, fields: Mapping[str, Any]) -> Snapshot:
        """Merge fields into a task and refresh its updated_at.

        Field names may be attribute names or their camelCase aliases.
        ``id`` and ``created_at`` are ignored. Unknown ids are a no-op.
        A task moved to another quadrant goes to the end of it, like
        ``create``; ``order`` is taken as given only when passed explicitly.
        """
        with self._lock:
            changes: dict[str, Any] = {}
            for key, value in fields.items():
                name = field_name(key)
                if name is None or name in _IMMUTABLE_FIELDS:
                    continue
                changes[name] = value

            def apply(task: Task) -> Task:
                data = task.model_dump()
                data.update(changes)
                if data["priority"] != task.priority and "order" not in changes:
                    data["order"] = self._next_order(data["priority"])
                data["updated_at"] = self._clock()
                return Task.model_validate(data)

            return self._replace(task_id, apply)

    def delete(self, task_id: str) -> Snapshot:
        """Remove a task. Siblings keep their order values."""
        with self._lock:
            remaining = tuple(t for t in self._tasks if t.id != task_id)
            if len(remaining) == len(self._tasks):
                logger.debug("Delete ignored, unknown task id=%s", task_id)
                return self._tasks
            logger.debug("Task deleted id=%s", task_id)
            return self._commit(remaining)

    def toggle_completion(self, task_id: str) -> Snapshot:
        """Flip is_completed on a task."""
        with self._lock:
            return self._replace(
                task_id,
                lambda t: t.model_copy(
                    update={"is_completed": not t.is_completed, "updated_at": self._clock()}
                ),
            )

    def reorder(
        self,
        task_id: str,
        source_priority: Priority,
        dest_priority: Priority,
        source_index: int,
        dest_index: int,
    ) -> Snapshot:
        """Move a task within its quadrant or into another quadrant.

        Every task of the affected quadrant(s) gets its order rewritten to
        its new 0-based position. Tasks in other quadrants are untouched.

        Args:
            task_id: The task being moved.
            source_priority: Quadrant the task is dragged from.
            dest_priority: Quadrant the task is dropped into.
            source_index: Position of the task in the sorted source quadrant.
            dest_index: Drop position, clamped to the destination bounds.

        Returns:
            The new snapshot, or the unchanged one when the task at
            ``source_index`` is not ``task_id``.
        """
        with self._lock:
            source_list = self.by_priority(source_priority)

            if not 0 <= source_index < len(source_list) or source_list[source_index].id != task_id:
                logger.debug(
                    "Reorder ignored, stale position id=%s source=%s index=%s",
                    task_id,
                    source_priority,
                    source_index,
                )
                return self._tasks

            now = self._clock()
            replacements: dict[str, Task] = {}

            def rewrite(tasks: list[Task], priority: Priority) -> None:
                for position, task in enumerate(tasks):
                    if task.order != position or task.priority != priority:
                        replacements[task.id] = task.model_copy(
                            update={"order": position, "priority": priority, "updated_at": now}
                        )

            if source_priority == dest_priority:
                moved = source_list.pop(source_index)
                source_list.insert(_clamp(dest_index, len(source_list)), moved)
                rewrite(source_list, source_priority)
            else:
                dest_list = self.by_priority(dest_priority)
                moved = source_list.pop(source_index)
                dest_list.insert(_clamp(dest_index, len(dest_list)), moved)
                rewrite(source_list, source_priority)
                # Rewrites priority as well, so the moved task always changes
                rewrite(dest_list, dest_priority)

            if not replacements:
                return self._tasks

            logger.debug(
                "Task reordered id=%s %s[%s] -> %s[%s]",
                task_id,
                source_priority,
                source_index,
                dest_priority,
                dest_index,
            )
            return self._commit(tuple(replacements.get(t.id, t) for t in self._tasks))

    # ---- daily progress ----

    def record_day(self, task_id: str, key: str, progress: DailyProgress) -> Snapshot:
        """Store one day's progress for a task."""
        with self._lock:
            return self._replace_daily(task_id, lambda t: daily.record_day(t, key, progress))

    def toggle_sub_task(self, task_id: str, key: str, sub_task_id: str, checked: bool) -> Snapshot:
        """Check or uncheck a sub-task for one day."""
        with self._lock:
            return self._replace_daily(
                task_id, lambda t: daily.toggle_sub_task(t, key, sub_task_id, checked)
            )

    def complete_day(self, task_id: str, key: str) -> Snapshot:
        """Mark every sub-task of a day as done."""
        with self._lock:
            return self._replace_daily(task_id, lambda t: daily.complete_day(t, key))

    def set_day_notes(self, task_id: str, key: str, notes: str) -> Snapshot:
        """Replace one day's notes."""
        with self._lock:
            return self._replace_daily(task_id, lambda t: daily.set_day_notes(t, key, notes))

    # ---- helpers ----

    def _next_order(self, priority: Priority) -> int:
        """Order for a task appended to the end of a quadrant."""
        siblings = [t.order for t in self._tasks if t.priority == priority]
        return max(siblings) + 1 if siblings else 0

    def _replace(self, task_id: str, change: Callable[[Task], Task]) -> Snapshot:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                updated = change(task)
                return self._commit((*self._tasks[:index], updated, *self._tasks[index + 1 :]))

        logger.debug("Update ignored, unknown task id=%s", task_id)
        return self._tasks

    def _replace_daily(self, task_id: str, change: Callable[[Task], Task]) -> Snapshot:
        return self._replace(
            task_id, lambda t: change(t).model_copy(update={"updated_at": self._clock()})
        )
