"""Per-day progress recording for daily tasks.

All functions are pure: they take a Task and return a new Task, leaving the
input and every other day of its progress map untouched.
"""

from __future__ import annotations

from datetime import date

from eisen.models import DailyProgress, Task


def date_key(day: date) -> str:
    """Format a date as a progress map key (YYYY-MM-DD)."""
    return day.isoformat()


def today_key(today: date | None = None) -> str:
    """Return the progress map key for today."""
    return date_key(today or date.today())


def covers_all_sub_tasks(task: Task, completed: list[str] | set[str]) -> bool:
    """Check whether ``completed`` holds every sub-task id of ``task``.

    A task without sub-tasks is never covered.
    """
    ids = task.sub_task_ids
    if not ids:
        return False
    done = set(completed)
    return all(sub_id in done for sub_id in ids)


def is_day_completed(task: Task, key: str) -> bool:
    """Derive whether a day counts as done.

    True when the stored flag is set, or when every sub-task is checked for
    that day. Evaluated on every read so it cannot drift from the map.
    """
    progress = task.daily_progress.get(key)
    if progress is None:
        return False
    return progress.is_completed or covers_all_sub_tasks(task, progress.completed_sub_tasks)


def record_day(task: Task, key: str, progress: DailyProgress) -> Task:
    """Insert or replace the progress entry for ``key``.

    Args:
        task: The task to update.
        key: Date key (YYYY-MM-DD).
        progress: The new record for that day.

    Returns:
        A new Task with the entry replaced. A record whose checked sub-tasks
        cover the whole checklist is stored as completed.
    """
    if not progress.is_completed and covers_all_sub_tasks(task, progress.completed_sub_tasks):
        progress = progress.model_copy(update={"is_completed": True})

    updated = dict(task.daily_progress)
    updated[key] = progress
    return task.model_copy(update={"daily_progress": updated})


def toggle_sub_task(task: Task, key: str, sub_task_id: str, checked: bool) -> Task:
    """Check or uncheck a sub-task for one day.

    The day's completion is re-derived from the checklist: complete only
    when the task has sub-tasks and all of them are checked.
    """
    existing = task.daily_progress.get(key)
    completed = list(existing.completed_sub_tasks) if existing else []

    if checked:
        if sub_task_id not in completed:
            completed.append(sub_task_id)
    else:
        completed = [sub_id for sub_id in completed if sub_id != sub_task_id]

    progress = DailyProgress(
        is_completed=covers_all_sub_tasks(task, completed),
        completed_sub_tasks=completed,
        notes=existing.notes if existing else "",
    )
    return record_day(task, key, progress)


def complete_day(task: Task, key: str) -> Task:
    """Mark every sub-task and the day itself as completed."""
    existing = task.daily_progress.get(key)
    progress = DailyProgress(
        is_completed=True,
        completed_sub_tasks=task.sub_task_ids,
        notes=existing.notes if existing else "",
    )
    return record_day(task, key, progress)


def set_day_notes(task: Task, key: str, notes: str) -> Task:
    """Replace the notes for one day, keeping its completion state."""
    existing = task.daily_progress.get(key) or DailyProgress()
    return record_day(task, key, existing.model_copy(update={"notes": notes}))
