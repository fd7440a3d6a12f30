"""Streak and heatmap analytics for daily tasks.

Streak and weekly figures only count days whose ``is_completed`` flag is set.
A day with a partially checked sub-task list has a fractional heatmap
intensity but never extends a streak. Whether today is done is derived the
same way as in the matrix view, from the flag or a fully checked list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, timedelta

from eisen.daily import date_key, is_day_completed
from eisen.models import DailyProgress, Task

logger = logging.getLogger(__name__)

ProgressMap = Mapping[str, DailyProgress]


@dataclass(frozen=True)
class TaskAnalytics:
    """Aggregated figures for a single daily task."""

    total_completed: int
    current_streak: int
    best_streak: int
    this_week: int
    is_today_done: bool


@dataclass(frozen=True)
class GlobalAnalytics:
    """Figures across every daily task."""

    total_completions: int
    today_completed: int
    total_tasks: int


def _is_done(progress_map: ProgressMap, key: str) -> bool:
    progress = progress_map.get(key)
    return progress is not None and progress.is_completed


def _completed_dates(progress_map: ProgressMap) -> list[date]:
    """Parse the keys of completed days, skipping malformed ones."""
    dates: list[date] = []
    for key, progress in progress_map.items():
        if not progress.is_completed:
            continue
        try:
            dates.append(date.fromisoformat(key))
        except ValueError:
            logger.debug("Ignoring malformed progress key %r", key)
    return dates


def total_completed(progress_map: ProgressMap | None) -> int:
    """Count every completed day in the map."""
    if not progress_map:
        return 0
    return sum(1 for progress in progress_map.values() if progress.is_completed)


def current_streak(progress_map: ProgressMap | None, today: date | None = None) -> int:
    """Count consecutive completed days ending today or yesterday.

    An incomplete ``today`` neither breaks nor extends the streak: the walk
    then starts from the day before.
    """
    if not progress_map:
        return 0
    if today is None:
        today = date.today()

    check = today
    if not _is_done(progress_map, date_key(check)):
        check = today - timedelta(days=1)

    streak = 0
    while _is_done(progress_map, date_key(check)):
        streak += 1
        check -= timedelta(days=1)
    return streak


def best_streak(progress_map: ProgressMap | None) -> int:
    """Return the longest run of calendar-consecutive completed days."""
    if not progress_map:
        return 0

    dates = sorted(_completed_dates(progress_map))
    if not dates:
        return 0

    best = 1
    run = 1
    for previous, current in zip(dates, dates[1:]):
        if (current - previous).days == 1:
            run += 1
            best = max(best, run)
        else:
            run = 1
    return best


def week_bounds(today: date) -> tuple[date, date]:
    """Return the Monday and Sunday of the week containing ``today``."""
    monday = today - timedelta(days=today.weekday())
    return monday, monday + timedelta(days=6)


def this_week_count(progress_map: ProgressMap | None, today: date | None = None) -> int:
    """Count completed days in the Monday-Sunday week containing ``today``."""
    if not progress_map:
        return 0
    if today is None:
        today = date.today()

    monday, _ = week_bounds(today)
    days = (monday + timedelta(days=offset) for offset in range(7))
    return sum(1 for day in days if _is_done(progress_map, date_key(day)))


def heatmap_intensity(task: Task, key: str) -> float:
    """Return the display shade (0.0-1.0) of one day.

    1.0 for a completed day, otherwise the fraction of the task's sub-tasks
    checked that day, otherwise 0.0.
    """
    progress = task.daily_progress.get(key)
    if progress is None:
        return 0.0
    if progress.is_completed:
        return 1.0

    ids = task.sub_task_ids
    if not ids:
        return 0.0
    checked = set(progress.completed_sub_tasks)
    # Ids of removed sub-tasks may linger in old records
    done = sum(1 for sub_id in ids if sub_id in checked)
    return done / len(ids)


def heatmap_level(intensity: float) -> int:
    """Bucket an intensity into a shading level from 0 (empty) to 4 (full)."""
    if intensity <= 0:
        return 0
    if intensity <= 0.25:
        return 1
    if intensity <= 0.5:
        return 2
    if intensity <= 0.75:
        return 3
    return 4


def year_weeks(today: date | None = None) -> list[list[date]]:
    """Lay out the calendar year of ``today`` as Monday-aligned week columns.

    The grid starts on the Monday on or before January 1st and ends on the
    Sunday on or after December 31st, so every column holds seven days.
    """
    if today is None:
        today = date.today()

    start, _ = week_bounds(date(today.year, 1, 1))
    _, end = week_bounds(date(today.year, 12, 31))

    weeks: list[list[date]] = []
    day = start
    while day <= end:
        weeks.append([day + timedelta(days=offset) for offset in range(7)])
        day += timedelta(days=7)
    return weeks


def summarize(task: Task, today: date | None = None) -> TaskAnalytics:
    """Compute the analytics card for one task."""
    if today is None:
        today = date.today()

    progress_map = task.daily_progress
    return TaskAnalytics(
        total_completed=total_completed(progress_map),
        current_streak=current_streak(progress_map, today),
        best_streak=best_streak(progress_map),
        this_week=this_week_count(progress_map, today),
        is_today_done=is_day_completed(task, date_key(today)),
    )


def summarize_all(tasks: Iterable[Task], today: date | None = None) -> GlobalAnalytics:
    """Compute the summary bar across all daily tasks."""
    if today is None:
        today = date.today()

    key = date_key(today)
    daily = [task for task in tasks if task.is_daily]
    return GlobalAnalytics(
        total_completions=sum(total_completed(task.daily_progress) for task in daily),
        today_completed=sum(1 for task in daily if is_day_completed(task, key)),
        total_tasks=len(daily),
    )
