"""Rich renderables for the matrix, daily checklists and analytics."""

from __future__ import annotations

from datetime import date

from rich.console import Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from eisen.analytics import (
    GlobalAnalytics,
    heatmap_intensity,
    heatmap_level,
    summarize,
    year_weeks,
)
from eisen.daily import date_key, is_day_completed
from eisen.models import PRIORITIES, QUADRANT_LABELS, Priority, Task
from eisen.store import TaskStore

# Border colour per quadrant
QUADRANT_STYLES: dict[str, str] = {
    "urgent-important": "red",
    "unurgent-important": "cyan",
    "urgent-unimportant": "yellow",
    "unurgent-unimportant": "dim",
}

# Heatmap cell style per shading level (0 = nothing recorded)
HEATMAP_STYLES = ("grey23", "green4", "green3", "green1", "bold bright_green")
HEATMAP_CELL = "■"
DAY_LABELS = ("Mon", "", "Wed", "", "Fri", "", "Sun")

SHORT_ID_LENGTH = 8


def short_id(task_id: str) -> str:
    return task_id[:SHORT_ID_LENGTH]


def build_quadrant(
    store: TaskStore,
    priority: Priority,
    show_completed: bool = True,
    today: date | None = None,
) -> Panel:
    """Build the panel listing one quadrant in order.

    Index numbers are positions in the quadrant, which is what ``eisen move``
    expects as a destination.
    """
    key = date_key(today or date.today())
    lines: list[Text] = []

    for index, task in enumerate(store.by_priority(priority)):
        if task.is_daily:
            done = is_day_completed(task, key)
        else:
            done = task.is_completed
        if done and not show_completed:
            continue

        line = Text()
        line.append(f"{index:>2} ", style="dim")
        line.append("✓ " if done else "○ ", style="green" if done else "white")
        line.append(short_id(task.id), style="cyan")
        line.append(" ")
        line.append(task.title, style="strike dim" if done else "bold")
        if task.is_daily:
            line.append("  daily", style="magenta")
        lines.append(line)

    if not lines:
        lines.append(Text("No tasks", style="dim"))

    return Panel(
        Group(*lines),
        title=f"[bold]{QUADRANT_LABELS[priority]}[/bold] [dim]{priority}[/dim]",
        border_style=QUADRANT_STYLES[priority],
    )


def build_matrix(
    store: TaskStore,
    show_completed: bool = True,
    today: date | None = None,
) -> Table:
    """Build the 2x2 Eisenhower matrix."""
    grid = Table.grid(expand=True, padding=(0, 1))
    grid.add_column(ratio=1)
    grid.add_column(ratio=1)

    panels = [build_quadrant(store, p, show_completed, today) for p in PRIORITIES]
    grid.add_row(panels[0], panels[1])
    grid.add_row(panels[2], panels[3])
    return grid


def build_checklist(task: Task, today: date | None = None) -> Panel:
    """Build today's sub-task checklist for a daily task."""
    key = date_key(today or date.today())
    progress = task.daily_progress.get(key)
    checked = set(progress.completed_sub_tasks) if progress else set()

    lines: list[Text] = []
    for sub in task.sub_tasks:
        line = Text()
        if sub.id in checked:
            line.append("  [x] ", style="green")
        else:
            line.append("  [ ] ", style="dim")
        line.append(short_id(sub.id), style="cyan")
        line.append(f" {sub.title}")
        lines.append(line)

    total = len(task.sub_tasks)
    done = sum(1 for sub in task.sub_tasks if sub.id in checked)
    header = Text()
    if is_day_completed(task, key):
        header.append("Done today", style="green bold")
    else:
        header.append("Not done", style="yellow")
    if total:
        header.append(f"  {done}/{total}", style="dim")
    if progress is not None and progress.notes:
        lines.append(Text(f"  {progress.notes}", style="italic dim"))

    return Panel(
        Group(header, *lines),
        title=f"[bold]{escape(task.title)}[/bold] [dim]{short_id(task.id)}[/dim]",
        border_style="magenta",
    )


def build_summary(analytics: GlobalAnalytics) -> Text:
    """Build the one-line summary across all daily tasks."""
    text = Text()
    text.append("Today: ", style="dim")
    text.append(f"{analytics.today_completed} / {analytics.total_tasks}", style="bold")
    text.append("   Total completions: ", style="dim")
    text.append(str(analytics.total_completions), style="bold")
    return text


def build_task_stats(task: Task, today: date | None = None) -> Table:
    """Build the analytics table for one daily task."""
    stats = summarize(task, today)

    table = Table(title=escape(task.title), show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Current streak", str(stats.current_streak))
    table.add_row("Best streak", str(stats.best_streak))
    table.add_row("This week", f"{stats.this_week}/7")
    table.add_row("Total completed", str(stats.total_completed))
    table.add_row("Today", "[green]✓[/green]" if stats.is_today_done else "[dim]✗[/dim]")
    return table


def build_heatmap(task: Task, today: date | None = None) -> Panel:
    """Build the year-to-date heatmap for one daily task.

    Rows are weekdays (Monday first), columns are weeks of the current year.
    Future days are left blank.
    """
    if today is None:
        today = date.today()

    weeks = year_weeks(today)
    rows: list[Text] = []
    for weekday in range(7):
        row = Text()
        row.append(f"{DAY_LABELS[weekday]:<4}", style="dim")
        for week in weeks:
            day = week[weekday]
            if day > today:
                row.append(" ")
                continue
            level = heatmap_level(heatmap_intensity(task, date_key(day)))
            style = HEATMAP_STYLES[level]
            if day == today:
                style += " underline"
            row.append(HEATMAP_CELL, style=style)
        rows.append(row)

    return Panel(
        Group(*rows),
        title=f"[bold]{today.year} Activity[/bold] [dim]{escape(task.title)}[/dim]",
        border_style="dim",
    )
