"""CLI interface for eisen."""

from __future__ import annotations

import json
from datetime import date

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from eisen import __version__
from eisen.analytics import summarize_all
from eisen.config import CONFIG_FILE, EisenConfig
from eisen.daily import today_key
from eisen.dashboard import (
    build_checklist,
    build_heatmap,
    build_matrix,
    build_quadrant,
    build_summary,
    build_task_stats,
    short_id,
)
from eisen.logging_setup import setup_logging
from eisen.models import PRIORITIES, QUADRANT_LABELS, SubTask, Task, TaskDraft
from eisen.storage import BlobStore, open_store
from eisen.store import TaskStore

console = Console()

PRIORITY_CHOICE = click.Choice(list(PRIORITIES))


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="eisen")
@click.pass_context
def main(ctx: click.Context) -> None:
    """eisen - Eisenhower matrix tasks and daily habits.

    \b
    Quadrants:
      urgent-important       Do First
      unurgent-important     Schedule
      urgent-unimportant     Delegate
      unurgent-unimportant   Eliminate

    \b
    Examples:
      eisen add "Write report" -p urgent-important
      eisen add "Morning routine" --daily -s Stretch -s Read
      eisen move 3f2a unurgent-important 0
      eisen daily check 9c1e Stretch
    """
    ctx.ensure_object(dict)

    try:
        config = EisenConfig.load()
    except (ValidationError, json.JSONDecodeError) as e:
        console.print(f"[red]Invalid config:[/red] {CONFIG_FILE}\n{escape(str(e))}")
        ctx.exit(1)

    setup_logging(config.logging.level, config.logging.file)
    ctx.obj["config"] = config

    # If no subcommand, show help
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def _get_store(ctx: click.Context) -> TaskStore:
    """Open the task store once per invocation."""
    if "store" not in ctx.obj:
        config: EisenConfig = ctx.obj["config"]
        blobs = BlobStore(config.storage.directory)
        ctx.obj["store"] = open_store(blobs, config.storage.tasks_key)
    return ctx.obj["store"]


def _resolve_task(ctx: click.Context, store: TaskStore, ref: str) -> Task:
    """Find a task by full ID or unique ID prefix, exiting on failure."""
    task = store.get(ref)
    if task is not None:
        return task

    matches = [t for t in store.tasks if t.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]

    if not matches:
        console.print(f"[red]Task not found:[/red] {escape(ref)}")
    else:
        console.print(f"[red]Ambiguous task id:[/red] {escape(ref)} matches {len(matches)} tasks")
    ctx.exit(1)


def _resolve_daily_task(ctx: click.Context, store: TaskStore, ref: str) -> Task:
    task = _resolve_task(ctx, store, ref)
    if not task.is_daily:
        console.print(f"[red]Not a daily task:[/red] {escape(task.title)}")
        ctx.exit(1)
    return task


def _print_validation_error(e: ValidationError) -> None:
    for error in e.errors():
        field = ".".join(str(part) for part in error["loc"]) or "input"
        console.print(f"[red]Invalid {field}:[/red] {escape(error['msg'])}")


@main.command()
@click.argument("title")
@click.option("--description", "-d", help="Optional details")
@click.option(
    "--priority",
    "-p",
    type=PRIORITY_CHOICE,
    default="urgent-important",
    show_default=True,
    help="Quadrant for the task",
)
@click.option("--daily", is_flag=True, help="Track the task per calendar day")
@click.option("--sub-task", "-s", "sub_tasks", multiple=True, help="Checklist item (daily only)")
@click.pass_context
def add(
    ctx: click.Context,
    title: str,
    description: str | None,
    priority: str,
    daily: bool,
    sub_tasks: tuple[str, ...],
) -> None:
    """Create a task at the end of its quadrant."""
    try:
        draft = TaskDraft(
            title=title,
            description=description,
            priority=priority,  # type: ignore[arg-type]
            is_daily=daily,
            sub_tasks=[SubTask(title=s) for s in sub_tasks],
        )
    except ValidationError as e:
        _print_validation_error(e)
        ctx.exit(1)

    if sub_tasks and not daily:
        console.print("[yellow]Sub-tasks only apply to daily tasks; ignoring them.[/yellow]")

    store = _get_store(ctx)
    tasks = store.create(draft)
    created = tasks[-1]

    console.print(
        f'[green]Task "{escape(created.title)}" created![/green] '
        f"[dim]{short_id(created.id)} in {QUADRANT_LABELS[created.priority]}[/dim]"
    )


@main.command("list")
@click.option("--priority", "-p", type=PRIORITY_CHOICE, help="Show a single quadrant")
@click.option("--hide-completed", is_flag=True, help="Hide completed tasks")
@click.pass_context
def list_command(ctx: click.Context, priority: str | None, hide_completed: bool) -> None:
    """Show the Eisenhower matrix."""
    config: EisenConfig = ctx.obj["config"]
    store = _get_store(ctx)
    show_completed = config.display.show_completed and not hide_completed

    if priority:
        console.print(build_quadrant(store, priority, show_completed))  # type: ignore[arg-type]
    else:
        console.print(build_matrix(store, show_completed))


@main.command()
@click.argument("task_ref")
@click.option("--title", "-t", help="New title")
@click.option("--description", "-d", help="New description")
@click.option("--priority", "-p", type=PRIORITY_CHOICE, help="Move to another quadrant")
@click.pass_context
def edit(
    ctx: click.Context,
    task_ref: str,
    title: str | None,
    description: str | None,
    priority: str | None,
) -> None:
    """Edit a task's title, description or quadrant."""
    store = _get_store(ctx)
    task = _resolve_task(ctx, store, task_ref)

    fields = {
        name: value
        for name, value in (("title", title), ("description", description), ("priority", priority))
        if value is not None
    }
    if not fields:
        console.print("[dim]Nothing to change.[/dim]")
        return

    try:
        TaskDraft(
            title=fields.get("title", task.title),
            description=fields.get("description", task.description),
            priority=fields.get("priority", task.priority),
        )
    except ValidationError as e:
        _print_validation_error(e)
        ctx.exit(1)

    store.update(task.id, fields)
    console.print(f"[green]Updated:[/green] {short_id(task.id)}")


@main.command()
@click.argument("task_ref")
@click.pass_context
def delete(ctx: click.Context, task_ref: str) -> None:
    """Delete a task permanently."""
    store = _get_store(ctx)
    task = _resolve_task(ctx, store, task_ref)

    store.delete(task.id)
    console.print(f'[green]Task "{escape(task.title)}" deleted![/green]')


@main.command()
@click.argument("task_ref")
@click.pass_context
def toggle(ctx: click.Context, task_ref: str) -> None:
    """Toggle completion of a task."""
    store = _get_store(ctx)
    task = _resolve_task(ctx, store, task_ref)

    if task.is_daily:
        console.print(
            "[yellow]Daily tasks are tracked per day;[/yellow] "
            "use [cyan]eisen daily[/cyan] to record today."
        )

    store.toggle_completion(task.id)
    updated = store.get(task.id)
    if updated is not None and updated.is_completed:
        console.print(f"[green]Completed:[/green] {escape(task.title)}")
    else:
        console.print(f"[yellow]Reopened:[/yellow] {escape(task.title)}")


@main.command()
@click.argument("task_ref")
@click.argument("dest_priority", type=PRIORITY_CHOICE)
@click.argument("dest_index", type=int, required=False)
@click.pass_context
def move(ctx: click.Context, task_ref: str, dest_priority: str, dest_index: int | None) -> None:
    """Move a task to a position in a quadrant.

    DEST_INDEX is the 0-based position shown by `eisen list`; it defaults
    to the end of the quadrant.

    \b
    Examples:
      eisen move 3f2a urgent-important 0     # to the top of Do First
      eisen move 3f2a unurgent-important     # to the end of Schedule
    """
    store = _get_store(ctx)
    task = _resolve_task(ctx, store, task_ref)

    source_list = store.by_priority(task.priority)
    source_index = next(i for i, t in enumerate(source_list) if t.id == task.id)
    if dest_index is None:
        dest_index = len(store.by_priority(dest_priority))  # type: ignore[arg-type]

    before = store.tasks
    after = store.reorder(
        task.id,
        task.priority,
        dest_priority,  # type: ignore[arg-type]
        source_index,
        dest_index,
    )

    if after is before:
        console.print("[dim]Nothing to move.[/dim]")
        return

    moved = next(t for t in after if t.id == task.id)
    console.print(
        f"[green]Moved:[/green] {escape(task.title)} → "
        f"[cyan]{QUADRANT_LABELS[moved.priority]}[/cyan] #{moved.order}"
    )


@main.group(invoke_without_command=True)
@click.pass_context
def daily(ctx: click.Context) -> None:
    """Record today's progress on daily tasks."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(daily_list)


@daily.command("list")
@click.pass_context
def daily_list(ctx: click.Context) -> None:
    """Show today's checklist for every daily task."""
    store = _get_store(ctx)
    daily_tasks = store.daily_tasks()

    if not daily_tasks:
        console.print(
            "[dim]No daily tasks.[/dim] Create one with [cyan]eisen add TITLE --daily[/cyan]"
        )
        return

    for task in daily_tasks:
        console.print(build_checklist(task))


@daily.command("check")
@click.argument("task_ref")
@click.argument("sub_task_ref")
@click.option("--uncheck", is_flag=True, help="Uncheck instead of check")
@click.pass_context
def daily_check(ctx: click.Context, task_ref: str, sub_task_ref: str, uncheck: bool) -> None:
    """Check a sub-task for today (by ID prefix or title)."""
    store = _get_store(ctx)
    task = _resolve_daily_task(ctx, store, task_ref)

    wanted = sub_task_ref.casefold()
    matches = [
        sub
        for sub in task.sub_tasks
        if sub.id.startswith(sub_task_ref) or sub.title.casefold() == wanted
    ]
    if not matches:
        console.print(f"[red]Sub-task not found:[/red] {escape(sub_task_ref)}")
        ctx.exit(1)
    if len(matches) > 1:
        console.print(
            f"[red]Ambiguous sub-task:[/red] {escape(sub_task_ref)} matches {len(matches)} items"
        )
        ctx.exit(1)

    tasks = store.toggle_sub_task(task.id, today_key(), matches[0].id, not uncheck)
    updated = next(t for t in tasks if t.id == task.id)
    console.print(build_checklist(updated))


@daily.command("done")
@click.argument("task_ref")
@click.pass_context
def daily_done(ctx: click.Context, task_ref: str) -> None:
    """Mark all of today's sub-tasks complete."""
    store = _get_store(ctx)
    task = _resolve_daily_task(ctx, store, task_ref)

    store.complete_day(task.id, today_key())
    console.print(f"[green]Done for today:[/green] {escape(task.title)}")


@daily.command("note")
@click.argument("task_ref")
@click.argument("text")
@click.pass_context
def daily_note(ctx: click.Context, task_ref: str, text: str) -> None:
    """Set today's note for a daily task."""
    store = _get_store(ctx)
    task = _resolve_daily_task(ctx, store, task_ref)

    store.set_day_notes(task.id, today_key(), text)
    console.print(f"[green]Note saved:[/green] {escape(task.title)}")


@main.command()
@click.argument("task_ref", required=False)
@click.pass_context
def stats(ctx: click.Context, task_ref: str | None) -> None:
    """Show streaks and the activity heatmap for daily tasks."""
    config: EisenConfig = ctx.obj["config"]
    store = _get_store(ctx)
    daily_tasks = store.daily_tasks()

    if not daily_tasks:
        console.print(
            Panel.fit(
                "[bold]No Daily Tasks[/bold]\n\n"
                "Add [cyan]--daily[/cyan] when creating a task to see analytics here.",
                title="eisen",
            )
        )
        return

    today = date.today()
    task = _resolve_daily_task(ctx, store, task_ref) if task_ref else daily_tasks[0]

    console.print(build_summary(summarize_all(store.tasks, today)))
    console.print()
    console.print(build_task_stats(task, today))
    if config.display.heatmap:
        console.print(build_heatmap(task, today))


@main.group()
def config() -> None:
    """Manage eisen configuration."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print the active configuration."""
    cfg: EisenConfig = ctx.obj["config"]
    console.print_json(json.dumps(cfg.model_dump(exclude_none=True)))


@config.command("init")
@click.option("--force", "-f", is_flag=True, help="Overwrite existing config")
def config_init(force: bool) -> None:
    """Write a default configuration file."""
    if CONFIG_FILE.exists() and not force:
        console.print(
            "[yellow]Config already exists.[/yellow] Use --force to overwrite "
            f"[cyan]{CONFIG_FILE}[/cyan]."
        )
        return

    EisenConfig().save()
    console.print(f"[green]Configuration saved:[/green] [cyan]{CONFIG_FILE}[/cyan]")
