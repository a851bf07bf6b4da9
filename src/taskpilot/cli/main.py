# src/taskpilot/cli/main.py

"""
CLI entrypoint.

Each invocation: configure logging, build AppState (settings -> JSON store +
LLM client), run exactly one command, exit. Core errors are turned into a
message on stderr and a non-zero exit code here and nowhere else.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..core.state import AppState
from ..errors import TaskpilotError
from ..logging_setup import resolve_level, setup_logging
from ..tasks import task_api
from ..tasks.task_models import TaskStatus
from ..tasks.task_store import JsonTaskStore
from . import render

logger = logging.getLogger(__name__)

STATUS_CHOICES = [s.value for s in TaskStatus]
PRIORITY_CHOICES = ["low", "medium", "high"]

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


class TaskpilotGroup(click.Group):
    """Command group that maps TaskpilotError to a message + exit code."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except TaskpilotError as e:
            logger.debug("Command failed: %s (%s)", e.message, e.error_code, exc_info=True)
            err_console.print(f"[red]Error:[/] {escape(e.message)}")
            ctx.exit(e.exit_code)


def _state(ctx: click.Context) -> AppState:
    return ctx.find_object(AppState)


@click.group(cls=TaskpilotGroup)
@click.option(
    "--file",
    "tasks_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the tasks file (default: TASKPILOT_TASKS_FILE or ./tasks.json).",
)
@click.option("--log-level", default=None, help="Console log level (DEBUG, INFO, WARNING, ...).")
@click.pass_context
def cli(ctx: click.Context, tasks_file: Path | None, log_level: str | None) -> None:
    """Dependency-aware task tracker backed by a JSON file."""
    if isinstance(ctx.obj, AppState):
        # Pre-built state (tests, embedding); only the tasks file may be overridden.
        if tasks_file is not None:
            ctx.obj.store = JsonTaskStore(tasks_file)
        return

    settings = get_settings()
    if tasks_file is not None:
        settings = settings.with_tasks_file(tasks_file)

    setup_logging(
        console_level=resolve_level(log_level or settings.log_level),
        log_file=settings.log_file if settings.log_to_file else None,
    )
    ctx.obj = create_initial_state(settings=settings)
    logger.debug("Using tasks file %s", settings.tasks_file)


@cli.command()
@click.option("-p", "--prd", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Requirements document; each '- ' or '* ' line becomes a task.")
@click.option("--force", is_flag=True, help="Overwrite an existing tasks file.")
@click.pass_context
def init(ctx: click.Context, prd: Path | None, force: bool) -> None:
    """Initialize task management in the current project."""
    state = _state(ctx)
    prd_text = prd.read_text("utf-8") if prd else None
    doc = task_api.initialize(state.store, prd_text=prd_text, force=force)
    if prd:
        console.print(f"[green]Created {len(doc.tasks)} task(s) from {escape(str(prd))}[/]")
    else:
        console.print("[yellow]No requirements document given. Created an empty tasks file.[/]")
    console.print(f"[green]Tasks file created at: {escape(str(state.store.path))}[/]")


@cli.command("list")
@click.option("-s", "--status", type=click.Choice(STATUS_CHOICES), help="Only tasks with this status.")
@click.option("-w", "--with-subtasks", is_flag=True, help="Include subtasks.")
@click.pass_context
def list_cmd(ctx: click.Context, status: str | None, with_subtasks: bool) -> None:
    """List all tasks."""
    tasks = task_api.list_tasks(_state(ctx).store, status=status)
    if not tasks:
        console.print("[yellow]No tasks found matching the criteria.[/]")
        return
    if with_subtasks:
        render.render_task_tree(console, tasks)
    else:
        render.render_task_table(console, tasks)
    console.print(f"\nTotal: {len(tasks)} task(s)")


@cli.command("next")
@click.pass_context
def next_cmd(ctx: click.Context) -> None:
    """Show the next task to work on, based on dependencies, priority and id."""
    result = task_api.next_task(_state(ctx).store)
    if result.task is not None:
        console.print("[green]Next task to work on:[/]")
        render.render_task_detail(console, result.task, result.tasks)
        return
    if not result.has_pending:
        console.print("[green]All tasks are complete or in progress![/]")
        return
    console.print("[yellow]No available tasks found. All pending tasks have unmet dependencies.[/]")
    render.render_blocked(console, result.blocked)


@cli.command()
@click.argument("task_id")
@click.pass_context
def show(ctx: click.Context, task_id: str) -> None:
    """Show details of a task (ID) or subtask (PARENT.N)."""
    resolution, tasks = task_api.show(_state(ctx).store, task_id)
    render.render_resolution(console, resolution, tasks)


@cli.command("set-status")
@click.option("--id", "ids", required=True, help="Task ids, comma-separated (1,2,3.1).")
@click.option("--status", required=True, help="pending, in-progress or done.")
@click.pass_context
def set_status_cmd(ctx: click.Context, ids: str, status: str) -> None:
    """Set status of a task or multiple tasks."""
    result = task_api.set_status(_state(ctx).store, ids, status)
    console.print(f"[green]Updated {result.count} task(s) to status: {result.status}[/]")
    if result.missing:
        missing = ", ".join(str(r) for r in result.missing)
        err_console.print(f"[yellow]Not found (skipped): {missing}[/]")


@cli.command("add-task")
@click.option("--title", required=True, help="Short title of the new task.")
@click.option("--description", default="", help="Longer description.")
@click.option("--priority", type=click.Choice(PRIORITY_CHOICES), default=None)
@click.option("--dependencies", default=None, help="Comma-separated ids this task depends on.")
@click.pass_context
def add_task_cmd(
    ctx: click.Context, title: str, description: str, priority: str | None, dependencies: str | None
) -> None:
    """Add a new task."""
    state = _state(ctx)
    task = task_api.add_task(
        state.store,
        title=title,
        description=description,
        priority=priority or getattr(state.settings, "default_priority", None),
        dependencies=dependencies,
    )
    console.print(f"[green]Added task {task.id}:[/] {render.task_line(task)}")


@cli.command("add-dependency")
@click.option("--id", "task_id", required=True, help="Task that gets the dependency.")
@click.option("--depends-on", required=True, help="Task it depends on.")
@click.pass_context
def add_dependency_cmd(ctx: click.Context, task_id: str, depends_on: str) -> None:
    """Add a dependency to a task."""
    task = task_api.add_dependency(_state(ctx).store, task_id, depends_on)
    console.print(f"[green]Task {task.id} now depends on: {', '.join(map(str, task.dependencies))}[/]")


@cli.command("remove-dependency")
@click.option("--id", "task_id", required=True, help="Task to remove the dependency from.")
@click.option("--depends-on", required=True, help="Dependency to remove.")
@click.pass_context
def remove_dependency_cmd(ctx: click.Context, task_id: str, depends_on: str) -> None:
    """Remove a dependency from a task."""
    task = task_api.remove_dependency(_state(ctx).store, task_id, depends_on)
    deps = ", ".join(map(str, task.dependencies)) or "None"
    console.print(f"[green]Removed. Task {task.id} dependencies: {deps}[/]")


@cli.command("validate-dependencies")
@click.pass_context
def validate_dependencies_cmd(ctx: click.Context) -> None:
    """Validate task dependencies (exit code 1 when problems are found)."""
    findings = task_api.validate(_state(ctx).store)
    if not findings:
        console.print("[green]All dependencies are valid.[/]")
        return
    console.print(f"[red]Found {len(findings)} dependency problem(s):[/]")
    render.render_findings(console, findings)
    ctx.exit(1)


@cli.command("fix-dependencies")
@click.pass_context
def fix_dependencies_cmd(ctx: click.Context) -> None:
    """Remove self, missing and duplicate dependency entries."""
    result = task_api.fix(_state(ctx).store)
    if result.fixed:
        console.print(f"[green]Fixed {len(result.fixed)} dependency problem(s):[/]")
        render.render_findings(console, result.fixed)
    else:
        console.print("[green]Nothing to fix.[/]")
    if result.remaining:
        console.print("[yellow]Still needs manual attention:[/]")
        render.render_findings(console, result.remaining)


@cli.command("clear-subtasks")
@click.option("--id", "ids", default=None, help="Task ids, comma-separated.")
@click.option("--all", "all_tasks", is_flag=True, help="Clear subtasks of every task.")
@click.pass_context
def clear_subtasks_cmd(ctx: click.Context, ids: str | None, all_tasks: bool) -> None:
    """Clear subtasks from tasks."""
    if bool(ids) == all_tasks:
        raise click.UsageError("Either --id or --all is required (not both).")
    changed = task_api.clear_subtasks(_state(ctx).store, ids, all_tasks=all_tasks)
    console.print(f"[green]Cleared subtasks from {len(changed)} task(s).[/]")


@cli.command()
@click.option("--id", "task_id", default=None, help="Task id to expand.")
@click.option("--all", "all_tasks", is_flag=True, help="Expand every pending task without subtasks.")
@click.option("--num", type=click.IntRange(min=1), default=None, help="Number of subtasks.")
@click.option("--prompt", default=None, help="Additional context for the expansion.")
@click.option("--force", is_flag=True, help="Replace existing subtasks.")
@click.pass_context
def expand(
    ctx: click.Context,
    task_id: str | None,
    all_tasks: bool,
    num: int | None,
    prompt: str | None,
    force: bool,
) -> None:
    """Expand a task with subtasks (uses the configured LLM, or an offline fallback)."""
    if bool(task_id) == all_tasks:
        raise click.UsageError("Either --id or --all is required (not both).")
    result = task_api.expand(
        _state(ctx), task_id=task_id, all_tasks=all_tasks, num=num, prompt=prompt, force=force
    )
    if not result:
        console.print("[yellow]No tasks to expand.[/]")
        return
    for tid, subs in result.items():
        console.print(f"[green]Task {tid}: added {len(subs)} subtask(s)[/]")
        for sub in subs:
            console.print(f"  - {sub.id}: {escape(sub.title)}")


@cli.command()
@click.option("--output-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory for the Markdown files (default: TASKPILOT_TASKS_DIR or ./tasks).")
@click.pass_context
def generate(ctx: click.Context, output_dir: Path | None) -> None:
    """Generate one Markdown file per task."""
    state = _state(ctx)
    out_dir = output_dir or Path(getattr(state.settings, "tasks_dir", "tasks"))
    written = task_api.generate_files(state.store, out_dir)
    console.print(f"[green]Wrote {len(written)} task file(s) to {escape(str(out_dir))}[/]")


def main() -> None:
    cli(prog_name="taskpilot")


if __name__ == "__main__":
    main()
