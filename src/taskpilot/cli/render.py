# src/taskpilot/cli/render.py

"""Terminal rendering with rich. Takes plain task data, never touches the store."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..tasks.resolver import BlockedTask, Resolution
from ..tasks.task_models import Subtask, Task, TaskPriority, TaskStatus
from ..tasks.validation import DependencyFinding

STATUS_STYLES = {
    TaskStatus.PENDING: "yellow",
    TaskStatus.IN_PROGRESS: "blue",
    TaskStatus.DONE: "green",
}

PRIORITY_STYLES = {
    TaskPriority.LOW: "grey50",
    TaskPriority.MEDIUM: "white",
    TaskPriority.HIGH: "red",
}


def _status(status: TaskStatus) -> str:
    return f"[{STATUS_STYLES[status]}]{status}[/]"


def _priority(priority: TaskPriority) -> str:
    return f"[{PRIORITY_STYLES[priority]}]{priority}[/]"


def _truncate(text: str, width: int = 40) -> str:
    return text if len(text) <= width else text[:width] + "..."


def task_line(task: Task) -> str:
    return f"[bold]\\[{task.id}][/] {escape(task.title)} ({_status(task.status)}, {_priority(task.priority)})"


def subtask_line(parent: Task, position: int, sub: Subtask) -> str:
    return f"[bold]\\[{parent.id}.{position}][/] {escape(sub.title)} ({_status(sub.status)})"


def render_task_table(console: Console, tasks: list[Task]) -> None:
    table = Table(title="Tasks", title_justify="left")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Priority")
    table.add_column("Dependencies")
    for t in tasks:
        deps = ", ".join(str(d) for d in t.dependencies) or "None"
        table.add_row(
            str(t.id), escape(_truncate(t.title)), _status(t.status), _priority(t.priority), deps
        )
    console.print(table)


def render_task_tree(console: Console, tasks: list[Task]) -> None:
    for t in tasks:
        console.print(task_line(t))
        for pos, sub in enumerate(t.subtasks, start=1):
            mark = "[green]✓[/]" if sub.status is TaskStatus.DONE else " "
            console.print(f"   {mark} {subtask_line(t, pos, sub)}", style="dim")


def render_task_detail(console: Console, task: Task, tasks: list[Task]) -> None:
    index = {t.id: t for t in tasks}
    console.print(task_line(task))
    if task.description:
        console.print(f"  [dim]Description:[/] {escape(task.description)}")
    if task.dependencies:
        parts = []
        for dep_id in task.dependencies:
            dep = index.get(dep_id)
            parts.append(f"{dep_id} ({_status(dep.status)})" if dep else f"{dep_id} ([red]missing[/])")
        console.print(f"  [dim]Dependencies:[/] {', '.join(parts)}")
    if task.subtasks:
        console.print("  [dim]Subtasks:[/]")
        for pos, sub in enumerate(task.subtasks, start=1):
            console.print(f"    {subtask_line(task, pos, sub)}")


def render_resolution(console: Console, resolution: Resolution, tasks: list[Task]) -> None:
    if resolution.is_subtask:
        parent = resolution.owner
        sub = resolution.task
        if not isinstance(sub, Subtask) or resolution.index is None:
            raise TypeError("Subtask resolution without a subtask position")
        console.print(subtask_line(parent, resolution.index + 1, sub))
        if sub.description:
            console.print(f"  [dim]Description:[/] {escape(sub.description)}")
        console.print(f"  [dim]Parent:[/] {task_line(parent)}")
        return
    render_task_detail(console, resolution.owner, tasks)


def render_blocked(console: Console, blocked: list[BlockedTask], limit: int = 3) -> None:
    console.print("\n[yellow]Blocked tasks:[/]")
    for item in blocked[:limit]:
        console.print(task_line(item.task), style="dim")
        if item.waiting_on or item.missing_ids:
            console.print("  [red]Waiting on:[/]")
        for dep in item.waiting_on:
            console.print(f"  [red]- {dep.id}: {escape(dep.title)} \\[{dep.status}][/]")
        for dep_id in item.missing_ids:
            console.print(f"  [red]- {dep_id}: (missing task)[/]")


def render_findings(console: Console, findings: list[DependencyFinding]) -> None:
    for f in findings:
        console.print(f"  [red]-[/] {escape(f.describe())}")
