# src/taskpilot/tasks/task_files.py

from __future__ import annotations

import logging
from pathlib import Path

from .resolver import index_tasks
from .task_models import Task, TaskDocument, TaskStatus

logger = logging.getLogger(__name__)


def task_file_name(task: Task) -> str:
    return f"task_{task.id:03d}.md"


def render_task_markdown(task: Task, index: dict[int, Task]) -> str:
    lines = [
        f"# Task {task.id}: {task.title}",
        "",
        f"- **Status:** {task.status}",
        f"- **Priority:** {task.priority}",
    ]

    if task.dependencies:
        deps = []
        for dep_id in task.dependencies:
            dep = index.get(dep_id)
            deps.append(f"{dep_id} ({dep.status})" if dep else f"{dep_id} (missing)")
        lines.append(f"- **Dependencies:** {', '.join(deps)}")
    else:
        lines.append("- **Dependencies:** none")

    lines.extend(["", "## Description", "", task.description or "_No description._"])

    if task.subtasks:
        lines.extend(["", "## Subtasks", ""])
        for pos, sub in enumerate(task.subtasks, start=1):
            mark = "x" if sub.status is TaskStatus.DONE else " "
            lines.append(f"- [{mark}] {task.id}.{pos} {sub.title} ({sub.status})")
            if sub.description:
                lines.append(f"  {sub.description}")

    return "\n".join(lines) + "\n"


def write_task_files(doc: TaskDocument, out_dir: str | Path) -> list[Path]:
    """Write one Markdown file per task into out_dir; returns the written paths."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    index = index_tasks(doc.tasks)

    written: list[Path] = []
    for task in doc.tasks:
        path = out / task_file_name(task)
        path.write_text(render_task_markdown(task, index), "utf-8")
        written.append(path)

    logger.info("Wrote %d task file(s) to %s", len(written), out)
    return written
