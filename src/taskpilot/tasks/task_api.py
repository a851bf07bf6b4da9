# src/taskpilot/tasks/task_api.py

"""
High-level task operations used by the CLI.

Each call is one logical operation: load the whole document from the store,
run the pure core on it, save it back if it changed. Nothing here prints.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ..core.ports import LLMClient, TaskRepo
from ..core.state import AppState
from ..errors import InvalidArgumentError, NotFoundError, StoreError
from . import mutations
from .expansion import generate_subtasks
from .resolver import BlockedTask, Resolution, blocked_tasks, has_pending, resolve_id, select_next
from .task_files import write_task_files
from .task_ids import TaskRef, parse_task_ref, parse_task_refs, parse_top_ids
from .task_models import Subtask, Task, TaskDocument, TaskPriority, TaskStatus, utc_now_iso
from .validation import DependencyFinding, validate_dependencies

logger = logging.getLogger(__name__)


def parse_requirements(text: str) -> list[str]:
    """Every '- ' or '* ' bullet line of a requirements document becomes one requirement."""
    out: list[str] = []
    for line in text.splitlines():
        s = line.strip()
        if s.startswith("- ") or s.startswith("* "):
            item = s[2:].strip()
            if item:
                out.append(item)
    return out


def initialize(
    store: TaskRepo, *, prd_text: str | None = None, force: bool = False
) -> TaskDocument:
    if store.exists() and not force:
        raise StoreError("Tasks file already exists. Use --force to overwrite it.")

    now = utc_now_iso()
    tasks = [
        Task(
            id=i,
            title=req,
            description=f"Implement: {req}",
            created_at=now,
            updated_at=now,
        )
        for i, req in enumerate(parse_requirements(prd_text or ""), start=1)
    ]
    doc = TaskDocument.new(tasks)
    store.save(doc)
    logger.info("Initialized tasks file with %d task(s)", len(tasks))
    return doc


def list_tasks(store: TaskRepo, *, status: TaskStatus | str | None = None) -> list[Task]:
    tasks = store.load().tasks
    if status is None:
        return tasks
    wanted = TaskStatus.parse(status)
    return [t for t in tasks if t.status is wanted]


@dataclass(slots=True)
class NextTaskResult:
    task: Task | None
    tasks: list[Task]
    has_pending: bool
    blocked: list[BlockedTask] = field(default_factory=list)

    @property
    def all_blocked(self) -> bool:
        return self.task is None and self.has_pending


def next_task(store: TaskRepo) -> NextTaskResult:
    tasks = store.load().tasks
    chosen = select_next(tasks)
    pending = has_pending(tasks)
    blocked = blocked_tasks(tasks) if chosen is None and pending else []
    return NextTaskResult(task=chosen, tasks=tasks, has_pending=pending, blocked=blocked)


def show(store: TaskRepo, token: str | int) -> tuple[Resolution, list[Task]]:
    tasks = store.load().tasks
    return resolve_id(tasks, token), tasks


def set_status(store: TaskRepo, ids: str | list[TaskRef], status: str) -> mutations.StatusUpdate:
    # Status is checked before the file is even read.
    new_status = TaskStatus.parse(status)
    refs = parse_task_refs(ids) if isinstance(ids, str) else list(ids)

    doc = store.load()
    result = mutations.set_status(doc, refs, new_status)
    store.save(doc)
    return result


def add_task(
    store: TaskRepo,
    *,
    title: str,
    description: str = "",
    priority: str | None = None,
    dependencies: str | list[int] | None = None,
) -> Task:
    deps = parse_top_ids(dependencies) if isinstance(dependencies, str) else list(dependencies or [])
    prio = TaskPriority.parse(priority)

    doc = store.load()
    task = mutations.add_task(
        doc, title=title, description=description, priority=prio, dependencies=deps
    )
    store.save(doc)
    return task


def add_dependency(store: TaskRepo, task_id: str | int, depends_on: str | int) -> Task:
    doc = store.load()
    task = mutations.add_dependency(doc, task_id, depends_on)
    store.save(doc)
    return task


def remove_dependency(store: TaskRepo, task_id: str | int, depends_on: str | int) -> Task:
    doc = store.load()
    task = mutations.remove_dependency(doc, task_id, depends_on)
    store.save(doc)
    return task


def validate(store: TaskRepo) -> list[DependencyFinding]:
    return validate_dependencies(store.load().tasks)


@dataclass(slots=True)
class FixResult:
    fixed: list[DependencyFinding]
    remaining: list[DependencyFinding]


def fix(store: TaskRepo) -> FixResult:
    doc = store.load()
    fixed = mutations.fix_dependencies(doc)
    if fixed:
        store.save(doc)
    return FixResult(fixed=fixed, remaining=validate_dependencies(doc.tasks))


def clear_subtasks(store: TaskRepo, ids: str | None = None, *, all_tasks: bool = False) -> list[Task]:
    if all_tasks == (ids is not None):
        raise InvalidArgumentError("Pass either task ids or all_tasks=True")
    task_ids = None if all_tasks else parse_top_ids(ids or "")

    doc = store.load()
    changed = mutations.clear_subtasks(doc, task_ids)
    if changed:
        store.save(doc)
    return changed


def expand(
    state: AppState,
    *,
    task_id: str | int | None = None,
    all_tasks: bool = False,
    num: int | None = None,
    prompt: str | None = None,
    force: bool = False,
) -> dict[int, list[Subtask]]:
    """
    Generate subtasks with the LLM and attach them.

    Without `force`, tasks that already have subtasks are refused (single id)
    or skipped (all_tasks). With `force`, their subtasks are replaced.
    Everything is generated before anything is attached, so an LLM failure
    leaves the file untouched.
    """
    if all_tasks == (task_id is not None):
        raise InvalidArgumentError("Pass either a task id or all_tasks=True")
    count = num if num is not None else int(getattr(state.settings, "default_subtasks", 5))
    llm: LLMClient = state.llm

    doc = state.store.load()
    if all_tasks:
        targets = [
            t for t in doc.tasks if t.status is TaskStatus.PENDING and (force or not t.subtasks)
        ]
    else:
        ref = parse_task_ref(task_id)  # type: ignore[arg-type]
        resolution = resolve_id(doc.tasks, ref)
        if resolution.is_subtask:
            raise InvalidArgumentError(f"Only top-level tasks can be expanded, got {ref}")
        target = resolution.owner
        if target.subtasks and not force:
            raise InvalidArgumentError(
                f"Task {target.id} already has {len(target.subtasks)} subtask(s). Use --force to replace them."
            )
        targets = [target]

    if not targets:
        return {}

    generated = {t.id: generate_subtasks(llm, t, count, prompt) for t in targets}

    out: dict[int, list[Subtask]] = {}
    for t in targets:
        out[t.id] = mutations.attach_subtasks(doc, t.id, generated[t.id], replace=force)
    state.store.save(doc)
    return out


def generate_files(store: TaskRepo, out_dir: str | Path) -> list[Path]:
    doc = store.load()
    if not doc.tasks:
        raise NotFoundError("Task", "*", message="No tasks to generate files for")
    return write_task_files(doc, out_dir)
