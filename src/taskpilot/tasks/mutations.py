# src/taskpilot/tasks/mutations.py

"""
In-memory operations on a TaskDocument.

Every function validates all of its inputs before touching the document, so a
raised error always means nothing was changed. Persisting the result is the
caller's job (see task_api).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..errors import (
    CycleDetectedError,
    DuplicateDependencyError,
    InvalidArgumentError,
    NotFoundError,
    SelfDependencyError,
)
from .resolver import Resolution, index_tasks, resolve_id
from .task_ids import TaskRef, TopRef, parse_task_ref
from .task_models import Subtask, Task, TaskDocument, TaskPriority, TaskStatus, utc_now_iso
from .validation import (
    DependencyFinding,
    find_dangling_dependencies,
    find_duplicate_dependencies,
    find_self_dependencies,
    would_create_cycle,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StatusUpdate:
    status: TaskStatus
    updated: list[TaskRef] = field(default_factory=list)
    missing: list[TaskRef] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.updated)


def set_status(
    doc: TaskDocument,
    refs: Iterable[TaskRef | int | str],
    new_status: TaskStatus | str,
    *,
    now: str | None = None,
) -> StatusUpdate:
    """
    Set the status of every resolvable ref.

    Unknown refs are collected in `missing` and do not abort the batch. If none
    of the refs resolve, NotFoundError is raised and nothing changes.
    Marking a task done does not look at the tasks that depend on it.
    """
    status = TaskStatus.parse(new_status)
    parsed = list(dict.fromkeys(parse_task_ref(r) for r in refs))
    if not parsed:
        raise InvalidArgumentError("At least one task id is required")

    index = index_tasks(doc.tasks)
    result = StatusUpdate(status=status)
    targets: list[Resolution] = []
    for ref in parsed:
        try:
            targets.append(resolve_id(index, ref))
            result.updated.append(ref)
        except NotFoundError:
            result.missing.append(ref)

    if not targets:
        ids = ", ".join(str(r) for r in parsed)
        raise NotFoundError("Task", ids, message=f"No tasks found with IDs: {ids}")

    now = now or utc_now_iso()
    for target in targets:
        target.task.status = status
        target.owner.touch(now)
    doc.mark_updated(now)

    logger.info(
        "Set status=%s on %d item(s) (missing=%s)",
        status,
        result.count,
        [str(r) for r in result.missing],
    )
    return result


def add_task(
    doc: TaskDocument,
    *,
    title: str,
    description: str = "",
    priority: TaskPriority | str | None = None,
    dependencies: Iterable[int] = (),
    now: str | None = None,
) -> Task:
    title = (title or "").strip()
    if not title:
        raise InvalidArgumentError("Task title is required")
    prio = TaskPriority.parse(priority)
    deps = list(dict.fromkeys(int(d) for d in dependencies))

    new_id = doc.next_id()
    if new_id in deps:
        raise SelfDependencyError(new_id)
    known = {t.id for t in doc.tasks}
    unknown = [d for d in deps if d not in known]
    if unknown:
        # Forward references are allowed; the task stays blocked until they exist and are done.
        logger.warning("New task %s depends on unknown task id(s) %s", new_id, unknown)

    now = now or utc_now_iso()
    task = Task(
        id=new_id,
        title=title,
        description=description.strip(),
        priority=prio,
        dependencies=deps,
        created_at=now,
        updated_at=now,
    )
    doc.tasks.append(task)
    doc.mark_updated(now)
    logger.info("Added task %s (%s)", task.id, task.priority)
    return task


def _top_task(doc: TaskDocument, task_id: int | str) -> Task:
    resolution = resolve_id(doc.tasks, task_id)
    if resolution.is_subtask:
        raise InvalidArgumentError(f"Dependencies are task-level only, got subtask {task_id}")
    return resolution.owner


def add_dependency(
    doc: TaskDocument, task_id: int | str, depends_on: int | str, *, now: str | None = None
) -> Task:
    task = _top_task(doc, task_id)
    dep = _top_task(doc, depends_on)

    if task.id == dep.id:
        raise SelfDependencyError(task.id)
    if dep.id in task.dependencies:
        raise DuplicateDependencyError(task.id, dep.id)

    path = would_create_cycle(doc.tasks, task.id, dep.id)
    if path is not None:
        raise CycleDetectedError(task.id, dep.id, path=path)

    now = now or utc_now_iso()
    task.dependencies.append(dep.id)
    task.touch(now)
    doc.mark_updated(now)
    logger.info("Task %s now depends on task %s", task.id, dep.id)
    return task


def remove_dependency(
    doc: TaskDocument, task_id: int | str, depends_on: int | str, *, now: str | None = None
) -> Task:
    task = _top_task(doc, task_id)
    dep_ref = parse_task_ref(depends_on)
    if not isinstance(dep_ref, TopRef):
        raise InvalidArgumentError(f"Dependencies are task-level only, got subtask {dep_ref}")
    dep_id = dep_ref.task_id

    # The dependency itself may be dangling, so only the edge has to exist.
    if dep_id not in task.dependencies:
        raise NotFoundError(
            "Dependency",
            dep_id,
            message=f"Task {task.id} does not depend on task {dep_id}",
        )

    now = now or utc_now_iso()
    task.dependencies = [d for d in task.dependencies if d != dep_id]
    task.touch(now)
    doc.mark_updated(now)
    logger.info("Removed dependency %s from task %s", dep_id, task.id)
    return task


def fix_dependencies(doc: TaskDocument, *, now: str | None = None) -> list[DependencyFinding]:
    """
    Drop self, dangling and duplicate dependency entries.

    Cycles are not broken: which edge to cut is a judgement call left to the
    user (validate_dependencies still reports them).
    Returns the findings that were fixed.
    """
    fixed = [
        *find_self_dependencies(doc.tasks),
        *find_dangling_dependencies(doc.tasks),
        *find_duplicate_dependencies(doc.tasks),
    ]
    if not fixed:
        return []

    known = {t.id for t in doc.tasks}
    touched = {f.task_id for f in fixed}
    now = now or utc_now_iso()
    for task in doc.tasks:
        if task.id not in touched:
            continue
        clean = [d for d in dict.fromkeys(task.dependencies) if d != task.id and d in known]
        task.dependencies = clean
        task.touch(now)
    doc.mark_updated(now)

    for f in fixed:
        logger.info("Fixed: %s", f.describe())
    return fixed


def clear_subtasks(
    doc: TaskDocument, task_ids: Iterable[int] | None = None, *, now: str | None = None
) -> list[Task]:
    """Remove all subtasks from the given tasks (None = every task). Returns tasks that changed."""
    if task_ids is None:
        targets = list(doc.tasks)
    else:
        ids = list(task_ids)
        index = index_tasks(doc.tasks)
        unknown = [i for i in ids if i not in index]
        if unknown:
            raise NotFoundError("Task", ", ".join(str(i) for i in unknown))
        targets = [index[i] for i in dict.fromkeys(ids)]

    changed = [t for t in targets if t.subtasks]
    if not changed:
        return []

    now = now or utc_now_iso()
    for task in changed:
        task.subtasks = []
        task.touch(now)
    doc.mark_updated(now)
    logger.info("Cleared subtasks of task(s) %s", [t.id for t in changed])
    return changed


def attach_subtasks(
    doc: TaskDocument,
    task_id: int,
    items: Iterable[tuple[str, str]],
    *,
    replace: bool = False,
    now: str | None = None,
) -> list[Subtask]:
    """Append (title, description) pairs as pending subtasks; ids continue after the current max."""
    task = _top_task(doc, task_id)
    pairs = [(t.strip(), d.strip()) for t, d in items if t and t.strip()]
    if not pairs:
        raise InvalidArgumentError(f"No subtasks to add to task {task.id}")

    existing = [] if replace else list(task.subtasks)
    next_id = max((s.id for s in existing), default=0) + 1
    new = [
        Subtask(id=next_id + i, title=title, description=desc)
        for i, (title, desc) in enumerate(pairs)
    ]

    now = now or utc_now_iso()
    task.subtasks = existing + new
    task.touch(now)
    doc.mark_updated(now)
    logger.info("Attached %d subtask(s) to task %s (replace=%s)", len(new), task.id, replace)
    return new
