# src/taskpilot/tasks/resolver.py

"""
Dependency resolution and next-task selection.

Everything here is a pure function over an in-memory task list: nothing is
mutated, nothing is printed.

Ranking of eligible tasks (first wins):
- priority weight, high to low
- raw dependency count, fewer first
- task id, lower first
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from ..errors import NotFoundError
from .task_ids import SubRef, TaskRef, parse_task_ref
from .task_models import Subtask, Task, TaskStatus

TaskIndex = Mapping[int, Task]


def index_tasks(tasks: Iterable[Task]) -> dict[int, Task]:
    return {t.id: t for t in tasks}


def _as_index(tasks: Iterable[Task] | TaskIndex) -> TaskIndex:
    if isinstance(tasks, Mapping):
        return tasks
    return index_tasks(tasks)


def is_satisfied(task: Task, tasks: Iterable[Task] | TaskIndex) -> bool:
    """
    True when every dependency of `task` exists and is done.

    A dependency id with no matching task counts as unmet.
    Pass a pre-built index (index_tasks) when calling this in a loop.
    """
    if not task.dependencies:
        return True
    index = _as_index(tasks)
    for dep_id in task.dependencies:
        dep = index.get(dep_id)
        if dep is None or dep.status is not TaskStatus.DONE:
            return False
    return True


def rank_key(task: Task) -> tuple[int, int, int]:
    return (-task.priority.weight, len(task.dependencies), task.id)


def eligible_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Open (pending / in-progress) tasks whose dependencies are all done, in file order."""
    all_tasks = list(tasks)
    index = index_tasks(all_tasks)
    return [t for t in all_tasks if t.status.is_open and is_satisfied(t, index)]


def rank_candidates(tasks: Iterable[Task]) -> list[Task]:
    return sorted(eligible_tasks(tasks), key=rank_key)


def select_next(tasks: Iterable[Task]) -> Task | None:
    ranked = rank_candidates(tasks)
    return ranked[0] if ranked else None


def has_pending(tasks: Iterable[Task]) -> bool:
    return any(t.status is TaskStatus.PENDING for t in tasks)


@dataclass(frozen=True, slots=True)
class BlockedTask:
    task: Task
    waiting_on: list[Task] = field(default_factory=list)
    missing_ids: list[int] = field(default_factory=list)


def blocked_tasks(tasks: Iterable[Task]) -> list[BlockedTask]:
    """Pending tasks that cannot start yet, ranked like candidates."""
    all_tasks = list(tasks)
    index = index_tasks(all_tasks)

    out: list[BlockedTask] = []
    for task in sorted(all_tasks, key=rank_key):
        if task.status is not TaskStatus.PENDING or is_satisfied(task, index):
            continue
        waiting: list[Task] = []
        missing: list[int] = []
        for dep_id in dict.fromkeys(task.dependencies):
            dep = index.get(dep_id)
            if dep is None:
                missing.append(dep_id)
            elif dep.status is not TaskStatus.DONE:
                waiting.append(dep)
        out.append(BlockedTask(task=task, waiting_on=waiting, missing_ids=missing))
    return out


@dataclass(frozen=True, slots=True)
class Resolution:
    """
    Where a ref points to.

    For subtasks `parent` is the owning task and `index` the zero-based
    position in parent.subtasks, so callers can mutate in place.
    """

    task: Task | Subtask
    parent: Task | None = None
    is_subtask: bool = False
    index: int | None = None

    @property
    def owner(self) -> Task:
        """The top-level task that holds this record."""
        if self.parent is not None:
            return self.parent
        if not isinstance(self.task, Task):
            raise TypeError(f"Top-level resolution holds a {type(self.task).__name__}")
        return self.task


def resolve_id(tasks: Iterable[Task] | TaskIndex, ref: TaskRef | int | str) -> Resolution:
    ref = parse_task_ref(ref)
    index = _as_index(tasks)

    if isinstance(ref, SubRef):
        parent = index.get(ref.parent_id)
        if parent is None:
            raise NotFoundError("Task", ref.parent_id)
        if not 1 <= ref.position <= len(parent.subtasks):
            raise NotFoundError(
                "Subtask",
                str(ref),
                message=f"Subtask {ref.position} of task {ref.parent_id} not found",
            )
        pos = ref.position - 1
        return Resolution(task=parent.subtasks[pos], parent=parent, is_subtask=True, index=pos)

    task = index.get(ref.task_id)
    if task is None:
        raise NotFoundError("Task", ref.task_id)
    return Resolution(task=task)
