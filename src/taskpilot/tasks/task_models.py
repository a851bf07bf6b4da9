# src/taskpilot/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from ..errors import InvalidArgumentError

STORE_VERSION = "1.0.0"


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class TaskStatus(StrEnum):
    """Task lifecycle status (shared by tasks and subtasks)."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    DONE = "done"

    @classmethod
    def parse(cls, raw: object) -> TaskStatus:
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise InvalidArgumentError(
                f"Invalid status: {raw!r}. Must be one of: {allowed}",
                details={"value": raw},
            ) from None

    @property
    def is_open(self) -> bool:
        return self in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: object) -> TaskPriority:
        # Absent priority means medium.
        if raw is None:
            return cls.MEDIUM
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            allowed = ", ".join(p.value for p in cls)
            raise InvalidArgumentError(
                f"Invalid priority: {raw!r}. Must be one of: {allowed}",
                details={"value": raw},
            ) from None

    @property
    def weight(self) -> int:
        return _PRIORITY_WEIGHTS[self]


_PRIORITY_WEIGHTS: dict[TaskPriority, int] = {
    TaskPriority.HIGH: 3,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 1,
}


@dataclass(slots=True)
class Subtask:
    id: int
    title: str
    status: TaskStatus = TaskStatus.PENDING
    # None when the file has no "description" key for this subtask.
    description: str | None = None

    # Unknown JSON keys, written back untouched.
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Task:
    id: int
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    dependencies: list[int] = field(default_factory=list)
    subtasks: list[Subtask] = field(default_factory=list)

    created_at: str | None = None
    updated_at: str | None = None

    extra: dict[str, Any] = field(default_factory=dict)

    def touch(self, now: str | None = None) -> None:
        self.updated_at = now or utc_now_iso()


@dataclass(slots=True)
class Metadata:
    created: str | None = None
    last_updated: str | None = None
    version: str = STORE_VERSION
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class TaskDocument:
    """Whole contents of a tasks file: the task list plus file metadata."""

    tasks: list[Task] = field(default_factory=list)
    metadata: Metadata = field(default_factory=Metadata)

    @classmethod
    def new(cls, tasks: list[Task] | None = None) -> TaskDocument:
        now = utc_now_iso()
        return cls(tasks=list(tasks or []), metadata=Metadata(created=now, last_updated=now))

    def next_id(self) -> int:
        return max((t.id for t in self.tasks), default=0) + 1

    def mark_updated(self, now: str | None = None) -> None:
        self.metadata.last_updated = now or utc_now_iso()
