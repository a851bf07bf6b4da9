# src/taskpilot/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from ..errors import InvalidArgumentError, StoreError, StoreFormatError, StoreNotFoundError
from .task_models import Metadata, Subtask, Task, TaskDocument, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

_TASK_KEYS = {
    "id",
    "title",
    "description",
    "status",
    "priority",
    "dependencies",
    "subtasks",
    "createdAt",
    "updatedAt",
}
_SUBTASK_KEYS = {"id", "title", "description", "status"}
_META_KEYS = {"created", "lastUpdated", "version"}


class JsonTaskStore:
    """
    JSON file task store.

    The whole document is read on load() and rewritten on save(); there is no
    partial access. Writes go to a sibling temp file which then replaces the
    target, so an interrupted save never leaves half a file behind.

    Not safe against two processes writing the same file at once.
    """

    def __init__(self, path: str | Path = "tasks.json") -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    # ---- load ----

    def load(self) -> TaskDocument:
        if not self.exists():
            raise StoreNotFoundError(self._path)
        try:
            raw = self._path.read_text("utf-8")
        except OSError as e:
            raise StoreError(f"Failed to read tasks file {self._path}: {e}", path=self._path) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreFormatError(
                f"Tasks file {self._path} is not valid JSON: {e}", path=self._path
            ) from e

        doc = self._document_from_json(data)
        logger.info("Loaded %d task(s) from %s", len(doc.tasks), self._path)
        return doc

    def _document_from_json(self, data: Any) -> TaskDocument:
        if not isinstance(data, dict):
            raise StoreFormatError("Tasks file must contain a JSON object", path=self._path)

        raw_tasks = data.get("tasks", [])
        if not isinstance(raw_tasks, list):
            raise StoreFormatError("'tasks' must be a list", path=self._path)

        tasks: list[Task] = []
        seen: set[int] = set()
        for pos, item in enumerate(raw_tasks):
            task = self._task_from_json(item, pos)
            if task.id in seen:
                raise StoreFormatError(f"Duplicate task id {task.id}", path=self._path)
            seen.add(task.id)
            tasks.append(task)

        meta = data.get("metadata") or {}
        if not isinstance(meta, dict):
            raise StoreFormatError("'metadata' must be an object", path=self._path)

        metadata = Metadata(
            created=meta.get("created"),
            last_updated=meta.get("lastUpdated"),
            version=str(meta.get("version") or "1.0.0"),
            extra={k: v for k, v in meta.items() if k not in _META_KEYS},
        )
        return TaskDocument(tasks=tasks, metadata=metadata)

    def _int_field(self, value: Any, what: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise StoreFormatError(f"{what} must be an integer, got {value!r}", path=self._path)
        return value

    def _task_from_json(self, item: Any, pos: int) -> Task:
        if not isinstance(item, dict):
            raise StoreFormatError(f"Task #{pos} must be an object", path=self._path)

        task_id = self._int_field(item.get("id"), f"Task #{pos} id")
        if task_id < 1:
            raise StoreFormatError(f"Task id must be positive, got {task_id}", path=self._path)

        deps_raw = item.get("dependencies") or []
        if not isinstance(deps_raw, list):
            raise StoreFormatError(f"Task {task_id} dependencies must be a list", path=self._path)
        deps = [self._int_field(d, f"Task {task_id} dependency") for d in deps_raw]

        subs_raw = item.get("subtasks") or []
        if not isinstance(subs_raw, list):
            raise StoreFormatError(f"Task {task_id} subtasks must be a list", path=self._path)

        try:
            status = TaskStatus.parse(item.get("status", TaskStatus.PENDING))
            priority = TaskPriority.parse(item.get("priority"))
            subtasks = [self._subtask_from_json(s, task_id) for s in subs_raw]
        except InvalidArgumentError as e:
            raise StoreFormatError(f"Task {task_id}: {e.message}", path=self._path) from e

        return Task(
            id=task_id,
            title=str(item.get("title") or ""),
            description=str(item.get("description") or ""),
            status=status,
            priority=priority,
            dependencies=deps,
            subtasks=subtasks,
            created_at=item.get("createdAt"),
            updated_at=item.get("updatedAt"),
            extra={k: v for k, v in item.items() if k not in _TASK_KEYS},
        )

    def _subtask_from_json(self, item: Any, parent_id: int) -> Subtask:
        if not isinstance(item, dict):
            raise StoreFormatError(f"Subtask of task {parent_id} must be an object", path=self._path)
        return Subtask(
            id=self._int_field(item.get("id"), f"Subtask id of task {parent_id}"),
            title=str(item.get("title") or ""),
            status=TaskStatus.parse(item.get("status", TaskStatus.PENDING)),
            description=None if "description" not in item else str(item["description"] or ""),
            extra={k: v for k, v in item.items() if k not in _SUBTASK_KEYS},
        )

    # ---- save ----

    @staticmethod
    def _subtask_to_json(sub: Subtask) -> dict[str, Any]:
        out: dict[str, Any] = {"id": sub.id, "title": sub.title}
        if sub.description is not None:
            out["description"] = sub.description
        out["status"] = sub.status.value
        out.update(sub.extra)
        return out

    @classmethod
    def _task_to_json(cls, task: Task) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": task.id,
            "title": task.title,
            "description": task.description,
            "status": task.status.value,
            "priority": task.priority.value,
            "dependencies": list(task.dependencies),
            "subtasks": [cls._subtask_to_json(s) for s in task.subtasks],
        }
        if task.created_at is not None:
            out["createdAt"] = task.created_at
        if task.updated_at is not None:
            out["updatedAt"] = task.updated_at
        out.update(task.extra)
        return out

    @classmethod
    def document_to_json(cls, doc: TaskDocument) -> dict[str, Any]:
        meta: dict[str, Any] = {}
        if doc.metadata.created is not None:
            meta["created"] = doc.metadata.created
        if doc.metadata.last_updated is not None:
            meta["lastUpdated"] = doc.metadata.last_updated
        meta["version"] = doc.metadata.version
        meta.update(doc.metadata.extra)
        return {"tasks": [cls._task_to_json(t) for t in doc.tasks], "metadata": meta}

    def save(self, doc: TaskDocument) -> None:
        payload = json.dumps(self.document_to_json(doc), ensure_ascii=False, indent=2) + "\n"
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise StoreError(f"Failed to write tasks file {self._path}: {e}", path=self._path) from e
        logger.info("Saved %d task(s) to %s", len(doc.tasks), self._path)
