# tests/conftest.py

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskpilot.core.state import AppState
from taskpilot.tasks.task_models import Subtask, Task, TaskDocument, TaskPriority, TaskStatus
from taskpilot.tasks.task_store import JsonTaskStore

from .fakes import FakeLLMClient

TaskFactory = Callable[..., Task]


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment / .env.
    """
    return SimpleNamespace(
        tasks_file=tmp_path / "tasks.json",
        tasks_dir=tmp_path / "tasks",
        default_subtasks=3,
        default_priority="medium",
        log_level="WARNING",
        log_to_file=False,
    )


@pytest.fixture()
def make_task() -> TaskFactory:
    def _make(
        task_id: int,
        *,
        status: str = "pending",
        priority: str = "medium",
        deps: list[int] | None = None,
        subtasks: int = 0,
        title: str | None = None,
    ) -> Task:
        return Task(
            id=task_id,
            title=title or f"Task {task_id}",
            description=f"Description of task {task_id}",
            status=TaskStatus(status),
            priority=TaskPriority(priority),
            dependencies=list(deps or []),
            subtasks=[Subtask(id=i, title=f"Sub {task_id}.{i}") for i in range(1, subtasks + 1)],
        )

    return _make


@pytest.fixture()
def store(settings: SimpleNamespace) -> JsonTaskStore:
    return JsonTaskStore(settings.tasks_file)


@pytest.fixture()
def seeded_store(store: JsonTaskStore, make_task: TaskFactory) -> JsonTaskStore:
    """
    1 done
    2 pending high, deps [1]       -> eligible
    3 pending medium, deps [2]     -> blocked on 2
    4 in-progress low              -> eligible
    5 pending high, deps [99]      -> blocked on a missing task
    """
    doc = TaskDocument.new(
        [
            make_task(1, status="done"),
            make_task(2, priority="high", deps=[1], subtasks=2),
            make_task(3, deps=[2]),
            make_task(4, status="in-progress", priority="low"),
            make_task(5, priority="high", deps=[99]),
        ]
    )
    store.save(doc)
    return store


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient(
        '[{"title": "Write parser", "description": "Parse input"},'
        ' {"title": "Add tests", "description": "Cover edge cases"}]'
    )


@pytest.fixture()
def state(settings: SimpleNamespace, store: JsonTaskStore, llm: FakeLLMClient) -> AppState:
    """AppState wired with a real JSON store in tmp_path and a fake LLM."""
    return AppState(settings=settings, store=store, llm=llm)
