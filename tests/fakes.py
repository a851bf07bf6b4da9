# tests/fakes.py

from __future__ import annotations

import copy
from collections.abc import Iterable
from pathlib import Path

from taskpilot.core.ports import ChatMessage
from taskpilot.errors import StoreNotFoundError
from taskpilot.tasks.task_models import TaskDocument


class FakeLLMClient:
    """
    Deterministic LLM client for unit tests.

    - Captures calls for assertions
    - Yields a predefined text in two chunks (exercises chunk joining)
    """

    def __init__(self, next_text: str = "[]") -> None:
        self.next_text = next_text
        self.calls: list[tuple[list[ChatMessage], str]] = []

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        self.calls.append((messages, system_prompt))
        half = len(self.next_text) // 2
        yield self.next_text[:half]
        yield self.next_text[half:]


class InMemoryTaskRepo:
    """
    TaskRepo kept in memory, counting saves.

    load() hands out a deep copy, like re-reading a file would.
    """

    def __init__(self, doc: TaskDocument | None = None) -> None:
        self.doc = doc
        self.saves = 0

    @property
    def path(self) -> Path:
        return Path("memory://tasks.json")

    def exists(self) -> bool:
        return self.doc is not None

    def load(self) -> TaskDocument:
        if self.doc is None:
            raise StoreNotFoundError(self.path)
        return copy.deepcopy(self.doc)

    def save(self, doc: TaskDocument) -> None:
        self.doc = copy.deepcopy(doc)
        self.saves += 1
