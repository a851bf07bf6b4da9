# src/taskpilot/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the task API.

task_api depends on these Protocols instead of concrete classes, so the JSON
store and the LLM provider stay swappable and tests can use fakes.
"""

from pathlib import Path
from typing import Iterable, Protocol

from ..tasks.task_models import TaskDocument

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class TaskRepo(Protocol):
    """Whole-document task storage: read everything, write everything."""
    @property
    def path(self) -> Path: ...
    def exists(self) -> bool: ...
    def load(self) -> TaskDocument: ...
    def save(self, doc: TaskDocument) -> None: ...
