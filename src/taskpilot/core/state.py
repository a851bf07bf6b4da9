# src/taskpilot/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .ports import LLMClient, TaskRepo


@dataclass
class AppState:
    # Settings object (config.Settings or a test namespace with the same fields).
    settings: Any

    store: TaskRepo
    llm: LLMClient
