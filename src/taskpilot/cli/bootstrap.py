# src/taskpilot/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root": it takes the settings and wires the
concrete JSON store and LLM client into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import LLMClient
from ..core.state import AppState
from ..errors import LLMError
from ..llm.client import OpenRouterLLMClient
from ..llm.offline import OfflineLLMClient
from ..tasks.task_store import JsonTaskStore

logger = logging.getLogger(__name__)


def build_llm_client(settings) -> LLMClient:
    try:
        return OpenRouterLLMClient(settings)
    except LLMError as e:
        # Local runs without an API key still get deterministic subtasks.
        logger.info("Using offline LLM client: %s", e.message)
        return OfflineLLMClient()


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    return AppState(
        settings=settings,
        store=JsonTaskStore(settings.tasks_file),
        llm=build_llm_client(settings),
    )
