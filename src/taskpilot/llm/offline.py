# src/taskpilot/llm/offline.py

from __future__ import annotations

import json
import re
from collections.abc import Iterable

from ..core.ports import ChatMessage

_COUNT_RE = re.compile(r"exactly (\d+) subtasks", re.IGNORECASE)
_TITLE_RE = re.compile(r"^Task title:\s*(.+)$", re.MULTILINE)

_STEPS = (
    ("Design", "Decide the approach and interfaces for"),
    ("Implement", "Write the code for"),
    ("Test", "Cover with automated tests:"),
    ("Document", "Update docs and usage notes for"),
    ("Review", "Review and polish"),
)


class OfflineLLMClient:
    """
    Offline deterministic LLM client, used when no API key is configured.

    For subtask-expansion prompts it returns a generic design/implement/test
    breakdown as the JSON array the expander expects.
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        user_text = ""
        for m in reversed(messages):
            if m["role"] == "user":
                user_text = m["content"]
                break

        m_count = _COUNT_RE.search(user_text)
        count = int(m_count.group(1)) if m_count else 3
        m_title = _TITLE_RE.search(user_text)
        title = m_title.group(1).strip() if m_title else "the task"

        items = []
        for i in range(count):
            verb, lead = _STEPS[i % len(_STEPS)]
            suffix = f" (part {i // len(_STEPS) + 1})" if i >= len(_STEPS) else ""
            items.append({"title": f"{verb}: {title}{suffix}", "description": f"{lead} {title}."})

        yield json.dumps(items, ensure_ascii=False)
