# src/taskpilot/tasks/expansion.py

"""
LLM-backed subtask generation.

Only produces (title, description) pairs; attaching them to a task is done by
mutations.attach_subtasks.
"""

from __future__ import annotations

import json
import logging
import re

from ..core.ports import LLMClient
from ..errors import InvalidArgumentError, LLMError
from .task_models import Task

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a software project planning assistant. "
    "You break a development task into small, concrete, sequential subtasks. "
    "Reply with a JSON array only, no prose: "
    '[{"title": "...", "description": "..."}, ...]'
)

_BULLET_RE = re.compile(r"^\s*(?:[-*]|\d+[.)])\s+(.+?)\s*$")
_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def build_prompt(task: Task, num: int, context: str | None = None) -> str:
    lines = [
        f"Break the following task into exactly {num} subtasks.",
        "",
        f"Task title: {task.title}",
        f"Task description: {task.description or '(none)'}",
    ]
    if task.subtasks:
        lines.append("Existing subtasks (do not repeat them):")
        lines.extend(f"- {s.title}" for s in task.subtasks)
    if context:
        lines.extend(["", f"Additional context: {context.strip()}"])
    return "\n".join(lines)


def _pairs_from_json(data: object) -> list[tuple[str, str]]:
    if isinstance(data, dict):
        data = data.get("subtasks", [])
    if not isinstance(data, list):
        return []
    out: list[tuple[str, str]] = []
    for item in data:
        if isinstance(item, str):
            out.append((item.strip(), ""))
        elif isinstance(item, dict) and item.get("title"):
            out.append((str(item["title"]).strip(), str(item.get("description") or "").strip()))
    return [(t, d) for t, d in out if t]


def parse_reply(text: str) -> list[tuple[str, str]]:
    """
    Accept a JSON array (optionally inside a ``` fence) or, failing that, a
    bullet / numbered list with one subtask title per line.
    """
    body = text.strip()
    m = _FENCE_RE.search(body)
    if m:
        body = m.group(1).strip()

    start, end = body.find("["), body.rfind("]")
    if start != -1 and end > start:
        try:
            pairs = _pairs_from_json(json.loads(body[start : end + 1]))
        except json.JSONDecodeError:
            pairs = []
        if pairs:
            return pairs

    pairs = []
    for line in body.splitlines():
        bm = _BULLET_RE.match(line)
        if bm:
            pairs.append((bm.group(1), ""))
    return pairs


def generate_subtasks(
    llm: LLMClient, task: Task, num: int, context: str | None = None
) -> list[tuple[str, str]]:
    if num < 1:
        raise InvalidArgumentError(f"Number of subtasks must be positive, got {num}")

    prompt = build_prompt(task, num, context)
    reply = "".join(llm.stream_chat([{"role": "user", "content": prompt}], SYSTEM_PROMPT))
    pairs = parse_reply(reply)
    if not pairs:
        logger.debug("Unparseable expansion reply for task %s: %r", task.id, reply[:500])
        raise LLMError(f"Could not read subtasks from the LLM reply for task {task.id}")

    if len(pairs) > num:
        pairs = pairs[:num]
    logger.info("Generated %d subtask(s) for task %s", len(pairs), task.id)
    return pairs
