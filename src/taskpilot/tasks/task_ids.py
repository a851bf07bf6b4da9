# src/taskpilot/tasks/task_ids.py

"""
Task addressing.

A task is addressed either by its top-level id ("3") or by a dotted
"parent.position" pair ("3.2" = second subtask of task 3). Tokens are parsed
once, at the boundary, into TopRef / SubRef; everything else works with those.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TypeAlias

from ..errors import InvalidArgumentError

_TOKEN_RE = re.compile(r"^(\d+)(?:\.(\d+))?$")


@dataclass(frozen=True, slots=True)
class TopRef:
    task_id: int

    def __str__(self) -> str:
        return str(self.task_id)


@dataclass(frozen=True, slots=True)
class SubRef:
    parent_id: int
    position: int  # 1-based

    def __str__(self) -> str:
        return f"{self.parent_id}.{self.position}"


TaskRef: TypeAlias = TopRef | SubRef


def parse_task_ref(token: TaskRef | int | str) -> TaskRef:
    if isinstance(token, (TopRef, SubRef)):
        return token
    if isinstance(token, bool):
        raise InvalidArgumentError(f"Malformed task id: {token!r}")
    if isinstance(token, int):
        if token < 1:
            raise InvalidArgumentError(f"Task id must be a positive integer: {token}")
        return TopRef(token)

    raw = str(token).strip()
    m = _TOKEN_RE.match(raw)
    if not m:
        raise InvalidArgumentError(
            f"Malformed task id: {token!r} (expected N or N.M)", details={"token": token}
        )

    head = int(m.group(1))
    if head < 1:
        raise InvalidArgumentError(f"Task id must be a positive integer: {raw}")
    if m.group(2) is None:
        return TopRef(head)

    position = int(m.group(2))
    if position < 1:
        raise InvalidArgumentError(f"Subtask position must start at 1: {raw}")
    return SubRef(head, position)


def parse_task_refs(raw: str | list[str] | tuple[str, ...]) -> list[TaskRef]:
    """
    Parse "1,2.1, 3" (or a list of such strings) into unique refs, keeping
    first-seen order.
    """
    chunks = [raw] if isinstance(raw, str) else list(raw)
    tokens = [p.strip() for chunk in chunks for p in str(chunk).split(",")]
    tokens = [t for t in tokens if t]
    if not tokens:
        raise InvalidArgumentError("At least one task id is required")

    out: list[TaskRef] = []
    seen: set[TaskRef] = set()
    for token in tokens:
        ref = parse_task_ref(token)
        if ref in seen:
            continue
        seen.add(ref)
        out.append(ref)
    return out


def parse_top_ids(raw: str) -> list[int]:
    """Comma-separated top-level ids only (dependency lists, clear-subtasks)."""
    out: list[int] = []
    for ref in parse_task_refs(raw):
        if not isinstance(ref, TopRef):
            raise InvalidArgumentError(f"Expected a top-level task id, got {ref}")
        out.append(ref.task_id)
    return out
