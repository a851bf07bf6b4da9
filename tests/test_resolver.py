# tests/test_resolver.py

from __future__ import annotations

import pytest

from taskpilot.errors import InvalidArgumentError, NotFoundError
from taskpilot.tasks.resolver import (
    Resolution,
    blocked_tasks,
    eligible_tasks,
    index_tasks,
    is_satisfied,
    rank_candidates,
    resolve_id,
    select_next,
)
from taskpilot.tasks.task_ids import SubRef, TopRef
from taskpilot.tasks.task_models import Subtask


def test_empty_dependencies_always_satisfied(make_task) -> None:
    task = make_task(1)
    assert is_satisfied(task, []) is True
    assert is_satisfied(task, [make_task(2, status="pending")]) is True


def test_dangling_dependency_is_not_satisfied(make_task) -> None:
    task = make_task(1, deps=[42])
    assert is_satisfied(task, [task]) is False


def test_satisfied_only_when_every_dependency_done(make_task) -> None:
    a = make_task(1, status="done")
    b = make_task(2, status="in-progress")
    c = make_task(3, deps=[1, 2])
    tasks = [a, b, c]

    assert is_satisfied(c, tasks) is False
    b.status = a.status
    assert is_satisfied(c, tasks) is True
    # A pre-built index gives the same answer.
    assert is_satisfied(c, index_tasks(tasks)) is True


def test_is_satisfied_does_not_mutate(make_task) -> None:
    dep = make_task(1, status="pending")
    task = make_task(2, deps=[1, 1])
    is_satisfied(task, [dep, task])
    assert task.dependencies == [1, 1]
    assert dep.status == "pending"


def test_fewer_dependencies_wins_priority_tie(make_task) -> None:
    done = make_task(1, status="done", priority="low")
    a = make_task(2, priority="high")
    b = make_task(3, priority="high", deps=[1])
    assert select_next([done, b, a]) is a


def test_lower_id_breaks_full_tie(make_task) -> None:
    tasks = [make_task(7, priority="high"), make_task(3, priority="high"), make_task(5, priority="high")]
    assert select_next(tasks).id == 3


def test_priority_beats_dependency_count_and_id(make_task) -> None:
    done = make_task(1, status="done")
    low = make_task(2, priority="low")
    high = make_task(9, priority="high", deps=[1])
    assert select_next([done, low, high]) is high


def test_single_pending_follows_its_dependency(make_task) -> None:
    d = make_task(1, status="done")
    c = make_task(2, deps=[1])
    assert select_next([d, c]) is c

    d.status = c.status  # back to pending
    assert select_next([c]) is None
    # D itself is pending and unblocked, so it is what gets picked.
    assert select_next([d, c]) is d


def test_select_next_none_when_everything_done(make_task) -> None:
    assert select_next([make_task(1, status="done"), make_task(2, status="done")]) is None
    assert select_next([]) is None


def test_select_next_is_deterministic(make_task) -> None:
    tasks = [make_task(i, priority=p) for i, p in [(4, "medium"), (2, "high"), (8, "high"), (1, "low")]]
    first = select_next(tasks)
    assert all(select_next(tasks) is first for _ in range(5))
    assert [t.id for t in rank_candidates(tasks)] == [2, 8, 4, 1]


def test_in_progress_tasks_are_candidates(make_task) -> None:
    tasks = [make_task(1, status="in-progress"), make_task(2, status="done")]
    assert [t.id for t in eligible_tasks(tasks)] == [1]


def test_cycle_members_are_never_selected(make_task) -> None:
    a = make_task(1, deps=[2])
    b = make_task(2, deps=[1])
    free = make_task(3, priority="low")
    assert select_next([a, b, free]) is free
    assert select_next([a, b]) is None


def test_blocked_tasks_report_waiting_and_missing(make_task) -> None:
    tasks = [
        make_task(1),
        make_task(2, priority="high", deps=[1, 77]),
        make_task(3, status="done"),
    ]
    blocked = blocked_tasks(tasks)
    assert [b.task.id for b in blocked] == [2]
    assert [t.id for t in blocked[0].waiting_on] == [1]
    assert blocked[0].missing_ids == [77]


def test_resolve_top_level_id(make_task) -> None:
    tasks = [make_task(1), make_task(2)]
    res = resolve_id(tasks, "2")
    assert res.task is tasks[1]
    assert res.is_subtask is False
    assert res.parent is None
    assert resolve_id(tasks, 2).task is tasks[1]
    assert resolve_id(tasks, TopRef(1)).task is tasks[0]


def test_resolve_dotted_id_returns_subtask_with_context(make_task) -> None:
    tasks = [make_task(1), make_task(2, subtasks=3)]
    res = resolve_id(tasks, "2.1")
    assert res.task is tasks[1].subtasks[0]
    assert res.parent is tasks[1]
    assert res.is_subtask is True
    assert res.index == 0
    assert res.owner is tasks[1]
    assert resolve_id(tasks, SubRef(2, 3)).index == 2


def test_resolve_dotted_id_not_found_without_subtasks(make_task) -> None:
    tasks = [make_task(2)]
    with pytest.raises(NotFoundError):
        resolve_id(tasks, "2.1")


@pytest.mark.parametrize("token", ["9", "9.1", "1.4"])
def test_resolve_unknown_ids(make_task, token: str) -> None:
    tasks = [make_task(1, subtasks=3)]
    with pytest.raises(NotFoundError):
        resolve_id(tasks, token)


def test_resolve_malformed_token(make_task) -> None:
    with pytest.raises(InvalidArgumentError):
        resolve_id([make_task(1)], "one")


def test_owner_of_a_detached_subtask_is_an_error() -> None:
    res = Resolution(task=Subtask(id=1, title="orphan"))
    with pytest.raises(TypeError):
        res.owner
