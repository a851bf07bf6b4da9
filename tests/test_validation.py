# tests/test_validation.py

from __future__ import annotations

from taskpilot.tasks.validation import (
    FindingKind,
    build_dependency_graph,
    find_cycles,
    find_dangling_dependencies,
    validate_dependencies,
    would_create_cycle,
)


def test_clean_graph_has_no_findings(make_task) -> None:
    tasks = [make_task(1), make_task(2, deps=[1]), make_task(3, deps=[1, 2])]
    assert validate_dependencies(tasks) == []


def test_graph_edges_go_from_dependency_to_dependent(make_task) -> None:
    tasks = [make_task(1), make_task(2, deps=[1, 2, 50])]
    graph = build_dependency_graph(tasks)
    assert set(graph.edges) == {(1, 2)}
    assert set(graph.nodes) == {1, 2}


def test_dangling_reported_once_per_task_and_id(make_task) -> None:
    tasks = [make_task(1, deps=[9, 9, 8]), make_task(2, deps=[9])]
    found = [(f.task_id, f.dependency_id) for f in find_dangling_dependencies(tasks)]
    assert found == [(1, 9), (1, 8), (2, 9)]


def test_all_kinds_are_reported(make_task) -> None:
    tasks = [
        make_task(1, deps=[1]),
        make_task(2, deps=[3, 3]),
        make_task(3, deps=[4]),
        make_task(4, deps=[2, 100]),
    ]
    kinds = {f.kind for f in validate_dependencies(tasks)}
    assert kinds == {
        FindingKind.SELF_DEPENDENCY,
        FindingKind.DUPLICATE_DEPENDENCY,
        FindingKind.DANGLING_DEPENDENCY,
        FindingKind.CYCLE,
    }


def test_cycle_is_normalized_to_smallest_id(make_task) -> None:
    tasks = [make_task(5, deps=[3]), make_task(3, deps=[4]), make_task(4, deps=[5]), make_task(6)]
    cycles = find_cycles(tasks)
    assert len(cycles) == 1
    assert cycles[0].cycle[0] == 3
    assert set(cycles[0].cycle) == {3, 4, 5}
    assert "Dependency cycle: 3 -> " in cycles[0].describe()


def test_separate_cycles_reported_separately(make_task) -> None:
    tasks = [
        make_task(1, deps=[2]),
        make_task(2, deps=[1]),
        make_task(3, deps=[4]),
        make_task(4, deps=[3]),
    ]
    assert [f.cycle for f in find_cycles(tasks)] == [(1, 2), (3, 4)]


def test_would_create_cycle(make_task) -> None:
    # 3 depends on 2, 2 depends on 1
    tasks = [make_task(1), make_task(2, deps=[1]), make_task(3, deps=[2])]
    assert would_create_cycle(tasks, 1, 3) == [1, 2, 3]
    assert would_create_cycle(tasks, 3, 1) is None
    assert would_create_cycle(tasks, 1, 42) is None
