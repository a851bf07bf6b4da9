# src/taskpilot/tasks/validation.py

"""
Dependency validation passes.

Each pass walks the whole collection and returns findings; none of them
mutate or raise. The selector does not depend on these: a task caught in a
cycle or pointing at a missing id is simply never eligible.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

import networkx as nx

from .task_models import Task

logger = logging.getLogger(__name__)


class FindingKind(StrEnum):
    SELF_DEPENDENCY = "self_dependency"
    DANGLING_DEPENDENCY = "dangling_dependency"
    DUPLICATE_DEPENDENCY = "duplicate_dependency"
    CYCLE = "cycle"


@dataclass(frozen=True, slots=True)
class DependencyFinding:
    kind: FindingKind
    task_id: int
    dependency_id: int | None = None
    cycle: tuple[int, ...] = ()

    def describe(self) -> str:
        if self.kind is FindingKind.SELF_DEPENDENCY:
            return f"Task {self.task_id} depends on itself"
        if self.kind is FindingKind.DANGLING_DEPENDENCY:
            return f"Task {self.task_id} depends on missing task {self.dependency_id}"
        if self.kind is FindingKind.DUPLICATE_DEPENDENCY:
            return f"Task {self.task_id} lists dependency {self.dependency_id} more than once"
        path = " -> ".join(str(i) for i in (*self.cycle, self.cycle[0]))
        return f"Dependency cycle: {path}"


def build_dependency_graph(tasks: Iterable[Task]) -> nx.DiGraph:
    """
    DiGraph over existing tasks.

    Edges go from dependency -> dependent (predecessor -> successor).
    Self-loops and edges to missing tasks are left out; they have their own passes.
    """
    all_tasks = list(tasks)
    graph = nx.DiGraph()
    for task in all_tasks:
        graph.add_node(task.id, task=task)
    for task in all_tasks:
        for dep_id in task.dependencies:
            if dep_id != task.id and dep_id in graph:
                graph.add_edge(dep_id, task.id)
    return graph


def find_self_dependencies(tasks: Iterable[Task]) -> list[DependencyFinding]:
    return [
        DependencyFinding(FindingKind.SELF_DEPENDENCY, task_id=t.id, dependency_id=t.id)
        for t in tasks
        if t.id in t.dependencies
    ]


def find_dangling_dependencies(tasks: Iterable[Task]) -> list[DependencyFinding]:
    all_tasks = list(tasks)
    known = {t.id for t in all_tasks}
    out: list[DependencyFinding] = []
    for task in all_tasks:
        for dep_id in dict.fromkeys(task.dependencies):
            if dep_id not in known:
                out.append(
                    DependencyFinding(
                        FindingKind.DANGLING_DEPENDENCY, task_id=task.id, dependency_id=dep_id
                    )
                )
    return out


def find_duplicate_dependencies(tasks: Iterable[Task]) -> list[DependencyFinding]:
    out: list[DependencyFinding] = []
    for task in tasks:
        counts = Counter(task.dependencies)
        for dep_id, n in counts.items():
            if n > 1:
                out.append(
                    DependencyFinding(
                        FindingKind.DUPLICATE_DEPENDENCY, task_id=task.id, dependency_id=dep_id
                    )
                )
    return out


def _normalize_cycle(nodes: list[int]) -> tuple[int, ...]:
    # Rotate so the smallest id comes first; keeps output stable across runs.
    start = nodes.index(min(nodes))
    return tuple(nodes[start:] + nodes[:start])


def find_cycles(tasks: Iterable[Task]) -> list[DependencyFinding]:
    """
    One finding per strongly connected component with more than one task.

    The reported cycle is a concrete loop inside that component, written in
    dependency order (each id depends on the one before it).
    """
    graph = build_dependency_graph(tasks)
    out: list[DependencyFinding] = []
    for component in nx.strongly_connected_components(graph):
        if len(component) < 2:
            continue
        sub = graph.subgraph(component)
        edges = nx.find_cycle(sub, source=min(component))
        cycle = _normalize_cycle([u for u, _v in edges])
        out.append(DependencyFinding(FindingKind.CYCLE, task_id=cycle[0], cycle=cycle))
    out.sort(key=lambda f: f.cycle)
    return out


def would_create_cycle(tasks: Iterable[Task], task_id: int, depends_on: int) -> list[int] | None:
    """
    Check whether making `task_id` depend on `depends_on` closes a loop.

    Returns the existing path task_id -> ... -> depends_on (in predecessor ->
    successor order) when it does, else None.
    """
    graph = build_dependency_graph(tasks)
    if task_id not in graph or depends_on not in graph:
        return None
    try:
        return list(nx.shortest_path(graph, task_id, depends_on))
    except nx.NetworkXNoPath:
        return None


def validate_dependencies(tasks: Iterable[Task]) -> list[DependencyFinding]:
    all_tasks = list(tasks)
    findings = [
        *find_self_dependencies(all_tasks),
        *find_dangling_dependencies(all_tasks),
        *find_duplicate_dependencies(all_tasks),
        *find_cycles(all_tasks),
    ]
    for f in findings:
        logger.debug("Dependency finding: %s", f.describe())
    return findings
