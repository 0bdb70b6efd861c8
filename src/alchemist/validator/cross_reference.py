# src/alchemist/validator/cross_reference.py
"""
@brief
Checks that need more than one collection: id references and dependency cycles.

@details
Inputs are entity rows as exposed by ValidationResult.data: coerced dumps
where coercion succeeded, raw id-stamped rows otherwise. The position of a
row in its collection gives its row number (index + 1), so rows that failed
coercion still take part in the id sets and still receive their errors.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Literal

from alchemist.dataloader.types import ValidationIssue
from alchemist.normalize.values import split_list, to_text

logger = logging.getLogger(__name__)

CyclePolicy = Literal["first", "all"]
ARROW = " → "


def collect_ids(rows: Sequence[Mapping[str, Any]]) -> set[str]:
    """Non-empty ids of a collection."""
    return {rid for rid in (to_text(row.get("id")) for row in rows) if rid}


def check_task_references(
    clients: Sequence[Mapping[str, Any]],
    workers: Sequence[Mapping[str, Any]],
    tasks: Sequence[Mapping[str, Any]],
) -> list[ValidationIssue]:
    """
    @brief
    Validate task -> worker, task -> client and task -> task references.

    @details
    For each task row, in order: assignedTo must be a worker id, clientId a
    client id, and every dependency token a task id (one issue per missing
    dependency). Blank references are not checked.
    """
    client_ids = collect_ids(clients)
    worker_ids = collect_ids(workers)
    task_ids = collect_ids(tasks)

    issues: list[ValidationIssue] = []
    for index, task in enumerate(tasks):
        row_number = index + 1

        assigned = to_text(task.get("assignedTo"))
        if assigned and assigned not in worker_ids:
            issues.append(
                ValidationIssue(
                    row=row_number,
                    field="assignedTo",
                    message=f'Worker ID "{assigned}" not found in workers data',
                    value=assigned,
                )
            )

        client = to_text(task.get("clientId"))
        if client and client not in client_ids:
            issues.append(
                ValidationIssue(
                    row=row_number,
                    field="clientId",
                    message=f'Client ID "{client}" not found in clients data',
                    value=client,
                )
            )

        for dep in split_list(task.get("dependencies")):
            if dep not in task_ids:
                issues.append(
                    ValidationIssue(
                        row=row_number,
                        field="dependencies",
                        message=f'Dependency task ID "{dep}" not found in tasks data',
                        value=dep,
                    )
                )

    return issues


def check_requested_tasks(
    clients: Sequence[Mapping[str, Any]], tasks: Sequence[Mapping[str, Any]]
) -> list[ValidationIssue]:
    """Each requested task id of a client must exist among the tasks."""
    task_ids = collect_ids(tasks)
    issues: list[ValidationIssue] = []
    for index, client in enumerate(clients):
        for tid in split_list(client.get("requestedTaskIDs")):
            if tid not in task_ids:
                issues.append(
                    ValidationIssue(
                        row=index + 1,
                        field="requestedTaskIDs",
                        message=f'Requested task ID "{tid}" not found in tasks data',
                        value=tid,
                    )
                )
    return issues


class _CycleSearch:
    """
    @brief
    Depth-first search over the task dependency graph.

    @details
    Edges point from a task to each of its dependencies that exists. The
    search keeps a recursion stack (the current path) and a global visited
    set, so every task is expanded at most once. A dependency already on the
    stack closes a cycle: the path from its first occurrence to the current
    task, followed by the repeated task.

    Policy "first" abandons a root as soon as one cycle is found under it,
    so at most one cycle per cluster is reported. Policy "all" keeps going
    and reports every back edge; a cycle seen again under another rotation
    is reported once.
    """

    def __init__(self, graph: dict[str, list[str]], policy: CyclePolicy) -> None:
        self.graph = graph
        self.policy = policy
        self.visited: set[str] = set()
        self.cycles: list[list[str]] = []
        self._seen: set[tuple[str, ...]] = set()

    def run(self) -> list[list[str]]:
        for root in self.graph:
            if root not in self.visited:
                self._explore(root)
        return self.cycles

    def _explore(self, root: str) -> None:
        path: list[str] = [root]
        on_stack: set[str] = {root}
        stack: list[tuple[str, Iterator[str]]] = [(root, iter(self.graph[root]))]
        self.visited.add(root)

        while stack:
            node, deps = stack[-1]
            descended = False
            for dep in deps:
                if dep in on_stack:
                    self._record(path[path.index(dep):] + [dep])
                    if self.policy == "first":
                        return
                    continue
                if dep not in self.visited:
                    self.visited.add(dep)
                    on_stack.add(dep)
                    path.append(dep)
                    stack.append((dep, iter(self.graph[dep])))
                    descended = True
                    break
            if not descended:
                stack.pop()
                on_stack.discard(node)
                path.pop()

    def _record(self, cycle: list[str]) -> None:
        members = cycle[:-1]
        pivot = members.index(min(members))
        key = tuple(members[pivot:] + members[:pivot])
        if key in self._seen:
            return
        self._seen.add(key)
        self.cycles.append(cycle)


def find_dependency_cycles(
    tasks: Sequence[Mapping[str, Any]], policy: CyclePolicy = "first"
) -> list[ValidationIssue]:
    """
    @brief
    Detect circular task dependencies.

    @params
        tasks : Sequence[Mapping]
            Task rows; the first row carrying an id owns it.
        policy : "first" | "all"
            Whether to stop at the first cycle per unvisited root.

    @returns
        One issue per distinct task on each cycle, field "dependencies",
        message "Circular dependency detected: T1 → T2 → T3 → T1".
    """
    task_ids = collect_ids(tasks)
    row_of: dict[str, int] = {}
    graph: dict[str, list[str]] = {}

    # (1) Build adjacency restricted to existing tasks
    for index, task in enumerate(tasks):
        tid = to_text(task.get("id"))
        if not tid or tid in graph:
            continue
        row_of[tid] = index + 1
        graph[tid] = [dep for dep in split_list(task.get("dependencies")) if dep in task_ids]

    # (2) Search and render
    issues: list[ValidationIssue] = []
    for cycle in _CycleSearch(graph, policy).run():
        chain = ARROW.join(cycle)
        for tid in dict.fromkeys(cycle):
            issues.append(
                ValidationIssue(
                    row=row_of[tid],
                    field="dependencies",
                    message=f"Circular dependency detected: {chain}",
                    value=chain,
                )
            )

    if issues:
        logger.info("Dependency cycle search (%s) flagged %d task(s)", policy, len(issues))
    return issues


__all__ = [
    "CyclePolicy",
    "check_requested_tasks",
    "check_task_references",
    "collect_ids",
    "find_dependency_cycles",
]
