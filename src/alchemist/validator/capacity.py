# src/alchemist/validator/capacity.py
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping, Sequence
from typing import Any

from alchemist.dataloader.types import ValidationIssue
from alchemist.normalize.values import clamp_int, parse_phase_list, split_list, to_text
from alchemist.schemas.models import DEFAULT_MAX_LOAD_PER_PHASE

logger = logging.getLogger(__name__)


def _skill_key(skill: str) -> str:
    return skill.strip().lower()


def _worker_skills(worker: Mapping[str, Any]) -> set[str]:
    return {_skill_key(s) for s in split_list(worker.get("skills")) if s.strip()}


def _max_load(worker: Mapping[str, Any]) -> int:
    return clamp_int(worker.get("maxLoadPerPhase"), default=DEFAULT_MAX_LOAD_PER_PHASE, lower=1)


def _task_load(task: Mapping[str, Any]) -> tuple[int, int]:
    duration = clamp_int(task.get("duration"), default=1, lower=1)
    concurrent = clamp_int(task.get("maxConcurrent"), default=1, lower=1)
    return duration, concurrent


def check_skill_coverage(
    workers: Sequence[Mapping[str, Any]], tasks: Sequence[Mapping[str, Any]]
) -> list[ValidationIssue]:
    """
    @brief
    Every required skill must be held by at least one worker.

    @details
    Skills are compared trimmed and case-insensitively. Each uncovered skill
    on each task yields one issue on the task row.
    """
    pool: set[str] = set()
    for worker in workers:
        pool |= _worker_skills(worker)

    issues: list[ValidationIssue] = []
    for index, task in enumerate(tasks):
        for skill in split_list(task.get("requiredSkills")):
            if _skill_key(skill) not in pool:
                issues.append(
                    ValidationIssue(
                        row=index + 1,
                        field="requiredSkills",
                        message=f'Required skill "{skill}" not found in any worker',
                        value=skill,
                    )
                )
    return issues


def check_phase_saturation(
    workers: Sequence[Mapping[str, Any]], tasks: Sequence[Mapping[str, Any]]
) -> list[ValidationIssue]:
    """
    @brief
    Compare required and available capacity per phase.

    @details
    (1) required[p] += duration * maxConcurrent for each preferred phase p of each task
    (2) available[p] += maxLoadPerPhase for each available slot p of each worker
    (3) one file-level issue for each phase where required > available

    Phases are reported in ascending order.
    """
    required: dict[int, int] = defaultdict(int)
    for task in tasks:
        duration, concurrent = _task_load(task)
        for phase in parse_phase_list(task.get("preferredPhases")):
            required[phase] += duration * concurrent

    available: dict[int, int] = defaultdict(int)
    for worker in workers:
        load = _max_load(worker)
        for phase in parse_phase_list(worker.get("availableSlots")):
            available[phase] += load

    issues: list[ValidationIssue] = []
    for phase in sorted(required):
        need, have = required[phase], available.get(phase, 0)
        if need > have:
            issues.append(
                ValidationIssue(
                    row=0,
                    field="phaseCapacity",
                    message=(
                        f"Phase {phase} is oversaturated: requires {need} slots, "
                        f"only {have} available"
                    ),
                    value=f"Phase {phase}: {need}/{have}",
                )
            )

    if issues:
        logger.warning("%d phase(s) oversaturated", len(issues))
    return issues


def check_worker_overload(
    workers: Sequence[Mapping[str, Any]], tasks: Sequence[Mapping[str, Any]]
) -> list[ValidationIssue]:
    """
    @brief
    Work assigned to a worker must fit into the worker's slots.

    @details
    Sums the duration of tasks whose assignedTo names the worker and compares
    it with len(availableSlots) * maxLoadPerPhase. The issue lands on the
    worker row (first row carrying the id).
    """
    assigned: dict[str, int] = defaultdict(int)
    for task in tasks:
        wid = to_text(task.get("assignedTo"))
        if wid:
            assigned[wid] += _task_load(task)[0]

    issues: list[ValidationIssue] = []
    seen: set[str] = set()
    for index, worker in enumerate(workers):
        wid = to_text(worker.get("id"))
        if not wid or wid in seen or wid not in assigned:
            continue
        seen.add(wid)
        slots = len(parse_phase_list(worker.get("availableSlots")))
        capacity = slots * _max_load(worker)
        if assigned[wid] > capacity:
            issues.append(
                ValidationIssue(
                    row=index + 1,
                    field="availableSlots",
                    message=(
                        f'Worker "{wid}" is overloaded: assigned {assigned[wid]} phase(s) of work, '
                        f"capacity {capacity} ({slots} slot(s) × {_max_load(worker)})"
                    ),
                    value=f"{assigned[wid]}/{capacity}",
                )
            )
    return issues


def check_concurrency_feasibility(
    workers: Sequence[Mapping[str, Any]], tasks: Sequence[Mapping[str, Any]]
) -> list[ValidationIssue]:
    """
    @brief
    maxConcurrent must not exceed the number of workers qualified for the task.

    @details
    A worker is qualified when it holds every required skill of the task.
    Skipped when there are no workers at all; skill coverage reports that case.
    """
    if not workers:
        return []
    skill_sets = [_worker_skills(worker) for worker in workers]

    issues: list[ValidationIssue] = []
    for index, task in enumerate(tasks):
        _, concurrent = _task_load(task)
        needed = {_skill_key(s) for s in split_list(task.get("requiredSkills"))}
        qualified = sum(1 for skills in skill_sets if needed <= skills)
        if concurrent > qualified:
            issues.append(
                ValidationIssue(
                    row=index + 1,
                    field="maxConcurrent",
                    message=f"MaxConcurrent ({concurrent}) exceeds qualified workers ({qualified})",
                    value=to_text(task.get("maxConcurrent")),
                )
            )
    return issues


__all__ = [
    "check_concurrency_feasibility",
    "check_phase_saturation",
    "check_skill_coverage",
    "check_worker_overload",
]
