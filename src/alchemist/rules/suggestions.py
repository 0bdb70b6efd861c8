# src/alchemist/rules/suggestions.py
"""
@brief
Pattern-based rule suggestions derived from the uploaded collections.

@details
Suggestions are hints, not rules: each carries a confidence and the
parameters a rule of that type would need. Calling to_rule() turns a
suggestion into a validated rule that can be added to a RuleBook.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from alchemist.normalize.values import split_list, to_text
from alchemist.rules.rulebook import parse_rule
from alchemist.schemas.rules import Rule

TASKS_PER_WORKER_THRESHOLD = 5.0
LOAD_LIMIT_FACTOR = 0.8
URGENT_SHARE_THRESHOLD = 0.3


@dataclass(frozen=True, slots=True)
class RuleSuggestion:
    type: str
    name: str
    description: str
    confidence: float
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_rule(self, priority: int = 1) -> Rule:
        return parse_rule(
            {
                "type": self.type,
                "name": self.name,
                "description": self.description,
                "priority": priority,
                "parameters": self.parameters,
            }
        )


def _load_limit(
    workers: Sequence[Mapping[str, Any]], tasks: Sequence[Mapping[str, Any]]
) -> list[RuleSuggestion]:
    if not workers or not tasks:
        return []
    avg = len(tasks) / len(workers)
    if avg <= TASKS_PER_WORKER_THRESHOLD:
        return []

    groups = Counter(to_text(w.get("workerGroup")) for w in workers)
    groups.pop("", None)
    group = groups.most_common(1)[0][0] if groups else "all"
    return [
        RuleSuggestion(
            type="load-limit",
            name=f"Load limit for {group}",
            description=(
                f"Detected high task load ({avg:.1f} tasks per worker). "
                "Consider adding a capacity limit rule."
            ),
            confidence=0.8,
            parameters={
                "workerGroup": group,
                "maxSlotsPerPhase": math.ceil(avg * LOAD_LIMIT_FACTOR),
            },
        )
    ]


def _precedence(tasks: Sequence[Mapping[str, Any]]) -> list[RuleSuggestion]:
    if not tasks:
        return []
    urgent = sum(1 for t in tasks if to_text(t.get("priority")).lower() == "urgent")
    if urgent <= len(tasks) * URGENT_SHARE_THRESHOLD:
        return []
    return [
        RuleSuggestion(
            type="precedence-override",
            name="Escalate urgent tasks",
            description=(
                f"High number of urgent tasks ({urgent}). "
                "Consider implementing priority escalation rules."
            ),
            confidence=0.75,
            parameters={"condition": "priority = urgent", "override": True},
        )
    ]


def _co_run(
    clients: Sequence[Mapping[str, Any]], tasks: Sequence[Mapping[str, Any]]
) -> list[RuleSuggestion]:
    known = {to_text(t.get("id")) for t in tasks} - {""}
    suggestions: list[RuleSuggestion] = []
    seen: set[tuple[str, ...]] = set()
    for client in clients:
        tokens = dict.fromkeys(split_list(client.get("requestedTaskIDs")))
        requested = [tid for tid in tokens if tid in known]
        key = tuple(sorted(requested))
        if len(requested) < 2 or key in seen:
            continue
        seen.add(key)
        cid = to_text(client.get("id")) or "client"
        suggestions.append(
            RuleSuggestion(
                type="co-run",
                name=f"Co-run tasks requested by {cid}",
                description=f"Client {cid} requests {len(requested)} tasks together.",
                confidence=0.6,
                parameters={"taskIds": requested},
            )
        )
    return suggestions


def suggest_rules(
    clients: Sequence[Mapping[str, Any]],
    workers: Sequence[Mapping[str, Any]],
    tasks: Sequence[Mapping[str, Any]],
) -> list[RuleSuggestion]:
    """
    @brief
    Suggest rules from simple workload and priority patterns.

    @details
    (1) load-limit when the average number of tasks per worker exceeds 5
    (2) precedence-override when more than 30% of tasks are urgent
    (3) co-run for each client that requests two or more known tasks

    @returns
        Suggestions sorted by descending confidence.
    """
    found = _load_limit(workers, tasks) + _precedence(tasks) + _co_run(clients, tasks)
    return sorted(found, key=lambda s: -s.confidence)


__all__ = ["RuleSuggestion", "suggest_rules"]
