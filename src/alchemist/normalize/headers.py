# src/alchemist/normalize/headers.py
"""
@brief
Header normalization: maps arbitrary upload headers to canonical field names.

@details
FIELD_ALIASES is the single alias table of the project. It is consulted by
the header suggestion step (for the mapping shown to users), by the schema
coercer when it resolves legacy column names, and by the structural pass
when it decides whether a required column is present.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from alchemist.dataloader.types import EntityType
from alchemist.normalize.values import is_blank

_NON_ALNUM = re.compile(r"[^0-9a-z]+")

# canonical field -> aliases, in match priority order
FIELD_ALIASES: dict[EntityType, dict[str, tuple[str, ...]]] = {
    EntityType.CLIENT: {
        "id": ("client_id", "clientid", "identifier", "client-id"),
        "name": ("client_name", "clientname", "full_name", "fullname"),
        "priorityLevel": ("priority_level", "priority", "client_priority"),
        "requestedTaskIDs": ("requested_task_ids", "requested_tasks", "task_ids"),
        "groupTag": ("group_tag", "group", "client_group"),
        "attributesJSON": ("attributes_json", "attributes", "attrs"),
        "email": ("email_address", "e_mail", "contact_email"),
        "phone": ("phone_number", "telephone", "mobile"),
        "address": ("location", "address_line", "full_address"),
        "status": ("client_status", "state"),
        "metadata": ("meta", "additional_info", "custom_data", "extras"),
    },
    EntityType.WORKER: {
        "id": ("worker_id", "workerid", "employee_id", "emp_id"),
        "name": ("worker_name", "workername", "full_name", "employee_name"),
        "skills": ("skill_set", "skillset", "abilities", "competencies"),
        "availableSlots": ("available_slots", "slots", "availability_slots"),
        "maxLoadPerPhase": ("max_load_per_phase", "max_load", "load_limit"),
        "workerGroup": ("worker_group", "group", "team"),
        "qualificationLevel": ("qualification_level", "qualification", "level"),
        "hourlyRate": ("hourly_rate", "rate"),
        "availability": ("schedule", "working_hours", "employment_type"),
        "maxHoursPerWeek": ("max_hours_per_week", "capacity", "max_capacity", "weekly_hours"),
        "status": ("worker_status", "state"),
        "email": ("email_address", "work_email", "contact_email"),
        "preferences": ("prefs", "settings", "custom_preferences"),
    },
    EntityType.TASK: {
        "id": ("task_id", "taskid", "ticket_id", "job_id"),
        "title": ("task_title", "task_name", "taskname", "name"),
        "category": ("task_category", "type"),
        "duration": ("task_duration", "duration_phases"),
        "requiredSkills": ("required_skills", "skills_required", "skills"),
        "preferredPhases": ("preferred_phases", "phase_window", "phases"),
        "maxConcurrent": ("max_concurrent", "concurrency"),
        "description": ("details", "task_description", "summary"),
        "status": ("task_status", "state", "progress"),
        "priority": ("task_priority", "importance", "urgency"),
        "dueDate": ("due_date", "deadline", "target_date"),
        "assignedTo": ("assigned_to", "assignee", "worker_id", "workerid"),
        "clientId": ("client_id", "clientid", "client"),
        "createdAt": ("created_at", "created"),
        "estimatedHours": ("estimated_hours", "estimate", "effort"),
        "actualHours": ("actual_hours", "hours_spent"),
        "dependencies": ("depends_on", "dependency", "prerequisites"),
        "attributes": ("attrs", "custom_attributes", "properties"),
    },
}


@dataclass(frozen=True, slots=True)
class HeaderMatch:
    """Suggested canonical field for one uploaded header."""

    field: str
    confidence: float
    reason: str


def normalize_key(text: Any) -> str:
    """Lower-case and drop whitespace and punctuation: 'Client_ID ' -> 'clientid'."""
    return _NON_ALNUM.sub("", str(text).lower())


def canonical_field(header: Any, entity_type: EntityType) -> str | None:
    """
    @brief
    Resolve a header to its canonical field through exact or alias match only.

    @returns
        Canonical field name, or None when the header is not a known name.
    """
    match = _exact_or_alias(normalize_key(header), FIELD_ALIASES[entity_type])
    return match.field if match else None


def suggest_header_mapping(
    headers: Iterable[Any], entity_type: EntityType
) -> dict[str, HeaderMatch]:
    """
    @brief
    Suggest canonical fields for uploaded headers.

    @details
    Match tiers, in priority order across all fields:
        (1) exact canonical name (confidence 1.0)
        (2) alias (confidence 0.9)
        (3) substring containment in either direction (confidence 0.7)
    Headers without any match are omitted and left for manual mapping.
    Never raises.

    @params
        headers : Iterable
            Raw header strings as uploaded.
        entity_type : EntityType
            Which alias table to consult.

    @returns
        Mapping original header -> HeaderMatch.
    """
    table = FIELD_ALIASES[entity_type]
    mapping: dict[str, HeaderMatch] = {}

    for header in headers:
        key = normalize_key(header)
        if not key:
            continue
        match = _exact_or_alias(key, table) or _partial(key, table)
        if match is not None:
            mapping[str(header)] = match

    return mapping


def apply_header_mapping(
    row: dict[str, Any], mapping: dict[str, HeaderMatch], threshold: float
) -> dict[str, Any]:
    """
    @brief
    Rename row keys whose suggested match meets the confidence threshold.

    @details
    Unmapped headers keep their original name. When two headers land on the
    same canonical field the first non-empty value is kept.
    """
    renamed: dict[str, Any] = {}
    for key, value in row.items():
        match = mapping.get(key)
        target = match.field if match is not None and match.confidence >= threshold else key
        if target in renamed and not is_blank(renamed[target]):
            continue
        renamed[target] = value
    return renamed


def _exact_or_alias(key: str, table: dict[str, tuple[str, ...]]) -> HeaderMatch | None:
    # (1) Exact canonical match wins over any alias
    for field in table:
        if normalize_key(field) == key:
            return HeaderMatch(field=field, confidence=1.0, reason="Exact match")

    # (2) Alias match
    for field, aliases in table.items():
        for alias in aliases:
            if normalize_key(alias) == key:
                return HeaderMatch(field=field, confidence=0.9, reason=f"Matched alias: {alias}")
    return None


def _partial(key: str, table: dict[str, tuple[str, ...]]) -> HeaderMatch | None:
    for field in table:
        canonical = normalize_key(field)
        if canonical in key or key in canonical:
            return HeaderMatch(field=field, confidence=0.7, reason="Partial match")
    return None


__all__ = [
    "FIELD_ALIASES",
    "HeaderMatch",
    "apply_header_mapping",
    "canonical_field",
    "normalize_key",
    "suggest_header_mapping",
]
