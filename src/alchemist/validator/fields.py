# src/alchemist/validator/fields.py
"""
@brief
Row-level checks over the canonical raw rows.

@details
These checks read the values as uploaded, not the coerced entities:
coercion clamps priority 9 to 5 and drops the token "x" from "1,x,3", and
only the raw value still shows what the user actually typed.
Blank values are skipped; missing required values are reported by coercion.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

import pandas as pd

from alchemist.dataloader.types import EntityType, ValidationIssue
from alchemist.normalize.values import (
    is_valid_json_object,
    parse_int_token,
    parse_number,
    strip_brackets,
    to_text,
)
from alchemist.schemas.models import PRIORITY_RANGE, LimitsConfig

logger = logging.getLogger(__name__)

JSON_FIELDS: dict[EntityType, tuple[str, ...]] = {
    EntityType.CLIENT: ("attributesJSON", "metadata"),
    EntityType.WORKER: ("preferences",),
    EntityType.TASK: ("attributes",),
}

# entity -> (field, message for bad tokens, message for a bad range)
_PHASE_LIST_FIELDS: dict[EntityType, tuple[str, str, str]] = {
    EntityType.WORKER: (
        "availableSlots",
        "AvailableSlots must contain valid phase numbers (≥1)",
        "AvailableSlots must contain valid phase numbers (≥1)",
    ),
    EntityType.TASK: (
        "preferredPhases",
        "PreferredPhases must contain valid phase numbers (≥1)",
        "Invalid phase range format or values",
    ),
}

_RELATIVE_DATES = frozenset({"now", "today"})


def _issue(row_number: int, field: str, message: str, raw: Any) -> ValidationIssue:
    return ValidationIssue(row=row_number, field=field, message=message, value=to_text(raw))


def _fmt(number: float) -> str:
    return f"{number:,.0f}" if float(number).is_integer() else f"{number:,}"


# ------------------------------------------------------------
# Range checks
# ------------------------------------------------------------
def check_ranges(
    rows: Sequence[Mapping[str, Any]],
    entity_type: EntityType,
    limits: LimitsConfig | None = None,
    now: datetime | None = None,
) -> list[ValidationIssue]:
    """
    @brief
    Out-of-range checks on raw numeric and date values.

    @details
    Clients: priority level must be an integer in 1..5.
    Workers: hourly rate (negative, above limit), weekly capacity (below 1,
    above the hours in a week), per-phase load below 1.
    Tasks: duration integer >= 1, due date window, estimated and actual hours.

    @params
        rows : Sequence[Mapping]
            Canonical raw rows in upload order.
        entity_type : EntityType
            Collection the rows belong to.
        limits : LimitsConfig | None
            Thresholds; defaults apply when omitted.
        now : datetime | None
            Reference time for the due date horizon (UTC now by default).

    @returns
        Issues in row order.
    """
    limits = limits or LimitsConfig()
    issues: list[ValidationIssue] = []

    for index, row in enumerate(rows):
        row_number = index + 1
        if entity_type is EntityType.CLIENT:
            issues.extend(_client_ranges(row, row_number))
        elif entity_type is EntityType.WORKER:
            issues.extend(_worker_ranges(row, row_number, limits))
        else:
            issues.extend(_task_ranges(row, row_number, limits, now))

    return issues


def _client_ranges(row: Mapping[str, Any], row_number: int) -> list[ValidationIssue]:
    raw = row.get("priorityLevel")
    if to_text(raw) == "":
        return []
    number = parse_number(raw)
    low, high = PRIORITY_RANGE
    if number is None or not number.is_integer() or not low <= number <= high:
        return [_issue(row_number, "priorityLevel", "PriorityLevel must be between 1 and 5", raw)]
    return []


def _worker_ranges(
    row: Mapping[str, Any], row_number: int, limits: LimitsConfig
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    # (1) Hourly rate
    raw_rate = row.get("hourlyRate")
    if to_text(raw_rate):
        rate = parse_number(raw_rate)
        if rate is None:
            issues.append(
                _issue(row_number, "hourlyRate", "Hourly rate must be a number", raw_rate)
            )
        elif rate < 0:
            wid = to_text(row.get("id"))
            issues.append(
                _issue(
                    row_number,
                    "hourlyRate",
                    f"Hourly rate cannot be negative (ID: {wid})",
                    raw_rate,
                )
            )
        elif rate > limits.hourly_rate_max:
            issues.append(
                _issue(
                    row_number,
                    "hourlyRate",
                    f"Hourly rate seems unreasonably high (>${limits.hourly_rate_max:g}/hour)",
                    raw_rate,
                )
            )

    # (2) Weekly capacity
    raw_capacity = row.get("maxHoursPerWeek")
    if to_text(raw_capacity):
        capacity = parse_number(raw_capacity)
        if capacity is not None and capacity < 1:
            issues.append(
                _issue(
                    row_number,
                    "maxHoursPerWeek",
                    "Max hours per week must be at least 1",
                    raw_capacity,
                )
            )
        elif capacity is not None and capacity > limits.weekly_hours_max:
            issues.append(
                _issue(
                    row_number,
                    "maxHoursPerWeek",
                    f"Max hours per week cannot exceed {limits.weekly_hours_max:g} hours (24×7)",
                    raw_capacity,
                )
            )

    # (3) Per-phase load
    raw_load = row.get("maxLoadPerPhase")
    if to_text(raw_load):
        load = parse_number(raw_load)
        if load is not None and load < 1:
            issues.append(
                _issue(
                    row_number, "maxLoadPerPhase", "Max load per phase must be at least 1", raw_load
                )
            )

    return issues


def _task_ranges(
    row: Mapping[str, Any], row_number: int, limits: LimitsConfig, now: datetime | None
) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    # (1) Duration
    raw_duration = row.get("duration")
    if to_text(raw_duration):
        duration = parse_number(raw_duration)
        if duration is None or not duration.is_integer() or duration < 1:
            issues.append(
                _issue(row_number, "duration", "Duration must be ≥ 1 phase", raw_duration)
            )

    # (2) Due date
    raw_due = row.get("dueDate")
    if to_text(raw_due):
        message = _due_date_problem(raw_due, limits, now)
        if message:
            issues.append(_issue(row_number, "dueDate", message, raw_due))

    # (3) Effort
    for field, label in (("estimatedHours", "Estimated hours"), ("actualHours", "Actual hours")):
        raw_hours = row.get(field)
        if not to_text(raw_hours):
            continue
        hours = parse_number(raw_hours)
        if hours is None:
            issues.append(_issue(row_number, field, f"{label} must be a number", raw_hours))
        elif hours < 0:
            issues.append(_issue(row_number, field, f"{label} cannot be negative", raw_hours))
        elif hours > limits.hours_max:
            issues.append(
                _issue(
                    row_number,
                    field,
                    f"{label} seems unreasonably high (>{_fmt(limits.hours_max)} hours)",
                    raw_hours,
                )
            )

    return issues


def _due_date_problem(raw: Any, limits: LimitsConfig, now: datetime | None) -> str | None:
    text = to_text(raw)
    # pandas resolves these against the wall clock, not the reference time
    if text.lower() in _RELATIVE_DATES:
        return "Invalid due date format"
    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        return "Invalid due date format"
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert("UTC").tz_localize(None)

    reference = now or datetime.now(timezone.utc)
    if reference.tzinfo is not None:
        reference = reference.astimezone(timezone.utc).replace(tzinfo=None)

    earliest = pd.Timestamp(year=limits.due_date_min_year, month=1, day=1)
    latest = pd.Timestamp(reference) + pd.DateOffset(years=limits.due_date_max_years_ahead)

    if parsed < earliest:
        return f"Due date is too far in the past (before {limits.due_date_min_year})"
    if parsed > latest:
        return f"Due date is too far in the future (>{limits.due_date_max_years_ahead} years)"
    return None


# ------------------------------------------------------------
# Malformed lists
# ------------------------------------------------------------
def check_malformed_lists(
    rows: Sequence[Mapping[str, Any]],
    entity_type: EntityType,
    limits: LimitsConfig | None = None,
) -> list[ValidationIssue]:
    """
    @brief
    Strict syntax check of raw phase lists.

    @details
    After bracket stripping the text must be either a "start-end" range of
    integers with 1 <= start <= end <= limits.max_phase, or a comma list
    whose every token is an integer >= 1. Empty tokens count as malformed.
    One issue per raw value.
    Already-parsed lists (from spreadsheet readers) are checked token-wise.
    """
    phase_field = _PHASE_LIST_FIELDS.get(entity_type)
    if phase_field is None:
        return []
    field, token_message, range_message = phase_field
    max_phase = (limits or LimitsConfig()).max_phase

    issues: list[ValidationIssue] = []
    for index, row in enumerate(rows):
        raw = row.get(field)
        if isinstance(raw, (list, tuple)):
            if any(_bad_phase(token) for token in raw):
                issues.append(_issue(index + 1, field, token_message, ",".join(map(to_text, raw))))
            continue

        text = strip_brackets(to_text(raw))
        if not text:
            continue

        if "-" in text:
            head, _, tail = text.partition("-")
            start, end = parse_int_token(head), parse_int_token(tail)
            if start is None or end is None or not 1 <= start <= end <= max_phase:
                issues.append(_issue(index + 1, field, range_message, raw))
        elif any(_bad_phase(token) for token in text.split(",")):
            issues.append(_issue(index + 1, field, token_message, raw))

    return issues


def _bad_phase(token: Any) -> bool:
    number = parse_int_token(token)
    return number is None or number < 1


# ------------------------------------------------------------
# JSON fields
# ------------------------------------------------------------
def check_json_fields(
    rows: Sequence[Mapping[str, Any]], entity_type: EntityType
) -> list[ValidationIssue]:
    """Non-empty JSON-valued cells must parse to an object."""
    issues: list[ValidationIssue] = []
    for index, row in enumerate(rows):
        for field in JSON_FIELDS[entity_type]:
            raw = row.get(field)
            if to_text(raw) and not is_valid_json_object(raw):
                issues.append(
                    _issue(index + 1, field, f"Invalid JSON format in {field} field", raw)
                )
    return issues


def check_fields(
    rows: Sequence[Mapping[str, Any]],
    entity_type: EntityType,
    limits: LimitsConfig | None = None,
    now: datetime | None = None,
) -> list[ValidationIssue]:
    """Range, malformed-list and JSON checks, in that order."""
    issues = check_ranges(rows, entity_type, limits=limits, now=now)
    issues.extend(check_malformed_lists(rows, entity_type, limits=limits))
    issues.extend(check_json_fields(rows, entity_type))
    if issues:
        logger.debug("Field checks found %d issue(s) in %s", len(issues), entity_type.value)
    return issues


__all__ = [
    "JSON_FIELDS",
    "check_fields",
    "check_json_fields",
    "check_malformed_lists",
    "check_ranges",
]
