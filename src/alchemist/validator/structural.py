# src/alchemist/validator/structural.py
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from alchemist.dataloader.types import EntityType, ValidationIssue
from alchemist.normalize.headers import canonical_field, normalize_key
from alchemist.normalize.values import to_text

# Upload template column -> canonical field it stands for
REQUIRED_COLUMNS: dict[EntityType, tuple[tuple[str, str], ...]] = {
    EntityType.CLIENT: (
        ("ClientID", "id"),
        ("ClientName", "name"),
        ("PriorityLevel", "priorityLevel"),
    ),
    EntityType.WORKER: (
        ("WorkerID", "id"),
        ("WorkerName", "name"),
        ("Skills", "skills"),
        ("AvailableSlots", "availableSlots"),
    ),
    EntityType.TASK: (
        ("TaskID", "id"),
        ("TaskName", "title"),
        ("Duration", "duration"),
        ("RequiredSkills", "requiredSkills"),
    ),
}


def check_missing_columns(headers: Iterable[Any], entity_type: EntityType) -> list[ValidationIssue]:
    """
    @brief
    File-level check for required columns.

    @details
    A required column is present when some header equals it ignoring case,
    whitespace and punctuation, or resolves to the same canonical field
    through the alias table ("Client_ID", "client id" and "id" all satisfy
    "ClientID"). Each missing column yields one row-0 issue whose value lists
    the available headers.
    """
    header_list = [str(h) for h in headers]
    keys = {normalize_key(h) for h in header_list}
    resolved = {canonical_field(h, entity_type) for h in header_list}
    available = f"Available columns: {', '.join(header_list)}"

    issues: list[ValidationIssue] = []
    for column, canonical in REQUIRED_COLUMNS[entity_type]:
        if normalize_key(column) in keys or canonical in resolved:
            continue
        issues.append(
            ValidationIssue(
                row=0,
                field=column,
                message=f"Missing required column: {column}",
                value=available,
            )
        )
    return issues


def check_duplicate_ids(rows: Sequence[Mapping[str, Any]]) -> list[ValidationIssue]:
    """
    @brief
    Report every occurrence of an id that appears on more than one row.

    @details
    Rows must already be alias-resolved so the id lives under "id". Blank
    ids are ignored here; coercion reports them. Issues are emitted per id
    in first-seen order, then per occurrence row.
    """
    occurrences: dict[str, list[int]] = {}
    for index, row in enumerate(rows):
        rid = to_text(row.get("id"))
        if rid:
            occurrences.setdefault(rid, []).append(index + 1)

    issues: list[ValidationIssue] = []
    for rid, row_numbers in occurrences.items():
        if len(row_numbers) < 2:
            continue
        listed = ", ".join(str(n) for n in row_numbers)
        for row_number in row_numbers:
            issues.append(
                ValidationIssue(
                    row=row_number,
                    field="id",
                    message=f'Duplicate ID "{rid}" found in rows: {listed}',
                    value=rid,
                )
            )
    return issues


__all__ = ["REQUIRED_COLUMNS", "check_duplicate_ids", "check_missing_columns"]
