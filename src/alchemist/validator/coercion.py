# src/alchemist/validator/coercion.py
"""
@brief
Schema coercion: canonical raw row -> typed entity, or a list of issues.

@details
Coercion is total. Pydantic validation failures are converted into
ValidationIssue entries attached to the row; nothing escapes as an
exception. Numeric clamping here is silent; the field pass re-reads the
raw values and reports what was out of range before clamping.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from alchemist.dataloader.types import EntityType, ValidationIssue
from alchemist.normalize.headers import canonical_field
from alchemist.normalize.values import is_blank, to_text
from alchemist.schemas.models import Client, Task, Worker

MODEL_BY_ENTITY: dict[EntityType, type[BaseModel]] = {
    EntityType.CLIENT: Client,
    EntityType.WORKER: Worker,
    EntityType.TASK: Task,
}


@dataclass(frozen=True, slots=True)
class CoercionOutcome:
    """Either a coerced entity (issues empty) or the issues that prevented it."""

    entity: BaseModel | None
    issues: tuple[ValidationIssue, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.entity is not None


def resolve_aliases(row: Mapping[str, Any], entity_type: EntityType) -> dict[str, Any]:
    """
    @brief
    Rename raw keys to canonical fields through the alias table.

    @details
    Keys that are not a canonical name or a known alias pass through
    unchanged. When several raw keys resolve to the same canonical field,
    the first non-empty value wins.
    """
    resolved: dict[str, Any] = {}
    for key, value in row.items():
        target = canonical_field(key, entity_type) or str(key)
        if target in resolved and not is_blank(resolved[target]):
            continue
        resolved[target] = value
    return resolved


def coerce_row(row: Mapping[str, Any], entity_type: EntityType, index: int) -> CoercionOutcome:
    """
    @brief
    Coerce one canonical raw row into its entity model.

    @params
        row : Mapping[str, Any]
            Row keyed by canonical field names (see resolve_aliases).
        entity_type : EntityType
            Selects Client, Worker or Task.
        index : int
            0-based position of the row in the upload; issues use index + 1.

    @returns
        CoercionOutcome with the entity, or with at least one issue.
    """
    row_number = index + 1
    model = MODEL_BY_ENTITY[entity_type]

    # (1) Field-level coercion
    try:
        entity = model.model_validate(dict(row))
    except ValidationError as e:
        return CoercionOutcome(entity=None, issues=_issues_from(e, row, row_number))

    # (2) Row-level refinement
    issues = _refine(entity, row, row_number)
    if issues:
        return CoercionOutcome(entity=None, issues=issues)
    return CoercionOutcome(entity=entity)


def _issues_from(
    error: ValidationError, row: Mapping[str, Any], row_number: int
) -> tuple[ValidationIssue, ...]:
    issues = []
    for detail in error.errors():
        loc = detail.get("loc") or ()
        path = ".".join(str(part) for part in loc)
        head = str(loc[0]) if loc else ""
        issues.append(
            ValidationIssue(
                row=row_number,
                field=path,
                message=detail.get("msg", "Invalid value"),
                value=to_text(row.get(head)),
            )
        )
    return tuple(issues)


def _refine(
    entity: BaseModel, row: Mapping[str, Any], row_number: int
) -> tuple[ValidationIssue, ...]:
    if not isinstance(entity, Task):
        return ()
    estimated, actual = entity.estimated_hours, entity.actual_hours
    if estimated is not None and actual is not None and actual > estimated:
        return (
            ValidationIssue(
                row=row_number,
                field="actualHours",
                message="Actual hours cannot exceed estimated hours",
                value=to_text(row.get("actualHours")),
            ),
        )
    return ()


__all__ = ["MODEL_BY_ENTITY", "CoercionOutcome", "coerce_row", "resolve_aliases"]
