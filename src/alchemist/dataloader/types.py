# src/alchemist/dataloader/types.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from pydantic import BaseModel


class EntityType(str, Enum):
    """Kinds of uploaded collections."""

    CLIENT = "clients"
    WORKER = "workers"
    TASK = "tasks"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """
    One validation finding.

    Fields:
        row: 1-based position of the row in the uploaded data, 0 for file-level issues.
        field: Canonical field (or column) the issue refers to.
        message: Human-readable description.
        value: Stringified original value, for display next to the message.
    """

    row: int
    field: str
    message: str
    value: str = ""

    @property
    def is_file_level(self) -> bool:
        return self.row == 0

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "field": self.field, "message": self.message, "value": self.value}


@dataclass(frozen=True, slots=True)
class RowRecord:
    """
    A single uploaded row as seen by the validation engine.

    Fields:
        row: 1-based row number (index + 1).
        raw: Canonical raw row (headers mapped, values untouched).
        entity: Coerced model, or None when coercion failed.
    """

    row: int
    raw: dict[str, Any]
    entity: BaseModel | None = None

    @property
    def coerced(self) -> bool:
        return self.entity is not None

    def to_data(self) -> dict[str, Any]:
        """Coerced dump when available, otherwise the raw row stamped with an id."""
        if self.entity is not None:
            return self.entity.model_dump(by_alias=True)
        data = dict(self.raw)
        raw_id = data.get("id")
        if raw_id is None or str(raw_id).strip() == "":
            data["id"] = f"temp-{self.row - 1}"
        return data


@dataclass(frozen=True, slots=True)
class ValidationSummary:
    total_rows: int
    valid_rows: int
    invalid_rows: int

    def to_dict(self) -> dict[str, int]:
        return {
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "invalidRows": self.invalid_rows,
        }


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """
    Structured, immutable result of validating one uploaded collection.

    Fields:
        entity_type: Which collection the rows belong to.
        records: Every uploaded row, coerced where possible.
        errors: Combined issue list, file-level (row 0) and row-level.
        headers: Original headers of the upload (for diagnostics).

    Derived views (`data`, `valid_data`, `summary`) are recomputed from the
    records and errors, so a result extended with later error batches keeps
    them consistent.
    """

    entity_type: EntityType
    records: tuple[RowRecord, ...] = field(default_factory=tuple)
    errors: tuple[ValidationIssue, ...] = field(default_factory=tuple)
    headers: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def file_failure(
        cls, entity_type: EntityType, message: str, value: str = ""
    ) -> ValidationResult:
        """Shape used when the upload could not be read at all."""
        issue = ValidationIssue(row=0, field="file", message=message, value=value)
        return cls(entity_type=entity_type, errors=(issue,))

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def invalid_row_numbers(self) -> frozenset[int]:
        return frozenset(issue.row for issue in self.errors if issue.row > 0)

    @property
    def data(self) -> list[dict[str, Any]]:
        return [record.to_data() for record in self.records]

    @property
    def valid_data(self) -> list[BaseModel]:
        invalid = self.invalid_row_numbers
        return [
            record.entity
            for record in self.records
            if record.entity is not None and record.row not in invalid
        ]

    @property
    def summary(self) -> ValidationSummary:
        total = len(self.records)
        invalid = len(self.invalid_row_numbers)
        return ValidationSummary(total_rows=total, valid_rows=total - invalid, invalid_rows=invalid)

    def with_errors(self, errors: tuple[ValidationIssue, ...]) -> ValidationResult:
        return replace(self, errors=errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entityType": self.entity_type.value,
            "isValid": self.is_valid,
            "errors": [issue.to_dict() for issue in self.errors],
            "data": self.data,
            "validData": [entity.model_dump(by_alias=True) for entity in self.valid_data],
            "summary": self.summary.to_dict(),
        }
