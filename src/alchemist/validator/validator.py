# src/alchemist/validator/validator.py
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from alchemist.dataloader.file_reader import FileReader
from alchemist.dataloader.types import EntityType, RowRecord, ValidationIssue, ValidationResult
from alchemist.errors import DataError
from alchemist.normalize.headers import apply_header_mapping, suggest_header_mapping
from alchemist.schemas.models import Config
from alchemist.validator.aggregator import build_result, merge_errors, report_summary
from alchemist.validator.capacity import (
    check_concurrency_feasibility,
    check_phase_saturation,
    check_skill_coverage,
    check_worker_overload,
)
from alchemist.validator.coercion import coerce_row, resolve_aliases
from alchemist.validator.cross_reference import (
    check_requested_tasks,
    check_task_references,
    find_dependency_cycles,
)
from alchemist.validator.fields import check_json_fields, check_malformed_lists, check_ranges
from alchemist.validator.structural import check_duplicate_ids, check_missing_columns

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CrossValidation:
    """Issue batches from the passes that need all three collections, keyed by owner."""

    clients: tuple[ValidationIssue, ...] = field(default_factory=tuple)
    workers: tuple[ValidationIssue, ...] = field(default_factory=tuple)
    tasks: tuple[ValidationIssue, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return len(self.clients) + len(self.workers) + len(self.tasks)


@dataclass(frozen=True, slots=True)
class DatasetResults:
    clients: ValidationResult
    workers: ValidationResult
    tasks: ValidationResult

    @property
    def is_valid(self) -> bool:
        return self.clients.is_valid and self.workers.is_valid and self.tasks.is_valid

    def as_dict(self) -> dict[EntityType, ValidationResult]:
        return {
            EntityType.CLIENT: self.clients,
            EntityType.WORKER: self.workers,
            EntityType.TASK: self.tasks,
        }


def _collect_headers(rows: Sequence[Mapping[str, Any]]) -> list[str]:
    # union of keys in first-seen order; readers may emit ragged rows
    return list(dict.fromkeys(str(key) for row in rows for key in row))


class DataValidator:
    """
    @brief
    Runs the validation passes for uploaded collections.

    @details
    Per collection (validate_rows):
        (1) header suggestions applied at or above the configured confidence
        (2) alias resolution into canonical raw rows
        (3) structural checks: missing columns, duplicate ids
        (4) coercion of every row (total, never raises)
        (5) field checks on the raw values: ranges, malformed lists, JSON
        (6) aggregation into an immutable ValidationResult

    Across collections (cross_validate) the reference, cycle and capacity
    passes produce per-collection issue batches, which apply_cross_validation
    merges append-only into the per-collection results.

    Nothing here raises for bad data. Unreadable files become a single
    file-level issue in validate_file.
    """

    def __init__(self, cfg: Config | None = None, now: datetime | None = None) -> None:
        """
        @params
            cfg : Config | None
                Runtime configuration; defaults when omitted.
            now : datetime | None
                Fixed reference time for due date checks (tests).
        """
        self.cfg = cfg or Config()
        self.now = now

    # ---------- Single collection ----------
    def validate_rows(
        self, rows: Sequence[Mapping[str, Any]], entity_type: EntityType, source: str = "upload"
    ) -> ValidationResult:
        if not rows:
            result = ValidationResult(entity_type=entity_type)
            report_summary(result, source)
            return result

        # (1) Header normalization
        headers = _collect_headers(rows)
        mapping = suggest_header_mapping(headers, entity_type)
        threshold = self.cfg.headers.auto_apply_threshold
        mapped = [apply_header_mapping(dict(row), mapping, threshold) for row in rows]

        # (2) Canonical raw rows
        canonical = [resolve_aliases(row, entity_type) for row in mapped]

        # (3) Structural checks
        missing = check_missing_columns(headers, entity_type)
        duplicates = check_duplicate_ids(canonical)

        # (4) Coercion
        records: list[RowRecord] = []
        coercion_issues: list[ValidationIssue] = []
        for index, row in enumerate(canonical):
            outcome = coerce_row(row, entity_type, index)
            records.append(RowRecord(row=index + 1, raw=row, entity=outcome.entity))
            coercion_issues.extend(outcome.issues)

        # (5) Raw-value checks
        limits = self.cfg.limits
        ranges = check_ranges(canonical, entity_type, limits=limits, now=self.now)
        lists = check_malformed_lists(canonical, entity_type, limits=limits)
        json_issues = check_json_fields(canonical, entity_type)

        # (6) Aggregate
        result = build_result(
            entity_type,
            records,
            missing,
            duplicates,
            coercion_issues,
            ranges,
            lists,
            json_issues,
            headers=headers,
        )
        report_summary(result, source)
        return result

    def validate_file(self, path: Path | str, entity_type: EntityType) -> ValidationResult:
        """
        @brief
        Read an upload and validate it; unreadable files become a row-0 issue.
        """
        try:
            table = FileReader().read(path)
        except DataError as e:
            logger.error("Cannot read %s upload %s: %s", entity_type.value, path, e)
            return ValidationResult.file_failure(
                entity_type, "File parsing failed", value=str(e.args[0])
            )
        return self.validate_rows(table.rows, entity_type, source=str(path))

    # ---------- Across collections ----------
    def cross_validate(
        self, clients: ValidationResult, workers: ValidationResult, tasks: ValidationResult
    ) -> CrossValidation:
        """
        @brief
        Reference, cycle and capacity passes over all three collections.

        @details
        Task batch order: references, cycles, skill coverage, concurrency,
        phase saturation (row 0). Client batch: requested task ids. Worker
        batch: overload. Optional passes follow cfg.cross_checks.
        """
        checks = self.cfg.cross_checks
        client_rows, worker_rows, task_rows = clients.data, workers.data, tasks.data

        task_issues: list[ValidationIssue] = []
        task_issues.extend(check_task_references(client_rows, worker_rows, task_rows))
        task_issues.extend(find_dependency_cycles(task_rows, policy=checks.cycle_policy))
        task_issues.extend(check_skill_coverage(worker_rows, task_rows))
        if checks.check_concurrency:
            task_issues.extend(check_concurrency_feasibility(worker_rows, task_rows))
        task_issues.extend(check_phase_saturation(worker_rows, task_rows))

        worker_issues: list[ValidationIssue] = []
        if checks.check_worker_overload:
            worker_issues.extend(check_worker_overload(worker_rows, task_rows))

        client_issues = check_requested_tasks(client_rows, task_rows)

        cross = CrossValidation(
            clients=tuple(client_issues),
            workers=tuple(worker_issues),
            tasks=tuple(task_issues),
        )
        logger.info(
            "Cross validation: clients=%d workers=%d tasks=%d issue(s)",
            len(cross.clients),
            len(cross.workers),
            len(cross.tasks),
        )
        return cross

    def apply_cross_validation(
        self, results: DatasetResults, cross: CrossValidation
    ) -> DatasetResults:
        return DatasetResults(
            clients=merge_errors(results.clients, cross.clients),
            workers=merge_errors(results.workers, cross.workers),
            tasks=merge_errors(results.tasks, cross.tasks),
        )

    def validate_dataset(
        self,
        clients_rows: Sequence[Mapping[str, Any]],
        workers_rows: Sequence[Mapping[str, Any]],
        tasks_rows: Sequence[Mapping[str, Any]],
    ) -> DatasetResults:
        results = DatasetResults(
            clients=self.validate_rows(clients_rows, EntityType.CLIENT),
            workers=self.validate_rows(workers_rows, EntityType.WORKER),
            tasks=self.validate_rows(tasks_rows, EntityType.TASK),
        )
        cross = self.cross_validate(results.clients, results.workers, results.tasks)
        return self.apply_cross_validation(results, cross)


def validate_dataset(
    clients_rows: Sequence[Mapping[str, Any]],
    workers_rows: Sequence[Mapping[str, Any]],
    tasks_rows: Sequence[Mapping[str, Any]],
    cfg: Config | None = None,
    *,
    now: datetime | None = None,
) -> DatasetResults:
    """
    @brief
    High-level convenience wrapper: validate three collections and cross-check them.

    @returns
        DatasetResults with cross-collection issues already merged.
    """
    return DataValidator(cfg, now=now).validate_dataset(clients_rows, workers_rows, tasks_rows)


__all__ = ["CrossValidation", "DataValidator", "DatasetResults", "validate_dataset"]
