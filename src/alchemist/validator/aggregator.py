# src/alchemist/validator/aggregator.py
from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence

from alchemist.dataloader.types import EntityType, RowRecord, ValidationIssue, ValidationResult

logger = logging.getLogger(__name__)


def _append_unique(
    collected: list[ValidationIssue], seen: set[ValidationIssue], batch: Iterable[ValidationIssue]
) -> None:
    for issue in batch:
        if issue not in seen:
            seen.add(issue)
            collected.append(issue)


def build_result(
    entity_type: EntityType,
    records: Sequence[RowRecord],
    *batches: Iterable[ValidationIssue],
    headers: Sequence[str] = (),
) -> ValidationResult:
    """
    @brief
    Assemble a ValidationResult from ordered issue batches.

    @details
    Batches are concatenated in the order given (missing columns,
    duplicates, coercion, ranges, malformed lists, JSON). An issue equal in
    every field to one already collected is dropped, so the JSON check that
    both coercion and the field pass perform is reported once.
    """
    collected: list[ValidationIssue] = []
    seen: set[ValidationIssue] = set()
    for batch in batches:
        _append_unique(collected, seen, batch)

    return ValidationResult(
        entity_type=entity_type,
        records=tuple(records),
        errors=tuple(collected),
        headers=tuple(headers),
    )


def merge_errors(prior: ValidationResult, *batches: Iterable[ValidationIssue]) -> ValidationResult:
    """
    @brief
    Append-only accumulation of later error batches into a result.

    @details
    Returns a new result whose errors are the prior errors, unchanged and in
    order, followed by every new issue not already present. The prior result
    is not modified. Merging the same batches again returns an equal result.

    @params
        prior : ValidationResult
            Result computed at upload time (or by an earlier merge).
        *batches : Iterable[ValidationIssue]
            Issues from passes that ran later (cross-reference, capacity).

    @returns
        New ValidationResult; valid_data and summary reflect the merged errors.
    """
    collected = list(prior.errors)
    seen = set(collected)
    for batch in batches:
        _append_unique(collected, seen, batch)

    if len(collected) == len(prior.errors):
        return prior
    return prior.with_errors(tuple(collected))


def report_summary(result: ValidationResult, source: str = "upload") -> None:
    """Log one line per result: info when clean, warning with per-field counts otherwise."""
    summary = result.summary
    if result.is_valid:
        logger.info(
            "%s OK: %d/%d row(s) valid from %s",
            result.entity_type.value,
            summary.valid_rows,
            summary.total_rows,
            source,
        )
        return

    counts = Counter(issue.field for issue in result.errors)
    breakdown = ", ".join(f"{k}={v}" for k, v in counts.most_common())
    logger.warning(
        "%s: %d issue(s), %d invalid row(s) of %d from %s [%s]",
        result.entity_type.value,
        len(result.errors),
        summary.invalid_rows,
        summary.total_rows,
        source,
        breakdown or "no-summary",
    )


__all__ = ["build_result", "merge_errors", "report_summary"]
