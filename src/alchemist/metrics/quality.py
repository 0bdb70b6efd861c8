# src/alchemist/metrics/quality.py
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import pandas as pd

from alchemist.dataloader.types import ValidationResult

logger = logging.getLogger(__name__)


def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, float) and pd.isna(value):
        return False
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) > 0
    return True


def summarize_quality(
    result: ValidationResult, fields: Sequence[str] | None = None
) -> dict[str, Any]:
    """
    @brief
    Data quality summary for one validated collection.

    @details
    Builds a DataFrame from result.data and reports:
        - totalRecords / validRecords / invalidRecords
        - validationRate: percent of valid rows, rounded
        - fieldCompleteness: percent of non-empty values per field
        - statusDistribution: counts of the status column, when present

    @params
        result : ValidationResult
            Collection to summarize.
        fields : Sequence[str] | None
            Restrict completeness to these fields (all columns by default).

    @returns
        JSON-serializable dictionary.
    """
    summary = result.summary
    frame = pd.DataFrame(result.data)

    # (1) Row counts
    total = summary.total_rows
    rate = round(summary.valid_rows / total * 100) if total else 0

    # (2) Completeness per field
    columns = list(fields) if fields is not None else list(frame.columns)
    completeness: dict[str, int] = {}
    for column in columns:
        if total == 0 or column not in frame.columns:
            completeness[column] = 0
            continue
        filled = frame[column].map(_is_filled).sum()
        completeness[column] = round(int(filled) / total * 100)

    # (3) Status distribution
    status: dict[str, int] = {}
    if "status" in frame.columns:
        labels = frame["status"].map(lambda v: str(v) if _is_filled(v) else "unknown")
        counts = labels.value_counts()
        status = {str(k): int(v) for k, v in counts.items()}

    logger.debug("Quality summary for %s: rate=%d%%", result.entity_type.value, rate)
    return {
        "entityType": result.entity_type.value,
        "totalRecords": total,
        "validRecords": summary.valid_rows,
        "invalidRecords": summary.invalid_rows,
        "validationRate": rate,
        "fieldCompleteness": completeness,
        "statusDistribution": status,
    }


__all__ = ["summarize_quality"]
