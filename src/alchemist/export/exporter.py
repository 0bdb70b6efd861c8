# src/alchemist/export/exporter.py
from __future__ import annotations

import csv
import io
import json
import logging
import os
import tempfile
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from alchemist.dataloader.types import EntityType, ValidationResult
from alchemist.errors import ExportError
from alchemist.rules.rulebook import DEFAULT_DOCUMENT_VERSION, RuleBook

logger = logging.getLogger(__name__)

REPORT_FILENAME = "validation_report.json"
RULES_FILENAME = "rules-config.json"


def _atomic_write_text(path: Path, text: str, newline: str | None = None) -> None:
    """
    @brief
    Write text through a temporary file in the target directory, then swap it in.

    @raises
        ExportError
            If the directory cannot be created or the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp", text=True)
    except OSError as e:
        raise ExportError(
            message=f"Cannot prepare output location {path.parent}: {e}",
            source="export._atomic_write_text",
            suggested_action="Check the output directory path and permissions.",
        ) from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline=newline) as f:
            f.write(text)
        os.replace(tmp_name, path)
    except OSError as e:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise ExportError(
            message=f"Failed to write {path.name}: {e}",
            source="export._atomic_write_text",
            suggested_action="Check disk permissions and free space.",
        ) from e


def write_json(payload: Any, path: Path) -> Path:
    """Serialize payload as indented UTF-8 JSON and write it atomically."""
    try:
        text = json.dumps(payload, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ExportError(
            message=f"Payload not JSON-serializable: {e}",
            source="export.write_json",
            suggested_action="Pass plain dicts/lists of str, int, float and bool.",
        ) from e
    path = Path(path)
    _atomic_write_text(path, text + "\n")
    logger.info("Wrote %s", path)
    return path


def build_validation_report(results: Mapping[EntityType, ValidationResult]) -> dict[str, Any]:
    """
    @brief
    Combined report: one section per collection plus an overall flag.
    """
    sections = {
        entity_type.value: {
            "isValid": result.is_valid,
            "errors": [issue.to_dict() for issue in result.errors],
            "summary": result.summary.to_dict(),
        }
        for entity_type, result in results.items()
    }
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "valid": all(result.is_valid for result in results.values()),
        "results": sections,
    }


def write_validation_report(
    results: Mapping[EntityType, ValidationResult],
    out_dir: Path,
    filename: str = REPORT_FILENAME,
) -> Path:
    return write_json(build_validation_report(results), Path(out_dir) / filename)


def write_rules_config(
    book: RuleBook,
    out_dir: Path,
    version: str = DEFAULT_DOCUMENT_VERSION,
    filename: str = RULES_FILENAME,
) -> Path:
    """Write the rule book as rules-config.json ({rules, exportedAt, version})."""
    return write_json(book.export_document(version=version), Path(out_dir) / filename)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_cell(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False) if value else ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def write_rows_csv(result: ValidationResult, path: Path, valid_only: bool = False) -> Path:
    """
    @brief
    Export a collection as CSV with canonical column names.

    @details
    With valid_only the file holds the coerced rows that carry no error;
    otherwise every row of result.data (raw values for rows that failed
    coercion). List cells are joined with commas, JSON objects are dumped.
    Columns are the union of row keys in first-seen order.

    @params
        result : ValidationResult
            Collection to export.
        path : Path
            Destination file.
        valid_only : bool
            Restrict output to valid rows.

    @returns
        Path to the written CSV file.
    """
    # (1) Select rows
    if valid_only:
        rows = [entity.model_dump(by_alias=True) for entity in result.valid_data]
    else:
        rows = result.data

    # (2) Column order
    columns = list(dict.fromkeys(key for row in rows for key in row))

    # (3) Render into memory, then write atomically
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns, extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({col: _cell(row.get(col)) for col in columns})

    path = Path(path)
    _atomic_write_text(path, buffer.getvalue(), newline="")
    logger.info("Exported %d %s row(s) to %s", len(rows), result.entity_type.value, path)
    return path


__all__ = [
    "REPORT_FILENAME",
    "RULES_FILENAME",
    "build_validation_report",
    "write_json",
    "write_rows_csv",
    "write_rules_config",
    "write_validation_report",
]
