# src/alchemist/dataloader/file_reader.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from alchemist.errors import DataError

logger = logging.getLogger(__name__)

CSV_SUFFIXES = frozenset({".csv"})
EXCEL_SUFFIXES = frozenset({".xlsx", ".xls"})


@dataclass(frozen=True, slots=True)
class RawTable:
    """Headers and rows of one uploaded sheet, values as text ("" for empty cells)."""

    headers: tuple[str, ...]
    rows: list[dict[str, Any]]


class FileReader:
    """
    CSV / spreadsheet → RawTable.

    Rules:
      - .csv is read as UTF-8 (BOM tolerated); .xlsx/.xls use the first sheet
      - every cell is read as text so validation sees the original value
      - headers are trimmed, values are trimmed, fully empty rows are dropped

    Unrecoverable problems raise DataError (missing file, unsupported
    extension, unparseable content). Callers at the validation boundary turn
    it into a file-level issue.
    """

    def read(self, path: Path | str) -> RawTable:
        path = Path(path)
        frame = self._read_frame(path)
        table = self._to_table(frame)
        logger.info(
            "Read %d row(s), %d column(s) from %s", len(table.rows), len(table.headers), path
        )
        return table

    # ------------------------------
    # Internal helpers
    # ------------------------------
    def _read_frame(self, path: Path) -> pd.DataFrame:
        if not path.exists():
            raise DataError(
                message=f"Input file not found: {path}",
                source="FileReader._read_frame",
                suggested_action="Verify the file path.",
            )

        suffix = path.suffix.lower()
        if suffix not in CSV_SUFFIXES | EXCEL_SUFFIXES:
            raise DataError(
                message="Unsupported file type. Please upload a CSV or Excel file.",
                source="FileReader._read_frame",
                suggested_action="Use a .csv, .xlsx or .xls file.",
            )

        try:
            if suffix in CSV_SUFFIXES:
                return pd.read_csv(
                    path,
                    dtype=str,
                    keep_default_na=False,
                    skip_blank_lines=True,
                    encoding="utf-8-sig",
                )
            return pd.read_excel(path, sheet_name=0, dtype=str)
        except pd.errors.EmptyDataError as e:
            raise DataError(
                message="File is empty",
                source="FileReader._read_frame",
                suggested_action="Upload a file with a header row and data rows.",
            ) from e
        except (pd.errors.ParserError, ValueError, UnicodeDecodeError) as e:
            raise DataError(
                message=f"File parsing failed: {e}",
                source="FileReader._read_frame",
                suggested_action="Check that the file is a well-formed CSV or spreadsheet.",
            ) from e
        except (OSError, ImportError) as e:
            raise DataError(
                message=f"File reading error: {e}",
                source="FileReader._read_frame",
                suggested_action="Check file permissions and that openpyxl is installed.",
            ) from e

    def _to_table(self, frame: pd.DataFrame) -> RawTable:
        frame = frame.rename(columns=lambda c: str(c).strip())
        frame = frame.fillna("")
        frame = frame.apply(lambda col: col.map(lambda v: v.strip() if isinstance(v, str) else v))

        # drop rows with no content at all
        non_empty = frame.astype(str).apply(lambda col: col.str.len() > 0).any(axis=1)
        frame = frame[non_empty]

        return RawTable(headers=tuple(frame.columns), rows=frame.to_dict(orient="records"))


def read_table(path: Path | str) -> RawTable:
    """Thin wrapper around FileReader().read()."""
    return FileReader().read(path)


__all__ = ["FileReader", "RawTable", "read_table"]
