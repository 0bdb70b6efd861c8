# scripts/run.py
from __future__ import annotations

import argparse
import json
import logging
import sys
import time
import traceback
from pathlib import Path
from typing import Any

from alchemist.dataloader.config_loader import ConfigLoader
from alchemist.dataloader.types import EntityType, ValidationResult
from alchemist.errors import AlchemistError, RuleError
from alchemist.export.exporter import (
    write_json,
    write_rows_csv,
    write_rules_config,
    write_validation_report,
)
from alchemist.metrics.quality import summarize_quality
from alchemist.rules.rulebook import RuleBook
from alchemist.validator import DatasetResults, DataValidator


def _setup_logging() -> None:
    """
    @brief
    Initializes global logging configuration.

    @details
    INFO level with a compact "[LEVEL] message" console format, shared by
    every module logger of the pipeline.
    """
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    @brief
    Parses command-line arguments for the Data Alchemist pipeline.

    @details
    Each of --clients, --workers and --tasks is optional; cross validation
    only runs when all three are given. --rules points to an exported
    rules-config.json which is revalidated and written back to the output.
    """
    parser = argparse.ArgumentParser(
        prog="alchemist-run",
        description="Validate client, worker and task uploads and export the results",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/config.yaml",
        help="Path to config YAML (default: config/config.yaml)",
    )
    parser.add_argument("--clients", type=str, default=None, help="Clients CSV/XLSX")
    parser.add_argument("--workers", type=str, default=None, help="Workers CSV/XLSX")
    parser.add_argument("--tasks", type=str, default=None, help="Tasks CSV/XLSX")
    parser.add_argument("--rules", type=str, default=None, help="Rules document (JSON)")
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory for artifacts (default: output_dir from config)",
    )
    return parser.parse_args(argv)


def _load_rules(path: Path) -> RuleBook:
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise RuleError(
            message=f"Cannot read rules document {path}: {e}",
            source="scripts.run",
            suggested_action="Pass a rules-config.json produced by a previous export.",
        ) from e
    return RuleBook.from_document(document)


def run_pipeline(
    config_path: Path,
    inputs: dict[EntityType, Path],
    output_dir: Path | None = None,
    rules_path: Path | None = None,
) -> dict[str, Any]:
    """
    @brief
    Executes the validation pipeline over the given uploads.

    @details
    (1) Load configuration.
    (2) Validate each upload independently (unreadable files become a
        file-level issue, not an exception).
    (3) When clients, workers and tasks are all present, run the
        cross-collection passes and merge their issues append-only.
    (4) Export the validation report, cleaned CSVs, quality summary and
        the revalidated rules document.

    @params
        config_path : Path
            Path to the YAML configuration file.
        inputs : dict[EntityType, Path]
            Upload per collection.
        output_dir : Path | None
            Artifact directory (config output_dir when omitted).
        rules_path : Path | None
            Optional exported rules document.

    @returns
        Dictionary with the overall validity flag, per-collection summaries
        and artifact paths.

    @raises
        AlchemistError
            On configuration or rules document problems, or write failures.
    """
    t0 = time.perf_counter()

    # (1) Configuration
    logging.info("Loading config: %s", config_path)
    cfg = ConfigLoader().load(config_path)
    out_dir = output_dir or Path(cfg.output_dir or "data/output")

    # (2) Per-collection validation
    validator = DataValidator(cfg)
    results: dict[EntityType, ValidationResult] = {}
    for entity_type, path in inputs.items():
        logging.info("Validating %s: %s", entity_type.value, path)
        results[entity_type] = validator.validate_file(path, entity_type)

    # (3) Cross validation
    if all(et in results for et in EntityType):
        dataset = DatasetResults(
            clients=results[EntityType.CLIENT],
            workers=results[EntityType.WORKER],
            tasks=results[EntityType.TASK],
        )
        cross = validator.cross_validate(dataset.clients, dataset.workers, dataset.tasks)
        results = validator.apply_cross_validation(dataset, cross).as_dict()
    else:
        logging.info("Cross validation skipped: needs clients, workers and tasks")

    # (4) Export
    artifacts: dict[str, Path | None] = {"validation_report": None, "quality": None, "rules": None}
    if cfg.export.write_report:
        artifacts["validation_report"] = write_validation_report(results, out_dir)

    quality = {et.value: summarize_quality(result) for et, result in results.items()}
    artifacts["quality"] = write_json(quality, out_dir / "quality.json")

    for entity_type, result in results.items():
        artifacts[f"{entity_type.value}_csv"] = write_rows_csv(
            result, out_dir / f"{entity_type.value}.csv", valid_only=cfg.export.valid_data_only
        )

    if rules_path is not None:
        book = _load_rules(rules_path)
        logging.info("Loaded %d rule(s) from %s", len(book), rules_path)
        artifacts["rules"] = write_rules_config(book, out_dir, version=cfg.export.rules_version)

    valid = all(result.is_valid for result in results.values())
    logging.info("Pipeline finished in %.2f s (valid=%s)", time.perf_counter() - t0, valid)

    return {
        "valid": valid,
        "summaries": {et.value: r.summary.to_dict() for et, r in results.items()},
        "artifacts": artifacts,
    }


def main(argv: list[str] | None = None) -> int:
    """
    @brief
    CLI entry point.

    @details
    Exit codes:
      0 – every upload valid
      1 – validation issues found, or controlled failure (config/rules/export)
      2 – unexpected crash
    """
    _setup_logging()
    args = _parse_args(argv)

    inputs = {
        entity_type: Path(raw)
        for entity_type, raw in (
            (EntityType.CLIENT, args.clients),
            (EntityType.WORKER, args.workers),
            (EntityType.TASK, args.tasks),
        )
        if raw
    }
    if not inputs:
        logging.error("Nothing to validate: pass at least one of --clients, --workers, --tasks")
        return 1

    try:
        result = run_pipeline(
            Path(args.config),
            inputs,
            output_dir=Path(args.output) if args.output else None,
            rules_path=Path(args.rules) if args.rules else None,
        )
        written = [p.name for p in result["artifacts"].values() if p is not None]
        logging.info("Artifacts: %s", ", ".join(written) or "none")
        return 0 if result["valid"] else 1

    except AlchemistError as e:
        logging.error(str(e))
        return 1
    except Exception:
        logging.error("Unexpected error occurred:")
        traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())
