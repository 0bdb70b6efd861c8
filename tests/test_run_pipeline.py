import csv
import json
from pathlib import Path

import pytest
import yaml

from alchemist.dataloader.types import EntityType
from scripts.run import main, run_pipeline


def _write_csv(path: Path, rows: list[dict]) -> Path:
    columns = list(dict.fromkeys(key for row in rows for key in row))
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns)
        writer.writeheader()
        writer.writerows(rows)
    return path


@pytest.fixture()
def workspace(tmp_path: Path, client_rows, worker_rows, task_rows) -> dict[str, Path]:
    """
    @brief
    Minimal on-disk workspace: config, three uploads and an output directory.
    """
    config = tmp_path / "config.yaml"
    settings = {"export": {"rules_version": "2.0"}, "output_dir": str(tmp_path / "cfg_out")}
    config.write_text(yaml.safe_dump(settings), encoding="utf-8")
    return {
        "config": config,
        "clients": _write_csv(tmp_path / "clients.csv", client_rows),
        "workers": _write_csv(tmp_path / "workers.csv", worker_rows),
        "tasks": _write_csv(tmp_path / "tasks.csv", task_rows),
        "out": tmp_path / "out",
    }


def _inputs(ws: dict[str, Path]) -> dict[EntityType, Path]:
    return {
        EntityType.CLIENT: ws["clients"],
        EntityType.WORKER: ws["workers"],
        EntityType.TASK: ws["tasks"],
    }


# ----------------------------------------------------------------------------------
# run_pipeline
# ----------------------------------------------------------------------------------
def test_run_pipeline_creates_artifacts(workspace):
    """
    @brief
    Clean uploads produce a valid report, quality summary and cleaned CSVs.
    """
    # --- Act ---
    result = run_pipeline(workspace["config"], _inputs(workspace), workspace["out"])
    arts = result["artifacts"]

    # --- Assert ---
    assert result["valid"] is True
    assert result["summaries"]["tasks"] == {"totalRows": 3, "validRows": 3, "invalidRows": 0}
    for key in ("validation_report", "quality", "clients_csv", "workers_csv", "tasks_csv"):
        assert arts[key] is not None and Path(arts[key]).exists()
    assert arts["rules"] is None

    report = json.loads(Path(arts["validation_report"]).read_text(encoding="utf-8"))
    assert report["valid"] is True
    quality = json.loads(Path(arts["quality"]).read_text(encoding="utf-8"))
    assert quality["workers"]["validationRate"] == 100


def test_run_pipeline_merges_cross_collection_issues(workspace, task_rows):
    task_rows[0]["Dependencies"] = "T2"
    task_rows[1]["Dependencies"] = "T1"
    _write_csv(workspace["tasks"], task_rows)

    result = run_pipeline(workspace["config"], _inputs(workspace), workspace["out"])

    assert result["valid"] is False
    assert result["summaries"]["tasks"]["invalidRows"] == 2
    assert result["summaries"]["clients"]["invalidRows"] == 0


def test_run_pipeline_single_collection_skips_cross_checks(workspace):
    inputs = {EntityType.TASK: workspace["tasks"]}

    result = run_pipeline(workspace["config"], inputs, workspace["out"])

    # T1 names React, which no uploaded worker could cover, yet no cross issue appears
    assert result["valid"] is True
    assert set(result["summaries"]) == {"tasks"}


def test_run_pipeline_unreadable_upload_is_reported(workspace, tmp_path: Path):
    inputs = {EntityType.CLIENT: tmp_path / "clients.pdf"}

    result = run_pipeline(workspace["config"], inputs, workspace["out"])

    assert result["valid"] is False
    report = json.loads(
        Path(result["artifacts"]["validation_report"]).read_text(encoding="utf-8")
    )
    assert report["results"]["clients"]["errors"][0]["message"] == "File parsing failed"


def test_run_pipeline_rewrites_rules_document(workspace, tmp_path: Path):
    rules = tmp_path / "rules-in.json"
    rules.write_text(
        json.dumps(
            {
                "rules": [
                    {
                        "type": "phase-window",
                        "id": "r1",
                        "name": "early",
                        "parameters": {"taskId": "T1", "allowedPhases": "1-2"},
                    }
                ],
                "version": "1.0",
            }
        ),
        encoding="utf-8",
    )

    result = run_pipeline(
        workspace["config"], _inputs(workspace), workspace["out"], rules_path=rules
    )

    document = json.loads(Path(result["artifacts"]["rules"]).read_text(encoding="utf-8"))
    assert document["version"] == "2.0"
    assert document["rules"][0]["parameters"]["allowedPhases"] == [1, 2]


def test_run_pipeline_defaults_output_dir_from_config(workspace):
    result = run_pipeline(workspace["config"], {EntityType.CLIENT: workspace["clients"]})

    report = Path(result["artifacts"]["validation_report"])
    assert report.parent.name == "cfg_out"


# ----------------------------------------------------------------------------------
# CLI exit codes
# ----------------------------------------------------------------------------------
def _argv(ws: dict[str, Path], *extra: str) -> list[str]:
    return [
        "--config",
        str(ws["config"]),
        "--clients",
        str(ws["clients"]),
        "--workers",
        str(ws["workers"]),
        "--tasks",
        str(ws["tasks"]),
        "--output",
        str(ws["out"]),
        *extra,
    ]


def test_main_returns_zero_for_valid_uploads(workspace):
    assert main(_argv(workspace)) == 0
    assert (workspace["out"] / "validation_report.json").exists()


def test_main_returns_one_for_invalid_uploads(workspace, client_rows):
    client_rows[0]["PriorityLevel"] = "11"
    _write_csv(workspace["clients"], client_rows)

    assert main(_argv(workspace)) == 1


def test_main_returns_one_without_inputs(workspace):
    assert main(["--config", str(workspace["config"])]) == 1


def test_main_returns_one_on_config_error(workspace, tmp_path: Path):
    broken = tmp_path / "broken.yaml"
    broken.write_text("limits: [", encoding="utf-8")
    argv = _argv(workspace)
    argv[1] = str(broken)

    assert main(argv) == 1


def test_main_returns_one_on_bad_rules_document(workspace, tmp_path: Path):
    rules = tmp_path / "rules.json"
    rules.write_text("{not json", encoding="utf-8")

    assert main(_argv(workspace, "--rules", str(rules))) == 1
