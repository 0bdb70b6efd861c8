# tests/validator/test_validator.py
from __future__ import annotations

from pathlib import Path

import pytest

from alchemist.dataloader.types import EntityType
from alchemist.schemas.models import Config, CrossCheckConfig, Task
from alchemist.validator import DatasetResults, DataValidator, validate_dataset


@pytest.fixture()
def validator(fixed_now) -> DataValidator:
    return DataValidator(Config(), now=fixed_now)


# -----------------------------
# SINGLE COLLECTION
# -----------------------------
def test_valid_upload_with_template_headers(validator, task_rows):
    """
    @brief
    Template headers (TaskID, TaskName, ...) resolve to canonical fields.
    """
    result = validator.validate_rows(task_rows, EntityType.TASK)

    assert result.is_valid
    assert result.summary.to_dict() == {"totalRows": 3, "validRows": 3, "invalidRows": 0}
    first = result.valid_data[0]
    assert isinstance(first, Task)
    assert first.id == "T1"
    assert first.title == "UI"
    assert first.preferred_phases == [1, 2]
    assert result.data[1]["preferredPhases"] == [2, 3]


def test_empty_upload_is_valid_and_empty(validator):
    result = validator.validate_rows([], EntityType.CLIENT)

    assert result.is_valid
    assert result.data == []
    assert result.summary.total_rows == 0


def test_duplicates_reported_on_every_occurrence(validator):
    # --- Arrange: seven clients, "X" at rows 2, 5 and 7 ---
    rows = [{"ClientID": f"C{i}", "ClientName": "n", "PriorityLevel": "1"} for i in range(1, 8)]
    for position in (1, 4, 6):
        rows[position]["ClientID"] = "X"

    # --- Act ---
    result = validator.validate_rows(rows, EntityType.CLIENT)

    # --- Assert ---
    duplicates = [e for e in result.errors if e.message.startswith("Duplicate ID")]
    assert sorted(e.row for e in duplicates) == [2, 5, 7]
    assert result.summary.invalid_rows == 3


def test_row_with_several_problems_counts_once(validator):
    rows = [
        {"ClientID": "C1", "ClientName": "", "PriorityLevel": "9"},
        {"ClientID": "C2", "ClientName": "Ok", "PriorityLevel": "2"},
    ]

    result = validator.validate_rows(rows, EntityType.CLIENT)

    assert {(e.row, e.field) for e in result.errors} == {(1, "name"), (1, "priorityLevel")}
    assert result.summary.invalid_rows == 1
    assert [c.id for c in result.valid_data] == ["C2"]


def test_failed_rows_keep_raw_values_and_temp_id(validator):
    rows = [{"WorkerID": "", "WorkerName": "Ann", "Skills": "x", "AvailableSlots": "1"}]

    result = validator.validate_rows(rows, EntityType.WORKER)

    assert not result.is_valid
    assert result.data[0]["id"] == "temp-0"
    assert result.data[0]["name"] == "Ann"


def test_missing_columns_are_file_level(validator):
    rows = [{"TaskID": "T1", "TaskName": "a"}]

    result = validator.validate_rows(rows, EntityType.TASK)

    missing = [e for e in result.errors if e.row == 0]
    assert [e.field for e in missing] == ["Duration", "RequiredSkills"]
    # file-level issues do not mark rows invalid
    assert result.summary.invalid_rows == 0


def test_json_issue_reported_once(validator):
    rows = [
        {
            "TaskID": "T1",
            "TaskName": "a",
            "Duration": "1",
            "RequiredSkills": "",
            "attributes": "{x",
        }
    ]

    result = validator.validate_rows(rows, EntityType.TASK)

    json_errors = [e for e in result.errors if e.field == "attributes"]
    assert len(json_errors) == 1



def test_pathological_cells_become_row_issues(validator):
    """
    @brief
    Deeply nested JSON and a runaway phase range are reported, not raised.
    """
    # --- Arrange ---
    rows = [
        {"TaskID": "T1", "TaskName": "a", "Duration": "1", "attributes": "[" * 100_000},
        {"TaskID": "T2", "TaskName": "b", "Duration": "1", "PreferredPhases": "1-999999999999"},
    ]

    # --- Act ---
    result = validator.validate_rows(rows, EntityType.TASK)

    # --- Assert ---
    row_errors = [(e.row, e.field) for e in result.errors if e.row > 0]
    assert row_errors == [(1, "attributes"), (2, "preferredPhases")]
    assert result.summary.invalid_rows == 2


def test_validate_file_reads_csv(validator, tmp_path: Path):
    path = tmp_path / "clients.csv"
    path.write_text("ClientID,ClientName,PriorityLevel\nC1,Acme,2\nC2,Globex,7\n", encoding="utf-8")

    result = validator.validate_file(path, EntityType.CLIENT)

    assert result.headers == ("ClientID", "ClientName", "PriorityLevel")
    assert [(e.row, e.field) for e in result.errors] == [(2, "priorityLevel")]


def test_validate_file_unreadable_is_a_file_level_issue(validator, tmp_path: Path):
    result = validator.validate_file(tmp_path / "missing.csv", EntityType.CLIENT)

    assert not result.is_valid
    assert len(result.errors) == 1
    issue = result.errors[0]
    assert (issue.row, issue.field, issue.message) == (0, "file", "File parsing failed")
    assert result.data == []


# -----------------------------
# ACROSS COLLECTIONS
# -----------------------------
def test_clean_dataset_passes_cross_validation(client_rows, worker_rows, task_rows, fixed_now):
    results = validate_dataset(client_rows, worker_rows, task_rows, now=fixed_now)

    assert isinstance(results, DatasetResults)
    assert results.is_valid


def test_cross_validation_issues_are_merged_per_owner(
    validator, client_rows, worker_rows, task_rows
):
    # --- Arrange ---
    client_rows[0]["RequestedTaskIDs"] = "T1,T9"
    task_rows[0]["Dependencies"] = "T3"
    task_rows[2]["Dependencies"] = "T1"
    task_rows[1]["RequiredSkills"] = "Python,Rust"

    # --- Act ---
    results = validator.validate_dataset(client_rows, worker_rows, task_rows)

    # --- Assert ---
    assert [e.value for e in results.clients.errors] == ["T9"]
    assert results.workers.is_valid
    task_fields = [(e.row, e.field) for e in results.tasks.errors]
    assert (1, "dependencies") in task_fields
    assert (3, "dependencies") in task_fields
    assert (2, "requiredSkills") in task_fields
    assert results.tasks.summary.invalid_rows == 3


def test_apply_cross_validation_keeps_prior_errors_first(
    validator, client_rows, worker_rows, task_rows
):
    client_rows[1]["PriorityLevel"] = "0"
    client_rows[1]["RequestedTaskIDs"] = "T7"
    clients = validator.validate_rows(client_rows, EntityType.CLIENT)
    workers = validator.validate_rows(worker_rows, EntityType.WORKER)
    tasks = validator.validate_rows(task_rows, EntityType.TASK)

    cross = validator.cross_validate(clients, workers, tasks)
    merged = validator.apply_cross_validation(DatasetResults(clients, workers, tasks), cross)

    assert cross.total == 1
    assert merged.clients.errors[0] == clients.errors[0]
    assert [e.field for e in merged.clients.errors] == ["priorityLevel", "requestedTaskIDs"]
    # applying the same batches again changes nothing
    again = validator.apply_cross_validation(merged, cross)
    assert again.clients.errors == merged.clients.errors


def test_rows_that_failed_coercion_still_take_part(validator, client_rows, worker_rows, task_rows):
    # T3 loses its name, so it fails coercion but its id is still known
    task_rows[2]["TaskName"] = ""

    results = validator.validate_dataset(client_rows, worker_rows, task_rows)

    assert results.clients.is_valid
    assert [(e.row, e.field) for e in results.tasks.errors] == [(3, "title")]


def test_optional_passes_follow_config(client_rows, worker_rows, task_rows, fixed_now):
    task_rows[0]["MaxConcurrent"] = "3"
    cfg = Config(cross_checks=CrossCheckConfig(check_concurrency=False))

    strict = DataValidator(Config(), now=fixed_now).validate_dataset(
        client_rows, worker_rows, task_rows
    )
    relaxed = DataValidator(cfg, now=fixed_now).validate_dataset(
        client_rows, worker_rows, task_rows
    )

    assert any(e.field == "maxConcurrent" for e in strict.tasks.errors)
    assert not any(e.field == "maxConcurrent" for e in relaxed.tasks.errors)
