import logging

from alchemist.dataloader.types import EntityType, RowRecord, ValidationIssue, ValidationResult
from alchemist.schemas.models import Task
from alchemist.validator.aggregator import build_result, merge_errors, report_summary


def _records(n: int) -> list[RowRecord]:
    return [
        RowRecord(
            row=i + 1,
            raw={"id": f"T{i + 1}"},
            entity=Task.model_validate({"id": f"T{i + 1}", "title": "x"}),
        )
        for i in range(n)
    ]


def test_build_result_keeps_batch_order_and_drops_exact_duplicates():
    a = ValidationIssue(1, "attributes", "Invalid JSON format in attributes field", "{x")
    b = ValidationIssue(0, "TaskName", "Missing required column: TaskName")

    result = build_result(EntityType.TASK, _records(2), [b], [a], [a])

    assert result.errors == (b, a)


def test_invalid_rows_count_distinct_rows():
    """
    @brief
    Two issues on the same row count as one invalid row; row 0 never counts.
    """
    issues = [
        ValidationIssue(2, "title", "TaskName is required"),
        ValidationIssue(2, "duration", "Duration must be ≥ 1 phase", "0"),
        ValidationIssue(0, "phaseCapacity", "Phase 1 is oversaturated", "Phase 1: 2/1"),
    ]

    result = build_result(EntityType.TASK, _records(3), issues)

    assert result.summary.to_dict() == {"totalRows": 3, "validRows": 2, "invalidRows": 1}
    assert [t.id for t in result.valid_data] == ["T1", "T3"]


def test_merge_errors_is_append_only():
    prior = build_result(EntityType.TASK, _records(2), [ValidationIssue(1, "id", "first")])
    later = [ValidationIssue(2, "dependencies", "second"), ValidationIssue(1, "id", "first")]

    merged = merge_errors(prior, later)

    assert merged.errors[: len(prior.errors)] == prior.errors
    assert [i.message for i in merged.errors] == ["first", "second"]
    # prior result untouched
    assert len(prior.errors) == 1
    assert [t.id for t in merged.valid_data] == []


def test_merge_errors_is_idempotent():
    prior = build_result(EntityType.TASK, _records(2))
    batch = [ValidationIssue(2, "dependencies", "cycle", "T2 → T2")]

    once = merge_errors(prior, batch)
    twice = merge_errors(once, batch)

    assert twice == once
    assert twice is once
    assert merge_errors(prior) is prior


def test_report_summary_levels(caplog):
    clean = ValidationResult(entity_type=EntityType.CLIENT, records=tuple(_records(1)))
    dirty = clean.with_errors((ValidationIssue(1, "name", "ClientName is required"),))

    with caplog.at_level(logging.INFO, logger="alchemist.validator.aggregator"):
        report_summary(clean, "clients.csv")
        report_summary(dirty, "clients.csv")

    levels = [r.levelno for r in caplog.records]
    assert levels == [logging.INFO, logging.WARNING]
    assert "name=1" in caplog.records[1].getMessage()
