from alchemist.dataloader.types import EntityType
from alchemist.validator.structural import check_duplicate_ids, check_missing_columns


def test_missing_columns_one_issue_per_column():
    headers = ["ClientID", "Notes"]

    issues = check_missing_columns(headers, EntityType.CLIENT)

    assert [i.field for i in issues] == ["ClientName", "PriorityLevel"]
    assert all(i.row == 0 for i in issues)
    assert issues[0].message == "Missing required column: ClientName"
    assert issues[0].value == "Available columns: ClientID, Notes"


def test_missing_columns_is_alias_tolerant():
    """
    @brief
    "Client_ID" satisfies ClientID, and aliases of the other columns count too.
    """
    headers = ["Client_ID", "client name", "priority"]

    assert check_missing_columns(headers, EntityType.CLIENT) == []


def test_missing_columns_for_tasks_accepts_canonical_names():
    headers = ["id", "title", "duration", "requiredSkills"]

    assert check_missing_columns(headers, EntityType.TASK) == []


def test_duplicate_ids_one_issue_per_occurrence():
    # --- Arrange ---
    rows = [{"id": f"U{i}"} for i in range(1, 8)]
    for position in (1, 4, 6):  # rows 2, 5, 7
        rows[position] = {"id": "X"}

    # --- Act ---
    issues = check_duplicate_ids(rows)

    # --- Assert ---
    assert len(issues) == 3
    assert {i.row for i in issues} == {2, 5, 7}
    for issue in issues:
        assert issue.field == "id"
        assert issue.value == "X"
        assert issue.message == 'Duplicate ID "X" found in rows: 2, 5, 7'


def test_blank_ids_are_not_duplicates():
    rows = [{"id": ""}, {"id": None}, {"id": "A"}]

    assert check_duplicate_ids(rows) == []
