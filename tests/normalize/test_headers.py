import pytest

from alchemist.dataloader.types import EntityType
from alchemist.normalize.headers import (
    FIELD_ALIASES,
    apply_header_mapping,
    canonical_field,
    normalize_key,
    suggest_header_mapping,
)


def test_normalize_key_strips_case_space_and_punctuation():
    assert normalize_key(" Client_ID ") == "clientid"
    assert normalize_key("Max Hours/Week") == "maxhoursweek"


def test_suggestion_tiers():
    """
    @brief
    Exact, alias and partial matches get 1.0, 0.9 and 0.7.
    """
    # --- Arrange ---
    headers = ["PriorityLevel", "client_id", "Client Email Address", "Favourite Colour"]

    # --- Act ---
    mapping = suggest_header_mapping(headers, EntityType.CLIENT)

    # --- Assert ---
    assert mapping["PriorityLevel"].field == "priorityLevel"
    assert mapping["PriorityLevel"].confidence == pytest.approx(1.0)
    assert mapping["PriorityLevel"].reason == "Exact match"

    assert mapping["client_id"].field == "id"
    assert mapping["client_id"].confidence == pytest.approx(0.9)
    assert mapping["client_id"].reason == "Matched alias: client_id"

    assert mapping["Client Email Address"].field == "email"
    assert mapping["Client Email Address"].confidence == pytest.approx(0.7)

    # unmatched headers are simply absent
    assert "Favourite Colour" not in mapping


def test_suggest_never_raises_on_odd_headers():
    mapping = suggest_header_mapping(["", "   ", "---", 42], EntityType.TASK)
    assert mapping == {}


def test_canonical_field_uses_entity_specific_aliases():
    assert canonical_field("TaskName", EntityType.TASK) == "title"
    assert canonical_field("hourlyrate", EntityType.WORKER) == "hourlyRate"
    assert canonical_field("capacity", EntityType.WORKER) == "maxHoursPerWeek"
    assert canonical_field("Favourite Colour", EntityType.WORKER) is None


def test_apply_mapping_respects_threshold_and_first_non_empty():
    row = {"client_id": "", "ClientID": "C7", "Client Email Address": "a@b.co"}
    mapping = suggest_header_mapping(row.keys(), EntityType.CLIENT)

    renamed = apply_header_mapping(row, mapping, threshold=0.8)

    assert renamed["id"] == "C7"
    # partial match (0.7) stays under its original name
    assert "Client Email Address" in renamed
    assert "email" not in renamed


def test_alias_table_covers_every_entity():
    assert set(FIELD_ALIASES) == set(EntityType)
    for table in FIELD_ALIASES.values():
        assert "id" in table
