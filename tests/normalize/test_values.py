import pytest

from alchemist.normalize.values import (
    clamp_int,
    parse_int_list,
    parse_json_object,
    parse_number,
    parse_phase_list,
    split_list,
    to_text,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2-4", [2, 3, 4]),
        ("5,1,3", [5, 1, 3]),
        ("[1, 2]", [1, 2]),
        ("7", [7]),
        ("4-2", []),  # reversed range is not a range and not a number either
        ("1,x,0,3", [1, 3]),
        ("", []),
        ([3, "4", "z"], [3, 4]),
        ("1-999999999999", []),  # beyond the phase ceiling
        ("998-1000", [998, 999, 1000]),
    ],
)
def test_parse_phase_list(raw, expected):
    assert parse_phase_list(raw) == expected


def test_parse_phase_list_custom_ceiling():
    assert parse_phase_list("1-3", max_phase=3) == [1, 2, 3]
    assert parse_phase_list("1-4", max_phase=3) == []


def test_split_list_strips_brackets_quotes_and_empties():
    assert split_list('["a", "b",, c ]') == ["a", "b", "c"]
    assert split_list(None) == []


def test_parse_int_list_drops_non_positive():
    assert parse_int_list("1,-2,0,3.0") == [1, 3]


def test_to_text_handles_spreadsheet_numbers():
    assert to_text(3.0) == "3"
    assert to_text(float("nan")) == ""
    assert to_text("  x ") == "x"


def test_parse_number_rejects_non_finite():
    assert parse_number("inf") is None
    assert parse_number("1e3") == 1000.0
    assert parse_number("abc") is None


def test_clamp_int_bounds_and_default():
    assert clamp_int("9", default=1, lower=1, upper=5) == 5
    assert clamp_int("-3", default=1, lower=1) == 1
    assert clamp_int("n/a", default=8, lower=1) == 8


def test_parse_json_object():
    assert parse_json_object("") == {}
    assert parse_json_object('{"a": 1}') == {"a": 1}
    with pytest.raises(ValueError):
        parse_json_object("[1, 2]")
    with pytest.raises(ValueError):
        parse_json_object("{broken")
    with pytest.raises(ValueError, match="too deeply nested"):
        parse_json_object("[" * 100_000)
