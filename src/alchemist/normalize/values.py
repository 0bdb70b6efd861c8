# src/alchemist/normalize/values.py
"""
@brief
Scalar parsing helpers shared by the coercion and validation passes.

@details
Uploaded cells arrive as strings, numbers or None (pandas hands back NaN for
empty spreadsheet cells). These helpers turn such cells into text, numbers,
lists and JSON objects. The lenient variants never raise: they return a
default or drop tokens. The strict variants used by the field validator live
next to them so both passes agree on what a token is.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable
from typing import Any

# Highest phase a range may expand to. "1-999999999999" would otherwise
# allocate one list entry per phase.
MAX_PHASE = 1000


def to_text(value: Any) -> str:
    """
    @brief
    Render a raw cell as trimmed text.

    @details
    None and NaN become an empty string. Integral floats lose their trailing
    ".0" so a spreadsheet number 3.0 reads back as "3".
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def is_blank(value: Any) -> bool:
    return to_text(value) == ""


def parse_number(value: Any) -> float | None:
    """
    @brief
    Parse a cell into a finite float.

    @returns
        The parsed number, or None when the cell is blank or not numeric.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = to_text(value)
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_int_token(token: Any) -> int | None:
    """
    @brief
    Strictly parse one list token as an integer.

    @details
    Accepts "3" and integral decimals such as "3.0"; rejects blanks,
    fractions and any trailing garbage.
    """
    text = to_text(token)
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number) or not number.is_integer():
        return None
    return int(number)


def clamp_int(value: Any, default: int, lower: int, upper: int | None = None) -> int:
    """
    @brief
    Coerce a cell into a bounded integer without raising.

    @details
    Unparseable or blank input yields the default. Fractions are truncated.
    Out-of-range numbers are clamped silently; the field validator reports
    them separately from the raw value.
    """
    number = parse_number(value)
    if number is None:
        return default
    result = max(int(number), lower)
    if upper is not None:
        result = min(result, upper)
    return result


def strip_brackets(text: str) -> str:
    return text.replace("[", "").replace("]", "").strip()


def split_list(value: Any) -> list[str]:
    """
    @brief
    Split a comma separated cell into trimmed, non-empty tokens.

    @details
    Optional surrounding brackets are removed first. Lists pass through
    with each item rendered as text.
    """
    if isinstance(value, (list, tuple)):
        items: Iterable[Any] = value
    else:
        text = to_text(value)
        if text.startswith("[") and text.endswith("]"):
            text = text[1:-1]
        items = text.split(",")
    tokens = (to_text(item).strip("\"' ") for item in items)
    return [token for token in tokens if token]


def parse_int_list(value: Any) -> list[int]:
    """
    @brief
    Lenient integer list: non-numeric and non-positive tokens are dropped.
    """
    if isinstance(value, (list, tuple)):
        tokens: list[Any] = list(value)
    else:
        tokens = strip_brackets(to_text(value)).split(",")
    numbers = (parse_int_token(token) for token in tokens)
    return [n for n in numbers if n is not None and n >= 1]


def parse_phase_list(value: Any, max_phase: int = MAX_PHASE) -> list[int]:
    """
    @brief
    Parse a phase cell into a list of positive phase numbers.

    @details
    Accepts a single value ("2"), comma lists ("5,1,3"), bracketed lists
    ("[1,2]") and inclusive ranges ("2-4" → [2, 3, 4]). A range is expanded
    only when both halves parse and start <= end <= max_phase; otherwise the
    text falls through to comma handling, which drops it. Order is preserved,
    no sorting is applied.
    """
    if isinstance(value, (list, tuple)):
        return parse_int_list(value)

    cleaned = strip_brackets(to_text(value))
    if not cleaned:
        return []

    # (1) Range syntax, split on the first dash
    if "-" in cleaned:
        head, _, tail = cleaned.partition("-")
        start = parse_int_token(head)
        end = parse_int_token(tail)
        if start is not None and end is not None and start <= end <= max_phase:
            return list(range(start, end + 1))

    # (2) Comma separated values
    return parse_int_list(cleaned)


def parse_json_object(value: Any) -> dict[str, Any]:
    """
    @brief
    Parse a JSON-valued cell into a dict.

    @details
    Blank cells yield an empty dict. Anything that is not valid JSON, or
    valid JSON that is not an object, raises ValueError so the caller can
    record a validation issue instead of silently dropping the content.
    """
    if isinstance(value, dict):
        return value
    text = to_text(value)
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except RecursionError as e:
        raise ValueError("JSON value is too deeply nested") from e
    if not isinstance(parsed, dict):
        raise ValueError("JSON value is not an object")
    return parsed


def is_valid_json_object(value: Any) -> bool:
    try:
        parse_json_object(value)
    except ValueError:
        return False
    return True
