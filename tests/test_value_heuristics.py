"""
tests/test_value_heuristics.py

Priority order of the free-text value rules.
"""

from __future__ import annotations

import pytest

from app.services.value_heuristics import (
    VALUE_HEURISTICS,
    find_first_number,
    parse_decimal,
    resolve_text_value,
)


def test_rule_table_order_is_stable() -> None:
    assert [rule.name for rule in VALUE_HEURISTICS] == ["labeled_number", "first_number", "raw_text"]


def test_labeled_number_wins_over_first_number() -> None:
    rule_name, value = resolve_text_value("ref 7 total: 42 unités")
    assert rule_name == "labeled_number"
    assert value == {"value": 42}


def test_labeled_number_is_case_insensitive_and_accepts_comma() -> None:
    assert resolve_text_value("Valeur = 12,5") == ("labeled_number", {"value": 12.5})


def test_first_number_when_no_label() -> None:
    assert resolve_text_value("il reste 17 tickets") == ("first_number", {"value": 17})


def test_raw_text_when_no_number() -> None:
    assert resolve_text_value("aucune donnée") == (
        "raw_text",
        {"rawText": "aucune donnée", "value": "aucune donnée"},
    )


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("3", 3.0),
        ("3.25", 3.25),
        ("3,25", 3.25),
    ],
)
def test_parse_decimal(raw: str, expected: float) -> None:
    assert parse_decimal(raw) == pytest.approx(expected)


def test_find_first_number_returns_none_without_digits() -> None:
    assert find_first_number("none here") is None
