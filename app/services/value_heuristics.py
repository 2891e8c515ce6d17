"""
app/services/value_heuristics.py

Best-effort numeric extraction for free text attached to unclassified sources.

Rules are evaluated in table order and the first rule returning a value
wins. Existing dashboards derive their numbers from this exact priority.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

NUMBER_PATTERN = r"\d+(?:[.,]\d+)?"

_NUMBER_RE = re.compile(f"({NUMBER_PATTERN})")
_LABELED_NUMBER_RE = re.compile(
    rf"(?:valeur|value|total|count|nombre)[\s:=]+({NUMBER_PATTERN})",
    re.IGNORECASE,
)


def parse_decimal(raw: str) -> float:
    """
    Parse a matched number, accepting ',' as decimal separator.
    """

    return float(raw.replace(",", ".", 1))


def find_first_number(text: str) -> float | None:
    match = _NUMBER_RE.search(text)
    if match is None:
        return None
    return parse_decimal(match.group(1))


def _labeled_number(text: str) -> dict[str, Any] | None:
    match = _LABELED_NUMBER_RE.search(text)
    if match is None:
        return None
    return {"value": parse_decimal(match.group(1))}


def _first_number(text: str) -> dict[str, Any] | None:
    value = find_first_number(text)
    if value is None:
        return None
    return {"value": value}


def _raw_text(text: str) -> dict[str, Any] | None:
    return {"rawText": text, "value": text}


@dataclass(frozen=True)
class HeuristicRule:
    name: str
    extract: Callable[[str], dict[str, Any] | None]


VALUE_HEURISTICS: tuple[HeuristicRule, ...] = (
    HeuristicRule(name="labeled_number", extract=_labeled_number),
    HeuristicRule(name="first_number", extract=_first_number),
    HeuristicRule(name="raw_text", extract=_raw_text),
)


def resolve_text_value(
    text: str,
    rules: tuple[HeuristicRule, ...] = VALUE_HEURISTICS,
) -> tuple[str, dict[str, Any]] | None:
    """
    Return `(rule_name, value)` for the first matching rule, or None.
    """

    for rule in rules:
        value = rule.extract(text)
        if value is not None:
            return rule.name, value
    return None
