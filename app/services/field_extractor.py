"""
app/services/field_extractor.py

Projection of fetched records down to a comma-separated list of fields.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from app.domain.source_payload import PayloadKind, SourcePayload


def parse_fields_spec(fields_spec: str | None) -> list[str]:
    if not fields_spec:
        return []
    return [name.strip() for name in fields_spec.split(",") if name.strip()]


def resolve_path(record: Any, field_name: str) -> Any:
    """
    Follow a dotted path through nested mappings (and list indexes).

    Returns None as soon as a segment cannot be resolved.
    """

    value = record
    for part in field_name.split("."):
        if isinstance(value, Mapping):
            value = value.get(part)
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and part.isdigit():
            index = int(part)
            value = value[index] if index < len(value) else None
        else:
            return None
        if value is None:
            return None
    return value


def _project(record: Any, field_names: list[str]) -> dict[str, Any]:
    return {name: resolve_path(record, name) for name in field_names}


def extract_fields(data: Any, fields_spec: str | None) -> Any:
    """
    Keep only the requested fields of `data`, preserving dotted names as keys.

    A sequence is projected element by element; anything else is projected
    once. An empty spec returns `data` untouched.
    """

    field_names = parse_fields_spec(fields_spec)
    if not field_names:
        return data

    payload = SourcePayload.wrap(data)
    if payload.kind is PayloadKind.EMPTY:
        return data
    if payload.kind is PayloadKind.RECORDS:
        return [_project(item, field_names) for item in payload.value]
    return _project(payload.value, field_names)
