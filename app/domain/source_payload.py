"""
app/domain/source_payload.py

Tagged wrapper for connector outputs.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class PayloadKind(str, Enum):
    EMPTY = "empty"
    RECORD = "record"
    RECORDS = "records"
    TEXT = "text"


@dataclass(frozen=True)
class SourcePayload:
    """
    Connector output tagged with its shape.

    RECORD covers mappings and any other scalar JSON value; RECORDS covers
    lists and tuples; TEXT is raw, unparsed text.
    """

    kind: PayloadKind
    value: Any

    @classmethod
    def wrap(cls, value: Any) -> SourcePayload:
        if value is None:
            return cls(kind=PayloadKind.EMPTY, value=None)
        if isinstance(value, (list, tuple)):
            return cls(kind=PayloadKind.RECORDS, value=list(value))
        if isinstance(value, str):
            return cls(kind=PayloadKind.TEXT, value=value)
        return cls(kind=PayloadKind.RECORD, value=value)

    @property
    def record_count(self) -> int:
        if self.kind is PayloadKind.EMPTY:
            return 0
        if self.kind is PayloadKind.RECORDS:
            return len(self.value)
        if self.kind is PayloadKind.TEXT:
            return 1 if self.value else 0
        if isinstance(self.value, Mapping):
            return 1
        return 1 if self.value else 0
