"""
app/domain/source_config.py

Source descriptor and the per-kind configuration variants parsed from it.

Descriptors arrive from cockpit documents with overloaded string fields
(`connection`, `fields`). Each variant below is parsed once, at the
orchestrator boundary, so connectors only ever see typed configuration.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class SourceType(str, Enum):
    API = "api"
    JSON = "json"
    CSV = "csv"
    EXCEL = "excel"
    DATABASE = "database"
    SUPERVISION = "supervision"
    HYPERVISION = "hypervision"
    OBSERVABILITY = "observability"
    EMAIL = "email"
    MANUAL = "manual"
    STATIC = "static"
    OTHER = "other"

    @classmethod
    def resolve(cls, raw: str) -> SourceType:
        """
        Map a raw descriptor type to a known kind; unknown kinds become OTHER.
        """

        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.OTHER


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def try_parse_json(text: str | None) -> tuple[bool, Any]:
    """
    Parse `text` as strict JSON, returning `(parsed_ok, value)`.

    `NaN` and `Infinity` are rejected.
    """

    if text is None:
        return False, None
    try:
        return True, json.loads(text, parse_constant=_reject_constant)
    except (TypeError, ValueError):
        return False, None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


@dataclass(frozen=True)
class SourceDescriptor:
    """
    One external data feed as configured in a cockpit.
    """

    type: str
    name: str | None = None
    location: str | None = None
    connection: str | None = None
    fields: str | None = None
    config: Mapping[str, Any] | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> SourceDescriptor:
        config = payload.get("config")
        return cls(
            type=str(payload.get("type") or ""),
            name=_optional_str(payload.get("name")),
            location=_optional_str(payload.get("location")),
            connection=_optional_str(payload.get("connection")),
            fields=_optional_str(payload.get("fields")),
            config=config if isinstance(config, Mapping) else None,
        )

    @property
    def source_type(self) -> SourceType:
        return SourceType.resolve(self.type)

    @property
    def display_name(self) -> str:
        return self.name or "Sans nom"

    @property
    def literal_data(self) -> Any:
        if self.config is None:
            return None
        return self.config.get("data")


@dataclass(frozen=True)
class HttpAuthConfig:
    """
    Headers and bearer credentials for REST-style sources.
    """

    headers: dict[str, str] = field(default_factory=dict)
    bearer_token: str | None = None

    @classmethod
    def parse(cls, connection: str | None) -> HttpAuthConfig:
        """
        Accept a JSON object with `headers`/`apiKey`, or a bare bearer token.
        """

        if not connection or not connection.strip():
            return cls()

        parsed_ok, parsed = try_parse_json(connection)
        if not parsed_ok or not isinstance(parsed, Mapping):
            return cls(bearer_token=connection)

        raw_headers = parsed.get("headers")
        headers = (
            {str(key): str(value) for key, value in raw_headers.items()}
            if isinstance(raw_headers, Mapping)
            else {}
        )
        api_key = parsed.get("apiKey")
        return cls(headers=headers, bearer_token=str(api_key) if api_key else None)

    def build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        headers.update(self.headers)
        if self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"
        return headers


class MailProvider(str, Enum):
    MICROSOFT = "microsoft"
    GMAIL = "gmail"
    CUSTOM = "custom"


_MICROSOFT_ADDRESS_MARKERS = ("@outlook", "@microsoft", "@hotmail")
_GMAIL_ADDRESS_MARKERS = ("@gmail",)


@dataclass(frozen=True)
class MailboxConfig:
    """
    Mailbox connection settings decoded from a source `connection` string.
    """

    provider: str | None = None
    token: str | None = None
    api_url: str | None = None
    folder: str = "inbox"
    subject: str | None = None
    from_address: str | None = None
    max_results: int = 10
    extract_pattern: str | None = None

    @classmethod
    def parse(cls, connection: str | None) -> MailboxConfig:
        if not connection:
            return cls()

        parsed_ok, parsed = try_parse_json(connection)
        if not parsed_ok or not isinstance(parsed, Mapping):
            return cls(token=connection)

        return cls(
            provider=_optional_str(parsed.get("provider")),
            token=_optional_str(parsed.get("token")),
            api_url=_optional_str(parsed.get("apiUrl")),
            folder=_optional_str(parsed.get("folder")) or "inbox",
            subject=_optional_str(parsed.get("subject")),
            from_address=_optional_str(parsed.get("from")),
            max_results=cls._coerce_max_results(parsed.get("maxResults")),
            extract_pattern=_optional_str(parsed.get("extractPattern")),
        )

    @staticmethod
    def _coerce_max_results(raw: Any) -> int:
        if raw is None:
            return 10
        try:
            return max(1, int(raw))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid mailbox maxResults value=%r", raw)
            return 10

    def resolve_provider(self, address: str | None) -> str:
        """
        Explicit provider wins; otherwise infer it from the mailbox address.
        """

        if self.provider:
            return self.provider.strip().lower()

        normalized = (address or "").lower()
        if any(marker in normalized for marker in _MICROSOFT_ADDRESS_MARKERS):
            return MailProvider.MICROSOFT.value
        if any(marker in normalized for marker in _GMAIL_ADDRESS_MARKERS):
            return MailProvider.GMAIL.value
        return MailProvider.CUSTOM.value


@dataclass(frozen=True)
class DatabaseQueryConfig:
    connection: str
    query: str | None


@dataclass(frozen=True)
class LiteralDataConfig:
    """
    Inline data for manual, static and unclassified sources.
    """

    data: Any = None
    text: str | None = None

    @classmethod
    def from_descriptor(cls, descriptor: SourceDescriptor) -> LiteralDataConfig:
        return cls(data=descriptor.literal_data, text=descriptor.fields)

    @property
    def has_data(self) -> bool:
        return self.data is not None
