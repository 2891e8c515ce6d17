"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for source connectors.
    """

    timeout_seconds: float = 15.0


@dataclass(frozen=True)
class MailboxSettings:
    """
    Mailbox connector endpoints and projection settings.
    """

    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    gmail_base_url: str = "https://gmail.googleapis.com/gmail/v1"
    body_preview_chars: int = 200


@dataclass(frozen=True)
class SourceFetchSettings:
    """
    Runtime settings for source fetch orchestration.
    """

    excel_fetch_enabled: bool = False
    location_preview_chars: int = 50


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 15.0)),
    )


@lru_cache(maxsize=1)
def get_mailbox_settings() -> MailboxSettings:
    """
    Return mailbox connector settings from environment variables.
    """

    return MailboxSettings(
        graph_base_url=_get_str_env("MAILBOX_GRAPH_BASE_URL", "https://graph.microsoft.com/v1.0"),
        gmail_base_url=_get_str_env("MAILBOX_GMAIL_BASE_URL", "https://gmail.googleapis.com/gmail/v1"),
        body_preview_chars=max(1, _get_int_env("MAILBOX_BODY_PREVIEW_CHARS", 200)),
    )


@lru_cache(maxsize=1)
def get_source_fetch_settings() -> SourceFetchSettings:
    """
    Return source fetch orchestration settings from environment variables.
    """

    return SourceFetchSettings(
        excel_fetch_enabled=_get_bool_env("SOURCE_FETCH_EXCEL_ENABLED", False),
        location_preview_chars=max(1, _get_int_env("SOURCE_FETCH_LOCATION_PREVIEW_CHARS", 50)),
    )
