"""
Shared pytest fixtures: an in-memory HTTP session and settings objects.
"""

from __future__ import annotations

import json
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any

import pytest
import requests

from app.config import ExternalHTTPSettings, MailboxSettings, SourceFetchSettings


@dataclass
class FakeResponse:
    status_code: int = 200
    body: bytes = b""
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    @property
    def content(self) -> bytes:
        return self.body

    def json(self) -> Any:
        return json.loads(self.text)


@dataclass
class RecordedRequest:
    method: str
    url: str
    params: dict[str, Any] | None
    headers: dict[str, str] | None
    timeout: float | None


@dataclass
class FakeSession:
    """
    Stand-in for requests.Session routing by URL to queued responses.
    """

    routes: dict[str, deque[FakeResponse | Exception]] = field(default_factory=lambda: defaultdict(deque))
    calls: list[RecordedRequest] = field(default_factory=list)

    def add_json(self, url: str, payload: Any, status_code: int = 200) -> None:
        self.routes[url].append(FakeResponse(status_code, json.dumps(payload).encode("utf-8"), url))

    def add_text(self, url: str, text: str, status_code: int = 200) -> None:
        self.routes[url].append(FakeResponse(status_code, text.encode("utf-8"), url))

    def add_bytes(self, url: str, content: bytes, status_code: int = 200) -> None:
        self.routes[url].append(FakeResponse(status_code, content, url))

    def add_error(self, url: str, error: Exception) -> None:
        self.routes[url].append(error)

    def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> FakeResponse:
        self.calls.append(RecordedRequest(method, url, params, headers, timeout))
        queue = self.routes.get(url)
        if not queue:
            raise requests.ConnectionError(f"No route for {url}")
        outcome = queue.popleft()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def urls(self) -> list[str]:
        return [recorded.url for recorded in self.calls]


@pytest.fixture()
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def http_settings() -> ExternalHTTPSettings:
    return ExternalHTTPSettings(timeout_seconds=5.0)


@pytest.fixture()
def mailbox_settings() -> MailboxSettings:
    return MailboxSettings(
        graph_base_url="https://graph.test/v1.0",
        gmail_base_url="https://gmail.test/gmail/v1",
        body_preview_chars=200,
    )


@pytest.fixture()
def fetch_settings() -> SourceFetchSettings:
    return SourceFetchSettings(excel_fetch_enabled=False, location_preview_chars=50)
