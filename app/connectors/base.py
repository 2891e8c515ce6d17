"""
app/connectors/base.py

Shared HTTP mechanics for source connectors.

Requests are single-shot: no retries and no backoff. The configured timeout
is the only bound on a request.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from app.config import ExternalHTTPSettings

logger = logging.getLogger(__name__)


class ConnectorRequestError(RuntimeError):
    """
    Raised when a connector cannot fetch or decode its source.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BaseSourceConnector:
    """
    Base class holding the HTTP session shared by network connectors.
    """

    source: str = "base"

    def __init__(
        self,
        *,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout_seconds = http_settings.timeout_seconds

    def _send(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """
        Issue one request, converting transport failures to ConnectorRequestError.
        """

        try:
            return self._session.request(
                method=method,
                url=url,
                params=params,
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            logger.error(
                "Connector request failed source=%s url=%s error=%s",
                self.source,
                url,
                exc,
            )
            raise ConnectorRequestError(f"{self.source}: unreachable host ({exc}).") from exc

    def _ensure_ok(self, response: requests.Response, *, error_label: str) -> requests.Response:
        if not response.ok:
            logger.error(
                "Connector request rejected source=%s status=%s url=%s",
                self.source,
                response.status_code,
                response.url,
            )
            raise ConnectorRequestError(
                f"{error_label}: {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def _request(
        self,
        *,
        url: str,
        error_label: str,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        response = self._send(method=method, url=url, params=params, headers=headers)
        return self._ensure_ok(response, error_label=error_label)

    def _request_json(
        self,
        *,
        url: str,
        error_label: str,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = self._request(
            url=url,
            error_label=error_label,
            method=method,
            params=params,
            headers=headers,
        )
        return self._decode_json(response)

    def _request_text(self, *, url: str, error_label: str, headers: dict[str, str] | None = None) -> str:
        return self._request(url=url, error_label=error_label, headers=headers).text

    def _request_bytes(self, *, url: str, error_label: str, headers: dict[str, str] | None = None) -> bytes:
        return self._request(url=url, error_label=error_label, headers=headers).content

    def _decode_json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectorRequestError(f"{self.source}: response was not valid JSON.") from exc
