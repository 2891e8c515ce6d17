"""
app/connectors/json_connector.py

Static JSON document connector.
"""

from __future__ import annotations

from typing import Any

from app.connectors.base import BaseSourceConnector


class JsonConnector(BaseSourceConnector):
    source = "json"

    def fetch(self, url: str) -> Any:
        return self._request_json(url=url, error_label="JSON fetch error")
