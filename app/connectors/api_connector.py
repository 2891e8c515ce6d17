"""
app/connectors/api_connector.py

REST API connector, also used for supervision/hypervision/observability tools.
"""

from __future__ import annotations

import logging
from typing import Any

from app.connectors.base import BaseSourceConnector
from app.domain.source_config import HttpAuthConfig
from app.services.field_extractor import extract_fields

logger = logging.getLogger(__name__)


class ApiConnector(BaseSourceConnector):
    """
    GET a JSON document with optional auth headers and field projection.
    """

    source = "api"

    def fetch(self, url: str, auth: HttpAuthConfig, fields: str | None = None) -> Any:
        payload = self._request_json(
            url=url,
            error_label="API error",
            headers=auth.build_headers(),
        )
        if fields:
            logger.debug("Projecting API payload url=%s fields=%s", url, fields)
            return extract_fields(payload, fields)
        return payload


class MonitoringConnector(ApiConnector):
    """
    Monitoring tools expose plain REST APIs; same contract as ApiConnector.
    """

    source = "monitoring"
