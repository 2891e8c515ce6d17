"""
app/services/source_fetch_service.py

Orchestration of a single source fetch: validate the descriptor, dispatch to
the connector for its kind, and record the outcome on the execution ledger.

`fetch_source_data` never raises. A None return means the caller has to
read the last ledger step to learn why nothing was fetched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import requests

from app.config import (
    SourceFetchSettings,
    get_external_http_settings,
    get_mailbox_settings,
    get_source_fetch_settings,
)
from app.connectors import (
    ApiConnector,
    ConnectorRequestError,
    CsvConnector,
    DatabaseConnector,
    JsonConnector,
    MailboxConnector,
    MonitoringConnector,
    QueryPolicyError,
    SpreadsheetConnector,
)
from app.domain.execution_ledger import ExecutionLedger, StepStatus
from app.domain.source_config import (
    DatabaseQueryConfig,
    HttpAuthConfig,
    LiteralDataConfig,
    MailboxConfig,
    SourceDescriptor,
    SourceType,
    try_parse_json,
)
from app.domain.source_payload import SourcePayload
from app.logging_utils import log_step
from app.services.value_heuristics import resolve_text_value

logger = logging.getLogger(__name__)

INVALID_SOURCE_MESSAGE = "Source invalide ou type non défini"
EXCEL_SKIP_MESSAGE = "Excel: Utilisez un export CSV ou une API"


class SourceConfigurationError(ValueError):
    """
    Raised when a descriptor lacks what its connector requires.
    """


@dataclass(frozen=True)
class SkippedFetch:
    """
    Deliberate non-fetch outcome; finalized as `skipped`, never as an error.
    """

    reason: str


Handler = Callable[[SourceDescriptor, ExecutionLedger, int], Any]


class SourceFetchOrchestrator:
    """
    Dispatches one source descriptor to its connector and keeps the ledger.
    """

    def __init__(
        self,
        *,
        api_connector: ApiConnector,
        monitoring_connector: MonitoringConnector,
        json_connector: JsonConnector,
        csv_connector: CsvConnector,
        spreadsheet_connector: SpreadsheetConnector,
        database_connector: DatabaseConnector,
        mailbox_connector: MailboxConnector,
        settings: SourceFetchSettings,
    ) -> None:
        self._api = api_connector
        self._monitoring = monitoring_connector
        self._json = json_connector
        self._csv = csv_connector
        self._spreadsheet = spreadsheet_connector
        self._database = database_connector
        self._mailbox = mailbox_connector
        self._settings = settings
        self._handlers: dict[SourceType, Handler] = {
            SourceType.API: self._fetch_api,
            SourceType.JSON: self._fetch_json,
            SourceType.CSV: self._fetch_csv,
            SourceType.EXCEL: self._fetch_excel,
            SourceType.DATABASE: self._fetch_database,
            SourceType.SUPERVISION: self._fetch_monitoring,
            SourceType.HYPERVISION: self._fetch_monitoring,
            SourceType.OBSERVABILITY: self._fetch_monitoring,
            SourceType.EMAIL: self._fetch_email,
            SourceType.MANUAL: self._fetch_literal,
            SourceType.STATIC: self._fetch_literal,
            SourceType.OTHER: self._fetch_other,
        }

    def fetch_source_data(
        self,
        source: SourceDescriptor | Mapping[str, Any] | None,
        ledger: ExecutionLedger,
    ) -> Any:
        """
        Fetch one source, leaving exactly one finalized step on `ledger`.
        """

        descriptor = self._coerce_descriptor(source)
        if descriptor is None or not (descriptor.type or "").strip():
            index = ledger.open_step(action="validate_source", message="Validation de la source")
            log_step(logger, ledger.finalize(index, StepStatus.ERROR, INVALID_SOURCE_MESSAGE))
            return None

        index = ledger.open_step(
            action="fetch_source",
            message=f'Récupération de la source "{descriptor.display_name}" ({descriptor.type})',
            details={"type": descriptor.type, "location": self._location_preview(descriptor.location)},
        )

        handler = self._handlers[descriptor.source_type]
        try:
            outcome = handler(descriptor, ledger, index)
        except (ConnectorRequestError, QueryPolicyError, SourceConfigurationError) as exc:
            return self._fail(ledger, index, descriptor, exc)
        except Exception as exc:
            logger.exception(
                "Unhandled source fetch failure type=%s name=%s error=%s",
                descriptor.type,
                descriptor.display_name,
                exc,
            )
            return self._fail(ledger, index, descriptor, exc)

        if ledger.is_finalized(index):
            log_step(logger, ledger[index], source_type=descriptor.type)
            return None

        if isinstance(outcome, SkippedFetch):
            step = ledger.finalize(index, StepStatus.SKIPPED, outcome.reason)
            log_step(logger, step, source_type=descriptor.type)
            return None

        payload = SourcePayload.wrap(outcome)
        step = ledger.finalize(
            index,
            StepStatus.SUCCESS,
            f'Source "{descriptor.display_name}" récupérée',
            details={"record_count": payload.record_count},
        )
        log_step(logger, step, source_type=descriptor.type, payload_kind=payload.kind.value)
        return outcome

    @staticmethod
    def _coerce_descriptor(source: SourceDescriptor | Mapping[str, Any] | None) -> SourceDescriptor | None:
        if isinstance(source, SourceDescriptor):
            return source
        if isinstance(source, Mapping):
            return SourceDescriptor.from_mapping(source)
        return None

    def _location_preview(self, location: str | None) -> str:
        if not location:
            return "Non défini"
        return location[: self._settings.location_preview_chars]

    def _fail(
        self,
        ledger: ExecutionLedger,
        index: int,
        descriptor: SourceDescriptor,
        exc: Exception,
    ) -> None:
        if not ledger.is_finalized(index):
            ledger.finalize(
                index,
                StepStatus.ERROR,
                f"Erreur: {exc}",
                details={"error_type": type(exc).__name__},
            )
        log_step(logger, ledger[index], source_type=descriptor.type)
        return None

    @staticmethod
    def _require(value: str | None, message: str) -> str:
        if not value:
            raise SourceConfigurationError(message)
        return value

    def _fetch_api(self, descriptor: SourceDescriptor, ledger: ExecutionLedger, index: int) -> Any:
        url = self._require(descriptor.location, "URL de l'API non définie")
        return self._api.fetch(url, HttpAuthConfig.parse(descriptor.connection), descriptor.fields)

    def _fetch_json(self, descriptor: SourceDescriptor, ledger: ExecutionLedger, index: int) -> Any:
        url = self._require(descriptor.location, "URL du JSON non définie")
        return self._json.fetch(url)

    def _fetch_csv(self, descriptor: SourceDescriptor, ledger: ExecutionLedger, index: int) -> Any:
        url = self._require(descriptor.location, "URL du CSV non définie")
        return self._csv.fetch(url)

    def _fetch_excel(self, descriptor: SourceDescriptor, ledger: ExecutionLedger, index: int) -> Any:
        if not self._settings.excel_fetch_enabled:
            return SkippedFetch(EXCEL_SKIP_MESSAGE)
        url = self._require(descriptor.location, "URL du fichier Excel non définie")
        return self._spreadsheet.fetch(url, descriptor.fields)

    def _fetch_database(self, descriptor: SourceDescriptor, ledger: ExecutionLedger, index: int) -> Any:
        connection = self._require(descriptor.connection, "Connexion BDD non définie")
        config = DatabaseQueryConfig(connection=connection, query=descriptor.fields)
        return self._database.fetch(config.query)

    def _fetch_monitoring(self, descriptor: SourceDescriptor, ledger: ExecutionLedger, index: int) -> Any:
        url = self._require(descriptor.location, "URL du service de monitoring non définie")
        return self._monitoring.fetch(url, HttpAuthConfig.parse(descriptor.connection))

    def _fetch_email(self, descriptor: SourceDescriptor, ledger: ExecutionLedger, index: int) -> Any:
        return self._mailbox.fetch(
            address=descriptor.location,
            config=MailboxConfig.parse(descriptor.connection),
            fields=descriptor.fields,
            ledger=ledger,
            step_index=index,
        )

    def _fetch_literal(self, descriptor: SourceDescriptor, ledger: ExecutionLedger, index: int) -> Any:
        literal = LiteralDataConfig.from_descriptor(descriptor)
        if literal.has_data:
            return literal.data
        parsed_ok, parsed = try_parse_json(literal.text)
        if parsed_ok:
            return parsed
        return SkippedFetch(
            f'Type "{descriptor.type}": Aucune donnée définie. '
            'Renseignez "config.data" ou un JSON dans "Champs/règles"'
        )

    def _fetch_other(self, descriptor: SourceDescriptor, ledger: ExecutionLedger, index: int) -> Any:
        location = descriptor.location or ""
        if location.startswith(("http://", "https://")):
            return self._api.fetch(location, HttpAuthConfig.parse(descriptor.connection), descriptor.fields)

        literal = LiteralDataConfig.from_descriptor(descriptor)
        if literal.text:
            parsed_ok, parsed = try_parse_json(literal.text)
            if parsed_ok:
                return parsed
            resolved = resolve_text_value(literal.text)
            if resolved is not None:
                rule_name, value = resolved
                logger.info("Resolved unclassified source text rule=%s name=%s", rule_name, descriptor.display_name)
                return value

        if literal.has_data:
            return literal.data
        return SkippedFetch(f'Type "{descriptor.type}": Configurez une URL ou des données dans "Champs/règles"')


def build_source_fetch_service(
    *,
    session: requests.Session | None = None,
    database_connector: DatabaseConnector | None = None,
    settings: SourceFetchSettings | None = None,
) -> SourceFetchOrchestrator:
    """
    Wire all connectors around one shared HTTP session.
    """

    http_settings = get_external_http_settings()
    shared_session = session or requests.Session()
    return SourceFetchOrchestrator(
        api_connector=ApiConnector(http_settings=http_settings, session=shared_session),
        monitoring_connector=MonitoringConnector(http_settings=http_settings, session=shared_session),
        json_connector=JsonConnector(http_settings=http_settings, session=shared_session),
        csv_connector=CsvConnector(http_settings=http_settings, session=shared_session),
        spreadsheet_connector=SpreadsheetConnector(http_settings=http_settings, session=shared_session),
        database_connector=database_connector or DatabaseConnector(),
        mailbox_connector=MailboxConnector(
            http_settings=http_settings,
            mailbox_settings=get_mailbox_settings(),
            session=shared_session,
        ),
        settings=settings or get_source_fetch_settings(),
    )


@lru_cache(maxsize=1)
def get_source_fetch_service() -> SourceFetchOrchestrator:
    """
    Build and cache the default source fetch orchestrator.
    """

    return build_source_fetch_service()


def fetch_source_data(
    source: SourceDescriptor | Mapping[str, Any] | None,
    ledger: ExecutionLedger,
) -> Any:
    return get_source_fetch_service().fetch_source_data(source, ledger)
