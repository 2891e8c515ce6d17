"""
app/connectors/database_connector.py

Read-only SQL connector.

The only safety check is a textual allow-list: the statement must start with
SELECT. There is no parameter binding and no query sandbox beyond that
prefix test, so the configured database role should itself be read-only.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from app.connectors.base import ConnectorRequestError

logger = logging.getLogger(__name__)

SELECT_ONLY_MESSAGE = "Seules les requêtes SELECT sont autorisées (accès en lecture seule)"


class QueryPolicyError(ValueError):
    """
    Raised when a query is rejected by the SELECT-only policy.
    """


class QueryExecutor(Protocol):
    def execute(self, query: str) -> list[dict[str, Any]]:
        ...


class SQLAlchemyQueryExecutor:
    """
    Execute queries on the shared engine and return row mappings.

    The text goes to the DBAPI driver unchanged, so `:name` sequences inside
    literals are not read as bind parameters.
    """

    def __init__(self, engine_factory: Callable[[], Engine] | None = None) -> None:
        if engine_factory is None:
            from db.session import get_engine

            engine_factory = get_engine
        self._engine_factory = engine_factory

    def execute(self, query: str) -> list[dict[str, Any]]:
        with self._engine_factory().connect() as connection:
            result = connection.exec_driver_sql(query)
            return [dict(row._mapping) for row in result]


def enforce_select_only(query: str) -> str:
    if not query.strip().lower().startswith("select"):
        raise QueryPolicyError(SELECT_ONLY_MESSAGE)
    return query


class DatabaseConnector:
    source = "database"

    def __init__(self, *, executor: QueryExecutor | None = None) -> None:
        self._executor = executor or SQLAlchemyQueryExecutor()

    def fetch(self, query: str | None) -> list[dict[str, Any]]:
        if not query or not query.strip():
            raise QueryPolicyError("Requête SQL non définie (renseignez-la dans \"Champs/règles\")")

        enforce_select_only(query)
        try:
            rows = self._executor.execute(query)
        except SQLAlchemyError as exc:
            logger.error("Database source query failed error=%s", exc)
            raise ConnectorRequestError(f"Database error: {exc}") from exc

        logger.info("Database source query returned rows=%s", len(rows))
        return rows
