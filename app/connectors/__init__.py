"""
app/connectors package marker.
"""

from app.connectors.api_connector import ApiConnector, MonitoringConnector
from app.connectors.base import BaseSourceConnector, ConnectorRequestError
from app.connectors.csv_connector import CsvConnector, parse_naive_csv
from app.connectors.database_connector import (
    DatabaseConnector,
    QueryExecutor,
    QueryPolicyError,
    SQLAlchemyQueryExecutor,
)
from app.connectors.json_connector import JsonConnector
from app.connectors.mailbox_connector import EmailMessage, ExtractedValue, MailboxConnector
from app.connectors.spreadsheet_connector import SpreadsheetConnector

__all__ = [
    "ApiConnector",
    "BaseSourceConnector",
    "ConnectorRequestError",
    "CsvConnector",
    "DatabaseConnector",
    "EmailMessage",
    "ExtractedValue",
    "JsonConnector",
    "MailboxConnector",
    "MonitoringConnector",
    "QueryExecutor",
    "QueryPolicyError",
    "SQLAlchemyQueryExecutor",
    "SpreadsheetConnector",
    "parse_naive_csv",
]
