"""
app/connectors/spreadsheet_connector.py

Spreadsheet (xlsx) connector returning the rows of one sheet as records.
"""

from __future__ import annotations

import io
import logging
import re
from collections.abc import Sequence
from typing import Any

import pandas as pd

from app.connectors.base import BaseSourceConnector, ConnectorRequestError

logger = logging.getLogger(__name__)

_SHEET_SELECTOR_RE = re.compile(r"sheet:\s*([^,]+)", re.IGNORECASE)


def select_sheet_name(sheet_names: Sequence[str], fields: str | None) -> str | None:
    """
    Pick the sheet named by a `sheet:<name>` selector, else the first sheet.
    """

    if not sheet_names:
        return None
    if fields:
        match = _SHEET_SELECTOR_RE.search(fields)
        if match and match.group(1).strip() in sheet_names:
            return match.group(1).strip()
    return sheet_names[0]


def _to_native(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if hasattr(value, "item"):
        return value.item()
    return value


def frame_to_records(frame: pd.DataFrame) -> list[dict[str, Any]]:
    """
    Convert a sheet to records, omitting empty cells.
    """

    records: list[dict[str, Any]] = []
    for row in frame.to_dict(orient="records"):
        record = {str(key): _to_native(value) for key, value in row.items() if pd.notna(value)}
        if record:
            records.append(record)
    return records


def parse_workbook(content: bytes, fields: str | None = None) -> list[dict[str, Any]]:
    try:
        sheets = pd.read_excel(io.BytesIO(content), sheet_name=None, engine="openpyxl")
    except Exception as exc:
        raise ConnectorRequestError(f"Excel parse error: {exc}") from exc

    sheet_name = select_sheet_name(list(sheets.keys()), fields)
    if sheet_name is None:
        return []
    return frame_to_records(sheets[sheet_name])


class SpreadsheetConnector(BaseSourceConnector):
    source = "excel"

    def fetch(self, url: str, fields: str | None = None) -> list[dict[str, Any]]:
        content = self._request_bytes(url=url, error_label="Excel fetch error")
        records = parse_workbook(content, fields)
        logger.info("Parsed spreadsheet source url=%s rows=%s", url, len(records))
        return records
