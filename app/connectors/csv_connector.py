"""
app/connectors/csv_connector.py

CSV file connector with a deliberately naive comma splitter.
"""

from __future__ import annotations

import logging

from app.connectors.base import BaseSourceConnector

logger = logging.getLogger(__name__)


def _clean_cell(raw: str) -> str:
    return raw.strip().replace('"', "")


def parse_naive_csv(text: str) -> list[dict[str, str]]:
    """
    Split CSV text on newlines and commas; the first line holds the headers.

    Quoted fields containing commas are not supported and misalign columns.
    Rows shorter than the header get "" for their missing trailing cells.
    """

    lines = [line for line in text.split("\n") if line.strip()]
    if not lines:
        return []

    headers = [_clean_cell(cell) for cell in lines[0].split(",")]
    rows: list[dict[str, str]] = []
    for line in lines[1:]:
        values = [_clean_cell(cell) for cell in line.split(",")]
        rows.append(
            {header: values[index] if index < len(values) else "" for index, header in enumerate(headers)}
        )
    return rows


class CsvConnector(BaseSourceConnector):
    source = "csv"

    def fetch(self, url: str) -> list[dict[str, str]]:
        text = self._request_text(url=url, error_label="CSV fetch error")
        rows = parse_naive_csv(text)
        logger.info("Parsed CSV source url=%s rows=%s", url, len(rows))
        return rows
