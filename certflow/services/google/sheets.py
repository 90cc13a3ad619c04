"""Google Sheets values client used as the roster source."""

from __future__ import annotations

import logging
from typing import Any, Sequence
from urllib.parse import quote

from certflow.core.logger import get_logger

from .http import HttpClient
from .paths import a1_range, normalize_file_id, quote_sheet_name

LOGGER = get_logger()


class SheetsClient:
    """Read and write cell values of a single sheet (tab)."""

    def __init__(self, http_client: HttpClient, *, logger: logging.Logger | None = None) -> None:
        self._http = http_client
        self._base = http_client.config.sheets_url.rstrip("/")
        self._logger = logger or LOGGER

    def read_rows(self, spreadsheet_id: str, sheet_name: str) -> list[list[Any]]:
        """Return the used range of the sheet; row 0 is the header row.

        Trailing empty cells are omitted by the API, so rows can be ragged.
        """

        rows = self._get_values(spreadsheet_id, quote_sheet_name(sheet_name))
        self._logger.info(
            "google.sheets read spreadsheet_id=%s sheet=%s rows=%d", spreadsheet_id, sheet_name, len(rows)
        )
        return rows

    def read_header(self, spreadsheet_id: str, sheet_name: str) -> list[Any]:
        """Return the current first row of the sheet."""

        rows = self._get_values(spreadsheet_id, f"{quote_sheet_name(sheet_name)}!1:1")
        return list(rows[0]) if rows else []

    def write_rows(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        start_row: int,
        start_col: int,
        rows: Sequence[Sequence[Any]],
    ) -> int:
        """Write a rectangular block of values in one request.

        ``None`` cells are sent as JSON null, which the API skips, so existing
        values in those cells are left untouched. Returns the updated row count.
        """

        if not rows:
            return 0
        width = max(len(row) for row in rows)
        values = [list(row) + [None] * (width - len(row)) for row in rows]
        target = a1_range(sheet_name, start_row, start_col, len(values), width)
        payload = self._http.request_json(
            "PUT",
            f"{self._values_url(spreadsheet_id)}/{quote(target, safe='')}",
            params={"valueInputOption": "RAW"},
            json_body={"range": target, "majorDimension": "ROWS", "values": values},
        )
        updated = int(payload.get("updatedRows", len(values)))
        self._logger.info(
            "google.sheets wrote spreadsheet_id=%s range=%s rows=%d", spreadsheet_id, target, updated
        )
        return updated

    # Internal helpers -------------------------------------------------

    def _values_url(self, spreadsheet_id: str) -> str:
        return f"{self._base}/spreadsheets/{normalize_file_id(spreadsheet_id)}/values"

    def _get_values(self, spreadsheet_id: str, range_name: str) -> list[list[Any]]:
        payload = self._http.request_json(
            "GET",
            f"{self._values_url(spreadsheet_id)}/{quote(range_name, safe='')}",
            params={"majorDimension": "ROWS", "valueRenderOption": "UNFORMATTED_VALUE"},
        )
        values = payload.get("values") or []
        return [list(row) for row in values if isinstance(row, list)]


__all__ = ["SheetsClient"]
