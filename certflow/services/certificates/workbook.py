"""Local ``.xlsx`` roster source."""

# Module responsibilities:
# - Offer the tabular source contract on top of openpyxl workbooks.
# - Keep cell formatting intact when recipients are written back.

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from certflow.core.errors import ConfigError
from certflow.core.logger import get_logger

LOGGER = get_logger()


class WorkbookSource:
    """Roster kept in a workbook on disk; the spreadsheet id is the file path."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = base_dir

    def read_rows(self, spreadsheet_id: str, sheet_name: str) -> list[list[Any]]:
        path = self._path(spreadsheet_id)
        wb = load_workbook(path, read_only=True, data_only=True)
        try:
            ws = _sheet(wb, sheet_name, path)
            rows = [list(row) for row in ws.iter_rows(values_only=True)]
        finally:
            wb.close()
        while rows and all(cell is None for cell in rows[-1]):
            rows.pop()
        LOGGER.info("certificates.workbook read path=%s sheet=%s rows=%d", path, sheet_name, len(rows))
        return rows

    def read_header(self, spreadsheet_id: str, sheet_name: str) -> list[Any]:
        path = self._path(spreadsheet_id)
        wb = load_workbook(path, read_only=True, data_only=True)
        try:
            ws = _sheet(wb, sheet_name, path)
            for row in ws.iter_rows(min_row=1, max_row=1, values_only=True):
                return list(row)
        finally:
            wb.close()
        return []

    def write_rows(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        start_row: int,
        start_col: int,
        rows: Sequence[Sequence[Any]],
    ) -> int:
        if not rows:
            return 0
        path = self._path(spreadsheet_id)
        wb = load_workbook(path)
        try:
            ws = _sheet(wb, sheet_name, path)
            for row_offset, row in enumerate(rows):
                for col_offset, value in enumerate(row):
                    if value is None:
                        continue
                    ws.cell(row=start_row + row_offset, column=start_col + col_offset, value=value)
            wb.save(path)
        finally:
            wb.close()
        LOGGER.info("certificates.workbook wrote path=%s sheet=%s rows=%d", path, sheet_name, len(rows))
        return len(rows)

    def _path(self, spreadsheet_id: str) -> Path:
        path = Path(spreadsheet_id).expanduser()
        if not path.is_absolute() and self._base_dir is not None:
            path = self._base_dir / path
        if not path.exists():
            raise FileNotFoundError(f"Roster workbook not found: {path}")
        return path


def _sheet(wb: Workbook, sheet_name: str, path: Path) -> Worksheet:
    if sheet_name not in wb.sheetnames:
        raise ConfigError(f"Sheet '{sheet_name}' not found in {path} (sheets: {wb.sheetnames})")
    return wb[sheet_name]


__all__ = ["WorkbookSource"]
