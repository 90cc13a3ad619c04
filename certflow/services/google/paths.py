"""Helpers for Google file identifiers, names and A1 ranges."""

from __future__ import annotations

import re

_DRIVE_URL_ID = re.compile(r"/(?:d|folders)/([A-Za-z0-9_-]+)")
_QUERY_ID = re.compile(r"[?&]id=([A-Za-z0-9_-]+)")


def normalize_file_id(reference: str) -> str:
    """Accept a bare id or a Drive/Docs/Sheets URL and return the file id."""

    value = (reference or "").strip()
    if not value:
        raise ValueError("Google file reference must not be empty")
    if "/" not in value and "?" not in value:
        return value
    match = _DRIVE_URL_ID.search(value) or _QUERY_ID.search(value)
    if match is None:
        raise ValueError(f"Cannot extract a file id from {reference!r}")
    return match.group(1)


def normalize_file_name(name: str) -> str:
    """Sanitize file names by trimming whitespace."""

    normalized = name.strip()
    if not normalized:
        raise ValueError("Drive file name must not be empty")
    return normalized


def column_letter(index: int) -> str:
    """Convert a 1-based column index to its A1 letters (1 -> A, 27 -> AA)."""

    if index < 1:
        raise ValueError("Column index must be >= 1")
    letters = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def quote_sheet_name(sheet_name: str) -> str:
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'"


def a1_range(sheet_name: str, start_row: int, start_col: int, rows: int = 0, cols: int = 0) -> str:
    """Build an A1 range such as ``'Roster'!A2:C10``; open-ended when the size is unknown."""

    if start_row < 1:
        raise ValueError("Row index must be >= 1")
    start = f"{column_letter(start_col)}{start_row}"
    sheet = quote_sheet_name(sheet_name)
    if rows <= 0 or cols <= 0:
        return f"{sheet}!{start}"
    end = f"{column_letter(start_col + cols - 1)}{start_row + rows - 1}"
    return f"{sheet}!{start}:{end}"


__all__ = [
    "normalize_file_id",
    "normalize_file_name",
    "column_letter",
    "quote_sheet_name",
    "a1_range",
]
