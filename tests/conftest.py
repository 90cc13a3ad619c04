from __future__ import annotations

import itertools
import os
import re
import sys
import tempfile
from pathlib import Path
from typing import Any, Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep test runs from writing logs into the project workspace.
os.environ.setdefault("CERTFLOW_LOG_DIR", tempfile.mkdtemp(prefix="certflow-logs-"))

from certflow.services.certificates.contracts import OutgoingMessage, WorkspaceServices
from certflow.services.certificates.feedback import CollectingFeedback
from certflow.services.certificates.models import ProcessConfiguration
from certflow.services.google.models import FOLDER_MIME_TYPE, PRESENTATION_MIME_TYPE, DriveFile, GoogleNotFound

TEMPLATE_ID = "template-1"
FOLDER_ID = "folder-1"


class FakeDrive:
    """In-memory Drive: templates hold plain text standing in for slide content."""

    def __init__(self) -> None:
        self.files: dict[str, dict[str, Any]] = {}
        self.folders = {FOLDER_ID: DriveFile(id=FOLDER_ID, name="Certificates", mime_type=FOLDER_MIME_TYPE)}
        self.calls: list[tuple[str, str]] = []
        self.fail_export: Exception | None = None
        self.fail_copy_for: set[str] = set()
        self._ids = itertools.count(1)

    def add_template(self, file_id: str, text: str) -> None:
        self.files[file_id] = {
            "name": "Template",
            "parent": None,
            "mime_type": PRESENTATION_MIME_TYPE,
            "text": text,
            "trashed": False,
        }

    def get_folder(self, folder_id: str) -> DriveFile:
        self.calls.append(("get_folder", folder_id))
        if folder_id not in self.folders:
            raise GoogleNotFound(f"folder {folder_id} not found", status_code=404)
        return self.folders[folder_id]

    def copy_file(self, file_id: str, *, parent_id: str, name: str) -> str:
        self.calls.append(("copy_file", file_id))
        if name in self.fail_copy_for:
            raise RuntimeError(f"quota exceeded while copying for {name}")
        if file_id not in self.files:
            raise GoogleNotFound(f"file {file_id} not found", status_code=404)
        copy_id = f"copy-{next(self._ids)}"
        source = self.files[file_id]
        self.files[copy_id] = {
            "name": name,
            "parent": parent_id,
            "mime_type": source["mime_type"],
            "text": source["text"],
            "trashed": False,
        }
        return copy_id

    def export_file(self, file_id: str, mime_type: str) -> bytes:
        self.calls.append(("export_file", file_id))
        if self.fail_export is not None:
            raise self.fail_export
        return self.files[file_id]["text"].encode("utf-8")

    def set_trashed(self, file_id: str, trashed: bool = True) -> None:
        self.calls.append(("set_trashed", file_id))
        self.files[file_id]["trashed"] = trashed

    def create_file(self, parent_id: str, *, name: str, content: bytes, mime_type: str) -> str:
        self.calls.append(("create_file", parent_id))
        file_id = f"pdf-{next(self._ids)}"
        self.files[file_id] = {
            "name": name,
            "parent": parent_id,
            "mime_type": mime_type,
            "text": content.decode("utf-8"),
            "trashed": False,
        }
        return file_id

    def count(self, call: str) -> int:
        return sum(1 for name, _ in self.calls if name == call)


class FakeSlides:
    def __init__(self, drive: FakeDrive) -> None:
        self._drive = drive
        self.requests: list[tuple[str, str, str, bool]] = []

    def replace_all_text(
        self,
        presentation_id: str,
        search_text: str,
        replacement: str,
        *,
        match_case: bool = False,
    ) -> int:
        self.requests.append((presentation_id, search_text, replacement, match_case))
        entry = self._drive.files[presentation_id]
        flags = 0 if match_case else re.IGNORECASE
        entry["text"], count = re.subn(re.escape(search_text), lambda _: replacement, entry["text"], flags=flags)
        return count


class FakeSheet:
    """Single-sheet tabular source keeping rows as a list of lists."""

    def __init__(self, rows: list[list[Any]] | None = None) -> None:
        self.rows: list[list[Any]] = [list(r) for r in rows or []]
        self.writes: list[tuple[int, int, list[list[Any]]]] = []
        self.header_reads = 0

    def read_rows(self, spreadsheet_id: str, sheet_name: str) -> list[list[Any]]:
        return [list(r) for r in self.rows]

    def read_header(self, spreadsheet_id: str, sheet_name: str) -> list[Any]:
        self.header_reads += 1
        return list(self.rows[0]) if self.rows else []

    def write_rows(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        start_row: int,
        start_col: int,
        rows: Sequence[Sequence[Any]],
    ) -> int:
        self.writes.append((start_row, start_col, [list(r) for r in rows]))
        for offset, row in enumerate(rows):
            index = start_row - 1 + offset
            while len(self.rows) <= index:
                self.rows.append([])
            target = self.rows[index]
            for col_offset, value in enumerate(row):
                col = start_col - 1 + col_offset
                while len(target) <= col:
                    target.append(None)
                if value is not None:
                    target[col] = value
        return len(rows)


class FakeMessenger:
    def __init__(self) -> None:
        self.sent: list[OutgoingMessage] = []
        self.fail_for: set[str] = set()

    def send(self, message: OutgoingMessage) -> str:
        if message.to in self.fail_for:
            raise RuntimeError(f"mail quota exceeded for {message.to}")
        self.sent.append(message)
        return f"msg-{len(self.sent)}"


@pytest.fixture
def drive() -> FakeDrive:
    fake = FakeDrive()
    fake.add_template(TEMPLATE_ID, "Certificate awarded to {{Name}} for attending. Signed: {{name}}")
    return fake


@pytest.fixture
def slides(drive: FakeDrive) -> FakeSlides:
    return FakeSlides(drive)


@pytest.fixture
def sheet() -> FakeSheet:
    return FakeSheet(
        [
            ["Name", "Email", "Certificate"],
            ["  Ana Silva ", "ana@example.org ", ""],
            ["Bruno Costa", "", ""],
            ["Carla Souza", "carla@example.org", "old-pdf"],
        ]
    )


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture
def feedback() -> CollectingFeedback:
    return CollectingFeedback()


@pytest.fixture
def services(
    drive: FakeDrive,
    slides: FakeSlides,
    sheet: FakeSheet,
    messenger: FakeMessenger,
    feedback: CollectingFeedback,
) -> WorkspaceServices:
    return WorkspaceServices(
        template_store=drive,
        editor=slides,
        container=drive,
        roster_source=sheet,
        messenger=messenger,
        feedback=feedback,
    )


@pytest.fixture
def process_config() -> ProcessConfiguration:
    return ProcessConfiguration(template_id=TEMPLATE_ID, destination_folder_id=FOLDER_ID, placeholder="{{name}}")
