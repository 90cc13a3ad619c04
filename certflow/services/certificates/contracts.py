"""Collaborator contracts consumed by the certificate workflow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from certflow.services.google.models import DriveFile


@dataclass(frozen=True)
class OutgoingMessage:
    """One email to one recipient; attachments are stored file ids."""

    to: str
    subject: str
    html_body: str
    sender_name: str = ""
    attachments: tuple[str, ...] = ()


class TemplateStore(Protocol):
    def copy_file(self, file_id: str, *, parent_id: str, name: str) -> str:
        """Copy a file into ``parent_id`` under ``name`` and return the copy id."""

    def export_file(self, file_id: str, mime_type: str) -> bytes:
        """Return the file rendered as ``mime_type``."""

    def set_trashed(self, file_id: str, trashed: bool = True) -> None:
        """Mark a file for deletion."""


class PresentationEditor(Protocol):
    def replace_all_text(
        self,
        presentation_id: str,
        search_text: str,
        replacement: str,
        *,
        match_case: bool = False,
    ) -> int:
        """Replace every match of ``search_text``; returns the occurrence count."""


class BlobContainer(Protocol):
    def get_folder(self, folder_id: str) -> DriveFile:
        """Resolve a folder reference."""

    def create_file(self, parent_id: str, *, name: str, content: bytes, mime_type: str) -> str:
        """Store ``content`` as a new file and return its id."""


class TabularSource(Protocol):
    def read_rows(self, spreadsheet_id: str, sheet_name: str) -> list[list[Any]]:
        """Return every used row; row 0 holds the headers."""

    def read_header(self, spreadsheet_id: str, sheet_name: str) -> list[Any]:
        """Return the live header row."""

    def write_rows(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        start_row: int,
        start_col: int,
        rows: Sequence[Sequence[Any]],
    ) -> int:
        """Write ``rows`` starting at the 1-based cell; ``None`` leaves a cell untouched."""


class Messenger(Protocol):
    def send(self, message: OutgoingMessage) -> Any:
        """Deliver one message."""


class FeedbackSink(Protocol):
    def emit(self, message: str) -> None:
        """Publish a human readable progress notice."""


@dataclass
class WorkspaceServices:
    """One implementation of every collaborator, shared by a run."""

    template_store: TemplateStore
    editor: PresentationEditor
    container: BlobContainer
    roster_source: TabularSource
    messenger: Messenger
    feedback: FeedbackSink


__all__ = [
    "OutgoingMessage",
    "TemplateStore",
    "PresentationEditor",
    "BlobContainer",
    "TabularSource",
    "Messenger",
    "FeedbackSink",
    "WorkspaceServices",
]
