"""Domain models and exceptions for the Google Workspace integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from certflow.core.errors import CertFlowError

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
PRESENTATION_MIME_TYPE = "application/vnd.google-apps.presentation"
PDF_MIME_TYPE = "application/pdf"


class GoogleApiError(CertFlowError):
    """Base error raised for Google API failures."""

    def __init__(self, message: str, *, status_code: int | None = None, payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class GoogleAuthError(GoogleApiError):
    """Raised when authentication or authorization with Google fails."""


class GoogleNotFound(GoogleApiError):
    """Raised when the requested file, folder or sheet does not exist."""


class GoogleRetryableError(GoogleApiError):
    """Raised for retryable I/O issues (network/server errors, quota)."""


class GoogleRequestError(GoogleApiError):
    """Raised for non-retryable HTTP or protocol errors."""


@dataclass(slots=True)
class DriveFile:
    """Subset of Drive file metadata used by certflow."""

    id: str
    name: str
    mime_type: str | None = None
    parents: tuple[str, ...] = ()
    trashed: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "DriveFile":
        file_id = raw.get("id")
        if not file_id:
            raise GoogleRequestError("Drive response missing file id", payload=raw)
        return cls(
            id=str(file_id),
            name=str(raw.get("name", "")),
            mime_type=raw.get("mimeType"),
            parents=tuple(str(p) for p in raw.get("parents") or ()),
            trashed=bool(raw.get("trashed", False)),
            extra=raw,
        )


@dataclass(slots=True, frozen=True)
class Attachment:
    """File content ready to be attached to an email."""

    filename: str
    mime_type: str
    content: bytes


__all__ = [
    "GoogleApiError",
    "GoogleAuthError",
    "GoogleNotFound",
    "GoogleRetryableError",
    "GoogleRequestError",
    "DriveFile",
    "Attachment",
    "FOLDER_MIME_TYPE",
    "PRESENTATION_MIME_TYPE",
    "PDF_MIME_TYPE",
]
