"""Google Drive v3 client: template copies, exports, uploads and trash."""

from __future__ import annotations

import json
import logging
import uuid

from certflow.core.errors import ConfigError
from certflow.core.logger import get_logger

from .http import HttpClient
from .models import Attachment, DriveFile, GoogleRequestError
from .paths import normalize_file_id, normalize_file_name

LOGGER = get_logger()

FILE_FIELDS = "id,name,mimeType,parents,trashed"


class DriveClient:
    """Thin wrapper over the Drive REST endpoints certflow needs.

    Implements both the template store and the blob container contracts.
    """

    def __init__(self, http_client: HttpClient, *, logger: logging.Logger | None = None) -> None:
        self._http = http_client
        self._base = http_client.config.drive_url.rstrip("/")
        self._upload_base = http_client.config.upload_url.rstrip("/")
        self._logger = logger or LOGGER

    def get_file(self, file_id: str) -> DriveFile:
        """Fetch metadata for a file or folder."""

        payload = self._http.request_json(
            "GET",
            f"{self._base}/files/{normalize_file_id(file_id)}",
            params={"fields": FILE_FIELDS, "supportsAllDrives": "true"},
        )
        return DriveFile.from_api(payload)

    def get_folder(self, folder_id: str) -> DriveFile:
        """Resolve a destination folder, rejecting references to plain files."""

        item = self.get_file(folder_id)
        if not item.is_folder:
            raise ConfigError(f"Drive item {item.id} ({item.name}) is not a folder")
        if item.trashed:
            raise ConfigError(f"Drive folder {item.id} ({item.name}) is in the trash")
        return item

    def copy_file(self, file_id: str, *, parent_id: str, name: str) -> str:
        """Copy ``file_id`` into ``parent_id`` under a new name and return the copy id."""

        file_name = normalize_file_name(name)
        payload = self._http.request_json(
            "POST",
            f"{self._base}/files/{normalize_file_id(file_id)}/copy",
            params={"fields": "id,name", "supportsAllDrives": "true"},
            json_body={"name": file_name, "parents": [normalize_file_id(parent_id)]},
            allow_retry=False,
        )
        copy_id = payload.get("id")
        if not copy_id:
            raise GoogleRequestError("Copy response missing id", payload=payload)
        self._logger.info(
            "google.drive copied source=%s parent=%s name=%s copy_id=%s", file_id, parent_id, file_name, copy_id
        )
        return str(copy_id)

    def export_file(self, file_id: str, mime_type: str) -> bytes:
        """Export a Google editor file (Slides, Docs, ...) to ``mime_type``."""

        response = self._http.request(
            "GET",
            f"{self._base}/files/{normalize_file_id(file_id)}/export",
            params={"mimeType": mime_type},
        )
        content = response.content
        self._logger.info("google.drive exported file_id=%s mime=%s bytes=%d", file_id, mime_type, len(content))
        return content

    def create_file(self, parent_id: str, *, name: str, content: bytes, mime_type: str) -> str:
        """Upload ``content`` as a new file inside ``parent_id`` and return its id."""

        file_name = normalize_file_name(name)
        metadata = {"name": file_name, "parents": [normalize_file_id(parent_id)], "mimeType": mime_type}
        boundary = f"certflow-{uuid.uuid4().hex}"
        body = _multipart_related(boundary, metadata, content, mime_type)
        response = self._http.request(
            "POST",
            f"{self._upload_base}/files",
            params={"uploadType": "multipart", "fields": "id,name", "supportsAllDrives": "true"},
            headers={"Content-Type": f"multipart/related; boundary={boundary}"},
            data=body,
            allow_retry=False,
        )
        payload = response.json()
        file_id = payload.get("id") if isinstance(payload, dict) else None
        if not file_id:
            raise GoogleRequestError("Upload response missing id", payload={"body": payload})
        self._logger.info(
            "google.drive upload_finished parent=%s name=%s file_id=%s bytes=%d",
            parent_id,
            file_name,
            file_id,
            len(content),
        )
        return str(file_id)

    def set_trashed(self, file_id: str, trashed: bool = True) -> None:
        """Move a file to (or restore it from) the Drive trash."""

        self._http.request_json(
            "PATCH",
            f"{self._base}/files/{normalize_file_id(file_id)}",
            params={"fields": "id,trashed", "supportsAllDrives": "true"},
            json_body={"trashed": bool(trashed)},
        )
        self._logger.info("google.drive set_trashed file_id=%s trashed=%s", file_id, trashed)

    def download_file(self, file_id: str) -> Attachment:
        """Download binary content together with its name and MIME type."""

        item = self.get_file(file_id)
        response = self._http.request(
            "GET",
            f"{self._base}/files/{item.id}",
            params={"alt": "media", "supportsAllDrives": "true"},
        )
        return Attachment(
            filename=item.name or f"{item.id}.bin",
            mime_type=item.mime_type or "application/octet-stream",
            content=response.content,
        )


def _multipart_related(boundary: str, metadata: dict[str, object], content: bytes, mime_type: str) -> bytes:
    head = (
        f"--{boundary}\r\n"
        "Content-Type: application/json; charset=UTF-8\r\n\r\n"
        f"{json.dumps(metadata)}\r\n"
        f"--{boundary}\r\n"
        f"Content-Type: {mime_type}\r\n\r\n"
    ).encode("utf-8")
    tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
    return head + content + tail


__all__ = ["DriveClient", "FILE_FIELDS"]
