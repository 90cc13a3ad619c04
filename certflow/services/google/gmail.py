"""Gmail client sending HTML messages with Drive files attached."""

from __future__ import annotations

import base64
import logging
from email.message import EmailMessage
from email.utils import formataddr
from typing import TYPE_CHECKING, Callable

from certflow.core.logger import get_logger

from .http import HttpClient
from .models import Attachment, GoogleRequestError

if TYPE_CHECKING:
    from certflow.services.certificates.contracts import OutgoingMessage

LOGGER = get_logger()

AttachmentLoader = Callable[[str], Attachment]


class GmailClient:
    """Send messages through ``users.messages.send`` as the authorized user."""

    def __init__(
        self,
        http_client: HttpClient,
        attachment_loader: AttachmentLoader,
        *,
        sender_address: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._http = http_client
        self._base = http_client.config.gmail_url.rstrip("/")
        self._load_attachment = attachment_loader
        self._sender_address = sender_address or http_client.config.sender_address
        self._logger = logger or LOGGER

    def sender_address(self) -> str:
        """Return the From address, asking Gmail for the account address once."""

        if self._sender_address:
            return self._sender_address
        payload = self._http.request_json("GET", f"{self._base}/users/me/profile")
        address = payload.get("emailAddress")
        if not address:
            raise GoogleRequestError("Gmail profile response missing emailAddress", payload=payload)
        self._sender_address = str(address)
        return self._sender_address

    def build_message(self, message: "OutgoingMessage") -> EmailMessage:
        mime = EmailMessage()
        address = self.sender_address()
        mime["From"] = formataddr((message.sender_name, address)) if message.sender_name else address
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content(message.html_body, subtype="html")
        for file_id in message.attachments:
            attachment = self._load_attachment(file_id)
            maintype, _, subtype = attachment.mime_type.partition("/")
            mime.add_attachment(
                attachment.content,
                maintype=maintype or "application",
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )
        return mime

    def send(self, message: "OutgoingMessage") -> str:
        """Send ``message`` and return the Gmail message id."""

        raw = base64.urlsafe_b64encode(self.build_message(message).as_bytes()).decode("ascii")
        payload = self._http.request_json(
            "POST",
            f"{self._base}/users/me/messages/send",
            json_body={"raw": raw},
            allow_retry=False,
        )
        message_id = payload.get("id")
        if not message_id:
            raise GoogleRequestError("Send response missing message id", payload=payload)
        self._logger.info(
            "google.gmail sent message_id=%s attachments=%d", message_id, len(message.attachments)
        )
        return str(message_id)


__all__ = ["GmailClient", "AttachmentLoader"]
