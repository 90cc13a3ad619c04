"""Roster entry and its notification email."""

from __future__ import annotations

from dataclasses import dataclass
from string import Template
from typing import Any, Mapping

from certflow.core.logger import get_logger

from .contracts import FeedbackSink, Messenger, OutgoingMessage
from .models import MessageOptions

LOGGER = get_logger()

DEFAULT_SUBJECT = "Certificate of Participation"
DEFAULT_HTML_BODY = (
    '<div dir="ltr">Hi $name!<br><br>'
    "Thank you very much for taking part in our training.<br><br>"
    "We hope you enjoyed it!<br><br>"
    "Your certificate of participation is attached.</div>\r\n"
)


@dataclass
class Recipient:
    """A person on the roster.

    ``artifact_reference`` stays empty until a certificate has been generated
    for the recipient or one was already recorded in the roster.
    """

    name: str = ""
    email: str = ""
    artifact_reference: str = ""

    def set_name(self, name: str) -> "Recipient":
        self.name = name
        return self

    def set_email(self, email: str) -> "Recipient":
        self.email = email
        return self

    def set_artifact_reference(self, artifact_reference: str | None) -> "Recipient":
        self.artifact_reference = artifact_reference or ""
        return self

    @property
    def is_valid(self) -> bool:
        return bool(self.name) and bool(self.email)

    def to_record(self) -> dict[str, str]:
        return {"name": self.name, "email": self.email, "artifact_reference": self.artifact_reference}

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | None) -> "Recipient":
        """Build a recipient from a plain mapping; absent references become ``""``."""

        data = record or {}
        reference = data.get("artifact_reference")
        if reference is None:
            reference = data.get("certificate_id")
        return cls(
            name=data.get("name") or "",
            email=data.get("email") or "",
            artifact_reference=reference or "",
        )

    def render_message(self, options: MessageOptions | None = None) -> OutgoingMessage:
        """Compose the email carrying this recipient's certificate."""

        opts = options or MessageOptions()
        values = {"name": self.name, "email": self.email}
        subject = Template(opts.subject or DEFAULT_SUBJECT).safe_substitute(values)
        html_body = Template(opts.html_body or DEFAULT_HTML_BODY).safe_substitute(values)
        return OutgoingMessage(
            to=self.email,
            subject=subject,
            html_body=html_body,
            sender_name=opts.sender_name or "",
            attachments=(self.artifact_reference,),
        )

    def notify(
        self,
        messenger: Messenger,
        options: MessageOptions | None = None,
        feedback: FeedbackSink | None = None,
    ) -> bool:
        """Email the certificate to the recipient.

        Does nothing and returns ``False`` when no certificate is recorded.
        Messenger failures propagate to the caller.
        """

        if not self.artifact_reference:
            LOGGER.debug("certificates.recipient notify_skipped email=%s reason=no_artifact", self.email)
            return False
        messenger.send(self.render_message(options))
        LOGGER.info(
            "certificates.recipient notified email=%s artifact=%s", self.email, self.artifact_reference
        )
        if feedback is not None:
            feedback.emit(f"Email to {self.name} successfully sent")
        return True


__all__ = ["Recipient", "DEFAULT_SUBJECT", "DEFAULT_HTML_BODY"]
