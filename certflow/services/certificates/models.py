"""Configuration values and batch results for certificate runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict

from certflow.core.errors import ConfigError


@dataclass(frozen=True)
class ProcessConfiguration:
    """Template, destination folder and placeholder shared by every generation.

    Attributes:
        template_id: Drive id of the Slides presentation used as template.
        destination_folder_id: Drive folder receiving copies and PDFs.
        placeholder: Token replaced (case-insensitively) by the recipient name.
    """

    template_id: str
    destination_folder_id: str
    placeholder: str

    def __post_init__(self) -> None:
        for name in ("template_id", "destination_folder_id", "placeholder"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"ProcessConfiguration.{name} must be a non-empty string")


@dataclass(frozen=True)
class RosterBinding:
    """Where the roster lives and which header text identifies each column."""

    spreadsheet_id: str = ""
    sheet_name: str = ""
    name_header: str = ""
    email_header: str = ""
    artifact_header: str = ""

    def require_complete(self) -> "RosterBinding":
        missing = [
            name
            for name in ("spreadsheet_id", "sheet_name", "name_header", "email_header", "artifact_header")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(f"Roster binding incomplete, missing: {', '.join(missing)}")
        return self


class MessageOptions(BaseModel):
    """Caller overrides for the notification email.

    ``subject`` and ``html_body`` may reference ``$name`` and ``$email``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    subject: str | None = None
    html_body: str | None = None
    sender_name: str | None = None


class FailurePolicy(str, Enum):
    """What a batch operation does when one recipient fails."""

    ABORT = "abort"
    CONTINUE = "continue"


@dataclass(slots=True)
class RecipientFailure:
    email: str
    name: str
    stage: str
    error: BaseException

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


@dataclass(slots=True)
class BatchReport:
    """Outcome of ``generate_all_artifacts`` or ``notify_all``."""

    stage: str
    succeeded: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[RecipientFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        return (
            f"{self.stage}: {len(self.succeeded)} succeeded, "
            f"{len(self.skipped)} skipped, {len(self.failed)} failed"
        )


__all__ = [
    "ProcessConfiguration",
    "RosterBinding",
    "MessageOptions",
    "FailurePolicy",
    "RecipientFailure",
    "BatchReport",
]
