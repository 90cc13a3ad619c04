"""Certificate batch profiles read from the ``certificates`` section of profiles.yaml."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from certflow.core.errors import ConfigError
from certflow.core.profiles import expand_env, load_profile

from .models import FailurePolicy, MessageOptions, ProcessConfiguration, RosterBinding


class ColumnHeaders(BaseModel):
    """Header texts of the roster columns."""

    model_config = ConfigDict(extra="forbid")

    name: str
    email: str
    artifact: str


class CertificateProfile(BaseModel):
    """Everything needed to run one certificate batch."""

    model_config = ConfigDict(extra="forbid")

    name: str
    google_profile: str | None = None
    template_id: str
    destination_folder_id: str
    placeholder: str
    spreadsheet_id: str
    sheet_name: str
    columns: ColumnHeaders
    discard_intermediate: bool = False
    failure_policy: FailurePolicy = FailurePolicy.ABORT
    message: MessageOptions = Field(default_factory=MessageOptions)

    def process_configuration(self) -> ProcessConfiguration:
        return ProcessConfiguration(
            template_id=self.template_id,
            destination_folder_id=self.destination_folder_id,
            placeholder=self.placeholder,
        )

    def roster_binding(self) -> RosterBinding:
        return RosterBinding(
            spreadsheet_id=self.spreadsheet_id,
            sheet_name=self.sheet_name,
            name_header=self.columns.name,
            email_header=self.columns.email,
            artifact_header=self.columns.artifact,
        )


def load_certificate_profile(name: str, path: str | Path | None = None) -> CertificateProfile:
    """Load and validate a certificate profile.

    Raises:
        ConfigError: If the profile is missing, references an unset
            environment variable or fails validation.
    """

    profile = dict(load_profile("certificates", name, path))
    # Message templates use $name/$email placeholders of their own.
    message = profile.pop("message", None)
    raw = expand_env(profile)
    if message is not None:
        raw["message"] = message
    try:
        return CertificateProfile.model_validate({"name": name, **raw})
    except ValidationError as exc:
        raise ConfigError(f"certificates profile '{name}' is invalid: {exc}") from exc


__all__ = ["ColumnHeaders", "CertificateProfile", "load_certificate_profile"]
