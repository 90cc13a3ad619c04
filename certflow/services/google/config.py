"""Configuration loader for the Google Workspace REST clients."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

from certflow.core.errors import ConfigError
from certflow.core.profiles import expand_env, load_profile

DEFAULT_TOKEN_URL = "https://oauth2.googleapis.com/token"
DEFAULT_DRIVE_URL = "https://www.googleapis.com/drive/v3"
DEFAULT_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3"
DEFAULT_SLIDES_URL = "https://slides.googleapis.com/v1"
DEFAULT_SHEETS_URL = "https://sheets.googleapis.com/v4"
DEFAULT_GMAIL_URL = "https://gmail.googleapis.com/gmail/v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_BACKOFF_MS = 500
DEFAULT_RETRY_MAX_BACKOFF_MS = 8000

CLIENT_ID_ENV = "GOOGLE_CLIENT_ID"
CLIENT_SECRET_ENV = "GOOGLE_CLIENT_SECRET"
REFRESH_TOKEN_ENV = "GOOGLE_REFRESH_TOKEN"
ACCESS_TOKEN_ENV = "GOOGLE_ACCESS_TOKEN"
SENDER_ADDRESS_ENV = "GOOGLE_SENDER_ADDRESS"
TIMEOUT_ENV = "GOOGLE_TIMEOUT_SEC"
RETRY_ATTEMPTS_ENV = "GOOGLE_RETRY_ATTEMPTS"
RETRY_BACKOFF_MS_ENV = "GOOGLE_RETRY_BACKOFF_MS"
RETRY_MAX_BACKOFF_MS_ENV = "GOOGLE_RETRY_MAX_BACKOFF_MS"


@dataclass(slots=True)
class RetryConfig:
    """Retry parameters for Google HTTP requests."""

    max_attempts: int = DEFAULT_RETRY_ATTEMPTS
    backoff_ms: int = DEFAULT_RETRY_BACKOFF_MS
    max_backoff_ms: int = DEFAULT_RETRY_MAX_BACKOFF_MS

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "RetryConfig":
        if not data:
            return cls()
        return cls(
            max_attempts=int(data.get("max_attempts", DEFAULT_RETRY_ATTEMPTS)),
            backoff_ms=int(data.get("backoff_ms", DEFAULT_RETRY_BACKOFF_MS)),
            max_backoff_ms=int(data.get("max_backoff_ms", DEFAULT_RETRY_MAX_BACKOFF_MS)),
        )


@dataclass(slots=True)
class GoogleConfig:
    """Resolved credentials and endpoints for the Workspace APIs.

    Either a refresh token triple (``client_id``/``client_secret``/
    ``refresh_token``) or a ready ``access_token`` must be present.
    """

    client_id: str | None = None
    client_secret: str | None = None
    refresh_token: str | None = None
    access_token: str | None = None
    sender_address: str | None = None
    timeout_sec: float = DEFAULT_TIMEOUT
    retries: RetryConfig = field(default_factory=RetryConfig)
    verify_tls: bool = True
    token_url: str = DEFAULT_TOKEN_URL
    drive_url: str = DEFAULT_DRIVE_URL
    upload_url: str = DEFAULT_UPLOAD_URL
    slides_url: str = DEFAULT_SLIDES_URL
    sheets_url: str = DEFAULT_SHEETS_URL
    gmail_url: str = DEFAULT_GMAIL_URL
    proxies: Mapping[str, str] | None = None

    @property
    def can_refresh(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    def validate(self) -> "GoogleConfig":
        if not self.can_refresh and not self.access_token:
            raise ConfigError(
                "Google credentials not configured: set client_id/client_secret/refresh_token or access_token"
            )
        return self

    @classmethod
    def from_profile(cls, profile_name: str, *, config_path: str | Path | None = None) -> "GoogleConfig":
        """Create a configuration instance from the ``google`` section of profiles.yaml."""

        return cls.from_mapping(load_profile("google", profile_name, config_path))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GoogleConfig":
        """Create a configuration instance from a mapping."""

        values = expand_env(dict(data))
        proxies_raw = values.get("proxies")
        retries_raw = values.get("retries")
        return cls(
            client_id=_blank_to_none(values.get("client_id")),
            client_secret=_blank_to_none(values.get("client_secret")),
            refresh_token=_blank_to_none(values.get("refresh_token")),
            access_token=_blank_to_none(values.get("access_token")),
            sender_address=_blank_to_none(values.get("sender_address")),
            timeout_sec=float(values.get("timeout_sec", DEFAULT_TIMEOUT)),
            retries=RetryConfig.from_mapping(retries_raw if isinstance(retries_raw, Mapping) else None),
            verify_tls=bool(values.get("verify_tls", True)),
            token_url=values.get("token_url", DEFAULT_TOKEN_URL),
            drive_url=values.get("drive_url", DEFAULT_DRIVE_URL),
            upload_url=values.get("upload_url", DEFAULT_UPLOAD_URL),
            slides_url=values.get("slides_url", DEFAULT_SLIDES_URL),
            sheets_url=values.get("sheets_url", DEFAULT_SHEETS_URL),
            gmail_url=values.get("gmail_url", DEFAULT_GMAIL_URL),
            proxies=dict(proxies_raw) if isinstance(proxies_raw, Mapping) else None,
        )


def _blank_to_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _read_env(key: str) -> str | None:
    value = os.getenv(key)
    if value is None:
        return None
    return value.strip() or None


def _read_env_int(key: str) -> int | None:
    value = _read_env(key)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"Environment variable {key} must be an integer") from exc


def _read_env_float(key: str) -> float | None:
    value = _read_env(key)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigError(f"Environment variable {key} must be a number") from exc


def apply_env_overrides(config: GoogleConfig) -> GoogleConfig:
    """Return a copy of ``config`` with ``GOOGLE_*`` environment variables applied."""

    timeout = _read_env_float(TIMEOUT_ENV)
    attempts = _read_env_int(RETRY_ATTEMPTS_ENV)
    backoff = _read_env_int(RETRY_BACKOFF_MS_ENV)
    max_backoff = _read_env_int(RETRY_MAX_BACKOFF_MS_ENV)
    retries = RetryConfig(
        max_attempts=attempts or config.retries.max_attempts,
        backoff_ms=backoff or config.retries.backoff_ms,
        max_backoff_ms=max_backoff or config.retries.max_backoff_ms,
    )
    return replace(
        config,
        client_id=_read_env(CLIENT_ID_ENV) or config.client_id,
        client_secret=_read_env(CLIENT_SECRET_ENV) or config.client_secret,
        refresh_token=_read_env(REFRESH_TOKEN_ENV) or config.refresh_token,
        access_token=_read_env(ACCESS_TOKEN_ENV) or config.access_token,
        sender_address=_read_env(SENDER_ADDRESS_ENV) or config.sender_address,
        timeout_sec=timeout if timeout is not None else config.timeout_sec,
        retries=retries,
    )


def resolve_config(profile: str | None = None, *, config_path: str | Path | None = None) -> GoogleConfig:
    """Resolve configuration from a profile or the environment, environment winning."""

    base = GoogleConfig.from_profile(profile, config_path=config_path) if profile else GoogleConfig()
    return apply_env_overrides(base).validate()


__all__ = [
    "GoogleConfig",
    "RetryConfig",
    "CLIENT_ID_ENV",
    "CLIENT_SECRET_ENV",
    "REFRESH_TOKEN_ENV",
    "ACCESS_TOKEN_ENV",
    "SENDER_ADDRESS_ENV",
    "TIMEOUT_ENV",
    "RETRY_ATTEMPTS_ENV",
    "RETRY_BACKOFF_MS_ENV",
    "RETRY_MAX_BACKOFF_MS_ENV",
    "apply_env_overrides",
    "resolve_config",
]
