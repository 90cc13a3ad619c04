"""OAuth2 access token handling for the Google Workspace APIs."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Optional

import requests
from requests import Response
from requests.exceptions import RequestException, Timeout

from certflow.core.logger import get_logger

from .config import GoogleConfig
from .models import GoogleAuthError

LOGGER = get_logger()

TOKEN_REFRESH_MARGIN_SEC = 60.0


@dataclass(slots=True)
class TokenState:
    """Cached access token details."""

    value: str
    expires_at: float


class AuthClient:
    """Exchange the configured refresh token for access tokens and cache them.

    When only a static ``access_token`` is configured it is returned as-is and
    cannot be refreshed.
    """

    def __init__(
        self,
        config: GoogleConfig,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._lock = threading.RLock()
        self._token_state: TokenState | None = None

    @property
    def session(self) -> requests.Session:
        return self._session

    def get_token(self, *, force_refresh: bool = False) -> str:
        """Return a cached access token, refreshing when necessary."""

        with self._lock:
            if not self._config.can_refresh:
                if self._config.access_token:
                    return self._config.access_token
                raise GoogleAuthError("No Google credentials configured")
            state = self._token_state
            if not force_refresh and state and state.expires_at - time.monotonic() > TOKEN_REFRESH_MARGIN_SEC:
                return state.value
            return self._refresh_locked()

    def invalidate(self) -> None:
        """Forget the cached token forcing a refresh on next access."""

        with self._lock:
            self._token_state = None

    # Internal helpers -------------------------------------------------

    def _refresh_locked(self) -> str:
        data = {
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "refresh_token": self._config.refresh_token,
            "grant_type": "refresh_token",
        }
        attempts = max(1, self._config.retries.max_attempts)
        backoff = max(0.05, self._config.retries.backoff_ms / 1000.0)
        max_backoff = max(backoff, self._config.retries.max_backoff_ms / 1000.0)
        last_error: GoogleAuthError | None = None
        for attempt in range(1, attempts + 1):
            try:
                response = self._session.post(
                    self._config.token_url,
                    data=data,
                    timeout=self._config.timeout_sec,
                )
            except Timeout as exc:  # pragma: no cover - network failure path
                LOGGER.warning("google.auth token_request_timeout attempt=%d", attempt, exc_info=exc)
                last_error = GoogleAuthError("Timeout while requesting Google access token")
            except RequestException as exc:  # pragma: no cover - network failure path
                LOGGER.warning(
                    "google.auth token_request_error attempt=%d error=%s",
                    attempt,
                    type(exc).__name__,
                    exc_info=exc,
                )
                last_error = GoogleAuthError("Failed to request Google access token")
            else:
                if response.status_code >= 500:
                    last_error = GoogleAuthError(
                        f"Token endpoint returned HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                else:
                    token_state = self._parse_response(response)
                    self._token_state = token_state
                    LOGGER.info(
                        "google.auth token_refreshed expires_in=%.0fs attempt=%d",
                        token_state.expires_at - time.monotonic(),
                        attempt,
                    )
                    return token_state.value

            if attempt < attempts:
                time.sleep(min(max_backoff, backoff * (2 ** (attempt - 1))))

        if last_error is None:  # pragma: no cover - loop always runs once
            raise GoogleAuthError("Unable to obtain Google access token")
        raise last_error

    def _parse_response(self, response: Response) -> TokenState:
        try:
            payload = response.json()
        except ValueError as exc:
            raise GoogleAuthError(
                "Token endpoint returned invalid JSON", status_code=response.status_code
            ) from exc

        if response.status_code != 200 or "error" in payload:
            description = payload.get("error_description") or payload.get("error") or "unknown error"
            raise GoogleAuthError(
                f"Google token error: {description}",
                status_code=response.status_code,
                payload={"error": payload.get("error")},
            )
        token_value = payload.get("access_token")
        if not token_value:
            raise GoogleAuthError("Token response missing access_token")
        expires_in = float(payload.get("expires_in", 3600))
        return TokenState(value=str(token_value), expires_at=time.monotonic() + max(60.0, expires_in))


__all__ = ["AuthClient", "TokenState"]
