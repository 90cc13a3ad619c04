"""HTTP utilities shared by the Google Workspace clients."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Iterable, Mapping, MutableMapping

import requests
from requests import Response
from requests.exceptions import RequestException, Timeout

from certflow.core.logger import get_logger

from .auth import AuthClient
from .config import GoogleConfig
from .models import GoogleAuthError, GoogleNotFound, GoogleRequestError, GoogleRetryableError

LOGGER = get_logger()

USER_AGENT = "certflow/1.0"
RETRYABLE_STATUS = {429, 500, 502, 503, 504}
RATE_LIMIT_REASONS = {"rateLimitExceeded", "userRateLimitExceeded"}


@dataclass(slots=True)
class RequestDiagnostics:
    """Captured request details for log lines."""

    method: str
    url: str
    status: int | None = None


class HttpClient:
    """Request helper wrapping bearer auth, retries and error mapping."""

    def __init__(
        self,
        config: GoogleConfig,
        *,
        session: requests.Session | None = None,
        auth_client: AuthClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._session.verify = config.verify_tls
        if config.proxies:
            self._session.proxies.update(config.proxies)
        self._session.headers.setdefault("User-Agent", USER_AGENT)
        self._auth = auth_client or AuthClient(config, session=self._session)
        self._logger = logger or LOGGER

    @property
    def config(self) -> GoogleConfig:
        return self._config

    @property
    def session(self) -> requests.Session:
        return self._session

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, object] | None = None,
        json_body: Mapping[str, object] | None = None,
        data: object | None = None,
        expected_status: Iterable[int] = (200,),
        timeout: float | None = None,
        allow_retry: bool = True,
    ) -> Response:
        """Perform an authorized request, retrying transient failures.

        With ``allow_retry=False`` the request is sent once (plus one attempt
        after a token refresh); timeouts and retryable statuses raise at once.
        """

        # Without retries a 401 still gets one refreshed attempt.
        attempts = max(1, self._config.retries.max_attempts) if allow_retry else 2
        base_backoff = max(0.05, self._config.retries.backoff_ms / 1000.0)
        max_backoff = max(base_backoff, self._config.retries.max_backoff_ms / 1000.0)
        timeout_value = timeout or self._config.timeout_sec
        expected = tuple(expected_status)
        refresh_token = False
        last_error: GoogleRetryableError | GoogleAuthError | None = None

        for attempt in range(1, attempts + 1):
            token = self._auth.get_token(force_refresh=refresh_token)
            refresh_token = False
            request_headers: MutableMapping[str, str] = dict(headers or {})
            request_headers["Authorization"] = f"Bearer {token}"
            diagnostics = RequestDiagnostics(method=method, url=self._redact_url(url))

            try:
                response = self._session.request(
                    method,
                    url,
                    headers=request_headers,
                    params=dict(params or {}),
                    json=json_body,
                    data=data,
                    timeout=timeout_value,
                )
            except Timeout as exc:
                last_error = GoogleRetryableError("Request timed out", payload={"url": diagnostics.url})
                if not allow_retry:
                    raise last_error from exc
                self._logger.warning(
                    "google.http timeout method=%s url=%s attempt=%d",
                    diagnostics.method,
                    diagnostics.url,
                    attempt,
                    exc_info=exc,
                )
            except RequestException as exc:
                last_error = GoogleRetryableError("Request failed", payload={"url": diagnostics.url})
                if not allow_retry:
                    raise last_error from exc
                self._logger.warning(
                    "google.http connection_error method=%s url=%s attempt=%d error=%s",
                    diagnostics.method,
                    diagnostics.url,
                    attempt,
                    type(exc).__name__,
                    exc_info=exc,
                )
            else:
                diagnostics.status = response.status_code
                status = response.status_code
                if status in expected:
                    self._logger.debug(
                        "google.http ok method=%s url=%s status=%d", diagnostics.method, diagnostics.url, status
                    )
                    return response

                payload = self._safe_json(response)
                message = self._error_message(payload) or f"Unexpected status {status}"
                if status == 401:
                    self._auth.invalidate()
                    self._logger.info(
                        "google.http unauthorized method=%s url=%s -- refreshing token",
                        diagnostics.method,
                        diagnostics.url,
                    )
                    last_error = GoogleAuthError(message, status_code=status, payload=payload)
                    refresh_token = True
                elif status == 404:
                    raise GoogleNotFound(message, status_code=status, payload=payload)
                elif status in RETRYABLE_STATUS or self._is_rate_limited(status, payload):
                    if not allow_retry:
                        raise GoogleRetryableError(message, status_code=status, payload=payload)
                    self._logger.warning(
                        "google.http retryable_status method=%s url=%s status=%d attempt=%d",
                        diagnostics.method,
                        diagnostics.url,
                        status,
                        attempt,
                    )
                    last_error = GoogleRetryableError(message, status_code=status, payload=payload)
                elif status == 403:
                    self._logger.error(
                        "google.http forbidden method=%s url=%s reason=%s",
                        diagnostics.method,
                        diagnostics.url,
                        self._error_reason(payload),
                    )
                    raise GoogleAuthError(message, status_code=status, payload=payload)
                else:
                    raise GoogleRequestError(message, status_code=status, payload=payload)

            if attempt < attempts and not refresh_token:
                self._sleep_with_backoff(base_backoff, max_backoff, attempt)

        if last_error is not None:
            raise last_error
        raise GoogleRetryableError("Exhausted retries", payload={"url": self._redact_url(url)})

    def request_json(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, object] | None = None,
        json_body: Mapping[str, object] | None = None,
        expected_status: Iterable[int] = (200,),
        allow_retry: bool = True,
    ) -> dict[str, object]:
        """Perform a request and decode the JSON object it returns."""

        response = self.request(
            method,
            url,
            params=params,
            json_body=json_body,
            expected_status=expected_status,
            allow_retry=allow_retry,
        )
        payload = self._safe_json(response)
        if "body" in payload and len(payload) == 1:
            raise GoogleRequestError("Expected a JSON object response", status_code=response.status_code, payload=payload)
        return payload

    # Internal helpers -------------------------------------------------

    def _is_rate_limited(self, status: int, payload: Mapping[str, object]) -> bool:
        return status == 403 and self._error_reason(payload) in RATE_LIMIT_REASONS

    def _error_reason(self, payload: Mapping[str, object]) -> str | None:
        error = payload.get("error")
        if not isinstance(error, Mapping):
            return None
        errors = error.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], Mapping):
            return errors[0].get("reason")
        return error.get("status")

    def _error_message(self, payload: Mapping[str, object]) -> str | None:
        error = payload.get("error")
        if isinstance(error, Mapping):
            return error.get("message")
        if isinstance(error, str):
            return error
        return None

    def _redact_url(self, url: str) -> str:
        if "?" in url:
            return url.split("?")[0]
        return url

    def _sleep_with_backoff(self, base: float, maximum: float, attempt: int) -> None:
        delay = min(maximum, base * (2 ** (attempt - 1)))
        jitter = random.uniform(0, delay / 2)
        time.sleep(delay + jitter)

    def _safe_json(self, response: Response) -> dict[str, object]:
        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError:
            text = response.text
            if len(text) > 200:
                text = text[:200] + "..."
            return {"body": text}
        if isinstance(payload, dict):
            return payload
        return {"body": payload}


__all__ = ["HttpClient", "USER_AGENT"]
