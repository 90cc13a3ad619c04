"""Google Slides client limited to text substitution."""

from __future__ import annotations

import logging

from certflow.core.logger import get_logger

from .http import HttpClient
from .paths import normalize_file_id

LOGGER = get_logger()


class SlidesClient:
    """Issue ``presentations.batchUpdate`` requests."""

    def __init__(self, http_client: HttpClient, *, logger: logging.Logger | None = None) -> None:
        self._http = http_client
        self._base = http_client.config.slides_url.rstrip("/")
        self._logger = logger or LOGGER

    def replace_all_text(
        self,
        presentation_id: str,
        search_text: str,
        replacement: str,
        *,
        match_case: bool = False,
    ) -> int:
        """Replace every occurrence of ``search_text`` in the presentation.

        Returns the number of occurrences the API reports as changed.
        """

        if not search_text:
            raise ValueError("search_text must not be empty")
        request = {
            "replaceAllText": {
                "replaceText": replacement,
                "containsText": {"text": search_text, "matchCase": match_case},
            }
        }
        payload = self._http.request_json(
            "POST",
            f"{self._base}/presentations/{normalize_file_id(presentation_id)}:batchUpdate",
            json_body={"requests": [request]},
        )
        changed = 0
        for reply in payload.get("replies") or []:
            if isinstance(reply, dict):
                changed += int((reply.get("replaceAllText") or {}).get("occurrencesChanged", 0))
        self._logger.info(
            "google.slides replaced presentation_id=%s occurrences=%d", presentation_id, changed
        )
        return changed


__all__ = ["SlidesClient"]
