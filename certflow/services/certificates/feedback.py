"""Feedback sinks for progress notices."""

from __future__ import annotations

import logging

import typer

from certflow.core.logger import get_logger


class LoggerFeedback:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_logger()

    def emit(self, message: str) -> None:
        self._logger.info("feedback %s", message)


class EchoFeedback(LoggerFeedback):
    """Log the notice and echo it to the terminal."""

    def emit(self, message: str) -> None:
        super().emit(message)
        typer.secho(message, fg=typer.colors.GREEN)


class CollectingFeedback:
    """Keep notices in memory (dry runs, tests)."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def emit(self, message: str) -> None:
        self.messages.append(message)


__all__ = ["LoggerFeedback", "EchoFeedback", "CollectingFeedback"]
