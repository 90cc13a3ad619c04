from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .errors import ConfigError
from .profiles import _work_dir

LOG_DIR_ENV = "CERTFLOW_LOG_DIR"

_LOGGER: logging.Logger | None = None


def get_logger(log_dir: Path | None = None) -> logging.Logger:
    """Return the process logger writing to ``<work>/logs/app.log`` and stdout.

    The log directory can be moved with ``CERTFLOW_LOG_DIR``. Configuration
    happens once; later calls return the same logger.
    """
    global _LOGGER
    if _LOGGER is not None:
        return _LOGGER

    if log_dir is not None:
        base = Path(log_dir)
    elif os.getenv(LOG_DIR_ENV):
        base = Path(os.environ[LOG_DIR_ENV]).expanduser()
    else:
        base = _work_dir() / "logs"
    base.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("certflow")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(
        base / "app.log", maxBytes=2 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(fmt)
    logger.addHandler(file_handler)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(fmt)
    logger.addHandler(console)

    _LOGGER = logger
    return logger


def set_level(level_name: str) -> int:
    """Apply a textual log level (``DEBUG``/``INFO``/...) to the certflow logger."""

    level_value = getattr(logging, level_name.upper(), None)
    if not isinstance(level_value, int):
        raise ConfigError(f"Unknown log level: {level_name}")
    get_logger().setLevel(level_value)
    return level_value
