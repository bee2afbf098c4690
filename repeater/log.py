"""Logging setup for the command line entry point."""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from .config import LoggingConfig

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(config: LoggingConfig, level: Optional[str] = None) -> logging.Logger:
    """Attach console (and optionally file) handlers to the ``repeater`` logger.

    ``level`` overrides ``config.level`` when given, e.g. from ``--log-level``.
    """

    formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger("repeater")
    root_logger.setLevel((level or config.level).upper())

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.file is not None:
        config.file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=10485760,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger


__all__ = ["LOG_FORMAT", "setup_logging"]
