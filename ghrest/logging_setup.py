"""Logging configuration for ghrest.

Library modules only create module loggers; this is called once by the CLI
(or by an application embedding ghrest) to attach handlers.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_level: str | int = logging.WARNING,
    log_file: Path | None = None,
    log_format: str = DEFAULT_LOG_FORMAT,
) -> None:
    """Configure the ``ghrest`` logger with a stderr handler and an optional file handler.

    Calling it again replaces the handlers from the previous call.
    """
    logger = logging.getLogger("ghrest")
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            logger.error("Failed to set up file logging to %s: %s", log_file, e)
        else:
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
