"""Logging setup for sfgen commands."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

_LOGGER_NAME = "sfgen"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the sfgen hierarchy."""
    if not name:
        return logging.getLogger(_LOGGER_NAME)
    if name == _LOGGER_NAME or name.startswith(f"{_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")


def configure_logging(verbosity: int = 0, log_file: Path | None = None) -> logging.Logger:
    """Configure the sfgen logger with stderr output and an optional file sink.

    Args:
        verbosity: 0 logs warnings, 1 info, 2 or more debug.
        log_file: Optional file receiving the same records.

    Returns:
        The configured package logger.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated invocations in one process don't duplicate output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    rich_handler.setLevel(level)
    logger.addHandler(rich_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
