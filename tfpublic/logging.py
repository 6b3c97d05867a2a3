"""Logging utilities for tfpublic commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from tfpublic.diagnostics import Diagnostic

_LOGGER_NAME = "tfpublic"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the tfpublic hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the tfpublic logger with console output and an optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Repeated CLI invocations in one process must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[tfpublic] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


def log_diagnostics(logger: logging.Logger, diagnostics: Iterable["Diagnostic"]) -> int:
    """Render pipeline diagnostics; warnings at WARNING, the rest at DEBUG.

    Returns the number of warnings emitted.
    """
    warnings = 0
    for diagnostic in diagnostics:
        if diagnostic.severity == "warning":
            warnings += 1
            logger.warning("%s", diagnostic.message)
        else:
            logger.debug("%s", diagnostic.message)
    return warnings


__all__ = ["configure_logging", "get_logger", "log_diagnostics"]
