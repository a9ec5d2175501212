# Copyright (c) Syntropy Systems
"""Logging setup for the tinygoize CLI."""
from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_LOGGER_NAME = "tinygoize"


def configure_logging(verbose: bool = False, console: Console | None = None) -> logging.Logger:
    """Send tinygoize log records to stderr through rich.

    Verbose runs show per-package progress (INFO); otherwise only
    warnings and errors are shown.
    """
    level = logging.INFO if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Avoid duplicate output when the CLI runs more than once in-process.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger
