# Copyright (c) Syntropy Systems
"""Exception hierarchy for tinygoize."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from tinygoize.models.status import BuildStatus


class TinygoizeError(Exception):
    """Base class for tinygoize errors."""


class ConstraintSyntaxError(TinygoizeError, ValueError):
    """A //go:build expression could not be parsed."""


class SourceParseError(TinygoizeError):
    """A Go source file could not be parsed."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class ToolchainError(TinygoizeError):
    """A toolchain executable could not be launched."""


class RunAbortedError(TinygoizeError):
    """The run stopped early on a fatal result.

    ``status`` holds whatever had been collected before the abort.
    """

    def __init__(self, message: str, status: BuildStatus) -> None:
        super().__init__(message)
        self.status = status
