# Copyright (c) Syntropy Systems
"""Pydantic models for tinygoize."""

from .base import TinygoizeBaseModel
from .status import BuildStatus

__all__ = ["BuildStatus", "TinygoizeBaseModel"]
