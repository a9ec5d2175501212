# Copyright (c) Syntropy Systems
"""Pydantic model for the aggregate result of a run."""

from __future__ import annotations

from pydantic import Field

from .base import TinygoizeBaseModel


class BuildStatus(TinygoizeBaseModel):
    """Track set of passing, failing, excluded and modified packages.

    Only the collecting thread appends to these lists.
    """

    passing: list[str] = Field(default_factory=list)
    failing: list[str] = Field(default_factory=list)
    excluded: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        """Number of classified packages."""
        return len(self.passing) + len(self.failing) + len(self.excluded)

    def sorted_copy(self) -> BuildStatus:
        """Return a copy with every list sorted."""
        return BuildStatus(
            passing=sorted(self.passing),
            failing=sorted(self.failing),
            excluded=sorted(self.excluded),
            modified=sorted(self.modified),
        )
