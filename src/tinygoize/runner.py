# Copyright (c) Syntropy Systems
"""Build runner: ``tinygo build`` one package and classify the result."""
from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from tinygoize.config import (
    DEFAULT_EXCLUSION_MARKER,
    DEFAULT_ORACLE_TAGS,
    ToolConfig,
)
from tinygoize.errors import ToolchainError

logger = logging.getLogger(__name__)


class BuildCode(Enum):
    """Classification of one build attempt."""

    SUCCESS = "success"
    FAILED = "failed"
    EXCLUDED = "excluded"
    FATAL = "fatal"


@dataclass
class BuildOutcome:
    """Result of building one package directory."""

    directory: Path
    code: BuildCode
    output: str = ""
    exit_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def desired(self) -> Optional[bool]:
        """Whether files should carry the managed clause.

        None when no annotation edit applies (excluded or fatal).
        """
        if self.code is BuildCode.FAILED:
            return True
        if self.code is BuildCode.SUCCESS:
            return False
        return None


def _toolchain_env(goos: str, goarch: str) -> dict[str, str]:
    env = os.environ.copy()
    env["GOOS"] = goos
    env["GOARCH"] = goarch
    return env


class ExclusionOracle:
    """Checks (via ``go build -n``) whether a directory is skipped anyway.

    For example cmds/core/bind only builds for plan9, so a tinygo failure
    there says nothing about tinygo. This matches a diagnostic string and
    is best effort: if ``go`` cannot be run the directory counts as not
    excluded.
    """

    def __init__(
        self,
        go: str = "go",
        tags: Optional[list[str]] = None,
        goos: str = "linux",
        goarch: str = "amd64",
        marker: str = DEFAULT_EXCLUSION_MARKER,
    ) -> None:
        self.go = go
        self.tags = list(tags) if tags is not None else list(DEFAULT_ORACLE_TAGS)
        self.goos = goos
        self.goarch = goarch
        self.marker = marker

    def __call__(self, directory: Path) -> bool:
        argv = [self.go, "build", "-n", "-tags", ",".join(self.tags)]
        try:
            result = subprocess.run(  # noqa: S603
                argv,
                cwd=str(directory),
                env=_toolchain_env(self.goos, self.goarch),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as e:
            logger.warning("Exclusion check failed for %s: %s", directory, e)
            return False
        return self.marker in result.stdout


class BuildRunner:
    """Runs ``tinygo build`` in a package directory.

    Features:
    - Base tag plus a per-package extra tag keyed by directory name
    - Fixed GOOS/GOARCH pair
    - Combined stdout/stderr kept for diagnostics
    - Failures routed through the exclusion oracle
    """

    tinygo: str
    extra_tags: dict[str, str]
    goos: str
    goarch: str
    base_tag: str
    oracle: Callable[[Path], bool]

    def __init__(
        self,
        tinygo: str = "tinygo",
        extra_tags: Optional[dict[str, str]] = None,
        goos: str = "linux",
        goarch: str = "amd64",
        base_tag: str = "tinygo.enable",
        oracle: Optional[Callable[[Path], bool]] = None,
    ) -> None:
        """Initialize a build runner.

        Args:
            tinygo: Path to the tinygo executable
            extra_tags: Additional tag required by a package, keyed by
                the last path component of its directory
            goos: Target operating system
            goarch: Target architecture
            base_tag: Tag that enables building packages tinygo cannot build
            oracle: Callable deciding whether a failed directory is excluded

        """
        self.tinygo = tinygo
        self.extra_tags = dict(extra_tags or {})
        self.goos = goos
        self.goarch = goarch
        self.base_tag = base_tag
        self.oracle = oracle if oracle is not None else ExclusionOracle(goos=goos, goarch=goarch)

    @classmethod
    def from_config(cls, config: ToolConfig) -> BuildRunner:
        """Build a runner and oracle from a loaded configuration."""
        oracle = ExclusionOracle(
            go=config.go,
            tags=config.oracle_tags,
            goos=config.goos,
            goarch=config.goarch,
            marker=config.exclusion_marker,
        )
        return cls(
            tinygo=config.tinygo,
            extra_tags=config.extra_tags,
            goos=config.goos,
            goarch=config.goarch,
            base_tag=config.base_tag,
            oracle=oracle,
        )

    def extra_tag(self, directory: Path | str) -> str:
        """Return the extra tag a package needs, or an empty string."""
        return self.extra_tags.get(Path(directory).name, "")

    def build_tags(self, directory: Path | str) -> list[str]:
        """Return the tags to build ``directory`` with."""
        tags = [self.base_tag]
        extra = self.extra_tag(directory)
        if extra:
            tags.append(extra)
        return tags

    def run(self, directory: Path, worker_id: int = 0) -> BuildOutcome:
        """Build ``directory`` and classify the result."""
        logger.info("[%d] %s Building...", worker_id, directory)

        argv = [self.tinygo, "build", "-tags", ",".join(self.build_tags(directory))]
        try:
            result = subprocess.run(  # noqa: S603
                argv,
                cwd=str(directory),
                env=_toolchain_env(self.goos, self.goarch),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as e:
            logger.error("[%d] %s FATAL %s", worker_id, directory, e)
            return BuildOutcome(directory, BuildCode.FATAL, error=str(e))

        if result.returncode == 0:
            logger.info("[%d] %s PASS", worker_id, directory)
            return BuildOutcome(directory, BuildCode.SUCCESS, result.stdout, 0)

        if self.oracle(directory):
            logger.info("[%d] %s EXCLUDED", worker_id, directory)
            return BuildOutcome(
                directory, BuildCode.EXCLUDED, result.stdout, result.returncode
            )

        logger.info("[%d] %s FAILED exit status %d", worker_id, directory, result.returncode)
        if result.stdout:
            logger.debug("[%d] %s output:\n%s", worker_id, directory, result.stdout.rstrip())
        return BuildOutcome(directory, BuildCode.FAILED, result.stdout, result.returncode)


def toolchain_version(tinygo: str = "tinygo") -> str:
    """Return the trimmed output of ``tinygo version``."""
    try:
        result = subprocess.run(  # noqa: S603
            [tinygo, "version"],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except OSError as e:
        msg = f"cannot run {tinygo}: {e}"
        raise ToolchainError(msg) from e
    if result.returncode != 0:
        msg = f"{tinygo} version exited with status {result.returncode}: {result.stdout.strip()}"
        raise ToolchainError(msg)
    return result.stdout.strip()
