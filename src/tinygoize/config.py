# Copyright (c) Syntropy Systems
"""Configuration management for tinygoize."""
from __future__ import annotations

from pathlib import Path
from typing import cast

import yaml
from pydantic import Field, ValidationError

from tinygoize.errors import TinygoizeError
from tinygoize.models.base import TinygoizeBaseModel

CONFIG_FILENAME = "tinygoize.yaml"

# Additional tags required for specific commands. Command names are
# assumed unique even across directories.
DEFAULT_EXTRA_TAGS: dict[str, str] = {
    "gzip": "noasm",
    "insmod": "noasm",
    "rmmod": "noasm",
    "bzimage": "noasm",
    "kconf": "noasm",
    "modprobe": "noasm",
    "console": "noasm",
    "init": "noasm",
}

# Tags tinygo sets, so `go build -n` sees the same constraints.
DEFAULT_ORACLE_TAGS: list[str] = [
    "tinygo",
    "tinygo.enable",
    "purego",
    "osusergo",
    "math_big_pure_go",
    "gc.precise",
    "scheduler.tasks",
    "serial.none",
]

DEFAULT_EXCLUSION_MARKER = "build constraints exclude all Go files in"


class ToolConfig(TinygoizeBaseModel):
    """Configuration for tinygoize."""

    # Toolchain executables
    tinygo: str = "tinygo"
    go: str = "go"

    # Build target
    goos: str = "linux"
    goarch: str = "amd64"

    # Tag that opts a package back in to tinygo builds
    base_tag: str = "tinygo.enable"

    extra_tags: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_EXTRA_TAGS))
    oracle_tags: list[str] = Field(default_factory=lambda: list(DEFAULT_ORACLE_TAGS))
    exclusion_marker: str = DEFAULT_EXCLUSION_MARKER


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find the nearest tinygoize.yaml by walking up from start_path.

    Returns None if no config file is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def load_config(config_path: Path | None = None) -> ToolConfig:
    """Load configuration from a YAML file or defaults.

    Looks for config in:
    1. Provided config_path (must exist)
    2. Nearest tinygoize.yaml walking up from the working directory
    3. Defaults
    """
    if config_path is None:
        config_path = find_config_file()
        if config_path is None:
            return ToolConfig()
    elif not config_path.is_file():
        msg = f"Config file not found: {config_path}"
        raise TinygoizeError(msg)

    with config_path.open() as f:
        try:
            data = cast("dict[str, object]", yaml.safe_load(f) or {})
        except yaml.YAMLError as e:
            msg = f"Invalid YAML in {config_path}: {e}"
            raise TinygoizeError(msg) from e

    if not isinstance(data, dict):
        msg = f"{config_path}: expected a mapping at top level"
        raise TinygoizeError(msg)

    try:
        return ToolConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise TinygoizeError(msg) from e
