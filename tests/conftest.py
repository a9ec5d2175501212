# Copyright (c) Syntropy Systems
"""Pytest fixtures for tinygoize tests."""

from __future__ import annotations

import stat
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

COPYRIGHT = (
    "// Copyright 2024 the u-root Authors. All rights reserved\n"
    "// Use of this source code is governed by a BSD-style\n"
    "// license that can be found in the LICENSE file.\n"
)

# Fails in directories holding a .fail file, records its arguments and
# target in .args.
FAKE_TINYGO = """\
#!/bin/sh
if [ "$1" = "version" ]; then
    echo "tinygo version 0.33.0 linux/amd64 (using go version go1.22.5 and LLVM version 18.1.2)"
    exit 0
fi
echo "$@" > .args
echo "$GOOS/$GOARCH" >> .args
if [ -f .fail ]; then
    echo "error: could not build"
    exit 1
fi
exit 0
"""

# Reports every file excluded in directories holding a .excluded file.
FAKE_GO = """\
#!/bin/sh
if [ "$1" = "version" ]; then
    echo "go version go1.22.5 linux/amd64"
    exit 0
fi
echo "$@" > .go-args
if [ -f .excluded ]; then
    echo "package example: build constraints exclude all Go files in $PWD"
    exit 1
fi
exit 0
"""


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _write_script(path: Path, body: str) -> Path:
    _ = path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_tinygo(temp_dir: Path) -> Path:
    """An executable that behaves like a tiny subset of tinygo."""
    bin_dir = temp_dir / "bin"
    bin_dir.mkdir(exist_ok=True)
    return _write_script(bin_dir / "tinygo", FAKE_TINYGO)


@pytest.fixture
def fake_go(temp_dir: Path) -> Path:
    """An executable that behaves like `go build -n`."""
    bin_dir = temp_dir / "bin"
    bin_dir.mkdir(exist_ok=True)
    return _write_script(bin_dir / "go", FAKE_GO)


def _make_package(
    root: Path,
    name: str,
    files: dict[str, str] | None = None,
    fail: bool = False,
    excluded: bool = False,
) -> Path:
    """Create a package directory with Go files and fake build markers."""
    pkg = root / name
    pkg.mkdir(parents=True)
    if files is None:
        files = {"main.go": COPYRIGHT + "\npackage main\n\nfunc main() {}\n"}
    for filename, content in files.items():
        _ = (pkg / filename).write_text(content)
    if fail:
        (pkg / ".fail").touch()
    if excluded:
        (pkg / ".excluded").touch()
    return pkg


@pytest.fixture
def make_package(temp_dir: Path) -> Callable[..., Path]:
    """Factory creating packages under <temp_dir>/cmds."""
    root = temp_dir / "cmds"

    def factory(name: str, **kwargs: object) -> Path:
        return _make_package(root, name, **kwargs)  # type: ignore[arg-type]

    return factory
