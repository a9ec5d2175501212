# Copyright (c) Syntropy Systems
"""Markdown summary of which commands build with tinygo."""
from __future__ import annotations

import os
from typing import IO, TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from tinygoize.models.status import BuildStatus

INTRO = """\
# Status of u-root + tinygo
This document aims to track the process of enabling all u-root commands
to be built using tinygo. It will be updated as more commands can be built via:

    u-root> tinygoize run cmds/{core,exp,extra}/*

Commands that cannot be built with tinygo have a "(!tinygo || tinygo.enable)"
build constraint. Specify the "tinygo.enable" build tag to attempt to build
them.

    tinygo build -tags tinygo.enable cmds/core/ls

The list below is the result of building each command for Linux, x86_64.

The necessary additions to tinygo will be tracked in
[#2979](https://github.com/u-root/u-root/issues/2979).

---

## Commands Build Status
"""


def link_text(directory: str, output_path: Optional[str]) -> str:
    """Markdown link to ``directory``, relative to the report's location."""
    base = os.path.dirname(output_path) if output_path and output_path != "-" else ""
    rel_path = os.path.relpath(directory, base or os.curdir)
    return f"[{directory}]({rel_path})"


def write_markdown(
    stream: IO[str],
    output_path: Optional[str],
    version: str,
    status: BuildStatus,
    extra_tag: Callable[[str], str] = lambda _: "",
) -> None:
    """Write the status report.

    Args:
        stream: Where to write
        output_path: Path of the report file (``-`` or None for stdout),
            used to make links relative
        version: Output of ``tinygo version``
        status: Classified packages
        extra_tag: Returns the extra build tag a package needs, if any

    """
    _ = stream.write("---\n\n")
    _ = stream.write("DO NOT EDIT.\n\n")
    _ = stream.write("Generated via `tinygoize run`\n\n")
    _ = stream.write(f"{version}\n\n")
    _ = stream.write("---\n\n")
    _ = stream.write(INTRO)

    def process_set(header: str, dirs: list[str]) -> None:
        _ = stream.write(f"\n### {header} ({len(dirs)} commands)\n")
        if not dirs:
            _ = stream.write("NONE\n")
        for directory in sorted(dirs):
            msg = f" - {link_text(directory, output_path)}"
            tags = extra_tag(directory)
            if tags:
                msg += f" tags: {tags}"
            _ = stream.write(f"{msg}\n")

    process_set("EXCLUDED", status.excluded)
    process_set("FAILING", status.failing)
    process_set("PASSING", status.passing)
