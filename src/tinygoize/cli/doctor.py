# Copyright (c) Syntropy Systems
"""tinygoize doctor command."""

import shutil
import subprocess
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from tinygoize.config import find_config_file, load_config
from tinygoize.errors import TinygoizeError

console = Console()


def _check_tool(label: str, executable: str, version_argv: list) -> bool:
    """Print whether ``executable`` runs and what version it reports."""
    path = shutil.which(executable)
    if path is None:
        console.print(f"[red]\u2717[/red] {label}: {escape(executable)} not found")
        return False
    try:
        result = subprocess.run(  # noqa: S603
            [path, *version_argv],
            capture_output=True,
            text=True,
            timeout=30,
            check=False,
        )
    except subprocess.TimeoutExpired:
        console.print(f"[yellow]\u26a0[/yellow] {label}: version check timed out")
        return False
    except OSError as e:
        console.print(f"[red]\u2717[/red] {label}: {escape(str(e))}")
        return False
    if result.returncode != 0:
        console.print(f"[red]\u2717[/red] {label}: exit code {result.returncode}")
        return False
    version = (result.stdout or result.stderr).strip()
    console.print(f"[green]\u2713[/green] {label}: {escape(version)}", soft_wrap=True)
    return True


def doctor(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to tinygoize.yaml",
    ),
) -> None:
    """Check that tinygo and go are usable and show the configuration.

    Verifies:
    - configuration file (if any) is valid
    - tinygo runs
    - go runs (needed to detect excluded packages)
    """
    issues: list[str] = []

    found = config_path or find_config_file()
    if found is None:
        console.print("[dim]\u2022[/dim] No tinygoize.yaml found, using defaults")
    try:
        config = load_config(config_path)
    except TinygoizeError as e:
        console.print(f"[red]\u2717[/red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(1) from e
    if found is not None:
        console.print(f"[green]\u2713[/green] Config: {escape(str(found))}", soft_wrap=True)

    if not _check_tool("tinygo", config.tinygo, ["version"]):
        issues.append("tinygo unavailable")
    if not _check_tool("go", config.go, ["version"]):
        issues.append("go unavailable (excluded packages will be reported as failing)")

    console.print(f"  [dim]target:[/dim] {config.goos}/{config.goarch}")
    console.print(f"  [dim]base tag:[/dim] {config.base_tag}")
    if config.extra_tags:
        pairs = ", ".join(f"{k}={v}" for k, v in sorted(config.extra_tags.items()))
        console.print(f"  [dim]extra tags:[/dim] {pairs}", soft_wrap=True)

    # Summary
    console.print()
    if issues:
        console.print(f"[red]Found {len(issues)} issue(s)[/red]")
        for issue in issues:
            console.print(f"  - {issue}")
        raise typer.Exit(1)
    console.print("[green]All checks passed[/green]")
