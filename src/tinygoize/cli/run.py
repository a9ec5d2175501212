# Copyright (c) Syntropy Systems
"""tinygoize run command."""

import sys
from pathlib import Path
from typing import IO, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskProgressColumn, TextColumn

from tinygoize.config import load_config
from tinygoize.errors import RunAbortedError, TinygoizeError
from tinygoize.log import configure_logging
from tinygoize.models.status import BuildStatus
from tinygoize.orchestrator import WorkerResult, build_dirs
from tinygoize.report import write_markdown
from tinygoize.runner import BuildRunner, toolchain_version

console = Console()
err_console = Console(stderr=True)


def run(
    dirs: List[Path] = typer.Argument(
        ...,
        help="Package directories to build, e.g. cmds/core/*",
    ),
    output: str = typer.Option(
        "-",
        "--output", "-o",
        help="Output file for markdown summary, '-' for stdout",
    ),
    tinygo: Optional[str] = typer.Option(
        None,
        "--tinygo",
        help="Path to tinygo (default: from config, else 'tinygo')",
    ),
    jobs: int = typer.Option(
        0,
        "--jobs", "-j",
        help="Number of builds to run at once; 0 means one per CPU",
    ),
    check_only: bool = typer.Option(
        False,
        "--check-only", "-n",
        help="Check only, do not modify sources",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Log per-package progress",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to tinygoize.yaml",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Write the summary as JSON instead of markdown",
    ),
) -> None:
    """Build each package with tinygo and fix up its build constraints.

    Packages that fail get '(!tinygo || tinygo.enable)' added to the
    //go:build line of every file; packages that build have it removed.
    Exits 1 if any package was (or, with -n, needs to be) updated.

        tinygoize run -o tinygo.md cmds/core/*
    """
    _ = configure_logging(verbose, console=err_console)

    try:
        config = load_config(config_path)
    except TinygoizeError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(1) from e
    if tinygo:
        config = config.model_copy(update={"tinygo": tinygo})

    missing = [d for d in dirs if not d.is_dir()]
    if missing:
        for d in missing:
            console.print(f"[red]Error:[/red] Not a directory: {escape(str(d))}", soft_wrap=True)
        raise typer.Exit(1)

    try:
        version = toolchain_version(config.tinygo)
    except TinygoizeError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(1) from e

    runner = BuildRunner.from_config(config)
    try:
        status = _build_with_progress(dirs, runner, jobs, check_only)
    except RunAbortedError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(1) from e

    status = status.sorted_copy()
    _write_summary(output, version, status, runner, as_json)

    if status.modified:
        if check_only:
            console.print("[yellow]Updates required in package(s):[/yellow]")
        else:
            console.print("[yellow]Updated build constraints in package(s):[/yellow]")
        for modded in status.modified:
            console.print(escape(modded), soft_wrap=True, highlight=False)
        raise typer.Exit(1)

    console.print("[green]Build constraints up to date.[/green]")


def _build_with_progress(
    dirs: List[Path], runner: BuildRunner, jobs: int, check_only: bool
) -> BuildStatus:
    """Run the pool with a progress bar on stderr."""
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TaskProgressColumn(),
        console=err_console,
    ) as progress:
        task = progress.add_task("Building", total=len(dirs))

        def on_progress(n_complete: int, out_of: int, result: WorkerResult) -> None:
            progress.update(task, completed=n_complete, description=escape(str(result.directory)))

        return build_dirs(
            dirs,
            runner,
            workers=jobs,
            check_only=check_only,
            on_progress=on_progress,
        )


def _write_summary(
    output: str,
    version: str,
    status: BuildStatus,
    runner: BuildRunner,
    as_json: bool,
) -> None:
    """Write the report to ``output`` or stdout."""
    if output in ("", "-"):
        _render(sys.stdout, output, version, status, runner, as_json)
        return
    try:
        with Path(output).open("w") as f:
            _render(f, output, version, status, runner, as_json)
    except OSError as e:
        console.print(f"[red]Error:[/red] Cannot write {escape(output)}: {e}", soft_wrap=True)
        raise typer.Exit(1) from e


def _render(
    stream: IO[str],
    output: str,
    version: str,
    status: BuildStatus,
    runner: BuildRunner,
    as_json: bool,
) -> None:
    if as_json:
        _ = stream.write(status.model_dump_json(indent=2))
        _ = stream.write("\n")
    else:
        write_markdown(stream, output, version, status, runner.extra_tag)
