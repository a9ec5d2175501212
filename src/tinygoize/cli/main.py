# Copyright (c) Syntropy Systems
"""Main CLI entry point for tinygoize."""

import typer

from tinygoize.cli.doctor import doctor
from tinygoize.cli.run import run

app = typer.Typer(
    name="tinygoize",
    help=(
        "Build Go packages with tinygo and keep their "
        "'!tinygo || tinygo.enable' build constraints up to date."
    ),
    no_args_is_help=True,
    add_completion=False,
)

# Register commands
_ = app.command()(run)
_ = app.command()(doctor)


if __name__ == "__main__":
    app()
