"""Command line driver for one interpreter session.

Starts a child interpreter, optionally seeds variables, runs the given
scripts in order within the same name table, prints their output, and
finally prints any requested variables.

Usage:
    uv run pyinterp run "print('hello, world!')"
    uv run pyinterp run --set 'xs=[1, 2, 3]' "total = sum(xs)" --get total
    uv run python -m pyinterp.cli run --python /usr/bin/python3.12 "import sys; print(sys.version)"
"""

import json
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.pretty import Pretty
from rich.text import Text

from pyinterp.config import settings
from pyinterp.lib.errors import InterpError
from pyinterp.lib.interp import new_interp
from pyinterp.lib.process import Option, with_path
from pyinterp.version import VERSION

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="pyinterp",
    help="Drive a child Python interpreter over stdin/stdout",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()


def parse_assignment(text: str) -> tuple[str, object]:
    """Split ``NAME=JSON`` into a name and its decoded value."""
    name, sep, raw = text.partition("=")
    name = name.strip()
    if not sep or not name:
        raise typer.BadParameter(f"expected NAME=JSON, got {text!r}")
    try:
        return name, json.loads(raw)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"invalid JSON for {name}: {e}") from e


@app.command()
def run(
    scripts: Annotated[
        list[str] | None,
        typer.Argument(help="Scripts to execute, in order, in one interpreter"),
    ] = None,
    assignments: Annotated[
        list[str] | None,
        typer.Option("--set", "-s", help="Bind NAME=JSON before running scripts"),
    ] = None,
    names: Annotated[
        list[str] | None,
        typer.Option("--get", "-g", help="Print a variable after running scripts"),
    ] = None,
    python: Annotated[
        str | None,
        typer.Option("--python", "-p", help="Interpreter executable to launch"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
) -> None:
    """Run scripts in a fresh interpreter and print their output."""
    logging.basicConfig(level=logging.DEBUG if verbose else settings.log_level)

    pairs = [parse_assignment(a) for a in assignments or []]
    options: list[Option] = [with_path(python)] if python else []

    try:
        with new_interp(*options) as interp:
            for name, value in pairs:
                interp.set(name, value)
            for script in scripts or []:
                typer.echo(interp.run(script), nl=False)
            for name in names or []:
                console.print(Text(f"{name} ="), Pretty(interp.get(name)))
    except InterpError as e:
        logger.debug("Session failed", exc_info=True)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


@app.command()
def version() -> None:
    """Print the package version."""
    typer.echo(VERSION)


if __name__ == "__main__":
    app()
