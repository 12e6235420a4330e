"""CLI entry point: registers all subcommands."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="archverify",
    help="archverify - Architecture Conformance Checker",
    add_completion=False,
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Verify that declared package structure and class relationships follow the
    modular-monolith rules (R1..R8), and flag modules that have outgrown them.
    """
    if version:
        console.print(f"[bold cyan]archverify[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)


# Import subcommands to register them
from .verify import verify as _verify  # noqa: F401, E402
from .rules import rules as _rules  # noqa: F401, E402


def main() -> None:
    app()
