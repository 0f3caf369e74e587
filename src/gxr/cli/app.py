import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from gxr.cli.build import build
from gxr.cli.watch import watch

app = typer.Typer(
    name="gxr",
    help="GXR: build client components for hydration.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("build")(build)
app.command("watch")(watch)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback(invoke_without_command=True)
def root(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    configure_logging(verbose)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


@app.command("help")
def help_command(ctx: typer.Context) -> None:
    """Show this help message."""
    parent = ctx.parent or ctx
    typer.echo(parent.get_help())


def main() -> None:
    """Console entry point; usage errors and unknown commands exit with 1."""
    try:
        app()
    except SystemExit as exc:
        # click reports usage errors with exit code 2
        if exc.code == 2:
            raise SystemExit(1) from None
        raise
