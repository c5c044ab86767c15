"""
Landfall CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from landfall import __version__
from landfall.cli import credential, write
from landfall.core.config.env import load_layered_env

app = typer.Typer(
    name="landfall",
    help="Write transformed code into destination repositories",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool = False, verbose: bool = False) -> None:
    """
    Configure logging for all commands.

    Args:
        debug: Log everything, including every VCS command that runs
        verbose: Log progress of each write step
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output, including every VCS command",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Report progress of each step",
    ),
) -> None:
    """
    Landfall - destination writer for code migrations.

    Takes a directory holding an already transformed tree and lands it in a
    destination repository as a single new commit.

    Quick Start:
        landfall write ./out --url https://hg.example.com/repo -a "Jane <j@example.com>"
        landfall credential https://git.example.com/project.git
    """
    # Precedence: OS env > project .env.local > project .env > user .env
    load_layered_env()
    setup_logging(debug=debug, verbose=verbose)

    ctx.obj = {"debug": debug}


app.command(name="write")(write.write)
app.command(name="credential")(credential.credential)


@app.command()
def version() -> None:
    """Show landfall version and exit."""
    console.print(f"landfall version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
