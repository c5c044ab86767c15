"""
Standardized error output and exit codes for the landfall CLI.
"""

from enum import IntEnum

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from landfall.core.config import LandfallConfig, load_config
from landfall.core.errors import ErrorKind, SyncError

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for landfall CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Version control, filesystem, or unexpected failure."""

    USER_ERROR = 2
    """Validation failure the user can fix (bad URL, missing --force, ...)."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Example:
        >>> print_error(
        ...     "Destination reference not found",
        ...     reason="'default' doesn't exist in 'https://hg.example.com/repo'",
        ...     solution="landfall write ... --force",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def exit_code_for(error: SyncError) -> ExitCode:
    """Validation errors are the user's to fix; everything else is a failure."""
    if error.kind == ErrorKind.VALIDATION:
        return ExitCode.USER_ERROR
    return ExitCode.GENERAL_ERROR


def print_sync_error(error: SyncError) -> None:
    """Print a classified error, including captured stderr when present."""
    stderr = getattr(error, "stderr", "")
    print_error(
        error.message,
        reason=stderr or None,
        solution=None if error.kind != ErrorKind.IO else "check permissions and free space",
    )


def load_config_or_exit() -> LandfallConfig:
    """Load configuration, exiting with USER_ERROR if it doesn't validate."""
    try:
        return load_config()
    except ValidationError as e:
        print_error("Invalid configuration", reason=str(e), solution="fix .landfall.json")
        raise typer.Exit(ExitCode.USER_ERROR)
