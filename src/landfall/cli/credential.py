"""
Landfall CLI - credential command.

Checks that git credential helpers can answer for a URL. Only the username
is ever printed.
"""

from datetime import timedelta
from pathlib import Path

import typer
from rich.console import Console

from landfall.cli.errors import exit_code_for, load_config_or_exit, print_sync_error
from landfall.core.credentials import GitCredential
from landfall.core.errors import SyncError

console = Console()


def credential(
    url: str = typer.Argument(..., help="Repository URL, including its protocol"),
    cwd: Path = typer.Option(
        Path("."),
        "--cwd",
        exists=True,
        file_okay=False,
        resolve_path=True,
        help="Directory whose git config defines the credential helpers",
    ),
) -> None:
    """
    Look up credentials for URL with 'git credential fill'.

    Examples:
        landfall credential https://git.example.com/project.git
        landfall credential https://git.example.com/project.git --cwd ~/cache/repo
    """
    config = load_config_or_exit()
    helper = GitCredential(
        git_binary=config.repository.git_binary,
        timeout=timedelta(seconds=config.credentials.timeout_seconds),
    )

    try:
        creds = helper.fill(cwd, url)
    except SyncError as e:
        print_sync_error(e)
        raise typer.Exit(exit_code_for(e))

    console.print(f"[green]✓[/green] Credentials found for {url}")
    console.print(f"  username: {creds.username}")
    console.print("  password: (hidden)")
