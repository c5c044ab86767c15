"""
Landfall CLI - write command.

Applies a transformed working directory onto a destination repository,
commits it and pushes it.
"""

from datetime import datetime, timezone
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from landfall.cli.errors import (
    ExitCode,
    exit_code_for,
    load_config_or_exit,
    print_error,
    print_sync_error,
)
from landfall.core.destination.destination import Destination
from landfall.core.destination.models import (
    DestinationEffect,
    OriginChange,
    OriginRevision,
    TransformResult,
)
from landfall.core.errors import SyncError
from landfall.core.repository.registry import RepositoryRegistry

console = Console()


def _parse_timestamp(value: str | None) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise typer.BadParameter(f"Not an ISO 8601 timestamp: {value}") from e


def _print_effect(effect: DestinationEffect) -> None:
    table = Table(title="Destination Effect", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Type", effect.type.value)
    table.add_row("Summary", effect.summary)
    table.add_row("Revision", effect.destination_ref.id)
    table.add_row("URL", effect.destination_ref.url)
    if effect.origin_ref is not None:
        table.add_row("Origin change", effect.origin_ref.ref)

    console.print(table)


def write(
    workdir: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
        help="Directory holding the transformed tree",
    ),
    author: str = typer.Option(
        ...,
        "--author",
        "-a",
        help="Commit author, e.g. 'Jane Doe <jane@example.com>'",
    ),
    summary: str = typer.Option(
        "",
        "--summary",
        "-m",
        help="Commit message",
    ),
    url: str | None = typer.Option(
        None,
        "--url",
        help="Destination repository URL (defaults to destination.url in config)",
    ),
    fetch: str | None = typer.Option(
        None,
        "--fetch",
        help="Reference to pull and start from",
    ),
    push: str | None = typer.Option(
        None,
        "--push",
        help="Reference to push",
    ),
    vcs: str | None = typer.Option(
        None,
        "--vcs",
        help="Destination version control system: hg or git",
    ),
    timestamp: str | None = typer.Option(
        None,
        "--timestamp",
        help="Commit timestamp in ISO 8601 (defaults to now)",
    ),
    origin_rev: str | None = typer.Option(
        None,
        "--origin-rev",
        help="Origin revision to record in the commit message",
    ),
    origin_label: str | None = typer.Option(
        None,
        "--origin-label",
        help="Label name for --origin-rev (defaults to the origin label of the VCS)",
    ),
    changes: list[str] = typer.Option(
        [],
        "--change",
        help="Origin change included in this write (repeatable, oldest first)",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Write even if the fetch reference doesn't exist in the destination",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the resulting effect as JSON",
    ),
) -> None:
    """
    Write a working directory to a destination repository.

    Pulls the destination, makes its checkout match WORKDIR, commits with
    the given author and message, and pushes.

    Examples:
        landfall write ./out --url https://hg.example.com/repo -a "Jane <j@example.com>" -m "Import"
        landfall write ./out --vcs git --url file:///srv/repo.git --fetch main --push main -a ...
        landfall write ./out --origin-rev 4f2c9e1a --force -a ...
    """
    config = load_config_or_exit()
    dest_config = config.destination

    url = url or dest_config.url
    if not url:
        print_error(
            "No destination URL",
            reason="Neither --url nor destination.url in .landfall.json is set",
            solution="landfall write WORKDIR --url https://host/repo ...",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    vcs = (vcs or dest_config.vcs).lower()
    if vcs not in ("hg", "git"):
        raise typer.BadParameter(f"Unsupported VCS: {vcs}", param_hint="--vcs")

    commit_time = _parse_timestamp(timestamp)

    registry = RepositoryRegistry(
        config.repository.cache_dir,
        vcs,  # type: ignore[arg-type]
        hg_binary=config.repository.hg_binary,
        timeout=config.repository.command_timeout,
    )

    try:
        destination = Destination(
            registry,
            url,
            fetch or dest_config.fetch,
            push or dest_config.push,
            force=force or dest_config.force,
            origin_label_separator=config.message.origin_label_separator,
        )

        current_revision = None
        if origin_rev:
            current_revision = OriginRevision(
                label_name=origin_label or destination.origin_label_name,
                value=origin_rev,
            )

        transform_result = TransformResult(
            path=workdir,
            author=author,
            timestamp=commit_time,
            summary=summary,
            current_revision=current_revision,
            changes=tuple(OriginChange(ref=ref) for ref in changes),
        )

        with destination.lock():
            effect = destination.new_writer().write(transform_result)

    except ValidationError as e:
        print_error(
            "Invalid write request",
            reason=str(e),
            solution="check --author, and use only letters, digits, _ and - in --origin-label",
        )
        raise typer.Exit(ExitCode.USER_ERROR)
    except SyncError as e:
        print_sync_error(e)
        raise typer.Exit(exit_code_for(e))

    if json_output:
        typer.echo(effect.model_dump_json(indent=2))
    else:
        console.print(f"[green]✓[/green] {effect.summary}")
        _print_effect(effect)
