"""
Destination writer.

Synchronizes a transform working directory into a destination repository:

    INIT -> PULLED -> CLEAN -> RECONCILED -> COMMITTED -> PUSHED -> DONE

Any failure moves the writer to ABORTED and is re-raised. Nothing is pushed
unless every earlier step succeeded, and nothing is retried: the only escape
hatch is ``force``, which turns a missing fetch reference into a warning.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from email.utils import format_datetime
from urllib.parse import urlsplit

from landfall.core.destination.effects import to_effect
from landfall.core.destination.models import (
    DestinationEffect,
    DiffEntry,
    DiffOperation,
    TransformResult,
    WriterState,
)
from landfall.core.diff.reconciler import DiffReconciler
from landfall.core.errors import EmptyChangeError, SyncError, UnresolvedReferenceError
from landfall.core.message.builder import ORIGIN_LABEL_SEPARATOR, build_change_message_for
from landfall.core.repository.base import RepositoryHandle

logger = logging.getLogger(__name__)

FORCE_FLAG = "--force"


def validate_destination_url(url: str) -> None:
    """
    Reject destination URLs that have no scheme or no host.

    ``file://`` URLs are the only ones allowed without a host.

    Raises:
        SyncError: VALIDATION if the URL is unusable
    """
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise SyncError.validation(f"Malformed destination URL: {url}") from e
    if not parts.scheme:
        raise SyncError.validation(f"Cannot find the protocol for {url}")
    if parts.scheme != "file" and not parts.netloc:
        raise SyncError.validation(f"Cannot find the host for {url}")


def format_commit_date(timestamp: datetime) -> str:
    """Render a timestamp as an RFC 2822 date; naive values are taken as UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return format_datetime(timestamp)


class SyncWriter:
    """
    Single-use writer applying one transform onto a destination repository.

    The repository handle is borrowed, not owned: it may be reused by later
    writers, but must not be shared by two writes running at the same time.

    Example:
        >>> writer = SyncWriter(repo, "https://hg.example.com/project", "default", "default")
        >>> effect = writer.write(transform_result)
        >>> effect.destination_ref.id
        '4f2c9e1a...'
    """

    def __init__(
        self,
        repo: RepositoryHandle,
        url: str,
        fetch: str,
        push: str,
        *,
        force: bool = False,
        origin_label_separator: str = ORIGIN_LABEL_SEPARATOR,
        reconciler: DiffReconciler | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        """
        Initialize the writer.

        Args:
            repo: Destination checkout to write through
            url: Destination repository URL (pulled from and pushed to)
            fetch: Reference to pull and start from
            push: Reference to push
            force: Continue with the cached checkout when ``fetch`` is missing
            origin_label_separator: Separator for the origin revision trailer
            reconciler: Reconciler to stage changes with
            log: Logger receiving progress and warnings
        """
        self.repo = repo
        self.url = url
        self.fetch = fetch
        self.push = push
        self.force = force
        self.origin_label_separator = origin_label_separator
        self.log = log or logger
        self.reconciler = reconciler or DiffReconciler(self.log)
        self.state = WriterState.INIT
        self.applied: list[DiffEntry] = []

    def write(self, transform_result: TransformResult) -> DestinationEffect:
        """
        Write ``transform_result`` to the destination and push it.

        Returns:
            The CREATED effect pointing at the pushed revision

        Raises:
            SyncError: Classified failure; the writer is left ABORTED
            RuntimeError: If the writer was already used
        """
        if self.state != WriterState.INIT:
            raise RuntimeError(
                f"SyncWriter is single-use (state: {self.state.value}); create a new writer"
            )

        try:
            return self._write(transform_result)
        except OSError as e:
            self.state = WriterState.ABORTED
            raise SyncError.io(f"Filesystem error while writing to {self.url}: {e}") from e
        except BaseException:
            self.state = WriterState.ABORTED
            raise

    def _write(self, transform_result: TransformResult) -> DestinationEffect:
        workdir = transform_result.path
        self.log.info("Exporting from %s to %s", workdir, self.url)
        validate_destination_url(self.url)

        self.log.info("Pulling %s from %s", self.fetch, self.url)
        self._pull()
        self.state = WriterState.PULLED

        self.repo.clean_update(self.fetch)
        self.state = WriterState.CLEAN

        self.repo.set_default_path(self.url)

        self.log.info("Computing diff")
        self.applied = self.reconciler.reconcile(workdir, self.repo)
        if not self._real_changes(self.applied):
            raise EmptyChangeError(
                f"No changes to write: {workdir} already matches '{self.fetch}' in {self.url}"
            )
        self.state = WriterState.RECONCILED

        self.log.info("Creating a local commit")
        message = build_change_message_for(transform_result, self.origin_label_separator)
        self.repo.commit(
            transform_result.author,
            format_commit_date(transform_result.timestamp),
            str(message),
        )
        self.state = WriterState.COMMITTED

        self.log.info("Pushing to %s %s", self.url, self.push)
        self.repo.push(self.url, self.push)
        self.state = WriterState.PUSHED

        tip = self.repo.identify(self.repo.tip_ref)
        effect = to_effect(tip, transform_result, self.url)
        self.state = WriterState.DONE
        self.log.info("Created revision %s", tip)
        return effect

    def _pull(self) -> None:
        try:
            self.repo.pull(self.url, self.fetch)
        except UnresolvedReferenceError as e:
            warning = f"'{self.fetch}' doesn't exist in '{self.url}'"
            if not self.force:
                raise SyncError.validation(
                    f"{warning}. Use {FORCE_FLAG} if you want to push anyway"
                ) from e
            self.log.warning(warning)

    def _real_changes(self, entries: list[DiffEntry]) -> list[DiffEntry]:
        artifacts = self.repo.snapshot_artifacts
        return [
            entry
            for entry in entries
            if not (entry.operation == DiffOperation.DELETE and entry.path in artifacts)
        ]

    def __repr__(self) -> str:
        return (
            f"SyncWriter(url={self.url!r}, fetch={self.fetch!r}, push={self.push!r}, "
            f"force={self.force}, state={self.state.value})"
        )
