"""
Repository handle protocol.

This module defines the RepositoryHandle protocol that every destination
checkout must implement. The writer and the reconciler only ever talk to this
interface, so they can be driven by the real Mercurial/git adapters or by an
in-memory fake in tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class RepositoryHandle(Protocol):
    """
    Protocol for destination repository checkouts.

    A handle owns a checkout on disk and is mutated in place by every
    operation. Handles are borrowed for the duration of one write; two
    concurrent writes must never share a handle.
    """

    @property
    def path(self) -> Path:
        """Root directory of the checkout."""
        ...

    @property
    def tip_ref(self) -> str:
        """Reference naming the newest local revision ("tip", "HEAD", ...)."""
        ...

    @property
    def snapshot_artifacts(self) -> frozenset[str]:
        """
        Relative paths that ``snapshot`` writes besides tracked content.

        These never exist in the checkout itself.
        """
        ...

    def pull(self, url: str, ref: str) -> None:
        """
        Fetch ``ref`` from ``url`` into the local repository.

        Raises:
            UnresolvedReferenceError: If ``ref`` does not exist in ``url``
            CommandError: If the pull fails for any other reason
        """
        ...

    def clean_update(self, ref: str) -> None:
        """Force the checkout onto ``ref``, discarding local modifications."""
        ...

    def snapshot(self, dest: Path) -> None:
        """Archive the tracked content of the current checkout into ``dest``."""
        ...

    def set_default_path(self, url: str) -> None:
        """Persist ``url`` as the checkout's default outgoing target."""
        ...

    def add(self, path: str) -> None:
        """Register a new file (relative to the checkout root)."""
        ...

    def remove(self, path: str) -> None:
        """Stage the deletion of a tracked file (relative to the checkout root)."""
        ...

    def commit(self, author: str, date: str, message: str) -> None:
        """Create a commit of everything staged."""
        ...

    def push(self, url: str, ref: str) -> None:
        """Push ``ref`` to ``url``."""
        ...

    def identify(self, ref: str) -> str:
        """Resolve ``ref`` to a full revision id."""
        ...

    def run(self, *args: str) -> str:
        """
        Run an arbitrary subcommand in the checkout and return its stdout.

        Raises:
            CommandError: If the command fails; carries captured stderr
        """
        ...
