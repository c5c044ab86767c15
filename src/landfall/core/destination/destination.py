"""Destination configuration and writer factory."""

from __future__ import annotations

import logging

from landfall.core.destination.writer import SyncWriter, validate_destination_url
from landfall.core.message.builder import ORIGIN_LABEL_SEPARATOR
from landfall.core.repository.registry import RepositoryRegistry, VcsKind

ORIGIN_LABEL_NAMES: dict[str, str] = {
    "hg": "HgOrigin-RevId",
    "git": "GitOrigin-RevId",
}


class Destination:
    """
    A destination repository: where to pull from, what to push, and how.

    Each write gets its own SyncWriter; the checkout behind it comes from the
    registry and is shared by every writer for the same URL.

    Example:
        >>> destination = Destination(registry, "https://hg.example.com/project")
        >>> with destination.lock():
        ...     effect = destination.new_writer().write(transform_result)
    """

    def __init__(
        self,
        registry: RepositoryRegistry,
        url: str,
        fetch: str = "default",
        push: str = "default",
        *,
        force: bool = False,
        origin_label_separator: str = ORIGIN_LABEL_SEPARATOR,
    ) -> None:
        validate_destination_url(url)
        self.registry = registry
        self.url = url
        self.fetch = fetch
        self.push = push
        self.force = force
        self.origin_label_separator = origin_label_separator

    @property
    def vcs(self) -> VcsKind:
        return self.registry.vcs

    @property
    def origin_label_name(self) -> str:
        """Label recording revisions of this repository when it is used as an origin."""
        return ORIGIN_LABEL_NAMES[self.vcs]

    def lock(self):
        """Lock serializing writes to this destination."""
        return self.registry.lock(self.url)

    def new_writer(self, log: logging.Logger | None = None) -> SyncWriter:
        """Create a writer bound to this destination's cached checkout."""
        return SyncWriter(
            self.registry.get(self.url),
            self.url,
            self.fetch,
            self.push,
            force=self.force,
            origin_label_separator=self.origin_label_separator,
            log=log,
        )

    def __repr__(self) -> str:
        return (
            f"Destination(vcs={self.vcs!r}, url={self.url!r}, "
            f"fetch={self.fetch!r}, push={self.push!r})"
        )
