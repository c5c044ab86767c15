"""
Registry of cached destination checkouts.

Each destination URL maps to one checkout under the cache directory, kept
between writes to avoid repeated full clones. The registry hands out the
handle and a per-URL lock; callers must hold the lock for the whole write.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from pathlib import Path
from typing import Literal

from landfall.core.errors import SyncError
from landfall.core.repository.base import RepositoryHandle
from landfall.core.repository.git import GitRepository
from landfall.core.repository.hg import HgRepository

logger = logging.getLogger(__name__)

VcsKind = Literal["hg", "git"]


def cache_key(url: str) -> str:
    """Directory name used for ``url`` inside the cache."""
    return hashlib.sha256(url.encode()).hexdigest()[:16]


class RepositoryRegistry:
    """
    Hands out one repository handle per destination URL.

    Example:
        >>> registry = RepositoryRegistry(Path("~/.cache/landfall/repos"))
        >>> with registry.lock(url):
        ...     repo = registry.get(url)
        ...     writer = SyncWriter(repo, url, "default", "default")
        ...     writer.write(transform_result)
    """

    def __init__(
        self,
        cache_dir: Path,
        vcs: VcsKind = "hg",
        *,
        hg_binary: str = "hg",
        timeout: float | None = 600,
    ) -> None:
        self.cache_dir = cache_dir
        self.vcs = vcs
        self.hg_binary = hg_binary
        self.timeout = timeout
        self._handles: dict[str, RepositoryHandle] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock(self, url: str) -> threading.Lock:
        """Return the lock serializing writes to ``url``."""
        with self._guard:
            return self._locks.setdefault(url, threading.Lock())

    def get(self, url: str) -> RepositoryHandle:
        """
        Return the handle for ``url``, initializing an empty checkout on first use.

        Raises:
            CommandError: If the checkout cannot be initialized
        """
        with self._guard:
            handle = self._handles.get(url)
            if handle is None:
                handle = self._create(self.cache_dir / self.vcs / cache_key(url))
                self._handles[url] = handle
                logger.debug("Using %s for %s", handle.path, url)
            return handle

    def _create(self, path: Path) -> RepositoryHandle:
        try:
            if self.vcs == "git":
                return GitRepository.init(path, timeout=self.timeout)
            repo = HgRepository(path, hg_binary=self.hg_binary, timeout=self.timeout)
            repo.init()
            return repo
        except OSError as e:
            raise SyncError.io(f"Cannot create checkout at {path}: {e}") from e
