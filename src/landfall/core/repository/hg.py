"""
Mercurial repository handle.

Shells out to the ``hg`` binary for every operation. The checkout doubles as
the local cache of the destination: it is pulled into, force-updated, and
committed in place.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from landfall.core.errors import CommandError, UnresolvedReferenceError

logger = logging.getLogger(__name__)

HG_ARCHIVAL_FILE = ".hg_archival.txt"
NULL_REVISION = "0" * 40

_UNKNOWN_REVISION_MARKERS = ("unknown revision", "abort: unknown")


class HgRepository:
    """
    RepositoryHandle backed by a local Mercurial checkout.

    Example:
        >>> repo = HgRepository(Path("/var/cache/landfall/abc123"))
        >>> repo.init()
        >>> repo.pull("https://hg.example.com/project", "default")
        >>> repo.clean_update("default")
    """

    tip_ref = "tip"
    snapshot_artifacts = frozenset({HG_ARCHIVAL_FILE})

    def __init__(
        self,
        path: Path,
        hg_binary: str = "hg",
        timeout: float | None = 600,
        env: dict[str, str] | None = None,
    ) -> None:
        """
        Initialize the handle.

        Args:
            path: Checkout directory (created by ``init`` if missing)
            hg_binary: Mercurial executable to invoke
            timeout: Seconds before a single command is killed (None disables)
            env: Extra environment variables for every command
        """
        self._path = path
        self.hg_binary = hg_binary
        self.timeout = timeout
        self.env = env or {}

    @property
    def path(self) -> Path:
        return self._path

    def _run_hg(self, args: list[str]) -> str:
        """
        Run an hg command in the checkout and return its stdout.

        Raises:
            CommandError: If the command fails, times out, or hg is missing
        """
        cmd = [self.hg_binary, *args]
        logger.debug("Running hg command: %s", " ".join(cmd))

        env = {**os.environ, **self.env, "HGPLAIN": "1"}
        try:
            result = subprocess.run(
                cmd,
                cwd=self._path,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandError(f"Hg command timed out: {' '.join(cmd)}", command=cmd) from e
        except FileNotFoundError as e:
            raise CommandError(f"{self.hg_binary} not found in PATH", command=cmd) from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise CommandError(
                f"Hg command failed: {' '.join(cmd)}",
                command=cmd,
                stderr=stderr,
            )
        return result.stdout or ""

    def run(self, *args: str) -> str:
        return self._run_hg(list(args))

    def init(self) -> None:
        """Create an empty repository at ``path`` unless one already exists."""
        if (self._path / ".hg").is_dir():
            return
        self._path.mkdir(parents=True, exist_ok=True)
        self._run_hg(["init"])

    def pull(self, url: str, ref: str) -> None:
        try:
            self._run_hg(["pull", "--rev", ref, url])
        except CommandError as e:
            if any(marker in e.stderr for marker in _UNKNOWN_REVISION_MARKERS):
                raise UnresolvedReferenceError(
                    f"Reference '{ref}' cannot be resolved in {url}",
                    command=e.command,
                    stderr=e.stderr,
                ) from e
            raise

    def clean_update(self, ref: str) -> None:
        """
        Update to ``ref`` discarding local changes, then purge untracked files.

        Draft changesets left behind by an aborted write are stripped first,
        since a branch name like ``default`` would otherwise resolve to them.
        When ``ref`` is unknown locally (first forced write to an empty
        repository) the working copy is updated to the null revision instead.
        """
        drafts = self._run_hg(["log", "-r", "draft()", "--template", "{node}\n"]).split()
        if drafts:
            logger.warning("Discarding %d unpushed local changeset(s)", len(drafts))
            self._run_hg(
                ["--config", "extensions.strip=", "strip", "--force", "--no-backup"]
                + ["-r", "draft()"]
            )
        try:
            self._run_hg(["update", "--clean", "-r", ref])
        except CommandError as e:
            if not any(marker in e.stderr for marker in _UNKNOWN_REVISION_MARKERS):
                raise
            logger.debug("Revision %s unknown locally, updating to null", ref)
            self._run_hg(["update", "--clean", "-r", "null"])
        self._run_hg(["--config", "extensions.purge=", "purge", "--all"])

    def snapshot(self, dest: Path) -> None:
        # An empty repository has nothing to archive
        if self.identify(".") == NULL_REVISION:
            return
        self._run_hg(["archive", "--type", "files", str(dest)])

    def set_default_path(self, url: str) -> None:
        hgrc = self._path / ".hg" / "hgrc"
        hgrc.write_text(f"[paths]\ndefault = {url}\n", encoding="utf-8")

    def add(self, path: str) -> None:
        self._run_hg(["add", "--", path])

    def remove(self, path: str) -> None:
        self._run_hg(["remove", "--", path])

    def commit(self, author: str, date: str, message: str) -> None:
        self._run_hg(["commit", "--user", author, "--date", date, "-m", message])

    def push(self, url: str, ref: str) -> None:
        self._run_hg(["push", "--rev", ref, url])

    def identify(self, ref: str) -> str:
        return self._run_hg(["identify", "--debug", "--id", "-r", ref]).strip()

    def __repr__(self) -> str:
        return f"HgRepository(path={str(self._path)!r})"
