"""
Git repository handle.

Implements the RepositoryHandle protocol on top of GitPython. Fetched
references are kept under ``refs/remotes/destination/`` so a forced write can
still fall back on whatever was fetched by an earlier run.
"""

from __future__ import annotations

import logging
from email.utils import parseaddr
from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from landfall.core.errors import CommandError, UnresolvedReferenceError

logger = logging.getLogger(__name__)

TRACKING_PREFIX = "refs/remotes/destination/"

_MISSING_REMOTE_REF = "couldn't find remote ref"


def _short_ref(ref: str) -> str:
    return ref.removeprefix("refs/heads/")


def _stderr(error: GitCommandError) -> str:
    # GitPython wraps captured stderr as "\n  stderr: '<text>'"
    text = str(error.stderr or "").strip()
    if text.startswith("stderr: '") and text.endswith("'"):
        text = text[len("stderr: '") : -1]
    return text.strip()


class GitRepository:
    """
    RepositoryHandle backed by a non-bare git checkout.

    Example:
        >>> repo = GitRepository.init(Path("/var/cache/landfall/abc123"))
        >>> repo.pull("https://git.example.com/project.git", "main")
        >>> repo.clean_update("main")
    """

    tip_ref = "HEAD"
    snapshot_artifacts: frozenset[str] = frozenset()

    def __init__(self, path: Path, timeout: float | None = 600) -> None:
        """
        Open an existing checkout.

        Args:
            path: Checkout directory
            timeout: Seconds before a single git command is killed

        Raises:
            CommandError: If ``path`` is not a git checkout
        """
        try:
            self._repo = Repo(path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise CommandError(f"Not a git repository: {path}") from e
        self._path = Path(self._repo.working_dir)
        self.timeout = timeout

    @classmethod
    def init(cls, path: Path, timeout: float | None = 600) -> GitRepository:
        """Open the checkout at ``path``, creating an empty one if needed."""
        if not (path / ".git").exists():
            path.mkdir(parents=True, exist_ok=True)
            try:
                Repo.init(path)
            except GitCommandError as e:
                raise CommandError(
                    f"Cannot initialize git repository at {path}",
                    stderr=_stderr(e),
                ) from e
        return cls(path, timeout=timeout)

    @property
    def path(self) -> Path:
        return self._path

    def _git(self, *args: str, env: dict[str, str] | None = None) -> str:
        cmd = ["git", *args]
        logger.debug("Running git command: %s", " ".join(cmd))
        try:
            return self._repo.git.execute(
                cmd,
                kill_after_timeout=self.timeout,
                env=env,
            )
        except GitCommandError as e:
            raise CommandError(
                f"Git command failed: {' '.join(cmd)}",
                command=cmd,
                stderr=_stderr(e),
            ) from e

    def _ref_exists(self, ref: str) -> bool:
        try:
            self._git("show-ref", "--verify", "--quiet", ref)
            return True
        except CommandError:
            return False

    def run(self, *args: str) -> str:
        return self._git(*args)

    def pull(self, url: str, ref: str) -> None:
        tracking = TRACKING_PREFIX + _short_ref(ref)
        try:
            self._git("fetch", "--no-tags", url, f"+{ref}:{tracking}")
        except CommandError as e:
            if _MISSING_REMOTE_REF in e.stderr:
                raise UnresolvedReferenceError(
                    f"Reference '{ref}' cannot be resolved in {url}",
                    command=e.command,
                    stderr=e.stderr,
                ) from e
            raise

    def clean_update(self, ref: str) -> None:
        """
        Check out ``ref`` discarding local changes and untracked files.

        Falls back to the local branch when nothing was fetched, and to an
        unborn branch when the branch does not exist at all.
        """
        branch = _short_ref(ref)
        tracking = TRACKING_PREFIX + branch
        if self._ref_exists(tracking):
            self._git("checkout", "--force", "-B", branch, tracking)
        elif self._ref_exists(f"refs/heads/{branch}"):
            self._git("checkout", "--force", branch)
        else:
            logger.debug("Branch %s does not exist, starting from an empty tree", branch)
            self._git("symbolic-ref", "HEAD", f"refs/heads/{branch}")
            self._git("read-tree", "--empty")
        self._git("clean", "-fdx")

    def snapshot(self, dest: Path) -> None:
        # The index equals HEAD after clean_update; unlike `git archive` it
        # ignores export-ignore and export-subst attributes
        self._git("checkout-index", "--all", "--force", f"--prefix={dest}/")

    def set_default_path(self, url: str) -> None:
        with self._repo.config_writer() as config:
            config.set_value('remote "origin"', "url", url)

    def add(self, path: str) -> None:
        self._git("add", "--force", "--", path)

    def remove(self, path: str) -> None:
        self._git("rm", "--quiet", "--", path)

    def commit(self, author: str, date: str, message: str) -> None:
        # Fall back on the author as committer when no identity is configured
        env: dict[str, str] = {}
        reader = self._repo.config_reader()
        if not (reader.has_option("user", "name") and reader.has_option("user", "email")):
            name, email = parseaddr(author)
            env["GIT_COMMITTER_NAME"] = name or email
            env["GIT_COMMITTER_EMAIL"] = email
        # --all picks up overwritten files; additions and removals are staged already
        self._git(
            "commit", "--all", "--author", author, "--date", date, "-m", message, env=env
        )

    def push(self, url: str, ref: str) -> None:
        self._git("push", url, f"HEAD:refs/heads/{_short_ref(ref)}")

    def identify(self, ref: str) -> str:
        return self._git("rev-parse", "--verify", ref).strip()

    def __repr__(self) -> str:
        return f"GitRepository(path={str(self._path)!r})"
