"""
Pytest configuration and shared fixtures.

Provides an in-memory repository handle, sample transform results, and
config isolation used across the test suite.
"""

from __future__ import annotations

import shutil
from datetime import datetime, timezone
from pathlib import Path

import pytest

from landfall.core.config import clear_cache
from landfall.core.destination.models import OriginChange, OriginRevision, TransformResult
from landfall.core.errors import CommandError, UnresolvedReferenceError


# ==============================================================================
# Fake Repository
# ==============================================================================


class FakeRepository:
    """
    RepositoryHandle keeping its history in memory.

    Files live in a real directory so the reconciler can copy into it, but
    tracking, commits and pushes are only recorded. ``calls`` lists every
    operation in order as ``(name, *args)`` tuples.
    """

    tip_ref = "tip"

    def __init__(
        self,
        path: Path,
        *,
        artifacts: frozenset[str] = frozenset(),
        missing_refs: tuple[str, ...] = (),
    ) -> None:
        path.mkdir(parents=True, exist_ok=True)
        self._path = path
        self.snapshot_artifacts = frozenset(artifacts)
        self.missing_refs = set(missing_refs)
        self.tracked: set[str] = set()
        self.calls: list[tuple] = []
        self.commits: list[dict[str, str]] = []
        self.pushed: list[tuple[str, str]] = []
        self.default_path: str | None = None
        self.failures: dict[str, Exception] = {}

    @property
    def path(self) -> Path:
        return self._path

    def seed(self, files: dict[str, str]) -> None:
        """Write and track ``files`` as if they were already committed."""
        for rel, content in files.items():
            target = self._path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
            self.tracked.add(rel)

    def fail_on(self, operation: str, error: Exception) -> None:
        self.failures[operation] = error

    def _record(self, name: str, *args: str) -> None:
        self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]

    def pull(self, url: str, ref: str) -> None:
        self._record("pull", url, ref)
        if ref in self.missing_refs:
            raise UnresolvedReferenceError(
                f"Reference '{ref}' cannot be resolved in {url}",
                stderr=f"abort: unknown revision '{ref}'",
            )

    def clean_update(self, ref: str) -> None:
        self._record("clean_update", ref)

    def snapshot(self, dest: Path) -> None:
        self._record("snapshot", str(dest))
        for rel in self.tracked:
            target = dest / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self._path / rel, target, follow_symlinks=False)
        for artifact in self.snapshot_artifacts:
            (dest / artifact).write_text("repo: fake\nnode: 0\n")

    def set_default_path(self, url: str) -> None:
        self._record("set_default_path", url)
        self.default_path = url

    def add(self, path: str) -> None:
        self._record("add", path)
        self.tracked.add(path)

    def remove(self, path: str) -> None:
        self._record("remove", path)
        if path not in self.tracked:
            raise CommandError(
                f"Fake command failed: remove {path}",
                command=["fake", "remove", path],
                stderr=f"{path}: No such file or directory",
            )
        self.tracked.discard(path)
        (self._path / path).unlink()

    def commit(self, author: str, date: str, message: str) -> None:
        self._record("commit", author, date, message)
        self.commits.append({"author": author, "date": date, "message": message})

    def push(self, url: str, ref: str) -> None:
        self._record("push", url, ref)
        self.pushed.append((url, ref))

    def identify(self, ref: str) -> str:
        self._record("identify", ref)
        return f"{len(self.commits):040x}"

    def run(self, *args: str) -> str:
        self._record("run", *args)
        return ""


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Provide an empty transform working directory."""
    path = tmp_path / "workdir"
    path.mkdir()
    return path


@pytest.fixture
def fake_repo(tmp_path: Path) -> FakeRepository:
    """Provide a fake handle without snapshot artifacts (git-like)."""
    return FakeRepository(tmp_path / "checkout")


@pytest.fixture
def fake_hg_repo(tmp_path: Path) -> FakeRepository:
    """Provide a fake handle whose snapshots leave an archival file (hg-like)."""
    return FakeRepository(tmp_path / "checkout", artifacts=frozenset({".hg_archival.txt"}))


def _write_tree(root: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)


@pytest.fixture
def make_tree():
    """Provide a helper creating ``files`` (relative path -> content) under a root."""
    return _write_tree


# ==============================================================================
# Sample Data Fixtures
# ==============================================================================


@pytest.fixture
def commit_time() -> datetime:
    return datetime(2024, 3, 1, 12, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_transform(workdir: Path, commit_time: datetime) -> TransformResult:
    """Provide a transform result with an origin revision and two origin changes."""
    return TransformResult(
        path=workdir,
        author="Jane Doe <jane@example.com>",
        timestamp=commit_time,
        summary="Import upstream changes",
        current_revision=OriginRevision(label_name="GitOrigin-RevId", value="4f2c9e1a"),
        changes=(
            OriginChange(ref="1111aaaa", author="Jane Doe <jane@example.com>"),
            OriginChange(ref="4f2c9e1a", author="Jane Doe <jane@example.com>"),
        ),
    )


# ==============================================================================
# Config Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep user config, caches and LANDFALL_* variables out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    for name in (
        "LANDFALL_FORCE",
        "LANDFALL_VCS",
        "LANDFALL_CACHE_DIR",
        "LANDFALL_CREDENTIAL_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_cache()
    yield
    clear_cache()
