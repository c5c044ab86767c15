"""
Tests for HgRepository.

Command construction is checked with subprocess.run patched; the end-to-end
tests run the real hg binary and are skipped when it is missing.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from landfall.core.destination.writer import SyncWriter
from landfall.core.errors import CommandError, EmptyChangeError, UnresolvedReferenceError
from landfall.core.repository import HG_ARCHIVAL_FILE, HgRepository
from landfall.core.repository.hg import NULL_REVISION

requires_hg = pytest.mark.skipif(shutil.which("hg") is None, reason="hg not installed")


def _completed(returncode: int = 0, stdout: str = "", stderr: str = ""):
    return subprocess.CompletedProcess(
        args=["hg"], returncode=returncode, stdout=stdout, stderr=stderr
    )


# ==============================================================================
# Command Construction Tests
# ==============================================================================


class TestHgCommands:
    """Tests for the hg command lines, with subprocess.run patched."""

    @pytest.fixture
    def mock_run(self):
        with patch("landfall.core.repository.hg.subprocess.run") as run:
            run.return_value = _completed()
            yield run

    def _commands(self, mock_run) -> list[list[str]]:
        return [call.args[0] for call in mock_run.call_args_list]

    def test_runs_in_checkout_with_hgplain(self, mock_run, tmp_path: Path) -> None:
        repo = HgRepository(tmp_path, hg_binary="/opt/hg", timeout=30, env={"HGUSER": "x"})

        repo.run("status")

        args, kwargs = mock_run.call_args
        assert args[0] == ["/opt/hg", "status"]
        assert kwargs["cwd"] == tmp_path
        assert kwargs["timeout"] == 30
        assert kwargs["env"]["HGPLAIN"] == "1"
        assert kwargs["env"]["HGUSER"] == "x"

    def test_pull_and_push(self, mock_run, tmp_path: Path) -> None:
        repo = HgRepository(tmp_path)

        repo.pull("https://hg.example.com/project", "default")
        repo.push("https://hg.example.com/project", "stable")

        assert self._commands(mock_run) == [
            ["hg", "pull", "--rev", "default", "https://hg.example.com/project"],
            ["hg", "push", "--rev", "stable", "https://hg.example.com/project"],
        ]

    def test_pull_unknown_revision(self, mock_run, tmp_path: Path) -> None:
        mock_run.return_value = _completed(1, stderr="abort: unknown revision 'nope'\n")

        with pytest.raises(UnresolvedReferenceError) as exc_info:
            HgRepository(tmp_path).pull("https://hg.example.com/project", "nope")

        assert exc_info.value.stderr == "abort: unknown revision 'nope'"

    def test_pull_other_failure(self, mock_run, tmp_path: Path) -> None:
        mock_run.return_value = _completed(255, stderr="abort: HTTP Error 500\n")

        with pytest.raises(CommandError) as exc_info:
            HgRepository(tmp_path).pull("https://hg.example.com/project", "default")

        assert not isinstance(exc_info.value, UnresolvedReferenceError)

    def test_clean_update_strips_drafts(self, mock_run, tmp_path: Path) -> None:
        mock_run.side_effect = [
            _completed(stdout="a" * 40 + "\n"),
            _completed(),
            _completed(),
            _completed(),
        ]

        HgRepository(tmp_path).clean_update("default")

        commands = self._commands(mock_run)
        assert commands[1][-4:] == ["--force", "--no-backup", "-r", "draft()"]
        assert commands[2] == ["hg", "update", "--clean", "-r", "default"]
        assert commands[3] == ["hg", "--config", "extensions.purge=", "purge", "--all"]

    def test_clean_update_unknown_ref_goes_to_null(self, mock_run, tmp_path: Path) -> None:
        mock_run.side_effect = [
            _completed(),
            _completed(255, stderr="abort: unknown revision 'default'!\n"),
            _completed(),
            _completed(),
        ]

        HgRepository(tmp_path).clean_update("default")

        assert self._commands(mock_run)[2] == ["hg", "update", "--clean", "-r", "null"]

    def test_snapshot_skips_empty_repository(self, mock_run, tmp_path: Path) -> None:
        mock_run.return_value = _completed(stdout=NULL_REVISION + "\n")

        HgRepository(tmp_path).snapshot(tmp_path / "snap")

        assert self._commands(mock_run) == [
            ["hg", "identify", "--debug", "--id", "-r", "."]
        ]

    def test_commit(self, mock_run, tmp_path: Path) -> None:
        HgRepository(tmp_path).commit(
            "Jane <j@example.com>", "Fri, 01 Mar 2024 12:30:00 +0000", "msg"
        )

        assert self._commands(mock_run) == [
            [
                "hg",
                "commit",
                "--user",
                "Jane <j@example.com>",
                "--date",
                "Fri, 01 Mar 2024 12:30:00 +0000",
                "-m",
                "msg",
            ]
        ]

    def test_set_default_path(self, tmp_path: Path) -> None:
        (tmp_path / ".hg").mkdir()

        HgRepository(tmp_path).set_default_path("https://hg.example.com/project")

        assert (tmp_path / ".hg" / "hgrc").read_text() == (
            "[paths]\ndefault = https://hg.example.com/project\n"
        )

    def test_timeout(self, mock_run, tmp_path: Path) -> None:
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="hg pull", timeout=1)

        with pytest.raises(CommandError, match="timed out"):
            HgRepository(tmp_path, timeout=1).run("pull")

    def test_binary_missing(self, mock_run, tmp_path: Path) -> None:
        mock_run.side_effect = FileNotFoundError("hg")

        with pytest.raises(CommandError, match="not found"):
            HgRepository(tmp_path).run("status")


# ==============================================================================
# Real Mercurial Tests
# ==============================================================================


def _hg(*args: str, cwd: Path) -> str:
    env = {**os.environ, "HGPLAIN": "1"}
    result = subprocess.run(
        ["hg", *args], cwd=cwd, capture_output=True, text=True, check=True, env=env
    )
    return result.stdout.strip()


@pytest.fixture
def hg_remote(tmp_path: Path) -> Path:
    """Create an hg repository holding a.txt and c.txt on the default branch."""
    remote = tmp_path / "remote"
    remote.mkdir()
    _hg("init", cwd=remote)
    (remote / "a.txt").write_text("old")
    (remote / "c.txt").write_text("x")
    _hg("add", "a.txt", "c.txt", cwd=remote)
    _hg("commit", "-u", "Test User <test@example.com>", "-m", "Initial commit", cwd=remote)
    return remote


@pytest.mark.integration
@requires_hg
class TestHgWrite:
    """End-to-end writes into a real Mercurial repository."""

    def test_end_to_end(
        self, hg_remote: Path, tmp_path: Path, workdir: Path, make_tree, sample_transform
    ) -> None:
        make_tree(workdir, {"a.txt": "new", "b.txt": "added"})
        checkout = HgRepository(tmp_path / "cache")
        checkout.init()
        url = f"file://{hg_remote}"

        writer = SyncWriter(checkout, url, "default", "default")
        effect = writer.write(sample_transform)

        assert effect.destination_ref.id == _hg("log", "-r", "tip", "-T", "{node}", cwd=hg_remote)
        assert _hg("files", "-r", "tip", cwd=hg_remote).splitlines() == ["a.txt", "b.txt"]
        assert _hg("cat", "-r", "tip", "a.txt", cwd=hg_remote) == "new"
        assert _hg("log", "-r", "tip", "-T", "{author}", cwd=hg_remote) == (
            "Jane Doe <jane@example.com>"
        )
        description = _hg("log", "-r", "tip", "-T", "{desc}", cwd=hg_remote)
        assert description.splitlines()[-1] == "GitOrigin-RevId: 4f2c9e1a"
        assert HG_ARCHIVAL_FILE in [entry.path for entry in writer.applied]
        assert not (checkout.path / HG_ARCHIVAL_FILE).exists()
        assert f"default = {url}" in (checkout.path / ".hg" / "hgrc").read_text()

    def test_rewrite_is_empty(
        self, hg_remote: Path, tmp_path: Path, workdir: Path, make_tree, sample_transform
    ) -> None:
        make_tree(workdir, {"a.txt": "new", "b.txt": "added"})
        checkout = HgRepository(tmp_path / "cache")
        checkout.init()
        url = f"file://{hg_remote}"
        SyncWriter(checkout, url, "default", "default").write(sample_transform)

        with pytest.raises(EmptyChangeError):
            SyncWriter(checkout, url, "default", "default").write(sample_transform)

    def test_unpushed_commit_is_discarded(
        self, hg_remote: Path, tmp_path: Path, workdir: Path, make_tree, sample_transform
    ) -> None:
        checkout = HgRepository(tmp_path / "cache")
        checkout.init()
        url = f"file://{hg_remote}"
        checkout.pull(url, "default")
        checkout.clean_update("default")
        (checkout.path / "stale.txt").write_text("stale")
        checkout.add("stale.txt")
        checkout.commit("Someone <s@example.com>", "Fri, 01 Mar 2024 12:30:00 +0000", "stale")

        make_tree(workdir, {"a.txt": "new", "c.txt": "x"})
        SyncWriter(checkout, url, "default", "default").write(sample_transform)

        assert _hg("files", "-r", "tip", cwd=hg_remote).splitlines() == ["a.txt", "c.txt"]
        assert _hg("log", "-T", "{desc|firstline}\n", cwd=hg_remote).splitlines() == [
            "Import upstream changes",
            "Initial commit",
        ]
