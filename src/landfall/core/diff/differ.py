"""
File-level diff between two directory trees.

Classifies every path found in either tree:

- only in the right tree (workdir) -> ADD
- only in the left tree (snapshot) -> DELETE
- in both with different bytes -> MODIFIED
- in both with identical bytes -> not reported

Directories are not reported on their own, and version-control metadata
directories (``.git``, ``.hg``) are never descended into.
"""

from __future__ import annotations

import filecmp
import logging
import os
from pathlib import Path

from landfall.core.destination.models import DiffEntry, DiffOperation

logger = logging.getLogger(__name__)

VCS_METADATA_DIRS = frozenset({".git", ".hg"})


class NestedRepositoryError(Exception):
    """A diff root lies inside an unrelated version-controlled tree."""

    def __init__(self, root: Path, repository_root: Path):
        super().__init__(
            f"{root} is inside the version-controlled tree at {repository_root}; "
            "cannot compute an unambiguous diff"
        )
        self.root = root
        self.repository_root = repository_root


def find_enclosing_repository(path: Path) -> Path | None:
    """Return the nearest ancestor of ``path`` that is a git working tree, if any."""
    for parent in path.resolve().parents:
        if (parent / ".git").exists():
            return parent
    return None


def list_files(root: Path) -> dict[str, Path]:
    """
    Map every file under ``root`` to its relative, '/'-separated path.

    Symlinks are reported as files and never followed.
    """
    files: dict[str, Path] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        base = Path(dirpath)
        kept: list[str] = []
        for name in dirnames:
            if name in VCS_METADATA_DIRS:
                continue
            if (base / name).is_symlink():
                filenames.append(name)
            else:
                kept.append(name)
        dirnames[:] = kept

        for name in filenames:
            full = base / name
            files[full.relative_to(root).as_posix()] = full
    return files


def _same_content(left: Path, right: Path) -> bool:
    if left.is_symlink() or right.is_symlink():
        return (
            left.is_symlink()
            and right.is_symlink()
            and os.readlink(left) == os.readlink(right)
        )
    return filecmp.cmp(left, right, shallow=False)


def diff_trees(left: Path, right: Path) -> list[DiffEntry]:
    """
    Compute the file-level diff needed to turn ``left`` into ``right``.

    Args:
        left: Baseline tree (the repository snapshot)
        right: Target tree (the transform working directory)

    Returns:
        Entries sorted by path, one per differing path

    Raises:
        NestedRepositoryError: If either root sits inside another repository
        OSError: If a tree cannot be read
    """
    for root in (left, right):
        enclosing = find_enclosing_repository(root)
        if enclosing is not None:
            raise NestedRepositoryError(root, enclosing)

    left_files = list_files(left)
    right_files = list_files(right)

    entries: list[DiffEntry] = []
    for path in sorted(left_files.keys() | right_files.keys()):
        if path not in left_files:
            entries.append(DiffEntry(path=path, operation=DiffOperation.ADD))
        elif path not in right_files:
            entries.append(DiffEntry(path=path, operation=DiffOperation.DELETE))
        elif not _same_content(left_files[path], right_files[path]):
            entries.append(DiffEntry(path=path, operation=DiffOperation.MODIFIED))

    logger.debug(
        "Diffed %s against %s: %d of %d paths differ",
        left,
        right,
        len(entries),
        len(left_files.keys() | right_files.keys()),
    )
    return entries
