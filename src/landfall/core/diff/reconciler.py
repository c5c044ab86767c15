"""
Apply a working directory onto a repository checkout.

Neither Mercurial nor git can be told "make the working tree look like this
directory", so the reconciler gets there indirectly:

1. archive the checkout into a temporary snapshot next to the workdir
2. diff the snapshot against the workdir
3. copy + add new files, overwrite modified files, remove deleted files

The snapshot directory is removed on every exit path.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from landfall.core.destination.models import DiffEntry, DiffOperation
from landfall.core.diff.differ import NestedRepositoryError, diff_trees
from landfall.core.errors import CommandError, SyncError
from landfall.core.repository.base import RepositoryHandle

logger = logging.getLogger(__name__)

_APPLY_ORDER = (DiffOperation.ADD, DiffOperation.MODIFIED, DiffOperation.DELETE)

MISSING_FILE_MARKER = "No such file or directory"


class DiffReconciler:
    """
    Reconciles a checkout with a working directory.

    Example:
        >>> reconciler = DiffReconciler()
        >>> entries = reconciler.reconcile(Path("/tmp/workdir"), repo)
        >>> print(f"Applied {len(entries)} changes")
    """

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def reconcile(self, workdir: Path, repo: RepositoryHandle) -> list[DiffEntry]:
        """
        Make ``repo``'s checkout match the files in ``workdir``.

        Args:
            workdir: Directory holding the desired tree
            repo: Checkout to modify in place

        Returns:
            The diff entries that were applied, in application order

        Raises:
            SyncError: EXECUTION if the diff or a version-control command
                fails, IO if a filesystem operation fails. The checkout is left
                partially applied; no rollback is attempted.
        """
        workdir = workdir.resolve()
        try:
            snapshot_dir = Path(tempfile.mkdtemp(prefix="snapshot", dir=workdir.parent))
        except OSError as e:
            raise SyncError.io(f"Cannot create snapshot directory next to {workdir}: {e}") from e

        try:
            repo.snapshot(snapshot_dir)
            try:
                entries = diff_trees(snapshot_dir, workdir)
            except NestedRepositoryError as e:
                raise SyncError.execution(f"Error computing file diff: {e}") from e
            except OSError as e:
                raise SyncError.io(f"Error computing file diff: {e}") from e

            ordered = [
                entry
                for operation in _APPLY_ORDER
                for entry in entries
                if entry.operation == operation
            ]
            for entry in ordered:
                self._apply(entry, workdir, repo)
        except BaseException:
            shutil.rmtree(snapshot_dir, ignore_errors=True)
            raise

        try:
            shutil.rmtree(snapshot_dir)
        except OSError as e:
            raise SyncError.io(f"Cannot remove snapshot directory {snapshot_dir}: {e}") from e
        return ordered

    def _apply(self, entry: DiffEntry, workdir: Path, repo: RepositoryHandle) -> None:
        source = workdir / entry.path
        target = repo.path / entry.path

        if entry.operation == DiffOperation.ADD:
            self.log.debug("Adding %s", entry.path)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, target, follow_symlinks=False)
            except OSError as e:
                raise SyncError.io(f"Cannot copy {source} to {target}: {e}") from e
            repo.add(entry.path)

        elif entry.operation == DiffOperation.MODIFIED:
            self.log.debug("Overwriting %s", entry.path)
            try:
                if target.is_symlink() or source.is_symlink():
                    target.unlink()
                    shutil.copy2(source, target, follow_symlinks=False)
                else:
                    shutil.copyfile(source, target)
            except OSError as e:
                raise SyncError.io(f"Cannot overwrite {target} with {source}: {e}") from e

        else:
            self.log.debug("Removing %s", entry.path)
            try:
                repo.remove(entry.path)
            except CommandError as e:
                if not self._is_missing_artifact(entry.path, e, repo):
                    raise
                self.log.debug("Ignoring missing snapshot artifact %s", entry.path)

    @staticmethod
    def _is_missing_artifact(path: str, error: CommandError, repo: RepositoryHandle) -> bool:
        if path not in repo.snapshot_artifacts:
            return False
        return f"{path}: {MISSING_FILE_MARKER}" in str(error)
