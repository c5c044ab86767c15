"""
Snapshot-diff reconciliation.

Example:
    >>> from landfall.core.diff import DiffReconciler
    >>> DiffReconciler().reconcile(workdir, repo)
"""

from landfall.core.diff.differ import NestedRepositoryError, diff_trees, list_files
from landfall.core.diff.reconciler import DiffReconciler

__all__ = [
    "DiffReconciler",
    "NestedRepositoryError",
    "diff_trees",
    "list_files",
]
