"""
Destination repository handles.

The writer consumes repositories through the RepositoryHandle protocol.
Two adapters are provided: HgRepository (shells out to ``hg``) and
GitRepository (GitPython). RepositoryRegistry caches one checkout per URL.
"""

from landfall.core.repository.base import RepositoryHandle
from landfall.core.repository.git import GitRepository
from landfall.core.repository.hg import HG_ARCHIVAL_FILE, HgRepository
from landfall.core.repository.registry import RepositoryRegistry, cache_key

__all__ = [
    "GitRepository",
    "HG_ARCHIVAL_FILE",
    "HgRepository",
    "RepositoryHandle",
    "RepositoryRegistry",
    "cache_key",
]
