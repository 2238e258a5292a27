from __future__ import annotations

"""
Tree Model Cache.

Keeps built archive trees in memory and skips rebuilding when the archive's
on-disk modification time is unchanged since it was loaded. The cache is
owned by a session and bounded by a least-recently-used policy.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from zipprune.core.archive.codec import archive_mtime_ns
from zipprune.core.archive.tree_builder import build_tree
from zipprune.domain.constants import DEFAULT_CACHE_MAX_ENTRIES
from zipprune.domain.tree_models import TreeNode
from zipprune.infra.fs import archive_identity

logger = logging.getLogger(__name__)

TreeBuilder = Callable[[str], TreeNode]


@dataclass
class CachedTreeModel:
    """
    A built tree plus the archive mtime observed when it was built.

    Attributes:
        root: Root node of the tree.
        mtime_ns: Archive st_mtime_ns at build time.
    """
    root: TreeNode
    mtime_ns: int


class TreeModelCache:
    """
    LRU cache of archive trees keyed by absolute archive path.

    An entry is valid only while the archive's current st_mtime_ns equals the
    stored one; a stale entry is rebuilt and replaced on the next request.
    """

    def __init__(
            self,
            max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
            builder: Optional[TreeBuilder] = None,
    ) -> None:
        """
        Args:
            max_entries: Number of archives kept before evicting the least recently used.
            builder: Callable building a tree from an archive path.
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._builder: TreeBuilder = builder or build_tree
        self._entries: "OrderedDict[str, CachedTreeModel]" = OrderedDict()
        self._lock = threading.Lock()

    def get_or_build(self, archive_path: str) -> TreeNode:
        """
        Return the tree of an archive, rebuilding only when it changed on disk.

        Args:
            archive_path: Filesystem path of the archive.

        Returns:
            TreeNode: Cached or freshly built root.

        Raises:
            ArchiveOpenError: If the archive cannot be stat'ed or parsed.
        """
        key = archive_identity(archive_path)
        mtime_ns = archive_mtime_ns(key)

        with self._lock:
            cached = self._entries.get(key)
            if cached is not None and cached.mtime_ns == mtime_ns:
                self._entries.move_to_end(key)
                logger.debug(f"TreeModelCache: hit for {key}")
                return cached.root

        if cached is not None:
            logger.debug(f"TreeModelCache: stale entry for {key}, rebuilding")

        # Build outside the lock; building is I/O bound and may be slow
        root = self._builder(key)

        with self._lock:
            self._entries[key] = CachedTreeModel(root=root, mtime_ns=mtime_ns)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"TreeModelCache: evicted {evicted}")

        return root

    def invalidate(self, archive_path: str) -> bool:
        """Drop one archive's entry. Returns True if something was removed."""
        with self._lock:
            return self._entries.pop(archive_identity(archive_path), None) is not None

    def clear(self) -> None:
        """Drop every cached tree."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, archive_path: object) -> bool:
        if not isinstance(archive_path, str):
            return False
        with self._lock:
            return archive_identity(archive_path) in self._entries
