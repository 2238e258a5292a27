from __future__ import annotations

"""
Deletion Flag Store.

Holds the marked-for-deletion state keyed by (archive identity, entry path).
The store is an explicit object owned by a session rather than process-wide
state. A foreground caller may edit flags while a background rewrite reads
them, so every access goes through a lock and readers take an immutable
snapshot.
"""

import logging
import threading
from types import MappingProxyType
from typing import Dict, List, Mapping

from zipprune.infra.fs import archive_identity

logger = logging.getLogger(__name__)


class DeletionFlagStore:
    """
    Thread-safe mapping (archive, entry path) -> marked flag.

    Absent keys read as False. Archive paths are normalized to absolute paths
    so that the same file reached through different relative paths shares flags.
    """

    def __init__(self) -> None:
        self._flags: Dict[str, Dict[str, bool]] = {}
        self._lock = threading.Lock()

    def get(self, archive_path: str, entry_path: str) -> bool:
        key = archive_identity(archive_path)
        with self._lock:
            return self._flags.get(key, {}).get(entry_path, False)

    def set(self, archive_path: str, entry_path: str, flag: bool) -> None:
        key = archive_identity(archive_path)
        with self._lock:
            self._flags.setdefault(key, {})[entry_path] = bool(flag)

    def set_many(self, archive_path: str, updates: Mapping[str, bool]) -> None:
        """Record several flags for one archive under a single lock acquisition."""
        key = archive_identity(archive_path)
        with self._lock:
            bucket = self._flags.setdefault(key, {})
            for entry_path, flag in updates.items():
                bucket[entry_path] = bool(flag)

    def snapshot(self, archive_path: str) -> Mapping[str, bool]:
        """
        Return a read-only copy of one archive's flags.

        Later edits do not show through, so a rewrite sees a consistent view
        from start to finish.
        """
        key = archive_identity(archive_path)
        with self._lock:
            return MappingProxyType(dict(self._flags.get(key, {})))

    def marked_paths(self, archive_path: str) -> List[str]:
        """Entry paths currently marked for one archive, in insertion order."""
        return [p for p, flag in self.snapshot(archive_path).items() if flag]

    def evict_archive(self, archive_path: str) -> int:
        """
        Drop every flag recorded for an archive.

        Returns:
            int: Number of flags removed.
        """
        key = archive_identity(archive_path)
        with self._lock:
            removed = len(self._flags.pop(key, {}))
        if removed:
            logger.debug(f"Evicted {removed} deletion flags for {key}")
        return removed

    def __len__(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._flags.values())
