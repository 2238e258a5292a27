from __future__ import annotations

"""
Archive Editing Session.

Facade through which a front end (CLI, GUI) drives the engine. The session
owns the deletion flag store and the tree cache, so their lifetime is that of
the session rather than the process. It also serializes rewrites: while an
archive is being rewritten, a second rewrite or any flag edit for that
archive is refused.
"""

import logging
import os
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Union

from zipprune.core.services import extractor, marking, rewriter
from zipprune.core.services.cache import TreeBuilder, TreeModelCache
from zipprune.core.services.flag_store import DeletionFlagStore
from zipprune.domain.constants import DEFAULT_CACHE_MAX_ENTRIES
from zipprune.domain.errors import RewriteInProgressError, ZipPruneError
from zipprune.domain.rewrite_models import RewriteResult
from zipprune.domain.tree_models import TreeNode
from zipprune.infra.fs import archive_identity, normalize_path

logger = logging.getLogger(__name__)

RewriteCallback = Callable[[Union[RewriteResult, BaseException]], None]


class ArchiveSession:
    """
    Stateful entry point for loading, marking, rewriting and extracting.

    Thread model: tree loading, marking and extraction run on the caller's
    thread. 'apply_deletions_async' runs the rewrite on a daemon thread and
    reports through a callback invoked on that thread; handing the result
    back to a UI thread is the caller's job.
    """

    def __init__(
            self,
            cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
            scratch_root: Optional[str] = None,
            builder: Optional[TreeBuilder] = None,
    ) -> None:
        self.flags = DeletionFlagStore()
        self.cache = TreeModelCache(max_entries=cache_max_entries, builder=builder)
        self.scratch_root = scratch_root or None
        self._rewriting: Set[str] = set()
        self._guard = threading.Lock()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ArchiveSession":
        """Create a session from a validated settings dictionary."""
        scratch = config.get("scratch_dir") or ""
        return cls(
            cache_max_entries=config.get("cache_max_entries", DEFAULT_CACHE_MAX_ENTRIES),
            scratch_root=normalize_path(scratch, scratch) if scratch else None,
        )

    # -------------------------------------------------------------------------
    # LOADING
    # -------------------------------------------------------------------------

    def get_or_build(self, archive_path: str) -> TreeNode:
        """
        Return the archive's tree with the session's flags applied.

        Raises:
            ArchiveOpenError: If the archive cannot be opened.
        """
        root = self.cache.get_or_build(archive_path)
        marking.apply_stored_flags(root, archive_path, self.flags)
        return root

    # -------------------------------------------------------------------------
    # MARKING
    # -------------------------------------------------------------------------

    def set_recursively(self, archive_path: str, node: TreeNode, flag: bool) -> int:
        """Mark or clear a node and its whole subtree."""
        with self._editable(archive_path):
            return marking.set_recursively(node, flag, archive_path, self.flags)

    def set_flag(self, archive_path: str, node: TreeNode, flag: bool) -> None:
        """Mark or clear one node only."""
        with self._editable(archive_path):
            marking.set_flag(node, flag, archive_path, self.flags)

    def marked_paths(self, archive_path: str) -> List[str]:
        return self.flags.marked_paths(archive_path)

    def plan_deletions(self, archive_path: str) -> List[str]:
        """Entries a rewrite would remove right now."""
        return rewriter.plan_deletions(archive_path, self.flags)

    # -------------------------------------------------------------------------
    # REWRITING
    # -------------------------------------------------------------------------

    def is_rewriting(self, archive_path: str) -> bool:
        with self._guard:
            return archive_identity(archive_path) in self._rewriting

    def apply_deletions(self, archive_path: str) -> RewriteResult:
        """
        Rewrite an archive without its marked entries, blocking until done.

        On success the archive's flags are evicted (the marked entries no
        longer exist) and its cached tree is dropped.

        Raises:
            RewriteInProgressError: If a rewrite of this archive is running.
            ArchiveOpenError: If the archive cannot be opened.
            RewriteError: If the rewrite fails.
        """
        key = self._acquire_rewrite(archive_path)
        try:
            result = rewriter.apply_deletions(key, self.flags, scratch_root=self.scratch_root)
        except ZipPruneError as e:
            logger.error(f"Rewrite of '{key}' failed: {e}")
            raise
        finally:
            self._release_rewrite(key)

        if result.changed:
            self.flags.evict_archive(key)
            self.cache.invalidate(key)
        return result

    def apply_deletions_async(
            self,
            archive_path: str,
            on_complete: RewriteCallback,
    ) -> threading.Thread:
        """
        Run 'apply_deletions' on a background daemon thread.

        The in-progress guard is taken before the thread starts, so a second
        call for the same archive fails immediately with
        RewriteInProgressError on the caller's thread.

        Args:
            archive_path: Archive to rewrite.
            on_complete: Receives the RewriteResult or the raised exception.

        Returns:
            threading.Thread: The started worker thread.
        """
        key = self._acquire_rewrite(archive_path)

        def _worker() -> None:
            try:
                result = rewriter.apply_deletions(key, self.flags, scratch_root=self.scratch_root)
            except Exception as e:
                logger.error(f"Background rewrite of '{key}' failed: {e}")
                self._release_rewrite(key)
                on_complete(e)
                return

            if result.changed:
                self.flags.evict_archive(key)
                self.cache.invalidate(key)
            self._release_rewrite(key)
            on_complete(result)

        thread = threading.Thread(target=_worker, name=f"rewrite-{os.path.basename(key)}", daemon=True)
        thread.start()
        return thread

    # -------------------------------------------------------------------------
    # EXTRACTION & LIFECYCLE
    # -------------------------------------------------------------------------

    def extract(self, archive_path: str, entry_path: str) -> str:
        """Extract one entry to scratch space and return its filesystem path."""
        return extractor.extract_entry(archive_path, entry_path, scratch_root=self.scratch_root)

    def close_archive(self, archive_path: str) -> None:
        """Forget everything the session holds for an archive."""
        self.flags.evict_archive(archive_path)
        self.cache.invalidate(archive_path)

    # -------------------------------------------------------------------------
    # PRIVATE HELPERS
    # -------------------------------------------------------------------------

    @contextmanager
    def _editable(self, archive_path: str) -> Iterator[None]:
        """
        Hold the rewrite guard for the duration of a flag edit.

        A rewrite cannot start (and snapshot the flags) halfway through an
        edit, and an edit cannot start while a rewrite runs.
        """
        key = archive_identity(archive_path)
        with self._guard:
            if key in self._rewriting:
                raise RewriteInProgressError(key)
            yield

    def _acquire_rewrite(self, archive_path: str) -> str:
        key = archive_identity(archive_path)
        with self._guard:
            if key in self._rewriting:
                raise RewriteInProgressError(key)
            self._rewriting.add(key)
        return key

    def _release_rewrite(self, key: str) -> None:
        with self._guard:
            self._rewriting.discard(key)
