from __future__ import annotations

"""
Deletion Flag Propagation.

Applies marked-for-deletion flags to tree nodes and records them in the flag
store. A directory's own flag is the value of the last bulk action applied to
it, not an aggregate of its descendants: toggling a single file afterwards
leaves its ancestors untouched.
"""

import logging
from typing import Dict

from zipprune.core.services.flag_store import DeletionFlagStore
from zipprune.domain.tree_models import TreeNode

logger = logging.getLogger(__name__)


def set_recursively(
        node: TreeNode,
        flag: bool,
        archive_path: str,
        store: DeletionFlagStore,
) -> int:
    """
    Set a flag on a node and its whole subtree, depth-first, pre-order.

    Args:
        node: Directory (or file) to start from.
        flag: Value to apply.
        archive_path: Identity of the archive the tree belongs to.
        store: Flag store receiving every update.

    Returns:
        int: Number of nodes updated (N files + M directories + 1).
    """
    updates: Dict[str, bool] = {}
    _propagate(node, bool(flag), updates)
    store.set_many(archive_path, updates)

    logger.debug(f"{'Marked' if flag else 'Cleared'} {len(updates)} entries under '{node.path or '/'}'")
    return len(updates)


def set_flag(node: TreeNode, flag: bool, archive_path: str, store: DeletionFlagStore) -> None:
    """Set the flag of a single node without touching ancestors or descendants."""
    node.marked = bool(flag)
    store.set(archive_path, node.path, node.marked)


def apply_stored_flags(root: TreeNode, archive_path: str, store: DeletionFlagStore) -> int:
    """
    Copy the store's current values onto a tree.

    Used after a tree is (re)built so that it reflects flags recorded earlier
    in the session.

    Returns:
        int: Number of nodes that ended up marked.
    """
    flags = store.snapshot(archive_path)
    marked = 0
    for node in root.iter_subtree():
        node.marked = flags.get(node.path, False)
        if node.marked:
            marked += 1
    return marked


def _propagate(node: TreeNode, flag: bool, updates: Dict[str, bool]) -> None:
    node.marked = flag
    updates[node.path] = flag

    for f in node.files:
        f.marked = flag
        updates[f.path] = flag

    for child in node.children:
        _propagate(child, flag, updates)
