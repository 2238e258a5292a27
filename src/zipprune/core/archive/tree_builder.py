from __future__ import annotations

"""
Archive Tree Builder.

Turns the flat entry list of a ZIP container into a directory tree. Every
directory that prefixes an entry exists as a node, whether or not the
archive carries an explicit directory entry for it.
"""

import logging
import os
import zipfile
from typing import Dict

from zipprune.core.archive.codec import (
    entry_timestamp,
    is_directory_entry,
    iter_recovered_entries,
    open_archive,
)
from zipprune.core.archive.entry_path import is_directory_path, split_components, split_parent
from zipprune.domain.constants import ROOT_PATH, SEPARATOR
from zipprune.domain.tree_models import TreeNode

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def build_tree(archive_path: str) -> TreeNode:
    """
    Build the directory tree of an archive.

    The archive handle is opened and closed within this call.

    Args:
        archive_path: Filesystem path of the ZIP container.

    Returns:
        TreeNode: Fully populated root node ('' path, named after the archive).

    Raises:
        ArchiveOpenError: If the container cannot be opened or parsed.
    """
    logger.debug(f"Building archive tree for: {archive_path}")

    with open_archive(archive_path) as zf:
        root = _build_from_entries(zf, os.path.basename(archive_path))

    dirs, files = root.count_descendants()
    logger.info(f"Loaded '{os.path.basename(archive_path)}': {dirs} directories, {files} files")
    return root

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

def _build_from_entries(zf: zipfile.ZipFile, root_name: str) -> TreeNode:
    root = TreeNode(name=root_name, path=ROOT_PATH, is_dir=True)
    dir_map: Dict[str, TreeNode] = {ROOT_PATH: root}

    # Node paths are the canonical entry paths the rewriter and extractor match on.
    for path, info in iter_recovered_entries(zf):
        if path == ROOT_PATH:
            if not is_directory_entry(info):
                logger.warning(f"Skipping entry with empty name: {info.filename!r}")
            continue

        if is_directory_path(path):
            ensure_directory(path, root, dir_map)
            continue

        parent_path, base_name = split_parent(path)
        parent = ensure_directory(parent_path, root, dir_map)
        parent.add_file(TreeNode(
            name=base_name,
            path=path,
            is_dir=False,
            size=info.file_size,
            modified=entry_timestamp(info),
            compressed_size=info.compress_size,
            compress_type=info.compress_type,
        ))

    return root


def ensure_directory(dir_name: str, root: TreeNode, dir_map: Dict[str, TreeNode]) -> TreeNode:
    """
    Return the node for a directory path, creating missing ancestors on the way.

    Idempotent: a path that already has a node yields the existing node. An
    empty path or the '.' marker resolves to the root.

    Args:
        dir_name: Directory path, with or without trailing separator.
        root: Tree root.
        dir_map: Path-to-directory lookup, updated in place.

    Returns:
        TreeNode: The directory node for the full path.
    """
    parent = root
    current_path = ROOT_PATH

    for part in split_components(dir_name):
        current_path = current_path + part + SEPARATOR
        node = dir_map.get(current_path)
        if node is None:
            node = parent.add_directory(TreeNode(name=part, path=current_path, is_dir=True))
            dir_map[current_path] = node
        parent = node

    return parent
