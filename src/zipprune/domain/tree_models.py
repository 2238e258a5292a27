from __future__ import annotations

"""
Archive Tree Structure Data Models.

Provides the node type used to represent the virtual directory hierarchy of a
ZIP container. Directories own their child directories and files; the parent
relation is a non-owning weak reference so a discarded tree is reclaimed
without manual cycle breaking.
"""

import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from zipprune.domain.constants import ROOT_PATH, SEPARATOR

# -----------------------------------------------------------------------------
# STRUCTURAL COMPONENTS
# -----------------------------------------------------------------------------

@dataclass(eq=False)
class TreeNode:
    """
    A directory or file inside an archive.

    Attributes:
        name: Last path component (the archive file name for the root).
        path: Canonical entry path; directories end with '/', root is ''.
        is_dir: Directory flag. Directories never carry size or timestamp.
        size: Uncompressed size in bytes (files only).
        modified: Entry timestamp from archive metadata (files only).
        compressed_size: Stored size in bytes (files only).
        compress_type: ZIP compression method identifier (files only).
        marked: Marked-for-deletion flag.
        children: Child directories in first-encounter order.
        files: Files held directly by this directory.
    """
    name: str
    path: str
    is_dir: bool
    size: Optional[int] = None
    modified: Optional[datetime] = None
    compressed_size: Optional[int] = None
    compress_type: Optional[int] = None
    marked: bool = False
    children: List["TreeNode"] = field(default_factory=list, repr=False)
    files: List["TreeNode"] = field(default_factory=list, repr=False)
    _parent_ref: Optional["weakref.ReferenceType[TreeNode]"] = field(
        default=None, repr=False, compare=False
    )

    @property
    def parent(self) -> Optional["TreeNode"]:
        """Owning directory, or None for the root (or once the tree is gone)."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def is_root(self) -> bool:
        return self.is_dir and self.path == ROOT_PATH

    def add_directory(self, node: "TreeNode") -> "TreeNode":
        node._parent_ref = weakref.ref(self)
        self.children.append(node)
        return node

    def add_file(self, node: "TreeNode") -> "TreeNode":
        node._parent_ref = weakref.ref(self)
        self.files.append(node)
        return node

    def iter_subtree(self) -> Iterator["TreeNode"]:
        """Yield this node and every descendant, depth-first, pre-order."""
        yield self
        for f in self.files:
            yield f
        for child in self.children:
            yield from child.iter_subtree()

    def count_descendants(self) -> Tuple[int, int]:
        """
        Count descendants below this node.

        Returns:
            Tuple[int, int]: (directories, files), excluding this node.
        """
        dirs = 0
        files = 0
        for node in self.iter_subtree():
            if node is self:
                continue
            if node.is_dir:
                dirs += 1
            else:
                files += 1
        return dirs, files


# -----------------------------------------------------------------------------
# LOOKUP
# -----------------------------------------------------------------------------

def find_node(root: TreeNode, entry_path: str) -> Optional[TreeNode]:
    """
    Resolve a canonical entry path against a built tree.

    A trailing separator restricts the match to directories; without it a
    file is preferred, then a directory of the same name.

    Args:
        root: Root node returned by the tree builder.
        entry_path: Canonical entry path.

    Returns:
        Optional[TreeNode]: The matching node or None.
    """
    if entry_path == ROOT_PATH:
        return root

    wants_dir = entry_path.endswith(SEPARATOR)
    parts = [p for p in entry_path.split(SEPARATOR) if p]
    current = root

    for part in parts[:-1]:
        nxt = _child_dir(current, part)
        if nxt is None:
            return None
        current = nxt

    last = parts[-1]
    if not wants_dir:
        for f in current.files:
            if f.name == last:
                return f
    return _child_dir(current, last)


def _child_dir(node: TreeNode, name: str) -> Optional[TreeNode]:
    for child in node.children:
        if child.name == name:
            return child
    return None
