from __future__ import annotations

"""
Terminal Rendering of Archive Trees.

Presentation helpers for the CLI: ASCII tree drawing, per-directory file
listings and display formatting of sizes and timestamps. The engine itself
only exposes raw values; everything human-readable is produced here.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from zipprune.domain.tree_models import TreeNode

MARKED_SUFFIX = " [marked]"
TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"

# -----------------------------------------------------------------------------
# TREE DRAWING
# -----------------------------------------------------------------------------

def render_tree(root: TreeNode, show_files: bool = True) -> List[str]:
    """
    Render a tree as ASCII lines, directories first, each group sorted by name.

    Args:
        root: Root node (printed as the first line).
        show_files: Include files, not only directories.

    Returns:
        List[str]: Visual lines of the tree.
    """
    lines = [_label(root)]
    _render_level(root, lines, prefix="", show_files=show_files)
    return lines


def _render_level(node: TreeNode, lines: List[str], prefix: str, show_files: bool) -> None:
    entries = sorted(node.children, key=lambda n: n.name)
    if show_files:
        entries += sorted(node.files, key=lambda n: n.name)

    total = len(entries)
    for i, entry in enumerate(entries):
        is_last = i == total - 1
        connector = "└── " if is_last else "├── "
        lines.append(f"{prefix}{connector}{_label(entry)}")

        if entry.is_dir:
            new_prefix = prefix + ("    " if is_last else "│   ")
            _render_level(entry, lines, new_prefix, show_files)


def _label(node: TreeNode) -> str:
    name = node.name + ("/" if node.is_dir and not node.is_root else "")
    return name + (MARKED_SUFFIX if node.marked else "")

# -----------------------------------------------------------------------------
# FILE LISTING
# -----------------------------------------------------------------------------

def format_size_kb(size: Optional[int]) -> str:
    """
    Format a byte count as kilobytes with thousands separators.

    Sizes below 0.1 KB display as '0.1 KB'; one decimal digit is shown
    (truncated) when the fractional part is noticeable.
    """
    if size is None:
        return ""
    kb = size / 1024.0
    if kb < 0.1:
        return "0.1 KB"

    whole = int(kb)
    fraction = kb - whole
    text = f"{whole:,}"
    if fraction > 0.01:
        text += f".{int(fraction * 10)}"
    return f"{text} KB"


def format_timestamp(value: Optional[datetime]) -> str:
    return value.strftime(TIMESTAMP_FORMAT) if value else ""


def render_file_list(directory: TreeNode) -> List[str]:
    """Tabulate the files held directly by one directory."""
    rows = []
    for f in directory.files:
        mark = "[x]" if f.marked else "[ ]"
        rows.append((mark, f.name, format_size_kb(f.size), format_timestamp(f.modified)))

    if not rows:
        return ["(no files)"]

    name_w = max(len(r[1]) for r in rows)
    size_w = max(len(r[2]) for r in rows)
    return [f"{m} {n:<{name_w}}  {s:>{size_w}}  {t}" for m, n, s, t in rows]

# -----------------------------------------------------------------------------
# RAW DATA (JSON)
# -----------------------------------------------------------------------------

def node_to_dict(node: TreeNode) -> Dict[str, Any]:
    """Serialize a node and its subtree to plain JSON-compatible data."""
    data: Dict[str, Any] = {
        "name": node.name,
        "path": node.path,
        "is_dir": node.is_dir,
        "marked": node.marked,
    }
    if node.is_dir:
        data["children"] = [node_to_dict(c) for c in node.children]
        data["files"] = [node_to_dict(f) for f in node.files]
    else:
        data["size"] = node.size
        data["compressed_size"] = node.compressed_size
        data["modified"] = node.modified.isoformat() if node.modified else None
    return data
