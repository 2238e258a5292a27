from __future__ import annotations

"""
Entry Path Model.

Canonical splitting and joining rules for paths inside an archive. The tree
builder, the rewriter and the extractor all go through these helpers so that
a path recorded against a tree node always matches the same entry when the
archive is read again.

Canonical form: '/' separators only, no empty or '.' components, directories
end with '/', the archive root is ''.
"""

from typing import List, Tuple

from zipprune.domain.constants import CURRENT_DIR_MARKER, ROOT_PATH, SEPARATOR


def split_components(name: str) -> List[str]:
    """Split a recovered name into its meaningful components."""
    normalized = name.replace("\\", SEPARATOR)
    return [p for p in normalized.split(SEPARATOR) if p and p != CURRENT_DIR_MARKER]


def canonical_entry_path(name: str, is_dir: bool = False) -> str:
    """
    Canonicalize a recovered entry name.

    Args:
        name: Recovered Unicode name as stored in the archive.
        is_dir: Whether the entry denotes a directory. A trailing separator on
            'name' also implies a directory.

    Returns:
        str: Canonical entry path ('' for the root).
    """
    normalized = name.replace("\\", SEPARATOR)
    is_dir = is_dir or normalized.endswith(SEPARATOR)
    parts = split_components(normalized)
    if not parts:
        return ROOT_PATH
    joined = SEPARATOR.join(parts)
    return joined + SEPARATOR if is_dir else joined


def directory_path(components: List[str]) -> str:
    """Join directory components into a canonical directory path."""
    if not components:
        return ROOT_PATH
    return SEPARATOR.join(components) + SEPARATOR


def split_parent(name: str) -> Tuple[str, str]:
    """
    Split a file name into its parent directory path and base name.

    A name without a directory portion (or with only the '.' marker) has the
    root as its parent.

    Returns:
        Tuple[str, str]: (canonical parent directory path, base name).
    """
    parts = split_components(name)
    if not parts:
        return ROOT_PATH, ""
    return directory_path(parts[:-1]), parts[-1]


def is_directory_path(path: str) -> bool:
    return path == ROOT_PATH or path.endswith(SEPARATOR)
