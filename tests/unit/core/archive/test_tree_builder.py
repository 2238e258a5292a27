from __future__ import annotations

"""
Unit tests for the Archive Tree Builder.

Verifies:
1. Implicit directories are synthesized for every path prefix.
2. Explicit directory entries do not create duplicates.
3. File metadata is carried onto file nodes.
4. Legacy Shift-JIS names are recovered and split correctly.
5. Open failures surface as ArchiveOpenError.
"""

import gc
from datetime import datetime
from pathlib import Path

import pytest

from zipprune.core.archive.tree_builder import build_tree, ensure_directory
from zipprune.domain.errors import ArchiveOpenError
from zipprune.domain.tree_models import TreeNode, find_node

# -----------------------------------------------------------------------------
# STRUCTURE
# -----------------------------------------------------------------------------

def test_root_named_after_archive(sample_archive: Path) -> None:
    root = build_tree(str(sample_archive))
    assert root.is_root
    assert root.name == "sample.zip"
    assert root.path == ""


def test_implicit_directories_created(sample_archive: Path) -> None:
    root = build_tree(str(sample_archive))

    assert [c.name for c in root.children] == ["docs", "src"]
    src = find_node(root, "src/")
    assert src is not None and src.is_dir
    assert [f.name for f in src.files] == ["main.py", "util.py"]

    img = find_node(root, "docs/img/")
    assert img is not None
    assert [f.path for f in img.files] == ["docs/img/logo.png"]


def test_explicit_directory_not_duplicated(make_archive) -> None:
    archive = make_archive([
        ("a/b/c.txt", b"x"),
        ("a/", None),
        ("a/b/", None),
    ])
    root = build_tree(str(archive))

    assert len(root.children) == 1
    assert len(root.children[0].children) == 1
    assert root.count_descendants() == (2, 1)


def test_every_node_has_parent_except_root(sample_archive: Path) -> None:
    root = build_tree(str(sample_archive))
    for node in root.iter_subtree():
        if node is root:
            assert node.parent is None
        else:
            assert node.parent is not None
            assert node in node.parent.children or node in node.parent.files


def test_parent_link_does_not_keep_tree_alive(sample_archive: Path) -> None:
    root = build_tree(str(sample_archive))
    leaf = find_node(root, "docs/img/logo.png")
    del root
    gc.collect()
    # Only the leaf is referenced; its ancestors are reclaimed.
    assert leaf.parent is None


def test_dot_prefixed_entries_live_under_root(make_archive) -> None:
    archive = make_archive([("./", None), ("./a.txt", b"a")])
    root = build_tree(str(archive))
    assert root.children == []
    assert [f.path for f in root.files] == ["a.txt"]


def test_backslash_terminated_name_is_a_directory(make_archive) -> None:
    """A file entry stored as 'notes\\' canonicalizes to the directory 'notes/'."""
    archive = make_archive([(b"notes\\", b"memo"), ("keep.txt", b"k")])
    root = build_tree(str(archive))

    notes = find_node(root, "notes/")
    assert notes is not None and notes.is_dir
    assert [f.path for f in root.files] == ["keep.txt"]

# -----------------------------------------------------------------------------
# METADATA
# -----------------------------------------------------------------------------

def test_file_metadata(sample_archive: Path) -> None:
    root = build_tree(str(sample_archive))
    top = find_node(root, "top.txt")

    assert top.size == len(b"top level\n" * 100)
    assert top.compressed_size is not None and top.compressed_size < top.size
    assert top.modified == datetime(2006, 1, 2, 15, 4, 6)


def test_directories_carry_no_file_metadata(sample_archive: Path) -> None:
    root = build_tree(str(sample_archive))
    docs = find_node(root, "docs/")
    assert docs.size is None
    assert docs.modified is None

# -----------------------------------------------------------------------------
# LEGACY NAMES
# -----------------------------------------------------------------------------

def test_shift_jis_names_recovered(shift_jis_archive: Path) -> None:
    root = build_tree(str(shift_jis_archive))

    assert [c.name for c in root.children] == ["資料"]
    folder = find_node(root, "資料/")
    assert sorted(f.name for f in folder.files) == ["日本語.txt", "表.txt"]
    assert find_node(root, "資料/表.txt") is not None
    assert [f.name for f in root.files] == ["readme.txt"]

# -----------------------------------------------------------------------------
# HELPERS & ERRORS
# -----------------------------------------------------------------------------

def test_ensure_directory_is_idempotent() -> None:
    root = TreeNode(name="r", path="", is_dir=True)
    dir_map = {"": root}

    first = ensure_directory("x/y/", root, dir_map)
    second = ensure_directory("x/y", root, dir_map)

    assert first is second
    assert first.path == "x/y/"
    assert ensure_directory("", root, dir_map) is root
    assert ensure_directory("./", root, dir_map) is root


def test_missing_archive_raises(tmp_path: Path) -> None:
    with pytest.raises(ArchiveOpenError):
        build_tree(str(tmp_path / "absent.zip"))


def test_non_zip_raises(tmp_path: Path) -> None:
    bogus = tmp_path / "bogus.zip"
    bogus.write_bytes(b"this is not a zip file")
    with pytest.raises(ArchiveOpenError):
        build_tree(str(bogus))
