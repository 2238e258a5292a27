from __future__ import annotations

"""
Unit tests for Deletion Flag Propagation.

Verifies recursive marking counts and coverage, single-node toggling that
leaves ancestors alone, and re-application of stored flags to a fresh tree.
"""

from pathlib import Path

from zipprune.core.archive.tree_builder import build_tree
from zipprune.core.services.flag_store import DeletionFlagStore
from zipprune.core.services.marking import apply_stored_flags, set_flag, set_recursively
from zipprune.domain.tree_models import find_node


def test_set_recursively_marks_whole_subtree(sample_archive: Path) -> None:
    archive = str(sample_archive)
    root = build_tree(archive)
    store = DeletionFlagStore()
    docs = find_node(root, "docs/")

    count = set_recursively(docs, True, archive, store)

    # docs/, docs/readme.txt, docs/img/, docs/img/logo.png
    assert count == 4
    assert all(n.marked for n in docs.iter_subtree())
    assert store.get(archive, "docs/img/logo.png") is True
    assert find_node(root, "src/main.py").marked is False
    assert root.marked is False


def test_set_recursively_clear(sample_archive: Path) -> None:
    archive = str(sample_archive)
    root = build_tree(archive)
    store = DeletionFlagStore()

    set_recursively(root, True, archive, store)
    set_recursively(find_node(root, "src/"), False, archive, store)

    assert find_node(root, "src/util.py").marked is False
    assert store.get(archive, "src/util.py") is False
    assert find_node(root, "top.txt").marked is True


def test_set_recursively_count_matches_descendants(sample_archive: Path) -> None:
    archive = str(sample_archive)
    root = build_tree(archive)
    dirs, files = root.count_descendants()
    assert set_recursively(root, True, archive, DeletionFlagStore()) == dirs + files + 1


def test_set_flag_leaves_ancestors_untouched(sample_archive: Path) -> None:
    archive = str(sample_archive)
    root = build_tree(archive)
    store = DeletionFlagStore()
    src = find_node(root, "src/")

    set_recursively(src, True, archive, store)
    set_flag(find_node(root, "src/main.py"), False, archive, store)

    assert src.marked is True
    assert store.get(archive, "src/") is True
    assert store.get(archive, "src/main.py") is False
    assert store.get(archive, "src/util.py") is True


def test_apply_stored_flags_to_rebuilt_tree(sample_archive: Path) -> None:
    archive = str(sample_archive)
    store = DeletionFlagStore()
    first = build_tree(archive)
    set_recursively(find_node(first, "docs/img/"), True, archive, store)

    fresh = build_tree(archive)
    marked = apply_stored_flags(fresh, archive, store)

    assert marked == 2
    assert find_node(fresh, "docs/img/logo.png").marked is True
    assert find_node(fresh, "docs/readme.txt").marked is False
