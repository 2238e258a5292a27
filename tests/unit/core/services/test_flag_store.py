from __future__ import annotations

"""
Unit tests for the Deletion Flag Store.

Verifies default values, archive identity normalization, snapshot isolation,
eviction and concurrent writers.
"""

import os
import threading
from pathlib import Path

import pytest

from zipprune.core.services.flag_store import DeletionFlagStore


def test_absent_flag_reads_false() -> None:
    store = DeletionFlagStore()
    assert store.get("/tmp/a.zip", "x.txt") is False


def test_set_and_get(tmp_path: Path) -> None:
    store = DeletionFlagStore()
    archive = str(tmp_path / "a.zip")
    store.set(archive, "x.txt", True)

    assert store.get(archive, "x.txt") is True
    assert store.marked_paths(archive) == ["x.txt"]


def test_relative_and_absolute_paths_share_flags(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    store = DeletionFlagStore()
    store.set("a.zip", "x.txt", True)
    assert store.get(os.path.join(str(tmp_path), "a.zip"), "x.txt") is True


def test_flags_are_scoped_per_archive() -> None:
    store = DeletionFlagStore()
    store.set("/tmp/a.zip", "x.txt", True)
    assert store.get("/tmp/b.zip", "x.txt") is False


def test_snapshot_is_isolated_from_later_edits() -> None:
    store = DeletionFlagStore()
    store.set("/tmp/a.zip", "x.txt", True)
    snap = store.snapshot("/tmp/a.zip")

    store.set("/tmp/a.zip", "y.txt", True)
    store.set("/tmp/a.zip", "x.txt", False)

    assert dict(snap) == {"x.txt": True}
    with pytest.raises(TypeError):
        snap["z"] = True  # type: ignore[index]


def test_marked_paths_excludes_cleared() -> None:
    store = DeletionFlagStore()
    store.set_many("/tmp/a.zip", {"a": True, "b": False, "c": True})
    assert store.marked_paths("/tmp/a.zip") == ["a", "c"]


def test_evict_archive() -> None:
    store = DeletionFlagStore()
    store.set_many("/tmp/a.zip", {"a": True, "b": True})
    store.set("/tmp/b.zip", "a", True)

    assert store.evict_archive("/tmp/a.zip") == 2
    assert store.evict_archive("/tmp/a.zip") == 0
    assert store.marked_paths("/tmp/a.zip") == []
    assert len(store) == 1


def test_concurrent_writers_do_not_lose_updates() -> None:
    store = DeletionFlagStore()

    def writer(prefix: str) -> None:
        for i in range(500):
            store.set("/tmp/a.zip", f"{prefix}/{i}", True)

    threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store.marked_paths("/tmp/a.zip")) == 2000
