from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Factories that write small ZIP archives, including entries whose names
   are stored as raw legacy-codepage bytes.
"""

import os
import sys
import zipfile
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)

from zipprune.core.archive.codec import RawNameZipInfo  # noqa: E402

EntrySpec = Tuple[Union[str, bytes], Optional[bytes]]

FIXED_TIME = (2006, 1, 2, 15, 4, 6)


def write_archive(path: Path, entries: List[EntrySpec]) -> Path:
    """
    Write a ZIP archive from (name, payload) pairs.

    A 'str' name is stored the normal way (ASCII, or UTF-8 with the UTF-8
    flag). A 'bytes' name is stored verbatim without the UTF-8 flag, like a
    legacy tool would. A None payload with a trailing '/' writes a directory
    entry.
    """
    with zipfile.ZipFile(path, "w") as zf:
        for name, payload in entries:
            if isinstance(name, bytes):
                info = RawNameZipInfo(name, utf8_flag=False, date_time=FIXED_TIME)
            else:
                info = zipfile.ZipInfo(name, date_time=FIXED_TIME)
            info.external_attr = (0o40755 << 16) | 0x10 if payload is None else 0o644 << 16
            compress = zipfile.ZIP_STORED if payload is None else zipfile.ZIP_DEFLATED
            zf.writestr(info, payload or b"", compress_type=compress)
    return path


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def make_archive(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing archives into the test's temp directory."""
    def _factory(entries: List[EntrySpec], name: str = "sample.zip") -> Path:
        return write_archive(tmp_path / name, entries)
    return _factory


@pytest.fixture
def sample_archive(make_archive: Callable[..., Path]) -> Path:
    """
    A small archive mixing explicit and implicit directories.

    Layout:
        docs/ (explicit)         readme.txt
        docs/img/ (implicit)     logo.png
        src/ (implicit)          main.py, util.py
        top.txt
    """
    return make_archive([
        ("docs/", None),
        ("docs/readme.txt", b"read me\n"),
        ("docs/img/logo.png", b"\x89PNG" + b"\x00" * 64),
        ("src/main.py", b"print('hello')\n"),
        ("src/util.py", b"def util():\n    return 1\n"),
        ("top.txt", b"top level\n" * 100),
    ])


@pytest.fixture
def shift_jis_archive(make_archive: Callable[..., Path]) -> Path:
    """
    An archive whose names are raw Shift-JIS bytes without the UTF-8 flag.

    '表' encodes as 0x95 0x5C, so its trail byte equals an ASCII backslash.
    """
    return make_archive([
        ("資料/".encode("shift_jis"), None),
        ("資料/表.txt".encode("shift_jis"), b"table data"),
        ("資料/日本語.txt".encode("shift_jis"), b"nihongo"),
        ("readme.txt", b"ascii name"),
    ], name="legacy.zip")
