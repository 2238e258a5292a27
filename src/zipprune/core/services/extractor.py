from __future__ import annotations

"""
Single-Entry Extractor.

Streams one archive entry into a fresh scratch directory so that an external
viewer can open it. Entries are located by a linear scan over recovered
names; no index is kept since extraction is a rare, user-triggered action.
"""

import logging
import os
import shutil
import zipfile
import zlib
from typing import Optional

from zipprune.core.archive.codec import iter_recovered_entries, open_archive
from zipprune.core.archive.entry_path import is_directory_path, split_components
from zipprune.domain.errors import EntryNotFoundError, ExtractionIOError
from zipprune.infra.fs import make_scratch_dir, remove_scratch_dir

logger = logging.getLogger(__name__)


def extract_entry(archive_path: str, entry_path: str, scratch_root: Optional[str] = None) -> str:
    """
    Extract a single entry into a new scratch directory.

    The scratch directory mirrors the entry's relative path and is handed over
    to the caller on success; on failure it is removed before raising.

    Args:
        archive_path: Archive to read.
        entry_path: Canonical entry path to extract.
        scratch_root: Optional parent for the scratch directory.

    Returns:
        str: Filesystem path of the extracted file (or directory).

    Raises:
        ArchiveOpenError: If the archive cannot be opened.
        EntryNotFoundError: If no entry has the requested path.
        ExtractionIOError: If writing the extracted bytes fails.
    """
    with open_archive(archive_path) as zf:
        info = _find_entry(zf, entry_path)
        if info is None:
            raise EntryNotFoundError(archive_path, entry_path)

        components = split_components(entry_path)
        if ".." in components:
            raise ExtractionIOError(entry_path, "path escapes the extraction directory")

        scratch_dir = None
        try:
            scratch_dir = make_scratch_dir(scratch_root)
            target = os.path.join(scratch_dir, *components)

            if is_directory_path(entry_path):
                os.makedirs(target, exist_ok=True)
            else:
                os.makedirs(os.path.dirname(target), exist_ok=True)
                with zf.open(info) as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)
        except (OSError, RuntimeError, EOFError, NotImplementedError, zipfile.BadZipFile, zlib.error) as e:
            remove_scratch_dir(scratch_dir)
            raise ExtractionIOError(entry_path, str(e)) from e

    logger.info(f"Extracted '{entry_path}' to {target}")
    return target


def _find_entry(zf: zipfile.ZipFile, entry_path: str) -> Optional[zipfile.ZipInfo]:
    for path, info in iter_recovered_entries(zf):
        if path == entry_path:
            return info
    return None
