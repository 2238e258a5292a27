from __future__ import annotations

"""
Archive Rewriter.

Produces a copy of an archive without its marked entries and swaps it in for
the original. The operation is all-or-nothing up to the replace step: the new
archive is written into scratch space, closed, synced and verified before the
original is touched, and the original is only ever replaced, never removed
first.
"""

import logging
import os
import zipfile
import zlib
from typing import List, Mapping, Optional, Tuple

from zipprune.core.archive.codec import (
    entry_data_offset,
    is_decodable,
    iter_raw_payload,
    iter_recovered_entries,
    open_archive,
    write_raw_entry,
)
from zipprune.core.services.flag_store import DeletionFlagStore
from zipprune.domain.constants import REWRITE_SCRATCH_NAME
from zipprune.domain.errors import ArchiveOpenError, RewriteError
from zipprune.domain.rewrite_models import RewriteResult
from zipprune.infra.fs import fsync_file, make_scratch_dir, remove_scratch_dir, replace_file

logger = logging.getLogger(__name__)

_COPY_CHUNK_SIZE = 1024 * 1024

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def plan_deletions(archive_path: str, store: DeletionFlagStore) -> List[str]:
    """
    List the entries a rewrite would remove, without writing anything.

    Args:
        archive_path: Archive to inspect.
        store: Flag store holding the marks.

    Returns:
        List[str]: Canonical paths of marked entries, in stored order.

    Raises:
        ArchiveOpenError: If the archive cannot be read.
    """
    flags = store.snapshot(archive_path)
    with open_archive(archive_path) as zf:
        return [path for path, _ in iter_recovered_entries(zf) if flags.get(path, False)]


def apply_deletions(
        archive_path: str,
        store: DeletionFlagStore,
        scratch_root: Optional[str] = None,
) -> RewriteResult:
    """
    Rewrite an archive without its marked entries and replace it in place.

    Must not run concurrently for the same archive; the session layer
    enforces this.

    Args:
        archive_path: Archive to rewrite.
        store: Flag store; a snapshot is taken when the rewrite starts.
        scratch_root: Optional parent for the scratch directory.

    Returns:
        RewriteResult: Kept count and removed entry paths.

    Raises:
        ArchiveOpenError: If the source archive cannot be opened.
        RewriteError: If writing, verifying or replacing fails.
    """
    flags = store.snapshot(archive_path)
    logger.info(f"Rewriting '{archive_path}' ({sum(flags.values())} paths marked)")

    try:
        scratch_dir = make_scratch_dir(scratch_root)
    except OSError as e:
        raise RewriteError(archive_path, f"cannot create scratch space: {e}", stage="scratch") from e

    try:
        scratch_zip = os.path.join(scratch_dir, REWRITE_SCRATCH_NAME)

        kept, removed = _write_filtered_copy(archive_path, scratch_zip, flags)
        _verify_copy(archive_path, scratch_zip, kept)

        if not removed:
            logger.info("No marked entries present. Original archive left untouched.")
            return RewriteResult(archive_path=archive_path, kept=kept, removed=[])

        try:
            replace_file(scratch_zip, archive_path)
        except OSError as e:
            raise RewriteError(
                archive_path,
                f"replace failed: {e}",
                original_intact=os.path.exists(archive_path),
                stage="replace",
            ) from e
    finally:
        remove_scratch_dir(scratch_dir)

    logger.info(f"Rewrite committed: kept {kept} entries, removed {len(removed)}")
    return RewriteResult(archive_path=archive_path, kept=kept, removed=removed)

# -----------------------------------------------------------------------------
# INTERNAL HELPERS
# -----------------------------------------------------------------------------

def _write_filtered_copy(
        archive_path: str,
        scratch_zip: str,
        flags: Mapping[str, bool],
) -> Tuple[int, List[str]]:
    """Copy every unmarked entry of the source into a new scratch archive."""
    kept = 0
    removed: List[str] = []

    with open_archive(archive_path) as src:
        try:
            with zipfile.ZipFile(scratch_zip, "w") as dst:
                for path, info in iter_recovered_entries(src):
                    if flags.get(path, False):
                        logger.debug(f"Dropping marked entry: {path}")
                        removed.append(path)
                        continue
                    _copy_entry(src, dst, info)
                    kept += 1
            fsync_file(scratch_zip)
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile, RuntimeError) as e:
            raise RewriteError(archive_path, f"writing the new archive failed: {e}", stage="write") from e

    return kept, removed


def _copy_entry(src: zipfile.ZipFile, dst: zipfile.ZipFile, info: zipfile.ZipInfo) -> None:
    """
    Copy one entry verbatim, keeping its name bytes, method, timestamp and attributes.

    The compressed byte range is copied as stored under a local header
    rebuilt from the original CRC and sizes; nothing is recompressed.
    """
    write_raw_entry(dst, info, iter_raw_payload(src, info, _COPY_CHUNK_SIZE))


def _verify_copy(archive_path: str, scratch_zip: str, expected_entries: int) -> None:
    """
    Re-open the scratch archive and check it is complete before any swap.

    Entries zipfile can decode are read back in full so their CRC is checked;
    the others (Deflate64, encrypted) only have their local header checked.
    """
    try:
        with open_archive(scratch_zip) as zf:
            infos = zf.infolist()
            for info in infos:
                if is_decodable(info):
                    with zf.open(info) as reader:
                        while reader.read(_COPY_CHUNK_SIZE):
                            pass
                else:
                    entry_data_offset(zf, info)
    except (ArchiveOpenError, OSError, RuntimeError, EOFError, zipfile.BadZipFile, zlib.error) as e:
        raise RewriteError(archive_path, f"new archive failed verification: {e}", stage="verify") from e

    if len(infos) != expected_entries:
        raise RewriteError(
            archive_path,
            f"new archive holds {len(infos)} entries, expected {expected_entries}",
            stage="verify",
        )
