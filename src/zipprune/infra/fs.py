from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Provides cross-platform data directory resolution, scratch space management
and the durable file replacement primitive used by the archive rewriter.
Acts as an abstraction over the 'os', 'shutil' and 'tempfile' modules to
ensure uniform behavior across Windows and Unix-like systems.
"""

import logging
import os
import shutil
import tempfile
from typing import Optional

from zipprune.domain.constants import APP_NAME, SCRATCH_PREFIX

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# GLOBAL CONSTANTS
# -----------------------------------------------------------------------------

APP_DIR_NAME = APP_NAME
UNIX_APP_DIR_NAME = ".zipprune"

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def get_user_data_dir() -> str:
    """
    Resolve the standard OS-specific directory for persistent application data.

    Automatically creates the hierarchy if it does not exist.
    Standards:
    - Windows: %LOCALAPPDATA%/ZipPrune
    - Linux/Mac: ~/.zipprune

    Returns:
        str: Absolute path to the application data directory.
    """
    path: str = ""

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            path = os.path.join(base, APP_DIR_NAME)

    if not path:
        path = os.path.join(os.path.expanduser("~"), UNIX_APP_DIR_NAME)

    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        logger.debug(f"Could not create data directory '{path}': {e}")

    return os.path.abspath(path)


def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a path string into an absolute filesystem path.

    Handles environment variable expansion and user home shortcuts.
    Reverts to fallback if the input is empty.

    Args:
        path: Raw input path string.
        fallback: Default path to use if the input is empty.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip()
    if not p:
        p = fallback
    return os.path.abspath(os.path.expandvars(os.path.expanduser(p)))


def archive_identity(archive_path: str) -> str:
    """Stable key identifying an archive across the engine (absolute path)."""
    return os.path.abspath(os.fspath(archive_path))

# -----------------------------------------------------------------------------
# SCRATCH SPACE API
# -----------------------------------------------------------------------------

def make_scratch_dir(scratch_root: Optional[str] = None) -> str:
    """
    Create a fresh, uniquely named scratch directory.

    Args:
        scratch_root: Parent directory. Defaults to the system temp location.

    Returns:
        str: Absolute path to the new directory.
    """
    if scratch_root:
        os.makedirs(scratch_root, exist_ok=True)
    return tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=scratch_root or None)


def remove_scratch_dir(path: Optional[str]) -> None:
    """Remove a scratch directory tree, logging instead of raising."""
    if not path or not os.path.exists(path):
        return
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.warning(f"Could not remove scratch directory '{path}': {e}")

# -----------------------------------------------------------------------------
# DURABLE REPLACEMENT API
# -----------------------------------------------------------------------------

def fsync_file(path: str) -> None:
    """Flush a closed file's content to durable storage."""
    with open(path, "rb+") as f:
        f.flush()
        os.fsync(f.fileno())


def replace_file(src: str, dst: str) -> None:
    """
    Replace 'dst' with the fully written file 'src' without a data-loss window.

    'dst' is never removed before its replacement is complete. When both
    paths live on the same filesystem the swap is a single atomic rename.
    Otherwise 'src' is first copied into a sibling temporary file next to
    'dst', synced, and then renamed over it.

    Args:
        src: Complete, synced replacement file.
        dst: File to replace.

    Raises:
        OSError: If the copy or the rename fails. 'dst' is unchanged unless
            the final rename itself succeeded.
    """
    dst_dir = os.path.dirname(os.path.abspath(dst)) or "."

    if os.path.exists(dst):
        try:
            shutil.copymode(dst, src)
        except OSError as e:
            logger.debug(f"Could not carry permissions of '{dst}': {e}")

    if _same_device(src, dst_dir):
        os.replace(src, dst)
        _fsync_dir(dst_dir)
        return

    fd, sibling = tempfile.mkstemp(prefix=f".{os.path.basename(dst)}.", suffix=".tmp", dir=dst_dir)
    try:
        with os.fdopen(fd, "wb") as out, open(src, "rb") as inp:
            shutil.copyfileobj(inp, out)
            out.flush()
            os.fsync(out.fileno())
        shutil.copymode(src, sibling)
        os.replace(sibling, dst)
    except BaseException:
        if os.path.exists(sibling):
            os.remove(sibling)
        raise
    _fsync_dir(dst_dir)

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _same_device(a: str, b: str) -> bool:
    try:
        return os.stat(a).st_dev == os.stat(b).st_dev
    except OSError:
        return False


def _fsync_dir(path: str) -> None:
    """Persist a rename on POSIX; directories cannot be opened on Windows."""
    if os.name == "nt":
        return
    try:
        fd = os.open(path, os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)
