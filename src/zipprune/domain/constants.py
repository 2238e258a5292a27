from __future__ import annotations

"""
Domain Constants.

Centralizes application identifiers, configuration versioning, entry path
conventions and the legacy codec priority used to recover archive entry names.
"""

from typing import Tuple

CURRENT_CONFIG_VERSION = "1.0.0"
APP_NAME = "ZipPrune"
SCRATCH_PREFIX = "zipprune-"
REWRITE_SCRATCH_NAME = "rewrite.zip"

# -----------------------------------------------------------------------------
# ENTRY PATH CONVENTIONS
# -----------------------------------------------------------------------------
SEPARATOR = "/"
ROOT_PATH = ""
CURRENT_DIR_MARKER = "."

# General purpose bit 11: entry name is stored as UTF-8
UTF8_NAME_FLAG = 0x800

# -----------------------------------------------------------------------------
# ENCODING RECOVERY
# -----------------------------------------------------------------------------

# Ordered by real-world frequency in legacy archives: CJK first, Western last.
LEGACY_NAME_CODECS: Tuple[str, ...] = (
    "shift_jis",
    "euc_jp",
    "iso2022_jp",
    "euc_kr",
    "gbk",
    "big5",
    "cp1252",
    "utf-16-be",
    "utf-16-le",
)

FORCED_FALLBACK_CODEC = "shift_jis"

# Control characters tolerated in a recovered name
ALLOWED_CONTROL_CHARS = frozenset("\t\n\r")

# -----------------------------------------------------------------------------
# CACHE DEFAULTS
# -----------------------------------------------------------------------------
DEFAULT_CACHE_MAX_ENTRIES = 32

# -----------------------------------------------------------------------------
# LOG FILE ROTATION DEFAULTS
# -----------------------------------------------------------------------------
DEFAULT_LOG_MAX_BYTES = 1024 * 1024
DEFAULT_LOG_BACKUP_COUNT = 3
