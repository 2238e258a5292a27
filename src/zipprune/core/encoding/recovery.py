from __future__ import annotations

"""
Legacy Entry Name Recovery.

Archives produced by older tools store entry names in the creator's locale
codepage without marking them as such. This module turns such raw names
into Unicode with a fixed-priority decode heuristic. It is pure and is
called once per entry by the tree builder, the rewriter and the extractor.
"""

from typing import Iterable, Optional

from zipprune.domain.constants import (
    ALLOWED_CONTROL_CHARS,
    FORCED_FALLBACK_CODEC,
    LEGACY_NAME_CODECS,
)

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def recover_entry_name(raw: bytes) -> str:
    """
    Convert a raw entry name of unknown encoding into a Unicode string.

    Valid UTF-8 is returned as-is without trying any other codec. Otherwise
    each legacy codec is tried in priority order and the first clean
    decoding wins. When none is clean, a Shift-JIS decode with replacement
    characters is forced; if even that fails the bytes are mapped one to one.

    Args:
        raw: Entry name exactly as stored in the archive.

    Returns:
        str: Recovered Unicode name.
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        pass

    candidate = decode_first_clean(raw, LEGACY_NAME_CODECS)
    if candidate is not None:
        return candidate

    try:
        return raw.decode(FORCED_FALLBACK_CODEC, errors="replace")
    except (UnicodeError, LookupError):
        return raw.decode("latin-1")


def decode_first_clean(raw: bytes, codecs: Iterable[str]) -> Optional[str]:
    """
    Return the first strict decoding of 'raw' free of stray control characters.

    Args:
        raw: Bytes to decode.
        codecs: Codec names in priority order.

    Returns:
        Optional[str]: The accepted decoding, or None if every codec was rejected.
    """
    for codec in codecs:
        try:
            text = raw.decode(codec)
        except (UnicodeError, LookupError):
            continue
        if not has_control_characters(text):
            return text
    return None


def has_control_characters(text: str) -> bool:
    """
    Detect C0 control characters other than tab, newline and carriage return.

    Their presence means a codec decoded the bytes syntactically but produced
    garbage (typical of UTF-16 applied to single-byte names).
    """
    for ch in text:
        if ord(ch) < 32 and ch not in ALLOWED_CONTROL_CHARS:
            return True
    return False
