from __future__ import annotations

"""
ZIP Container Access Helpers.

Thin layer over the standard 'zipfile' module that:
- opens containers and maps low-level failures to ArchiveOpenError;
- reproduces the exact name bytes stored for an entry (zipfile decodes names
  without the UTF-8 flag as cp437, which is a lossless 256-byte mapping);
- writes entries back under those exact bytes, so a rewrite never re-encodes
  a legacy name;
- copies the stored payload of an entry without decompressing it.
"""

import logging
import os
import struct
import zipfile
from datetime import datetime
from typing import Iterable, Iterator, Optional, Tuple

from zipprune.core.archive.entry_path import canonical_entry_path
from zipprune.core.encoding.recovery import recover_entry_name
from zipprune.domain.constants import UTF8_NAME_FLAG
from zipprune.domain.errors import ArchiveOpenError

logger = logging.getLogger(__name__)

_ZIP_DECODE_FALLBACK = "cp437"

_ENCRYPTED_FLAG = 0x01
_DATA_DESCRIPTOR_FLAG = 0x08
_DD_SIGNATURE = 0x08074B50
_ZIP64_EXTRA_ID = 0x0001
_FH_NAME_LENGTH = 10
_FH_EXTRA_LENGTH = 11
_DECODABLE_METHODS = frozenset({zipfile.ZIP_STORED, zipfile.ZIP_DEFLATED, zipfile.ZIP_BZIP2, zipfile.ZIP_LZMA})


# -----------------------------------------------------------------------------
# READING
# -----------------------------------------------------------------------------

def open_archive(archive_path: str, mode: str = "r") -> zipfile.ZipFile:
    """
    Open a ZIP container, failing fast with a domain error.

    Args:
        archive_path: Filesystem path of the archive.
        mode: zipfile mode ('r' to read).

    Returns:
        zipfile.ZipFile: Open handle; the caller owns and must close it.

    Raises:
        ArchiveOpenError: If the file is missing, unreadable or not a ZIP.
    """
    try:
        return zipfile.ZipFile(archive_path, mode)
    except FileNotFoundError as e:
        raise ArchiveOpenError(archive_path, "file does not exist") from e
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise ArchiveOpenError(archive_path, f"not a valid ZIP container ({e})") from e
    except OSError as e:
        raise ArchiveOpenError(archive_path, str(e)) from e


def raw_entry_name(info: zipfile.ZipInfo) -> bytes:
    """Return the entry name bytes exactly as stored in the archive."""
    if info.flag_bits & UTF8_NAME_FLAG:
        return info.orig_filename.encode("utf-8")
    return info.orig_filename.encode(_ZIP_DECODE_FALLBACK)


def is_directory_entry(info: zipfile.ZipInfo) -> bool:
    """
    Directory entries conventionally end with '/'.

    Only the raw bytes are inspected, and never for a backslash: 0x5C is a
    valid trail byte of double-byte Shift-JIS characters.
    """
    return raw_entry_name(info).endswith(b"/")


def recovered_entry_path(info: zipfile.ZipInfo) -> str:
    """Recover and canonicalize the entry path of one stored entry."""
    return canonical_entry_path(
        recover_entry_name(raw_entry_name(info)),
        is_dir=is_directory_entry(info),
    )


def iter_recovered_entries(zf: zipfile.ZipFile) -> Iterator[Tuple[str, zipfile.ZipInfo]]:
    """Yield (canonical entry path, ZipInfo) for every entry in stored order."""
    for info in zf.infolist():
        yield recovered_entry_path(info), info


def entry_timestamp(info: zipfile.ZipInfo) -> Optional[datetime]:
    """Convert the DOS timestamp of an entry, or None if it is out of range."""
    try:
        return datetime(*info.date_time)
    except ValueError:
        logger.debug(f"Entry '{info.filename}' carries an invalid timestamp {info.date_time}")
        return None


# -----------------------------------------------------------------------------
# WRITING
# -----------------------------------------------------------------------------

class RawNameZipInfo(zipfile.ZipInfo):
    """
    ZipInfo that writes a fixed byte string as the entry name.

    zipfile re-encodes names on write (ASCII, else UTF-8 with the UTF-8 flag
    set). Legacy Shift-JIS or GBK names must instead be written back
    unchanged, together with the original state of the UTF-8 flag.
    """

    def __init__(self, raw_name: bytes, utf8_flag: bool = False, date_time=(1980, 1, 1, 0, 0, 0)) -> None:
        decoded = raw_name.decode("utf-8") if utf8_flag else raw_name.decode(_ZIP_DECODE_FALLBACK)
        super().__init__(decoded, date_time=date_time)
        self._raw_name = raw_name
        self._utf8_flag = utf8_flag

    @classmethod
    def copy_of(cls, info: zipfile.ZipInfo) -> "RawNameZipInfo":
        """Clone the metadata of an existing entry for verbatim re-writing."""
        clone = cls(raw_entry_name(info), bool(info.flag_bits & UTF8_NAME_FLAG), info.date_time)
        clone.compress_type = info.compress_type
        clone.flag_bits = info.flag_bits
        clone.CRC = info.CRC
        clone.compress_size = info.compress_size
        clone.file_size = info.file_size
        clone.extra = _strip_zip64_extra(info.extra)
        clone.comment = info.comment
        clone.create_system = info.create_system
        clone.create_version = info.create_version
        clone.extract_version = info.extract_version
        clone.volume = info.volume
        clone.external_attr = info.external_attr
        clone.internal_attr = info.internal_attr
        return clone

    def _encodeFilenameFlags(self):
        if self._utf8_flag:
            return self._raw_name, self.flag_bits | UTF8_NAME_FLAG
        return self._raw_name, self.flag_bits & ~UTF8_NAME_FLAG


# -----------------------------------------------------------------------------
# RAW PAYLOAD ACCESS
# -----------------------------------------------------------------------------

def is_decodable(info: zipfile.ZipInfo) -> bool:
    """True if zipfile can decompress the entry and check its CRC."""
    return info.compress_type in _DECODABLE_METHODS and not info.flag_bits & _ENCRYPTED_FLAG


def entry_data_offset(zf: zipfile.ZipFile, info: zipfile.ZipInfo) -> int:
    """
    Locate the first byte of an entry's compressed data.

    The local header carries its own name and extra field lengths, which may
    differ from the central directory copy, so it is parsed from the file.

    Raises:
        zipfile.BadZipFile: If no valid local header sits at the recorded offset.
    """
    zf.fp.seek(info.header_offset)
    header = zf.fp.read(zipfile.sizeFileHeader)
    if len(header) != zipfile.sizeFileHeader:
        raise zipfile.BadZipFile(f"Truncated local header for '{info.filename}'")

    fields = struct.unpack(zipfile.structFileHeader, header)
    if fields[0] != zipfile.stringFileHeader:
        raise zipfile.BadZipFile(f"Bad local header signature for '{info.filename}'")

    return info.header_offset + zipfile.sizeFileHeader + fields[_FH_NAME_LENGTH] + fields[_FH_EXTRA_LENGTH]


def iter_raw_payload(zf: zipfile.ZipFile, info: zipfile.ZipInfo, chunk_size: int) -> Iterator[bytes]:
    """
    Yield the stored (still compressed, possibly encrypted) bytes of an entry.

    Raises:
        zipfile.BadZipFile: If the header is invalid or the data is truncated.
    """
    offset = entry_data_offset(zf, info)
    remaining = info.compress_size
    while remaining > 0:
        zf.fp.seek(offset)
        chunk = zf.fp.read(min(chunk_size, remaining))
        if not chunk:
            raise zipfile.BadZipFile(f"Entry '{info.filename}' is truncated")
        offset += len(chunk)
        remaining -= len(chunk)
        yield chunk


def write_raw_entry(dst: zipfile.ZipFile, info: zipfile.ZipInfo, payload: Iterable[bytes]) -> zipfile.ZipInfo:
    """
    Append an entry to an archive open for writing from its stored bytes.

    The local header is rebuilt from the source metadata (CRC, sizes,
    method, flags, name bytes) and the payload is written as is, so the
    entry is never recompressed and methods zipfile cannot decode survive.

    Args:
        dst: Archive opened with mode 'w'.
        info: Source entry metadata.
        payload: Compressed bytes of the entry, in order.

    Returns:
        zipfile.ZipInfo: The entry as recorded in the destination.

    Raises:
        zipfile.BadZipFile: If the payload length differs from compress_size.
    """
    target = RawNameZipInfo.copy_of(info)
    zip64 = needs_zip64(info)

    dst.fp.seek(dst.start_dir)
    target.header_offset = dst.fp.tell()
    dst.fp.write(target.FileHeader(zip64))

    written = 0
    for chunk in payload:
        dst.fp.write(chunk)
        written += len(chunk)
    if written != target.compress_size:
        raise zipfile.BadZipFile(
            f"Entry '{info.filename}' yielded {written} bytes, expected {target.compress_size}"
        )

    if target.flag_bits & _DATA_DESCRIPTOR_FLAG:
        fmt = "<LLQQ" if zip64 else "<LLLL"
        dst.fp.write(struct.pack(fmt, _DD_SIGNATURE, target.CRC, target.compress_size, target.file_size))

    dst.start_dir = dst.fp.tell()
    dst.filelist.append(target)
    dst.NameToInfo[target.filename] = target
    dst._didModify = True
    return target


def _strip_zip64_extra(extra: bytes) -> bytes:
    """Drop the ZIP64 extra block; FileHeader and the central directory re-add it."""
    kept = []
    pos = 0
    while pos + 4 <= len(extra):
        header_id, size = struct.unpack("<HH", extra[pos:pos + 4])
        end = pos + 4 + size
        if header_id != _ZIP64_EXTRA_ID:
            kept.append(extra[pos:end])
        pos = end
    return b"".join(kept)


def needs_zip64(info: zipfile.ZipInfo) -> bool:
    return info.file_size > zipfile.ZIP64_LIMIT or info.compress_size > zipfile.ZIP64_LIMIT


def archive_mtime_ns(archive_path: str) -> int:
    """
    Read the on-disk modification time used for staleness checks.

    Raises:
        ArchiveOpenError: If the archive cannot be stat'ed.
    """
    try:
        return os.stat(archive_path).st_mtime_ns
    except OSError as e:
        raise ArchiveOpenError(archive_path, str(e)) from e
