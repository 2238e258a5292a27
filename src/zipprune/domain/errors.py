from __future__ import annotations

"""
Domain Error Taxonomy.

Every failure raised by the archive engine derives from ZipPruneError so that
interface layers can trap the whole family with a single handler. The core
never retries; each error carries enough context for the caller to decide.
"""

from typing import Optional


class ZipPruneError(Exception):
    """Base class for all archive engine failures."""


class ArchiveOpenError(ZipPruneError):
    """
    The container could not be opened or parsed.

    Attributes:
        archive_path: Path of the archive that failed to open.
    """

    def __init__(self, archive_path: str, reason: str = "") -> None:
        self.archive_path = archive_path
        self.reason = reason
        msg = f"Cannot open archive '{archive_path}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class EntryNotFoundError(ZipPruneError):
    """No recovered entry name matches the requested entry path."""

    def __init__(self, archive_path: str, entry_path: str) -> None:
        self.archive_path = archive_path
        self.entry_path = entry_path
        super().__init__(f"Entry '{entry_path}' not found in '{archive_path}'")


class ExtractionIOError(ZipPruneError):
    """Filesystem failure while streaming an entry to scratch space."""

    def __init__(self, entry_path: str, reason: str = "") -> None:
        self.entry_path = entry_path
        self.reason = reason
        super().__init__(f"Failed to extract '{entry_path}': {reason}")


class RewriteError(ZipPruneError):
    """
    Failure while producing or swapping in the filtered archive.

    Attributes:
        archive_path: Archive being rewritten.
        original_intact: False only if the failure happened during the replace step.
    """

    def __init__(
            self,
            archive_path: str,
            reason: str = "",
            original_intact: bool = True,
            stage: Optional[str] = None,
    ) -> None:
        self.archive_path = archive_path
        self.reason = reason
        self.original_intact = original_intact
        self.stage = stage
        super().__init__(f"Failed to rewrite '{archive_path}': {reason}")


class RewriteInProgressError(RewriteError):
    """A rewrite of the same archive is still running."""

    def __init__(self, archive_path: str) -> None:
        super().__init__(archive_path, "a rewrite of this archive is already running", stage="guard")
