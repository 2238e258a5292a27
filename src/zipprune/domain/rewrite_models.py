from __future__ import annotations

"""
Rewrite Domain Data Models.

Result objects exchanged between the archive rewriter and the interface layers.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class RewriteResult:
    """
    Outcome of a committed rewrite.

    Attributes:
        archive_path: Archive that was replaced in place.
        kept: Number of entries copied into the new archive.
        removed: Entry paths omitted because they were marked.
    """
    archive_path: str
    kept: int
    removed: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.removed)
