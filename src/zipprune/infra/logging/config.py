from __future__ import annotations

"""
Logging Configuration Models.

Maps the diagnostics section of the persisted settings onto the structure
consumed by 'configure_logging'. Record formats are fixed; only the level,
the sinks and the rotation policy of the file sink are user-tunable.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from zipprune.domain.constants import DEFAULT_LOG_BACKUP_COUNT, DEFAULT_LOG_MAX_BYTES

# Mapping of string identifiers to native logging constants
_LEVEL_MAP: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Console output stays terse; stdout carries the command results
CONSOLE_FORMAT = "%(levelname)s | %(message)s"
# Rewrites run on worker threads, so file records name their thread
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
FALLBACK_FORMAT = "CRITICAL FALLBACK | %(levelname)s | %(message)s"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Immutable specification for the logging subsystem initialization.

    Attributes:
        level: Minimum severity level to capture.
        console: Flag to enable stderr stream output.
        log_file: Optional absolute path for persistent file storage.
        max_bytes: Size of a log file segment before it is rotated.
        backup_count: Number of rotated segments kept next to the log file.
    """
    level: str = "INFO"
    console: bool = True
    log_file: Optional[str] = None
    max_bytes: int = DEFAULT_LOG_MAX_BYTES
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT

    @classmethod
    def from_settings(
            cls,
            settings: Mapping[str, Any],
            *,
            debug: bool = False,
            log_path: Optional[str] = None,
    ) -> "LoggingConfig":
        """
        Build the logging setup described by validated application settings.

        Args:
            settings: Clean settings ('log_level', 'log_to_file',
                'log_max_bytes', 'log_backup_count').
            debug: Force DEBUG regardless of the configured level.
            log_path: File used when 'log_to_file' is enabled.

        Returns:
            LoggingConfig: Console logging, plus the rotating file sink when enabled.
        """
        return cls(
            level="DEBUG" if debug else settings.get("log_level", "INFO"),
            console=True,
            log_file=log_path if settings.get("log_to_file") else None,
            max_bytes=settings.get("log_max_bytes", DEFAULT_LOG_MAX_BYTES),
            backup_count=settings.get("log_backup_count", DEFAULT_LOG_BACKUP_COUNT),
        )
