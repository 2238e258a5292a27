from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line schema and translates the parsed namespace into
configuration overrides and a list of requested actions.
"""

import argparse
from typing import Any, Dict

from zipprune.domain.constants import APP_NAME

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the zipprune CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="zipprune",
        description=f"{APP_NAME}: browse a ZIP archive, mark entries and remove them in place.",
    )

    p.add_argument(
        "archive",
        nargs="?",
        default=None,
        help="Path of the ZIP archive to operate on.",
    )

    # --- Inspection ---
    p.add_argument(
        "--tree",
        action="store_true",
        help="Print the directory tree of the archive.",
    )
    p.add_argument(
        "--dirs-only",
        action="store_true",
        help="With --tree, omit files.",
    )
    p.add_argument(
        "--list",
        dest="list_dir",
        metavar="DIR",
        default=None,
        help="List the files of one directory ('' or '/' for the root).",
    )

    # --- Marking ---
    p.add_argument(
        "--mark",
        dest="mark",
        metavar="PATH",
        action="append",
        default=[],
        help="Mark an entry for deletion. Directories are marked recursively. Repeatable.",
    )
    p.add_argument(
        "--unmark",
        dest="unmark",
        metavar="PATH",
        action="append",
        default=[],
        help="Clear a mark. Directories are cleared recursively. Repeatable.",
    )

    # --- Actions ---
    p.add_argument(
        "--apply",
        action="store_true",
        help="Rewrite the archive without the marked entries.",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the entries --apply would remove, without writing.",
    )
    p.add_argument(
        "--extract",
        dest="extract",
        metavar="ENTRY",
        default=None,
        help="Extract one entry to a scratch directory and print its path.",
    )

    # --- Configuration and diagnostics ---
    p.add_argument(
        "--scratch-dir",
        dest="scratch_dir",
        default=None,
        help="Parent directory for scratch files (defaults to the system temp dir).",
    )
    p.add_argument(
        "--use-defaults",
        action="store_true",
        help="Ignore the saved configuration.",
    )
    p.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the effective configuration and exit.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Emit raw data as JSON instead of formatted text.",
    )

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into configuration overrides.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset.
    """
    overrides: Dict[str, Any] = {}

    if args.scratch_dir is not None:
        overrides["scratch_dir"] = args.scratch_dir
    if args.debug:
        overrides["log_level"] = "DEBUG"

    return overrides


def normalize_entry_arg(value: str) -> str:
    """
    Accept user-typed entry paths: a leading '/' is dropped and '/' alone
    means the root.
    """
    return value.strip().lstrip("/") if value.strip() != "/" else ""
