from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates one CLI run: logging bootstrap, configuration resolution
(defaults, persistent storage, CLI overrides), loading the archive tree,
applying marks, then the requested actions (listing, dry run, rewrite,
extraction) and rendering of their results.
"""

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

from zipprune.core.archive.entry_path import canonical_entry_path
from zipprune.core.session import ArchiveSession
from zipprune.domain.config import (
    get_default_config,
    load_config,
    remember_archive,
    save_config,
    validate_config,
)
from zipprune.domain.errors import ArchiveOpenError, EntryNotFoundError, ZipPruneError
from zipprune.domain.tree_models import TreeNode, find_node
from zipprune.infra.logging import LoggingConfig, configure_logging, get_default_log_path, get_logger
from zipprune.interface.cli import args as cli_args
from zipprune.interface.cli import render

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_ARCHIVE_ERROR = 2
EXIT_ENTRY_NOT_FOUND = 3
EXIT_INTERRUPTED = 130

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the main CLI application workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code (0 success, 1 failure, 2 archive unreadable,
        3 entry not found, 130 interrupted).
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8")

    # 1. Argument parsing phase
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    # 2. Logging bootstrap (console on stderr; stdout carries the results)
    configure_logging(LoggingConfig(level="DEBUG" if args.debug else "INFO", console=True, log_file=None))

    # 3. Resolve configuration (defaults vs persistent state, then overrides)
    base_conf = get_default_config() if args.use_defaults else load_config()
    raw_conf = _merge_config(base_conf, cli_args.args_to_overrides(args))
    clean_conf, warnings = validate_config(raw_conf)
    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    _apply_logging_settings(clean_conf, debug=args.debug)

    if args.dump_config:
        print(json.dumps(clean_conf, ensure_ascii=False, indent=2))
        return EXIT_OK

    # 4. Pre-flight input verification
    if not args.archive:
        parser.print_usage(sys.stderr)
        print("ERROR: an archive path is required", file=sys.stderr)
        return EXIT_FAILURE

    archive_path = os.path.abspath(args.archive)
    if not os.path.isfile(archive_path):
        msg = f"Archive does not exist: {archive_path}"
        logger.error(msg)
        print(f"ERROR: {msg}", file=sys.stderr)
        return EXIT_ARCHIVE_ERROR

    # 5. Engine execution phase
    session = ArchiveSession.from_config(clean_conf)
    try:
        payload = _run_actions(session, archive_path, args)
    except KeyboardInterrupt:
        logger.warning("Operation interrupted by user.")
        print("Interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except ArchiveOpenError as e:
        logger.error(str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ARCHIVE_ERROR
    except EntryNotFoundError as e:
        logger.error(str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ENTRY_NOT_FOUND
    except ZipPruneError as e:
        logger.error(str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILURE

    # Persist the stored settings only; CLI overrides apply to this run alone
    if not args.use_defaults:
        save_config(remember_archive(dict(base_conf), archive_path))

    # 6. Output rendering phase
    if args.json_output:
        print(json.dumps(_to_json_payload(payload), ensure_ascii=False, indent=2))
    else:
        _print_human_report(payload)

    return EXIT_OK

# -----------------------------------------------------------------------------
# ACTION PIPELINE
# -----------------------------------------------------------------------------

def _run_actions(session: ArchiveSession, archive_path: str, args: argparse.Namespace) -> Dict[str, Any]:
    """
    Perform the requested actions in a fixed order and collect raw results.

    Order: marks, unmarks, tree/list views, dry run, rewrite, extraction.
    Views therefore reflect the marks given on the same command line.
    """
    payload: Dict[str, Any] = {"archive": archive_path}
    root = session.get_or_build(archive_path)

    for raw in args.mark:
        _mark_entry(session, archive_path, root, raw, True)
    for raw in args.unmark:
        _mark_entry(session, archive_path, root, raw, False)
    if args.mark or args.unmark:
        payload["marked"] = session.marked_paths(archive_path)

    wants_view = args.tree or args.list_dir is not None
    nothing_else = not (args.apply or args.dry_run or args.extract)
    if args.tree or (not wants_view and nothing_else):
        payload["tree"] = root
        payload["tree_dirs_only"] = args.dirs_only

    if args.list_dir is not None:
        directory = _resolve_directory(archive_path, root, args.list_dir)
        payload["listing"] = directory

    if args.dry_run:
        payload["would_remove"] = session.plan_deletions(archive_path)

    if args.apply:
        result = session.apply_deletions(archive_path)
        payload["rewrite"] = {"kept": result.kept, "removed": result.removed, "changed": result.changed}

    if args.extract:
        entry_path = cli_args.normalize_entry_arg(args.extract)
        payload["extracted"] = session.extract(archive_path, entry_path)

    return payload


def _mark_entry(session: ArchiveSession, archive_path: str, root: TreeNode, raw: str, flag: bool) -> None:
    """Directories are marked recursively, files individually."""
    entry_path = cli_args.normalize_entry_arg(raw)
    node = find_node(root, entry_path)
    if node is None:
        raise EntryNotFoundError(archive_path, entry_path)

    if node.is_dir:
        session.set_recursively(archive_path, node, flag)
    else:
        session.set_flag(archive_path, node, flag)


def _resolve_directory(archive_path: str, root: TreeNode, raw: str) -> TreeNode:
    entry_path = canonical_entry_path(cli_args.normalize_entry_arg(raw), is_dir=True)
    node = find_node(root, entry_path)
    if node is None:
        raise EntryNotFoundError(archive_path, entry_path)
    return node

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow-merge known override keys into the base configuration.

    Args:
        base: The primary configuration dictionary.
        overrides: New values to inject.

    Returns:
        Dict[str, Any]: The merged configuration state.
    """
    out = dict(base)
    for k in ("cache_max_entries", "scratch_dir", "log_level", "log_to_file", "log_max_bytes", "log_backup_count"):
        if k in overrides and overrides[k] is not None:
            out[k] = overrides[k]
    return out


def _apply_logging_settings(conf: Dict[str, Any], debug: bool) -> None:
    cfg = LoggingConfig.from_settings(conf, debug=debug, log_path=get_default_log_path())
    if cfg.level == "INFO" and cfg.log_file is None:
        return
    configure_logging(cfg, force=True)

# -----------------------------------------------------------------------------
# VIEW RENDERING
# -----------------------------------------------------------------------------

def _print_human_report(payload: Dict[str, Any]) -> None:
    """
    Print the collected results as terminal text.

    Tree nodes in the payload are rendered here; in JSON mode they are
    serialized instead.
    """
    if "marked" in payload:
        print(f"Marked for deletion: {len(payload['marked'])} entries")

    if "tree" in payload:
        for line in render.render_tree(payload["tree"], show_files=not payload.get("tree_dirs_only")):
            print(line)

    if "listing" in payload:
        directory = payload["listing"]
        print(f"\n{directory.path or '/'}")
        for line in render.render_file_list(directory):
            print(f"  {line}")

    if "would_remove" in payload:
        removed = payload["would_remove"]
        print(f"\nDry run: {len(removed)} entries would be removed")
        for path in removed:
            print(f"  - {path}")

    if "rewrite" in payload:
        rw = payload["rewrite"]
        if rw["changed"]:
            print(f"\nArchive rewritten: kept {rw['kept']:,} entries, removed {len(rw['removed']):,}")
        else:
            print("\nNo marked entries present. Archive left untouched.")

    if "extracted" in payload:
        print(payload["extracted"])


def _to_json_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(payload)
    if "tree" in out:
        out["tree"] = render.node_to_dict(out["tree"])
    if "listing" in out:
        out["listing"] = [render.node_to_dict(f) for f in out["listing"].files]
    out.pop("tree_dirs_only", None)
    return out

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
