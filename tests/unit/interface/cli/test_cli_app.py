from __future__ import annotations

"""
Unit tests for the CLI controller and its argument mapping.

Drives 'main' end to end against archives written to tmp_path, with the
persistent config file redirected, and checks output and exit codes.
"""

import json
import os
import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest

from zipprune.infra.logging import shutdown_logging
from zipprune.interface.cli.app import main
from zipprune.interface.cli.args import args_to_overrides, build_parser, normalize_entry_arg


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path):
    """Redirect persistent config and reset logging around every test."""
    with patch("zipprune.domain.config.CONFIG_FILE", str(tmp_path / "config.json")):
        yield
    shutdown_logging()

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def test_overrides_mapping() -> None:
    args = build_parser().parse_args(["a.zip", "--scratch-dir", "/tmp/s", "--debug"])
    assert args_to_overrides(args) == {"scratch_dir": "/tmp/s", "log_level": "DEBUG"}


def test_mark_is_repeatable() -> None:
    args = build_parser().parse_args(["a.zip", "--mark", "x/", "--mark", "y.txt"])
    assert args.mark == ["x/", "y.txt"]


@pytest.mark.parametrize("raw, expected", [
    ("/", ""),
    ("", ""),
    ("/docs/", "docs/"),
    ("docs/readme.txt", "docs/readme.txt"),
])
def test_normalize_entry_arg(raw: str, expected: str) -> None:
    assert normalize_entry_arg(raw) == expected

# -----------------------------------------------------------------------------
# VIEWS
# -----------------------------------------------------------------------------

def test_default_action_prints_tree(sample_archive: Path, capsys) -> None:
    assert main([str(sample_archive)]) == 0
    out = capsys.readouterr().out.splitlines()

    assert out[0] == "sample.zip"
    assert "├── docs/" in out
    assert any(line.endswith("└── top.txt") for line in out)


def test_list_directory(sample_archive: Path, capsys) -> None:
    assert main([str(sample_archive), "--list", "src"]) == 0
    out = capsys.readouterr().out
    assert "main.py" in out
    assert "2006/01/02 15:04:06" in out
    assert "0.1 KB" in out


def test_json_tree(sample_archive: Path, capsys) -> None:
    assert main([str(sample_archive), "--tree", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["tree"]["name"] == "sample.zip"
    assert [c["path"] for c in data["tree"]["children"]] == ["docs/", "src/"]

# -----------------------------------------------------------------------------
# MARKING & REWRITING
# -----------------------------------------------------------------------------

def test_dry_run_does_not_write(sample_archive: Path, capsys) -> None:
    before = sample_archive.read_bytes()
    assert main([str(sample_archive), "--mark", "src/", "--dry-run", "--json"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["would_remove"] == ["src/main.py", "src/util.py"]
    assert sample_archive.read_bytes() == before


def test_apply_removes_marked(sample_archive: Path, tmp_path: Path, capsys) -> None:
    code = main([
        str(sample_archive),
        "--mark", "docs",
        "--unmark", "docs/readme.txt",
        "--apply",
        "--scratch-dir", str(tmp_path / "scratch"),
    ])
    assert code == 0
    assert "Archive rewritten" in capsys.readouterr().out

    with zipfile.ZipFile(sample_archive) as zf:
        names = zf.namelist()
    assert "docs/img/logo.png" not in names
    assert "docs/" not in names
    assert "docs/readme.txt" in names


def test_recent_archives_remembered(sample_archive: Path, tmp_path: Path) -> None:
    main([str(sample_archive), "--tree"])
    data = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))
    assert data["settings"]["recent_archives"][0] == os.path.abspath(str(sample_archive))

def test_cli_overrides_are_not_persisted(sample_archive: Path, tmp_path: Path) -> None:
    assert main([str(sample_archive), "--tree", "--debug", "--scratch-dir", str(tmp_path / "s")]) == 0

    settings = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))["settings"]
    assert settings["log_level"] == "INFO"
    assert settings["scratch_dir"] == ""
    assert settings["recent_archives"] == [os.path.abspath(str(sample_archive))]


def test_stored_settings_survive_a_run(sample_archive: Path, tmp_path: Path) -> None:
    (tmp_path / "config.json").write_text(
        json.dumps({"settings": {"cache_max_entries": 7, "log_level": "WARNING"}}), encoding="utf-8"
    )
    assert main([str(sample_archive), "--tree", "--debug"]) == 0

    settings = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))["settings"]
    assert settings["cache_max_entries"] == 7
    assert settings["log_level"] == "WARNING"

# -----------------------------------------------------------------------------
# EXIT CODES
# -----------------------------------------------------------------------------

def test_missing_archive_exit_code(tmp_path: Path) -> None:
    assert main([str(tmp_path / "absent.zip")]) == 2


def test_corrupt_archive_exit_code(tmp_path: Path) -> None:
    bogus = tmp_path / "bogus.zip"
    bogus.write_bytes(b"definitely not a zip")
    assert main([str(bogus)]) == 2


def test_unknown_entry_exit_code(sample_archive: Path) -> None:
    assert main([str(sample_archive), "--mark", "nope/"]) == 3


def test_no_archive_is_a_failure() -> None:
    assert main([]) == 1


def test_dump_config(capsys) -> None:
    assert main(["--dump-config", "--use-defaults"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["cache_max_entries"] == 32


def test_interrupt_exit_code(sample_archive: Path) -> None:
    with patch("zipprune.interface.cli.app._run_actions", side_effect=KeyboardInterrupt):
        assert main([str(sample_archive)]) == 130
