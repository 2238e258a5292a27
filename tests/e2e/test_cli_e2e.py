from __future__ import annotations

"""
End-to-End (E2E) CLI Tests.

Invokes the entry point script in a subprocess and checks exit codes,
stream output and the on-disk effect of a rewrite. HOME is redirected so
the user's real data directory is never touched.
"""

import json
import os
import subprocess
import sys
import zipfile
from pathlib import Path
from typing import List

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
SRC_DIR = PROJECT_ROOT / "src"
ENTRY_POINT = SRC_DIR / "zipprune" / "main.py"


def run_cli(args: List[str], home: Path) -> subprocess.CompletedProcess:
    """
    Execute the CLI in a separate process.

    Args:
        args: Command line arguments (excluding 'python' and script path).
        home: Directory used as HOME / LOCALAPPDATA for the child.

    Returns:
        subprocess.CompletedProcess: returncode, stdout and stderr.
    """
    env = os.environ.copy()
    env["PYTHONPATH"] = str(SRC_DIR) + os.pathsep + env.get("PYTHONPATH", "")
    env["HOME"] = str(home)
    env["LOCALAPPDATA"] = str(home)

    return subprocess.run(
        [sys.executable, str(ENTRY_POINT)] + args,
        env=env,
        capture_output=True,
        text=True,
        encoding="utf-8",
    )


def test_e2e_tree_output(sample_archive: Path, tmp_path: Path) -> None:
    result = run_cli([str(sample_archive), "--tree", "--use-defaults"], home=tmp_path)

    assert result.returncode == 0, result.stderr
    assert result.stdout.splitlines()[0] == "sample.zip"
    assert "└── top.txt" in result.stdout


def test_e2e_apply_rewrites_archive(shift_jis_archive: Path, tmp_path: Path) -> None:
    result = run_cli(
        [str(shift_jis_archive), "--mark", "資料/表.txt", "--apply", "--json", "--use-defaults"],
        home=tmp_path,
    )

    assert result.returncode == 0, result.stderr
    data = json.loads(result.stdout)
    assert data["rewrite"]["removed"] == ["資料/表.txt"]

    with zipfile.ZipFile(shift_jis_archive) as zf:
        assert len(zf.infolist()) == 3


def test_e2e_missing_archive(tmp_path: Path) -> None:
    result = run_cli([str(tmp_path / "absent.zip"), "--use-defaults"], home=tmp_path)

    assert result.returncode == 2
    assert "ERROR" in result.stderr
