from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


def test_module_help_lists_validations(tmp_path: Path) -> None:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(Path(__file__).resolve().parents[1] / "src")
    cmd = [sys.executable, "-m", "author_validation", "--help"]
    proc = subprocess.run(cmd, cwd=str(tmp_path), env=env, text=True, capture_output=True)
    assert proc.returncode == 0, proc.stderr
    out = proc.stdout
    assert "Check that all authors are mentioned in each file." in out
    for flag in ("--php-files", "--composer", "--bower", "--packages", "--diff", "--ignore"):
        assert flag in out
