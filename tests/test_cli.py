from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path

import pytest

from author_validation.cli import main


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=True, capture_output=True, text=True)
    return proc.stdout


def _commit_as(repo: Path, name: str, email: str, files: dict[str, str]) -> None:
    for rel, text in files.items():
        p = repo / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        _run(["git", "add", rel], cwd=repo)
    env = os.environ.copy()
    env.update(
        {
            "GIT_AUTHOR_NAME": name,
            "GIT_AUTHOR_EMAIL": email,
            "GIT_COMMITTER_NAME": name,
            "GIT_COMMITTER_EMAIL": email,
            "GIT_AUTHOR_DATE": "2025-01-01T00:00:00Z",
            "GIT_COMMITTER_DATE": "2025-01-01T00:00:00Z",
        }
    )
    _run(["git", "commit", "-m", f"work by {name}"], cwd=repo, env=env)


def _php(*authors: str) -> str:
    lines = ["<?php", "", "/**", " * Foo.", " *"]
    lines += [f" * @author     {a}" for a in authors]
    lines += [" */", "", "class Foo {}", ""]
    return "\n".join(lines)


@pytest.fixture()
def repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    repo.mkdir()
    _run(["git", "init"], cwd=repo)
    _run(["git", "config", "user.name", "Local User"], cwd=repo)
    _run(["git", "config", "user.email", "local@example.com"], cwd=repo)
    _commit_as(repo, "Alice", "a@x", {"lib/foo.php": _php("Alice <a@x>"), "composer.json": json.dumps({"name": "acme/foo", "authors": []}, indent=4) + "\n"})
    _commit_as(repo, "Bob", "b@x", {"lib/foo.php": _php("Alice <a@x>") + "// more\n"})
    return repo


def test_requires_a_validation(capsys: pytest.CaptureFixture[str], repo: Path) -> None:
    assert main([str(repo)]) == 1
    assert "at least one validation" in capsys.readouterr().err


def test_reports_missing_authors(capsys: pytest.CaptureFixture[str], repo: Path) -> None:
    assert main(["--php-files", "--composer", str(repo)]) == 1
    captured = capsys.readouterr()
    assert "The file lib/foo.php is missing the following author(s):\n  + Bob <b@x>\n" in captured.out
    assert "The file composer.json is missing the following author(s):\n  + Alice <a@x>\n" in captured.out
    assert "Validation failed" in captured.err


def test_diff_output_applies_cleanly(capsys: pytest.CaptureFixture[str], repo: Path) -> None:
    assert main(["--php-files", "--composer", "--diff", str(repo)]) == 1
    patch = capsys.readouterr().out
    assert "+ * @author     Bob <b@x>" in patch
    assert '"role": "Developer"' in patch

    (repo.parent / "authors.patch").write_text(patch, encoding="utf-8")
    _run(["git", "apply", str(repo.parent / "authors.patch")], cwd=repo)
    # Applying the patch makes both files dirty, so the local user now counts as an author too.
    assert main(["--php-files", "--composer", "--ignore", "Local User <local@example.com>", str(repo)]) == 0


def test_ignore_and_config_file(capsys: pytest.CaptureFixture[str], repo: Path) -> None:
    (repo / ".check-author.json").write_text(json.dumps({"ignore": ["Bob <b@x>"]}), encoding="utf-8")
    assert main(["--php-files", str(repo)]) == 0
    assert "All authors are properly mentioned." in capsys.readouterr().out


def test_not_a_repository_cannot_run(capsys: pytest.CaptureFixture[str], tmp_path: Path) -> None:
    if any((p / ".git").exists() for p in [tmp_path.resolve(), *tmp_path.resolve().parents]):
        pytest.skip("tmp_path is inside a git repository")
    (tmp_path / "composer.json").write_text('{"authors": []}\n', encoding="utf-8")
    assert main(["--composer", str(tmp_path)]) == 2
    assert "Could not run validation." in capsys.readouterr().err


def test_git_timeout_cannot_run(capsys: pytest.CaptureFixture[str], repo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def slow_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    monkeypatch.setattr(subprocess, "run", slow_run)
    assert main(["--composer", "--git-timeout", "1", str(repo)]) == 2
    err = capsys.readouterr().err
    assert "timed out" in err
    assert "Could not run validation." in err
