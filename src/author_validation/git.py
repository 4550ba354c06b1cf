from __future__ import annotations

import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Optional

from .errors import RepositoryNotFoundError, VcsCommandError
from .identity import format_author

DEFAULT_TIMEOUT_S = 60

GitRunner = Callable[[list[str], Path], str]


def run_git(args: list[str], cwd: Path, timeout_s: int = DEFAULT_TIMEOUT_S) -> tuple[int, str, str]:
    cmd = ["git", *args]
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout_s,
        )
    except subprocess.TimeoutExpired as e:
        raise VcsCommandError(cmd, None, _as_text(e.stdout), f"timed out after {timeout_s}s") from e
    except OSError as e:
        raise VcsCommandError(cmd, None, "", str(e)) from e
    return proc.returncode, proc.stdout, proc.stderr


def _as_text(value: object) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value or "")


def git_output(args: list[str], cwd: Path, timeout_s: int = DEFAULT_TIMEOUT_S) -> str:
    code, out, err = run_git(args, cwd=cwd, timeout_s=timeout_s)
    if code != 0:
        raise VcsCommandError(["git", *args], code, out, err)
    return out


def make_runner(timeout_s: int = DEFAULT_TIMEOUT_S) -> GitRunner:
    def runner(args: list[str], cwd: Path) -> str:
        return git_output(args, cwd=cwd, timeout_s=timeout_s)

    return runner


def find_repo_root(path: Path) -> Path:
    start = Path(path).resolve()
    current = start if start.is_dir() else start.parent
    while True:
        # Worktrees and submodules use a `.git` file instead of a directory.
        if (current / ".git").exists():
            return current
        if current.parent == current:
            raise RepositoryNotFoundError(start)
        current = current.parent


def list_tracked_files(repo: Path, runner: GitRunner) -> list[str]:
    out = runner(["ls-tree", "-r", "--full-name", "--name-only", "-z", "HEAD"], repo)
    return [p for p in out.split("\0") if p.strip()]


def list_index_files(repo: Path, runner: GitRunner) -> set[str]:
    out = runner(["ls-files", "--full-name", "-z"], repo)
    return {p for p in out.split("\0") if p.strip()}


def log_authors(repo: Path, relpath: str, runner: GitRunner, *, follow: bool = True) -> list[str]:
    args = ["log", "--format=%aN <%ae>"]
    if follow:
        args.append("--follow")
    args.extend(["--", f":(literal){relpath}"])
    out = runner(args, repo)
    return [line.strip() for line in out.splitlines() if line.strip()]


def parse_porcelain_status(out: str) -> dict[str, str]:
    """
    Parse `git status --porcelain -z` output into {relative path: "XY"}.
    Rename/copy entries carry the original path as an extra NUL-separated field.
    """
    status: dict[str, str] = {}
    tokens = out.split("\0")
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        i += 1
        if len(tok) < 4:
            continue
        xy, path = tok[:2], tok[3:]
        status[path] = xy
        if xy[0] in ("R", "C"):
            i += 1
    return status


def working_tree_status(repo: Path, runner: GitRunner) -> dict[str, str]:
    out = runner(["status", "--porcelain", "-z", "--untracked-files=no"], repo)
    return parse_porcelain_status(out)


def is_dirty_status(xy: str) -> bool:
    if not xy or xy in ("??", "!!"):
        return False
    return xy.strip() != ""


def local_user_identity(repo: Path, runner: GitRunner) -> Optional[str]:
    name = runner(["config", "--local", "--default", "", "--get", "user.name"], repo).strip()
    email = runner(["config", "--local", "--default", "", "--get", "user.email"], repo).strip()
    if not name or not email:
        return None
    return format_author(name, email)
