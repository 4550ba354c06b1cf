from __future__ import annotations

from pathlib import Path


class AuthorValidationError(RuntimeError):
    """Base class for failures that make a validation run impossible."""


class RepositoryNotFoundError(AuthorValidationError):
    def __init__(self, start: Path) -> None:
        super().__init__(f"could not determine git root, starting from {start}")
        self.start = start


class VcsCommandError(AuthorValidationError):
    def __init__(self, cmd: list[str], returncode: int | None, stdout: str = "", stderr: str = "") -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = (stderr or stdout or "").strip()
        status = "timed out" if returncode is None else f"exited with {returncode}"
        msg = f"git command {status}: {' '.join(self.cmd)}"
        if detail:
            msg += f"\n{detail[:2000]}"
        super().__init__(msg)


class MalformedSourceError(ValueError):
    """A declared author region exists but cannot be parsed."""


class MissingFileError(FileNotFoundError):
    """A declared path vanished between enumeration and extraction."""
