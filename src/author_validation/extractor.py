from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from .errors import MalformedSourceError, MissingFileError
from .identity import AliasConfig, AuthorList, canonical_authors


@runtime_checkable
class AuthorExtractor(Protocol):
    """Something that has an opinion about the authors of a set of paths."""

    def enumerate_paths(self) -> set[Path]: ...

    def extract_authors(self, path: Path) -> Optional[AuthorList]:
        """
        Return the canonical author list for `path`.

        None means "no data for this path"; an empty list means the source
        explicitly declares zero authors.
        """
        ...


@runtime_checkable
class PatchingAuthorExtractor(AuthorExtractor, Protocol):
    """An extractor that can regenerate its source to declare a given author list."""

    def read_content(self, path: Path) -> str: ...

    def rewrite(self, path: Path, authors: AuthorList) -> str: ...


class AuthorCache:
    """
    Per-extractor memo of canonical author lists.

    Raw extraction runs once per path; its result is passed through alias
    resolution and normalization before being stored. A MalformedSourceError
    from the raw extractor is recorded in `problems` and cached as None.
    """

    def __init__(self, aliases: AliasConfig) -> None:
        self.aliases = aliases
        self.problems: dict[Path, str] = {}
        self._results: dict[Path, Optional[AuthorList]] = {}
        self._lock = threading.Lock()

    def get(self, path: Path, extract_raw: Callable[[Path], Optional[list[str]]]) -> Optional[AuthorList]:
        key = Path(path)
        with self._lock:
            if key in self._results:
                return _copy(self._results[key])
        try:
            result = canonical_authors(extract_raw(key), self.aliases)
        except MalformedSourceError as e:
            result = None
            with self._lock:
                self.problems[key] = str(e)
        with self._lock:
            self._results.setdefault(key, result)
            return _copy(self._results[key])


def _copy(authors: Optional[AuthorList]) -> Optional[AuthorList]:
    return None if authors is None else list(authors)


def read_text(path: Path, limit: int | None = None) -> str:
    p = Path(path)
    try:
        with p.open("rb") as f:
            data = f.read() if limit is None else f.read(limit)
    except FileNotFoundError as e:
        raise MissingFileError(str(p)) from e
    except IsADirectoryError as e:
        raise MissingFileError(str(p)) from e
    return data.decode("utf-8", errors="replace")


def read_text_or_empty(path: Path, limit: int | None = None) -> str:
    try:
        return read_text(path, limit)
    except MissingFileError:
        return ""
