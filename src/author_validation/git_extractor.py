from __future__ import annotations

import dataclasses
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from .extractor import AuthorCache
from .git import (
    DEFAULT_TIMEOUT_S,
    GitRunner,
    find_repo_root,
    is_dirty_status,
    list_index_files,
    list_tracked_files,
    local_user_identity,
    log_authors,
    make_runner,
    working_tree_status,
)
from .identity import AliasConfig, AuthorList
from .paths import PathExclusions


@dataclasses.dataclass
class _RepoState:
    root: Path
    index_files: set[str]
    status: dict[str, str]
    user: Optional[str] = None
    user_loaded: bool = False


class GitAuthorExtractor:
    """
    Authoritative author source: the git history of each tracked file.

    Repository-wide facts (index listing, working tree status, local user) are
    read once per repository and reused for every path of the run.
    """

    def __init__(
        self,
        include_paths: Iterable[Path],
        *,
        aliases: AliasConfig | None = None,
        exclusions: PathExclusions | None = None,
        runner: GitRunner | None = None,
        timeout_s: int = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.include_paths = [Path(p).resolve() for p in include_paths]
        self.exclusions = exclusions
        self.runner = runner or make_runner(timeout_s)
        self._cache = AuthorCache(aliases or AliasConfig())
        self._repos: dict[Path, _RepoState] = {}
        self._roots_by_dir: dict[Path, Path] = {}
        self._lock = threading.Lock()

    @property
    def problems(self) -> dict[Path, str]:
        return self._cache.problems

    def repo_root_for(self, path: Path) -> Path:
        p = Path(path).resolve()
        start = p if p.is_dir() else p.parent
        with self._lock:
            root = self._roots_by_dir.get(start)
        if root is None:
            root = find_repo_root(start)
            with self._lock:
                self._roots_by_dir[start] = root
        return root

    def enumerate_paths(self) -> set[Path]:
        files: set[Path] = set()
        seen_roots: set[Path] = set()
        for include in self.include_paths:
            root = self.repo_root_for(include)
            if root in seen_roots:
                continue
            seen_roots.add(root)
            for rel in list_tracked_files(root, self.runner):
                absolute = root / rel
                if self.exclusions is not None and self.exclusions.excludes(absolute):
                    continue
                files.add(absolute)
        return files

    def extract_authors(self, path: Path) -> Optional[AuthorList]:
        return self._cache.get(Path(path).resolve(), self._extract_raw)

    def _state(self, root: Path) -> _RepoState:
        with self._lock:
            state = self._repos.get(root)
        if state is not None:
            return state
        state = _RepoState(
            root=root,
            index_files=list_index_files(root, self.runner),
            status=working_tree_status(root, self.runner),
        )
        with self._lock:
            return self._repos.setdefault(root, state)

    def _current_user(self, state: _RepoState) -> Optional[str]:
        if not state.user_loaded:
            user = local_user_identity(state.root, self.runner)
            with self._lock:
                state.user = user
                state.user_loaded = True
        return state.user

    def _extract_raw(self, path: Path) -> Optional[list[str]]:
        root = self.repo_root_for(path)
        state = self._state(root)
        rel = path.relative_to(root).as_posix() if path != root else "."
        is_file = path.is_file()
        if is_file and rel not in state.index_files:
            # Not under version control; nothing to say about it.
            return None

        authors = log_authors(root, rel, self.runner, follow=not path.is_dir())

        # Someone is currently working on the file, count them in.
        if is_file and is_dirty_status(state.status.get(rel, "")):
            user = self._current_user(state)
            if user:
                authors.append(user)
        return authors
