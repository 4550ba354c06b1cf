from __future__ import annotations

import dataclasses
import fnmatch
import os
from collections.abc import Iterable
from pathlib import Path

DEFAULT_EXCLUDE_DIRNAMES = frozenset({".git", "vendor", "node_modules"})

_GLOB_CHARS = ("*", "?", "[")


def should_exclude_path(path: str, exclude_prefixes: Iterable[str], exclude_globs: Iterable[str]) -> bool:
    p = path.replace("\\", "/")
    while p.startswith("./"):
        p = p[2:]
    for pref in exclude_prefixes:
        pr = (pref or "").replace("\\", "/").strip("/")
        if not pr:
            continue
        if p == pr or p.startswith(pr + "/") or f"/{pr}/" in p:
            return True
    for pat in exclude_globs:
        if pat and (fnmatch.fnmatch(p, pat) or fnmatch.fnmatch(p.rsplit("/", 1)[-1], pat)):
            return True
    return False


@dataclasses.dataclass(frozen=True)
class PathExclusions:
    base: Path
    prefixes: tuple[str, ...] = ()
    globs: tuple[str, ...] = ()

    @classmethod
    def from_patterns(cls, base: Path, patterns: Iterable[str]) -> "PathExclusions":
        prefixes: list[str] = []
        globs: list[str] = []
        for pat in patterns:
            pat = str(pat or "").strip()
            if not pat:
                continue
            if any(c in pat for c in _GLOB_CHARS):
                globs.append(pat)
            else:
                prefixes.append(pat)
        return cls(base=Path(base), prefixes=tuple(prefixes), globs=tuple(globs))

    def excludes(self, path: Path) -> bool:
        if not self.prefixes and not self.globs:
            return False
        try:
            rel = Path(path).relative_to(self.base).as_posix()
        except ValueError:
            rel = Path(path).as_posix()
        return should_exclude_path(rel, self.prefixes, self.globs)


def matches_name(path: Path, patterns: Iterable[str]) -> bool:
    name = Path(path).name
    return any(fnmatch.fnmatch(name, pat) for pat in patterns)


def find_files(
    roots: Iterable[Path],
    patterns: Iterable[str],
    *,
    exclusions: PathExclusions | None = None,
    exclude_dirnames: Iterable[str] = DEFAULT_EXCLUDE_DIRNAMES,
) -> set[Path]:
    patterns = tuple(patterns)
    skip_dirs = set(exclude_dirnames)
    found: set[Path] = set()

    def onerror(err: OSError) -> None:
        _ = err

    for root in roots:
        root = Path(root).resolve()
        if root.is_file():
            if matches_name(root, patterns) and not (exclusions and exclusions.excludes(root)):
                found.add(root)
            continue
        for dirpath, dirnames, filenames in os.walk(root, onerror=onerror):
            dirnames[:] = [d for d in dirnames if d not in skip_dirs]
            for fn in filenames:
                p = Path(dirpath) / fn
                if not matches_name(p, patterns):
                    continue
                if exclusions is not None and exclusions.excludes(p):
                    continue
                if p.is_file():
                    found.add(p)
    return found
