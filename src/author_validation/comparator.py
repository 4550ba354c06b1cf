from __future__ import annotations

import dataclasses
import difflib
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from .extractor import AuthorExtractor, PatchingAuthorExtractor
from .identity import AuthorList, author_key


@dataclasses.dataclass(frozen=True)
class PathMismatch:
    path: Path
    missing: AuthorList  # in the reference, not declared
    superfluous: AuthorList  # declared, not in the reference
    patch: str = ""


def diff_authors(declared: AuthorList, actual: AuthorList) -> tuple[AuthorList, AuthorList]:
    declared_keys = {author_key(a) for a in declared}
    actual_keys = {author_key(a) for a in actual}
    missing = [a for a in actual if author_key(a) not in declared_keys]
    superfluous = [a for a in declared if author_key(a) not in actual_keys]
    return missing, superfluous


def unified_patch(original: str, updated: str, label: str) -> str:
    a = original.splitlines(keepends=True)
    b = updated.splitlines(keepends=True)
    lines: list[str] = []
    for line in difflib.unified_diff(a, b, fromfile=f"a/{label}", tofile=f"b/{label}"):
        if line.endswith("\n"):
            lines.append(line)
        else:
            lines.append(line + "\n\\ No newline at end of file\n")
    return "".join(lines)


class AuthorListComparator:
    """
    Compares a candidate (declared) author source against a reference source.

    Mismatches and patches accumulate across calls to `compare`, so one
    comparator can drive several candidate extractors in one run.
    """

    def __init__(self, *, generate_patches: bool = False, jobs: int = 1, base: Path | None = None) -> None:
        self.generate_patches = generate_patches
        self.jobs = max(1, int(jobs))
        self.base = Path(base).resolve() if base is not None else None
        self.mismatches: list[PathMismatch] = []

    def compare(
        self,
        candidate: AuthorExtractor,
        reference: AuthorExtractor,
        paths: Optional[Iterable[Path]] = None,
    ) -> bool:
        if paths is None:
            paths = reference.enumerate_paths()
        ordered = sorted({Path(p) for p in paths})

        def check(path: Path) -> Optional[PathMismatch]:
            return self._check_path(candidate, reference, path)

        if self.jobs > 1 and len(ordered) > 1:
            with ThreadPoolExecutor(max_workers=self.jobs) as ex:
                results = list(ex.map(check, ordered))
        else:
            results = [check(p) for p in ordered]

        found = [r for r in results if r is not None]
        self.mismatches.extend(found)
        return not found

    def _check_path(self, candidate: AuthorExtractor, reference: AuthorExtractor, path: Path) -> Optional[PathMismatch]:
        declared = candidate.extract_authors(path)
        if declared is None:
            return None
        actual = reference.extract_authors(path)
        if actual is None:
            return None
        missing, superfluous = diff_authors(declared, actual)
        if not missing and not superfluous:
            return None
        patch = ""
        if self.generate_patches and isinstance(candidate, PatchingAuthorExtractor):
            original = candidate.read_content(path)
            updated = candidate.rewrite(path, actual)
            patch = unified_patch(original, updated, self.label_for(path))
        return PathMismatch(path=path, missing=missing, superfluous=superfluous, patch=patch)

    def label_for(self, path: Path) -> str:
        if self.base is not None:
            try:
                return Path(path).relative_to(self.base).as_posix()
            except ValueError:
                pass
        return Path(path).as_posix().lstrip("/")

    def patch_set(self) -> str:
        return "".join(m.patch for m in self.mismatches if m.patch)


def format_mismatch(mismatch: PathMismatch, label: str) -> list[str]:
    lines: list[str] = []
    if mismatch.missing:
        lines.append(f"The file {label} is missing the following author(s):")
        lines.extend(f"  + {a}" for a in mismatch.missing)
    if mismatch.superfluous:
        lines.append(f"The file {label} mentions superfluous author(s):")
        lines.extend(f"  - {a}" for a in mismatch.superfluous)
    return lines
