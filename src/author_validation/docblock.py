from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Optional, Union

from .extractor import AuthorCache, read_text_or_empty
from .identity import AliasConfig, AuthorList, author_key, format_author, split_author
from .paths import PathExclusions, find_files, matches_name

# 4k ought to be enough of a file header for anyone.
HEADER_BYTES = 4096
DEFAULT_PREFIX = " * @author     "
DEFAULT_PATTERNS = ("*.php",)

_AUTHOR_LINE_RE = re.compile(r"^(?P<prefix>.*?@author\s+)(?P<value>.*?)(?P<suffix>\s*\*/)?\s*$")


@dataclasses.dataclass(frozen=True)
class AuthorLine:
    prefix: str
    author: str
    suffix: str = ""
    text: str = ""

    def render(self) -> str:
        return self.text or f"{self.prefix}{self.author}{self.suffix}"

    def closing_only(self) -> str:
        lead = self.prefix[: self.prefix.index("@author")].rstrip()
        if lead.strip() in ("", "*"):
            return " */"
        return f"{lead} */"


Slot = Union[str, AuthorLine]


def find_header(content: str, limit: int = HEADER_BYTES) -> Optional[str]:
    """Return the file header up to and including the first `*/` in the first `limit` bytes."""
    head = content.encode("utf-8")[:limit].decode("utf-8", errors="ignore")
    closing = head.find("*/")
    if closing < 0:
        return None
    return content[: closing + 2]


def _line_ending(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def parse_slots(header: str) -> list[Slot]:
    slots: list[Slot] = []
    for line in header.split(_line_ending(header)):
        m = _AUTHOR_LINE_RE.match(line)
        if m is None:
            slots.append(line)
            continue
        name, email = split_author(m.group("value"))
        author = format_author(name, email)
        if not author:
            slots.append(line)
            continue
        slots.append(AuthorLine(prefix=m.group("prefix"), author=author, suffix=m.group("suffix") or "", text=line))
    return slots


def header_authors(header: str) -> list[str]:
    return [s.author for s in parse_slots(header) if isinstance(s, AuthorLine)]


def _render(slot: Slot) -> str:
    if isinstance(slot, AuthorLine):
        return slot.render()
    return slot


def _open_closing_line(line: str, added: list[AuthorLine]) -> list[Optional[Slot]]:
    # Text before the closing `*/` keeps its own line; the new lines go after it.
    closing = line.rfind("*/")
    before = line[:closing].rstrip() if closing >= 0 else ""
    if not before.strip():
        return [*added, line]
    return [before, *added, " */"]


def rewrite_header(header: str, authors: AuthorList) -> str:
    """
    Make the @author lines of `header` declare exactly `authors`.

    Lines already naming a wanted author stay untouched. Lines naming anyone else
    are vacated; their slots are refilled with the authors still missing, and
    whatever is left over is inserted after the last @author line (or just before
    the closing `*/` when there was none). Vacated slots that are not refilled are dropped.
    """
    newline = _line_ending(header)
    slots: list[Optional[Slot]] = list(parse_slots(header))
    remaining = list(authors)
    prefix = DEFAULT_PREFIX
    vacated: list[tuple[int, AuthorLine]] = []
    last_author: Optional[int] = None
    closes_block = False

    for i, slot in enumerate(slots):
        if not isinstance(slot, AuthorLine):
            continue
        prefix = slot.prefix
        last_author = i
        closes_block = bool(slot.suffix)
        key = author_key(slot.author)
        match = next((j for j, a in enumerate(remaining) if author_key(a) == key), None)
        if match is None:
            vacated.append((i, slot))
        else:
            remaining.pop(match)

    for i, old in vacated:
        if remaining:
            slots[i] = AuthorLine(prefix=prefix, author=remaining.pop(0), suffix=old.suffix)
        elif old.suffix:
            slots[i] = old.closing_only()
        else:
            slots[i] = None

    if remaining:
        added = [AuthorLine(prefix=prefix, author=a) for a in remaining]
        if last_author is None:
            slots[-1:] = _open_closing_line(_render(slots[-1] or ""), added)
        else:
            at = last_author if closes_block else last_author + 1
            slots[at:at] = added

    return newline.join(_render(s) for s in slots if s is not None)


def rewrite_content(content: str, authors: AuthorList, limit: int = HEADER_BYTES) -> str:
    header = find_header(content, limit)
    if header is None:
        return content
    return rewrite_header(header, authors) + content[len(header) :]


class DocBlockAuthorExtractor:
    """Reads and rewrites `@author` annotations in the leading comment block of source files."""

    def __init__(
        self,
        include_paths: Iterable[Path],
        *,
        aliases: AliasConfig | None = None,
        exclusions: PathExclusions | None = None,
        patterns: Iterable[str] = DEFAULT_PATTERNS,
        limit: int = HEADER_BYTES,
    ) -> None:
        self.include_paths = [Path(p).resolve() for p in include_paths]
        self.exclusions = exclusions
        self.patterns = tuple(patterns)
        self.limit = limit
        self._cache = AuthorCache(aliases or AliasConfig())

    @property
    def problems(self) -> dict[Path, str]:
        return self._cache.problems

    def handles(self, path: Path) -> bool:
        if not matches_name(path, self.patterns):
            return False
        return not (self.exclusions is not None and self.exclusions.excludes(path))

    def enumerate_paths(self) -> set[Path]:
        return find_files(self.include_paths, self.patterns, exclusions=self.exclusions)

    def extract_authors(self, path: Path) -> Optional[AuthorList]:
        return self._cache.get(Path(path).resolve(), self._extract_raw)

    def _extract_raw(self, path: Path) -> Optional[list[str]]:
        if not self.handles(path):
            return None
        header = find_header(read_text_or_empty(path, self.limit), self.limit)
        if header is None:
            return None
        return header_authors(header)

    def read_content(self, path: Path) -> str:
        return read_text_or_empty(path)

    def rewrite(self, path: Path, authors: AuthorList) -> str:
        return rewrite_content(self.read_content(path), list(authors), self.limit)
