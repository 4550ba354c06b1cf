from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable, Mapping
from typing import Optional

AuthorList = list[str]

_AUTHOR_RE = re.compile(r"^(?P<name>.*?)\s*<(?P<email>[^<>]*)>\s*$")


def author_key(author: str) -> str:
    return author.strip().lower()


def format_author(name: str, email: str = "") -> str:
    name = " ".join((name or "").split())
    email = (email or "").strip()
    if email:
        return f"{name} <{email}>" if name else f"<{email}>"
    return name


def split_author(author: str) -> tuple[str, str]:
    """
    Split a display string into (name, email):
      - "Jane Doe <jane@example.org>" -> ("Jane Doe", "jane@example.org")
      - "Jane Doe"                    -> ("Jane Doe", "")
    """
    s = (author or "").strip()
    m = _AUTHOR_RE.match(s)
    if m is None:
        return " ".join(s.split()), ""
    return " ".join(m.group("name").split()), m.group("email").strip()


def normalize_authors(authors: Optional[Iterable[str]]) -> Optional[AuthorList]:
    """
    Case-insensitively dedupe and sort a raw author list.

    None stays None ("no data"), an empty input yields an empty list. When several
    spellings share a key the smallest one wins, so the result does not depend on
    input order.
    """
    if authors is None:
        return None
    by_key: dict[str, str] = {}
    for author in authors:
        a = (author or "").strip()
        if not a:
            continue
        key = a.lower()
        prev = by_key.get(key)
        if prev is None or a < prev:
            by_key[key] = a
    return [by_key[k] for k in sorted(by_key)]


@dataclasses.dataclass(frozen=True)
class AliasConfig:
    aliases: Mapping[str, str] = dataclasses.field(default_factory=dict)
    ignored: frozenset[str] = frozenset()  # lower-cased keys

    @classmethod
    def build(cls, aliases: Mapping[str, str] | None = None, ignored: Iterable[str] = ()) -> "AliasConfig":
        return cls(
            aliases={str(k).strip(): str(v).strip() for k, v in (aliases or {}).items() if str(k).strip()},
            ignored=frozenset(author_key(a) for a in ignored if str(a).strip()),
        )

    def is_ignored(self, author: str) -> bool:
        return author_key(author) in self.ignored

    def resolve(self, author: str) -> Optional[str]:
        raw = (author or "").strip()
        if not raw or self.is_ignored(raw):
            return None
        real = self.aliases.get(raw)
        if real is None:
            key = raw.lower()
            for alias, canonical in self.aliases.items():
                if alias.lower() == key:
                    real = canonical
                    break
        if real is None:
            return raw
        if self.is_ignored(real):
            return None
        return real


def resolve_authors(authors: Optional[Iterable[str]], aliases: AliasConfig) -> Optional[AuthorList]:
    if authors is None:
        return None
    out: AuthorList = []
    for author in authors:
        real = aliases.resolve(author)
        if real:
            out.append(real)
    return out


def canonical_authors(authors: Optional[Iterable[str]], aliases: AliasConfig) -> Optional[AuthorList]:
    return normalize_authors(resolve_authors(authors, aliases))
