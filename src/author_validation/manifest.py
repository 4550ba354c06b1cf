from __future__ import annotations

import dataclasses
import json
import re
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, Optional

from .errors import MalformedSourceError
from .extractor import AuthorCache, read_text_or_empty
from .identity import AliasConfig, AuthorList, author_key, format_author, split_author
from .paths import PathExclusions, find_files

DEFAULT_ROLE = "Developer"

_INDENT_RE = re.compile(r"^\{\s*?\n([ \t]+)\S", re.MULTILINE)
# npm shorthand: "Name <email> (url)"
_URL_SUFFIX_RE = re.compile(r"\s*\([^()]*\)\s*$")


def entry_to_author(entry: Any) -> str:
    """Convert a manifest person entry (object or "Name <email> (url)" string) to display form."""
    if isinstance(entry, str):
        name, email = split_author(_URL_SUFFIX_RE.sub("", entry.strip()))
        return format_author(name, email)
    if isinstance(entry, dict):
        name = entry.get("name")
        email = entry.get("email")
        return format_author(name if isinstance(name, str) else "", email if isinstance(email, str) else "")
    return ""


def author_to_entry(author: str, role: str = "") -> dict[str, str]:
    name, email = split_author(author)
    entry = {"name": name}
    if email:
        entry["email"] = email
    if role:
        entry["role"] = role
    return entry


def _person_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [a for a in (entry_to_author(e) for e in value) if a]


def composer_authors(data: dict[str, Any]) -> list[str]:
    return _person_list(data.get("authors"))


def composer_set_authors(data: dict[str, Any], authors: AuthorList) -> dict[str, Any]:
    data["authors"] = [author_to_entry(a, role=DEFAULT_ROLE) for a in authors]
    return data


def bower_authors(data: dict[str, Any]) -> list[str]:
    return _person_list(data.get("authors"))


def bower_set_authors(data: dict[str, Any], authors: AuthorList) -> dict[str, Any]:
    data["authors"] = [author_to_entry(a) for a in authors]
    return data


def npm_authors(data: dict[str, Any]) -> list[str]:
    out: list[str] = []
    if "author" in data:
        a = entry_to_author(data.get("author"))
        if a:
            out.append(a)
    out.extend(_person_list(data.get("contributors")))
    return out


def npm_set_authors(data: dict[str, Any], authors: AuthorList) -> dict[str, Any]:
    wanted = list(authors)
    if "author" in data:
        current = entry_to_author(data.get("author"))
        keys = [author_key(a) for a in wanted]
        if current and author_key(current) in keys:
            wanted.pop(keys.index(author_key(current)))
        else:
            del data["author"]
    data["contributors"] = [author_to_entry(a) for a in wanted]
    return data


@dataclasses.dataclass(frozen=True)
class ManifestSchema:
    filename: str
    read_authors: Callable[[dict[str, Any]], list[str]]
    set_authors: Callable[[dict[str, Any], AuthorList], dict[str, Any]]


COMPOSER = ManifestSchema("composer.json", composer_authors, composer_set_authors)
BOWER = ManifestSchema("bower.json", bower_authors, bower_set_authors)
NPM = ManifestSchema("package.json", npm_authors, npm_set_authors)

SCHEMAS: dict[str, ManifestSchema] = {
    "composer": COMPOSER,
    "bower": BOWER,
    "packages": NPM,
}


def load_manifest(content: str, path: Path | None = None) -> Optional[dict[str, Any]]:
    if not content.strip():
        return None
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise MalformedSourceError(f"invalid JSON in {path or 'manifest'}: {e}") from e
    if not isinstance(data, dict):
        raise MalformedSourceError(f"expected a JSON object in {path or 'manifest'}")
    return data


def detect_indent(content: str) -> int:
    m = _INDENT_RE.search(content)
    if m is None:
        return 4
    return len(m.group(1).expandtabs(4)) or 4


def dump_manifest(data: dict[str, Any], indent: int = 4) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False) + "\n"


class ManifestAuthorExtractor:
    """Reads and rewrites the author entries of JSON package manifests."""

    def __init__(
        self,
        schema: ManifestSchema,
        include_paths: Iterable[Path],
        *,
        aliases: AliasConfig | None = None,
        exclusions: PathExclusions | None = None,
    ) -> None:
        self.schema = schema
        self.include_paths = [Path(p).resolve() for p in include_paths]
        self.exclusions = exclusions
        self._cache = AuthorCache(aliases or AliasConfig())

    @property
    def name(self) -> str:
        return self.schema.filename

    @property
    def problems(self) -> dict[Path, str]:
        return self._cache.problems

    def handles(self, path: Path) -> bool:
        if Path(path).name != self.schema.filename:
            return False
        return not (self.exclusions is not None and self.exclusions.excludes(path))

    def enumerate_paths(self) -> set[Path]:
        return find_files(self.include_paths, [self.schema.filename], exclusions=self.exclusions)

    def extract_authors(self, path: Path) -> Optional[AuthorList]:
        return self._cache.get(Path(path).resolve(), self._extract_raw)

    def _extract_raw(self, path: Path) -> Optional[list[str]]:
        if not self.handles(path):
            return None
        data = load_manifest(self.read_content(path), path)
        if data is None:
            return None
        return self.schema.read_authors(data)

    def read_content(self, path: Path) -> str:
        return read_text_or_empty(path)

    def rewrite(self, path: Path, authors: AuthorList) -> str:
        content = self.read_content(path)
        data = load_manifest(content, path)
        if data is None:
            return content
        return dump_manifest(self.schema.set_authors(data, list(authors)), indent=detect_indent(content))
