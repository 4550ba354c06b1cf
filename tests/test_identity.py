from __future__ import annotations

import itertools

from author_validation.identity import (
    AliasConfig,
    canonical_authors,
    format_author,
    normalize_authors,
    split_author,
)


def test_normalize_none_passes_through() -> None:
    assert normalize_authors(None) is None
    assert normalize_authors([]) == []


def test_normalize_dedupes_case_insensitively() -> None:
    out = normalize_authors(["A <a@x>", "a <A@X>"])
    assert out is not None
    assert len(out) == 1


def test_normalize_sorts_case_insensitively_and_drops_blanks() -> None:
    assert normalize_authors(["bob <b@x>", "Alice <a@x>", "  ", "Carol <c@x>"]) == ["Alice <a@x>", "bob <b@x>", "Carol <c@x>"]


def test_normalize_is_idempotent() -> None:
    raw = ["Zed <z@x>", "zed <Z@X>", "Amy <amy@x>", " Bob <b@x> "]
    once = normalize_authors(raw)
    assert normalize_authors(once) == once


def test_normalize_ignores_input_order() -> None:
    raw = ["A <a@x>", "a <A@X>", "Bob <b@x>", "carl <c@x>"]
    results = {tuple(normalize_authors(list(p)) or []) for p in itertools.permutations(raw)}
    assert len(results) == 1


def test_split_and_format_author() -> None:
    assert split_author("Jane  Doe <jane@example.org>") == ("Jane Doe", "jane@example.org")
    assert split_author("Jane Doe") == ("Jane Doe", "")
    assert format_author("Jane Doe", "jane@example.org") == "Jane Doe <jane@example.org>"
    assert format_author("Jane Doe") == "Jane Doe"


def test_alias_resolution_exact_then_case_insensitive() -> None:
    aliases = AliasConfig.build({"jd <JD@old>": "Jane Doe <jane@example.org>"})
    assert aliases.resolve("jd <JD@old>") == "Jane Doe <jane@example.org>"
    assert aliases.resolve("JD <jd@old>") == "Jane Doe <jane@example.org>"
    assert aliases.resolve("Someone <s@x>") == "Someone <s@x>"


def test_ignored_author_never_survives() -> None:
    aliases = AliasConfig.build({"Bot Alias <bot@old>": "A <a@x>"}, ignored=["A <a@x>"])
    assert aliases.resolve("a <A@X>") is None
    assert aliases.resolve("Bot Alias <bot@old>") is None
    assert canonical_authors(["A <a@x>", "B <b@x>", "Bot Alias <bot@old>"], aliases) == ["B <b@x>"]
    assert canonical_authors(None, aliases) is None
