from __future__ import annotations

import dataclasses
import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .git import DEFAULT_TIMEOUT_S
from .identity import AliasConfig
from .paths import PathExclusions

CONFIG_FILENAME = ".check-author.json"


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    try:
        config = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SystemExit(f"Invalid config file {config_path}: {e}")
    if not isinstance(config, dict):
        raise SystemExit(f"Invalid config file {config_path}: expected a JSON object")
    return config


def alias_mapping(mapping: Any) -> dict[str, str]:
    """
    Accept both shapes of the `mapping` table:
      - {"Canonical <c@x>": ["Alias <a@x>", ...]}
      - {"Alias <a@x>": "Canonical <c@x>"}
    and return {alias: canonical}.
    """
    out: dict[str, str] = {}
    if not isinstance(mapping, dict):
        return out
    for key, value in mapping.items():
        key = str(key).strip()
        if not key:
            continue
        if isinstance(value, str):
            if value.strip():
                out[key] = value.strip()
        elif isinstance(value, (list, tuple)):
            for alias in value:
                alias = str(alias).strip()
                if alias and alias != key:
                    out[alias] = key
    return out


@dataclasses.dataclass(frozen=True)
class ValidationConfig:
    root: Path
    include_paths: tuple[Path, ...]
    exclusions: PathExclusions
    aliases: AliasConfig
    git_timeout_s: int = DEFAULT_TIMEOUT_S
    jobs: int = 1


def build_config(
    root: Path,
    config: dict,
    *,
    ignore: Iterable[str] = (),
    exclude: Iterable[str] = (),
    git_timeout_s: int = DEFAULT_TIMEOUT_S,
    jobs: int = 1,
) -> ValidationConfig:
    root = Path(root).resolve()
    include = [str(p) for p in (config.get("include") or []) if str(p).strip()]
    include_paths = tuple((root / p).resolve() for p in include) or (root,)
    exclude_patterns = [*(config.get("exclude") or []), *exclude]
    ignored = [*(config.get("ignore") or []), *ignore]
    return ValidationConfig(
        root=root,
        include_paths=include_paths,
        exclusions=PathExclusions.from_patterns(root, exclude_patterns),
        aliases=AliasConfig.build(alias_mapping(config.get("mapping")), ignored),
        git_timeout_s=int(git_timeout_s),
        jobs=max(1, int(jobs)),
    )
