from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .comparator import AuthorListComparator, format_mismatch
from .config import CONFIG_FILENAME, ValidationConfig, build_config, load_config
from .docblock import DocBlockAuthorExtractor
from .errors import AuthorValidationError
from .extractor import AuthorExtractor
from .git import DEFAULT_TIMEOUT_S
from .git_extractor import GitAuthorExtractor
from .manifest import SCHEMAS, ManifestAuthorExtractor

MANIFEST_OPTIONS = ("composer", "bower", "packages")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="check-author", description="Check that all authors are mentioned in each file.")
    parser.add_argument(
        "dir",
        nargs="?",
        type=Path,
        default=Path("."),
        help="The directory to start searching, must be a git repository or a subdir in a git repository.",
    )
    parser.add_argument("--php-files", action="store_true", help="Validate @author annotations in PHP files.")
    parser.add_argument("--composer", action="store_true", help="Validate authors in composer.json.")
    parser.add_argument("--bower", action="store_true", help="Validate authors in bower.json.")
    parser.add_argument("--packages", action="store_true", help="Validate authors in package.json.")
    parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        help='Author to ignore (format: "John Doe <j.doe@acme.org>"); repeatable.',
    )
    parser.add_argument("--exclude", action="append", default=[], help="Path prefix or glob to exclude; repeatable.")
    parser.add_argument(
        "--diff",
        action="store_true",
        help="Create output in diff format instead of mentioning what's missing/superfluous.",
    )
    parser.add_argument("--config", type=Path, default=None, help=f"Path to config file (default: <dir>/{CONFIG_FILENAME}).")
    parser.add_argument("--jobs", type=int, default=1, help="Parallel extraction jobs.")
    parser.add_argument("--git-timeout", type=int, default=DEFAULT_TIMEOUT_S, help="Timeout in seconds for each git call.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Report skipped sources.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print the verdict (and the patch with --diff).")
    return parser


def create_source_extractors(options: argparse.Namespace, config: ValidationConfig) -> list[ManifestAuthorExtractor]:
    extractors: list[ManifestAuthorExtractor] = []
    for option in MANIFEST_OPTIONS:
        if getattr(options, option, False):
            extractors.append(
                ManifestAuthorExtractor(
                    SCHEMAS[option],
                    config.include_paths,
                    aliases=config.aliases,
                    exclusions=config.exclusions,
                )
            )
    return extractors


def _report_problems(extractors: list[AuthorExtractor], config: ValidationConfig) -> None:
    for extractor in extractors:
        problems = getattr(extractor, "problems", {}) or {}
        for path in sorted(problems):
            print(f"Skipped {_label(path, config)}: {problems[path]}", file=sys.stderr)


def _label(path: Path, config: ValidationConfig) -> str:
    try:
        return path.relative_to(config.root).as_posix()
    except ValueError:
        return str(path)


def run_validation(options: argparse.Namespace, config: ValidationConfig) -> bool:
    """Run every selected validation; return True when all declared author lists match git."""
    comparator = AuthorListComparator(generate_patches=bool(options.diff), jobs=config.jobs, base=config.root)
    git = GitAuthorExtractor(
        config.include_paths,
        aliases=config.aliases,
        exclusions=config.exclusions,
        timeout_s=config.git_timeout_s,
    )

    ok = True
    candidates: list[AuthorExtractor] = []
    for extractor in create_source_extractors(options, config):
        candidates.append(extractor)
        ok = comparator.compare(extractor, git) and ok

    if options.php_files:
        docs = DocBlockAuthorExtractor(config.include_paths, aliases=config.aliases, exclusions=config.exclusions)
        candidates.append(docs)
        ok = comparator.compare(docs, git, paths=docs.enumerate_paths()) and ok

    if options.verbose:
        _report_problems(candidates, config)

    if options.diff:
        if not ok:
            sys.stdout.write(comparator.patch_set())
    elif not options.quiet:
        for m in comparator.mismatches:
            for line in format_mismatch(m, _label(m.path, config)):
                print(line)
    return ok


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = _build_parser()
    options = parser.parse_args(argv)

    if not (options.php_files or any(getattr(options, o) for o in MANIFEST_OPTIONS)):
        print("You must select at least one validation to run!", file=sys.stderr)
        print("check-author [--php-files] [--composer] [--bower] [--packages]", file=sys.stderr)
        return 1

    root = options.dir.resolve()
    if not root.exists():
        print(f"Directory not found: {root}", file=sys.stderr)
        return 2
    config_path = options.config if options.config is not None else root / CONFIG_FILENAME
    config = build_config(
        root,
        load_config(config_path),
        ignore=options.ignore,
        exclude=options.exclude,
        git_timeout_s=options.git_timeout,
        jobs=options.jobs,
    )

    try:
        ok = run_validation(options, config)
    except AuthorValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Could not run validation.", file=sys.stderr)
        return 2

    if not ok:
        print("Validation failed: author lists do not match the git history.", file=sys.stderr)
        return 1
    if not options.quiet and not options.diff:
        print("All authors are properly mentioned.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
