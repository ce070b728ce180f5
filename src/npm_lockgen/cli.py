"""Command-line entrypoint to regenerate package-lock.json from node_modules.

Usage:
  npm-lockgen [DIR ...] [--lock-format auto|yarn|pnpm|none] [--jobs N]
              [--recursive] [--no-git] [--no-validate] [--dry-run]
              [--config PATH] [--report PATH] [-v] [--version]

Exits 1 when at least one directory failed; the others are still processed.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .config import ConfigError, load_settings
from .core import update_locks
from .discovery import discover_package_roots
from .metadata import get_known_lock_formats

EXIT_FAILURES = 1
EXIT_CONFIG = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="npm-lockgen",
        description="Generate package-lock.json files from installed node_modules trees.",
    )
    parser.add_argument(
        "dirs",
        nargs="*",
        type=Path,
        default=[Path(".")],
        help="Package directories to process (default: current directory)",
    )
    parser.add_argument(
        "--lock-format",
        choices=get_known_lock_formats(),
        default=None,
        help="Secondary lock file consulted for resolved/integrity fields",
    )
    parser.add_argument("--jobs", "-j", type=int, default=None, help="Roots to process concurrently")
    parser.add_argument(
        "--recursive",
        "-r",
        action="store_true",
        help="Process every package.json found below the given directories",
    )
    parser.add_argument(
        "--no-git",
        dest="use_git",
        action="store_const",
        const=False,
        default=None,
        help="Merge into the on-disk lockfile instead of the one committed at HEAD",
    )
    parser.add_argument(
        "--no-validate",
        dest="validate",
        action="store_const",
        const=False,
        default=None,
        help="Skip schema validation of the generated lockfile",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print lockfiles instead of writing")
    parser.add_argument("--config", type=Path, default=None, help="Path to a JSON settings file")
    parser.add_argument("--report", type=Path, default=None, help="Write a JSON batch report here")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    if args.jobs is not None and args.jobs < 1:
        print("ERROR: --jobs must be a positive integer", file=sys.stderr)
        return EXIT_CONFIG

    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIG

    settings = settings.override(
        lock_format=args.lock_format,
        jobs=args.jobs,
        use_git=args.use_git,
        validate=args.validate,
    )

    dirs: list[Path] = []
    for target in args.dirs:
        dirs.extend(discover_package_roots(target) if args.recursive else [target])

    report = update_locks(dirs, settings, dry_run=args.dry_run)

    if args.report is not None:
        args.report.write_text(json.dumps(report, indent=2) + "\n", encoding="utf-8")

    return EXIT_FAILURES if report["hasFailures"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
