"""Validate generated lockfiles against the bundled package-lock v1 schema.

Also usable as a CLI to check a lockfile on disk:
  python -m npm_lockgen.validators.lockfile_schema --input package-lock.json
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from ..errors import SchemaValidationError

DEFAULT_SCHEMA = Path(__file__).resolve().parents[1] / "schemas" / "package-lock-v1.schema.json"


def _load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


@lru_cache(maxsize=None)
def _validator(schema_path: Path) -> Draft202012Validator:
    return Draft202012Validator(_load_json(schema_path))


def _format_errors(errors: Iterable) -> str:
    messages = []
    for error in errors:
        pointer = "/".join(str(p) for p in error.path)
        messages.append(f"- {pointer or '<root>'}: {error.message}")
    return "\n".join(messages)


def validate_lockfile(document: dict[str, Any], schema_path: Path = DEFAULT_SCHEMA) -> None:
    """Raise SchemaValidationError listing every violation in ``document``."""
    validator = _validator(schema_path)
    errors = sorted(validator.iter_errors(document), key=lambda e: list(e.path))
    if errors:
        raise SchemaValidationError("Lockfile failed validation:\n" + _format_errors(errors))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--input",
        type=Path,
        default=Path("package-lock.json"),
        help="Path to the lockfile to validate",
    )
    parser.add_argument(
        "--schema",
        type=Path,
        default=DEFAULT_SCHEMA,
        help="Path to the JSON schema used for validation",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        validate_lockfile(_load_json(args.input), args.schema)
    except FileNotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as exc:
        print(f"ERROR: Failed to read JSON: {exc}", file=sys.stderr)
        return 1
    except SchemaValidationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(f"Lockfile {args.input} is valid against {args.schema}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
