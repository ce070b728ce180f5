"""Parse yarn.lock (v1) into selector -> LockRecord mappings."""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import LockParseError
from ..models.lock_record import LockRecord, reject_conflicts

logger = logging.getLogger(__name__)

LOCK_NAME = "yarn.lock"

_FIELDS = ("version", "resolved", "integrity")


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def _flush(
    records: dict[str, LockRecord],
    selectors: list[str],
    fields: dict[str, str],
    line_no: int,
) -> None:
    if not selectors:
        return
    version = fields.get("version")
    if not version:
        raise LockParseError(f"Entry ending at line {line_no} has no version")
    record = LockRecord(
        version=version,
        resolved=fields.get("resolved"),
        integrity=fields.get("integrity"),
    )
    for selector in selectors:
        records[selector] = record


def parse_text(text: str, source: str = LOCK_NAME) -> dict[str, LockRecord]:
    """Return a mapping of ``name@range`` selector -> LockRecord.

    Raises LockConflictError when the text still holds merge conflict markers,
    rather than returning a partial view of one side of the conflict.
    """
    reject_conflicts(text, source)
    lines = text.splitlines()

    if any(raw.startswith("__metadata:") for raw in lines):
        # Berry lockfiles carry checksums that are not npm integrity strings.
        logger.debug("%s is a yarn berry lockfile, ignoring it", source)
        return {}

    records: dict[str, LockRecord] = {}
    selectors: list[str] = []
    fields: dict[str, str] = {}

    for line_no, raw in enumerate(lines, start=1):
        line = raw.rstrip()
        if not line or line.lstrip().startswith("#"):
            continue

        if not line.startswith(" "):
            _flush(records, selectors, fields, line_no)
            if not line.endswith(":"):
                raise LockParseError(f"Failed to parse {source}: unexpected line {line_no}")
            header = line[:-1]
            selectors = [_unquote(part) for part in header.split(",") if part.strip()]
            fields = {}
            continue

        indent = len(line) - len(line.lstrip(" "))
        if indent != 2 or not selectors:
            # Nested blocks like "dependencies:" are not needed for metadata.
            continue

        stripped = line.strip()
        if stripped.endswith(":"):
            continue
        key, _, value = stripped.partition(" ")
        key = _unquote(key)
        if key in _FIELDS:
            fields[key] = _unquote(value)

    _flush(records, selectors, fields, len(lines))
    return records


def parse(path: Path) -> dict[str, LockRecord]:
    """Return selector -> LockRecord from a yarn lock file."""
    return parse_text(path.read_text(encoding="utf-8"), source=str(path))
