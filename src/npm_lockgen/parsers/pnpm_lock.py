"""Parse pnpm-lock.yaml into ``name@version`` -> LockRecord mappings."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from ..errors import LockParseError
from ..models.lock_record import LockRecord, reject_conflicts

LOCK_NAME = "pnpm-lock.yaml"

_SLASH_KEY = re.compile(r"^(?P<name>(?:@[^/]+/)?[^/@]+)/(?P<version>\d[^/_(]*)")
_AT_KEY = re.compile(r"^(?P<name>@?[^@]+)@(?P<version>\d[^(@]*)")


def split_key(key: str) -> tuple[str, str] | None:
    """Split a ``packages`` key into (name, version).

    Keys look like "/name/1.2.3_peer@1.0.0" (v5), "/name@1.2.3(peer@1.0.0)"
    (v6) or "name@1.2.3" (v9); scoped names keep their leading "@".
    """
    ref = key[1:] if key.startswith("/") else key
    match = _SLASH_KEY.match(ref) or _AT_KEY.match(ref)
    if match is None:
        return None
    return match.group("name"), match.group("version")


def parse_text(text: str, source: str = LOCK_NAME) -> dict[str, LockRecord]:
    """Return ``name@version`` -> LockRecord for every package with a version."""
    reject_conflicts(text, source)

    try:
        data: Any = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise LockParseError(f"Failed to parse {source}: {exc}") from exc
    if not isinstance(data, dict):
        raise LockParseError(f"Failed to parse {source}: expected a mapping")

    pkgs = data.get("packages") or {}
    if not isinstance(pkgs, dict):
        raise LockParseError(f"Failed to parse {source}: 'packages' must be a mapping")
    records: dict[str, LockRecord] = {}
    for key, meta in pkgs.items():
        if not isinstance(key, str):
            continue
        parts = split_key(key)
        if parts is None:
            continue
        name, version = parts
        if not isinstance(meta, dict):
            meta = {}
        resolution = meta.get("resolution") or {}
        if not isinstance(resolution, dict):
            resolution = {}
        records[f"{name}@{version}"] = LockRecord(
            version=str(meta.get("version") or version),
            resolved=resolution.get("tarball"),
            integrity=resolution.get("integrity"),
        )

    return records


def parse(path: Path) -> dict[str, LockRecord]:
    """Return LockRecords from a pnpm lock file."""
    return parse_text(path.read_text(encoding="utf-8"), source=str(path))
