"""Recover ``resolved`` / ``integrity`` for installed packages.

The installed package.json is the primary source (npm writes ``_resolved``
and ``_integrity`` there at install time). When a field is missing, the
nearest secondary lock file (yarn.lock or pnpm-lock.yaml) is consulted. The
registry below maps lock format IDs to their file name and parser, so adding a
format means adding a handler.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias

from .discovery import find_lock_dir
from .models.lock_record import LockRecord, split_selector, strip_fragment
from .parsers import pnpm_lock, yarn_lock
from .parsers.package_json import ManifestReader

logger = logging.getLogger(__name__)

ParseFunction: TypeAlias = Callable[[Path], dict[str, LockRecord]]

AUTO = "auto"
NONE = "none"


@dataclass(slots=True, frozen=True)
class LockHandler:
    """Handler binding a lock format ID to its file name and parser."""

    format_id: str
    filename: str
    parse: ParseFunction


# Order matters for "auto": earlier handlers win when both files sit in one directory.
LOCK_HANDLERS: dict[str, LockHandler] = {
    "yarn": LockHandler(format_id="yarn", filename=yarn_lock.LOCK_NAME, parse=yarn_lock.parse),
    "pnpm": LockHandler(format_id="pnpm", filename=pnpm_lock.LOCK_NAME, parse=pnpm_lock.parse),
}


class UnknownLockFormatError(ValueError):
    """Raised when a lock format ID is not found in the registry."""


def get_known_lock_formats() -> list[str]:
    """Return every value accepted as a lock format, registry IDs first."""
    return [*LOCK_HANDLERS.keys(), AUTO, NONE]


def get_lock_handlers(lock_format: str) -> list[LockHandler]:
    """Return the handlers consulted for ``lock_format`` in priority order."""
    if lock_format == AUTO:
        return list(LOCK_HANDLERS.values())
    if lock_format == NONE:
        return []
    handler = LOCK_HANDLERS.get(lock_format)
    if handler is None:
        known = ", ".join(get_known_lock_formats())
        raise UnknownLockFormatError(f"Unknown lock format '{lock_format}'. Known formats: {known}")
    return [handler]


def find_record(records: Mapping[str, LockRecord], name: str, version: str) -> LockRecord | None:
    """Return the record for ``name`` whose version equals ``version`` exactly."""
    for key, record in records.items():
        if split_selector(key)[0] == name and record.version == version:
            return record
    return None


@dataclass(frozen=True)
class PackageMeta:
    """Provenance fields of one installed package."""

    resolved: str | None = None
    integrity: str | None = None

    @property
    def complete(self) -> bool:
        return bool(self.resolved and self.integrity)


class SecondaryLocks:
    """Read-through cache of parsed secondary lock files keyed by file path."""

    def __init__(self, lock_format: str = AUTO) -> None:
        self.handlers = get_lock_handlers(lock_format)
        self._cache: dict[Path, dict[str, LockRecord]] = {}
        self._lock = threading.Lock()

    def _read(self, handler: LockHandler, location: Path) -> dict[str, LockRecord]:
        with self._lock:
            if location not in self._cache:
                logger.debug("Reading %s", location)
                self._cache[location] = handler.parse(location)
            return self._cache[location]

    def records_for(self, package_dir: Path) -> dict[str, LockRecord]:
        """Return the records of the lock file nearest to ``package_dir``."""
        if not self.handlers:
            return {}
        lock_dir = find_lock_dir(package_dir, [h.filename for h in self.handlers])
        if lock_dir is None:
            return {}
        for handler in self.handlers:
            location = lock_dir / handler.filename
            if location.is_file():
                return self._read(handler, location)
        return {}


class MetadataResolver:
    """Resolve provenance for installed packages from manifests and lock files."""

    def __init__(self, manifests: ManifestReader, locks: SecondaryLocks | None = None) -> None:
        self.manifests = manifests
        self.locks = locks

    def resolve(self, installed_dir: Path) -> PackageMeta:
        manifest = self.manifests.read_if_exists(installed_dir)
        if manifest is None:
            return PackageMeta()

        meta = PackageMeta(
            resolved=manifest.get("_resolved") or None,
            integrity=manifest.get("_integrity") or None,
        )
        if meta.complete or self.locks is None:
            return meta

        name = manifest.get("name")
        version = manifest.get("version")
        if not name or not version:
            return meta

        record = find_record(self.locks.records_for(installed_dir), str(name), str(version))
        if record is None:
            return meta

        return PackageMeta(
            resolved=meta.resolved or strip_fragment(record.resolved),
            integrity=meta.integrity or record.integrity,
        )
