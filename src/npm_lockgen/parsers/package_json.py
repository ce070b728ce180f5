"""Read package.json manifests and extract dependencies across sections."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

from ..errors import ManifestError

MANIFEST_NAME = "package.json"

PROD_SECTIONS = ("dependencies",)
DEV_SECTIONS = ("devDependencies",)
OPTIONAL_SECTIONS = ("optionalDependencies",)
PEER_SECTIONS = ("peerDependencies",)

Manifest = dict[str, Any]

_MISSING = object()


def declared(manifest: Manifest, sections: tuple[str, ...]) -> dict[str, str]:
    """Return name -> range merged across ``sections`` in the given order.

    A name declared in several sections keeps the position of its first
    declaration and the range of its last one.
    """
    merged: dict[str, str] = {}
    for section in sections:
        deps = manifest.get(section) or {}
        if not isinstance(deps, dict):
            continue
        for name, version in deps.items():
            merged[name] = str(version)
    return merged


class ManifestReader:
    """Read-through cache of parsed manifests keyed by manifest path.

    One reader is meant to be shared by every build of a batch. The cache is
    guarded by a lock, so concurrent builds never parse the same file twice.
    """

    def __init__(self) -> None:
        self._cache: dict[Path, Any] = {}
        self._lock = threading.Lock()

    def _load(self, location: Path) -> Any:
        try:
            content = location.read_text(encoding="utf-8")
        except FileNotFoundError:
            return _MISSING
        except OSError as exc:
            raise ManifestError(f"Failed to read {location}: {exc}") from exc

        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ManifestError(f"Invalid JSON in {location}: {exc}") from exc

        if not isinstance(data, dict):
            raise ManifestError(f"{location} must contain a JSON object")
        return data

    def _get(self, directory: Path) -> Any:
        location = Path(directory) / MANIFEST_NAME
        with self._lock:
            if location not in self._cache:
                self._cache[location] = self._load(location)
            return self._cache[location]

    def read_if_exists(self, directory: Path) -> Manifest | None:
        """Return the manifest in ``directory`` or None when there is none."""
        data = self._get(directory)
        return None if data is _MISSING else data

    def read(self, directory: Path) -> Manifest:
        data = self._get(directory)
        if data is _MISSING:
            raise ManifestError(f"No {MANIFEST_NAME} found in {directory}")
        return data

    def preload(self, directory: Path, manifest: Manifest) -> None:
        """Seed the cache, bypassing the filesystem."""
        with self._lock:
            self._cache[Path(directory) / MANIFEST_NAME] = manifest
