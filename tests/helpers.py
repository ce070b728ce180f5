"""Helpers that lay out fake installed packages on disk."""

from __future__ import annotations

import json
import pathlib
from typing import Any


def write_manifest(directory: pathlib.Path, manifest: dict[str, Any]) -> pathlib.Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    return directory


def install(
    base: pathlib.Path,
    name: str,
    version: str,
    dependencies: dict[str, str] | None = None,
    **extra: Any,
) -> pathlib.Path:
    """Install a fake package into ``base/node_modules/name``."""
    manifest: dict[str, Any] = {"name": name, "version": version}
    if dependencies:
        manifest["dependencies"] = dependencies
    manifest.update(extra)
    return write_manifest(base / "node_modules" / name, manifest)


def read_json(path: pathlib.Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))
