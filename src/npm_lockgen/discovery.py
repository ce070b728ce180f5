"""Locate installed packages the way Node's module loader does."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

MODULES_DIR = "node_modules"
MANIFEST_NAME = "package.json"

EXCLUDES = {MODULES_DIR, ".git", ".venv"}


def _module_dirs(start: Path) -> Iterable[Path]:
    """Yield every ``node_modules`` directory visible from ``start``, nearest first."""
    current = start
    while True:
        if current.name != MODULES_DIR:
            yield current / MODULES_DIR
        if current.parent == current:
            return
        current = current.parent


def locate(from_dir: Path, name: str) -> Path | None:
    """Return the directory ``name`` resolves to when required from ``from_dir``.

    Returns None when no installed copy is visible from any ancestor, which is
    how missing optional dependencies drop out of the tree.
    """
    for modules in _module_dirs(Path(from_dir)):
        candidate = modules / name
        if (candidate / MANIFEST_NAME).is_file():
            return candidate
    return None


def closest_modules_dir(location: Path) -> Path | None:
    """Return the nearest strict ancestor of ``location`` named node_modules."""
    for parent in Path(location).parents:
        if parent.name == MODULES_DIR:
            return parent
    return None


def owner_of(installed_dir: Path) -> Path | None:
    """Return the directory owning the module area ``installed_dir`` sits in.

    For ``/p/node_modules/a/node_modules/@s/b`` this is ``/p/node_modules/a``.
    None means the directory is not inside any ``node_modules`` area.
    """
    modules = closest_modules_dir(installed_dir)
    return modules.parent if modules is not None else None


def find_lock_dir(start_dir: Path, filenames: Iterable[str]) -> Path | None:
    """Find the nearest directory (inclusive) holding one of ``filenames``.

    Directories inside a node_modules area are never considered, so a package
    that ships its own yarn.lock does not shadow the project's.
    """
    names = tuple(filenames)
    start = Path(start_dir)
    for candidate in (start, *start.parents):
        if MODULES_DIR in candidate.parts:
            continue
        if any((candidate / name).is_file() for name in names):
            return candidate
    return None


def discover_package_roots(root: Path) -> list[Path]:
    """Find directories holding a package.json under ``root`` (excluding vendor dirs)."""
    root = root.resolve()
    found: list[Path] = []

    def should_skip(p: Path) -> bool:
        parts = set(p.parts)
        return any(ex in parts for ex in EXCLUDES)

    for path in sorted(root.rglob(MANIFEST_NAME)):
        if not path.is_file():
            continue
        if should_skip(path.relative_to(root)):
            continue
        found.append(path.parent)

    return found
