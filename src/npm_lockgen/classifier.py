"""Mark lockfile entries as dev-only or optional-only by reachability.

An entry is ``dev`` when no path from a production, optional or peer
dependency of the root reaches it, and ``optional`` when no path from a
production, dev or peer dependency does. Edges are followed through
``requires`` and resolved the way Node would look them up in the written
tree: the entry's own ``dependencies`` first, then each ancestor's.
"""

from __future__ import annotations

from collections.abc import Iterable

from .errors import UnresolvedEntryError
from .models.entry import Entry, iter_entries
from .parsers.package_json import (
    DEV_SECTIONS,
    OPTIONAL_SECTIONS,
    PEER_SECTIONS,
    PROD_SECTIONS,
    Manifest,
    declared,
)

NON_DEV_SECTIONS = PROD_SECTIONS + OPTIONAL_SECTIONS + PEER_SECTIONS
NON_OPTIONAL_SECTIONS = PROD_SECTIONS + DEV_SECTIONS + PEER_SECTIONS


def resolve_requirement(entry: Entry, name: str) -> Entry:
    """Return the entry ``name`` resolves to when required from ``entry``."""
    current: Entry | None = entry
    while current is not None:
        found = current.get(name)
        if found is not None:
            return found
        current = current.parent
    raise UnresolvedEntryError(entry.name or "<root>", name)


def reachable(root: Entry, names: Iterable[str]) -> set[Entry]:
    """Return every entry reachable from the root-level entries in ``names``."""
    stack = [dep for dep in (root.get(name) for name in names) if dep is not None]
    seen: set[Entry] = set()
    while stack:
        entry = stack.pop()
        if entry in seen:
            continue
        seen.add(entry)
        for name in entry.requires or {}:
            stack.append(resolve_requirement(entry, name))
    return seen


def _mark_unreached(root: Entry, names: Iterable[str], flag: str) -> int:
    reached = reachable(root, names)
    marked = 0
    for entry in iter_entries(root):
        if entry not in reached:
            setattr(entry, flag, True)
            marked += 1
    return marked


def mark_dev(root: Entry, manifest: Manifest) -> int:
    """Flag entries only reachable through devDependencies; return the count."""
    return _mark_unreached(root, declared(manifest, NON_DEV_SECTIONS), "dev")


def mark_optional(root: Entry, manifest: Manifest) -> int:
    """Flag entries only reachable through optionalDependencies; return the count."""
    return _mark_unreached(root, declared(manifest, NON_OPTIONAL_SECTIONS), "optional")


def classify(root: Entry, manifest: Manifest) -> None:
    mark_dev(root, manifest)
    mark_optional(root, manifest)
