"""Resolved dependency tree entry model."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(eq=False)
class Entry:
    """One installed package version at one position of the lockfile tree.

    Entries compare by identity: the same object is shared by every
    ``requires`` edge that resolves to it. ``name``, ``location`` and
    ``parent`` are placement bookkeeping and never serialized.
    """

    version: str
    resolved: str | None = None
    integrity: str | None = None
    requires: dict[str, str] | None = None
    dependencies: dict[str, Entry] | None = None
    dev: bool = False
    optional: bool = False
    name: str = ""
    location: Path | None = field(default=None, repr=False)
    parent: Entry | None = field(default=None, repr=False)

    def place(self, name: str, child: Entry) -> None:
        """Nest ``child`` under this entry's ``dependencies``."""
        if self.dependencies is None:
            self.dependencies = {}
        if name in self.dependencies:
            raise ValueError(f"{self.name or '<root>'} already holds an entry for {name}")
        self.dependencies[name] = child
        child.parent = self

    def get(self, name: str) -> Entry | None:
        if self.dependencies is None:
            return None
        return self.dependencies.get(name)

    def prune(self) -> None:
        """Drop empty ``requires`` / ``dependencies`` maps across the subtree."""
        for entry in (self, *iter_entries(self)):
            if not entry.requires:
                entry.requires = None
            if not entry.dependencies:
                entry.dependencies = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"version": self.version}
        if self.resolved:
            data["resolved"] = self.resolved
        if self.integrity:
            data["integrity"] = self.integrity
        if self.dev:
            data["dev"] = True
        if self.optional:
            data["optional"] = True
        if self.requires:
            data["requires"] = dict(self.requires)
        if self.dependencies:
            data["dependencies"] = {
                name: child.to_dict() for name, child in self.dependencies.items()
            }
        return data


def iter_entries(entry: Entry) -> Iterator[Entry]:
    """Yield every entry nested below ``entry`` (children before their parent)."""
    for child in (entry.dependencies or {}).values():
        yield from iter_entries(child)
        yield child
