"""Build the resolved lockfile tree from an installed node_modules hierarchy.

Every requirement is located the way Node would load it, starting from the
requiring package's own directory. The entry for the located directory is
placed under its natural owner (the package whose node_modules area holds the
directory, or the root when the directory is outside any area we track). When
the natural owner already holds a different version under the same name, the
entry is nested under the requiring package instead so both versions survive.

Requirements are processed in declaration order, depth-first: one dependency
is placed and fully expanded before its next sibling is looked at. Placement
depends on what is already placed, so this order is part of the output
contract.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .discovery import locate, owner_of
from .errors import DependencyNotFoundError, ManifestError
from .metadata import MetadataResolver
from .models.entry import Entry
from .parsers.package_json import (
    DEV_SECTIONS,
    OPTIONAL_SECTIONS,
    PEER_SECTIONS,
    PROD_SECTIONS,
    Manifest,
    ManifestReader,
    declared,
)
from .parsers.semver import satisfies

logger = logging.getLogger(__name__)

# Only the root pulls in devDependencies.
ROOT_SECTIONS = PROD_SECTIONS + OPTIONAL_SECTIONS + PEER_SECTIONS + DEV_SECTIONS
PACKAGE_SECTIONS = PROD_SECTIONS + OPTIONAL_SECTIONS + PEER_SECTIONS


@dataclass
class BuildContext:
    """Traversal state of one build; never shared between roots."""

    root_dir: Path
    root: Entry
    visited_dirs: set[Path] = field(default_factory=set)
    dir_entries: dict[Path, Entry] = field(default_factory=dict)

    def track(self, directory: Path, entry: Entry) -> None:
        self.visited_dirs.add(directory)
        self.dir_entries[directory] = entry

    def natural_owner(self, installed_dir: Path) -> Entry:
        """Return the entry whose node_modules area holds ``installed_dir``."""
        owner_dir = owner_of(installed_dir)
        if owner_dir is None:
            return self.root
        return self.dir_entries.get(owner_dir, self.root)


class TreeBuilder:
    """Build :class:`Entry` trees; manifests and metadata caches are injected."""

    def __init__(
        self,
        manifests: ManifestReader | None = None,
        metadata: MetadataResolver | None = None,
    ) -> None:
        self.manifests = manifests or ManifestReader()
        self.metadata = metadata or MetadataResolver(self.manifests)

    def requires(self, directory: Path, manifest: Manifest, sections: tuple[str, ...]) -> dict[str, str]:
        """Return the declared dependencies of ``manifest`` that are installed."""
        requires: dict[str, str] = {}
        for name, expr in declared(manifest, sections).items():
            dep_dir = locate(directory, name)
            if dep_dir is None:
                logger.debug("%s: %s is not installed, leaving it out", directory, name)
                continue
            requires[name] = expr
            self._check_range(directory, name, expr, dep_dir)
        return requires

    def _check_range(self, directory: Path, name: str, expr: str, dep_dir: Path) -> None:
        installed = self.manifests.read(dep_dir).get("version")
        if installed and satisfies(str(installed), expr) is False:
            logger.warning(
                "invalid: %s@%s does not satisfy %s (required from %s)",
                name,
                installed,
                expr,
                directory,
            )

    def _entry_for(self, name: str, directory: Path) -> Entry:
        manifest = self.manifests.read(directory)
        version = manifest.get("version")
        if not version:
            raise ManifestError(f"Installed package {name} at {directory} has no version")

        meta = self.metadata.resolve(directory)
        return Entry(
            version=str(version),
            resolved=meta.resolved,
            integrity=meta.integrity,
            requires=self.requires(directory, manifest, PACKAGE_SECTIONS),
            name=name,
            location=directory,
        )

    def _expand(self, ctx: BuildContext, entry: Entry, directory: Path) -> None:
        for name in entry.requires or {}:
            dep_dir = locate(directory, name)
            if dep_dir is None:
                raise DependencyNotFoundError(name, directory)

            if dep_dir in ctx.visited_dirs:
                continue

            child = self._entry_for(name, dep_dir)
            owner = ctx.natural_owner(dep_dir)

            existing = owner.get(name)
            if existing is not None and existing.version != child.version:
                # Hoisting would shadow another version; keep this one local.
                owner = entry

            if owner.get(name) is not None:
                logger.debug("%s@%s already placed, reusing it", name, child.version)
                continue

            owner.place(name, child)
            ctx.track(dep_dir, child)
            self._expand(ctx, child, dep_dir)

    def build(self, root_dir: Path) -> Entry | None:
        """Return the root entry for ``root_dir`` or None if it has no manifest."""
        # Ancestor node_modules lookups need an absolute start.
        root_dir = Path(root_dir).resolve()
        manifest = self.manifests.read_if_exists(root_dir)
        if manifest is None:
            return None

        root = Entry(
            version=str(manifest.get("version") or ""),
            requires=self.requires(root_dir, manifest, ROOT_SECTIONS),
            name=str(manifest.get("name") or ""),
            location=root_dir,
        )
        ctx = BuildContext(root_dir=root_dir, root=root)
        ctx.track(root_dir, root)

        self._expand(ctx, root, root_dir)
        root.prune()
        return root


def build(
    root_dir: Path,
    manifests: ManifestReader | None = None,
    metadata: MetadataResolver | None = None,
) -> Entry | None:
    """Build the resolved tree for ``root_dir`` with a fresh context."""
    return TreeBuilder(manifests, metadata).build(root_dir)
