"""Core lockfile generation entrypoints.

This module MUST NOT parse command-line arguments so it can be used both by
the ``npm-lockgen`` CLI and as a library.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, TextIO

from .builder import TreeBuilder
from .classifier import classify
from .config import Settings
from .git import read_current, read_file_from_head_or_now
from .merge import transform_into
from .metadata import MetadataResolver, SecondaryLocks
from .models.entry import Entry
from .parsers.package_json import Manifest, ManifestReader
from .report import FAILED, PRINTED, SKIPPED, WRITTEN, aggregate, project_result
from .validators.lockfile_schema import validate_lockfile

logger = logging.getLogger(__name__)

LOCKFILE_VERSION = 1


def build_document(manifest: Manifest, root: Entry) -> dict[str, Any]:
    """Return the package-lock document for a classified root entry."""
    document: dict[str, Any] = {}
    if manifest.get("name"):
        document["name"] = str(manifest["name"])
    if root.version:
        document["version"] = root.version
    document["lockfileVersion"] = LOCKFILE_VERSION
    document["requires"] = True
    if root.dependencies:
        document["dependencies"] = root.to_dict()["dependencies"]
    return document


def generate_lockfile(
    root_dir: Path,
    manifests: ManifestReader | None = None,
    locks: SecondaryLocks | None = None,
) -> dict[str, Any] | None:
    """Build, classify and serialize the lockfile for ``root_dir``.

    Returns None when ``root_dir`` has no package.json.
    """
    root_dir = Path(root_dir).resolve()
    manifests = manifests or ManifestReader()
    locks = locks if locks is not None else SecondaryLocks()
    builder = TreeBuilder(manifests, MetadataResolver(manifests, locks))

    root = builder.build(root_dir)
    if root is None:
        return None

    manifest = manifests.read(root_dir)
    classify(root, manifest)
    return build_document(manifest, root)


def read_previous(location: Path, use_git: bool = True) -> Any:
    """Return the previously written lockfile, or {} when there is none."""
    text = read_file_from_head_or_now(location) if use_git else read_current(location)
    if not text:
        return {}
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.debug("Ignoring unreadable previous lockfile %s: %s", location, exc)
        return {}


def render(document: Any) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def save_lockfile(
    root_dir: Path,
    document: dict[str, Any],
    settings: Settings | None = None,
    dry_run: bool = False,
    stream: TextIO | None = None,
) -> str:
    """Merge ``document`` into the previous lockfile and write it.

    With ``dry_run`` the merged text goes to ``stream`` (stdout by default)
    instead. Returns the rendered text.
    """
    settings = settings or Settings()
    location = Path(root_dir) / settings.lockfile_name

    merged = transform_into(read_previous(location, settings.use_git), document)
    if settings.validate:
        validate_lockfile(merged)

    text = render(merged)
    if dry_run:
        (stream or sys.stdout).write(text)
    else:
        location.write_text(text, encoding="utf-8")
        logger.info("Wrote %s", location)
    return text


def _count_entries(document: dict[str, Any]) -> int:
    def walk(deps: dict[str, Any]) -> int:
        return sum(1 + walk(meta.get("dependencies") or {}) for meta in deps.values())

    return walk(document.get("dependencies") or {})


def update_lock(
    root_dir: Path,
    settings: Settings | None = None,
    manifests: ManifestReader | None = None,
    locks: SecondaryLocks | None = None,
    dry_run: bool = False,
    stream: TextIO | None = None,
) -> dict[str, Any]:
    """Generate and save the lockfile of one root; failures are reported, not raised."""
    settings = settings or Settings()
    root_dir = Path(root_dir).resolve()
    logger.info("Generating lockfile for %s...", root_dir)

    try:
        document = generate_lockfile(root_dir, manifests, locks)
        if document is None:
            logger.info("No packages found in %s, skipped", root_dir)
            return project_result(str(root_dir), SKIPPED)
        save_lockfile(root_dir, document, settings, dry_run=dry_run, stream=stream)
    except Exception as exc:  # one root never stops the batch
        logger.exception("Error generating lockfile for package %s: %s", root_dir, exc)
        return project_result(str(root_dir), FAILED, error=str(exc))

    status = PRINTED if dry_run else WRITTEN
    return project_result(str(root_dir), status, entries=_count_entries(document))


def update_locks(
    dirs: Iterable[Path],
    settings: Settings | None = None,
    dry_run: bool = False,
    stream: TextIO | None = None,
) -> dict[str, Any]:
    """Generate lockfiles for every directory in ``dirs``.

    Each root gets its own build context; the manifest and lock caches are
    shared. With ``settings.jobs > 1`` roots are built concurrently. One
    root's failure never stops the others.
    """
    settings = settings or Settings()
    manifests = ManifestReader()
    locks = SecondaryLocks(settings.lock_format)

    def run(root_dir: Path) -> dict[str, Any]:
        return update_lock(root_dir, settings, manifests, locks, dry_run=dry_run, stream=stream)

    roots = list(dirs)
    if settings.jobs > 1 and len(roots) > 1:
        with ThreadPoolExecutor(max_workers=settings.jobs) as pool:
            projects = list(pool.map(run, roots))
    else:
        projects = [run(root_dir) for root_dir in roots]

    return aggregate(projects)

