"""Secondary lock record model."""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import LockConflictError

CONFLICT_MARKERS = ("<<<<<<<", "=======", ">>>>>>>")


def reject_conflicts(text: str, source: str) -> None:
    """Raise LockConflictError when ``text`` still holds VCS conflict markers."""
    if any(line.startswith(CONFLICT_MARKERS) for line in text.splitlines()):
        raise LockConflictError(f"Failed to parse {source}: resolve git conflicts before continuing")


def strip_fragment(url: str | None) -> str | None:
    """Drop a ``#...`` suffix (yarn appends the tarball sha1 there)."""
    if url is None:
        return None
    return url.split("#", 1)[0]


@dataclass(frozen=True)
class LockRecord:
    """One resolved package as recorded by a yarn or pnpm lock file."""

    version: str
    resolved: str | None = None
    integrity: str | None = None

    def __post_init__(self) -> None:
        if not self.version:
            raise ValueError("Lock record version must be non-empty")


def split_selector(selector: str) -> tuple[str, str]:
    """Split ``name@range`` into its parts, honouring ``@scope/`` names."""
    idx = selector.find("@", 1)
    if idx == -1:
        return selector, ""
    return selector[:idx], selector[idx + 1 :]
