"""Data models for lockfile generation."""

from __future__ import annotations

from .entry import Entry, iter_entries
from .lock_record import (
    CONFLICT_MARKERS,
    LockRecord,
    reject_conflicts,
    split_selector,
    strip_fragment,
)

__all__ = [
    "CONFLICT_MARKERS",
    "Entry",
    "LockRecord",
    "iter_entries",
    "reject_conflicts",
    "split_selector",
    "strip_fragment",
]
