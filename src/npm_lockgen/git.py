"""Fetch the committed version of a file to minimise lockfile diffs."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def read_current(filepath: Path) -> str | None:
    """Return the on-disk content of ``filepath`` or None if it does not exist."""
    try:
        return filepath.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def read_file_from_head(filepath: Path) -> str:
    """Return the content of ``filepath`` at git HEAD.

    Raises subprocess.CalledProcessError (or OSError when git is unavailable).
    """
    result = subprocess.run(
        ["git", "show", f"HEAD:./{filepath.name}"],
        cwd=filepath.parent,
        capture_output=True,
        encoding="utf-8",
        check=True,
    )
    return result.stdout


def read_file_from_head_or_now(filepath: Path) -> str | None:
    """Return ``filepath`` at git HEAD, falling back to the current content.

    None means the file exists neither in git nor on disk.
    """
    filepath = Path(filepath)
    current = read_current(filepath)

    try:
        return read_file_from_head(filepath)
    except subprocess.CalledProcessError as exc:
        logger.warning(
            'Failed to get "%s" contents at HEAD, falling back to actual state: %s',
            filepath.name,
            (exc.stderr or "").strip(),
        )
    except OSError as exc:
        logger.warning(
            'Failed to get "%s" contents at HEAD, falling back to actual state: %s',
            filepath.name,
            exc,
        )
    return current
