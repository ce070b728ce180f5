"""Exception hierarchy for npm-lockgen.

Everything raised on purpose by the library derives from :class:`LockgenError`,
so the batch runner can isolate one failing root without swallowing unrelated
errors.
"""

from __future__ import annotations


class LockgenError(RuntimeError):
    """Base error for failures while generating a lockfile."""


class ManifestError(LockgenError):
    """Raised when a package.json exists but cannot be read or decoded."""


class DependencyNotFoundError(LockgenError):
    """Raised when a required package cannot be located while building the tree."""

    def __init__(self, name: str, from_dir: object) -> None:
        super().__init__(f"Package {name} not found (starting from {from_dir})")
        self.name = name
        self.from_dir = from_dir


class UnresolvedEntryError(LockgenError):
    """Raised when a ``requires`` edge has no matching entry in the built tree."""

    def __init__(self, parent_name: str, name: str) -> None:
        super().__init__(f"Internal error: failed to resolve entry for {parent_name} -> {name}")
        self.parent_name = parent_name
        self.name = name


class LockParseError(LockgenError):
    """Raised when a secondary lock file cannot be parsed."""


class LockConflictError(LockParseError):
    """Raised when a secondary lock file still contains VCS conflict markers."""


class SchemaValidationError(LockgenError):
    """Raised when a generated lockfile does not match the bundled schema."""
