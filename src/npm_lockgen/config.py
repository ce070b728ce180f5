"""Configuration loader for lockfile generation.

Reads settings from a JSON file (default: npm-lockgen.json in the current
directory) and validates the structure. All fields are optional:

- ``lockFormat``: secondary lock format consulted for metadata
  ("auto", "yarn", "pnpm" or "none"; default "auto")
- ``jobs``: number of roots processed concurrently (default 1)
- ``useGit``: merge into the lockfile committed at HEAD (default true)
- ``validate``: check output against the bundled schema (default true)
- ``lockfileName``: output file name (default "package-lock.json")

This module performs its own lightweight validation at runtime rather than
invoking a full JSON Schema validator.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .metadata import AUTO, get_known_lock_formats

DEFAULT_CONFIG_NAME = "npm-lockgen.json"
CONFIG_PATH_ENV_VAR = "NPM_LOCKGEN_CONFIG"
DEFAULT_LOCKFILE_NAME = "package-lock.json"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be loaded or is invalid."""


@dataclass(slots=True, frozen=True)
class Settings:
    """Top-level settings container."""

    lock_format: str = AUTO
    jobs: int = 1
    use_git: bool = True
    validate: bool = True
    lockfile_name: str = DEFAULT_LOCKFILE_NAME

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create Settings from a dictionary, validating every field."""
        lock_format = data.get("lockFormat", AUTO)
        known = get_known_lock_formats()
        if not isinstance(lock_format, str) or lock_format not in known:
            raise ConfigError(
                f"Invalid 'lockFormat' {lock_format!r} (must be one of: {', '.join(known)})"
            )

        jobs = data.get("jobs", 1)
        if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1:
            raise ConfigError("Invalid 'jobs' field (must be a positive integer)")

        use_git = data.get("useGit", True)
        if not isinstance(use_git, bool):
            raise ConfigError("Invalid 'useGit' field (must be boolean)")

        validate = data.get("validate", True)
        if not isinstance(validate, bool):
            raise ConfigError("Invalid 'validate' field (must be boolean)")

        lockfile_name = data.get("lockfileName", DEFAULT_LOCKFILE_NAME)
        if not isinstance(lockfile_name, str) or not lockfile_name or "/" in lockfile_name:
            raise ConfigError("Invalid 'lockfileName' field (must be a plain file name)")

        unknown = sorted(set(data) - {"lockFormat", "jobs", "useGit", "validate", "lockfileName"})
        if unknown:
            raise ConfigError(f"Unknown configuration field(s): {', '.join(unknown)}")

        return cls(
            lock_format=lock_format,
            jobs=jobs,
            use_git=use_git,
            validate=validate,
            lockfile_name=lockfile_name,
        )

    def override(self, **changes: Any) -> Settings:
        """Return a copy with every non-None value in ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _resolve_config_path(path: Path | str | None = None) -> tuple[Path, bool]:
    """Resolve the configuration file path and whether it was asked for explicitly.

    Priority:
    1. Explicit path argument
    2. NPM_LOCKGEN_CONFIG environment variable
    3. Default path (npm-lockgen.json in the current directory)
    """
    if path is not None:
        return Path(path), True

    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path), True

    return Path.cwd() / DEFAULT_CONFIG_NAME, False


def load_settings(path: Path | str | None = None) -> Settings:
    """Load and validate settings from a JSON file.

    Args:
        path: Optional path to the config file. If not provided, uses the
            NPM_LOCKGEN_CONFIG env var or falls back to npm-lockgen.json.

    Returns:
        A Settings object. A missing default file yields default settings.

    Raises:
        ConfigError: If an explicitly requested file is missing, cannot be
            read or contains invalid data.
    """
    config_path, explicit = _resolve_config_path(path)

    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Configuration file not found: {config_path}")
        return Settings()

    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration file: {exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in configuration file: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    return Settings.from_dict(data)
