"""npm-lockgen core package.

Rebuilds npm ``package-lock.json`` files from an already-installed
``node_modules`` tree. The library entrypoints live in :mod:`npm_lockgen.core`;
the command-line wrapper lives in :mod:`npm_lockgen.cli`.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "core",
]
