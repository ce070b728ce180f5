"""Shared fixtures for npm-lockgen tests."""

from __future__ import annotations

import pathlib

import pytest


@pytest.fixture
def project(tmp_path: pathlib.Path) -> pathlib.Path:
    """An empty project root; tests write its package.json themselves."""
    root = tmp_path / "app"
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: pathlib.Path) -> None:
    """Keep a developer's npm-lockgen.json or env override out of the tests."""
    monkeypatch.delenv("NPM_LOCKGEN_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
