"""Tests for the module locator: Node-style lookup and owner detection."""

from __future__ import annotations

import pathlib

from helpers import install, write_manifest

from npm_lockgen.discovery import (
    discover_package_roots,
    find_lock_dir,
    locate,
    owner_of,
)


class TestLocate:
    def test_finds_package_in_own_node_modules(self, project: pathlib.Path) -> None:
        a = install(project, "a", "1.0.0")
        assert locate(project, "a") == a

    def test_walks_up_to_ancestor_node_modules(self, project: pathlib.Path) -> None:
        a = install(project, "a", "1.0.0")
        b = install(project, "b", "1.0.0")
        assert locate(a, "b") == b

    def test_nested_copy_wins_over_hoisted(self, project: pathlib.Path) -> None:
        a = install(project, "a", "1.0.0")
        install(project, "b", "1.0.0")
        nested = install(a, "b", "2.0.0")
        assert locate(a, "b") == nested

    def test_missing_package_is_none(self, project: pathlib.Path) -> None:
        assert locate(project, "ghost") is None

    def test_directory_without_manifest_is_not_installed(self, project: pathlib.Path) -> None:
        (project / "node_modules" / "half").mkdir(parents=True)
        assert locate(project, "half") is None

    def test_scoped_package(self, project: pathlib.Path) -> None:
        scoped = install(project, "@scope/pkg", "1.0.0")
        assert locate(project, "@scope/pkg") == scoped

    def test_never_probes_node_modules_inside_node_modules(self, project: pathlib.Path) -> None:
        a = install(project, "a", "1.0.0")
        write_manifest(project / "node_modules" / "node_modules" / "b", {"name": "b", "version": "1.0.0"})
        assert locate(a, "b") is None


class TestOwnerOf:
    def test_top_level_package_is_owned_by_project(self, project: pathlib.Path) -> None:
        a = install(project, "a", "1.0.0")
        assert owner_of(a) == project

    def test_nested_scoped_package_is_owned_by_its_parent_package(
        self, project: pathlib.Path
    ) -> None:
        a = install(project, "a", "1.0.0")
        b = install(a, "@scope/b", "1.0.0")
        assert owner_of(b) == a

    def test_scoped_parent_owns_its_nested_modules(self, project: pathlib.Path) -> None:
        parent = install(project, "@scope/parent", "1.0.0")
        child = install(parent, "child", "1.0.0")
        assert owner_of(child) == parent

    def test_directory_outside_module_area(self, project: pathlib.Path) -> None:
        assert owner_of(project) is None


class TestFindLockDir:
    def test_finds_nearest_ancestor(self, tmp_path: pathlib.Path, project: pathlib.Path) -> None:
        (tmp_path / "yarn.lock").write_text("", encoding="utf-8")
        a = install(project, "a", "1.0.0")
        assert find_lock_dir(a, ["yarn.lock"]) == tmp_path

    def test_ignores_lock_files_shipped_inside_node_modules(self, project: pathlib.Path) -> None:
        (project / "yarn.lock").write_text("", encoding="utf-8")
        a = install(project, "a", "1.0.0")
        (a / "yarn.lock").write_text("", encoding="utf-8")
        assert find_lock_dir(a, ["yarn.lock"]) == project

    def test_accepts_any_of_several_names(self, project: pathlib.Path) -> None:
        (project / "pnpm-lock.yaml").write_text("", encoding="utf-8")
        assert find_lock_dir(project, ["yarn.lock", "pnpm-lock.yaml"]) == project

    def test_none_when_absent(self, project: pathlib.Path) -> None:
        assert find_lock_dir(project, ["definitely-not-a-lock.file"]) is None


def test_discover_package_roots_skips_vendor_dirs(tmp_path: pathlib.Path) -> None:
    repo = tmp_path / "repo"
    write_manifest(repo, {"name": "repo"})
    write_manifest(repo / "packages" / "one", {"name": "one"})
    write_manifest(repo / "packages" / "two", {"name": "two"})
    install(repo, "vendored", "1.0.0")

    roots = discover_package_roots(repo)

    resolved = repo.resolve()
    assert roots == [
        resolved,
        resolved / "packages" / "one",
        resolved / "packages" / "two",
    ]
