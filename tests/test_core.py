"""End-to-end tests for lockfile generation and batch runs."""

from __future__ import annotations

import io
import json
import pathlib

import pytest
from helpers import install, read_json, write_manifest

from npm_lockgen import core
from npm_lockgen.config import Settings
from npm_lockgen.core import generate_lockfile, save_lockfile, update_lock, update_locks

NO_GIT = Settings(use_git=False)


def _app(project: pathlib.Path) -> pathlib.Path:
    write_manifest(
        project,
        {
            "name": "app",
            "version": "1.0.0",
            "dependencies": {"a": "^1.0.0"},
            "devDependencies": {"t": "^1.0.0"},
        },
    )
    install(
        project,
        "a",
        "1.0.0",
        {"b": "^1.0.0"},
        _resolved="https://registry.npmjs.org/a/-/a-1.0.0.tgz",
        _integrity="sha512-a",
    )
    install(project, "b", "1.0.0", _resolved="https://registry.npmjs.org/b/-/b-1.0.0.tgz", _integrity="sha512-b")
    install(project, "t", "1.0.0", _resolved="https://registry.npmjs.org/t/-/t-1.0.0.tgz", _integrity="sha512-t")
    return project


def test_generate_lockfile_document(project: pathlib.Path) -> None:
    document = generate_lockfile(_app(project))

    assert document == {
        "name": "app",
        "version": "1.0.0",
        "lockfileVersion": 1,
        "requires": True,
        "dependencies": {
            "a": {
                "version": "1.0.0",
                "resolved": "https://registry.npmjs.org/a/-/a-1.0.0.tgz",
                "integrity": "sha512-a",
                "requires": {"b": "^1.0.0"},
            },
            "b": {
                "version": "1.0.0",
                "resolved": "https://registry.npmjs.org/b/-/b-1.0.0.tgz",
                "integrity": "sha512-b",
            },
            "t": {
                "version": "1.0.0",
                "resolved": "https://registry.npmjs.org/t/-/t-1.0.0.tgz",
                "integrity": "sha512-t",
                "dev": True,
            },
        },
    }


def test_generate_lockfile_from_relative_path(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> None:
    package = write_manifest(
        tmp_path / "mono" / "packages" / "p",
        {"name": "p", "version": "0.1.0", "dependencies": {"a": "^1.0.0"}},
    )
    install(tmp_path / "mono", "a", "1.0.0")
    monkeypatch.chdir(package)

    document = generate_lockfile(pathlib.Path("."))

    assert document is not None
    assert document["dependencies"] == {"a": {"version": "1.0.0"}}


def test_generate_lockfile_without_manifest(project: pathlib.Path) -> None:
    assert generate_lockfile(project) is None


def test_generate_lockfile_falls_back_to_yarn_lock(project: pathlib.Path) -> None:
    write_manifest(project, {"name": "app", "dependencies": {"a": "^1.0.0"}})
    install(project, "a", "1.0.0")
    (project / "yarn.lock").write_text(
        "a@^1.0.0:\n"
        '  version "1.0.0"\n'
        '  resolved "https://registry.yarnpkg.com/a/-/a-1.0.0.tgz#abc123"\n'
        "  integrity sha512-fromyarn\n",
        encoding="utf-8",
    )

    document = generate_lockfile(project)

    assert document is not None
    assert document["dependencies"]["a"] == {
        "version": "1.0.0",
        "resolved": "https://registry.yarnpkg.com/a/-/a-1.0.0.tgz",
        "integrity": "sha512-fromyarn",
    }


def test_update_lock_writes_file_with_trailing_newline(project: pathlib.Path) -> None:
    result = update_lock(_app(project), NO_GIT)

    assert result["status"] == "written"
    assert result["entries"] == 3
    text = (project / "package-lock.json").read_text(encoding="utf-8")
    assert text.endswith("}\n")
    assert text.startswith('{\n  "name": "app",')


def test_regeneration_is_byte_identical(project: pathlib.Path) -> None:
    _app(project)
    update_lock(project, NO_GIT)
    first = (project / "package-lock.json").read_bytes()
    update_lock(project, NO_GIT)
    assert (project / "package-lock.json").read_bytes() == first


def test_previous_key_order_is_kept(project: pathlib.Path) -> None:
    _app(project)
    (project / "package-lock.json").write_text(
        json.dumps(
            {
                "requires": True,
                "lockfileVersion": 1,
                "name": "app",
                "dependencies": {"t": {"version": "0.9.0"}, "gone": {"version": "1.0.0"}},
                "stale": "x",
            }
        ),
        encoding="utf-8",
    )

    update_lock(project, NO_GIT)
    written = read_json(project / "package-lock.json")

    assert list(written) == ["requires", "lockfileVersion", "name", "dependencies", "version"]
    assert list(written["dependencies"]) == ["t", "a", "b"]
    assert written["dependencies"]["t"]["version"] == "1.0.0"


def test_unreadable_previous_lockfile_is_replaced(project: pathlib.Path) -> None:
    _app(project)
    (project / "package-lock.json").write_text("<<<<<<< HEAD\n", encoding="utf-8")
    assert update_lock(project, NO_GIT)["status"] == "written"
    assert read_json(project / "package-lock.json")["lockfileVersion"] == 1


def test_dry_run_prints_instead_of_writing(project: pathlib.Path) -> None:
    stream = io.StringIO()
    result = update_lock(_app(project), NO_GIT, dry_run=True, stream=stream)

    assert result["status"] == "printed"
    assert not (project / "package-lock.json").exists()
    assert json.loads(stream.getvalue())["name"] == "app"


def test_custom_lockfile_name(project: pathlib.Path) -> None:
    _app(project)
    update_lock(project, Settings(use_git=False, lockfile_name="npm-shrinkwrap.json"))
    assert (project / "npm-shrinkwrap.json").is_file()


def test_save_lockfile_returns_rendered_text(project: pathlib.Path) -> None:
    write_manifest(project, {"name": "app"})
    text = save_lockfile(project, {"name": "app", "lockfileVersion": 1, "requires": True}, NO_GIT)
    assert text == '{\n  "name": "app",\n  "lockfileVersion": 1,\n  "requires": true\n}\n'


def test_non_ascii_is_written_verbatim(project: pathlib.Path) -> None:
    write_manifest(project, {"name": "app", "version": "1.0.0-ünï"})
    update_lock(project, Settings(use_git=False, validate=False))
    assert '"version": "1.0.0-ünï"' in (project / "package-lock.json").read_text(encoding="utf-8")


class TestBatch:
    def test_failure_in_one_root_does_not_stop_others(self, tmp_path: pathlib.Path) -> None:
        broken = write_manifest(tmp_path / "broken", {"name": "broken", "dependencies": {"a": "^1.0.0"}})
        install(broken, "a", "1.0.0")
        (broken / "yarn.lock").write_text("<<<<<<< HEAD\na@^1.0.0:\n", encoding="utf-8")
        good = _app(tmp_path / "good")
        empty = tmp_path / "empty"
        empty.mkdir()

        report = update_locks([broken, good, empty], NO_GIT)

        assert report["hasFailures"] is True
        statuses = [p["status"] for p in report["projects"]]
        assert statuses == ["failed", "written", "skipped"]
        assert "resolve git conflicts" in report["projects"][0]["error"]
        assert report["totals"] == {"projects": 3, "written": 1, "skipped": 1, "failed": 1}
        assert (good / "package-lock.json").is_file()
        assert not (broken / "package-lock.json").exists()

    def test_concurrent_roots_match_sequential_output(self, tmp_path: pathlib.Path) -> None:
        roots = [_app(tmp_path / name) for name in ("one", "two", "three")]

        update_locks(roots, NO_GIT)
        expected = [(root / "package-lock.json").read_bytes() for root in roots]
        report = update_locks(roots, Settings(use_git=False, jobs=3))

        assert report["hasFailures"] is False
        assert [p["path"] for p in report["projects"]] == [str(r.resolve()) for r in roots]
        assert [(root / "package-lock.json").read_bytes() for root in roots] == expected

    def test_unexpected_error_in_one_root_is_isolated(
        self, tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        deep = _app(tmp_path / "deep")
        good = _app(tmp_path / "good")
        real_generate = core.generate_lockfile

        def generate(root_dir: pathlib.Path, *args: object) -> object:
            if root_dir.name == "deep":
                raise RecursionError("maximum recursion depth exceeded")
            return real_generate(root_dir, *args)

        monkeypatch.setattr(core, "generate_lockfile", generate)

        report = update_locks([deep, good], Settings(use_git=False, jobs=2))

        assert [p["status"] for p in report["projects"]] == ["failed", "written"]
        assert "maximum recursion depth" in report["projects"][0]["error"]
        assert (good / "package-lock.json").is_file()

    def test_lock_format_none_ignores_yarn_lock(self, project: pathlib.Path) -> None:
        write_manifest(project, {"name": "app", "dependencies": {"a": "^1.0.0"}})
        install(project, "a", "1.0.0")
        (project / "yarn.lock").write_text("<<<<<<< HEAD\n", encoding="utf-8")

        report = update_locks([project], Settings(use_git=False, lock_format="none"))

        assert report["hasFailures"] is False
        assert read_json(project / "package-lock.json")["dependencies"]["a"] == {"version": "1.0.0"}


def test_missing_dependency_is_reported_as_failure(
    project: pathlib.Path, caplog: pytest.LogCaptureFixture
) -> None:
    write_manifest(project, {"name": "app", "dependencies": {"a": "^1.0.0"}})
    write_manifest(project / "node_modules" / "a", {"name": "a"})

    result = update_lock(project, NO_GIT)

    assert result["status"] == "failed"
    assert "has no version" in result["error"]
    assert "Error generating lockfile for package" in caplog.text
