"""Tests for callergen.manifest."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from callergen.manifest import ManifestError, add_path_dependency, register_workspace_member


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_register_workspace_member_multiline_array(tmp_path: Path) -> None:
    _write(
        tmp_path / "Cargo.toml",
        '# workspace\n[workspace]\nresolver = "2"\nmembers = [\n    "app",\n    "bank"\n]\n\n[profile.release]\nlto = true\n',
    )

    assert register_workspace_member(tmp_path, "caller-utils") is True

    text = (tmp_path / "Cargo.toml").read_text(encoding="utf-8")
    assert text == (
        '# workspace\n[workspace]\nresolver = "2"\nmembers = [\n    "app",\n    "bank",\n'
        '    "caller-utils",\n]\n\n[profile.release]\nlto = true\n'
    )


def test_register_workspace_member_inline_array(tmp_path: Path) -> None:
    _write(tmp_path / "Cargo.toml", '[workspace]\nmembers = ["app"]\n')

    assert register_workspace_member(tmp_path, "caller-utils") is True

    data = tomllib.loads((tmp_path / "Cargo.toml").read_text(encoding="utf-8"))
    assert data["workspace"]["members"] == ["app", "caller-utils"]


def test_register_workspace_member_empty_array(tmp_path: Path) -> None:
    _write(tmp_path / "Cargo.toml", "[workspace]\nmembers = []\n")

    assert register_workspace_member(tmp_path, "caller-utils") is True

    data = tomllib.loads((tmp_path / "Cargo.toml").read_text(encoding="utf-8"))
    assert data["workspace"]["members"] == ["caller-utils"]


def test_register_workspace_member_is_idempotent(tmp_path: Path) -> None:
    _write(tmp_path / "Cargo.toml", '[workspace]\nmembers = [\n    "app",\n]\n')

    assert register_workspace_member(tmp_path, "caller-utils") is True
    first = (tmp_path / "Cargo.toml").read_text(encoding="utf-8")
    assert register_workspace_member(tmp_path, "caller-utils") is False
    assert (tmp_path / "Cargo.toml").read_text(encoding="utf-8") == first


def test_register_workspace_member_skips_missing_or_non_workspace(tmp_path: Path) -> None:
    assert register_workspace_member(tmp_path, "caller-utils") is False

    _write(tmp_path / "Cargo.toml", '[package]\nname = "solo"\n')
    assert register_workspace_member(tmp_path, "caller-utils") is False
    assert (tmp_path / "Cargo.toml").read_text(encoding="utf-8") == '[package]\nname = "solo"\n'


def test_register_workspace_member_rejects_invalid_toml(tmp_path: Path) -> None:
    _write(tmp_path / "Cargo.toml", "[workspace\nmembers = [\n")

    with pytest.raises(ManifestError):
        register_workspace_member(tmp_path, "caller-utils")


def test_add_path_dependency_appends_to_dependencies_table(tmp_path: Path) -> None:
    project = tmp_path / "bank"
    _write(
        project / "Cargo.toml",
        '[package]\nname = "bank"\n\n[dependencies]\nserde = "1.0"\n\n[lib]\ncrate-type = ["cdylib"]\n',
    )

    assert add_path_dependency(project, "caller-utils", "../caller-utils") is True

    text = (project / "Cargo.toml").read_text(encoding="utf-8")
    assert text == (
        '[package]\nname = "bank"\n\n[dependencies]\nserde = "1.0"\n'
        'caller-utils = { path = "../caller-utils" }\n\n[lib]\ncrate-type = ["cdylib"]\n'
    )


def test_add_path_dependency_handles_last_table_without_newline(tmp_path: Path) -> None:
    project = tmp_path / "bank"
    _write(project / "Cargo.toml", '[dependencies]\nserde = "1.0"')

    assert add_path_dependency(project, "caller-utils", "../caller-utils") is True

    data = tomllib.loads((project / "Cargo.toml").read_text(encoding="utf-8"))
    assert data["dependencies"]["caller-utils"] == {"path": "../caller-utils"}


def test_add_path_dependency_is_idempotent(tmp_path: Path) -> None:
    project = tmp_path / "bank"
    _write(project / "Cargo.toml", '[dependencies]\nserde = "1.0"\n')

    assert add_path_dependency(project, "caller-utils", "../caller-utils") is True
    first = (project / "Cargo.toml").read_text(encoding="utf-8")
    assert add_path_dependency(project, "caller-utils", "../caller-utils") is False
    assert (project / "Cargo.toml").read_text(encoding="utf-8") == first


def test_add_path_dependency_without_dependencies_table_is_noop(tmp_path: Path) -> None:
    project = tmp_path / "bank"
    _write(project / "Cargo.toml", '[package]\nname = "bank"\n')

    assert add_path_dependency(project, "caller-utils", "../caller-utils") is False


def test_add_path_dependency_requires_manifest(tmp_path: Path) -> None:
    with pytest.raises(ManifestError):
        add_path_dependency(tmp_path / "missing", "caller-utils", "../caller-utils")


def test_register_workspace_member_with_trailing_comment_on_last_member(tmp_path: Path) -> None:
    _write(tmp_path / "Cargo.toml", '[workspace]\nmembers = [\n    "app" # main app\n]\n')

    assert register_workspace_member(tmp_path, "caller-utils") is True

    text = (tmp_path / "Cargo.toml").read_text(encoding="utf-8")
    assert text == '[workspace]\nmembers = [\n    "app", # main app\n    "caller-utils",\n]\n'
    assert tomllib.loads(text)["workspace"]["members"] == ["app", "caller-utils"]


def test_register_workspace_member_ignores_brackets_in_comments(tmp_path: Path) -> None:
    _write(
        tmp_path / "Cargo.toml",
        '[workspace]\nmembers = [\n "app", # see [docs]\n "bank",\n]\n\n[profile.release]\nlto = true\n',
    )

    assert register_workspace_member(tmp_path, "caller-utils") is True

    data = tomllib.loads((tmp_path / "Cargo.toml").read_text(encoding="utf-8"))
    assert data["workspace"]["members"] == ["app", "bank", "caller-utils"]
    assert data["profile"]["release"]["lto"] is True


def test_register_workspace_member_closing_bracket_on_last_member_line(tmp_path: Path) -> None:
    _write(tmp_path / "Cargo.toml", '[workspace]\nmembers = [\n    "app",\n    "bank"]\n')

    assert register_workspace_member(tmp_path, "caller-utils") is True

    data = tomllib.loads((tmp_path / "Cargo.toml").read_text(encoding="utf-8"))
    assert data["workspace"]["members"] == ["app", "bank", "caller-utils"]


def test_add_path_dependency_with_only_dependency_subtables(tmp_path: Path) -> None:
    project = tmp_path / "bank"
    _write(project / "Cargo.toml", '[package]\nname = "x"\n\n[dependencies.serde]\nversion = "1"\n')

    assert add_path_dependency(project, "caller-utils", "../caller-utils") is True

    text = (project / "Cargo.toml").read_text(encoding="utf-8")
    data = tomllib.loads(text)
    assert data["dependencies"]["serde"] == {"version": "1"}
    assert data["dependencies"]["caller-utils"] == {"path": "../caller-utils"}
    assert add_path_dependency(project, "caller-utils", "../caller-utils") is False
    assert (project / "Cargo.toml").read_text(encoding="utf-8") == text
