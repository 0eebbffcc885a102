"""Tests for repository boundary detection."""

from doccon.boundaries import detect_repositories, list_boundaries


def test_detects_nested_repositories(tmp_path):
    (tmp_path / "app" / ".git").mkdir(parents=True)
    (tmp_path / "libs" / "core").mkdir(parents=True)
    (tmp_path / "libs" / "core" / ".git").write_text("gitdir: ../../.git/modules/core\n")
    (tmp_path / "node_modules" / "dep" / ".git").mkdir(parents=True)

    found = detect_repositories(tmp_path)
    root = tmp_path.resolve()
    assert found == [root / "app", root / "libs" / "core"]


def test_root_repository_included(tmp_path):
    (tmp_path / ".git").mkdir()
    (tmp_path / "sub" / ".git").mkdir(parents=True)
    assert list_boundaries(tmp_path) == [tmp_path.resolve(), tmp_path.resolve() / "sub"]


def test_falls_back_to_root(tmp_path):
    (tmp_path / "plain").mkdir()
    assert list_boundaries(tmp_path) == [tmp_path.resolve()]


def test_boundaries_ignored_when_disabled(tmp_path):
    (tmp_path / "app" / ".git").mkdir(parents=True)
    assert list_boundaries(tmp_path, respect_git_boundaries=False) == [tmp_path.resolve()]
