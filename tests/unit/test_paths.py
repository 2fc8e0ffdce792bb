"""
Unit tests for traversal-safe path resolution.
"""

import os

import pytest

from staticserver.handlers.paths import is_within_root, resolve_path


ROOT = os.path.abspath(os.path.join(os.sep, "srv", "site"))


def under_root(*parts: str) -> str:
    return os.path.join(ROOT, *parts)


class TestResolvePath:

    @pytest.mark.parametrize("untrusted,expected", [
        ("/a.txt", under_root("a.txt")),
        ("/sub/b.txt", under_root("sub", "b.txt")),
        ("sub/b.txt", under_root("sub", "b.txt")),
        ("/sub/", under_root("sub")),
        ("/sub/./b.txt", under_root("sub", "b.txt")),
        ("/sub/../a.txt", under_root("a.txt")),
        ("//a.txt", under_root("a.txt")),
    ])
    def test_ordinary_paths(self, untrusted: str, expected: str):
        assert resolve_path(ROOT, untrusted) == expected

    @pytest.mark.parametrize("untrusted", ["", "/", ".", "..", "/..", "/../..", "/./"])
    def test_root_itself(self, untrusted: str):
        assert resolve_path(ROOT, untrusted) == ROOT

    @pytest.mark.parametrize("untrusted", [
        "../../etc/passwd",
        "/../../etc/passwd",
        "/sub/../../../etc/passwd",
        "/etc/passwd",
        "//etc/passwd",
        "/./../etc/passwd",
    ])
    def test_traversal_stays_inside(self, untrusted: str):
        resolved = resolve_path(ROOT, untrusted)

        assert is_within_root(ROOT, resolved)
        assert resolved == under_root("etc", "passwd")

    def test_relative_root_made_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert resolve_path(".", "/a.txt") == os.path.join(str(tmp_path), "a.txt")

    @pytest.mark.skipif(os.sep != "/", reason="backslash is a separator on Windows")
    def test_backslash_is_a_filename_character(self):
        resolved = resolve_path(ROOT, "..\\..\\win.ini")

        assert is_within_root(ROOT, resolved)
        assert os.path.dirname(resolved) == ROOT


class TestIsWithinRoot:

    def test_root_and_children(self):
        assert is_within_root(ROOT, ROOT)
        assert is_within_root(ROOT, under_root("a", "b"))

    def test_sibling_with_shared_prefix(self):
        assert not is_within_root(ROOT, ROOT + "-backup")

    def test_parent(self):
        assert not is_within_root(ROOT, os.path.dirname(ROOT))
