"""Unit tests for permission glob matching."""

import pytest

from swarmAgent.permissions.path_matcher import matches, translate


class TestGlobMatching:
    """Path-aware glob semantics."""

    @pytest.mark.parametrize(
        "pattern,path,expected",
        [
            ("/p/*.txt", "/p/a.txt", True),
            ("/p/*.txt", "/p/sub/a.txt", False),
            ("/p/**/*.txt", "/p/a.txt", True),
            ("/p/**/*.txt", "/p/x/y/a.txt", True),
            ("/p/**", "/p/x/y/z", True),
            ("/p/file?.md", "/p/file1.md", True),
            ("/p/file?.md", "/p/file10.md", False),
            ("/p/[ab].py", "/p/a.py", True),
            ("/p/[!ab].py", "/p/c.py", True),
            ("/p/[!ab].py", "/p/a.py", False),
            ("/p/*.{js,ts}", "/p/app.ts", True),
            ("/p/*.{js,ts}", "/p/app.py", False),
            ("/p/{src,lib/{a,b}}/x", "/p/lib/b/x", True),
        ],
    )
    def test_matches(self, pattern, path, expected):
        assert matches(pattern, path) is expected

    def test_leading_bang_is_ignored(self):
        assert matches("!/p/*.log", "/p/debug.log")

    def test_star_never_crosses_directories(self):
        assert "[^/]*" in translate("*")
        assert not matches("/p/*", "/p/a/b")

    def test_escaped_characters_are_literal(self):
        assert matches(r"/p/\*.txt", "/p/*.txt")
        assert not matches(r"/p/\*.txt", "/p/a.txt")
