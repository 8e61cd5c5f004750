"""Tests for path normalization and diff-entry resolution."""

from __future__ import annotations

from diffctx.diff.parser import DiffHunk
from diffctx.paths import PathResolver, normalize_path, relative_to


class TestNormalizePath:
    def test_backslashes(self):
        assert normalize_path("src\\app\\main.py") == "src/app/main.py"

    def test_dot_and_empty_segments(self):
        assert normalize_path("./src//app/./main.py") == "src/app/main.py"

    def test_keeps_leading_slash(self):
        assert normalize_path("//repo/src/") == "/repo/src"

    def test_empty(self):
        assert normalize_path("") == ""
        assert normalize_path(None) == ""


class TestRelativeTo:
    def test_inside(self):
        assert relative_to("/repo", "/repo/src/app.py") == "src/app.py"

    def test_segment_boundary(self):
        assert relative_to("/repo", "/repository/app.py") is None

    def test_no_base(self):
        assert relative_to(None, "/repo/app.py") is None
        assert relative_to("/repo", "/repo") is None


class TestPathResolver:
    def test_root_relative_match(self):
        diff_map = {"src/app.py": [DiffHunk(1, 3)]}
        resolver = PathResolver(diff_map, root="/repo")
        assert resolver.resolve("/repo/src/app.py") == [DiffHunk(1, 3)]

    def test_exact_match_without_root(self):
        diff_map = {"src/app.py": [DiffHunk(2, 2)]}
        assert PathResolver(diff_map).resolve("src/app.py") == [DiffHunk(2, 2)]

    def test_not_in_diff(self):
        resolver = PathResolver({"src/app.py": []}, root="/repo")
        assert resolver.resolve("/repo/src/other.py") is None

    def test_empty_hunk_list_is_a_match(self):
        resolver = PathResolver({"src/app.py": []}, root="/repo")
        assert resolver.resolve("/repo/src/app.py") == []

    def test_unique_suffix_match(self):
        diff_map = {"packages/core/src/app.py": [DiffHunk(4, 6)]}
        resolver = PathResolver(diff_map, root="/elsewhere")
        assert resolver.resolve("/checkout/core/src/app.py") == [DiffHunk(4, 6)]

    def test_ambiguous_suffix_rejected(self):
        diff_map = {
            "a/lib/utils.py": [DiffHunk(1, 1)],
            "b/lib/utils.py": [DiffHunk(2, 2)],
        }
        resolver = PathResolver(diff_map, root="/elsewhere")
        assert resolver.resolve("/checkout/lib/utils.py") is None

    def test_bare_filename_not_enough(self):
        diff_map = {"src/a/utils.ts": [DiffHunk(1, 1)]}
        resolver = PathResolver(diff_map, root="/repo")
        assert resolver.resolve("/repo/src/a/utils.ts") == [DiffHunk(1, 1)]
        assert resolver.resolve("/repo/src/b/utils.ts") is None

    def test_candidate_keys_order(self):
        resolver = PathResolver({}, root="/repo")
        assert resolver.candidate_keys("/repo/src/app.py") == [
            "/repo/src/app.py",
            "repo/src/app.py",
            "src/app.py",
        ]
