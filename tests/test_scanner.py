"""Tests for the file scanner, tree renderer and language detection."""

from __future__ import annotations

from pathlib import Path

import pytest

from diffctx.config import ScannerConfig
from diffctx.exceptions import ScanError
from diffctx.languages import describe_file_type, detect_language
from diffctx.scanner import is_excluded, scan_files
from diffctx.tree import generate_ascii_file_tree


class TestScanner:
    def test_scan_project(self, tmp_project: Path):
        entries = {Path(e.path).name: e for e in scan_files(tmp_project)}

        assert set(entries) == {"feature.ts", "helper.ts", "README.md", "logo.png"}
        assert entries["logo.png"].is_binary
        assert entries["logo.png"].content == ""
        assert "function change()" in entries["feature.ts"].content
        assert entries["feature.ts"].token_count > 0
        assert entries["feature.ts"].name == "feature.ts"

    def test_scan_selected_paths(self, tmp_project: Path):
        entries = scan_files(tmp_project, ["src"])
        assert sorted(Path(e.path).name for e in entries) == ["feature.ts", "helper.ts"]

    def test_oversized_marked_skipped(self, tmp_project: Path):
        config = ScannerConfig(max_file_size_kb=0)
        entries = scan_files(tmp_project, ["src/helper.ts"], config)
        assert len(entries) == 1
        assert entries[0].is_skipped
        assert entries[0].content == ""

    def test_excluded_paths_omitted(self, tmp_project: Path):
        assert scan_files(tmp_project, ["node_modules"]) == []
        assert scan_files(tmp_project, ["node_modules/dep/index.js"]) == []

    def test_missing_path_ignored(self, tmp_project: Path):
        assert scan_files(tmp_project, ["nope.py"]) == []

    def test_root_must_exist(self, tmp_path: Path):
        with pytest.raises(ScanError):
            scan_files(tmp_path / "missing")

    def test_is_excluded(self):
        patterns = ["node_modules", "*.min.js"]
        assert is_excluded("node_modules/dep/index.js", patterns)
        assert is_excluded("static/app.min.js", patterns)
        assert not is_excluded("src/app.js", patterns)


class TestFileTree:
    def test_empty(self):
        assert generate_ascii_file_tree([], "/repo") == "No files selected."

    def test_directories_first(self):
        tree = generate_ascii_file_tree(
            ["/repo/z.py", "/repo/src/b.py", "/repo/src/a.py"], "/repo"
        )
        assert tree == (
            "├── src\n"
            "│   ├── a.py\n"
            "│   └── b.py\n"
            "└── z.py\n"
        )

    def test_outside_root_ignored(self):
        tree = generate_ascii_file_tree(["/repository/x.py", "/repo/y.py"], "/repo")
        assert tree == "└── y.py\n"


class TestLanguages:
    def test_extensions(self):
        assert detect_language("app.py") == "python"
        assert detect_language("/repo/src/feature.ts") == "typescript"
        assert detect_language("Dockerfile") == "dockerfile"
        assert detect_language("unknown.xyz") == "plaintext"

    def test_describe_file_type(self):
        assert describe_file_type("logo.png") == "Png"
        assert describe_file_type("data.json") == "Json"
        assert describe_file_type("blob") == "Binary"
