"""Shared test fixtures for diffctx."""

from __future__ import annotations

import math
from pathlib import Path

import pytest

from diffctx.context.models import FileEntry


async def count_tokens_stub(text: str) -> int:
    """Deterministic counter: one token per ten characters."""
    return math.ceil(len(text) / 10)


@pytest.fixture
def token_counter():
    return count_tokens_stub


@pytest.fixture
def make_file():
    """Factory for FileEntry records under /repo."""

    def _make(path: str = "/repo/file.ts", content: str = "", **overrides) -> FileEntry:
        values = {
            "path": path,
            "content": content,
            "size": len(content),
            "token_count": overrides.pop("token_count", 0),
        }
        values.update(overrides)
        return FileEntry(**values)

    return _make


FEATURE_DIFF = (
    "diff --git a/src/feature.ts b/src/feature.ts\n"
    "index 1..2 100644\n"
    "--- a/src/feature.ts\n"
    "+++ b/src/feature.ts\n"
    "@@ -5,2 +5,5 @@\n"
    " const four = 4;\n"
    "+function change() {\n"
    "+  return two + four;\n"
    "+}\n"
    " export const value = two;\n"
)

FEATURE_CONTENT = "\n".join([
    'import { something } from "./lib";',
    "const one = 1;",
    "const two = 2;",
    "const three = 3;",
    "const four = 4;",
    "function change() {",
    "  return two + four;",
    "}",
    "export const value = change();",
])


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a temporary project directory with a few source files."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "feature.ts").write_text(FEATURE_CONTENT + "\n")
    (src / "helper.ts").write_text("export const helper = () => true;\n")
    (tmp_path / "README.md").write_text("# Demo\n\nA small project.\n")
    (tmp_path / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")

    node_modules = tmp_path / "node_modules" / "dep"
    node_modules.mkdir(parents=True)
    (node_modules / "index.js").write_text("module.exports = {};\n")

    return tmp_path


@pytest.fixture
def feature_diff_file(tmp_path: Path) -> Path:
    diff_path = tmp_path / "change.patch"
    diff_path.write_text(FEATURE_DIFF)
    return diff_path


@pytest.fixture
def feature_diff() -> str:
    return FEATURE_DIFF


@pytest.fixture
def feature_content() -> str:
    return FEATURE_CONTENT
