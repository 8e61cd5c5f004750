"""Tests for the git diff source."""

from __future__ import annotations

import subprocess
from pathlib import Path

from diffctx.diff import git
from diffctx.diff.git import get_changed_paths, get_git_diff


def _completed(returncode: int = 0, stdout: str = "", stderr: str = ""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestGetGitDiff:
    def test_returns_stdout(self, monkeypatch, tmp_path: Path):
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append((cmd, kwargs["cwd"]))
            return _completed(stdout="diff --git a/x b/x\n")

        monkeypatch.setattr(git.subprocess, "run", fake_run)

        assert get_git_diff(tmp_path, "main", ["src"]) == "diff --git a/x b/x\n"
        assert calls == [(["git", "diff", "main", "--", "src"], tmp_path)]

    def test_failure_returns_empty(self, monkeypatch, tmp_path: Path):
        monkeypatch.setattr(
            git.subprocess, "run", lambda cmd, **kw: _completed(128, stderr="not a git repo")
        )
        assert get_git_diff(tmp_path) == ""

    def test_git_missing(self, monkeypatch, tmp_path: Path):
        def fake_run(cmd, **kwargs):
            raise FileNotFoundError("git")

        monkeypatch.setattr(git.subprocess, "run", fake_run)
        assert get_git_diff(tmp_path) == ""
        assert get_changed_paths(tmp_path) == []


class TestGetChangedPaths:
    def test_lists_paths(self, monkeypatch, tmp_path: Path):
        monkeypatch.setattr(
            git.subprocess, "run", lambda cmd, **kw: _completed(stdout="a.py\nsrc/b.py\n\n")
        )
        assert get_changed_paths(tmp_path, "HEAD") == ["a.py", "src/b.py"]
