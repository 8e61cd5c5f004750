"""Git diff source - read the working tree diff via the git CLI."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger("diffctx.diff")


def get_git_diff(root: Path, base: str = "HEAD", paths: list[str] | None = None) -> str:
    """Get the diff between the working tree and `base`.

    Returns an empty string when git is unavailable, times out or fails.
    """
    cmd = ["git", "diff", base]
    if paths:
        cmd += ["--", *paths]
    try:
        result = subprocess.run(
            cmd,
            cwd=root,
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError) as e:
        logger.warning(f"git diff unavailable: {e}")
        return ""

    if result.returncode != 0:
        logger.warning(f"git diff {base} failed: {result.stderr.strip()}")
        return ""
    return result.stdout


def get_changed_paths(root: Path, base: str = "HEAD") -> list[str]:
    """List paths changed relative to `base` (relative to the repo root)."""
    try:
        result = subprocess.run(
            ["git", "diff", "--name-only", base],
            cwd=root,
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError):
        return []
    if result.returncode != 0:
        return []
    return [line for line in result.stdout.splitlines() if line.strip()]
