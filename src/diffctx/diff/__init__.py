"""Unified diff parsing and optimisation."""

from diffctx.diff.optimize import (
    NewFileInfo,
    create_new_file_summary,
    detect_new_files_in_diff,
    is_new_file_status,
    optimize_git_diff,
)
from diffctx.diff.parser import DiffHunk, DiffMap, is_path_in_diff, parse_unified_diff

__all__ = [
    "DiffHunk",
    "DiffMap",
    "NewFileInfo",
    "create_new_file_summary",
    "detect_new_files_in_diff",
    "is_new_file_status",
    "is_path_in_diff",
    "optimize_git_diff",
    "parse_unified_diff",
]
