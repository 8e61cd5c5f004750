"""Data models for smart context assembly."""

from __future__ import annotations

import math
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from diffctx.config import AllocationPreference, ProjectConfig


class Priority(IntEnum):
    """Selection tier of a candidate. Lower values are selected first."""

    DIFF = 0  # Diff-matched file with resolvable hunks (essential)
    SUPPORTING = 1  # Diff-flagged without hunks, or a small non-diff file
    HELPER = 2  # Large non-diff file, dropped first


class FileEntry(BaseModel):
    """A file as produced by the scanner. Read-only for the engine."""

    path: str
    name: str = ""
    content: str = ""
    size: int = 0
    token_count: int = 0
    is_binary: bool = False
    is_skipped: bool = False

    @model_validator(mode="after")
    def _default_name(self) -> "FileEntry":
        if not self.name:
            self.name = self.path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
        return self


class CandidateVariant(BaseModel):
    """One rendering of a file at a given context radius."""

    content: str
    context_lines: float  # math.inf for full-content variants


class Candidate(BaseModel):
    """A file competing for budget, with its pre-rendered variants."""

    path: str
    priority: Priority
    variants: list[CandidateVariant] = Field(default_factory=list)
    is_essential: bool = False
    relevance: float = 0.0


class IncludedVariant(BaseModel):
    """The rendering chosen for a candidate and its measured cost."""

    path: str
    content: str
    tokens: int
    priority: Priority = Priority.SUPPORTING
    forced: bool = False  # Essential content included over budget


class SelectionResult(BaseModel):
    """Outcome of budgeted selection."""

    included: list[IncludedVariant] = Field(default_factory=list)
    dropped: list[str] = Field(default_factory=list)

    @property
    def total_tokens(self) -> int:
        return sum(item.tokens for item in self.included)


class SmartContextParams(BaseModel):
    """Inputs of one assembly call."""

    files: list[FileEntry] = Field(default_factory=list)
    selected_files: list[str] = Field(default_factory=list)
    sort_order: str = "name-asc"
    include_file_tree: bool = False
    include_binary_paths: bool = False
    root: str | None = None
    diff_text: str = ""
    diff_paths: list[str] = Field(default_factory=list)
    include_diff: bool = False
    embed_diff: str | None = None  # Diff text to embed verbatim
    budget_tokens: int | float | None = None  # None or math.inf = unbounded
    context_lines: int = 12
    join_threshold: int = 10
    small_file_token_threshold: int = 800
    allocation: AllocationPreference | None = None
    relevance_filter: bool = False
    max_helper_files: int = 10
    capped_max_lines: int = 120
    capped_head_lines: int = 80
    capped_tail_lines: int = 40

    @classmethod
    def from_config(cls, config: ProjectConfig, **overrides: Any) -> "SmartContextParams":
        """Build params from project configuration, then apply overrides."""
        values: dict[str, Any] = {
            "sort_order": config.output.sort_order,
            "include_file_tree": config.output.include_file_tree,
            "include_binary_paths": config.output.include_binary_paths,
            "include_diff": config.output.include_diff,
            "budget_tokens": config.budget.budget_tokens,
            "small_file_token_threshold": config.budget.small_file_token_threshold,
            "allocation": config.budget.allocation,
            "context_lines": config.excerpt.context_lines,
            "join_threshold": config.excerpt.join_threshold,
            "capped_max_lines": config.excerpt.capped_max_lines,
            "capped_head_lines": config.excerpt.capped_head_lines,
            "capped_tail_lines": config.excerpt.capped_tail_lines,
            "relevance_filter": config.relevance.enabled,
            "max_helper_files": config.relevance.max_helper_files,
        }
        values.update(overrides)
        return cls(**values)


class SmartContextResult(BaseModel):
    """The assembled context string and its token accounting."""

    content: str
    token_count: int
    excerpt_tokens: int = 0
    diff_tokens: int = 0
    budget_tokens: int | float | None = None
    files_included: int = 0
    files_dropped: list[str] = Field(default_factory=list)
    files_forced: list[str] = Field(default_factory=list)  # Essential files over budget
    assembly_time_ms: float = 0.0

    @property
    def is_bounded(self) -> bool:
        return self.budget_tokens is not None and math.isfinite(self.budget_tokens)

    @property
    def budget_used_pct(self) -> float:
        if not self.is_bounded or not self.budget_tokens:
            return 0.0
        return round(self.token_count / self.budget_tokens * 100, 1)

    def summary(self) -> str:
        """Human-readable summary of what was assembled."""
        budget = f"{self.budget_tokens:,}" if self.is_bounded else "unbounded"
        lines = [
            f"Tokens: {self.token_count:,} / {budget}",
            f"  excerpts: {self.excerpt_tokens:,}",
            f"  diff: {self.diff_tokens:,}",
            f"Files: {self.files_included} included, {len(self.files_dropped)} dropped, "
            f"{len(self.files_forced)} forced over budget",
            f"Assembly time: {self.assembly_time_ms:.1f}ms",
        ]
        for path in self.files_dropped:
            lines.append(f"  dropped: {path}")
        for path in self.files_forced:
            lines.append(f"  forced: {path}")
        return "\n".join(lines)
