"""Configuration management for diffctx."""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from diffctx.exceptions import ConfigError

DIFFCTX_DIR = ".diffctx"
CONFIG_FILE = "config.json"


class AllocationPreference(str, Enum):
    """How the budget is split between the verbatim diff and file excerpts."""

    BALANCED = "balanced"
    FAVOR_DIFF = "favor_diff"  # Reserve more for the diff block
    FAVOR_EXCERPTS = "favor_excerpts"  # Reserve less, leaving room for excerpts

    @property
    def multiplier(self) -> float:
        return _ALLOCATION_MULTIPLIERS[self]


_ALLOCATION_MULTIPLIERS: dict[AllocationPreference, float] = {
    AllocationPreference.BALANCED: 1.0,
    AllocationPreference.FAVOR_DIFF: 1.3,
    AllocationPreference.FAVOR_EXCERPTS: 0.7,
}


class ExcerptConfig(BaseModel):
    """Excerpt rendering configuration."""

    context_lines: int = 12
    join_threshold: int = 10
    capped_max_lines: int = 120
    capped_head_lines: int = 80
    capped_tail_lines: int = 40


class BudgetConfig(BaseModel):
    """Token budget configuration."""

    budget_tokens: int | None = 32000  # None = unbounded
    small_file_token_threshold: int = 800
    allocation: AllocationPreference = AllocationPreference.BALANCED


class RelevanceConfig(BaseModel):
    """Relevance filtering of non-diff helper files."""

    enabled: bool = False
    max_helper_files: int = 10


class OutputConfig(BaseModel):
    """Output layout configuration."""

    sort_order: str = "name-asc"
    include_file_tree: bool = True
    include_binary_paths: bool = False
    include_diff: bool = False
    optimize_diff: bool = True  # Replace new-file bodies with placeholders


class ScannerConfig(BaseModel):
    """File scanner configuration."""

    exclude_patterns: list[str] = Field(
        default_factory=lambda: [
            "node_modules",
            "__pycache__",
            ".git",
            ".diffctx",
            "dist",
            "build",
            ".venv",
            "venv",
            "*.pyc",
            "*.pyo",
            "*.min.js",
            "*.min.css",
            "*.map",
            "*.lock",
            "package-lock.json",
            "yarn.lock",
        ]
    )
    max_file_size_kb: int = 500


class ProjectConfig(BaseModel):
    """Full project configuration."""

    name: str = ""
    root_path: str = "."
    excerpt: ExcerptConfig = Field(default_factory=ExcerptConfig)
    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    relevance: RelevanceConfig = Field(default_factory=RelevanceConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .diffctx directory."""
    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        if (current / DIFFCTX_DIR).is_dir():
            return current
        current = current.parent
    if (current / DIFFCTX_DIR).is_dir():
        return current
    return None


def get_diffctx_dir(root: Path) -> Path:
    """Get the .diffctx directory for a project root."""
    return root / DIFFCTX_DIR


def load_config(root: Path) -> ProjectConfig:
    """Load configuration from .diffctx/config.json."""
    config_path = get_diffctx_dir(root) / CONFIG_FILE
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
            return ProjectConfig(**data)
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e
    return ProjectConfig(name=root.name, root_path=str(root))


def save_config(root: Path, config: ProjectConfig) -> None:
    """Save configuration to .diffctx/config.json."""
    dc_dir = get_diffctx_dir(root)
    dc_dir.mkdir(parents=True, exist_ok=True)
    config_path = dc_dir / CONFIG_FILE
    config_path.write_text(json.dumps(config.model_dump(mode="json"), indent=2))


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Set a nested config value using dot notation (e.g., 'budget.budget_tokens')."""
    parts = key.split(".")
    data = config.model_dump(mode="json")
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise KeyError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise KeyError(f"Invalid config key: {key}")
    target[parts[-1]] = value
    try:
        return ProjectConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from e
