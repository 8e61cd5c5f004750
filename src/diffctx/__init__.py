"""diffctx - budgeted, diff-aware source context for LLM prompts."""

__version__ = "0.1.0"
