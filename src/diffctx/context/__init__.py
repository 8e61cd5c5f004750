"""Smart Context Assembly.

Assembles diff-aware, budgeted file context for LLM prompts: changed files
become excerpts around their hunks, supporting files are included whole while
the token budget allows.

Usage:
    from diffctx.context import SmartContextAssembler, SmartContextParams

    assembler = SmartContextAssembler()
    result = await assembler.assemble(SmartContextParams(files=..., diff_text=...))
    print(result.content)
"""

from diffctx.context.engine import SmartContextAssembler, assemble_smart_context
from diffctx.context.models import (
    Candidate,
    CandidateVariant,
    FileEntry,
    IncludedVariant,
    Priority,
    SmartContextParams,
    SmartContextResult,
)

__all__ = [
    "Candidate",
    "CandidateVariant",
    "FileEntry",
    "IncludedVariant",
    "Priority",
    "SmartContextAssembler",
    "SmartContextParams",
    "SmartContextResult",
    "assemble_smart_context",
]
