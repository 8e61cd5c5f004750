"""Smart context assembly.

Pipeline:
  1. Parse the unified diff into per-file changed ranges (DiffMap)
  2. Sort the selection and classify every file into a priority tier,
     rendering excerpt / capped / full variants
  3. Reserve budget for the verbatim diff block (scaled by the allocation
     preference)
  4. Greedy budgeted selection of one variant per candidate
  5. Emit <file_map>, <file_contents> and <git_diff> sections and measure
     the result

The assembler holds no state between calls; the only suspension points are
awaits on the injected token counter.
"""

from __future__ import annotations

import logging
import math
import time

from diffctx.context.budget import BudgetSelector, is_budget_enforced
from diffctx.context.classifier import CandidateClassifier
from diffctx.context.excerpts import ExcerptBuilder
from diffctx.context.models import (
    FileEntry,
    SelectionResult,
    SmartContextParams,
    SmartContextResult,
)
from diffctx.diff.parser import parse_unified_diff
from diffctx.paths import normalize_path
from diffctx.tokens import TokenCounter, estimate_tokens_async
from diffctx.tree import generate_ascii_file_tree

logger = logging.getLogger("diffctx.context")

_SORT_KEYS = {
    "name": lambda f: f.name.lower(),
    "tokens": lambda f: f.token_count,
    "size": lambda f: f.size,
}


def sort_selected_files(
    files: list[FileEntry], selected_files: list[str], sort_order: str
) -> list[FileEntry]:
    """Keep only selected files and sort them by `<name|tokens|size>-<asc|desc>`.

    Unknown sort keys keep the input order.
    """
    selected = {normalize_path(p) for p in selected_files}
    relevant = [f for f in files if normalize_path(f.path) in selected]

    sort_key, _, direction = sort_order.partition("-")
    key = _SORT_KEYS.get(sort_key)
    if key is None:
        return relevant
    return sorted(relevant, key=key, reverse=direction != "asc")


def render_diff_section(diff: str) -> str:
    return f"<git_diff>\n```diff\n{diff}\n```\n</git_diff>\n"


class SmartContextAssembler:
    """Assemble budgeted, diff-aware file context for an LLM prompt.

    Usage:
        assembler = SmartContextAssembler(token_counter=CachedTokenCounter())
        result = await assembler.assemble(params)
        print(result.content)
    """

    def __init__(self, token_counter: TokenCounter | None = None) -> None:
        self.count_tokens = token_counter or estimate_tokens_async

    # -------------------------------------------------------------------
    # Main entry point
    # -------------------------------------------------------------------

    async def assemble(self, params: SmartContextParams) -> SmartContextResult:
        """Assemble the context string for `params` and report its token usage."""
        start_time = time.time()

        # Phase 1: Diff ranges
        diff_map = parse_unified_diff(params.diff_text)

        # Phase 2: Selection order + classification
        sorted_files = sort_selected_files(
            params.files, params.selected_files, params.sort_order
        )
        classifier = CandidateClassifier(
            diff_map,
            root=params.root,
            diff_paths=params.diff_paths,
            excerpt_builder=ExcerptBuilder(
                context_lines=max(0, params.context_lines),
                join_threshold=max(0, params.join_threshold),
                capped_max_lines=params.capped_max_lines,
                capped_head_lines=params.capped_head_lines,
                capped_tail_lines=params.capped_tail_lines,
            ),
            small_file_token_threshold=params.small_file_token_threshold,
            include_binary_paths=params.include_binary_paths,
            relevance_filter=params.relevance_filter,
            max_helper_files=params.max_helper_files,
        )
        candidates, binary_entries = classifier.classify(sorted_files)

        # Phase 3: Diff reservation
        diff_section = ""
        diff_tokens = 0
        embed = params.embed_diff.strip() if params.include_diff and params.embed_diff else ""
        if embed:
            diff_section = render_diff_section(embed)
            diff_tokens = await self.count_tokens(diff_section)

        available = self._available_budget(params, diff_tokens)

        # Phase 4: Budgeted selection
        selection = await BudgetSelector(self.count_tokens).select(candidates, available)

        # Phase 5: Output
        content = self._render(params, sorted_files, selection, binary_entries, diff_section)
        token_count = await self.count_tokens(content)

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Assembled {len(selection.included)} file(s), {token_count} tokens "
            f"(excerpts {selection.total_tokens}, diff {diff_tokens}) "
            f"in {elapsed_ms:.1f}ms"
        )

        return SmartContextResult(
            content=content,
            token_count=token_count,
            excerpt_tokens=selection.total_tokens,
            diff_tokens=diff_tokens,
            budget_tokens=params.budget_tokens,
            files_included=len(selection.included),
            files_dropped=selection.dropped,
            files_forced=[item.path for item in selection.included if item.forced],
            assembly_time_ms=round(elapsed_ms, 1),
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    @staticmethod
    def _available_budget(params: SmartContextParams, diff_tokens: int) -> float | None:
        """Budget left for file content after reserving the diff block."""
        if not is_budget_enforced(params.budget_tokens):
            return None
        multiplier = params.allocation.multiplier if params.allocation else 1.0
        reservation = math.ceil(diff_tokens * multiplier)
        return max(params.budget_tokens - reservation, 0)

    @staticmethod
    def _render(
        params: SmartContextParams,
        sorted_files: list[FileEntry],
        selection: SelectionResult,
        binary_entries: list[str],
        diff_section: str,
    ) -> str:
        file_contents = "<file_contents>\n"
        for item in selection.included:
            file_contents += item.content

        if params.include_binary_paths and binary_entries:
            file_contents += "<binary_files>\n"
            for entry in binary_entries:
                file_contents += f"{entry}\n"
            file_contents += "</binary_files>\n\n"

        file_contents += "</file_contents>\n"

        sections: list[str] = []
        if params.include_file_tree and params.root and sorted_files:
            root = normalize_path(params.root)
            tree = generate_ascii_file_tree([f.path for f in sorted_files], params.root)
            sections.append(f"<file_map>\n{root}\n{tree}\n</file_map>\n")

        sections.append(file_contents)

        if diff_section:
            sections.append(diff_section)

        return "\n".join(sections)


async def assemble_smart_context(
    params: SmartContextParams, token_counter: TokenCounter | None = None
) -> SmartContextResult:
    """Convenience wrapper around ``SmartContextAssembler.assemble``."""
    return await SmartContextAssembler(token_counter).assemble(params)
