"""Excerpt rendering at several context granularities.

A diff-matched file is rendered once per radius of its *context sequence*
(e.g. 12, 6, 0 lines around each changed range), largest first, so the
budget selector can fall back to a tighter excerpt instead of dropping the
file. Files that are flagged as changed but have no usable ranges get a
single head/tail capped snippet; everything else is rendered in full.
"""

from __future__ import annotations

import math
import re

from diffctx.context.models import CandidateVariant, FileEntry
from diffctx.diff.parser import DiffHunk, merge_hunks
from diffctx.paths import normalize_path

ELLIPSIS_LINE = "…"

DEFAULT_CAPPED_MAX_LINES = 120
DEFAULT_CAPPED_HEAD_LINES = 80
DEFAULT_CAPPED_TAIL_LINES = 40


def range_header(start: int, end: int) -> str:
    return f"[lines {start}]" if start == end else f"[lines {start}-{end}]"


def split_lines(content: str) -> list[str]:
    """Split on \\r?\\n; a single trailing newline does not add a line."""
    lines = re.split(r"\r?\n", content)
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


def ensure_trailing_newline(text: str) -> str:
    return text if text.endswith("\n") else f"{text}\n"


def build_context_sequence(initial_context: int) -> list[int]:
    """Decreasing context radii to try, from the requested one down to 0."""
    base = max(0, int(initial_context))
    radii = {base, 0}
    if base > 8:
        radii.add(max(4, base // 2))
    elif base > 4:
        radii.add(base // 2)
        radii.add(4)
    elif base > 0 and base != 4:
        radii.add(max(1, base // 2))
    return sorted(radii, reverse=True)


def create_ranges_for_context(
    hunks: list[DiffHunk] | None,
    context_lines: int,
    join_threshold: int,
    total_lines: int,
) -> list[DiffHunk]:
    """Expand each hunk by `context_lines`, clamp to the file and merge nearby ranges."""
    if not hunks:
        return [DiffHunk(start=1, end=total_lines)]

    expanded = [
        DiffHunk(
            start=max(1, h.start - context_lines),
            end=min(total_lines, h.end + context_lines),
        )
        for h in hunks
        # Ranges past the end of the file come from a stale diff.
        if h.start <= total_lines
    ]
    return merge_hunks(expanded, join_threshold=join_threshold)


class ExcerptBuilder:
    """Render candidate variants for one file at a time."""

    def __init__(
        self,
        context_lines: int = 12,
        join_threshold: int = 10,
        capped_max_lines: int = DEFAULT_CAPPED_MAX_LINES,
        capped_head_lines: int = DEFAULT_CAPPED_HEAD_LINES,
        capped_tail_lines: int = DEFAULT_CAPPED_TAIL_LINES,
    ) -> None:
        self.context_lines = max(0, context_lines)
        self.join_threshold = max(0, join_threshold)
        self.capped_max_lines = capped_max_lines
        self.capped_head_lines = capped_head_lines
        self.capped_tail_lines = capped_tail_lines

    def excerpt_variants(
        self, file: FileEntry, language: str, hunks: list[DiffHunk]
    ) -> list[CandidateVariant]:
        """One excerpt per radius of the context sequence, largest first."""
        lines = split_lines(file.content)
        variants: list[CandidateVariant] = []

        for radius in build_context_sequence(self.context_lines):
            ranges = create_ranges_for_context(
                hunks, radius, self.join_threshold, len(lines)
            )
            if not ranges:
                continue
            body = self._render_ranges(lines, ranges)
            variants.append(CandidateVariant(
                content=self._wrap(file.path, " (excerpt)", language, body),
                context_lines=radius,
            ))

        return variants

    def capped_variant(self, file: FileEntry, language: str) -> CandidateVariant:
        """Head and tail of the file within the line cap."""
        lines = split_lines(file.content)
        total = len(lines)
        effective_max = max(1, int(self.capped_max_lines))

        head = min(max(0, int(self.capped_head_lines)), effective_max)
        tail = min(max(0, int(self.capped_tail_lines)), effective_max - head)

        if total <= effective_max:
            head, tail = total, 0
        elif tail == 0:
            head = effective_max

        ranges: list[DiffHunk] = []
        if head > 0:
            ranges.append(DiffHunk(start=1, end=head))
        if tail > 0:
            tail_start = max(1, total - tail + 1)
            if not ranges or tail_start > ranges[-1].end + 1:
                ranges.append(DiffHunk(start=tail_start, end=total))
            else:
                ranges[-1] = DiffHunk(start=ranges[-1].start, end=total)
        if not ranges:
            ranges.append(DiffHunk(start=1, end=min(total, effective_max)))

        label = " (capped excerpt)" if total > effective_max else " (excerpt)"
        body = self._render_ranges(lines, ranges)
        return CandidateVariant(
            content=self._wrap(file.path, label, language, body),
            context_lines=0,
        )

    def full_variant(self, file: FileEntry, language: str) -> CandidateVariant:
        """The whole file without range markers."""
        return CandidateVariant(
            content=self._wrap(file.path, "", language, file.content),
            context_lines=math.inf,
        )

    @staticmethod
    def _render_ranges(lines: list[str], ranges: list[DiffHunk]) -> str:
        segments = []
        for r in ranges:
            header = range_header(r.start, r.end)
            body = "\n".join(lines[r.start - 1:r.end])
            segments.append(f"{header}\n{body}" if body else header)
        return f"\n{ELLIPSIS_LINE}\n".join(segments)

    @staticmethod
    def _wrap(path: str, label: str, language: str, body: str) -> str:
        return (
            f"File: {normalize_path(path)}{label}\n"
            f"```{language}\n"
            f"{ensure_trailing_newline(body)}"
            f"```\n\n"
        )
