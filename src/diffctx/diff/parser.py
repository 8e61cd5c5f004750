"""Unified diff parser - extract changed line ranges per file.

Parses the output of `git diff` into a ``DiffMap``: normalized file path ->
sorted, merged line ranges in the *new* file. Only content that exists in
the working tree is tracked; deleted files and pure-deletion hunks produce no
ranges.

The parser is a small state machine:

    SEEKING_FILE --(+++ path)--> IN_HEADER --(@@ hunk @@)--> IN_HUNK
         ^                           ^                          |
         |                           +----(counts exhausted)----+
         +--------------------(diff --git, any state)

Inside a hunk body the old/new line counts are consumed, so a ``+++ x`` line
that is really added content is never mistaken for a file marker.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from diffctx.exceptions import DiffParseError
from diffctx.paths import normalize_path

logger = logging.getLogger("diffctx.diff")

HUNK_HEADER_RE = re.compile(r"@@\s+-(\d+)(?:,(\d+))?\s+\+(\d+)(?:,(\d+))?\s+@@")

# Annotation emitted by optimize_git_diff in place of a new file's body.
NEW_FILE_PLACEHOLDER = "\\ New file:"


@dataclass(frozen=True)
class DiffHunk:
    """A changed line range in the new file (1-based, inclusive)."""
    start: int
    end: int


DiffMap = dict[str, list[DiffHunk]]


@dataclass(frozen=True)
class HunkHeader:
    """Parsed ``@@ -a,b +c,d @@`` header."""
    old_start: int
    old_count: int
    new_start: int
    new_count: int

    def to_hunk(self) -> DiffHunk | None:
        """Range covered in the new file, or None for a pure deletion."""
        if self.new_count == 0:
            return None
        return DiffHunk(
            start=self.new_start,
            end=self.new_start + max(self.new_count - 1, 0),
        )


class ParseState(Enum):
    SEEKING_FILE = "seeking_file"
    IN_HEADER = "in_header"
    IN_HUNK = "in_hunk"


def parse_hunk_header(line: str) -> HunkHeader:
    """Parse a hunk header line. Omitted counts default to 1."""
    match = HUNK_HEADER_RE.match(line)
    if not match:
        raise DiffParseError(f"Malformed hunk header: {line!r}")
    return HunkHeader(
        old_start=int(match.group(1)),
        old_count=int(match.group(2) or "1"),
        new_start=int(match.group(3)),
        new_count=int(match.group(4) or "1"),
    )


def parse_file_marker(line: str) -> str | None:
    """Extract the target path from a ``+++ `` line (None for /dev/null)."""
    path_part = line[4:].strip()
    if not path_part or path_part == "/dev/null":
        return None
    if path_part.startswith(("a/", "b/")):
        path_part = path_part[2:]
    return normalize_path(path_part) or None


class _DiffScanner:
    """Line-by-line state machine building a DiffMap."""

    def __init__(self) -> None:
        self.diff_map: DiffMap = {}
        self.state = ParseState.SEEKING_FILE
        self.current_file: str | None = None
        self.old_remaining = 0
        self.new_remaining = 0
        # A "--- " line seen inside a hunk, held until the next line shows
        # whether it starts a file header or is a removed line.
        self._pending: str | None = None

    def feed(self, line: str) -> None:
        pending, self._pending = self._pending, None
        if pending is not None:
            if line.startswith("+++ "):
                # Hunk counts ran short: "--- "/"+++ " opens the next file.
                self.state = ParseState.IN_HEADER
            else:
                self._feed(pending)

        if self.state is ParseState.IN_HUNK and line.startswith("--- "):
            self._pending = line
            return
        self._feed(line)

    def _feed(self, line: str) -> None:
        if line.startswith("diff --git "):
            self._reset()
            return

        if self.state is ParseState.IN_HUNK:
            if self._consume_body_line(line):
                return
            # Not a body line: the hunk ended early, re-read as a header line.
            self.state = ParseState.IN_HEADER

        if line.startswith("+++ "):
            self._enter_file(parse_file_marker(line))
        elif line.startswith("@@"):
            self._enter_hunk(line)

    def _reset(self) -> None:
        self.state = ParseState.SEEKING_FILE
        self.current_file = None
        self.old_remaining = 0
        self.new_remaining = 0

    def _enter_file(self, path: str | None) -> None:
        self.current_file = path
        if path is None:
            self.state = ParseState.SEEKING_FILE
            return
        self.diff_map.setdefault(path, [])
        self.state = ParseState.IN_HEADER

    def _enter_hunk(self, line: str) -> None:
        try:
            header = parse_hunk_header(line)
        except DiffParseError as e:
            logger.debug(f"Skipping line: {e}")
            return

        self.old_remaining = header.old_count
        self.new_remaining = header.new_count
        self.state = ParseState.IN_HUNK

        if self.current_file is None:
            # Hunk of a deleted file; its body is still consumed above.
            return

        hunk = header.to_hunk()
        if hunk is not None:
            self.diff_map[self.current_file].append(hunk)

    def _consume_body_line(self, line: str) -> bool:
        """Account for one hunk body line. Returns False if `line` is not one."""
        if line.startswith("\\"):
            if line.startswith(NEW_FILE_PLACEHOLDER):
                # Placeholder body: the range is already recorded, no lines follow.
                self.state = ParseState.IN_HEADER
            return True

        if line.startswith("@@"):
            return False
        if line.startswith("+"):
            self.new_remaining -= 1
        elif line.startswith("-"):
            self.old_remaining -= 1
        elif line == "" or line.startswith(" "):
            self.old_remaining -= 1
            self.new_remaining -= 1
        else:
            return False

        if self.old_remaining <= 0 and self.new_remaining <= 0:
            self.state = (
                ParseState.IN_HEADER if self.current_file else ParseState.SEEKING_FILE
            )
        return True

    def finish(self) -> DiffMap:
        if self._pending is not None:
            self._feed(self._pending)
            self._pending = None
        return {path: merge_hunks(hunks) for path, hunks in self.diff_map.items()}


def merge_hunks(hunks: list[DiffHunk], join_threshold: int = 1) -> list[DiffHunk]:
    """Sort ranges and merge any pair where next.start <= current.end + join_threshold."""
    if not hunks:
        return []

    ordered = sorted(hunks, key=lambda h: (h.start, h.end))
    merged: list[DiffHunk] = []
    current = ordered[0]

    for nxt in ordered[1:]:
        if nxt.start <= current.end + join_threshold:
            current = DiffHunk(start=current.start, end=max(current.end, nxt.end))
        else:
            merged.append(current)
            current = nxt

    merged.append(current)
    return merged


def parse_unified_diff(diff_text: str) -> DiffMap:
    """Parse unified diff text into a map of file path -> merged new-file ranges."""
    scanner = _DiffScanner()
    if not diff_text:
        return scanner.finish()

    for line in re.split(r"\r?\n", diff_text):
        scanner.feed(line)

    diff_map = scanner.finish()
    logger.debug(
        f"Parsed diff: {len(diff_map)} file(s), "
        f"{sum(len(h) for h in diff_map.values())} range(s)"
    )
    return diff_map


def is_path_in_diff(diff_map: DiffMap, file_path: str) -> bool:
    """Whether the normalized path is an exact key of the diff map."""
    if not file_path:
        return False
    return normalize_path(file_path) in diff_map
