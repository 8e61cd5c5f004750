"""Candidate classification - decide how each selected file competes for budget.

Tiers:
  DIFF        diff-matched file with resolvable hunks -> excerpt variants, essential
  SUPPORTING  diff-flagged file without hunks -> capped snippet
              small non-diff file -> full content
  HELPER      large non-diff file -> full content, dropped first

With the relevance filter on, non-diff files are scored against the files the
diff touches (shared directory, extension and basename) and only the best
``max_helper_files`` survive; unrelated files (score 0) are never offered.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Callable

from diffctx.context.excerpts import ExcerptBuilder
from diffctx.context.models import Candidate, FileEntry, Priority
from diffctx.diff.parser import DiffMap
from diffctx.languages import describe_file_type, detect_language
from diffctx.paths import PathResolver, normalize_path, strip_leading_slashes

logger = logging.getLogger("diffctx.context")

# Relevance weights
_SAME_DIRECTORY = 3.0
_SHARED_ANCESTOR = 1.0
_SAME_EXTENSION = 1.0
_RELATED_STEM = 2.0
_MIN_STEM_LENGTH = 3


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def _stem(name: str) -> str:
    # "user.service.test.ts" -> "user"
    return name.split(".", 1)[0].lower()


def _common_prefix_len(a: tuple[str, ...], b: tuple[str, ...]) -> int:
    common = 0
    for x, y in zip(a, b):
        if x != y:
            break
        common += 1
    return common


def _align(candidate_dir: tuple[str, ...], target_dir: tuple[str, ...]) -> tuple[str, ...] | None:
    """Re-root an unanchored directory at the target's top-level segment.

    ("home", "me", "repo", "src", "ui") against ("src", "lib") gives
    ("src", "ui"). Returns None when the target's top segment never appears.
    """
    if not target_dir:
        return None
    best: tuple[str, ...] | None = None
    best_len = 0
    for index, part in enumerate(candidate_dir):
        if part != target_dir[0]:
            continue
        common = _common_prefix_len(candidate_dir[index:], target_dir)
        # Later starts win ties so the deepest matching directory is used.
        if common >= best_len:
            best, best_len = candidate_dir[index:], common
    return best


def relevance_score(path: str, touched: set[str], anchored: bool = True) -> float:
    """Score a non-diff file by its proximity to the diff-touched files.

    With ``anchored=False`` the candidate path is not known to be relative to
    the same root as the diff paths (no project root was given), so its
    directory is aligned to each diff path's top-level segment first.
    """
    candidate = PurePosixPath(path)
    best = 0.0

    for other in touched:
        target = PurePosixPath(other)
        target_dir = target.parent.parts
        candidate_dir: tuple[str, ...] | None = candidate.parent.parts
        if not anchored:
            candidate_dir = _align(candidate_dir, target_dir)
        score = 0.0

        if candidate_dir is not None:
            if candidate_dir == target_dir:
                score += _SAME_DIRECTORY
            elif _common_prefix_len(candidate_dir, target_dir):
                score += _SHARED_ANCESTOR

        if candidate.suffix and candidate.suffix == target.suffix:
            score += _SAME_EXTENSION

        a_stem, b_stem = _stem(candidate.name), _stem(target.name)
        if (
            len(a_stem) >= _MIN_STEM_LENGTH
            and len(b_stem) >= _MIN_STEM_LENGTH
            and (a_stem in b_stem or b_stem in a_stem)
        ):
            score += _RELATED_STEM

        best = max(best, score)

    return best


class CandidateClassifier:
    """Turn selected files into prioritized candidates.

    Usage:
        classifier = CandidateClassifier(diff_map, root="/repo", diff_paths=paths)
        candidates, binary_entries = classifier.classify(files)
    """

    def __init__(
        self,
        diff_map: DiffMap,
        root: str | None = None,
        diff_paths: list[str] | None = None,
        excerpt_builder: ExcerptBuilder | None = None,
        small_file_token_threshold: int = 800,
        include_binary_paths: bool = False,
        relevance_filter: bool = False,
        max_helper_files: int = 10,
        language_detector: Callable[[str], str] = detect_language,
    ) -> None:
        self.diff_map = diff_map
        self.resolver = PathResolver(diff_map, root)
        self.excerpts = excerpt_builder or ExcerptBuilder()
        self.small_file_token_threshold = small_file_token_threshold
        self.include_binary_paths = include_binary_paths
        self.relevance_filter = relevance_filter
        self.max_helper_files = max(0, max_helper_files)
        self.detect_language = language_detector

        self.diff_path_set: set[str] = set()
        for path in diff_paths or []:
            normalized = normalize_path(path)
            self.diff_path_set.add(normalized)
            relative = self.resolver.relative(normalized)
            if relative:
                self.diff_path_set.add(relative)

    # -------------------------------------------------------------------
    # Main entry point
    # -------------------------------------------------------------------

    def classify(self, files: list[FileEntry]) -> tuple[list[Candidate], list[str]]:
        """Classify files in order. Returns (candidates, binary listing entries)."""
        candidates: list[Candidate] = []
        binary_entries: list[str] = []
        non_diff: list[Candidate] = []

        for file in files:
            if file.is_binary:
                if self.include_binary_paths:
                    binary_entries.append(self.binary_entry(file))
                continue
            if file.is_skipped:
                logger.debug(f"Skipping {file.path}: marked skipped by scanner")
                continue

            candidate, in_diff = self.classify_file(file)
            candidates.append(candidate)
            if not in_diff:
                non_diff.append(candidate)

        if self.relevance_filter and non_diff:
            excluded = self._filter_by_relevance(non_diff)
            if excluded:
                candidates = [c for c in candidates if id(c) not in excluded]

        return candidates, binary_entries

    def classify_file(self, file: FileEntry) -> tuple[Candidate, bool]:
        """Build the candidate for one text file. Returns (candidate, is_in_diff)."""
        path = normalize_path(file.path)
        language = self.detect_language(file.name)
        hunks = self.resolver.resolve(path)

        if hunks:
            variants = self.excerpts.excerpt_variants(file, language, hunks)
            if not variants:
                variants = [self.excerpts.full_variant(file, language)]
            logger.debug(
                f"{path}: diff-matched ({len(hunks)} range(s), {len(variants)} variant(s))"
            )
            return Candidate(
                path=path, priority=Priority.DIFF, variants=variants, is_essential=True
            ), True

        # An entry with no recordable hunks still marks the file as changed.
        if hunks is not None or self.is_diff_path(path):
            logger.debug(f"{path}: diff-flagged without ranges, capping")
            return Candidate(
                path=path,
                priority=Priority.SUPPORTING,
                variants=[self.excerpts.capped_variant(file, language)],
            ), True

        priority = (
            Priority.SUPPORTING
            if file.token_count <= self.small_file_token_threshold
            else Priority.HELPER
        )
        return Candidate(
            path=path,
            priority=priority,
            variants=[self.excerpts.full_variant(file, language)],
        ), False

    def is_diff_path(self, path: str) -> bool:
        normalized = normalize_path(path)
        if normalized in self.diff_path_set:
            return True
        relative = self.resolver.relative(normalized)
        return bool(relative and relative in self.diff_path_set)

    @staticmethod
    def binary_entry(file: FileEntry) -> str:
        descriptor = describe_file_type(file.name)
        if file.size:
            descriptor += f" ({_format_size(file.size)})"
        return f"File: {normalize_path(file.path)}\nThis is a file of the type: {descriptor}"

    # -------------------------------------------------------------------
    # Relevance filtering
    # -------------------------------------------------------------------

    def diff_touched_paths(self) -> set[str]:
        """Root-relative paths of every file the diff touches."""
        touched = {strip_leading_slashes(normalize_path(key)) for key in self.diff_map}
        for path in self.diff_path_set:
            touched.add(self._project_path(path))
        touched.discard("")
        return touched

    def _project_path(self, path: str) -> str:
        return self.resolver.relative(path) or strip_leading_slashes(normalize_path(path))

    def _filter_by_relevance(self, non_diff: list[Candidate]) -> set[int]:
        """Score non-diff candidates; return ids of the ones to exclude."""
        touched = self.diff_touched_paths()
        if not touched:
            return set()

        scored: list[tuple[float, int, Candidate]] = []
        excluded: set[int] = set()
        for index, cand in enumerate(non_diff):
            cand.relevance = relevance_score(
                self._project_path(cand.path), touched, anchored=self.resolver.root is not None
            )
            if cand.relevance <= 0:
                excluded.add(id(cand))
                logger.debug(f"{cand.path}: unrelated to the diff, excluded")
            else:
                scored.append((cand.relevance, index, cand))

        scored.sort(key=lambda item: (-item[0], item[1]))
        for _, _, cand in scored[self.max_helper_files:]:
            excluded.add(id(cand))
            logger.debug(f"{cand.path}: below top {self.max_helper_files} helpers, excluded")

        return excluded
