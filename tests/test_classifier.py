"""Tests for candidate classification and relevance filtering."""

from __future__ import annotations

import math

from diffctx.context.classifier import CandidateClassifier, relevance_score
from diffctx.context.models import Priority
from diffctx.diff.parser import DiffHunk, parse_unified_diff


def _paths(candidates):
    return [c.path for c in candidates]


class TestClassifyFile:
    def test_diff_matched(self, make_file, feature_diff, feature_content):
        classifier = CandidateClassifier(parse_unified_diff(feature_diff), root="/repo")
        file = make_file("/repo/src/feature.ts", feature_content, token_count=120)

        candidate, in_diff = classifier.classify_file(file)

        assert in_diff
        assert candidate.priority == Priority.DIFF
        assert candidate.is_essential
        assert len(candidate.variants) == 3
        assert all("(excerpt)" in v.content for v in candidate.variants)

    def test_diff_flagged_without_hunks(self, make_file):
        content = "\n".join(f"row {i}" for i in range(1, 151))
        classifier = CandidateClassifier({}, root="/repo", diff_paths=["/repo/big.ts"])

        candidate, in_diff = classifier.classify_file(make_file("/repo/big.ts", content))

        assert in_diff
        assert candidate.priority == Priority.SUPPORTING
        assert not candidate.is_essential
        assert len(candidate.variants) == 1
        assert "(capped excerpt)" in candidate.variants[0].content

    def test_empty_hunk_entry_is_flagged(self, make_file):
        classifier = CandidateClassifier({"gone.py": []}, root="/repo")

        candidate, in_diff = classifier.classify_file(make_file("/repo/gone.py", "x = 1\n"))

        assert in_diff
        assert candidate.priority == Priority.SUPPORTING
        assert "(excerpt)" in candidate.variants[0].content

    def test_small_and_large_non_diff(self, make_file):
        classifier = CandidateClassifier({}, root="/repo", small_file_token_threshold=400)

        small, _ = classifier.classify_file(make_file("/repo/a.ts", "a", token_count=400))
        large, _ = classifier.classify_file(make_file("/repo/b.ts", "b", token_count=401))

        assert small.priority == Priority.SUPPORTING
        assert large.priority == Priority.HELPER
        assert math.isinf(large.variants[0].context_lines)

    def test_same_name_in_other_directory(self, make_file):
        diff_map = {"src/a/utils.ts": [DiffHunk(1, 1)]}
        classifier = CandidateClassifier(diff_map, root="/repo")

        a, a_in_diff = classifier.classify_file(make_file("/repo/src/a/utils.ts", "x\n"))
        b, b_in_diff = classifier.classify_file(make_file("/repo/src/b/utils.ts", "y\n"))

        assert a_in_diff and a.priority == Priority.DIFF
        assert not b_in_diff and b.priority == Priority.SUPPORTING
        assert "(excerpt)" not in b.variants[0].content


class TestClassify:
    def test_binary_and_skipped_files(self, make_file):
        files = [
            make_file("/repo/logo.png", is_binary=True, size=2048),
            make_file("/repo/huge.js", is_skipped=True),
            make_file("/repo/main.py", "print('hi')\n"),
        ]

        candidates, binary = CandidateClassifier({}, root="/repo").classify(files)
        assert _paths(candidates) == ["/repo/main.py"]
        assert binary == []

        candidates, binary = CandidateClassifier(
            {}, root="/repo", include_binary_paths=True
        ).classify(files)
        assert binary == ["File: /repo/logo.png\nThis is a file of the type: Png (2.0 KB)"]

    def test_one_candidate_per_file(self, make_file, feature_diff, feature_content):
        files = [
            make_file("/repo/src/feature.ts", feature_content),
            make_file("/repo/src/helper.ts", "export const helper = 1;\n"),
        ]
        classifier = CandidateClassifier(parse_unified_diff(feature_diff), root="/repo")

        candidates, _ = classifier.classify(files)

        assert _paths(candidates) == ["/repo/src/feature.ts", "/repo/src/helper.ts"]


class TestRelevance:
    def test_score_components(self):
        touched = {"src/user/service.ts"}
        assert relevance_score("src/user/service.test.ts", touched) == 3 + 1 + 2
        assert relevance_score("src/order/model.ts", touched) == 1 + 1
        assert relevance_score("docs/readme.md", touched) == 0

    def test_filter_drops_unrelated(self, make_file, feature_diff, feature_content):
        files = [
            make_file("/repo/src/feature.ts", feature_content),
            make_file("/repo/src/feature.test.ts", "test('x')\n"),
            make_file("/repo/docs/guide.md", "# Guide\n"),
        ]
        classifier = CandidateClassifier(
            parse_unified_diff(feature_diff), root="/repo", relevance_filter=True
        )

        candidates, _ = classifier.classify(files)

        assert _paths(candidates) == ["/repo/src/feature.ts", "/repo/src/feature.test.ts"]

    def test_filter_keeps_top_k(self, make_file, feature_diff, feature_content):
        files = [
            make_file("/repo/src/feature.ts", feature_content),
            make_file("/repo/lib/other.ts", "a\n"),
            make_file("/repo/src/feature.spec.ts", "b\n"),
            make_file("/repo/src/util.ts", "c\n"),
        ]
        classifier = CandidateClassifier(
            parse_unified_diff(feature_diff),
            root="/repo",
            relevance_filter=True,
            max_helper_files=2,
        )

        candidates, _ = classifier.classify(files)

        assert _paths(candidates) == [
            "/repo/src/feature.ts",
            "/repo/src/feature.spec.ts",
            "/repo/src/util.ts",
        ]

    def test_filter_noop_without_diff(self, make_file):
        files = [make_file("/repo/a.ts", "a\n"), make_file("/repo/docs/b.md", "b\n")]
        classifier = CandidateClassifier({}, root="/repo", relevance_filter=True)

        candidates, _ = classifier.classify(files)

        assert len(candidates) == 2

    def test_unanchored_score_aligns_directories(self):
        touched = {"src/feature.ts"}
        assert relevance_score("home/dev/repo/src/styles.css", touched, anchored=False) == 3
        assert relevance_score("repo/src/ui/panel.css", touched, anchored=False) == 1
        assert relevance_score("repo/docs/guide.md", touched, anchored=False) == 0
        # Anchored paths are compared as given.
        assert relevance_score("repo/src/styles.css", touched) == 0

    def test_filter_without_root_keeps_same_directory(
        self, make_file, feature_diff, feature_content
    ):
        files = [
            make_file("/repo/src/feature.ts", feature_content),
            make_file("/repo/src/styles.css", "body {}\n"),
            make_file("/repo/docs/guide.md", "# Guide\n"),
        ]
        classifier = CandidateClassifier(
            parse_unified_diff(feature_diff), root=None, relevance_filter=True
        )

        candidates, _ = classifier.classify(files)

        assert _paths(candidates) == ["/repo/src/feature.ts", "/repo/src/styles.css"]
        assert candidates[1].relevance == 3
