"""Path normalization and diff-entry resolution.

Files on disk are usually addressed by absolute paths while diff entries are
relative to the repository root (``src/app.py``), sometimes with a leftover
prefix. ``PathResolver`` bridges the two and refuses to guess when a suffix
match is ambiguous, so two ``utils.py`` files in different directories never
share one file's hunks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from diffctx.diff.parser import DiffHunk, DiffMap


def normalize_path(path: str | None) -> str:
    """Normalize separators, collapse repeated slashes and drop `.` segments."""
    if not path:
        return ""
    unified = path.replace("\\", "/")
    absolute = unified.startswith("/")
    segments = [s for s in unified.split("/") if s and s != "."]
    joined = "/".join(segments)
    return f"/{joined}" if absolute else joined


def strip_leading_slashes(path: str) -> str:
    return path.lstrip("/")


def relative_to(base: str | None, target: str) -> str | None:
    """Return `target` relative to `base`, or None if it is not underneath it."""
    if not base:
        return None
    normalized_base = normalize_path(base).rstrip("/")
    normalized_target = normalize_path(target)
    if not normalized_target.startswith(normalized_base + "/"):
        return None
    relative = normalized_target[len(normalized_base) + 1:]
    return relative or None


class PathResolver:
    """Map on-disk file paths to entries of a parsed diff.

    Usage:
        resolver = PathResolver(diff_map, root="/repo")
        hunks = resolver.resolve("/repo/src/app.py")
    """

    def __init__(self, diff_map: DiffMap, root: str | None = None) -> None:
        self.diff_map = diff_map
        self.root = normalize_path(root) if root else None
        self._entries = [
            (key, strip_leading_slashes(normalize_path(key))) for key in diff_map
        ]

    def relative(self, path: str) -> str | None:
        """Path relative to the project root, if any."""
        return relative_to(self.root, path)

    def candidate_keys(self, path: str) -> list[str]:
        """Exact lookup keys for `path`, in the order they are tried."""
        normalized = normalize_path(path)
        keys: list[str] = []

        def _add(key: str | None) -> None:
            if key and key not in keys:
                keys.append(key)

        _add(normalized)
        _add(strip_leading_slashes(normalized))

        relative = self.relative(normalized)
        if relative:
            normalized_relative = normalize_path(relative)
            _add(normalized_relative)
            _add(strip_leading_slashes(normalized_relative))

        return keys

    def resolve(self, path: str) -> list[DiffHunk] | None:
        """Return the hunks recorded for `path`, or None if it is not in the diff."""
        for key in self.candidate_keys(path):
            hunks = self.diff_map.get(key)
            if hunks is not None:
                return hunks
        return self._unique_suffix_match(path)

    def _unique_suffix_match(self, path: str) -> list[DiffHunk] | None:
        """Match by trailing path segments, accepting only unambiguous hits."""
        target = strip_leading_slashes(normalize_path(path))
        if not target:
            return None

        segments = [s for s in target.split("/") if s]
        total = len(segments)

        for start in range(total):
            remaining = total - start
            # A bare filename is too weak a signal for a multi-segment path.
            if total > 1 and remaining == 1:
                continue

            suffix = "/".join(segments[start:])
            matches = [
                key
                for key, normalized in self._entries
                if normalized == suffix or normalized.endswith(f"/{suffix}")
            ]
            if len(matches) == 1:
                return self.diff_map[matches[0]]
            if len(matches) > 1:
                # Shorter suffixes can only match more keys.
                return None

        return None
