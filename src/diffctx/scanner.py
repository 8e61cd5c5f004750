"""File scanner - build FileEntry records from disk."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path

from diffctx.config import ScannerConfig
from diffctx.context.models import FileEntry
from diffctx.exceptions import ScanError
from diffctx.tokens import estimate_tokens

logger = logging.getLogger("diffctx.scanner")

# Bytes sniffed for NUL characters when detecting binary files
_BINARY_SNIFF_BYTES = 8192


def is_excluded(rel_path: str, patterns: list[str]) -> bool:
    """Whether any path component or the full path matches an exclude pattern."""
    parts = rel_path.split("/")
    for pattern in patterns:
        if fnmatch.fnmatch(rel_path, pattern):
            return True
        if any(fnmatch.fnmatch(part, pattern) for part in parts):
            return True
    return False


def is_binary_file(path: Path) -> bool:
    try:
        with path.open("rb") as fh:
            chunk = fh.read(_BINARY_SNIFF_BYTES)
    except OSError:
        return False
    return b"\x00" in chunk


def _iter_files(root: Path, paths: list[str] | None) -> list[Path]:
    if not paths:
        return sorted(p for p in root.rglob("*") if p.is_file())

    found: list[Path] = []
    for raw in paths:
        p = Path(raw)
        if not p.is_absolute():
            p = root / p
        if p.is_dir():
            found.extend(sorted(x for x in p.rglob("*") if x.is_file()))
        elif p.is_file():
            found.append(p)
        else:
            logger.warning(f"Not found, ignoring: {raw}")
    return found


def scan_files(
    root: Path, paths: list[str] | None = None, config: ScannerConfig | None = None
) -> list[FileEntry]:
    """Read `paths` (files or directories, default: the whole root) into FileEntry records.

    Files matching an exclude pattern are left out entirely. Oversized and
    unreadable files are returned with ``is_skipped`` set, binary files with
    ``is_binary`` set and no content.
    """
    config = config or ScannerConfig()
    root = root.resolve()
    if not root.is_dir():
        raise ScanError(f"Root is not a directory: {root}")

    entries: list[FileEntry] = []
    seen: set[Path] = set()

    for file_path in _iter_files(root, paths):
        file_path = file_path.resolve()
        if file_path in seen:
            continue
        seen.add(file_path)

        try:
            rel = file_path.relative_to(root).as_posix()
        except ValueError:
            rel = file_path.name

        if is_excluded(rel, config.exclude_patterns):
            continue

        size = file_path.stat().st_size
        entry_path = file_path.as_posix()

        if size > config.max_file_size_kb * 1024:
            logger.debug(f"Skipping {rel}: {size} bytes exceeds limit")
            entries.append(FileEntry(path=entry_path, size=size, is_skipped=True))
            continue

        if is_binary_file(file_path):
            entries.append(FileEntry(path=entry_path, size=size, is_binary=True))
            continue

        try:
            content = file_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Could not read {rel}: {e}")
            entries.append(FileEntry(path=entry_path, size=size, is_skipped=True))
            continue

        entries.append(FileEntry(
            path=entry_path,
            content=content,
            size=size,
            token_count=estimate_tokens(content),
        ))

    return entries
