"""Diff optimisation - avoid replaying new files that are already shown in full.

A new file's diff body is a verbatim copy of the file. When that file is also
part of the assembled context, the body is replaced with a two-line
placeholder. The hunk header is kept so the parser still records the file's
range.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from diffctx.diff.parser import NEW_FILE_PLACEHOLDER

_NEW_FILE_HUNK_RE = re.compile(r"@@ -0,0 \+1,(\d+) @@")
_ANY_HUNK_COUNT_RE = re.compile(r"@@ -\d+(?:,\d+)? \+\d+(?:,(\d+))? @@")

FULL_CONTENT_NOTE = "\\ Full content included in <file_contents> section above"


@dataclass
class NewFileInfo:
    """A file introduced by a diff."""
    path: str
    is_new: bool = True
    line_count: int = 0


def _target_path(line: str) -> str | None:
    path_part = line[4:].strip()
    if not path_part or path_part == "/dev/null":
        return None
    return path_part[2:] if path_part.startswith("b/") else path_part


def _is_new_file_marker(line: str) -> bool:
    return line.startswith("new file mode ") or line == "--- /dev/null"


def detect_new_files_in_diff(diff_text: str) -> dict[str, NewFileInfo]:
    """Find the files a diff creates, keyed by path, with their added line count."""
    new_files: dict[str, NewFileInfo] = {}
    if not diff_text:
        return new_files

    current_file: str | None = None
    is_new = False
    line_count = 0

    def _flush() -> None:
        if current_file and is_new:
            new_files[current_file] = NewFileInfo(path=current_file, line_count=line_count)

    for line in re.split(r"\r?\n", diff_text):
        if line.startswith("diff --git "):
            _flush()
            current_file = None
            is_new = False
            line_count = 0
        elif _is_new_file_marker(line):
            is_new = True
        elif line.startswith("+++ "):
            path = _target_path(line)
            if path:
                current_file = path
        elif is_new and line.startswith("@@"):
            match = _ANY_HUNK_COUNT_RE.match(line)
            if match:
                line_count = int(match.group(1) or "1")

    _flush()
    return new_files


def optimize_git_diff(diff_text: str, preserve_metadata: bool = True) -> str:
    """Replace the bodies of new-file hunks with a placeholder.

    Modified files are passed through untouched. With ``preserve_metadata``
    off, new-file hunks keep only their header.
    """
    if not diff_text:
        return diff_text

    lines = re.split(r"\r?\n", diff_text)
    result: list[str] = []
    is_new = False
    current_path = ""
    i = 0

    while i < len(lines):
        line = lines[i]

        if line.startswith("diff --git "):
            is_new = False
            current_path = ""
        elif _is_new_file_marker(line):
            is_new = True
        elif line.startswith("+++ "):
            current_path = _target_path(line) or current_path
        elif line.startswith("@@") and is_new:
            result.append(line)
            match = _NEW_FILE_HUNK_RE.match(line) or _ANY_HUNK_COUNT_RE.match(line)
            added = int(match.group(1) or "1") if match else 0
            if preserve_metadata:
                result.append(
                    f"{NEW_FILE_PLACEHOLDER} {current_path or 'unknown'} ({added} lines)"
                )
                result.append(FULL_CONTENT_NOTE)
            # Skip the replayed body up to the next file or hunk.
            while (
                i + 1 < len(lines)
                and not lines[i + 1].startswith("diff --git ")
                and not lines[i + 1].startswith("@@")
            ):
                i += 1
            i += 1
            continue

        result.append(line)
        i += 1

    return "\n".join(result)


def create_new_file_summary(file_path: str, line_count: int) -> str:
    """Diff stanza describing a new file without its content."""
    return "\n".join([
        f"diff --git a/{file_path} b/{file_path}",
        "new file mode 100644",
        "--- /dev/null",
        f"+++ b/{file_path}",
        f"@@ -0,0 +1,{line_count} @@",
        f"{NEW_FILE_PLACEHOLDER} {file_path} ({line_count} lines)",
        FULL_CONTENT_NOTE,
    ])


def is_new_file_status(status: str) -> bool:
    """Whether a `git status --porcelain` code marks an untracked or added file."""
    return status == "??" or "A" in status
