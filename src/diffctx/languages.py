"""Filename -> fence language detection."""

from __future__ import annotations

from pathlib import PurePosixPath

_EXTENSION_LANGUAGES: dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".jsx": "jsx",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".kt": "kotlin",
    ".swift": "swift",
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".rb": "ruby",
    ".php": "php",
    ".scala": "scala",
    ".sh": "bash",
    ".bash": "bash",
    ".zsh": "bash",
    ".ps1": "powershell",
    ".sql": "sql",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "scss",
    ".less": "less",
    ".vue": "vue",
    ".svelte": "svelte",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".ini": "ini",
    ".cfg": "ini",
    ".xml": "xml",
    ".md": "markdown",
    ".rst": "rst",
    ".txt": "plaintext",
    ".diff": "diff",
    ".patch": "diff",
    ".proto": "protobuf",
    ".graphql": "graphql",
    ".lua": "lua",
    ".r": "r",
    ".dart": "dart",
    ".ex": "elixir",
    ".exs": "elixir",
    ".erl": "erlang",
    ".hs": "haskell",
    ".clj": "clojure",
    ".tf": "hcl",
}

_FILENAME_LANGUAGES: dict[str, str] = {
    "dockerfile": "dockerfile",
    "makefile": "makefile",
    "cmakelists.txt": "cmake",
    ".gitignore": "gitignore",
    ".env": "dotenv",
}

DEFAULT_LANGUAGE = "plaintext"


def detect_language(filename: str) -> str:
    """Language label for a fenced code block, `plaintext` if unknown."""
    name = PurePosixPath(filename.replace("\\", "/")).name.lower()
    if name in _FILENAME_LANGUAGES:
        return _FILENAME_LANGUAGES[name]
    suffix = PurePosixPath(name).suffix
    return _EXTENSION_LANGUAGES.get(suffix, DEFAULT_LANGUAGE)


def describe_file_type(filename: str) -> str:
    """Human label for a file's type: the language, else the bare extension."""
    language = detect_language(filename)
    if language == DEFAULT_LANGUAGE:
        suffix = PurePosixPath(filename.replace("\\", "/")).suffix.lstrip(".")
        language = suffix or "binary"
    return language[:1].upper() + language[1:]
