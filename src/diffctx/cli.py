"""Command-line interface for diffctx."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from diffctx import __version__
from diffctx.config import (
    AllocationPreference,
    ProjectConfig,
    find_project_root,
    load_config,
    save_config,
    set_config_value,
)
from diffctx.exceptions import DiffCtxError
from diffctx.ui.console import Console

console = Console()
err_console = Console(stderr=True)


def _get_project_root(path: str | None = None) -> Path:
    """Resolve --path, else the nearest initialized project, else the cwd."""
    if path:
        root = Path(path).resolve()
        if not root.exists():
            err_console.error(f"Path does not exist: {path}")
            sys.exit(1)
        return root
    return find_project_root() or Path.cwd().resolve()


def _load_config(root: Path) -> ProjectConfig:
    try:
        return load_config(root)
    except DiffCtxError as e:
        err_console.error(str(e))
        sys.exit(1)


def _read_diff(root: Path, diff_file: str | None, git_base: str | None) -> str:
    """Read the diff from a file, stdin ("-") or `git diff <base>`."""
    from diffctx.diff.git import get_git_diff

    if diff_file == "-":
        return sys.stdin.read()
    if diff_file:
        diff_path = Path(diff_file)
        if not diff_path.is_file():
            err_console.error(f"Diff file not found: {diff_file}")
            sys.exit(1)
        return diff_path.read_text(encoding="utf-8", errors="replace")
    if git_base:
        diff_text = get_git_diff(root, git_base)
        if not diff_text:
            err_console.warning(f"No diff against {git_base}")
        return diff_text
    return ""


@click.group()
@click.version_option(version=__version__, prog_name="diffctx")
def main():
    """diffctx - diff-aware, budgeted file context for LLM prompts."""
    pass


@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--budget", "-b", default=None, type=int, help="Default token budget.")
def init(path: str | None, budget: int | None):
    """Initialize diffctx for a repository. Writes .diffctx/config.json."""
    root = Path(path or ".").resolve()
    if not root.exists():
        console.error(f"Path does not exist: {root}")
        sys.exit(1)

    console.banner()
    console.info(f"Initializing diffctx for: {root}")

    config = _load_config(root)
    config.name = root.name
    config.root_path = str(root)
    if budget is not None:
        config.budget.budget_tokens = budget

    save_config(root, config)
    console.success("Configuration saved")


# =========================================================================
# Context assembly
# =========================================================================

@main.command()
@click.argument("files", nargs=-1)
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--diff-file", "-d", default=None, help="Unified diff to read ('-' for stdin).")
@click.option("--git-base", "-g", default=None, help="Diff the working tree against this ref.")
@click.option("--budget", "-b", default=None, type=int, help="Token budget.")
@click.option("--unbounded", is_flag=True, help="Disable the token budget.")
@click.option("--context-lines", "-c", default=None, type=int, help="Lines of context around each change.")
@click.option("--join-threshold", default=None, type=int, help="Merge ranges closer than this many lines.")
@click.option(
    "--small-file-threshold", default=None, type=int,
    help="Non-diff files up to this many tokens are SUPPORTING, larger ones HELPER.",
)
@click.option(
    "--allocation", "-a",
    type=click.Choice([a.value for a in AllocationPreference]),
    default=None,
    help="Budget split between the diff block and file excerpts.",
)
@click.option("--include-diff", is_flag=True, help="Embed the diff in a <git_diff> block.")
@click.option(
    "--relevance/--no-relevance", default=None,
    help="Keep only non-diff files related to the changed files.",
)
@click.option("--no-tree", is_flag=True, help="Omit the <file_map> section.")
@click.option("--binary-paths", is_flag=True, help="List binary files by path and type.")
@click.option("--output", "-o", default=None, help="Write the context to this file.")
@click.option("--stats", is_flag=True, help="Show token accounting on stderr.")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging on stderr.")
def assemble(
    files: tuple[str, ...], path: str | None, diff_file: str | None,
    git_base: str | None, budget: int | None, unbounded: bool,
    context_lines: int | None, join_threshold: int | None,
    small_file_threshold: int | None, allocation: str | None,
    include_diff: bool, relevance: bool | None, no_tree: bool,
    binary_paths: bool, output: str | None, stats: bool, verbose: bool,
):
    """Assemble diff-aware context for FILES (default: the whole project).

    Changed files are rendered as excerpts around their hunks, the rest in
    full while the token budget allows.

    Examples:

        git diff | diffctx assemble src/ -d - --budget 8000

        diffctx assemble --git-base main --include-diff --stats

        diffctx assemble app.py utils.py -d change.patch --unbounded
    """
    from diffctx.context.engine import SmartContextAssembler
    from diffctx.context.models import SmartContextParams
    from diffctx.diff.git import get_changed_paths
    from diffctx.diff.optimize import optimize_git_diff
    from diffctx.scanner import scan_files
    from diffctx.tokens import CachedTokenCounter

    err_console.enable_logging(verbose)

    root = _get_project_root(path)
    config = _load_config(root)

    try:
        entries = scan_files(root, list(files) or None, config.scanner)
    except DiffCtxError as e:
        err_console.error(str(e))
        sys.exit(1)

    if not entries:
        err_console.warning("No files selected.")

    diff_text = _read_diff(root, diff_file, git_base)
    diff_paths = [
        (root / p).as_posix() for p in get_changed_paths(root, git_base)
    ] if git_base else []

    embed_diff = diff_text
    if embed_diff and config.output.optimize_diff:
        embed_diff = optimize_git_diff(embed_diff)

    overrides = {
        "files": entries,
        "selected_files": [e.path for e in entries],
        "root": root.as_posix(),
        "diff_text": diff_text,
        "diff_paths": diff_paths,
        "embed_diff": embed_diff,
    }
    if unbounded:
        overrides["budget_tokens"] = None
    elif budget is not None:
        overrides["budget_tokens"] = budget
    if context_lines is not None:
        overrides["context_lines"] = context_lines
    if join_threshold is not None:
        overrides["join_threshold"] = join_threshold
    if small_file_threshold is not None:
        overrides["small_file_token_threshold"] = small_file_threshold
    if allocation:
        overrides["allocation"] = AllocationPreference(allocation)
    if include_diff:
        overrides["include_diff"] = True
    if relevance is not None:
        overrides["relevance_filter"] = relevance
    if no_tree:
        overrides["include_file_tree"] = False
    if binary_paths:
        overrides["include_binary_paths"] = True

    params = SmartContextParams.from_config(config, **overrides)
    assembler = SmartContextAssembler(token_counter=CachedTokenCounter())
    result = asyncio.run(assembler.assemble(params))

    if output:
        Path(output).write_text(result.content, encoding="utf-8")
        err_console.success(f"Wrote {result.token_count:,} tokens to {output}")
    else:
        click.echo(result.content, nl=False)

    if stats:
        err_console.show_result(result)


@main.command("new-files")
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--diff-file", "-d", default=None, help="Unified diff to read ('-' for stdin).")
@click.option("--git-base", "-g", default=None, help="Diff the working tree against this ref.")
def new_files(path: str | None, diff_file: str | None, git_base: str | None):
    """List the files a diff introduces."""
    from diffctx.diff.optimize import detect_new_files_in_diff

    root = _get_project_root(path)
    detected = detect_new_files_in_diff(_read_diff(root, diff_file, git_base))
    if not detected:
        console.info("No new files in diff.")
        return
    console.show_new_files(detected)


# =========================================================================
# Config Management
# =========================================================================

@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=None, help="Path to the project root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str | None):
    """Manage diffctx configuration."""
    root = _get_project_root(path)
    config = _load_config(root)

    if action == "show":
        console.console.print_json(json.dumps(config.model_dump(mode="json"), indent=2))
    elif action == "get":
        if not key:
            console.error("Usage: diffctx config get <key>")
            sys.exit(1)
        data = config.model_dump(mode="json")
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                console.error(f"Unknown key: {key}")
                sys.exit(1)
        console.console.print(f"{key} = {data}", markup=False)
    elif action == "set":
        if not key or value is None:
            console.error("Usage: diffctx config set <key> <value>")
            sys.exit(1)
        try:
            # Try to parse as JSON for non-string values
            try:
                parsed_value = json.loads(value)
            except json.JSONDecodeError:
                parsed_value = value

            config = set_config_value(config, key, parsed_value)
            save_config(root, config)
            console.success(f"Set {key} = {parsed_value}")
        except KeyError:
            console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except DiffCtxError as e:
            console.error(str(e))
            sys.exit(1)


if __name__ == "__main__":
    main()
