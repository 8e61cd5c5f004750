#!/usr/bin/env python3
"""Demo: Using diffctx as a Python library.

This shows how to assemble diff-aware context programmatically, not just as
a CLI tool.
"""

import asyncio
from pathlib import Path

from diffctx.config import load_config
from diffctx.context.engine import SmartContextAssembler
from diffctx.context.models import SmartContextParams
from diffctx.diff.git import get_git_diff
from diffctx.diff.optimize import detect_new_files_in_diff, optimize_git_diff
from diffctx.diff.parser import parse_unified_diff
from diffctx.scanner import scan_files
from diffctx.tokens import CachedTokenCounter


async def main():
    # Point at any git checkout
    project_root = Path(".").resolve()
    config = load_config(project_root)

    # 1. What changed?
    diff_text = get_git_diff(project_root, "HEAD")
    diff_map = parse_unified_diff(diff_text)
    print(f"Changed files: {len(diff_map)}")
    for path, hunks in diff_map.items():
        ranges = ", ".join(f"{h.start}-{h.end}" for h in hunks) or "(no ranges)"
        print(f"  {path}: {ranges}")

    for info in detect_new_files_in_diff(diff_text).values():
        print(f"  new: {info.path} ({info.line_count} lines)")

    # 2. Scan the project
    files = scan_files(project_root, config=config.scanner)
    print(f"\nScanned {len(files)} files")

    # 3. Assemble within a budget, reusing one counter across calls
    counter = CachedTokenCounter()
    assembler = SmartContextAssembler(token_counter=counter)

    for budget in (2000, 8000):
        params = SmartContextParams.from_config(
            config,
            files=files,
            selected_files=[f.path for f in files],
            root=project_root.as_posix(),
            diff_text=diff_text,
            include_diff=True,
            embed_diff=optimize_git_diff(diff_text),
            budget_tokens=budget,
        )
        result = await assembler.assemble(params)
        print(f"\n--- Budget {budget:,} ---")
        print(result.summary())

    print(f"\nToken cache: {counter.hits} hits, {counter.misses} misses")


if __name__ == "__main__":
    asyncio.run(main())
