"""ASCII file tree rendering for the <file_map> section."""

from __future__ import annotations

from dataclasses import dataclass, field

from diffctx.paths import normalize_path


@dataclass
class _TreeNode:
    name: str
    is_file: bool = False
    children: dict[str, "_TreeNode"] = field(default_factory=dict)

    def sorted_children(self) -> list["_TreeNode"]:
        # Directories first, then by name
        return sorted(
            self.children.values(),
            key=lambda n: (n.is_file, n.name.lower(), n.name),
        )


def generate_ascii_file_tree(paths: list[str], root: str) -> str:
    """Render the files under `root` as an ASCII tree (root itself omitted)."""
    if not paths:
        return "No files selected."

    normalized_root = normalize_path(root).rstrip("/")
    tree = _TreeNode(name=normalized_root.rsplit("/", 1)[-1])

    for path in paths:
        normalized = normalize_path(path)
        if normalized_root:
            if not normalized.startswith(normalized_root + "/"):
                continue
            relative = normalized[len(normalized_root) + 1:]
        else:
            relative = normalized.lstrip("/")
        if not relative:
            continue

        parts = relative.split("/")
        node = tree
        for i, part in enumerate(parts):
            is_last = i == len(parts) - 1
            child = node.children.get(part)
            if child is None:
                child = _TreeNode(name=part, is_file=is_last)
                node.children[part] = child
            elif is_last:
                child.is_file = True
            node = child

    lines: list[str] = []
    _render(tree, "", lines)
    return "".join(lines)


def _render(node: _TreeNode, prefix: str, lines: list[str]) -> None:
    children = node.sorted_children()
    for i, child in enumerate(children):
        is_last = i == len(children) - 1
        lines.append(f"{prefix}{'└── ' if is_last else '├── '}{child.name}\n")
        _render(child, prefix + ("    " if is_last else "│   "), lines)
