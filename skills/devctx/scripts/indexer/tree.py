"""Directory overview with depth bounds, collapsing of crowded directories and a budget search."""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from .constants import (
    DEFAULT_ANNOTATIONS,
    DEFAULT_IGNORE,
    DEFAULT_MAX_DEPTH,
    DEFAULT_TREE_BUDGET,
    DIR_COLLAPSE_THRESHOLD,
    DISPLAY_NOISE,
)
from .filters import annotation_for, should_ignore


@dataclass(frozen=True)
class FileNode:
    name: str
    path: str
    annotation: Optional[str] = None


@dataclass(frozen=True)
class DirectoryNode:
    name: str
    path: str
    children: Tuple["TreeNode", ...]


@dataclass(frozen=True)
class CollapsedSummary:
    name: str
    path: str
    file_count: int
    dir_count: int


TreeNode = Union[FileNode, DirectoryNode, CollapsedSummary]


@dataclass
class TreeConfig:
    ignore_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    max_depth: int = DEFAULT_MAX_DEPTH
    annotations: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ANNOTATIONS))
    display_noise: List[str] = field(default_factory=lambda: list(DISPLAY_NOISE))
    collapse_threshold: int = DIR_COLLAPSE_THRESHOLD

    def with_depth(self, depth: int) -> "TreeConfig":
        return TreeConfig(
            ignore_patterns=self.ignore_patterns,
            max_depth=depth,
            annotations=self.annotations,
            display_noise=self.display_noise,
            collapse_threshold=self.collapse_threshold,
        )


def significant_dirs(paths: Iterable[str]) -> Set[str]:
    """Every directory that is, or contains, one of the given repo-relative paths."""
    dirs: Set[str] = set()
    for path in paths:
        parts = Path(path).as_posix().strip("/").split("/")
        for idx in range(1, len(parts) + 1):
            dirs.add("/".join(parts[:idx]))
    return dirs


class _Walker:
    def __init__(self, root: Path, config: TreeConfig, significant: Set[str], warnings: List[str]) -> None:
        self.root = root
        self.config = config
        self.significant = significant
        self.warnings = warnings

    def visible_entries(self, directory: Path) -> Tuple[List[os.DirEntry], List[os.DirEntry]]:
        dirs: List[os.DirEntry] = []
        files: List[os.DirEntry] = []
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as exc:
            rel = self.rel(directory) or "."
            self.warnings.append(f"Unreadable directory {rel}: {exc.strerror or exc}")
            return dirs, files
        for entry in entries:
            if should_ignore(entry.name, self.config.ignore_patterns):
                continue
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError:
                continue
            if is_dir:
                dirs.append(entry)
            elif not should_ignore(entry.name, self.config.display_noise):
                files.append(entry)
        dirs.sort(key=lambda e: e.name)
        files.sort(key=lambda e: e.name)
        return dirs, files

    def rel(self, path: Path) -> str:
        rel = path.relative_to(self.root).as_posix()
        return "" if rel == "." else rel

    def children(
        self,
        directory: Path,
        depth: int,
        entries: Optional[Tuple[List[os.DirEntry], List[os.DirEntry]]] = None,
    ) -> List[TreeNode]:
        subdirs, files = entries if entries is not None else self.visible_entries(directory)
        nodes: List[TreeNode] = []
        for entry in subdirs:
            node = self.directory(Path(entry.path), depth + 1)
            if node is not None:
                nodes.append(node)
        for entry in files:
            rel = self.rel(Path(entry.path))
            nodes.append(FileNode(entry.name, rel, annotation_for(entry.name, rel, self.config.annotations)))
        return nodes

    def directory(self, directory: Path, depth: int) -> Optional[TreeNode]:
        if depth >= self.config.max_depth:
            return None
        rel = self.rel(directory)
        subdirs, files = self.visible_entries(directory)
        if not subdirs and not files:
            return None
        crowded = len(subdirs) + len(files) > self.config.collapse_threshold
        if crowded and rel not in self.significant:
            return CollapsedSummary(directory.name, rel, len(files), len(subdirs))
        children = self.children(directory, depth, (subdirs, files))
        if not children:
            return None
        return DirectoryNode(directory.name, rel, tuple(children))


def build_tree(
    root: Path,
    config: Optional[TreeConfig] = None,
    significant_paths: Optional[Iterable[str]] = None,
    warnings: Optional[List[str]] = None,
) -> List[TreeNode]:
    cfg = config or TreeConfig()
    if cfg.max_depth <= 0:
        return []
    walker = _Walker(root, cfg, significant_dirs(significant_paths or ()), warnings if warnings is not None else [])
    return walker.children(root, 0)


def render(nodes: List[TreeNode], prefix: str = "") -> str:
    lines: List[str] = []
    for idx, node in enumerate(nodes):
        last = idx == len(nodes) - 1
        connector = "└── " if last else "├── "
        if isinstance(node, DirectoryNode):
            lines.append(f"{prefix}{connector}{node.name}/")
            nested = render(list(node.children), prefix + ("    " if last else "│   "))
            if nested:
                lines.append(nested)
        elif isinstance(node, CollapsedSummary):
            lines.append(f"{prefix}{connector}{node.name}/ ({node.file_count} files, {node.dir_count} dirs)")
        else:
            line = f"{prefix}{connector}{node.name}"
            if node.annotation:
                line += f" # {node.annotation}"
            lines.append(line)
    return "\n".join(lines)


def render_with_root(root: Path, nodes: List[TreeNode]) -> str:
    body = render(nodes)
    name = root.resolve().name or root.resolve().as_posix()
    return f"{name}/\n{body}" if body else f"{name}/"


def _char_tokens(text: str) -> int:
    return math.ceil(len(text) / 4)


def adaptive_tree(
    root: Path,
    budget_tokens: int = DEFAULT_TREE_BUDGET,
    significant_paths: Optional[Iterable[str]] = None,
    config: Optional[TreeConfig] = None,
    warnings: Optional[List[str]] = None,
) -> str:
    """Deepest rendering (from ``max_depth`` down to 1) that fits the budget; depth 1 always wins."""
    cfg = config or TreeConfig()
    significant = list(significant_paths or ())
    sink = warnings if warnings is not None else []
    depth = max(1, cfg.max_depth)
    while True:
        # Only the final attempt reports unreadable directories so each appears once.
        attempt_warnings: List[str] = []
        rendered = render_with_root(root, build_tree(root, cfg.with_depth(depth), significant, attempt_warnings))
        if depth == 1 or _char_tokens(rendered) <= budget_tokens:
            sink.extend(attempt_warnings)
            return rendered
        depth -= 1
