"""Builds the budgeted context document for one project.

Sections are built against the initial allocation, measured, rebalanced once, and the code map is
re-packed against its revised share. Everything except an unreadable project root is recovered
locally and reported through ``warnings``.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from _fs import write_text
from indexer.constants import DEFAULT_ANNOTATIONS, DEFAULT_IGNORE
from indexer.discovery import ensure_readable_root, language_counts, source_files, walk_repo_files
from indexer.filters import filter_globs
from indexer.grammars import GrammarRegistry
from indexer.model import ContextError, FileSignatures
from indexer.project import ProjectInfo, detect_project
from indexer.repo_config import ContextConfig, load_context_config
from indexer.signatures import extract_file_signatures
from indexer.tree import TreeConfig, adaptive_tree
from utils import progress

from .budget import SECTION_IDS, SECTION_TITLES, allocate, configure_tokenizer, estimate_tokens, redistribute
from .markdown import fenced, sanitize_heading, truncate_to_fit
from .sections.code_map import pack_code_map
from .sections.key_files import key_files_content
from .sections.knowledge import knowledge_content
from .sections.overview import overview_content

OUTPUT_FILENAME = "CLAUDE.md"
GENERATED_NOTICE = "> Generated by `devctx context`; regenerate with `devctx context`"

__all__ = ["ContextError", "ContextResult", "Section", "compile_context", "project_output_path"]


@dataclass(frozen=True)
class Section:
    id: str
    title: str
    content: str
    tokens: int

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "tokens": self.tokens}


@dataclass
class ContextResult:
    """Compiled document plus bookkeeping.

    With the character estimate, ``total_tokens`` never exceeds ``budget``: the layout overhead is
    reserved before the section split. ``allocation`` holds the shares after redistribution.
    """

    markdown: str
    total_tokens: int
    budget: int
    sections: List[Section] = field(default_factory=list)
    truncated: List[str] = field(default_factory=list)
    allocation: Dict[str, int] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    output_path: Optional[Path] = None

    def to_dict(self, include_markdown: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "total_tokens": self.total_tokens,
            "budget": self.budget,
            "sections": [section.to_dict() for section in self.sections],
            "truncated": list(self.truncated),
            "allocation": dict(self.allocation),
            "warnings": list(self.warnings),
            "output_path": self.output_path.as_posix() if self.output_path else None,
        }
        if include_markdown:
            payload["markdown"] = self.markdown
        return payload


def default_output_root() -> Path:
    return Path.home() / ".claude" / "projects"


def project_slug(repo: Path) -> str:
    """Absolute project path with separators turned into dashes ("/a/b" -> "-a-b")."""
    return repo.resolve().as_posix().replace("/", "-")


def project_output_path(repo: Path, out_root: Optional[Path] = None) -> Path:
    return (out_root or default_output_root()) / project_slug(repo) / OUTPUT_FILENAME


def collect_signatures(
    repo: Path,
    paths: Sequence[str],
    registry: GrammarRegistry,
    warnings: List[str],
    workers: int = 1,
) -> List[FileSignatures]:
    progress(f"Extracting signatures from {len(paths)} files...")

    def extract_one(rel: str):
        local: List[str] = []
        return extract_file_signatures(repo / rel, repo, registry, local), local

    if workers > 1 and len(paths) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(extract_one, paths))
    else:
        outcomes = [extract_one(rel) for rel in paths]

    results: List[FileSignatures] = []
    for file_signatures, local in outcomes:
        warnings.extend(local)
        if file_signatures is not None:
            results.append(file_signatures)
    results.sort(key=lambda item: item.path)
    heuristic = sum(1 for item in results if item.heuristic)
    if heuristic:
        warnings.append(f"{heuristic} files summarized without a grammar (heuristic signatures)")
    progress(f"Extracted signatures from {len(results)} files", done=True)
    return results


def tree_config_for(config: ContextConfig) -> TreeConfig:
    return TreeConfig(
        ignore_patterns=list(DEFAULT_IGNORE) + list(config.ignore),
        annotations={**DEFAULT_ANNOTATIONS, **config.annotations},
    )


def assemble_markdown(project_name: str, sections: Sequence[Section]) -> str:
    parts: List[str] = [f"# {sanitize_heading(project_name) or 'project'}\n", GENERATED_NOTICE + "\n"]
    for section in sections:
        parts.append(f"## {section.title}\n")
        if section.id == "structure":
            parts.append(fenced(section.content) + "\n")
        else:
            parts.append(section.content + "\n")
    return "\n".join(parts)


def layout_overhead(project_name: str) -> int:
    """Tokens the document takes with every section present but empty."""
    empty = [Section(section_id, SECTION_TITLES[section_id], "", 0) for section_id in SECTION_IDS]
    return estimate_tokens(assemble_markdown(project_name, empty))


def compile_context(
    repo: Path,
    budget: Optional[int] = None,
    dry_run: bool = False,
    registry: Optional[GrammarRegistry] = None,
    workers: int = 1,
    out_root: Optional[Path] = None,
    precise_tokens: bool = False,
    project: Optional[ProjectInfo] = None,
) -> ContextResult:
    repo = Path(repo).expanduser().resolve()
    ensure_readable_root(repo)
    warnings: List[str] = []

    config = load_context_config(repo, warnings)
    total_budget = budget if budget is not None else config.budget
    configure_tokenizer(precise_tokens, warnings)
    project = project or detect_project(repo)
    registry = registry or GrammarRegistry()

    tree_config = tree_config_for(config)
    files = walk_repo_files(repo, tree_config.ignore_patterns, warnings)
    candidates = source_files(files, config.exclude_signatures)
    signatures = collect_signatures(repo, candidates, registry, warnings, workers=workers)

    significant = {item.path for item in signatures}
    if config.key_files:
        significant.update(filter_globs(files, include=config.key_files))

    # Headings, the notice and the structure fence come out of the budget before the split.
    allocation = allocate(max(0, total_budget - layout_overhead(project.name)))
    progress("Building sections...")
    contents: Dict[str, str] = {
        "overview": overview_content(project, language_counts(candidates)),
        "structure": adaptive_tree(repo, allocation["structure"], significant, tree_config, warnings),
        "key_files": key_files_content(repo, files, config.key_files, allocation["key_files"], warnings)[0],
    }
    code_map = pack_code_map(signatures, allocation["code_map"], config.signature_depth, config.code_map_format)
    contents["code_map"] = code_map.content
    contents["knowledge"] = knowledge_content(
        repo,
        config.knowledge_dir,
        allocation["knowledge"],
        warnings,
        auto=config.auto_knowledge,
        project=project,
        signatures=signatures,
        files=files,
    )

    used = {section: estimate_tokens(contents[section]) for section in SECTION_IDS}
    # The code map asks for its uncapped size so surplus can flow to it.
    used["code_map"] = max(used["code_map"], code_map.demand)
    revised = redistribute(allocation, used)

    if revised["code_map"] > allocation["code_map"]:
        code_map = pack_code_map(signatures, revised["code_map"], config.signature_depth, config.code_map_format)
        contents["code_map"] = code_map.content

    sections: List[Section] = []
    for section_id in SECTION_IDS:
        content = contents[section_id]
        if section_id != "code_map":
            content = truncate_to_fit(content, revised[section_id]) if content else content
        if not content:
            continue
        sections.append(Section(section_id, SECTION_TITLES[section_id], content, estimate_tokens(content)))
    progress(f"Built {len(sections)} sections", done=True)

    markdown = assemble_markdown(project.name, sections)
    result = ContextResult(
        markdown=markdown,
        total_tokens=estimate_tokens(markdown),
        budget=total_budget,
        sections=sections,
        truncated=list(code_map.truncated),
        allocation=revised,
        warnings=warnings,
    )
    if not dry_run:
        result.output_path = write_text(project_output_path(repo, out_root), markdown)
        progress(f"Wrote {result.output_path}", done=True)
    return result