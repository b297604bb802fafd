#!/usr/bin/env python3
"""devctx CLI: compile a token-budgeted context document for a project."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from _fs import render_json, safe_preview_text
from indexer import (
    ContextError,
    GrammarRegistry,
    adaptive_tree,
    build_tree,
    ensure_readable_root,
    extract_file_signatures,
    load_context_config,
)
from indexer.constants import DEFAULT_TREE_BUDGET
from indexer.tree import render_with_root
from packer import compile_context
from packer.compiler import tree_config_for
from .config import default_workers, parse_budget, parse_positive, resolve_out_root


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Token-budgeted project context compiler")
    parser.add_argument("--repo", default=".", help="Project root (default: .)")
    parser.add_argument("--verbose", action="store_true", help="Print every warning to stderr")

    subparsers = parser.add_subparsers(dest="command")

    context_parser = subparsers.add_parser("context", help="Compile the context document")
    context_parser.add_argument(
        "--budget",
        type=parse_budget,
        default=None,
        help="Total token budget, 1000-100000 (default: project config or 12000)",
    )
    context_parser.add_argument(
        "--dry-run", action="store_true", help="Build and report without writing the document"
    )
    context_parser.add_argument("--format", choices=["text", "json"], default="text")
    context_parser.add_argument(
        "--include-markdown",
        action="store_true",
        help="Include the compiled markdown in JSON output",
    )
    context_parser.add_argument(
        "--precise-tokens",
        action="store_true",
        help="Count tokens with tiktoken cl100k_base instead of the character estimate",
    )
    context_parser.add_argument(
        "--workers",
        type=parse_positive,
        default=default_workers(),
        help="Parallel workers for signature extraction (default: CPU count capped at 8)",
    )
    context_parser.add_argument(
        "--out-root",
        default=None,
        help="Output root (default: ~/.claude/projects)",
    )

    tree_parser = subparsers.add_parser("tree", help="Print the project structure tree")
    tree_parser.add_argument(
        "--budget",
        type=parse_positive,
        default=DEFAULT_TREE_BUDGET,
        help=f"Token budget for the adaptive depth search (default: {DEFAULT_TREE_BUDGET})",
    )
    tree_parser.add_argument(
        "--depth", type=parse_positive, default=None, help="Fixed depth (skips the budget search)"
    )

    sig_parser = subparsers.add_parser("signatures", help="Print the signatures of one file")
    sig_parser.add_argument("file", help="Source file (relative to --repo or absolute)")
    sig_parser.add_argument(
        "--all", action="store_true", help="Include non-exported declarations"
    )
    return parser


def report_warnings(warnings: List[str], verbose: bool) -> None:
    if not warnings:
        return
    print(f"warnings={len(warnings)}", file=sys.stderr)
    if verbose:
        for warning in warnings:
            print(f"  {warning}", file=sys.stderr)


def run_context(args: argparse.Namespace, repo: Path) -> int:
    result = compile_context(
        repo,
        budget=args.budget,
        dry_run=args.dry_run,
        workers=args.workers,
        out_root=resolve_out_root(args.out_root),
        precise_tokens=args.precise_tokens,
    )
    report_warnings(result.warnings, args.verbose)
    if args.format == "json":
        print(render_json(result.to_dict(include_markdown=args.include_markdown)))
        return 0

    lines: List[str] = ["[CONTEXT]"]
    lines.append(f"sections={len(result.sections)} truncated={len(result.truncated)}")
    lines.append(f"tokens={result.total_tokens}/{result.budget}")
    if args.dry_run:
        lines.append("")
        lines.append("[SECTIONS]")
        for section in result.sections:
            allocated = result.allocation.get(section.id, 0)
            lines.append(f"{section.id}: {section.tokens}/{allocated}")
        if result.truncated:
            lines.append("")
            lines.append("[TRUNCATED]")
            lines.extend(result.truncated)
        lines.append("")
        lines.append(safe_preview_text(result.markdown))
    else:
        lines.append(f"written={result.output_path}")
    print("\n".join(lines))
    return 0


def run_tree(args: argparse.Namespace, repo: Path) -> int:
    warnings: List[str] = []
    ensure_readable_root(repo)
    tree_config = tree_config_for(load_context_config(repo, warnings))
    if args.depth is not None:
        nodes = build_tree(repo, tree_config.with_depth(args.depth), warnings=warnings)
        rendered = render_with_root(repo, nodes)
    else:
        rendered = adaptive_tree(repo, args.budget, config=tree_config, warnings=warnings)
    report_warnings(warnings, args.verbose)
    print(rendered)
    return 0


def run_signatures(args: argparse.Namespace, repo: Path) -> int:
    path = Path(args.file)
    if not path.is_absolute():
        path = repo / path
    path = path.resolve()
    try:
        path.relative_to(repo)
    except ValueError:
        print(json.dumps({"error": "file is outside the project"}, ensure_ascii=True), file=sys.stderr)
        return 2
    if not path.is_file():
        print(json.dumps({"error": "file not found"}, ensure_ascii=True), file=sys.stderr)
        return 2
    warnings: List[str] = []
    extracted = extract_file_signatures(path, repo, GrammarRegistry(), warnings)
    report_warnings(warnings, args.verbose)
    if extracted is None:
        print("(no signatures)")
        return 0
    entries = extracted.signatures if args.all else extracted.exported_only()
    mode = "heuristic" if extracted.heuristic else "grammar"
    lines = [f"[{extracted.path}] language={extracted.language} mode={mode} count={len(entries)}"]
    for entry in entries:
        lines.append(f"{entry.line}: {entry.kind} {entry.name}")
        lines.extend(f"    {line}" for line in entry.signature.splitlines())
    print("\n".join(lines))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    repo = Path(args.repo).expanduser().resolve()

    try:
        if args.command == "context":
            return run_context(args, repo)
        if args.command == "tree":
            return run_tree(args, repo)
        if args.command == "signatures":
            return run_signatures(args, repo)
    except ContextError as exc:
        print(json.dumps({"error": str(exc)}, ensure_ascii=True), file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
