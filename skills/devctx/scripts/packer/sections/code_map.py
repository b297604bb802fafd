"""Code map packing: priority order, a per-file cap, collapse before drop."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Iterable, List, Sequence, Tuple

from indexer.constants import ENTRYPOINT_STEMS, SCHEMA_STEMS, SERVICE_TOKENS
from indexer.model import FileSignatures, SignatureEntry

from ..budget import estimate_tokens
from ..markdown import sanitize_code_block

TIER_ENTRYPOINT = 0
TIER_SERVICE = 1
TIER_GENERAL = 2
TIER_SCHEMA = 3
TIER_BARREL = 4
TIER_TYPES = 5

COLLAPSED_BRACE = " ... }"
COLLAPSED_OTHER = " ..."
ENTRY_SEPARATOR = "\n\n"

_PATH_TOKEN_RE = re.compile(r"[/._\-]+")


@dataclass
class CodeMapResult:
    content: str = ""
    tokens: int = 0
    # Tokens the full, uncapped map would take; what the section asks for during redistribution.
    demand: int = 0
    included: List[str] = field(default_factory=list)
    collapsed: List[str] = field(default_factory=list)
    truncated: List[str] = field(default_factory=list)


def is_barrel(signatures: Sequence[SignatureEntry]) -> bool:
    return bool(signatures) and all(entry.name.startswith("re-export") for entry in signatures)


def is_type_only(path: str, signatures: Sequence[SignatureEntry]) -> bool:
    if path.endswith(".d.ts"):
        return True
    return bool(signatures) and all(entry.kind in ("interface", "type") for entry in signatures)


def _stem(path: str) -> str:
    name = PurePosixPath(path).name.lower()
    return name.split(".", 1)[0]


def file_priority(path: str, signatures: Sequence[SignatureEntry]) -> int:
    """Lower tiers are packed first."""
    if is_barrel(signatures):
        return TIER_BARREL
    if is_type_only(path, signatures):
        return TIER_TYPES
    stem = _stem(path)
    parts = PurePosixPath(path.lower()).parts
    if stem in ENTRYPOINT_STEMS or "bin" in parts[:-1]:
        return TIER_ENTRYPOINT
    tokens = [token for token in _PATH_TOKEN_RE.split(path.lower()) if token]
    if any(token.rstrip("s") in SERVICE_TOKENS or token in SERVICE_TOKENS for token in tokens):
        return TIER_SERVICE
    if stem in SCHEMA_STEMS:
        return TIER_SCHEMA
    return TIER_GENERAL


def select_signatures(file: FileSignatures, signature_depth: str) -> List[SignatureEntry]:
    if signature_depth == "all":
        return list(file.signatures)
    return file.exported_only()


def prioritize(files: Iterable[FileSignatures], signature_depth: str) -> List[Tuple[FileSignatures, List[SignatureEntry]]]:
    ranked = []
    for file in files:
        signatures = select_signatures(file, signature_depth)
        if not signatures:
            continue
        ranked.append((file_priority(file.path, signatures), file.path, file, signatures))
    ranked.sort(key=lambda item: (item[0], item[1]))
    return [(file, signatures) for _, _, file, signatures in ranked]


def collapse_signature(entry: SignatureEntry) -> str:
    lines = entry.signature.splitlines()
    if not entry.collapsible or len(lines) <= 1:
        return entry.signature
    # Decorator lines carry no name; the header is the first line after them.
    head = next((line.rstrip() for line in lines if not line.lstrip().startswith("@")), lines[0].rstrip())
    if head.endswith("{"):
        return head + COLLAPSED_BRACE
    return head + COLLAPSED_OTHER


def signature_block(signatures: Sequence[SignatureEntry], code_map_format: str, collapse: bool = False) -> str:
    if code_map_format == "compact":
        return "\n".join(f"{entry.kind} {entry.name} (line {entry.line})" for entry in signatures)
    if collapse:
        return "\n".join(collapse_signature(entry) for entry in signatures)
    return "\n".join(entry.signature for entry in signatures)


def render_entry(file: FileSignatures, block: str) -> str:
    return f"### {file.path}\n```{file.language}\n{sanitize_code_block(block)}\n```"


def pack_code_map(
    files: Iterable[FileSignatures],
    budget: int,
    signature_depth: str = "exports",
    code_map_format: str = "signatures",
) -> CodeMapResult:
    result = CodeMapResult()
    ordered = prioritize(files, signature_depth)
    remaining = max(0, budget)
    parts: List[str] = []
    for idx, (file, signatures) in enumerate(ordered):
        cap = remaining // (len(ordered) - idx)
        separator = ENTRY_SEPARATOR if parts else ""
        entry = render_entry(file, signature_block(signatures, code_map_format))
        cost = estimate_tokens(separator + entry)
        result.demand += estimate_tokens(ENTRY_SEPARATOR + entry) if idx else cost
        if cost > cap and code_map_format != "compact":
            folded = render_entry(file, signature_block(signatures, code_map_format, collapse=True))
            if folded != entry:
                entry = folded
                cost = estimate_tokens(separator + entry)
                if cost <= cap:
                    result.collapsed.append(file.path)
        if cost > cap:
            result.truncated.append(file.path)
            continue
        parts.append(separator + entry)
        result.included.append(file.path)
        remaining -= cost
    result.content = "".join(parts)
    result.tokens = estimate_tokens(result.content)
    return result
