from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import List, Sequence, Tuple

from indexer.filters import filter_globs

from ..budget import chars_for_tokens, estimate_tokens
from ..markdown import TRUNCATION_MARKER, sanitize_code_block

# A file cut shorter than this is not worth including.
MIN_TRUNCATED_TOKENS = 100


def key_files_content(
    repo: Path,
    files: Sequence[str],
    patterns: Sequence[str],
    budget: int,
    warnings: List[str],
) -> Tuple[str, int]:
    """Verbatim copies of the configured key files, in path order, until the budget runs out."""
    if not patterns:
        return "", 0
    parts: List[str] = []
    total = 0
    for rel in filter_globs(files, include=list(patterns)):
        try:
            content = (repo / rel).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            warnings.append(f"Skipping key file {rel}: {exc}")
            continue
        ext = PurePosixPath(rel).suffix.lstrip(".")
        entry = f"### {rel}\n\n```{ext}\n{sanitize_code_block(content)}\n```"
        tokens = estimate_tokens(entry)
        if total + tokens > budget:
            remaining = budget - total
            if remaining > MIN_TRUNCATED_TOKENS:
                head = f"### {rel}\n\n```{ext}\n"
                tail = f"\n{TRUNCATION_MARKER}\n```"
                room = chars_for_tokens(remaining - estimate_tokens(head + tail))
                cut = sanitize_code_block(content[: max(0, room)])
                entry = head + cut + tail
                parts.append(entry)
                total += estimate_tokens(entry)
            break
        parts.append(entry)
        total += tokens
    return "\n\n".join(parts), total
