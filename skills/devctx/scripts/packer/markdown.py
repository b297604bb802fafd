from __future__ import annotations

import re
from pathlib import Path

from .budget import chars_for_tokens, estimate_tokens

TRUNCATION_MARKER = "...(truncated)"

_FENCE_RE = re.compile(r"`{3,}")
_HEADING_MARKER_RE = re.compile(r"^#+\s*")
_RULE_RE = re.compile(r"---+")
_NEWLINES_RE = re.compile(r"[\r\n]+")


def sanitize_heading(text: str) -> str:
    text = _NEWLINES_RE.sub(" ", text)
    text = _HEADING_MARKER_RE.sub("", text)
    text = text.replace("```", "")
    text = _RULE_RE.sub("-", text)
    return text[:200].strip()


def sanitize_code_block(text: str) -> str:
    """Runs of three or more backticks would close the surrounding fence."""
    return _FENCE_RE.sub("``", text)


def fenced(text: str, info: str = "") -> str:
    return f"```{info}\n{sanitize_code_block(text)}\n```"


def truncate_to_fit(content: str, budget: int) -> str:
    """Cut content so that it, plus the truncation marker, fits the budget."""
    if estimate_tokens(content) <= budget:
        return content
    suffix = "\n" + TRUNCATION_MARKER
    room = chars_for_tokens(budget) - len(suffix)
    if room <= 0:
        return ""
    return content[:room] + suffix


def is_path_within(base: Path, target: Path) -> bool:
    base = base.resolve()
    target = target.resolve()
    return target == base or base in target.parents
