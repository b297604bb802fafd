from __future__ import annotations

import fnmatch
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Pattern, Sequence


def should_ignore(name: str, patterns: Sequence[str]) -> bool:
    """Match a single path component against ignore patterns.

    Patterns without ``*`` must equal the name; patterns with ``*`` match any run of
    characters in that position.
    """
    for pattern in patterns:
        if "*" in pattern:
            if fnmatch.fnmatchcase(name, pattern):
                return True
        elif name == pattern:
            return True
    return False


@lru_cache(maxsize=512)
def glob_to_regex(pattern: str) -> Pattern[str]:
    parts: List[str] = []
    idx = 0
    while idx < len(pattern):
        ch = pattern[idx]
        if pattern.startswith("**/", idx):
            parts.append("(?:.*/)?")
            idx += 3
            continue
        if pattern.startswith("**", idx):
            parts.append(".*")
            idx += 2
            continue
        if ch == "*":
            parts.append("[^/]*")
        elif ch == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(ch))
        idx += 1
    return re.compile("^" + "".join(parts) + "$")


def matches_glob(path: str, patterns: Sequence[str]) -> bool:
    """Match a repo-relative posix path; ``**`` crosses directories, ``*`` does not."""
    if not patterns:
        return False
    for pattern in patterns:
        if glob_to_regex(pattern).match(path):
            return True
    return False


def filter_globs(
    files: Iterable[str],
    *,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
) -> List[str]:
    selected: List[str] = []
    for path in files:
        if exclude and matches_glob(path, exclude):
            continue
        if include is not None and not matches_glob(path, include):
            continue
        selected.append(path)
    return selected


@lru_cache(maxsize=512)
def _annotation_regex(pattern: str) -> Pattern[str]:
    return re.compile("^" + re.escape(pattern).replace(r"\*", ".*") + "$")


def annotation_for(name: str, rel_path: str, annotations: dict) -> Optional[str]:
    if name in annotations:
        return annotations[name]
    for pattern, description in annotations.items():
        if "*" not in pattern and "/" not in pattern:
            continue
        regex = _annotation_regex(pattern)
        if regex.match(rel_path) or regex.match(name):
            return description
    return None


def is_test_path(path: str) -> bool:
    lower = path.lower()
    name = Path(lower).name
    if "/test/" in lower or lower.startswith("test/") or "/tests/" in lower or lower.startswith("tests/"):
        return True
    if "/__tests__/" in lower or lower.startswith("__tests__/"):
        return True
    if ".spec." in name or ".test." in name:
        return True
    return name.startswith("test_") or name.endswith("_test.go") or name.endswith("_test.py")
