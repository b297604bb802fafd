from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from utils import progress

from .constants import DEFAULT_IGNORE, MAX_WALK_DEPTH
from .filters import matches_glob, should_ignore
from .grammars import language_for_path
from .model import ContextError


NOISE_FILE_SUFFIXES = (
    ".egg",
    ".min.js",
    ".min.css",
    ".pyd",
    ".so",
)


def is_generated_noise_file(path: str) -> bool:
    lower = path.lower()
    if any(lower.endswith(suffix) for suffix in NOISE_FILE_SUFFIXES):
        return True
    name = Path(lower).name
    return name.endswith(".d.ts.map") or name == "next-env.d.ts"


def ensure_readable_root(repo: Path) -> None:
    if not repo.exists():
        raise ContextError(f"Project root does not exist: {repo}")
    if not repo.is_dir():
        raise ContextError(f"Project root is not a directory: {repo}")
    try:
        with os.scandir(repo) as entries:
            next(entries, None)
    except OSError as exc:
        raise ContextError(f"Cannot read project root {repo}: {exc.strerror or exc}") from exc


def walk_repo_files(
    repo: Path,
    ignore: Optional[Sequence[str]] = None,
    warnings: Optional[List[str]] = None,
) -> List[str]:
    """Repo-relative posix paths of every regular file not hidden by the ignore list.

    Unreadable directories are reported and treated as empty; symlinks are not followed.
    """
    ensure_readable_root(repo)
    patterns = list(ignore) if ignore is not None else list(DEFAULT_IGNORE)
    sink = warnings if warnings is not None else []
    progress("Discovering files...")

    def on_error(exc: OSError) -> None:
        location = exc.filename or "?"
        try:
            location = Path(location).relative_to(repo).as_posix()
        except ValueError:
            pass
        sink.append(f"Unreadable directory {location}: {exc.strerror or exc}")

    files: List[str] = []
    skipped_symlinks = 0
    root_depth = len(repo.parts)
    for root, dirs, filenames in os.walk(repo, onerror=on_error):
        root_path = Path(root)
        if len(root_path.parts) - root_depth >= MAX_WALK_DEPTH:
            dirs[:] = []
        dirs[:] = sorted(d for d in dirs if not should_ignore(d, patterns) and not (root_path / d).is_symlink())
        for filename in filenames:
            if should_ignore(filename, patterns):
                continue
            full = root_path / filename
            if full.is_symlink():
                skipped_symlinks += 1
                continue
            rel = full.relative_to(repo).as_posix()
            if is_generated_noise_file(rel):
                continue
            files.append(rel)

    if skipped_symlinks > 0:
        progress(f"Found {len(files)} files (skipped {skipped_symlinks} symlinks)", done=True)
    else:
        progress(f"Found {len(files)} files", done=True)
    return sorted(set(files))


def source_files(files: Iterable[str], exclude: Sequence[str] = ()) -> List[str]:
    selected: List[str] = []
    for path in files:
        if language_for_path(path) is None:
            continue
        if exclude and matches_glob(path, exclude):
            continue
        selected.append(path)
    return selected


def language_counts(files: Iterable[str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for path in files:
        language = language_for_path(path)
        if language is None:
            continue
        counts[language.value] = counts.get(language.value, 0) + 1
    return counts
