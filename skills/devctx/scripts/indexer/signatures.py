"""Signature extraction: grammar visitors first, line heuristics when no grammar is available."""
from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from .constants import MAX_SOURCE_BYTES
from .grammars import GrammarRegistry, Language, language_for_path
from .languages.csharp import extract_csharp
from .languages.go import extract_go
from .languages.java import extract_java
from .languages.php import extract_php
from .languages.python import extract_python
from .languages.ruby import extract_ruby
from .languages.rust import extract_rust
from .languages.ts_js import extract_ts_js
from .model import FileSignatures, SignatureEntry
from .nodes import ANONYMOUS, SyntaxNode, root_of

Visitor = Callable[[SyntaxNode], List[SignatureEntry]]

VISITORS: Dict[Language, Visitor] = {
    Language.TYPESCRIPT: extract_ts_js,
    Language.TSX: extract_ts_js,
    Language.JAVASCRIPT: extract_ts_js,
    Language.PYTHON: extract_python,
    Language.GO: extract_go,
    Language.RUST: extract_rust,
    Language.JAVA: extract_java,
    Language.CSHARP: extract_csharp,
    Language.RUBY: extract_ruby,
    Language.PHP: extract_php,
}


def extract(source: str, language: object, registry: GrammarRegistry) -> Optional[List[SignatureEntry]]:
    lang = Language.parse(language)
    if lang is None or lang not in VISITORS:
        return None
    if not source.strip():
        return []
    tree = registry.parse(source, lang)
    if tree is None:
        return None
    return VISITORS[lang](root_of(tree, source.encode("utf-8")))


_TS_PATTERNS: List[Tuple[str, str]] = [
    (r"^(export\s+)?(?:default\s+)?(?:declare\s+)?(?:async\s+)?function\s*\*?\s*(\w+)?", "function"),
    (r"^(export\s+)?(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?class\s+(\w+)?", "class"),
    (r"^(export\s+)?(?:declare\s+)?interface\s+(\w+)", "interface"),
    (r"^(export\s+)?(?:declare\s+)?type\s+(\w+)\s*(?:<[^=]*>)?\s*=", "type"),
    (r"^(export\s+)?(?:declare\s+)?(?:const\s+)?enum\s+(\w+)", "enum"),
    (r"^(export\s+)(?:declare\s+)?(?:const|let|var)\s+(\w+)", "const"),
]

_PATTERNS: Dict[Language, List[Tuple[str, str]]] = {
    Language.TYPESCRIPT: _TS_PATTERNS,
    Language.TSX: _TS_PATTERNS,
    Language.JAVASCRIPT: _TS_PATTERNS,
    Language.PYTHON: [
        (r"^()(?:async\s+)?def\s+(\w+)", "function"),
        (r"^()class\s+(\w+)", "class"),
        (r"^()([A-Z][A-Z0-9_]*)\s*(?::[^=]+)?=", "const"),
    ],
    Language.GO: [
        (r"^()func\s+(?:\([^)]*\)\s*)?(\w+)", "function"),
        (r"^()type\s+(\w+)\s+struct\b", "class"),
        (r"^()type\s+(\w+)\s+interface\b", "interface"),
        (r"^()type\s+(\w+)\b", "type"),
    ],
    Language.RUST: [
        (r"^()(?:pub(?:\([^)]*\))?\s+)?(?:async\s+)?(?:unsafe\s+)?fn\s+(\w+)", "function"),
        (r"^()(?:pub(?:\([^)]*\))?\s+)?struct\s+(\w+)", "class"),
        (r"^()(?:pub(?:\([^)]*\))?\s+)?enum\s+(\w+)", "enum"),
        (r"^()(?:pub(?:\([^)]*\))?\s+)?trait\s+(\w+)", "interface"),
        (r"^()(?:pub(?:\([^)]*\))?\s+)?type\s+(\w+)", "type"),
        (r"^()(?:pub(?:\([^)]*\))?\s+)?(?:const|static)\s+(\w+)", "const"),
    ],
    Language.JAVA: [
        (r"^()(?:(?:public|protected|private|abstract|final|static|sealed)\s+)*(?:class|record)\s+(\w+)", "class"),
        (r"^()(?:(?:public|protected|private|abstract|sealed)\s+)*interface\s+(\w+)", "interface"),
        (r"^()(?:(?:public|protected|private)\s+)*enum\s+(\w+)", "enum"),
    ],
    Language.CSHARP: [
        (r"^()(?:(?:public|internal|protected|private|abstract|sealed|static|partial)\s+)*(?:class|struct|record)\s+(\w+)", "class"),
        (r"^()(?:(?:public|internal|protected|private|partial)\s+)*interface\s+(\w+)", "interface"),
        (r"^()(?:(?:public|internal|protected|private)\s+)*enum\s+(\w+)", "enum"),
    ],
    Language.RUBY: [
        (r"^()def\s+((?:self\.)?\w+[?!=]?)", "function"),
        (r"^()(?:class|module)\s+([\w:]+)", "class"),
    ],
    Language.PHP: [
        (r"^()function\s+(\w+)", "function"),
        (r"^()(?:(?:abstract|final|readonly)\s+)*(?:class|trait)\s+(\w+)", "class"),
        (r"^()interface\s+(\w+)", "interface"),
        (r"^()enum\s+(\w+)", "enum"),
    ],
}

_COMPILED: Dict[Language, List[Tuple[Pattern[str], str]]] = {
    lang: [(re.compile(pattern), kind) for pattern, kind in patterns] for lang, patterns in _PATTERNS.items()
}

_EXPORTING = {Language.TYPESCRIPT, Language.TSX, Language.JAVASCRIPT}
_BODY_OPENERS: Dict[Language, str] = {Language.PYTHON: ":"}


def _cut_body(line: str, opener: str) -> str:
    """Cut a one-line declaration at the first body opener outside brackets."""
    depth = 0
    for idx, ch in enumerate(line):
        if ch in "([<":
            depth += 1
        elif ch in ")]>" and depth > 0:
            depth -= 1
        elif ch == opener and depth == 0:
            return line[:idx]
    return line


def _heuristic_line(line: str, kind: str, language: Language) -> str:
    text = line.strip()
    if kind in ("function", "class"):
        text = _cut_body(text, _BODY_OPENERS.get(language, "{"))
    if language is Language.RUBY and text.endswith(" do"):
        text = text[:-3]
    return text.rstrip().rstrip(";").rstrip()


def heuristic_signatures(source: str, language: Language) -> List[SignatureEntry]:
    """Declaration lines found by anchored patterns; only column-zero lines are considered."""
    entries: List[SignatureEntry] = []
    patterns = _COMPILED.get(language, [])
    for idx, line in enumerate(source.splitlines(), start=1):
        if not line or line[0].isspace():
            continue
        for regex, kind in patterns:
            match = regex.match(line)
            if not match:
                continue
            name = match.group(2) or ("default" if " default " in f" {line} " else ANONYMOUS)
            exported = bool(match.group(1)) if language in _EXPORTING else True
            entries.append(SignatureEntry(kind, name, _heuristic_line(line, kind, language), exported, idx))
            break
    return entries


def extract_file_signatures(
    path: Path,
    repo: Path,
    registry: GrammarRegistry,
    warnings: List[str],
) -> Optional[FileSignatures]:
    language = language_for_path(path.name)
    if language is None:
        return None
    rel = path.relative_to(repo).as_posix() if path.is_absolute() else path.as_posix()
    target = path if path.is_absolute() else repo / path
    try:
        size = target.stat().st_size
    except OSError as exc:
        warnings.append(f"Skipping {rel}: {exc.strerror or exc}")
        return None
    if size > MAX_SOURCE_BYTES:
        warnings.append(f"Skipping {rel}: {size} bytes exceeds the {MAX_SOURCE_BYTES} byte parse limit")
        return None
    try:
        source = target.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        warnings.append(f"Skipping {rel}: not valid UTF-8")
        return None
    except OSError as exc:
        warnings.append(f"Skipping {rel}: {exc.strerror or exc}")
        return None
    heuristic = False
    signatures = extract(source, language, registry)
    if signatures is None:
        signatures = heuristic_signatures(source, language)
        heuristic = True
    if not signatures:
        return None
    return FileSignatures(path=rel, language=language.value, signatures=signatures, heuristic=heuristic)
