"""Tree-sitter grammar registry.

One registry is built per process (or per test) and handed to the extractor. Grammars come
from ``tree_sitter_language_pack`` and are loaded on first use; a grammar that fails to load is
remembered as unavailable so callers can fall back to the heuristic extractor.
"""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from tree_sitter import Language as TSLanguage
from tree_sitter import Parser, Tree
from tree_sitter_language_pack import get_language


class Language(str, Enum):
    TYPESCRIPT = "typescript"
    TSX = "tsx"
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    GO = "go"
    RUST = "rust"
    JAVA = "java"
    CSHARP = "csharp"
    RUBY = "ruby"
    PHP = "php"

    @classmethod
    def parse(cls, value: object) -> Optional["Language"]:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return LANGUAGE_ALIASES.get(value.strip().lower())


LANGUAGE_ALIASES: Dict[str, Language] = {
    "ts": Language.TYPESCRIPT,
    "js": Language.JAVASCRIPT,
    "jsx": Language.JAVASCRIPT,
    "py": Language.PYTHON,
    "rs": Language.RUST,
    "cs": Language.CSHARP,
    "c_sharp": Language.CSHARP,
    "c#": Language.CSHARP,
    "rb": Language.RUBY,
}

GRAMMAR_NAMES: Dict[Language, str] = {
    Language.TYPESCRIPT: "typescript",
    Language.TSX: "tsx",
    Language.JAVASCRIPT: "javascript",
    Language.PYTHON: "python",
    Language.GO: "go",
    Language.RUST: "rust",
    Language.JAVA: "java",
    Language.CSHARP: "csharp",
    Language.RUBY: "ruby",
    Language.PHP: "php",
}

LANGUAGE_EXTENSIONS: Dict[Language, List[str]] = {
    Language.TYPESCRIPT: [".ts", ".mts", ".cts"],
    Language.TSX: [".tsx"],
    Language.JAVASCRIPT: [".js", ".jsx", ".mjs", ".cjs"],
    Language.PYTHON: [".py", ".pyi"],
    Language.GO: [".go"],
    Language.RUST: [".rs"],
    Language.JAVA: [".java"],
    Language.CSHARP: [".cs"],
    Language.RUBY: [".rb"],
    Language.PHP: [".php"],
}

_EXTENSION_INDEX: Dict[str, Language] = {
    ext: lang for lang, exts in LANGUAGE_EXTENSIONS.items() for ext in exts
}


def language_for_path(path: str) -> Optional[Language]:
    return _EXTENSION_INDEX.get(Path(path).suffix.lower())


def source_extensions() -> List[str]:
    return sorted(_EXTENSION_INDEX)


class GrammarRegistry:
    def __init__(self, languages: Optional[Iterable[Language]] = None) -> None:
        self._allowed = set(languages) if languages is not None else set(Language)
        self._grammars: Dict[Language, Optional[TSLanguage]] = {}
        self.errors: Dict[Language, str] = {}

    def _load(self, language: Language) -> Optional[TSLanguage]:
        if language in self._grammars:
            return self._grammars[language]
        grammar: Optional[TSLanguage] = None
        if language in self._allowed:
            try:
                grammar = get_language(GRAMMAR_NAMES[language])
            except Exception as exc:  # grammar missing from the installed pack
                self.errors[language] = f"{type(exc).__name__}: {exc}"
                grammar = None
        self._grammars[language] = grammar
        return grammar

    def has_grammar(self, language: object) -> bool:
        lang = Language.parse(language)
        if lang is None:
            return False
        return self._load(lang) is not None

    def parse(self, source: str, language: object) -> Optional[Tree]:
        lang = Language.parse(language)
        if lang is None:
            return None
        grammar = self._load(lang)
        if grammar is None:
            return None
        try:
            return Parser(grammar).parse(source.encode("utf-8"))
        except (ValueError, TypeError, RuntimeError) as exc:
            self.errors[lang] = f"{type(exc).__name__}: {exc}"
            return None

    def available_languages(self) -> List[Language]:
        return [lang for lang in Language if self.has_grammar(lang)]

    def supported_extensions(self) -> List[str]:
        exts: List[str] = []
        for lang in self.available_languages():
            exts.extend(LANGUAGE_EXTENSIONS[lang])
        return sorted(set(exts))
