from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .constants import CONTEXT_CONFIG_FILES, DEFAULT_EXCLUDE_SIGNATURES

MIN_BUDGET = 1000
MAX_BUDGET = 100000
DEFAULT_BUDGET = 12000
DEFAULT_KNOWLEDGE_DIR = ".devctx/knowledge"
SIGNATURE_DEPTHS = ("exports", "all")
CODE_MAP_FORMATS = ("signatures", "compact")


@dataclass
class ContextConfig:
    budget: int = DEFAULT_BUDGET
    key_files: List[str] = field(default_factory=list)
    exclude_signatures: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_SIGNATURES))
    knowledge_dir: str = DEFAULT_KNOWLEDGE_DIR
    signature_depth: str = "exports"
    auto_knowledge: bool = False
    code_map_format: str = "signatures"
    ignore: List[str] = field(default_factory=list)
    annotations: Dict[str, str] = field(default_factory=dict)
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def valid_budget(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and MIN_BUDGET <= value <= MAX_BUDGET


def normalize_globs(value: Any) -> Optional[List[str]]:
    """A string becomes a one-element list; anything but a list of strings is invalid (None)."""
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return [item.strip() for item in value if item.strip()]
    return None


def _section(payload: Dict[str, Any]) -> Dict[str, Any]:
    nested = payload.get("context")
    if isinstance(nested, dict):
        return nested
    return payload


def _read_config(repo: Path, warnings: List[str]) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    for filename in CONTEXT_CONFIG_FILES:
        path = repo / filename
        if not path.is_file():
            continue
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            warnings.append(f"Failed to parse {filename}: {exc}; using defaults")
            return None, filename
        if payload is None:
            return {}, filename
        if not isinstance(payload, dict):
            warnings.append(f"Invalid {filename}: expected a mapping; using defaults")
            return None, filename
        return _section(payload), filename
    return None, None


def load_context_config(repo: Path, warnings: List[str]) -> ContextConfig:
    """Per-project settings; each invalid field falls back to its default on its own."""
    data, filename = _read_config(repo, warnings)
    config = ContextConfig(source=filename)
    if not data:
        return config

    def invalid(name: str, value: Any) -> None:
        warnings.append(f"{filename}: invalid {name} {value!r}; using default")

    if "budget" in data:
        if valid_budget(data["budget"]):
            config.budget = data["budget"]
        else:
            invalid("budget", data["budget"])

    for name in ("key_files", "exclude_signatures", "ignore"):
        if name not in data:
            continue
        globs = normalize_globs(data[name])
        if globs is None:
            invalid(name, data[name])
        else:
            setattr(config, name, globs)

    if "knowledge_dir" in data:
        value = data["knowledge_dir"]
        if isinstance(value, str) and value.strip():
            config.knowledge_dir = value.strip()
        else:
            invalid("knowledge_dir", value)

    if "signature_depth" in data:
        value = data["signature_depth"]
        if value in SIGNATURE_DEPTHS:
            config.signature_depth = value
        else:
            invalid("signature_depth", value)

    if "auto_knowledge" in data:
        value = data["auto_knowledge"]
        if isinstance(value, bool):
            config.auto_knowledge = value
        else:
            invalid("auto_knowledge", value)

    if "code_map_format" in data:
        value = data["code_map_format"]
        if value in CODE_MAP_FORMATS:
            config.code_map_format = value
        else:
            invalid("code_map_format", value)

    if "annotations" in data:
        value = data["annotations"]
        if isinstance(value, dict) and all(isinstance(k, str) and isinstance(v, str) for k, v in value.items()):
            config.annotations = dict(value)
        else:
            invalid("annotations", value)

    return config
