from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

SIGNATURE_KINDS = ("function", "class", "interface", "type", "enum", "const")

# Kinds whose full text is declarative and can be folded when the code map runs short.
DECLARATIVE_KINDS = {"interface", "type", "enum"}


class ContextError(Exception):
    """The project root cannot be read; nothing useful can be generated."""


@dataclass(frozen=True)
class SignatureEntry:
    kind: str
    name: str
    signature: str
    exported: bool
    line: int
    # Set on struct-like classes: every member is a field, none has behavior.
    fields_only: bool = False

    @property
    def collapsible(self) -> bool:
        return self.kind in DECLARATIVE_KINDS or (self.kind == "class" and self.fields_only)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FileSignatures:
    path: str
    language: str
    signatures: List[SignatureEntry] = field(default_factory=list)
    heuristic: bool = False

    def exported_only(self) -> List[SignatureEntry]:
        return [entry for entry in self.signatures if entry.exported]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "language": self.language,
            "heuristic": self.heuristic,
            "signatures": [entry.to_dict() for entry in self.signatures],
        }
