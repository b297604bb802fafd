from __future__ import annotations

import re
from typing import Iterable, List, Optional

ANONYMOUS = "<anonymous>"

IDENTIFIER_TYPES = (
    "identifier",
    "name",
    "type_identifier",
    "field_identifier",
    "property_identifier",
    "constant",
    "method_name",
    "scoped_identifier",
)

_FIRST_NAME_RE = re.compile(
    r"\b(?:function|class|interface|type|enum|struct|trait|record|module|def|func|fn|const|let|var|static)\s+\*?\s*([A-Za-z_$][\w$]*)"
)
_ANY_IDENT_RE = re.compile(r"[A-Za-z_$][\w$]*")


class SyntaxNode:
    """Thin view over a tree-sitter node bound to the source bytes it was parsed from."""

    __slots__ = ("_node", "_source")

    def __init__(self, node, source: bytes) -> None:
        self._node = node
        self._source = source

    def __repr__(self) -> str:
        return f"SyntaxNode({self.type}@{self.line})"

    @property
    def type(self) -> str:
        return self._node.type

    @property
    def start(self) -> int:
        return self._node.start_byte

    @property
    def end(self) -> int:
        return self._node.end_byte

    @property
    def line(self) -> int:
        return self._node.start_point[0] + 1

    @property
    def column(self) -> int:
        return self._node.start_point[1]

    @property
    def named_children(self) -> List["SyntaxNode"]:
        return [SyntaxNode(child, self._source) for child in self._node.named_children]

    @property
    def children(self) -> List["SyntaxNode"]:
        return [SyntaxNode(child, self._source) for child in self._node.children]

    def field(self, name: str) -> Optional["SyntaxNode"]:
        child = self._node.child_by_field_name(name)
        if child is None:
            return None
        return SyntaxNode(child, self._source)

    def first_of(self, types: Iterable[str]) -> Optional["SyntaxNode"]:
        wanted = set(types)
        for child in self._node.named_children:
            if child.type in wanted:
                return SyntaxNode(child, self._source)
        return None

    def has_child_type(self, node_type: str) -> bool:
        return any(child.type == node_type for child in self._node.children)

    def slice(self, start: int, end: int) -> str:
        return self._source[start:end].decode("utf-8", errors="replace")

    def text(self) -> str:
        return self.slice(self.start, self.end)


def root_of(tree, source: bytes) -> SyntaxNode:
    return SyntaxNode(tree.root_node, source)


def sig_until(node: SyntaxNode, body: Optional[SyntaxNode]) -> str:
    """Text from the node start up to the body start, or the whole node when bodiless."""
    if body is None:
        return dedent_tail(node.text().strip(), node.column)
    return dedent_tail(node.slice(node.start, body.start).strip(), node.column)


def dedent_tail(text: str, column: int) -> str:
    """Drop the source indentation of the first line from every following line."""
    if column <= 0 or "\n" not in text:
        return text
    head, *rest = text.split("\n")
    tail = [line[min(column, len(line) - len(line.lstrip(" \t"))):] for line in rest]
    return "\n".join([head] + tail)


def strip_terminator(text: str, terminator: str = ";") -> str:
    text = text.strip()
    if text.endswith(terminator):
        text = text[: -len(terminator)]
    return text.strip()


def open_header(node: SyntaxNode, body: Optional[SyntaxNode]) -> str:
    header = sig_until(node, body)
    if not header.endswith("{"):
        header += " {"
    return header


def container_signature(header: str, members: List[str], close: str = "}") -> str:
    """Header line(s), every member line indented, then the closing token."""
    if not members:
        if close == "}":
            return f"{header} }}"
        return f"{header}\n{close}"
    body = "\n".join(indent_lines(member) for member in members)
    return f"{header}\n{body}\n{close}"


def indent_lines(text: str, prefix: str = "  ") -> str:
    return "\n".join(prefix + line for line in text.split("\n"))


def first_line(text: str) -> str:
    return text.split("\n", 1)[0].rstrip()


def guess_identifier(node: SyntaxNode) -> str:
    for child in node.named_children:
        if child.type in IDENTIFIER_TYPES:
            return child.text()
    text = node.text()
    match = _FIRST_NAME_RE.search(text)
    if match:
        return match.group(1)
    match = _ANY_IDENT_RE.search(text)
    if match:
        return match.group(0)
    return ANONYMOUS


def name_of(node: SyntaxNode, field: str = "name") -> str:
    named = node.field(field)
    if named is not None:
        text = named.text().strip()
        if text:
            return text
    return guess_identifier(node)
