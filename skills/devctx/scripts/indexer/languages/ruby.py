from __future__ import annotations

from typing import List, Optional

from ..model import SignatureEntry
from ..nodes import SyntaxNode, container_signature, first_line, name_of

METHOD_TYPES = {"method", "singleton_method"}


def _body(node: SyntaxNode) -> Optional[SyntaxNode]:
    return node.field("body") or node.first_of(("body_statement",))


def _method_signature(node: SyntaxNode) -> str:
    body = _body(node)
    if body is None:
        return first_line(node.text()).strip()
    return node.slice(node.start, body.start).strip()


def _members(node: SyntaxNode) -> List[SyntaxNode]:
    body = _body(node)
    return (body or node).named_children


def _container(node: SyntaxNode, kind_label: str, entries: List[SignatureEntry]) -> None:
    body = _body(node)
    header = node.slice(node.start, body.start).strip() if body is not None else first_line(node.text()).strip()
    methods: List[str] = []
    for member in _members(node):
        if member.type in METHOD_TYPES:
            methods.append(_method_signature(member))
    entries.append(SignatureEntry("class", name_of(node), container_signature(header, methods, "end"), True, node.line))
    # Classes and modules nested in a module are reported on their own.
    if kind_label == "module":
        for member in _members(node):
            if member.type == "class":
                _container(member, "class", entries)
            elif member.type == "module":
                _container(member, "module", entries)


def extract_ruby(root: SyntaxNode) -> List[SignatureEntry]:
    entries: List[SignatureEntry] = []
    for node in root.named_children:
        if node.type in METHOD_TYPES:
            entries.append(SignatureEntry("function", name_of(node), _method_signature(node), True, node.line))
        elif node.type == "class":
            _container(node, "class", entries)
        elif node.type == "module":
            _container(node, "module", entries)
    return entries
