from __future__ import annotations

from typing import List

from ..model import SignatureEntry
from ..nodes import SyntaxNode, container_signature, dedent_tail, name_of, open_header, strip_terminator

TYPE_KINDS = {
    "class_declaration": "class",
    "record_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
}

METHOD_MEMBERS = {"method_declaration", "constructor_declaration", "compact_constructor_declaration"}
FIELD_MEMBERS = {"field_declaration", "constant_declaration"}


def method_signature(member: SyntaxNode) -> str:
    body = member.field("body")
    if body is None:
        return strip_terminator(member.text())
    return dedent_tail(member.slice(member.start, body.start).strip(), member.column)


def _type_entry(node: SyntaxNode) -> SignatureEntry:
    kind = TYPE_KINDS[node.type]
    name = name_of(node)
    if kind == "enum":
        return SignatureEntry(kind, name, node.text().strip(), True, node.line)
    body = node.field("body")
    methods = 0
    members: List[str] = []
    for member in body.named_children if body is not None else []:
        if member.type in METHOD_MEMBERS:
            methods += 1
            members.append(method_signature(member))
        elif member.type in FIELD_MEMBERS:
            members.append(strip_terminator(member.text()))
    signature = container_signature(open_header(node, body), members)
    return SignatureEntry(kind, name, signature, True, node.line, bool(members) and not methods)


def extract_java(root: SyntaxNode) -> List[SignatureEntry]:
    entries: List[SignatureEntry] = []
    for node in root.named_children:
        if node.type in TYPE_KINDS:
            entries.append(_type_entry(node))
    return entries
