from __future__ import annotations

from typing import List

from ..model import SignatureEntry
from ..nodes import SyntaxNode, container_signature, dedent_tail, name_of, open_header, strip_terminator

TYPE_KINDS = {
    "class_declaration": "class",
    "struct_declaration": "class",
    "record_declaration": "class",
    "record_struct_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
}

NAMESPACE_TYPES = {"namespace_declaration", "file_scoped_namespace_declaration", "declaration_list"}
METHOD_MEMBERS = {"method_declaration", "constructor_declaration", "destructor_declaration", "operator_declaration"}
FIELD_MEMBERS = {"field_declaration", "property_declaration", "event_field_declaration"}


def _method_signature(member: SyntaxNode) -> str:
    body = member.field("body") or member.first_of(("block", "arrow_expression_clause"))
    if body is None:
        return strip_terminator(member.text())
    return dedent_tail(member.slice(member.start, body.start).strip(), member.column)


def _type_entry(node: SyntaxNode) -> SignatureEntry:
    kind = TYPE_KINDS[node.type]
    name = name_of(node)
    if kind == "enum":
        return SignatureEntry(kind, name, node.text().strip(), True, node.line)
    body = node.field("body") or node.first_of(("declaration_list",))
    methods = 0
    members: List[str] = []
    for member in body.named_children if body is not None else []:
        if member.type in METHOD_MEMBERS:
            methods += 1
            members.append(_method_signature(member))
        elif member.type in FIELD_MEMBERS:
            members.append(strip_terminator(member.text()))
    signature = container_signature(open_header(node, body), members)
    return SignatureEntry(kind, name, signature, True, node.line, bool(members) and not methods)


def _walk(container: SyntaxNode, entries: List[SignatureEntry]) -> None:
    for node in container.named_children:
        if node.type in TYPE_KINDS:
            entries.append(_type_entry(node))
        elif node.type in NAMESPACE_TYPES:
            _walk(node, entries)


def extract_csharp(root: SyntaxNode) -> List[SignatureEntry]:
    entries: List[SignatureEntry] = []
    _walk(root, entries)
    return entries
