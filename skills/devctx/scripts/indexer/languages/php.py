from __future__ import annotations

from typing import List

from ..model import SignatureEntry
from ..nodes import SyntaxNode, container_signature, dedent_tail, name_of, open_header, sig_until, strip_terminator

TYPE_KINDS = {
    "class_declaration": "class",
    "trait_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
}

WRAPPERS = {"program", "namespace_definition", "compound_statement"}
FIELD_MEMBERS = {"property_declaration", "const_declaration"}


def _method_signature(member: SyntaxNode) -> str:
    body = member.field("body")
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
        if member.type == "method_declaration":
            methods += 1
            members.append(_method_signature(member))
        elif member.type in FIELD_MEMBERS:
            members.append(strip_terminator(member.text()))
    signature = container_signature(open_header(node, body), members)
    return SignatureEntry(kind, name, signature, True, node.line, bool(members) and not methods)


def _walk(container: SyntaxNode, entries: List[SignatureEntry]) -> None:
    for node in container.named_children:
        if node.type == "function_definition":
            entries.append(SignatureEntry("function", name_of(node), sig_until(node, node.field("body")), True, node.line))
        elif node.type in TYPE_KINDS:
            entries.append(_type_entry(node))
        elif node.type in WRAPPERS:
            _walk(node, entries)


def extract_php(root: SyntaxNode) -> List[SignatureEntry]:
    entries: List[SignatureEntry] = []
    _walk(root, entries)
    return entries
