from __future__ import annotations

from typing import List

from ..model import SignatureEntry
from ..nodes import SyntaxNode, container_signature, name_of, sig_until, strip_terminator

FULL_TEXT_KINDS = {
    "struct_item": "class",
    "union_item": "class",
    "enum_item": "enum",
    "type_item": "type",
}


def _trait_signature(node: SyntaxNode) -> str:
    body = node.field("body")
    if body is None:
        return node.text().strip()
    header = sig_until(node, body)
    if not header.endswith("{"):
        header += " {"
    members: List[str] = []
    for member in body.named_children:
        if member.type == "function_item":
            members.append(sig_until(member, member.field("body")))
        elif member.type in ("function_signature_item", "associated_type", "const_item"):
            members.append(strip_terminator(member.text()))
    return container_signature(header, members)


def _const_signature(node: SyntaxNode) -> str:
    type_node = node.field("type")
    if type_node is not None:
        return node.slice(node.start, type_node.end).strip()
    value = node.field("value")
    if value is not None:
        return node.slice(node.start, value.start).strip().rstrip("=").strip()
    return strip_terminator(node.text())


def _walk(container: SyntaxNode, entries: List[SignatureEntry]) -> None:
    for node in container.named_children:
        kind = node.type
        if kind == "function_item":
            signature = sig_until(node, node.field("body"))
            entries.append(SignatureEntry("function", name_of(node), signature, True, node.line))
        elif kind in FULL_TEXT_KINDS:
            label = FULL_TEXT_KINDS[kind]
            entries.append(SignatureEntry(label, name_of(node), node.text().strip(), True, node.line, label == "class"))
        elif kind == "trait_item":
            entries.append(SignatureEntry("interface", name_of(node), _trait_signature(node), True, node.line))
        elif kind == "impl_item":
            # Methods are reported as free functions; the impl block itself is not an entry.
            body = node.field("body")
            for member in body.named_children if body is not None else []:
                if member.type == "function_item":
                    signature = sig_until(member, member.field("body"))
                    entries.append(SignatureEntry("function", name_of(member), signature, True, member.line))
        elif kind in ("const_item", "static_item"):
            entries.append(SignatureEntry("const", name_of(node), _const_signature(node), True, node.line))
        elif kind == "mod_item":
            body = node.field("body")
            if body is not None:
                _walk(body, entries)


def extract_rust(root: SyntaxNode) -> List[SignatureEntry]:
    entries: List[SignatureEntry] = []
    _walk(root, entries)
    return entries
