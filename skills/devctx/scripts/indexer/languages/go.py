from __future__ import annotations

from typing import List

from ..model import SignatureEntry
from ..nodes import SyntaxNode, name_of, sig_until


def _type_entries(node: SyntaxNode) -> List[SignatureEntry]:
    entries: List[SignatureEntry] = []
    specs = [child for child in node.named_children if child.type in ("type_spec", "type_alias")]
    grouped = node.has_child_type("(")
    for spec in specs:
        name = name_of(spec)
        if spec.type == "type_alias":
            entries.append(SignatureEntry("type", name, "type " + spec.text().strip(), True, spec.line))
            continue
        type_node = spec.field("type")
        if type_node is None:
            continue
        if grouped:
            text = "type " + spec.slice(spec.start, type_node.end).strip()
        else:
            text = node.slice(node.start, type_node.end).strip()
        if type_node.type == "struct_type":
            kind = "class"
        elif type_node.type == "interface_type":
            kind = "interface"
        else:
            kind = "type"
        entries.append(SignatureEntry(kind, name, text, True, spec.line, kind == "class"))
    return entries


def _value_entries(node: SyntaxNode, keyword: str) -> List[SignatureEntry]:
    entries: List[SignatureEntry] = []
    for spec in node.named_children:
        if spec.type not in ("const_spec", "var_spec"):
            continue
        names = [child.text() for child in spec.named_children if child.type == "identifier"]
        type_node = spec.field("type")
        suffix = f" {type_node.text()}" if type_node is not None else ""
        for name in names:
            if name == "_":
                continue
            entries.append(SignatureEntry("const", name, f"{keyword} {name}{suffix}", True, spec.line))
    return entries


def extract_go(root: SyntaxNode) -> List[SignatureEntry]:
    entries: List[SignatureEntry] = []
    for node in root.named_children:
        if node.type in ("function_declaration", "method_declaration"):
            signature = sig_until(node, node.field("body"))
            entries.append(SignatureEntry("function", name_of(node), signature, True, node.line))
        elif node.type == "type_declaration":
            entries.extend(_type_entries(node))
        elif node.type == "const_declaration":
            entries.extend(_value_entries(node, "const"))
        elif node.type == "var_declaration":
            entries.extend(_value_entries(node, "var"))
    return entries
