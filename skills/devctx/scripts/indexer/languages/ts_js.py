from __future__ import annotations

import re
from typing import List, Tuple

from ..model import SignatureEntry
from ..nodes import (
    SyntaxNode,
    container_signature,
    guess_identifier,
    sig_until,
    strip_terminator,
)

DECLARATION_TYPES = (
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
    "class_declaration",
    "abstract_class_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
    "lexical_declaration",
    "variable_declaration",
    "ambient_declaration",
)

FUNCTION_VALUES = {"arrow_function", "function_expression", "function", "generator_function"}
CLASS_VALUES = {"class"}

METHOD_MEMBERS = {"method_definition"}
FIELD_MEMBERS = {
    "public_field_definition",
    "field_definition",
    "property_declaration",
    "abstract_method_signature",
    "method_signature",
}

_FROM_RE = re.compile(r"""from\s+["']([^"']+)["']""")


def extract_ts_js(root: SyntaxNode) -> List[SignatureEntry]:
    entries: List[SignatureEntry] = []
    for node in root.named_children:
        if node.type == "export_statement":
            entries.extend(_export_entries(node))
            continue
        entries.extend(_declaration(node, exported=False, start=node.start))
    return entries


def _export_entries(node: SyntaxNode) -> List[SignatureEntry]:
    decl = node.field("declaration") or node.first_of(DECLARATION_TYPES)
    if decl is not None:
        return _declaration(decl, exported=True, start=node.start)
    value = node.field("value")
    if value is not None:
        return [_default_export(node, value)]
    return [
        SignatureEntry(
            kind="const",
            name=reexport_name(node),
            signature=strip_terminator(node.text()),
            exported=True,
            line=node.line,
        )
    ]


def reexport_name(node: SyntaxNode) -> str:
    source = node.field("source")
    if source is not None:
        module = source.text().strip("\"'` ")
        if module:
            return f"re-export from {module}"
    match = _FROM_RE.search(node.text())
    if match:
        return f"re-export from {match.group(1)}"
    return "re-export"


def _default_export(node: SyntaxNode, value: SyntaxNode) -> SignatureEntry:
    if value.type in FUNCTION_VALUES:
        body = value.field("body")
        signature = node.slice(node.start, body.start).strip() if body is not None else strip_terminator(node.text())
        return SignatureEntry("function", "default", signature, True, node.line)
    if value.type in CLASS_VALUES:
        signature, fields_only = _class_signature(value, node.start)
        return SignatureEntry("class", "default", signature, True, node.line, fields_only)
    return SignatureEntry("const", "default", strip_terminator(node.text()), True, node.line)


def _declaration(node: SyntaxNode, *, exported: bool, start: int) -> List[SignatureEntry]:
    line = node.line
    kind = node.type
    if kind in ("function_declaration", "generator_function_declaration"):
        body = node.field("body")
        signature = node.slice(start, body.start if body is not None else node.end).strip()
        return [SignatureEntry("function", guess_identifier(node), signature, exported, line)]
    if kind == "function_signature":
        signature = strip_terminator(node.slice(start, node.end))
        return [SignatureEntry("function", guess_identifier(node), signature, exported, line)]
    if kind in ("class_declaration", "abstract_class_declaration"):
        signature, fields_only = _class_signature(node, start)
        return [SignatureEntry("class", guess_identifier(node), signature, exported, line, fields_only)]
    if kind == "interface_declaration":
        signature = node.slice(start, node.end).strip()
        return [SignatureEntry("interface", guess_identifier(node), signature, exported, line)]
    if kind == "type_alias_declaration":
        signature = strip_terminator(node.slice(start, node.end))
        return [SignatureEntry("type", guess_identifier(node), signature, exported, line)]
    if kind == "enum_declaration":
        signature = node.slice(start, node.end).strip()
        return [SignatureEntry("enum", guess_identifier(node), signature, exported, line)]
    if kind in ("lexical_declaration", "variable_declaration"):
        return _variables(node, exported=exported, start=start)
    if kind == "ambient_declaration":
        inner = node.first_of(DECLARATION_TYPES)
        if inner is None:
            return []
        return _declaration(inner, exported=exported, start=start)
    return []


def _variables(node: SyntaxNode, *, exported: bool, start: int) -> List[SignatureEntry]:
    entries: List[SignatureEntry] = []
    declarators = [child for child in node.named_children if child.type == "variable_declarator"]
    if not declarators:
        return entries
    # "export const " / "let " etc., shared by every declarator in the statement.
    prefix = node.slice(start, declarators[0].start)
    for declarator in declarators:
        name = _declarator_name(declarator)
        value = declarator.field("value")
        if value is not None and value.type in FUNCTION_VALUES:
            body = value.field("body")
            end = body.start if body is not None else value.end
            signature = (prefix + node.slice(declarator.start, end)).strip()
            entries.append(SignatureEntry("function", name, signature, exported, node.line))
            continue
        if not exported:
            continue
        type_node = declarator.field("type")
        if type_node is not None:
            signature = prefix + node.slice(declarator.start, type_node.end)
        elif value is not None:
            signature = prefix + node.slice(declarator.start, value.start).rstrip().rstrip("=")
        else:
            signature = prefix + node.slice(declarator.start, declarator.end)
        entries.append(SignatureEntry("const", name, signature.strip(), exported, node.line))
    return entries


def _declarator_name(declarator: SyntaxNode) -> str:
    name = declarator.field("name")
    if name is not None and name.type == "identifier":
        return name.text()
    return guess_identifier(declarator)


def _class_signature(node: SyntaxNode, start: int) -> Tuple[str, bool]:
    """Class header plus member signatures, and whether every member is a field."""
    body = node.field("body")
    header = node.slice(start, body.start if body is not None else node.end).strip()
    if not header.endswith("{"):
        header += " {"
    methods = 0
    members: List[str] = []
    for member in body.named_children if body is not None else []:
        if member.type in METHOD_MEMBERS:
            methods += 1
            members.append(sig_until(member, member.field("body")))
        elif member.type in FIELD_MEMBERS:
            members.append(strip_terminator(member.text()))
    return container_signature(header, members), bool(members) and not methods
