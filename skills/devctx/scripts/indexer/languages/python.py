from __future__ import annotations

import re
from typing import List, Optional, Tuple

from ..model import SignatureEntry
from ..nodes import SyntaxNode, dedent_tail, guess_identifier, indent_lines

_CONSTANT_NAME_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")


def _unwrap(node: SyntaxNode) -> SyntaxNode:
    if node.type == "decorated_definition":
        return node.field("definition") or node.first_of(("function_definition", "class_definition")) or node
    return node


def _def_signature(outer: SyntaxNode, actual: SyntaxNode) -> str:
    body = actual.field("body")
    end = body.start if body is not None else actual.end
    text = dedent_tail(outer.slice(outer.start, end).strip(), outer.column)
    if text.endswith(":"):
        text = text[:-1].rstrip()
    return text + ":"


def _annotated(node: SyntaxNode) -> Optional[SyntaxNode]:
    if node.type != "expression_statement":
        return None
    assignment = node.first_of(("assignment",))
    if assignment is None:
        return None
    left = assignment.field("left")
    if left is None or left.type != "identifier":
        return None
    return assignment


def _assignment_signature(assignment: SyntaxNode) -> str:
    left = assignment.field("left")
    type_node = assignment.field("type")
    if type_node is not None:
        return f"{left.text()}: {type_node.text()}"
    return left.text()


def extract_python(root: SyntaxNode) -> List[SignatureEntry]:
    entries: List[SignatureEntry] = []
    for node in root.named_children:
        actual = _unwrap(node)
        if actual.type == "function_definition":
            entries.append(
                SignatureEntry("function", guess_identifier(actual), _def_signature(node, actual), True, node.line)
            )
        elif actual.type == "class_definition":
            signature, fields_only = _class_signature(node, actual)
            entries.append(SignatureEntry("class", guess_identifier(actual), signature, True, node.line, fields_only))
        else:
            assignment = _annotated(node)
            if assignment is None:
                continue
            name = assignment.field("left").text()
            if assignment.field("type") is None and not _CONSTANT_NAME_RE.match(name):
                continue
            entries.append(SignatureEntry("const", name, _assignment_signature(assignment), True, node.line))
    return entries


def _class_signature(outer: SyntaxNode, actual: SyntaxNode) -> Tuple[str, bool]:
    header = _def_signature(outer, actual)
    body = actual.field("body")
    methods = 0
    members: List[str] = []
    for member in body.named_children if body is not None else []:
        member_actual = _unwrap(member)
        if member_actual.type == "function_definition":
            methods += 1
            members.append(_def_signature(member, member_actual))
            continue
        assignment = _annotated(member)
        if assignment is not None and assignment.field("type") is not None:
            members.append(_assignment_signature(assignment))
    if not members:
        return header, False
    return header + "\n" + "\n".join(indent_lines(member) for member in members), not methods
