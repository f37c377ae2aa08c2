"""Follow an identifier to the declaration it names.

tree-sitter gives a concrete syntax tree with no name resolution, so lookups
walk outward from the identifier: enclosing blocks (declarations before the
use), statement headers, function parameters, then package level. Only two
outcomes are decodable: a parameter and a typed var/const spec. Everything
else raises UnclassifiableArgumentError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional

from tree_sitter import Node as TSNode  # type: ignore

from .ast_utils import ancestors, node_text
from .errors import UnclassifiableArgumentError
from .locator import FUNCTION_KINDS

PARAMETER = "parameter"
VALUE = "value"

SCOPE_KINDS = {"block", "expression_case", "default_case", "type_case", "communication_case"}
HEADER_KINDS = {
    "if_statement",
    "for_statement",
    "expression_switch_statement",
    "type_switch_statement",
    "communication_case",
}
# Header clauses that can introduce names for the statement they head.
BINDING_KINDS = {"short_var_declaration", "range_clause", "receive_statement"}
VALUE_DECL_KINDS = {"var_declaration", "const_declaration"}
SPEC_KINDS = {"var_spec", "const_spec"}


@dataclass(frozen=True)
class Declaration:
    kind: str
    name: str
    type_node: TSNode
    node: TSNode


def resolve_declaration(ident: TSNode) -> Declaration:
    name = node_text(ident)
    captured = False
    for scope in ancestors(ident):
        kind = scope.type
        found: Optional[Declaration] = None
        if kind in SCOPE_KINDS:
            found = _lookup_statements(scope, name, before=ident.start_byte)
        elif kind in FUNCTION_KINDS:
            found = _lookup_params(scope, name)
        elif kind == "source_file":
            found = _lookup_package(scope, name)
            if found is not None:
                return found
            break
        if found is None and kind in HEADER_KINDS and _bound_in_header(scope, name):
            raise UnclassifiableArgumentError(f"{name} is bound by a {kind} clause")
        if found is not None:
            if captured:
                raise UnclassifiableArgumentError(f"{name} is captured by a closure")
            return found
        if kind == "func_literal":
            captured = True
    raise UnclassifiableArgumentError(f"{name} has no parameter or value declaration")


def parameter_declarations(fn: TSNode) -> Iterator[TSNode]:
    """Receiver parameters first, then the formal parameters."""
    for field_name in ("receiver", "parameters"):
        params = fn.child_by_field_name(field_name)
        if params is None:
            continue
        for param in params.named_children:
            if param.type in ("parameter_declaration", "variadic_parameter_declaration"):
                yield param


def declared_names(node: TSNode, field_name: str = "name") -> List[str]:
    return [node_text(n) for n in node.children_by_field_name(field_name) if n.type == "identifier"]


# Private stuff.


def _lookup_params(fn: TSNode, name: str) -> Optional[Declaration]:
    params = list(parameter_declarations(fn))
    result = fn.child_by_field_name("result")
    if result is not None and result.type == "parameter_list":
        params.extend(p for p in result.named_children if p.type == "parameter_declaration")
    for param in params:
        if name not in declared_names(param):
            continue
        if param.type == "variadic_parameter_declaration":
            raise UnclassifiableArgumentError(f"{name} is a variadic parameter")
        return Declaration(PARAMETER, name, param.child_by_field_name("type"), param)
    return None


def _statements(scope: TSNode) -> Iterator[TSNode]:
    for child in scope.named_children:
        if child.type == "statement_list":
            yield from child.named_children
        else:
            yield child


def _lookup_statements(scope: TSNode, name: str, *, before: int) -> Optional[Declaration]:
    # The last declaration before the use shadows earlier ones.
    found: Optional[Declaration] = None
    local = False
    for stmt in _statements(scope):
        if stmt.start_byte >= before:
            break
        if stmt.type in VALUE_DECL_KINDS:
            spec = _find_spec(stmt, name)
            if spec is not None:
                found, local = _value_declaration(spec, name), False
        elif stmt.type == "short_var_declaration":
            left = stmt.child_by_field_name("left")
            if left is not None and name in _identifiers(left):
                found, local = None, True
    if local:
        raise UnclassifiableArgumentError(f"{name} is bound by a short variable declaration")
    return found


def _lookup_package(source_file: TSNode, name: str) -> Optional[Declaration]:
    for decl in source_file.named_children:
        if decl.type in VALUE_DECL_KINDS:
            spec = _find_spec(decl, name)
            if spec is not None:
                return _value_declaration(spec, name)
    return None


def _find_spec(decl: TSNode, name: str) -> Optional[TSNode]:
    stack = [decl]
    while stack:
        node = stack.pop()
        if node.type in SPEC_KINDS:
            if name in declared_names(node):
                return node
            continue
        stack.extend(reversed(node.named_children))
    return None


def _value_declaration(spec: TSNode, name: str) -> Declaration:
    type_node = spec.child_by_field_name("type")
    if type_node is None:
        raise UnclassifiableArgumentError(f"{name} is declared without an explicit type")
    return Declaration(VALUE, name, type_node, spec)


def _bound_in_header(stmt: TSNode, name: str) -> bool:
    """Whether ``name`` is bound by the statement's initializer, range, alias or receive clause.

    Branch bodies (blocks and switch cases) are scopes of their own and are
    never searched here.
    """
    alias = stmt.child_by_field_name("alias")
    if alias is not None and name in _identifiers(alias):
        return True
    headers = [stmt.child_by_field_name("initializer"), stmt.child_by_field_name("communication")]
    for child in stmt.named_children:
        if child.type == "for_clause":
            headers.append(child.child_by_field_name("initializer"))
        elif child.type == "range_clause":
            headers.append(child)
    for header in headers:
        if header is None or header.type not in BINDING_KINDS:
            continue
        left = header.child_by_field_name("left")
        if left is not None and _declares(header) and name in _identifiers(left):
            return True
    return False


def _declares(clause: TSNode) -> bool:
    # range and receive clauses may assign with "=" instead of declaring.
    return clause.type == "short_var_declaration" or any(c.type == ":=" for c in clause.children)


def _identifiers(expr_list: TSNode) -> List[str]:
    if expr_list.type == "identifier":
        return [node_text(expr_list)]
    return [node_text(n) for n in expr_list.named_children if n.type == "identifier"]
