"""Reduce a Go type expression to the base name that selects a decoding rule."""

from __future__ import annotations

from tree_sitter import Node as TSNode  # type: ignore

from .ast_utils import first_named, node_text
from .errors import UnsupportedShapeError


def base_name(type_node: TSNode) -> str:
    """``*Foo``, ``pkg.Foo`` and ``*pkg.Foo`` all resolve to ``Foo``."""
    node = type_node
    if node is not None and node.type == "pointer_type":
        node = first_named(node)
    if node is not None and node.type == "qualified_type":
        node = node.child_by_field_name("name")
    if node is None or node.type != "type_identifier":
        shape = type_node.type if type_node is not None else "nothing"
        text = node_text(type_node) if type_node is not None else ""
        raise UnsupportedShapeError(f"unsupported type expression {shape}: {text}")
    return node_text(node)


def receiver_type_name(method: TSNode) -> str:
    """Base name of a method's receiver type, empty when it has none we understand."""
    receiver = method.child_by_field_name("receiver")
    if receiver is None:
        return ""
    for param in receiver.named_children:
        type_node = param.child_by_field_name("type")
        if type_node is None:
            continue
        try:
            return base_name(type_node)
        except UnsupportedShapeError:
            return ""
    return ""
