"""Small helpers over tree-sitter nodes."""

from __future__ import annotations

from typing import Iterator, Optional, Tuple

from tree_sitter import Node as TSNode  # type: ignore


def node_text(node: TSNode) -> str:
    return node.text.decode("utf-8", errors="ignore")


def position(node: TSNode) -> Tuple[int, int]:
    """1-based (line, column) of the node start."""
    row, col = node.start_point
    return row + 1, col + 1


def named_non_comment(node: TSNode) -> Iterator[TSNode]:
    for child in node.named_children:
        if child.type != "comment":
            yield child


def first_named(node: TSNode) -> Optional[TSNode]:
    return next(named_non_comment(node), None)


def ancestors(node: TSNode) -> Iterator[TSNode]:
    parent = node.parent
    while parent is not None:
        yield parent
        parent = parent.parent
