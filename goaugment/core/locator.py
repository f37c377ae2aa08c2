"""Map a stack trace line to the syntax node at that line.

A frame's line points at the call instruction, not at a token, so the match
is approximate: the first node starting at or after the line's first byte is
either the call statement itself or the function declared on that line.
"""

from __future__ import annotations

from typing import Optional

from tree_sitter import Node as TSNode  # type: ignore

FUNCTION_KINDS = {"function_declaration", "method_declaration", "func_literal"}


def locate(root: TSNode, offset: int) -> Optional[TSNode]:
    """Return the first named node in pre-order whose start is ``>= offset``."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_named and node.type != "comment" and node.start_byte >= offset:
            return node
        if node.end_byte < offset:
            # Nothing below can start at or after the offset.
            continue
        stack.extend(reversed(node.children))
    return None


def enclosing_function(root: TSNode, offset: int) -> Optional[TSNode]:
    """Innermost function declaration, method declaration or func literal spanning ``offset``."""
    found = None
    node = root
    while True:
        child = next((c for c in node.named_children if c.start_byte <= offset < c.end_byte), None)
        if child is None:
            return found
        if child.type in FUNCTION_KINDS:
            found = child
        node = child
