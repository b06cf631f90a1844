"""Minimal syntax tree used between the grammar and the document mapper.

Nodes carry only a type tag, their source text and their children, so the
mapper does not depend on the node classes of any particular grammar
library. ``from_tree_sitter`` converts a tree-sitter tree into this shape.
"""

from __future__ import annotations

from typing import Any, Iterator

ERROR = "ERROR"


class SyntaxNode:
    """A node of the .http syntax tree."""

    __slots__ = ("type", "text", "children", "has_error")

    def __init__(
        self,
        type: str,
        text: str,
        children: list[SyntaxNode] | None = None,
        has_error: bool = False,
    ) -> None:
        self.type = type
        self.text = text
        self.children = children if children is not None else []
        self.has_error = has_error

    def child(self, type: str) -> SyntaxNode | None:
        """Return the first direct child of the given type."""
        for node in self.children:
            if node.type == type:
                return node
        return None

    def __repr__(self) -> str:
        flag = ", has_error=True" if self.has_error else ""
        return (
            f"SyntaxNode({self.type!r}, {self.text!r}, "
            f"children=<{len(self.children)}>{flag})"
        )


def walk(node: SyntaxNode) -> Iterator[SyntaxNode]:
    """Yield ``node`` and all of its descendants, depth-first, in order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def has_errors(node: SyntaxNode) -> bool:
    """True if any node in the tree is an error node or flagged as one."""
    return any(n.has_error or n.type == ERROR for n in walk(node))


def from_tree_sitter(node: Any) -> SyntaxNode:
    """Convert a tree-sitter node (or anything shaped like one).

    tree-sitter exposes node text as bytes; it is decoded as UTF-8.
    """
    text = node.text
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    return SyntaxNode(
        type=node.type,
        text=text or "",
        children=[from_tree_sitter(child) for child in node.children],
        has_error=bool(getattr(node, "has_error", False))
        or bool(getattr(node, "is_missing", False)),
    )
