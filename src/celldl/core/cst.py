"""
Concrete syntax tree produced by the grammar parser.

A CstNode records the grammar rule that produced it and its children in
labelled slots, so the visitor addresses children by grammar label rather
than by position. Nodes live only for the duration of one parse.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from .lexer import Token


@dataclass
class CstNode:
    """
    A grammar rule application.

    Attributes:
        name: Grammar rule name (e.g. ``cellDefinition``)
        children: Child slots keyed by grammar label, each in source order
        recovered: True when the parser recorded an error inside this rule
    """

    name: str
    children: dict[str, list[Token | CstNode]] = field(default_factory=dict)
    recovered: bool = False

    def add(self, label: str, element: Token | CstNode | None) -> None:
        """Append an element to a slot. ``None`` is ignored."""
        if element is not None:
            self.children.setdefault(label, []).append(element)

    def get(self, label: str) -> list[Token | CstNode]:
        return self.children.get(label, [])

    def token(self, label: str) -> Token | None:
        """First token in a slot, or None."""
        for element in self.get(label):
            if isinstance(element, Token):
                return element
        return None

    def tokens(self, label: str) -> list[Token]:
        return [element for element in self.get(label) if isinstance(element, Token)]

    def node(self, label: str) -> CstNode | None:
        """First sub-node in a slot, or None."""
        for element in self.get(label):
            if isinstance(element, CstNode):
                return element
        return None

    def nodes(self, label: str) -> list[CstNode]:
        return [element for element in self.get(label) if isinstance(element, CstNode)]

    def has(self, label: str) -> bool:
        return bool(self.children.get(label))

    def iter_tokens(self) -> Iterator[Token]:
        """Depth-first walk over every token below this node."""
        for elements in self.children.values():
            for element in elements:
                if isinstance(element, Token):
                    yield element
                else:
                    yield from element.iter_tokens()

    def first_token(self) -> Token | None:
        """The earliest token (by source offset) in this subtree."""
        return min(self.iter_tokens(), key=lambda token: token.offset, default=None)

    @property
    def offset(self) -> int:
        """Source offset of the subtree, used to restore source order across slots."""
        first = self.first_token()
        return first.offset if first is not None else -1

    def pretty(self, indent: int = 0) -> str:
        """Render the tree for debugging."""
        pad = "  " * indent
        lines = [f"{pad}{self.name}{' (recovered)' if self.recovered else ''}"]
        for label, elements in self.children.items():
            for element in elements:
                if isinstance(element, Token):
                    lines.append(f"{pad}  {label}: {element.value!r}")
                else:
                    lines.append(f"{pad}  {label}:")
                    lines.append(element.pretty(indent + 2))
        return "\n".join(lines)


def in_source_order(*groups: list[CstNode]) -> list[CstNode]:
    """Merge several slots into one list ordered by source position."""
    merged = [node for group in groups for node in group]
    return sorted(merged, key=lambda node: node.offset)
