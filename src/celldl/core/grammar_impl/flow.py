"""
Connection and flow parsing for the CellDL grammar.

Both ``connections { ... }`` and ``flow [Name] { ... }`` hold chains:

    northbound WebApp -> Orders.api -> Payments : "checkout" [protocol: https]

A chain of N endpoints describes N-1 edges; the visitor performs the
desugaring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..cst import CstNode
from ..lexer import TokenType
from .base import DIRECTION_TOKENS, REFERENCE_TOKENS, grammar_rule
from .values import KEY_TOKENS

T = TokenType

CHAIN_STARTERS = REFERENCE_TOKENS | DIRECTION_TOKENS


class FlowParserMixin:
    """
    Mixin providing connections/flow block parsing.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    # Type stubs for methods provided by BaseParser and other mixins
    if TYPE_CHECKING:
        current_token: Any
        peek_token: Any
        advance: Any
        match: Any
        match_any: Any
        expect: Any
        expect_close: Any
        parse_block: Any
        parse_bracket_items: Any
        parse_attribute: Any
        parse_reference: Any

    @grammar_rule("connectionsBlock")
    def parse_connections_block(self, node: CstNode) -> None:
        """Parse ``connections { ... }`` or ``flow [Name] { ... }``."""
        node.add("keyword", self.advance())
        if self.match(T.IDENTIFIER, T.STRING):
            node.add("name", self.advance())
        self.parse_block(node, self._parse_chain_item, CHAIN_STARTERS, "connection")

    def _parse_chain_item(self, node: CstNode) -> bool:
        if not self.match_any(CHAIN_STARTERS):
            return False
        node.add("chain", self.parse_connection_chain())
        return True

    def _at_direction(self) -> bool:
        return self.match_any(DIRECTION_TOKENS) and self.peek_token().type not in (
            T.ARROW,
            T.DOT,
            T.COLON,
        )

    @grammar_rule("connectionChain", discard_on_error=True)
    def parse_connection_chain(self, node: CstNode) -> None:
        """Parse ``[direction] A -> B (-> C)* [: "label"] [attributes]``."""
        if self._at_direction():
            node.add("direction", self.advance())

        node.add("endpoint", self.parse_reference())
        self.expect(T.ARROW, node, "Arrow")
        node.add("endpoint", self.parse_reference())
        while self.match(T.ARROW):
            node.add("Arrow", self.advance())
            node.add("endpoint", self.parse_reference())

        if self.match(T.COLON):
            node.add("Colon", self.advance())
            self.expect(T.STRING, node, "label")
        if self.match(T.LBRACKET):
            node.add("attributes", self.parse_connection_attributes())

    @grammar_rule("connectionAttributes")
    def parse_connection_attributes(self, node: CstNode) -> None:
        """Parse ``[direction, key: value, ...]``."""
        opener = self.advance()
        node.add("LBracket", opener)
        self.parse_bracket_items(node, self._parse_connection_attribute, "connectionAttribute")
        self.expect_close(opener, T.RBRACKET, node, "RBracket")

    def _parse_connection_attribute(self, node: CstNode) -> bool:
        if self._at_direction():
            node.add("direction", self.advance())
        elif self.match_any(KEY_TOKENS):
            node.add("attribute", self.parse_attribute())
        else:
            return False
        return True
