"""
Cell parsing for the CellDL grammar.

Handles cell definitions with their inline header properties, body
properties, gateways, component blocks, clusters and internal flows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..cst import CstNode
from ..lexer import TokenType
from .base import CELL_TYPE_TOKENS, COMPONENT_TYPE_TOKENS, NAME_TOKENS, grammar_rule

T = TokenType

CELL_BODY_STARTERS = frozenset(
    {
        T.LABEL,
        T.TYPE,
        T.DESCRIPTION,
        T.GATEWAY,
        T.COMPONENTS,
        T.COMPONENT,
        T.CLUSTER,
        T.CONNECTIONS,
        T.FLOW,
    }
) | (COMPONENT_TYPE_TOKENS - {T.GATEWAY})


class CellParserMixin:
    """
    Mixin providing cell parsing.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    # Type stubs for methods provided by BaseParser and other mixins
    if TYPE_CHECKING:
        current_token: Any
        peek_token: Any
        advance: Any
        match: Any
        match_any: Any
        expect_one_of: Any
        parse_block: Any
        parse_inline_properties: Any
        parse_label_property: Any
        parse_description_property: Any
        parse_type_property: Any
        parse_gateway: Any
        parse_component: Any
        parse_cluster: Any
        parse_components_block: Any
        parse_connections_block: Any
        looks_like_component: Any

    @grammar_rule("cellDefinition")
    def parse_cell(self, node: CstNode) -> None:
        """Parse ``cell Name [type: t] [label: "L"] { ... }``."""
        node.add("Cell", self.advance())
        self.expect_one_of(NAME_TOKENS, node, "name", expected=(T.IDENTIFIER, T.STRING))
        self.parse_inline_properties(node, self.parse_cell_type_property)
        self.parse_block(node, self._parse_cell_item, CELL_BODY_STARTERS, "cellBody")

    def parse_cell_type_property(self) -> CstNode | None:
        return self.parse_type_property(allowed=CELL_TYPE_TOKENS, value_rule="cellTypeValue")

    def _parse_cell_item(self, node: CstNode) -> bool:
        if self.match(T.LABEL):
            node.add("property", self.parse_label_property())
        elif self.match(T.TYPE):
            node.add("property", self.parse_cell_type_property())
        elif self.match(T.DESCRIPTION):
            node.add("property", self.parse_description_property())
        elif self.match(T.GATEWAY):
            node.add("gateway", self.parse_gateway())
        elif self.match(T.COMPONENTS):
            node.add("components", self.parse_components_block())
        elif self.match(T.CLUSTER):
            node.add("component", self.parse_cluster())
        elif self.match(T.CONNECTIONS, T.FLOW):
            node.add("connections", self.parse_connections_block())
        elif self.looks_like_component(exclude_gateway=True):
            node.add("component", self.parse_component())
        else:
            return False
        return True
