"""
Component and cluster parsing for the CellDL grammar.

Components are written ``<type> Name [attributes]`` or
``component Name { type: <type> ... }``. An unknown type word followed by a
name is parsed as a component with an invalid type, which lets the recovery
engine offer a spelling correction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..cst import CstNode
from ..lexer import TokenType
from .base import COMPONENT_TYPE_TOKENS, NAME_TOKENS, RecognitionKind, grammar_rule

T = TokenType

COMPONENT_STARTERS = COMPONENT_TYPE_TOKENS | {T.COMPONENT, T.CLUSTER}
CLUSTER_STARTERS = COMPONENT_TYPE_TOKENS | {T.COMPONENT, T.TYPE, T.REPLICAS}


class ComponentParserMixin:
    """
    Mixin providing component, components-block and cluster parsing.

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
        record: Any
        parse_block: Any
        parse_attribute_block: Any
        parse_type_property: Any
        parse_replicas_property: Any

    def looks_like_component(self, exclude_gateway: bool = False) -> bool:
        """Whether the current token starts a component definition."""
        token_type = self.current_token().type
        if token_type == T.GATEWAY and exclude_gateway:
            return False
        if token_type in COMPONENT_TYPE_TOKENS or token_type == T.COMPONENT:
            return True
        # Misspelled type followed by a name
        return token_type == T.IDENTIFIER and self.peek_token().type in (T.IDENTIFIER, T.STRING)

    @grammar_rule("componentDefinition")
    def parse_component(self, node: CstNode) -> None:
        token = self.current_token()
        if token.type in COMPONENT_TYPE_TOKENS or token.type == T.COMPONENT:
            node.add("componentType", self.advance())
        else:
            self.record(RecognitionKind.INVALID_VALUE, rule_name="componentType")
            node.add("invalidType", self.advance())

        self.expect_one_of(NAME_TOKENS, node, "name", expected=(T.IDENTIFIER, T.STRING))
        if self.match(T.LBRACKET, T.LBRACE):
            node.add("attributes", self.parse_attribute_block())

    @grammar_rule("componentsBlock")
    def parse_components_block(self, node: CstNode) -> None:
        """Parse ``components { ... }``."""
        node.add("Components", self.advance())
        self.parse_block(node, self._parse_components_item, COMPONENT_STARTERS, "componentDefinition")

    def _parse_components_item(self, node: CstNode) -> bool:
        if self.match(T.CLUSTER):
            node.add("component", self.parse_cluster())
        elif self.looks_like_component():
            node.add("component", self.parse_component())
        else:
            return False
        return True

    @grammar_rule("clusterDefinition")
    def parse_cluster(self, node: CstNode) -> None:
        """Parse ``cluster Name { type: t  replicas: n  <components> }``."""
        node.add("Cluster", self.advance())
        self.expect_one_of(NAME_TOKENS, node, "name", expected=(T.IDENTIFIER, T.STRING))
        self.parse_block(node, self._parse_cluster_item, CLUSTER_STARTERS, "clusterBody")

    def _parse_cluster_item(self, node: CstNode) -> bool:
        if self.match(T.TYPE):
            node.add(
                "property",
                self.parse_type_property(allowed=COMPONENT_TYPE_TOKENS, value_rule="componentType"),
            )
        elif self.match(T.REPLICAS):
            node.add("property", self.parse_replicas_property())
        elif self.looks_like_component():
            node.add("component", self.parse_component())
        else:
            return False
        return True
