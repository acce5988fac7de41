"""
External system, user and application parsing for the CellDL grammar.

Externals and users may omit their body when everything fits on the
header line:

    external Stripe type: saas
    user Customer type: external label "Shopper"
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..cst import CstNode
from ..lexer import TokenType
from .base import (
    ENDPOINT_TYPE_TOKENS,
    EXTERNAL_TYPE_TOKENS,
    NAME_TOKENS,
    USER_TYPE_TOKENS,
    grammar_rule,
)
from .values import ARRAY_ELEMENT_TOKENS

T = TokenType

EXTERNAL_STARTERS = frozenset({T.LABEL, T.TYPE, T.PROVIDES})
USER_STARTERS = frozenset({T.LABEL, T.TYPE, T.CHANNELS})
APPLICATION_STARTERS = frozenset({T.LABEL, T.VERSION, T.CELLS, T.GATEWAY})

_CELL_LIST_TOKENS = NAME_TOKENS


class ActorParserMixin:
    """
    Mixin providing external, user and application parsing.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    # Type stubs for methods provided by BaseParser and other mixins
    if TYPE_CHECKING:
        advance: Any
        match: Any
        expect_one_of: Any
        parse_block: Any
        parse_inline_properties: Any
        parse_label_property: Any
        parse_version_property: Any
        parse_type_property: Any
        parse_list_body: Any
        parse_gateway: Any

    # -- External -----------------------------------------------------------

    @grammar_rule("externalDefinition")
    def parse_external(self, node: CstNode) -> None:
        """Parse ``external Name [type: t] [label: "L"] [{ ... }]``."""
        node.add("External", self.advance())
        self.expect_one_of(NAME_TOKENS, node, "name", expected=(T.IDENTIFIER, T.STRING))
        self.parse_inline_properties(node, self.parse_external_type_property)
        if self.match(T.LBRACE):
            self.parse_block(node, self._parse_external_item, EXTERNAL_STARTERS, "externalBody")

    def parse_external_type_property(self) -> CstNode | None:
        return self.parse_type_property(allowed=EXTERNAL_TYPE_TOKENS, value_rule="externalType")

    def _parse_external_item(self, node: CstNode) -> bool:
        if self.match(T.LABEL):
            node.add("property", self.parse_label_property())
        elif self.match(T.TYPE):
            node.add("property", self.parse_external_type_property())
        elif self.match(T.PROVIDES):
            node.add("property", self.parse_provides_property())
        else:
            return False
        return True

    @grammar_rule("providesProperty", discard_on_error=True)
    def parse_provides_property(self, node: CstNode) -> None:
        self.parse_list_body(node, element_types=ENDPOINT_TYPE_TOKENS, invalid_rule="endpointType")

    # -- User ---------------------------------------------------------------

    @grammar_rule("userDefinition")
    def parse_user(self, node: CstNode) -> None:
        """Parse ``user Name [type: t] [label: "L"] [{ ... }]``."""
        node.add("User", self.advance())
        self.expect_one_of(NAME_TOKENS, node, "name", expected=(T.IDENTIFIER, T.STRING))
        self.parse_inline_properties(node, self.parse_user_type_property)
        if self.match(T.LBRACE):
            self.parse_block(node, self._parse_user_item, USER_STARTERS, "userBody")

    def parse_user_type_property(self) -> CstNode | None:
        return self.parse_type_property(allowed=USER_TYPE_TOKENS, value_rule="userType")

    def _parse_user_item(self, node: CstNode) -> bool:
        if self.match(T.LABEL):
            node.add("property", self.parse_label_property())
        elif self.match(T.TYPE):
            node.add("property", self.parse_user_type_property())
        elif self.match(T.CHANNELS):
            node.add("property", self.parse_channels_property())
        else:
            return False
        return True

    @grammar_rule("channelsProperty", discard_on_error=True)
    def parse_channels_property(self, node: CstNode) -> None:
        self.parse_list_body(node, element_types=ARRAY_ELEMENT_TOKENS)

    # -- Application --------------------------------------------------------

    @grammar_rule("applicationDefinition")
    def parse_application(self, node: CstNode) -> None:
        """Parse ``application Name { label, version, cells: [...], gateway }``."""
        node.add("Application", self.advance())
        self.expect_one_of(NAME_TOKENS, node, "name", expected=(T.IDENTIFIER, T.STRING))
        self.parse_block(node, self._parse_application_item, APPLICATION_STARTERS, "applicationBody")

    def _parse_application_item(self, node: CstNode) -> bool:
        if self.match(T.LABEL):
            node.add("property", self.parse_label_property())
        elif self.match(T.VERSION):
            node.add("property", self.parse_version_property())
        elif self.match(T.CELLS):
            node.add("property", self.parse_cells_property())
        elif self.match(T.GATEWAY):
            node.add("gateway", self.parse_gateway())
        else:
            return False
        return True

    @grammar_rule("cellsProperty", discard_on_error=True)
    def parse_cells_property(self, node: CstNode) -> None:
        self.parse_list_body(node, element_types=_CELL_LIST_TOKENS, required=True)
