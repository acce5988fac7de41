"""
Gateway parsing for the CellDL grammar.

A gateway is the control point of a cell boundary:

    gateway ingress {
        exposes: [api, events]
        policies: [rate-limit]
        auth: federated(Okta)
        protocol https
        port 443
        route "/orders" -> OrderService
    }
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..cst import CstNode
from ..lexer import TokenType
from .base import ENDPOINT_TYPE_TOKENS, RecognitionKind, grammar_rule
from .values import ARRAY_ELEMENT_TOKENS

T = TokenType

GATEWAY_POSITIONS = ("north", "south", "east", "west")

GATEWAY_STARTERS = frozenset(
    {
        T.LABEL,
        T.EXPOSES,
        T.POLICIES,
        T.AUTH,
        T.ROUTE,
        T.PROTOCOL,
        T.PORT,
        T.CONTEXT,
        T.TARGET,
        T.POLICY,
        T.IDENTIFIER,
    }
)

_ATTRIBUTE_KEYS = frozenset({T.PROTOCOL, T.PORT, T.CONTEXT, T.TARGET, T.POLICY, T.IDENTIFIER})


class GatewayParserMixin:
    """
    Mixin providing gateway parsing.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    # Type stubs for methods provided by BaseParser and other mixins
    if TYPE_CHECKING:
        current_token: Any
        advance: Any
        match: Any
        match_any: Any
        accept: Any
        expect: Any
        expect_close: Any
        expect_colon: Any
        record: Any
        parse_block: Any
        parse_attribute: Any
        parse_label_property: Any
        parse_list_body: Any
        parse_reference: Any

    @grammar_rule("gatewayDefinition")
    def parse_gateway(self, node: CstNode) -> None:
        """Parse ``gateway [ingress|egress] [Name] { ... }``."""
        node.add("Gateway", self.advance())
        if self.match(T.INGRESS, T.EGRESS):
            node.add("direction", self.advance())
        if self.match(T.IDENTIFIER, T.STRING):
            node.add("name", self.advance())
        self.parse_block(node, self._parse_gateway_item, GATEWAY_STARTERS, "gatewayBody")

    def _parse_gateway_item(self, node: CstNode) -> bool:
        token = self.current_token()
        if token.type == T.LABEL:
            node.add("property", self.parse_label_property())
        elif token.type == T.EXPOSES:
            node.add("property", self.parse_exposes_property())
        elif token.type == T.POLICIES:
            node.add("property", self.parse_policies_property())
        elif token.type == T.AUTH:
            node.add("property", self.parse_auth_property())
        elif token.type == T.ROUTE:
            node.add("route", self.parse_route())
        elif token.type == T.IDENTIFIER and token.value.lower() == "position":
            node.add("property", self.parse_position_property())
        elif token.type in _ATTRIBUTE_KEYS:
            node.add("attribute", self.parse_attribute())
        else:
            return False
        return True

    @grammar_rule("exposesProperty", discard_on_error=True)
    def parse_exposes_property(self, node: CstNode) -> None:
        self.parse_list_body(
            node, element_types=ENDPOINT_TYPE_TOKENS, invalid_rule="endpointType", required=True
        )

    @grammar_rule("policiesProperty", discard_on_error=True)
    def parse_policies_property(self, node: CstNode) -> None:
        self.parse_list_body(node, element_types=ARRAY_ELEMENT_TOKENS)

    @grammar_rule("authProperty", discard_on_error=True)
    def parse_auth_property(self, node: CstNode) -> None:
        """Parse ``auth: local-sts`` or ``auth: federated(Reference)``."""
        key = self.advance()
        node.add("key", key)
        self.expect_colon(key, node)

        if self.match(T.LOCAL_STS):
            node.add("authType", self.advance())
        elif self.match(T.FEDERATED):
            node.add("authType", self.advance())
            if self.match(T.LPAREN):
                opener = self.advance()
                node.add("LParen", opener)
                node.add("reference", self.parse_reference())
                self.expect_close(opener, T.RPAREN, node, "RParen")
        else:
            self.record(
                RecognitionKind.NO_VIABLE_ALTERNATIVE,
                expected=(T.LOCAL_STS, T.FEDERATED),
                rule_name="authType",
            )

    @grammar_rule("positionProperty", discard_on_error=True)
    def parse_position_property(self, node: CstNode) -> None:
        """Parse ``position: north|south|east|west``."""
        key = self.advance()
        node.add("key", key)
        self.expect_colon(key, node)

        token = self.current_token()
        if token.type in (T.IDENTIFIER, T.STRING):
            if token.value.strip('"').lower() not in GATEWAY_POSITIONS:
                self.record(RecognitionKind.INVALID_VALUE, rule_name="gatewayPosition")
            node.add("value", self.advance())
        else:
            self.expect(T.IDENTIFIER, node, "value")

    @grammar_rule("routeDefinition", discard_on_error=True)
    def parse_route(self, node: CstNode) -> None:
        """Parse ``route "/path" -> Target``."""
        node.add("Route", self.advance())
        self.expect(T.STRING, node, "path")
        self.expect(T.ARROW, node, "Arrow")
        node.add("target", self.parse_reference())
