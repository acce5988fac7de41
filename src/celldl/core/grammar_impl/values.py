"""
Value and property parsing for the CellDL grammar.

Handles attribute values, array literals, attribute blocks (both the
``[key: value, ...]`` and ``{ key value ... }`` forms), env blocks,
references, and the keyed properties shared by several constructs
(label, description, version, type, list-valued properties).
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ..cst import CstNode
from ..lexer import KEYWORD_TYPES, TokenType
from .base import (
    REFERENCE_TOKENS,
    VALUE_KEYWORDS,
    RecognitionKind,
    grammar_rule,
)

T = TokenType

ARRAY_ELEMENT_TOKENS = frozenset({T.STRING, T.NUMBER, T.IDENTIFIER}) | VALUE_KEYWORDS
KEY_TOKENS = frozenset({T.IDENTIFIER}) | KEYWORD_TYPES
NUMERIC_KEYS = frozenset({T.PORT, T.REPLICAS})
VALUE_STARTERS = (T.STRING, T.NUMBER, T.TRUE, T.FALSE, T.LBRACKET, T.IDENTIFIER)
_BARE_VALUES = frozenset({T.STRING, T.IDENTIFIER}) | VALUE_KEYWORDS


class ValueParserMixin:
    """
    Mixin providing value, attribute and simple property parsing.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    # Type stubs for methods provided by BaseParser and other mixins
    if TYPE_CHECKING:
        current_token: Any
        peek_token: Any
        advance: Any
        match: Any
        match_any: Any
        accept: Any
        expect: Any
        expect_one_of: Any
        expect_close: Any
        expect_colon: Any
        record: Any
        parse_block: Any
        errors: Any

    # -- Values -------------------------------------------------------------

    @grammar_rule("attributeValue")
    def parse_value(self, node: CstNode, only: TokenType | None = None) -> None:
        """Parse a string, number, boolean, array or bare identifier value."""
        if only is not None:
            found = self.expect(only, node, _VALUE_SLOTS.get(only, "identifier"))
            # Consume a wrongly-typed word so the enclosing list stays in step
            if found is None and self.match_any(_BARE_VALUES):
                self.advance()
            return

        token = self.current_token()
        if token.type == T.STRING:
            node.add("string", self.advance())
        elif token.type == T.NUMBER:
            node.add("number", self.advance())
        elif token.type in (T.TRUE, T.FALSE):
            node.add("boolean", self.advance())
        elif token.type == T.LBRACKET:
            node.add("array", self.parse_array())
        elif token.type == T.IDENTIFIER or token.type in VALUE_KEYWORDS:
            node.add("identifier", self.advance())
        else:
            self.record(RecognitionKind.NO_VIABLE_ALTERNATIVE, expected=VALUE_STARTERS)

    @grammar_rule("arrayLiteral")
    def parse_array(
        self,
        node: CstNode,
        element_types: frozenset[TokenType] = ARRAY_ELEMENT_TOKENS,
        invalid_rule: str | None = None,
        required: bool = False,
    ) -> None:
        """
        Parse ``[element, ...]``.

        Args:
            element_types: Tokens accepted as elements
            invalid_rule: When set, other words are reported as invalid values of this rule
            required: Report an empty array as an early exit
        """
        opener = self.expect(T.LBRACKET, node, "LBracket")
        if opener is None:
            return
        errors_before = len(self.errors)

        def parse_element(target: CstNode) -> bool:
            token = self.current_token()
            if token.type in element_types:
                target.add("element", self.advance())
                return True
            if invalid_rule is not None and token.type in ARRAY_ELEMENT_TOKENS:
                self.record(RecognitionKind.INVALID_VALUE, rule_name=invalid_rule)
                self.advance()
                return True
            return False

        self.parse_bracket_items(node, parse_element, "arrayElement")
        if required and not node.has("element") and len(self.errors) == errors_before:
            self.record(
                RecognitionKind.EARLY_EXIT,
                expected=sorted(element_types, key=lambda t: t.name),
                rule_name=self._enclosing_rule(),
            )
        self.expect_close(opener, T.RBRACKET, node, "RBracket")

    def parse_bracket_items(
        self, node: CstNode, parse_item: Callable[[CstNode], bool], item_rule: str
    ) -> None:
        """Parse comma-separated items up to (not including) the closing bracket."""
        while not self.match(T.RBRACKET, T.RBRACE, T.EOF):
            if not parse_item(node):
                self.record(
                    RecognitionKind.NO_VIABLE_ALTERNATIVE, rule_name=item_rule
                )
                self.advance()
                continue
            if self.accept(T.COMMA):
                continue
            if not self.match(T.RBRACKET, T.RBRACE, T.EOF):
                self.record(RecognitionKind.MISMATCHED_TOKEN, expected=(T.COMMA,))

    def _enclosing_rule(self) -> str:
        stack = self.rule_stack  # type: ignore[attr-defined]
        return stack[-2] if len(stack) > 1 else stack[-1]

    # -- Attributes ---------------------------------------------------------

    @grammar_rule("attribute", discard_on_error=True)
    def parse_attribute(self, node: CstNode) -> None:
        """Parse ``key: value``. Ports and replica counts must be numbers."""
        key = self.expect_one_of(KEY_TOKENS, node, "key", expected=(T.IDENTIFIER,))
        if key is None:
            return
        self.expect_colon(key, node)

        if key.type in NUMERIC_KEYS:
            node.add("value", self.parse_value(only=T.NUMBER))
            return
        if key.type == T.PROTOCOL and self.match(T.IDENTIFIER):
            self.record(RecognitionKind.INVALID_VALUE, rule_name="protocolValue")
        node.add("value", self.parse_value())

    @grammar_rule("attributeBlock")
    def parse_attribute_block(self, node: CstNode) -> None:
        """Parse ``[key: value, ...]`` or ``{ key: value ... }``."""
        if self.match(T.LBRACKET):
            opener = self.advance()
            node.add("LBracket", opener)
            self.parse_bracket_items(node, self._parse_bracket_attribute, "attribute")
            self.expect_close(opener, T.RBRACKET, node, "RBracket")
        else:
            self.parse_block(node, self._parse_brace_attribute, KEY_TOKENS, "attribute")

    def _parse_bracket_attribute(self, node: CstNode) -> bool:
        if not self.match_any(KEY_TOKENS):
            return False
        node.add("attribute", self.parse_attribute())
        return True

    def _parse_brace_attribute(self, node: CstNode) -> bool:
        if self.match(T.ENV) and self.peek_token().type == T.LBRACE:
            node.add("env", self.parse_env_block())
            return True
        if not self.match_any(KEY_TOKENS):
            return False
        node.add("attribute", self.parse_attribute())
        self.accept(T.COMMA)
        return True

    @grammar_rule("envBlock")
    def parse_env_block(self, node: CstNode) -> None:
        """Parse ``env { KEY = "value" ... }``."""
        node.add("Env", self.advance())
        self.parse_block(node, self._parse_env_item, KEY_TOKENS, "envEntry")

    def _parse_env_item(self, node: CstNode) -> bool:
        if not self.match_any(KEY_TOKENS):
            return False
        node.add("entry", self.parse_env_entry())
        self.accept(T.COMMA)
        return True

    @grammar_rule("envEntry", discard_on_error=True)
    def parse_env_entry(self, node: CstNode) -> None:
        node.add("key", self.advance())
        self.expect(T.EQUALS, node, "Equals")
        node.add("value", self.parse_value())

    # -- References ---------------------------------------------------------

    @grammar_rule("reference")
    def parse_reference(self, node: CstNode) -> None:
        """Parse ``Entity`` or ``Entity.Component``; either half may be quoted."""
        name_expected = (T.IDENTIFIER, T.STRING)
        self.expect_one_of(REFERENCE_TOKENS, node, "entity", expected=name_expected)
        if self.match(T.DOT):
            node.add("Dot", self.advance())
            self.expect_one_of(REFERENCE_TOKENS, node, "component", expected=name_expected)

    # -- Keyed properties ---------------------------------------------------

    def _parse_string_property(self, node: CstNode, optional_colon: bool = False) -> None:
        key = self.advance()
        node.add("key", key)
        if optional_colon:
            node.add("Colon", self.accept(T.COLON))
        else:
            self.expect_colon(key, node)
        self.expect(T.STRING, node, "value")

    @grammar_rule("labelProperty", discard_on_error=True)
    def parse_label_property(self, node: CstNode) -> None:
        self._parse_string_property(node)

    @grammar_rule("descriptionProperty", discard_on_error=True)
    def parse_description_property(self, node: CstNode, optional_colon: bool = False) -> None:
        self._parse_string_property(node, optional_colon)

    @grammar_rule("versionProperty", discard_on_error=True)
    def parse_version_property(self, node: CstNode) -> None:
        self._parse_string_property(node)

    @grammar_rule("typeProperty", discard_on_error=True)
    def parse_type_property(
        self, node: CstNode, allowed: frozenset[TokenType], value_rule: str
    ) -> None:
        """
        Parse ``type: value`` against a closed vocabulary.

        A word outside the vocabulary is consumed and reported as an invalid
        value of ``value_rule`` so the recovery engine can suggest a correction.
        """
        key = self.advance()
        node.add("key", key)
        self.expect_colon(key, node)

        token = self.current_token()
        vocabulary = {token_type.value for token_type in allowed}
        if token.type in allowed:
            node.add("value", self.advance())
        elif token.type == T.STRING and token.value[1:-1] in vocabulary:
            node.add("value", self.advance())
        elif token.type in (T.IDENTIFIER, T.STRING) or token.type in VALUE_KEYWORDS:
            self.record(RecognitionKind.INVALID_VALUE, rule_name=value_rule)
            self.advance()
        else:
            self.record(
                RecognitionKind.NO_VIABLE_ALTERNATIVE,
                expected=sorted(allowed, key=lambda t: t.name),
                rule_name=value_rule,
            )

    @grammar_rule("replicasProperty", discard_on_error=True)
    def parse_replicas_property(self, node: CstNode) -> None:
        key = self.advance()
        node.add("key", key)
        self.expect_colon(key, node)
        self.expect(T.NUMBER, node, "value")

    def parse_list_body(
        self,
        node: CstNode,
        element_types: frozenset[TokenType] = ARRAY_ELEMENT_TOKENS,
        invalid_rule: str | None = None,
        required: bool = False,
    ) -> None:
        """Parse ``key: [ ... ]`` into node."""
        key = self.advance()
        node.add("key", key)
        self.expect_colon(key, node)
        node.add(
            "value",
            self.parse_array(element_types=element_types, invalid_rule=invalid_rule, required=required),
        )

    def parse_inline_properties(
        self, node: CstNode, parse_type: Callable[[], CstNode | None]
    ) -> None:
        """Parse ``type``/``label`` properties written between a name and its body."""
        while True:
            if self.match(T.TYPE):
                node.add("property", parse_type())
            elif self.match(T.LABEL):
                node.add("property", self.parse_label_property())
            else:
                return


_VALUE_SLOTS = {
    T.STRING: "string",
    T.NUMBER: "number",
    T.TRUE: "boolean",
    T.FALSE: "boolean",
}
