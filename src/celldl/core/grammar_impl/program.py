"""
Top-level parsing for the CellDL grammar.

The entry rule accepts three coexisting dialects, tried in order:

- named root:   workspace "Name" { version/description/property + statements }
- legacy root:  diagram Name { statements }
- plain:        a bare sequence of statements
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..cst import CstNode
from ..lexer import TokenType
from .base import NAME_TOKENS, STATEMENT_STARTERS, RecognitionKind, grammar_rule
from .values import KEY_TOKENS

T = TokenType

WORKSPACE_STARTERS = STATEMENT_STARTERS | {T.VERSION, T.DESCRIPTION, T.PROPERTY}


class ProgramParserMixin:
    """
    Mixin providing program, wrapper and statement dispatch parsing.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    # Type stubs for methods provided by BaseParser and other mixins
    if TYPE_CHECKING:
        current_token: Any
        advance: Any
        match: Any
        accept: Any
        at_end: Any
        expect_one_of: Any
        expect_colon: Any
        record: Any
        synchronize: Any
        parse_block: Any
        parse_value: Any
        parse_version_property: Any
        parse_description_property: Any
        parse_cell: Any
        parse_external: Any
        parse_user: Any
        parse_application: Any
        parse_connections_block: Any

    @grammar_rule("program")
    def parse_program(self, node: CstNode) -> None:
        """Parse the whole token stream."""
        if self.match(T.WORKSPACE):
            node.add("workspace", self.parse_workspace())
        elif self.match(T.DIAGRAM):
            node.add("diagram", self.parse_diagram())
        else:
            self.parse_statements(node)
            return

        if not self.at_end():
            self.record(RecognitionKind.NOT_ALL_INPUT_PARSED)

    def parse_statements(self, node: CstNode) -> None:
        """Parse statements until end of input."""
        while not self.at_end():
            if self.parse_statement(node):
                continue
            self.record(
                RecognitionKind.NO_VIABLE_ALTERNATIVE,
                expected=sorted(STATEMENT_STARTERS, key=lambda t: t.name),
                rule_name="statement",
            )
            self.synchronize(STATEMENT_STARTERS)

    def parse_statement(self, node: CstNode) -> bool:
        """
        Parse one statement into the ``statement`` slot.

        Returns:
            False if the current token cannot start a statement
        """
        if self.match(T.CELL):
            node.add("statement", self.parse_cell())
        elif self.match(T.EXTERNAL):
            node.add("statement", self.parse_external())
        elif self.match(T.USER):
            node.add("statement", self.parse_user())
        elif self.match(T.APPLICATION):
            node.add("statement", self.parse_application())
        elif self.match(T.CONNECTIONS, T.FLOW):
            node.add("statement", self.parse_connections_block())
        else:
            return False
        return True

    @grammar_rule("workspaceDefinition")
    def parse_workspace(self, node: CstNode) -> None:
        node.add("Workspace", self.advance())
        self.expect_one_of(NAME_TOKENS, node, "name", expected=(T.STRING, T.IDENTIFIER))
        self.parse_block(
            node,
            self._parse_workspace_item,
            WORKSPACE_STARTERS,
            "workspaceItem",
            stop_at_statements=False,
        )

    def _parse_workspace_item(self, node: CstNode) -> bool:
        if self.match(T.VERSION):
            node.add("version", self.parse_version_property())
        elif self.match(T.DESCRIPTION):
            node.add("description", self.parse_description_property(optional_colon=True))
        elif self.match(T.PROPERTY):
            node.add("property", self.parse_workspace_property())
        else:
            return self.parse_statement(node)
        return True

    @grammar_rule("workspaceProperty", discard_on_error=True)
    def parse_workspace_property(self, node: CstNode) -> None:
        """Parse ``property key: value``."""
        node.add("Property", self.advance())
        key = self.expect_one_of(KEY_TOKENS | {T.STRING}, node, "key", expected=(T.IDENTIFIER,))
        if key is None:
            return
        node.add("Colon", self.accept(T.COLON))
        node.add("value", self.parse_value())

    @grammar_rule("diagramDefinition")
    def parse_diagram(self, node: CstNode) -> None:
        node.add("Diagram", self.advance())
        self.expect_one_of(NAME_TOKENS, node, "name", expected=(T.IDENTIFIER, T.STRING))
        self.parse_block(
            node,
            self.parse_statement,
            STATEMENT_STARTERS,
            "statement",
            stop_at_statements=False,
        )
