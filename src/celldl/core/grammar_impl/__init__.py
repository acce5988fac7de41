"""
CellDL grammar parser package.

This package provides a recovering recursive-descent parser for the CellDL
DSL. The parser is built using mixins to separate parsing logic by construct
type, and produces a concrete syntax tree (CstNode) plus the recognition
errors found along the way.

The main exports are:
- Parser: The complete parser class
- parse_tokens: Convenience function to parse a token list

Usage:
    from celldl.core.grammar_impl import parse_tokens

    outcome = parse_tokens(tokenize(text).tokens)
    outcome.cst, outcome.errors
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..cst import CstNode
from ..lexer import Token
from .actors import ActorParserMixin
from .base import BaseParser, ParseAbort, RecognitionError, RecognitionKind, grammar_rule
from .cell import CellParserMixin
from .component import ComponentParserMixin
from .flow import FlowParserMixin
from .gateway import GatewayParserMixin
from .program import ProgramParserMixin
from .values import ValueParserMixin

logger = logging.getLogger(__name__)


@dataclass
class ParseOutcome:
    """A concrete syntax tree and the recognition errors recorded while building it."""

    cst: CstNode
    errors: list[RecognitionError] = field(default_factory=list)


class Parser(
    BaseParser,
    ValueParserMixin,
    ProgramParserMixin,
    CellParserMixin,
    GatewayParserMixin,
    ComponentParserMixin,
    FlowParserMixin,
    ActorParserMixin,
):
    """
    Complete CellDL parser.

    This class composes all parser mixins to provide full grammar coverage.
    Each mixin provides parsing for a specific construct type:

    - ValueParserMixin: Values, arrays, attributes, references, shared properties
    - ProgramParserMixin: Dialect wrappers and statement dispatch
    - CellParserMixin: Cell definitions
    - GatewayParserMixin: Gateway blocks
    - ComponentParserMixin: Components, component blocks and clusters
    - FlowParserMixin: Connections and flow chains
    - ActorParserMixin: External systems, users and applications

    A parser instance is single-use: construct one per token stream.
    """

    def parse(self) -> ParseOutcome:
        """
        Parse the token stream.

        Returns:
            ParseOutcome with the program CST and all recorded errors. Without
            recovery, parsing stops at the first error and the CST is partial.
        """
        try:
            cst = self.parse_program()
        except ParseAbort:
            cst = CstNode("program", recovered=True)
        logger.debug(f"Parsed {len(self.tokens)} tokens with {len(self.errors)} syntax errors")
        return ParseOutcome(cst=cst, errors=list(self.errors))


def parse_tokens(tokens: list[Token], recovery_enabled: bool = True) -> ParseOutcome:
    """
    Convenience function to parse a token list.

    Args:
        tokens: Tokens from the lexer
        recovery_enabled: Keep parsing after errors

    Returns:
        ParseOutcome with CST and errors
    """
    return Parser(tokens, recovery_enabled=recovery_enabled).parse()


__all__ = [
    "Parser",
    "ParseOutcome",
    "RecognitionError",
    "RecognitionKind",
    "grammar_rule",
    "parse_tokens",
]
