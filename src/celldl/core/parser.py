"""
Public parsing entry points for CellDL source.

Strict entry points (``parse``, ``parse_or_throw``, ``validate``) treat any
diagnostic as failure. ``parse_with_recovery`` never fails: it always
returns an AST, possibly containing ErrorNodes, together with enriched
diagnostics for editor tooling.

Each call builds its own lexer, parser and AST builder; no state is shared
between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .ast import Program, count_error_nodes
from .diagnostics.codes import EnhancedParseError
from .diagnostics.collector import ErrorCollector
from .errors import CellDLParseError, VisitError
from .grammar_impl import ParseOutcome, Parser
from .lexer import tokenize
from .visitor import AstBuilder, TolerantAstBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseError:
    """
    A syntax error reported by the strict entry points.

    Attributes:
        message: Human-readable message
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        offset: Source offset (0-indexed)
        length: Length of the offending text
    """

    message: str
    line: int
    column: int
    offset: int
    length: int


@dataclass
class ParseResult:
    """Outcome of a strict parse. ``ast`` is None exactly when there are errors."""

    ast: Program | None
    errors: list[ParseError] = field(default_factory=list)
    success: bool = False


@dataclass
class RecoveryResult:
    """
    Outcome of an error-tolerant parse.

    Attributes:
        ast: Always present; may contain ErrorNodes
        errors: Sorted, deduplicated diagnostics
        success: True if no diagnostics were produced
        is_complete: True if the AST contains no ErrorNodes
        error_node_count: Number of ErrorNodes in the AST
    """

    ast: Program
    errors: list[EnhancedParseError] = field(default_factory=list)
    success: bool = True
    is_complete: bool = True
    error_node_count: int = 0


def _front_end(source: str) -> tuple[ParseOutcome, ErrorCollector]:
    """Tokenize and parse, collecting lexer and parser diagnostics."""
    lexed = tokenize(source)
    outcome = Parser(lexed.tokens).parse()
    collector = ErrorCollector(source)
    collector.add_lexer_errors(lexed.errors)
    collector.add_parser_errors(outcome.errors, lexed.tokens)
    return outcome, collector


def _to_parse_error(error: EnhancedParseError) -> ParseError:
    return ParseError(
        message=error.message,
        line=error.line,
        column=error.column,
        offset=error.offset,
        length=error.length,
    )


def parse(source: str) -> ParseResult:
    """
    Parse CellDL source strictly.

    Args:
        source: DSL text

    Returns:
        ParseResult with the AST when the source is error-free, otherwise
        ``ast=None`` and the list of errors
    """
    outcome, collector = _front_end(source)
    if collector.has_errors():
        errors = [_to_parse_error(e) for e in collector.get_errors()]
        logger.debug(f"Strict parse failed with {len(errors)} errors")
        return ParseResult(ast=None, errors=errors, success=False)

    try:
        program = AstBuilder().build(outcome.cst)
    except VisitError as e:
        line, column = (e.context.line, e.context.column) if e.context else (1, 1)
        error = ParseError(
            message=e.message, line=line, column=column, offset=e.offset, length=e.length
        )
        return ParseResult(ast=None, errors=[error], success=False)

    return ParseResult(ast=program, errors=[], success=True)


def parse_or_throw(source: str) -> Program:
    """
    Parse CellDL source, raising on any error.

    Raises:
        CellDLParseError: With every error listed in the message
    """
    result = parse(source)
    if not result.success or result.ast is None:
        raise CellDLParseError(result.errors)
    return result.ast


def validate(source: str) -> list[ParseError]:
    """Return the errors a strict parse would report (empty when valid)."""
    return parse(source).errors


def parse_with_recovery(source: str) -> RecoveryResult:
    """
    Parse CellDL source, recovering from every error.

    Args:
        source: DSL text (may be incomplete or malformed)

    Returns:
        RecoveryResult whose AST is never None
    """
    outcome, collector = _front_end(source)
    builder = TolerantAstBuilder()
    program = builder.build(outcome.cst)
    collector.add_errors(builder.errors)

    errors = collector.get_errors()
    error_nodes = count_error_nodes(program)
    logger.debug(
        f"Tolerant parse: {len(program.statements)} statements, "
        f"{len(errors)} diagnostics, {error_nodes} error nodes"
    )
    return RecoveryResult(
        ast=program,
        errors=errors,
        success=not errors,
        is_complete=error_nodes == 0,
        error_node_count=error_nodes,
    )


__all__ = [
    "ParseError",
    "ParseResult",
    "RecoveryResult",
    "parse",
    "parse_or_throw",
    "parse_with_recovery",
    "tokenize",
    "validate",
]
