"""Core CellDL functionality: lexer, grammar parser, AST builders, diagnostics, printer."""

from . import ast
from .config import CellDLConfig, find_config, load_config
from .diagnostics.codes import (
    EnhancedParseError,
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    SuggestedFix,
    TextRange,
)
from .diagnostics.collector import (
    EditorMarker,
    ErrorCollector,
    collect_all_errors,
    to_editor_markers,
    to_lsp_diagnostics,
)
from .diagnostics.recovery import find_closest_match
from .errors import CellDLError, CellDLParseError, ConfigError, ErrorContext, VisitError
from .lexer import LexError, Token, TokenizeResult, TokenType
from .parser import (
    ParseError,
    ParseResult,
    RecoveryResult,
    parse,
    parse_or_throw,
    parse_with_recovery,
    tokenize,
    validate,
)
from .printer import StringifyOptions, stringify

__all__ = [
    "ast",
    # Entry points
    "parse",
    "parse_or_throw",
    "validate",
    "parse_with_recovery",
    "tokenize",
    "stringify",
    "ParseError",
    "ParseResult",
    "RecoveryResult",
    "StringifyOptions",
    # Tokens
    "Token",
    "TokenType",
    "TokenizeResult",
    "LexError",
    # Diagnostics
    "EnhancedParseError",
    "ErrorCategory",
    "ErrorCode",
    "ErrorSeverity",
    "SuggestedFix",
    "TextRange",
    "ErrorCollector",
    "EditorMarker",
    "collect_all_errors",
    "to_lsp_diagnostics",
    "to_editor_markers",
    "find_closest_match",
    # Exceptions
    "CellDLError",
    "CellDLParseError",
    "ConfigError",
    "ErrorContext",
    "VisitError",
    # Configuration
    "CellDLConfig",
    "find_config",
    "load_config",
]
