"""
CellDL - a text DSL for cell-based architecture diagrams.

Parses CellDL source into an immutable AST with rich, editor-ready
diagnostics, and prints ASTs back to canonical source.
"""

from __future__ import annotations

from ._version import get_version
from .core import ast
from .core.ast import Program
from .core.diagnostics.collector import ErrorCollector, to_editor_markers, to_lsp_diagnostics
from .core.diagnostics.recovery import find_closest_match
from .core.errors import CellDLError, CellDLParseError, ConfigError, VisitError
from .core.parser import (
    ParseError,
    ParseResult,
    RecoveryResult,
    parse,
    parse_or_throw,
    parse_with_recovery,
    tokenize,
    validate,
)
from .core.printer import StringifyOptions, stringify

__version__ = get_version()

__all__ = [
    "__version__",
    "ast",
    "Program",
    "parse",
    "parse_or_throw",
    "validate",
    "parse_with_recovery",
    "tokenize",
    "stringify",
    "StringifyOptions",
    "ParseError",
    "ParseResult",
    "RecoveryResult",
    "ErrorCollector",
    "to_lsp_diagnostics",
    "to_editor_markers",
    "find_closest_match",
    "CellDLError",
    "CellDLParseError",
    "ConfigError",
    "VisitError",
]
