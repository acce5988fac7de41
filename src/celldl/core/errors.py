"""
Exception types for CellDL parsing, tree building and configuration.

Diagnostics are normally returned as data; these exceptions are raised only
by the strict entry points, the strict AST builder and the config loader.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .parser import ParseError


class CellDLError(Exception):
    """Base exception for all CellDL errors."""

    def __init__(self, message: str, context: ErrorContext | None = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class CellDLParseError(CellDLError):
    """
    Raised by ``parse_or_throw`` when the source has syntax errors.

    The message lists every error, one per line, as ``line:column message``.
    """

    def __init__(self, errors: Sequence[ParseError], context: ErrorContext | None = None):
        self.errors = list(errors)
        lines = [f"  {e.line}:{e.column} {e.message}" for e in self.errors]
        summary = f"Parse failed with {len(self.errors)} error(s):"
        super().__init__("\n".join([summary, *lines]), context)


class VisitError(CellDLError):
    """
    Raised by the strict AST builder when a parse tree cannot be converted.

    Examples:
    - A definition missing its name
    - A component type outside the vocabulary
    """

    def __init__(
        self,
        message: str,
        rule_name: str,
        context: ErrorContext | None = None,
        offset: int = 0,
        length: int = 1,
    ):
        self.rule_name = rule_name
        self.offset = offset
        self.length = length
        super().__init__(message, context)


class ConfigError(CellDLError):
    """
    Raised when celldl.toml (or [tool.celldl]) is invalid.

    Examples:
    - Unknown line ending
    - Negative indent
    """

    pass


@dataclass
class ErrorContext:
    """
    Context information for an error, including source location.

    Attributes:
        file: Path to the source file, if known
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional source lines around the error
    """

    file: Path | None
    line: int
    column: int
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "diagram.celldl:10:5"
        """
        location = f"{self.file or '<input>'}:{self.line}:{self.column}"
        if self.snippet:
            return f"{location}\n{self._format_snippet()}"
        return location

    def _format_snippet(self) -> str:
        """Format code snippet with line numbers and error marker."""
        if not self.snippet:
            return ""

        lines = self.snippet.split("\n")
        formatted = []

        # Snippet starts up to two lines before the error
        start_line = max(1, self.line - 2)

        for i, line in enumerate(lines):
            line_num = start_line + i
            prefix = f"{line_num:4d} | "
            formatted.append(prefix + line)
            if line_num == self.line:
                formatted.append(" " * (len(prefix) + self.column - 1) + "^")

        return "\n".join(formatted)


def extract_snippet(source: str, line: int, context_lines: int = 2) -> str:
    """Return the source lines around ``line`` for an ErrorContext snippet."""
    lines = source.splitlines()
    start = max(1, line - context_lines)
    end = min(len(lines), line + context_lines)
    return "\n".join(lines[start - 1 : end])


def make_visit_error(
    message: str, rule_name: str, line: int, column: int, offset: int = 0, length: int = 1
) -> VisitError:
    """
    Helper to create a VisitError located at a source position.

    Args:
        message: Error description
        rule_name: Grammar rule of the node that failed
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        offset: Source offset of the failing subtree (0-indexed)
        length: Length of the failing subtree

    Returns:
        VisitError with context attached
    """
    context = ErrorContext(file=None, line=line, column=column)
    return VisitError(message, rule_name, context, offset=offset, length=length)
