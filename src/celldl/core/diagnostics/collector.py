"""
Diagnostic collection.

The ErrorCollector gathers lexer and parser errors, enriches them with
recovery suggestions, removes duplicates and hands out sorted views and
editor-specific projections.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace

from lsprotocol.types import Diagnostic, DiagnosticSeverity, Position, Range

from ..grammar_impl.base import RecognitionError
from ..lexer import LexError, Token
from .codes import (
    SEVERITY_ORDER,
    EnhancedParseError,
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    create_enhanced_error,
)
from .messages import convert_lexer_error, describe_recognition_error, display_token_type
from .recovery import detect_patterns

logger = logging.getLogger(__name__)

DIAGNOSTIC_SOURCE = "CellDL"

LSP_SEVERITY: dict[ErrorSeverity, DiagnosticSeverity] = {
    ErrorSeverity.ERROR: DiagnosticSeverity.Error,
    ErrorSeverity.WARNING: DiagnosticSeverity.Warning,
    ErrorSeverity.INFO: DiagnosticSeverity.Information,
}

# Marker severities used by browser-based editors
MARKER_SEVERITY: dict[ErrorSeverity, int] = {
    ErrorSeverity.ERROR: 8,
    ErrorSeverity.WARNING: 4,
    ErrorSeverity.INFO: 2,
}


@dataclass(frozen=True)
class EditorMarker:
    """A diagnostic shaped for an editor widget (1-based positions)."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int
    message: str
    severity: int
    code: str


def _display_message(error: EnhancedParseError) -> str:
    if error.recovery_hint:
        return f"{error.message}\n\nHint: {error.recovery_hint}"
    return error.message


def _richness(error: EnhancedParseError) -> tuple[bool, bool, int]:
    return (
        error.suggested_fix is not None,
        error.recovery_hint is not None,
        len(error.expected_tokens),
    )


def _sort_key(error: EnhancedParseError) -> tuple[int, int, int]:
    return (SEVERITY_ORDER[error.severity], error.line, error.column)


class ErrorCollector:
    """
    Collects, deduplicates and orders diagnostics.

    Errors are keyed by (line, column, code). When two errors share a key the
    richer one is kept: a suggested fix beats a hint, which beats a longer
    expected-token list.
    """

    def __init__(self, source: str = ""):
        self.source = source
        self._errors: dict[tuple[int, int, ErrorCode], EnhancedParseError] = {}
        self._rule_stack: list[str] = []

    def clear(self) -> None:
        self._errors.clear()
        self._rule_stack.clear()

    # -- Rule context -------------------------------------------------------

    def enter_rule(self, rule_name: str) -> None:
        self._rule_stack.append(rule_name)

    def exit_rule(self) -> None:
        if self._rule_stack:
            self._rule_stack.pop()

    @property
    def current_rule(self) -> str | None:
        return self._rule_stack[-1] if self._rule_stack else None

    # -- Adding errors ------------------------------------------------------

    def add_error(self, error: EnhancedParseError) -> None:
        """Add one diagnostic, keeping the richer entry on a key collision."""
        key = (error.line, error.column, error.code)
        existing = self._errors.get(key)
        if existing is None or _richness(error) > _richness(existing):
            self._errors[key] = error

    def add_errors(self, errors: Iterable[EnhancedParseError]) -> None:
        for error in errors:
            self.add_error(error)

    def add_lexer_errors(self, errors: Iterable[LexError]) -> None:
        for error in errors:
            self.add_error(convert_lexer_error(error))

    def add_parser_errors(self, errors: Iterable[RecognitionError], tokens: list[Token]) -> None:
        """
        Convert parser recognition errors and attach recovery suggestions.

        A matching recovery pattern supplies the hint (it is more specific than
        the generic one) and, when the message has none, the fix.
        """
        for error in errors:
            self.add_error(self._convert(error, tokens))

    def _convert(self, error: RecognitionError, tokens: list[Token]) -> EnhancedParseError:
        message = describe_recognition_error(error)
        token = error.token
        enhanced = create_enhanced_error(
            message.code,
            message.message,
            token.line,
            token.column,
            token.offset,
            max(token.length, 1),
            recovery_hint=message.hint,
            rule_name=error.rule_name,
            expected_tokens=[display_token_type(t) for t in error.expected],
            actual_token=token.value or None,
        )
        suggestion = detect_patterns(tokens, error.token_index, error.rule_name, error.expected)
        if suggestion is not None:
            enhanced = replace(
                enhanced,
                recovery_hint=suggestion.hint,
                suggested_fix=enhanced.suggested_fix or suggestion.fix,
            )
        return enhanced

    def add_custom_error(
        self,
        code: ErrorCode,
        message: str,
        line: int,
        column: int,
        offset: int,
        length: int = 1,
        *,
        recovery_hint: str | None = None,
        rule_name: str | None = None,
    ) -> None:
        """Add a diagnostic produced outside the lexer and parser (e.g. by the visitor)."""
        self.add_error(
            create_enhanced_error(
                code,
                message,
                line,
                column,
                offset,
                length,
                recovery_hint=recovery_hint,
                rule_name=rule_name or self.current_rule,
            )
        )

    # -- Views --------------------------------------------------------------

    def get_errors(self) -> list[EnhancedParseError]:
        """All diagnostics, sorted by severity, then line, then column."""
        return sorted(self._errors.values(), key=_sort_key)

    def get_errors_only(self) -> list[EnhancedParseError]:
        return [e for e in self.get_errors() if e.severity == ErrorSeverity.ERROR]

    def get_errors_by_line(self) -> dict[int, list[EnhancedParseError]]:
        by_line: dict[int, list[EnhancedParseError]] = {}
        for error in self.get_errors():
            by_line.setdefault(error.line, []).append(error)
        return by_line

    def get_errors_by_category(self) -> dict[ErrorCategory, list[EnhancedParseError]]:
        by_category: dict[ErrorCategory, list[EnhancedParseError]] = {}
        for error in self.get_errors():
            by_category.setdefault(error.category, []).append(error)
        return by_category

    def get_errors_in_range(self, start_line: int, end_line: int) -> list[EnhancedParseError]:
        """Diagnostics starting on a line in ``[start_line, end_line]``."""
        return [e for e in self.get_errors() if start_line <= e.line <= end_line]

    def first_error(self) -> EnhancedParseError | None:
        errors = self.get_errors()
        return errors[0] if errors else None

    @property
    def count(self) -> int:
        return len(self._errors)

    def has_errors(self) -> bool:
        return bool(self._errors)

    def has_fatal_errors(self) -> bool:
        return any(e.severity == ErrorSeverity.ERROR for e in self._errors.values())

    # -- Projections --------------------------------------------------------

    def to_lsp_diagnostics(self) -> list[Diagnostic]:
        return to_lsp_diagnostics(self.get_errors())

    def to_editor_markers(self) -> list[EditorMarker]:
        return to_editor_markers(self.get_errors())

    def format(self, show_hints: bool = True) -> str:
        """
        Format diagnostics as a plain-text report.

        Example:
            ERROR  [3:5] Expected ':' but found 'logic'
                    Hint: Separate the property name and value with ':'
        """
        lines = []
        for error in self.get_errors():
            prefix = error.severity.value.upper().ljust(7)
            lines.append(f"{prefix}[{error.line}:{error.column}] {error.message}")
            if show_hints and error.recovery_hint:
                lines.append(f"        Hint: {error.recovery_hint}")
        return "\n".join(lines)


def to_lsp_diagnostics(errors: Iterable[EnhancedParseError]) -> list[Diagnostic]:
    """Project diagnostics to language-server form (0-based positions)."""
    return [
        Diagnostic(
            range=Range(
                start=Position(line=error.line - 1, character=error.column - 1),
                end=Position(line=error.end_line - 1, character=error.end_column - 1),
            ),
            message=_display_message(error),
            severity=LSP_SEVERITY[error.severity],
            code=int(error.code),
            source=DIAGNOSTIC_SOURCE,
        )
        for error in errors
    ]


def to_editor_markers(errors: Iterable[EnhancedParseError]) -> list[EditorMarker]:
    """Project diagnostics to editor markers (1-based positions, string codes)."""
    return [
        EditorMarker(
            start_line=error.line,
            start_column=error.column,
            end_line=error.end_line,
            end_column=error.end_column,
            message=_display_message(error),
            severity=MARKER_SEVERITY[error.severity],
            code=str(int(error.code)),
        )
        for error in errors
    ]


def collect_all_errors(
    lex_errors: Iterable[LexError],
    parser_errors: Iterable[RecognitionError],
    tokens: list[Token],
    source: str = "",
) -> list[EnhancedParseError]:
    """Collect lexer and parser errors in one pass and return them sorted."""
    collector = ErrorCollector(source)
    collector.add_lexer_errors(lex_errors)
    collector.add_parser_errors(parser_errors, tokens)
    logger.debug(f"Collected {collector.count} diagnostics")
    return collector.get_errors()
