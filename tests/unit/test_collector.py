"""Tests for diagnostic collection and editor projections."""

from __future__ import annotations

from lsprotocol.types import DiagnosticSeverity

from celldl.core.diagnostics.codes import (
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    SuggestedFix,
    TextRange,
    create_enhanced_error,
)
from celldl.core.diagnostics.collector import (
    ErrorCollector,
    collect_all_errors,
    to_editor_markers,
    to_lsp_diagnostics,
)
from celldl.core.grammar_impl import parse_tokens
from celldl.core.lexer import tokenize


def make_error(code=ErrorCode.UNEXPECTED_TOKEN, line=1, column=1, **kwargs):
    return create_enhanced_error(code, f"error {int(code)}", line, column, 0, 1, **kwargs)


class TestCodes:
    """Category and severity come from the code table."""

    def test_lookup(self):
        error = make_error(ErrorCode.MISSING_CLOSING_BRACE)
        assert error.category == ErrorCategory.STRUCTURAL
        assert error.severity == ErrorSeverity.ERROR
        assert error.is_fatal

    def test_warning_code(self):
        error = make_error(ErrorCode.MISSING_COMMA)
        assert error.severity == ErrorSeverity.WARNING
        assert not error.is_fatal

    def test_end_column_defaults_from_length(self):
        error = create_enhanced_error(ErrorCode.UNEXPECTED_TOKEN, "x", 2, 5, 10, 3)
        assert (error.end_line, error.end_column) == (2, 8)

    def test_fix_apply(self):
        fix = SuggestedFix("Insert", "}", TextRange(3, 3))
        assert fix.range.is_insertion
        assert fix.apply("a {") == "a {}"


class TestDeduplication:
    """Errors are keyed by line, column and code."""

    def test_richer_error_wins(self):
        collector = ErrorCollector()
        fix = SuggestedFix("Insert", "}", TextRange(0, 0))
        collector.add_error(make_error(recovery_hint="hint"))
        collector.add_error(make_error(suggested_fix=fix))
        collector.add_error(make_error())
        assert collector.count == 1
        assert collector.get_errors()[0].suggested_fix == fix

    def test_different_codes_are_kept(self):
        collector = ErrorCollector()
        collector.add_errors(
            [make_error(ErrorCode.UNEXPECTED_TOKEN), make_error(ErrorCode.MISSING_COLON)]
        )
        assert collector.count == 2

    def test_clear(self):
        collector = ErrorCollector()
        collector.add_error(make_error())
        collector.clear()
        assert not collector.has_errors()


class TestViews:
    """Sorted views and filters."""

    def setup_method(self):
        self.collector = ErrorCollector()
        self.collector.add_errors(
            [
                make_error(ErrorCode.MISSING_COMMA, line=1),
                make_error(ErrorCode.MISSING_COLON, line=5, column=2),
                make_error(ErrorCode.MISSING_CLOSING_BRACE, line=3),
            ]
        )

    def test_errors_before_warnings_then_by_position(self):
        lines = [(e.severity, e.line) for e in self.collector.get_errors()]
        assert lines == [
            (ErrorSeverity.ERROR, 3),
            (ErrorSeverity.ERROR, 5),
            (ErrorSeverity.WARNING, 1),
        ]

    def test_errors_only(self):
        assert [e.line for e in self.collector.get_errors_only()] == [3, 5]

    def test_by_line_and_category(self):
        assert sorted(self.collector.get_errors_by_line()) == [1, 3, 5]
        by_category = self.collector.get_errors_by_category()
        assert len(by_category[ErrorCategory.SYNTACTIC]) == 2
        assert len(by_category[ErrorCategory.STRUCTURAL]) == 1

    def test_in_range(self):
        assert [e.line for e in self.collector.get_errors_in_range(2, 5)] == [3, 5]

    def test_first_error(self):
        assert self.collector.first_error().line == 3
        assert ErrorCollector().first_error() is None

    def test_fatal_only_for_errors(self):
        assert self.collector.has_fatal_errors()
        warnings_only = ErrorCollector()
        warnings_only.add_error(make_error(ErrorCode.MISSING_COMMA))
        assert warnings_only.has_errors()
        assert not warnings_only.has_fatal_errors()

    def test_format(self):
        collector = ErrorCollector()
        collector.add_error(make_error(line=3, column=5, recovery_hint="Try this"))
        assert collector.format() == "ERROR  [3:5] error 4001\n        Hint: Try this"
        assert collector.format(show_hints=False) == "ERROR  [3:5] error 4001"


class TestRuleContext:
    """Custom diagnostics pick up the current rule."""

    def test_custom_error_uses_current_rule(self):
        collector = ErrorCollector()
        collector.enter_rule("cellDefinition")
        collector.add_custom_error(ErrorCode.DUPLICATE_IDENTIFIER, "Duplicate 'A'", 2, 1, 10)
        collector.exit_rule()
        assert collector.current_rule is None
        error = collector.get_errors()[0]
        assert error.rule_name == "cellDefinition"
        assert error.category == ErrorCategory.SEMANTIC


class TestProjections:
    """LSP diagnostics and editor markers."""

    def test_lsp_positions_are_zero_based(self):
        error = create_enhanced_error(
            ErrorCode.MISSING_CLOSING_BRACE, "Missing '}'", 1, 13, 12, 1, recovery_hint="Add '}'"
        )
        (diagnostic,) = to_lsp_diagnostics([error])
        assert (diagnostic.range.start.line, diagnostic.range.start.character) == (0, 12)
        assert (diagnostic.range.end.line, diagnostic.range.end.character) == (0, 13)
        assert diagnostic.severity == DiagnosticSeverity.Error
        assert diagnostic.code == 2002
        assert diagnostic.source == "CellDL"
        assert diagnostic.message == "Missing '}'\n\nHint: Add '}'"

    def test_markers_are_one_based(self):
        error = make_error(ErrorCode.MISSING_COMMA, line=4, column=7)
        (marker,) = to_editor_markers([error])
        assert (marker.start_line, marker.start_column, marker.end_column) == (4, 7, 8)
        assert marker.severity == 4
        assert marker.code == "3007"
        assert marker.message == "error 3007"

    def test_collector_projections_are_sorted(self):
        collector = ErrorCollector()
        collector.add_errors([make_error(line=9), make_error(line=2)])
        assert [m.start_line for m in collector.to_editor_markers()] == [2, 9]
        assert [d.range.start.line for d in collector.to_lsp_diagnostics()] == [1, 8]


class TestConversion:
    """Lexer and parser errors become coded diagnostics."""

    def test_unterminated_string_gets_closing_quote_fix(self):
        source = 'label: "abc'
        collector = ErrorCollector(source)
        collector.add_lexer_errors(tokenize(source).errors)
        error = collector.first_error()
        assert error.code == ErrorCode.UNTERMINATED_STRING
        assert error.suggested_fix.apply(source) == 'label: "abc"'

    def test_missing_name(self):
        lexed = tokenize("cell {}")
        outcome = parse_tokens(lexed.tokens)
        (error,) = collect_all_errors(lexed.errors, outcome.errors, lexed.tokens)
        assert error.code == ErrorCode.MISSING_IDENTIFIER
        assert error.message == "Expected an identifier but found '{'"
        assert error.recovery_hint == "Give the cell a name, e.g. cell Orders { ... }"
        assert error.suggested_fix is None
        assert error.rule_name == "cellDefinition"
        assert error.actual_token == "{"

    def test_pattern_hint_replaces_generic_hint(self):
        lexed = tokenize("cell A type: logik {}")
        outcome = parse_tokens(lexed.tokens)
        (error,) = collect_all_errors(lexed.errors, outcome.errors, lexed.tokens)
        assert error.code == ErrorCode.INVALID_CELL_TYPE
        assert error.message == "'logik' is not a valid cell type"
        assert error.recovery_hint == "Did you mean 'logic'?"
        assert error.suggested_fix.replacement == "logic"

    def test_multi_line_lexical_span_reaches_editor_ranges(self):
        collector = ErrorCollector()
        collector.add_lexer_errors(tokenize("cell /* a\nbc").errors)
        error = collector.first_error()
        assert (error.end_line, error.end_column) == (2, 3)
        (diagnostic,) = collector.to_lsp_diagnostics()
        assert (diagnostic.range.end.line, diagnostic.range.end.character) == (1, 2)
        (marker,) = collector.to_editor_markers()
        assert (marker.end_line, marker.end_column) == (2, 3)
