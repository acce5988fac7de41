"""Tests for the CellDL lexer."""

from __future__ import annotations

import pytest

from celldl.core.diagnostics.codes import ErrorCode
from celldl.core.lexer import KEYWORD_TYPES, TokenType, tokenize

T = TokenType


def types(source: str) -> list[TokenType]:
    """Token types of a source, without the trailing EOF."""
    return [token.type for token in tokenize(source).tokens[:-1]]


class TestKeywords:
    """Longest-match keyword resolution."""

    @pytest.mark.parametrize(
        ("word", "expected"),
        [
            ("cell", T.CELL),
            ("cells", T.CELLS),
            ("user", T.USER),
            ("userstore", T.USERSTORE),
            ("data", T.DATA),
            ("database", T.DATABASE),
            ("channel", T.CHANNEL),
            ("channels", T.CHANNELS),
            ("component", T.COMPONENT),
            ("components", T.COMPONENTS),
            ("local-sts", T.LOCAL_STS),
        ],
    )
    def test_longest_keyword_wins(self, word, expected):
        assert types(word) == [expected]

    def test_keyword_prefix_of_identifier_is_identifier(self):
        """A keyword followed by identifier characters is a plain identifier."""
        assert types("databaseName cellular") == [T.IDENTIFIER, T.IDENTIFIER]

    def test_structural_keywords_are_case_insensitive(self):
        assert types("CELL Workspace FLOW") == [T.CELL, T.WORKSPACE, T.FLOW]

    def test_type_keywords_are_case_sensitive(self):
        assert types("logic Logic API api") == [T.LOGIC, T.IDENTIFIER, T.IDENTIFIER, T.API]

    def test_keyword_flag(self):
        cell, name = tokenize("cell Orders").tokens[:2]
        assert cell.is_keyword
        assert not name.is_keyword
        assert T.IDENTIFIER not in KEYWORD_TYPES


class TestLiterals:
    """Strings, numbers and identifiers."""

    def test_string_keeps_quotes(self):
        token = tokenize('"Order Service"').tokens[0]
        assert token.type == T.STRING
        assert token.value == '"Order Service"'
        assert token.length == 15

    def test_escaped_quote_does_not_end_string(self):
        result = tokenize(r'"say \"hi\""')
        assert [t.type for t in result.tokens] == [T.STRING, T.EOF]
        assert result.errors == []

    def test_invalid_escape_is_reported_but_string_is_kept(self):
        result = tokenize(r'"bad \q"')
        assert result.tokens[0].type == T.STRING
        assert len(result.errors) == 1
        assert result.errors[0].code == ErrorCode.INVALID_ESCAPE_SEQUENCE
        assert result.errors[0].column == 6

    def test_numbers(self):
        result = tokenize("8080 1.5 -3")
        assert [(t.type, t.value) for t in result.tokens[:-1]] == [
            (T.NUMBER, "8080"),
            (T.NUMBER, "1.5"),
            (T.NUMBER, "-3"),
        ]

    def test_number_glued_to_letters_is_invalid(self):
        result = tokenize("100Gi")
        assert result.errors[0].code == ErrorCode.INVALID_NUMBER
        assert result.errors[0].length == 5
        assert [t.type for t in result.tokens] == [T.EOF]

    def test_hyphenated_identifier(self):
        assert types("rate-limit") == [T.IDENTIFIER]

    def test_arrow_splits_identifiers(self):
        result = tokenize("A->B")
        assert [(t.type, t.value) for t in result.tokens[:-1]] == [
            (T.IDENTIFIER, "A"),
            (T.ARROW, "->"),
            (T.IDENTIFIER, "B"),
        ]

    def test_punctuation(self):
        assert types("{ } [ ] ( ) : , . =") == [
            T.LBRACE,
            T.RBRACE,
            T.LBRACKET,
            T.RBRACKET,
            T.LPAREN,
            T.RPAREN,
            T.COLON,
            T.COMMA,
            T.DOT,
            T.EQUALS,
        ]


class TestPositions:
    """Line, column and offset tracking."""

    def test_positions_across_lines(self):
        tokens = tokenize('cell A {\n  label: "x"\n}').tokens
        label = tokens[3]
        assert label.type == T.LABEL
        assert (label.line, label.column, label.offset) == (2, 3, 11)
        closing = tokens[6]
        assert (closing.line, closing.column) == (3, 1)

    def test_comments_are_skipped(self):
        tokens = tokenize("// header\ncell /* inline */ A").tokens
        assert [t.type for t in tokens] == [T.CELL, T.IDENTIFIER, T.EOF]
        assert (tokens[0].line, tokens[0].column) == (2, 1)
        assert tokens[1].column == 19

    def test_block_comments_do_not_nest(self):
        assert types("/* a /* b */ cell") == [T.CELL]

    def test_eof_is_always_last(self):
        for source in ["", "cell", '"open', "@"]:
            tokens = tokenize(source).tokens
            assert tokens[-1].type == T.EOF
            assert tokens[-1].offset == len(source)

    def test_end_offset_and_column(self):
        token = tokenize("  Orders").tokens[0]
        assert token.end_offset == 8
        assert token.end_column == 9


class TestLexicalErrors:
    """Problems are collected, never raised."""

    def test_unterminated_string_runs_to_end_of_line(self):
        result = tokenize('label: "Orders\ncell')
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.code == ErrorCode.UNTERMINATED_STRING
        assert (error.line, error.column, error.offset, error.length) == (1, 8, 7, 7)
        assert [t.type for t in result.tokens] == [T.LABEL, T.COLON, T.CELL, T.EOF]

    def test_illegal_characters_are_grouped(self):
        result = tokenize("cell @@ A")
        assert len(result.errors) == 1
        assert result.errors[0].code == ErrorCode.UNEXPECTED_CHARACTER
        assert result.errors[0].message == "Unexpected characters '@@'"
        assert types("cell @@ A") == [T.CELL, T.IDENTIFIER]

    def test_unterminated_block_comment(self):
        result = tokenize("cell /* never closed")
        assert result.errors[0].code == ErrorCode.UNEXPECTED_CHARACTER
        assert "block comment" in result.errors[0].message

    def test_unterminated_block_comment_spans_lines(self):
        (error,) = tokenize("cell /* a\nbc").errors
        assert (error.line, error.column, error.offset) == (1, 6, 5)
        assert (error.end_line, error.end_column) == (2, 3)

    def test_single_line_error_ends_after_its_text(self):
        (error,) = tokenize("cell @@ A").errors
        assert (error.end_line, error.end_column) == (1, 8)

    @pytest.mark.parametrize("source", ["-", "x: -", "-x", "- 5"])
    def test_lone_minus_is_an_unexpected_character(self, source):
        result = tokenize(source)
        assert [e.code for e in result.errors] == [ErrorCode.UNEXPECTED_CHARACTER]
        assert result.tokens[-1].type == T.EOF
