"""Tests for the recovery suggestion engine."""

from __future__ import annotations

import pytest

from celldl.core.diagnostics.messages import VALID_CELL_TYPES, VALID_COMPONENT_TYPES
from celldl.core.diagnostics.recovery import (
    build_pattern_context,
    detect_patterns,
    find_closest_match,
    levenshtein,
)
from celldl.core.lexer import TokenType, tokenize


def tokens_of(source: str):
    return tokenize(source).tokens


class TestEditDistance:
    """Levenshtein distance and closest-match lookup."""

    @pytest.mark.parametrize(
        ("a", "b", "distance"),
        [
            ("kitten", "sitting", 3),
            ("", "abc", 3),
            ("same", "same", 0),
            ("logik", "logic", 1),
        ],
    )
    def test_levenshtein(self, a, b, distance):
        assert levenshtein(a, b) == distance
        assert levenshtein(b, a) == distance

    def test_closest_component_type(self):
        assert find_closest_match("databse", VALID_COMPONENT_TYPES) == "database"

    def test_match_is_case_insensitive(self):
        assert find_closest_match("LOGIK", VALID_CELL_TYPES) == "logic"

    def test_nothing_close_enough(self):
        assert find_closest_match("xyz123", VALID_CELL_TYPES) is None

    def test_ties_go_to_first_candidate(self):
        assert find_closest_match("ab", ["ac", "ad"]) == "ac"

    def test_custom_max_distance(self):
        assert find_closest_match("kitten", ["sitting"]) is None
        assert find_closest_match("kitten", ["sitting"], max_distance=3) == "sitting"


class TestPatternContext:
    """Open delimiter tracking."""

    def test_open_brackets_outermost_first(self):
        tokens = tokens_of("cell A { x [ y")
        ctx = build_pattern_context(tokens, len(tokens) - 1)
        assert [t.type for t in ctx.open_brackets] == [TokenType.LBRACE, TokenType.LBRACKET]
        assert ctx.current.type == TokenType.EOF

    def test_closed_brackets_are_popped(self):
        tokens = tokens_of("cell A { ms B [x: 1] }")
        ctx = build_pattern_context(tokens, len(tokens) - 1)
        assert ctx.open_brackets == []


class TestDetectors:
    """Each detector recognises its mistake."""

    def test_unclosed_scope(self):
        tokens = tokens_of("cell Orders {")
        suggestion = detect_patterns(tokens, 3, "cellDefinition", (TokenType.RBRACE,))
        assert suggestion.pattern == "unclosed_scope"
        assert suggestion.hint == "Missing closing '}' for '{' opened at line 1"
        assert suggestion.fix.replacement == "}"
        assert (suggestion.fix.range.start_offset, suggestion.fix.range.end_offset) == (13, 13)

    def test_several_unclosed_scopes(self):
        tokens = tokens_of("cell A { x [ y")
        suggestion = detect_patterns(tokens, len(tokens) - 1)
        assert suggestion.fix.replacement == "]}"
        assert suggestion.fix.range.start_offset == 14
        assert suggestion.fix.description == "Insert 2 closing delimiters"

    def test_unclosed_scope_skipped_when_closer_not_expected(self):
        tokens = tokens_of("cell A {")
        assert detect_patterns(tokens, 3, "cellDefinition", (TokenType.ARROW,)) is None

    def test_missing_arrow(self):
        source = "connections {\n  A B\n}"
        suggestion = detect_patterns(tokens_of(source), 3, "connectionChain", (TokenType.ARROW,))
        assert suggestion.pattern == "missing_arrow"
        assert suggestion.fix.apply(source) == "connections {\n  A -> B\n}"

    def test_missing_arrow_only_in_flows(self):
        suggestion = detect_patterns(tokens_of("connections {\n  A B\n}"), 3, "cellBody")
        assert suggestion is None or suggestion.pattern != "missing_arrow"

    def test_missing_colon_after_type(self):
        source = "type logic"
        suggestion = detect_patterns(tokens_of(source), 0, "cellBody")
        assert suggestion.pattern == "missing_colon"
        assert suggestion.fix.apply(source) == "type: logic"

    def test_vocabulary_typo(self):
        source = "cell A type: logik {}"
        suggestion = detect_patterns(tokens_of(source), 4, "cellTypeValue")
        assert suggestion.pattern == "vocabulary_typo"
        assert suggestion.hint == "Did you mean 'logic'?"
        assert suggestion.fix.apply(source) == "cell A type: logic {}"

    def test_vocabulary_without_close_match_lists_values(self):
        suggestion = detect_patterns(tokens_of("cell A type: xyz123 {}"), 4, "cellTypeValue")
        assert suggestion.fix is None
        assert suggestion.hint == (
            "'xyz123' is not a valid cell type. "
            "Valid cell types: logic, integration, data, security, channel, legacy"
        )

    def test_missing_port_number_replaces_word(self):
        source = "port: http"
        suggestion = detect_patterns(tokens_of(source), 2, "attributeValue")
        assert suggestion.pattern == "missing_port"
        assert suggestion.fix.apply(source) == "port: 8080"

    def test_missing_port_number_is_inserted(self):
        source = "port:]"
        suggestion = detect_patterns(tokens_of(source), 2, "attributeValue")
        assert suggestion.fix.apply(source) == "port: 8080]"

    def test_port_with_number_is_fine(self):
        assert detect_patterns(tokens_of("port: 443"), 2, "attributeValue") is None

    def test_missing_quotes(self):
        source = "cell Order Service {}"
        suggestion = detect_patterns(tokens_of(source), 2, "cellDefinition", (TokenType.LBRACE,))
        assert suggestion.pattern == "missing_quotes"
        assert suggestion.fix.replacement == '"Order Service"'
        assert (suggestion.fix.range.start_offset, suggestion.fix.range.end_offset) == (5, 18)
        assert suggestion.hint == 'Names with spaces must be quoted, e.g. cell "Order Service" { ... }'

    def test_single_word_name_is_not_a_quoting_problem(self):
        assert detect_patterns(tokens_of("cell A {}"), 1, "cellDefinition") is None


class TestDetectPatterns:
    """Engine-level behaviour."""

    def test_empty_token_list(self):
        assert detect_patterns([], 0) is None

    def test_position_is_clamped(self):
        tokens = tokens_of("cell Orders {")
        suggestion = detect_patterns(tokens, 99)
        assert suggestion.pattern == "unclosed_scope"
