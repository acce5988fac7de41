"""
Pattern-based recovery suggestions.

A short, ordered list of detectors inspects the token stream around a
parser error and, when one recognises a common mistake, supplies a hint and
usually a machine-applicable fix. The first detector that matches wins.

Detectors, in order:
    unclosed scope at end of input
    missing arrow in a flow
    missing colon after ``type``
    typo in a closed vocabulary (cell type, component type, ...)
    missing port number
    missing quotes around a multi-word name
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from ..lexer import Token, TokenType
from .codes import SuggestedFix, TextRange
from .messages import VOCABULARIES

logger = logging.getLogger(__name__)

T = TokenType

_OPENERS = {T.LBRACE: T.RBRACE, T.LBRACKET: T.RBRACKET, T.LPAREN: T.RPAREN}
_CLOSERS = {closer: opener for opener, closer in _OPENERS.items()}
_CLOSER_TEXT = {T.RBRACE: "}", T.RBRACKET: "]", T.RPAREN: ")"}

FLOW_RULES = frozenset({"connectionChain", "connectionsBlock", "connection"})
ENTITY_KEYWORDS = frozenset({T.CELL, T.EXTERNAL, T.USER, T.APPLICATION})
PLACEHOLDER_PORT = "8080"


# =============================================================================
# Edit distance
# =============================================================================


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def find_closest_match(value: str, candidates: list[str], max_distance: int = 2) -> str | None:
    """
    Find the closest candidate by case-folded edit distance.

    Ties go to the candidate listed first.

    Examples:
        find_closest_match("databse", VALID_COMPONENT_TYPES) -> "database"
        find_closest_match("xyz123", VALID_CELL_TYPES) -> None
    """
    folded = value.casefold()
    best: str | None = None
    best_distance = max_distance + 1
    for candidate in candidates:
        distance = levenshtein(folded, candidate.casefold())
        if distance < best_distance:
            best, best_distance = candidate, distance
    return best


# =============================================================================
# Pattern context
# =============================================================================


@dataclass
class PatternContext:
    """
    What a detector sees at an error position.

    Attributes:
        tokens: Full token stream (EOF-terminated)
        position: Index of the token the parser stood on
        rule_name: Innermost grammar rule at the error
        expected: Token types the parser would have accepted
        open_brackets: Unclosed opening delimiters before ``position``, outermost first
    """

    tokens: list[Token]
    position: int
    rule_name: str | None = None
    expected: tuple[TokenType, ...] = ()
    open_brackets: list[Token] = field(default_factory=list)

    def at(self, index: int) -> Token | None:
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    @property
    def current(self) -> Token | None:
        return self.at(self.position)


@dataclass(frozen=True)
class RecoverySuggestion:
    """A detector's verdict: the pattern name, a hint and an optional fix."""

    pattern: str
    hint: str
    fix: SuggestedFix | None = None


def build_pattern_context(
    tokens: list[Token],
    position: int,
    rule_name: str | None = None,
    expected: tuple[TokenType, ...] = (),
) -> PatternContext:
    """Replay delimiters up to ``position`` to find the scopes still open there."""
    stack: list[Token] = []
    for token in tokens[: position + 1]:
        if token.type in _OPENERS:
            stack.append(token)
        elif token.type in _CLOSERS and stack and stack[-1].type == _CLOSERS[token.type]:
            stack.pop()
    return PatternContext(
        tokens=tokens,
        position=position,
        rule_name=rule_name,
        expected=expected,
        open_brackets=stack,
    )


def _is_word(token: Token | None) -> bool:
    return token is not None and token.type in (T.IDENTIFIER, T.STRING)


def _insert_at(offset: int, text: str, description: str) -> SuggestedFix:
    return SuggestedFix(description, text, TextRange(offset, offset))


# =============================================================================
# Detectors
# =============================================================================


def _unclosed_scope_at_eof(ctx: PatternContext) -> RecoverySuggestion | None:
    current = ctx.current
    if current is None or current.type != T.EOF or not ctx.open_brackets:
        return None
    if ctx.expected and not any(t in _CLOSERS for t in ctx.expected):
        return None

    closers = "".join(_CLOSER_TEXT[_OPENERS[t.type]] for t in reversed(ctx.open_brackets))
    last = next((t for t in reversed(ctx.tokens) if t.type != T.EOF), None)
    insert_offset = last.end_offset if last is not None else 0

    if len(ctx.open_brackets) == 1:
        opener = ctx.open_brackets[0]
        hint = f"Missing closing '{closers}' for '{opener.value}' opened at line {opener.line}"
    else:
        hint = f"Missing {len(ctx.open_brackets)} closing delimiters; add '{closers}'"
    noun = "delimiter" if len(closers) == 1 else "delimiters"
    fix = _insert_at(insert_offset, closers, f"Insert {len(closers)} closing {noun}")
    return RecoverySuggestion("unclosed_scope", hint, fix)


def _missing_arrow(ctx: PatternContext) -> RecoverySuggestion | None:
    if ctx.rule_name not in FLOW_RULES:
        return None
    for left_index in (ctx.position - 1, ctx.position):
        left, right = ctx.at(left_index), ctx.at(left_index + 1)
        if left is not None and right is not None and _is_word(left) and _is_word(right):
            fix = SuggestedFix(
                "Insert '->' between source and target",
                " -> ",
                TextRange(left.end_offset, right.offset),
            )
            hint = f"Connect endpoints with '->', e.g. {left.value} -> {right.value}"
            return RecoverySuggestion("missing_arrow", hint, fix)
    return None


def _missing_colon_after_type(ctx: PatternContext) -> RecoverySuggestion | None:
    current, following = ctx.current, ctx.at(ctx.position + 1)
    if current is None or current.type != T.TYPE or following is None:
        return None
    if following.type != T.IDENTIFIER and not following.is_keyword:
        return None
    fix = _insert_at(current.end_offset, ":", "Insert ':' after 'type'")
    return RecoverySuggestion("missing_colon", "Write the type as type: value, e.g. type: logic", fix)


def _vocabulary_typo(ctx: PatternContext) -> RecoverySuggestion | None:
    vocabulary = VOCABULARIES.get(ctx.rule_name or "")
    current = ctx.current
    if vocabulary is None or current is None or current.type == T.EOF:
        return None
    value = current.value.strip('"')
    listing = ", ".join(vocabulary.values)
    closest = find_closest_match(value, vocabulary.values)
    if closest is None:
        return RecoverySuggestion(
            "vocabulary_typo",
            f"'{value}' is not a valid {vocabulary.noun}. Valid {vocabulary.noun}s: {listing}",
        )
    fix = SuggestedFix(
        f"Replace '{value}' with '{closest}'",
        closest,
        TextRange(current.offset, current.end_offset),
    )
    return RecoverySuggestion("vocabulary_typo", f"Did you mean '{closest}'?", fix)


def _missing_port_number(ctx: PatternContext) -> RecoverySuggestion | None:
    port_index = None
    for index in (ctx.position, ctx.position - 1, ctx.position - 2):
        token = ctx.at(index)
        if token is None or token.type != T.PORT:
            continue
        between = ctx.tokens[index + 1 : ctx.position]
        if all(t.type == T.COLON for t in between):
            port_index = index
            break
    if port_index is None:
        return None

    after_key = port_index + 1
    if (colon := ctx.at(after_key)) is not None and colon.type == T.COLON:
        after_key += 1
    value = ctx.at(after_key)
    if value is not None and value.type == T.NUMBER:
        return None

    hint = f"A port needs a number, e.g. port: {PLACEHOLDER_PORT}"
    if value is not None and (_is_word(value) or value.is_keyword):
        fix = SuggestedFix(
            f"Replace '{value.value}' with a port number",
            PLACEHOLDER_PORT,
            TextRange(value.offset, value.end_offset),
        )
    else:
        previous = ctx.tokens[after_key - 1]
        fix = _insert_at(previous.end_offset, f" {PLACEHOLDER_PORT}", "Insert a port number")
    return RecoverySuggestion("missing_port", hint, fix)


def _missing_quotes(ctx: PatternContext) -> RecoverySuggestion | None:
    # Walk back over the name words to the entity keyword
    index = ctx.position
    while index > 0:
        token = ctx.tokens[index]
        if token.type != T.IDENTIFIER and not token.is_keyword:
            return None
        if ctx.tokens[index - 1].type in ENTITY_KEYWORDS:
            if index == ctx.position:
                return None
            break
        index -= 1
    else:
        return None

    keyword = ctx.tokens[index - 1]
    end = ctx.position
    while (following := ctx.at(end + 1)) is not None and following.type == T.IDENTIFIER:
        end += 1
    words = ctx.tokens[index : end + 1]
    name = " ".join(token.value for token in words)
    fix = SuggestedFix(
        f"Wrap '{name}' in quotes",
        f'"{name}"',
        TextRange(words[0].offset, words[-1].end_offset),
    )
    entity = keyword.value.lower()
    hint = f'Names with spaces must be quoted, e.g. {entity} "{name}" {{ ... }}'
    return RecoverySuggestion("missing_quotes", hint, fix)


Detector = Callable[[PatternContext], "RecoverySuggestion | None"]

DETECTORS: list[Detector] = [
    _unclosed_scope_at_eof,
    _missing_arrow,
    _missing_colon_after_type,
    _vocabulary_typo,
    _missing_port_number,
    _missing_quotes,
]


def detect_patterns(
    tokens: list[Token],
    position: int,
    rule_name: str | None = None,
    expected: tuple[TokenType, ...] = (),
) -> RecoverySuggestion | None:
    """
    Run the detectors at an error position.

    Args:
        tokens: Token stream (EOF-terminated)
        position: Index of the token where the error was recorded
        rule_name: Innermost grammar rule at the error
        expected: Token types the parser would have accepted

    Returns:
        The first matching suggestion, or None
    """
    if not tokens:
        return None
    position = min(max(position, 0), len(tokens) - 1)
    ctx = build_pattern_context(tokens, position, rule_name, expected)
    for detector in DETECTORS:
        suggestion = detector(ctx)
        if suggestion is not None:
            logger.debug(f"Recovery pattern {suggestion.pattern} matched at token {position}")
            return suggestion
    return None
