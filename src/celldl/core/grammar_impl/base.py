"""
Base parser class for the CellDL grammar.

Provides token navigation, recognition-error recording and the
resynchronisation helpers shared by all parser mixins. Every grammar rule is
a plain method wrapped by ``grammar_rule``, which builds the rule's CstNode
and keeps the rule name available as data for error reporting.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..cst import CstNode
from ..lexer import Token, TokenType

logger = logging.getLogger(__name__)

T = TokenType

CELL_TYPE_TOKENS = frozenset({T.LOGIC, T.INTEGRATION, T.DATA, T.SECURITY, T.CHANNEL, T.LEGACY})

COMPONENT_TYPE_TOKENS = frozenset(
    {
        T.MICROSERVICE,
        T.FUNCTION,
        T.DATABASE,
        T.BROKER,
        T.CACHE,
        T.GATEWAY,
        T.IDP,
        T.STS,
        T.USERSTORE,
        T.ESB,
        T.ADAPTER,
        T.TRANSFORMER,
        T.WEBAPP,
        T.MOBILE,
        T.IOT,
        T.LEGACY,
        T.MS,
        T.FN,
        T.DB,
    }
)

ENDPOINT_TYPE_TOKENS = frozenset({T.API, T.EVENTS, T.STREAM})
DIRECTION_TOKENS = frozenset({T.NORTHBOUND, T.SOUTHBOUND, T.EASTBOUND, T.WESTBOUND})
PROTOCOL_TOKENS = frozenset({T.HTTPS, T.HTTP, T.GRPC, T.MTLS, T.KAFKA, T.TCP})
EXTERNAL_TYPE_TOKENS = frozenset({T.SAAS, T.PARTNER, T.ENTERPRISE})
USER_TYPE_TOKENS = frozenset({T.EXTERNAL, T.INTERNAL, T.SYSTEM})

# Keywords that may appear as bare property values and array elements
VALUE_KEYWORDS = (
    CELL_TYPE_TOKENS
    | (COMPONENT_TYPE_TOKENS - {T.GATEWAY})
    | ENDPOINT_TYPE_TOKENS
    | PROTOCOL_TOKENS
    | EXTERNAL_TYPE_TOKENS
    | USER_TYPE_TOKENS
)

# Tokens accepted as the name of a definition
NAME_TOKENS = frozenset({T.IDENTIFIER, T.STRING}) | (VALUE_KEYWORDS - {T.EXTERNAL})

# Tokens accepted as either half of a reference (gateway keywords name the cell boundary)
REFERENCE_TOKENS = NAME_TOKENS | {T.INGRESS, T.EGRESS, T.GATEWAY}

# Keys whose colon may be omitted
OPTIONAL_COLON_KEYS = frozenset(
    {
        T.LABEL,
        T.TYPE,
        T.PORT,
        T.REPLICAS,
        T.PROTOCOL,
        T.CONTEXT,
        T.TARGET,
        T.POLICY,
        T.ENGINE,
        T.STORAGE,
        T.VERSION,
    }
)

STATEMENT_STARTERS = frozenset({T.CELL, T.EXTERNAL, T.USER, T.APPLICATION, T.CONNECTIONS, T.FLOW})

# Keywords that end an unterminated nested block
BLOCK_EXIT_KEYWORDS = frozenset(
    {T.CELL, T.EXTERNAL, T.USER, T.APPLICATION, T.WORKSPACE, T.DIAGRAM}
)

# Never dropped by single-token deletion
_UNSKIPPABLE = frozenset({T.EOF, T.RBRACE, T.RBRACKET, T.RPAREN})


class RecognitionKind(str, Enum):
    """Kinds of grammar recognition failures."""

    MISMATCHED_TOKEN = "mismatched_token"
    NO_VIABLE_ALTERNATIVE = "no_viable_alternative"
    EARLY_EXIT = "early_exit"
    NOT_ALL_INPUT_PARSED = "not_all_input_parsed"
    UNCLOSED_SCOPE = "unclosed_scope"
    INVALID_VALUE = "invalid_value"


@dataclass(frozen=True)
class RecognitionError:
    """
    A syntax error recorded by the parser.

    Attributes:
        kind: What went wrong
        token: Token the error is reported at (the opening delimiter for unclosed scopes)
        token_index: Position in the token stream where the parser stood
        rule_name: Innermost grammar rule active when the error occurred
        expected: Token types that would have been accepted
        rule_stack: Full stack of active rule names, outermost first
    """

    kind: RecognitionKind
    token: Token
    token_index: int
    rule_name: str
    expected: tuple[TokenType, ...] = ()
    rule_stack: tuple[str, ...] = ()


class ParseAbort(Exception):
    """Raised internally to stop parsing at the first error when recovery is off."""

    def __init__(self, error: RecognitionError):
        self.error = error
        super().__init__(error.kind.value)


def grammar_rule(name: str, *, discard_on_error: bool = False) -> Callable[..., Any]:
    """
    Declare a parser method as a grammar rule.

    The wrapped method receives a fresh ``CstNode(name)`` to fill. When the
    parser records an error inside the rule the node is flagged as recovered;
    with ``discard_on_error`` it is dropped instead, so incomplete properties
    never reach the visitor.

    Args:
        name: Grammar rule name, reported in diagnostics
        discard_on_error: Return None instead of a partial node on error
    """

    def decorator(method: Callable[..., None]) -> Callable[..., CstNode | None]:
        @functools.wraps(method)
        def wrapper(self: BaseParser, *args: Any, **kwargs: Any) -> CstNode | None:
            node = CstNode(name)
            errors_before = len(self.errors)
            self.rule_stack.append(name)
            try:
                method(self, node, *args, **kwargs)
            finally:
                self.rule_stack.pop()
            if len(self.errors) > errors_before:
                node.recovered = True
                if discard_on_error:
                    return None
            return node

        wrapper.rule_name = name  # type: ignore[attr-defined]
        return wrapper

    return decorator


class BaseParser:
    """
    Base parser class with token manipulation and recovery utilities.

    This class provides the foundation for recursive descent parsing,
    including token navigation, matching, error recording and
    resynchronisation. With ``recovery_enabled`` the parser records errors
    and keeps going; without it the first error ends the parse.
    """

    def __init__(self, tokens: list[Token], recovery_enabled: bool = True):
        """
        Initialize parser.

        Args:
            tokens: List of tokens from lexer (EOF-terminated)
            recovery_enabled: Keep parsing after errors
        """
        if not tokens or tokens[-1].type != TokenType.EOF:
            end = tokens[-1].end_offset if tokens else 0
            tokens = [*tokens, Token(TokenType.EOF, "", 1, 1, end, 0)]
        self.tokens = tokens
        self.pos = 0
        self.recovery_enabled = recovery_enabled
        self.errors: list[RecognitionError] = []
        self.rule_stack: list[str] = []

    # -- Navigation ---------------------------------------------------------

    def current_token(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[self.pos]

    def peek_token(self, offset: int = 1) -> Token:
        """Peek ahead at token."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[pos]

    def advance(self) -> Token:
        """Consume and return current token."""
        token = self.current_token()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def match(self, *token_types: TokenType) -> bool:
        """Check whether the current token is one of the given types."""
        return self.current_token().type in token_types

    def match_any(self, token_types: Iterable[TokenType]) -> bool:
        return self.current_token().type in token_types

    def at_end(self) -> bool:
        return self.current_token().type == TokenType.EOF

    def accept(self, token_type: TokenType) -> Token | None:
        """Consume the current token if it has the given type."""
        if self.match(token_type):
            return self.advance()
        return None

    # -- Errors -------------------------------------------------------------

    def record(
        self,
        kind: RecognitionKind,
        token: Token | None = None,
        expected: Iterable[TokenType] = (),
        rule_name: str | None = None,
    ) -> RecognitionError:
        """
        Record a recognition error at the current position.

        Raises:
            ParseAbort: If recovery is disabled
        """
        error = RecognitionError(
            kind=kind,
            token=token or self.current_token(),
            token_index=self.pos,
            rule_name=rule_name or (self.rule_stack[-1] if self.rule_stack else "program"),
            expected=tuple(expected),
            rule_stack=tuple(self.rule_stack),
        )
        self.errors.append(error)
        logger.debug(
            f"{kind.value} in {error.rule_name} at "
            f"{error.token.line}:{error.token.column} ({error.token.value!r})"
        )
        if not self.recovery_enabled:
            raise ParseAbort(error)
        return error

    # -- Consumption with recovery -----------------------------------------

    def expect(
        self, token_type: TokenType, node: CstNode | None = None, label: str | None = None
    ) -> Token | None:
        """
        Expect a specific token type and consume it.

        On mismatch an error is recorded. If the token after the offending one
        is the expected token, the offending token is skipped (single-token
        deletion); otherwise parsing continues as if the expected token had
        been present (single-token insertion) and None is returned.
        """
        return self.expect_one_of(frozenset({token_type}), node, label, expected=(token_type,))

    def expect_one_of(
        self,
        token_types: frozenset[TokenType],
        node: CstNode | None = None,
        label: str | None = None,
        expected: tuple[TokenType, ...] | None = None,
    ) -> Token | None:
        token = self.current_token()
        if token.type in token_types:
            self.advance()
            if node is not None and label:
                node.add(label, token)
            return token

        self.record(
            RecognitionKind.MISMATCHED_TOKEN,
            expected=expected or sorted(token_types, key=lambda t: t.name),
        )
        following = self.peek_token()
        if token.type not in _UNSKIPPABLE and following.type in token_types:
            self.advance()
            self.advance()
            if node is not None and label:
                node.add(label, following)
            return following
        return None

    def expect_close(
        self, opener: Token | None, closing: TokenType, node: CstNode, label: str
    ) -> None:
        """
        Consume the delimiter closing ``opener``.

        A missing closer is reported once per unclosed scope, located at the
        opening delimiter. Nothing is reported when the opener itself was
        missing, since that error has already been recorded.
        """
        if self.match(closing):
            node.add(label, self.advance())
            return
        if opener is None:
            return
        self.record(RecognitionKind.UNCLOSED_SCOPE, token=opener, expected=(closing,))

    def expect_colon(self, key: Token, node: CstNode) -> None:
        """Consume the colon after a property key. Some keys allow omitting it."""
        if key.type in OPTIONAL_COLON_KEYS:
            node.add("Colon", self.accept(TokenType.COLON))
        else:
            self.expect(TokenType.COLON, node, "Colon")

    def synchronize(self, starters: frozenset[TokenType]) -> None:
        """
        Skip tokens until one that can continue the enclosing block.

        Always skips at least the current token. Balanced braces inside the
        skipped region are skipped as a unit.
        """
        depth = 0
        while True:
            token = self.advance()
            if token.type == TokenType.LBRACE:
                depth += 1
            elif token.type == TokenType.RBRACE and depth > 0:
                depth -= 1
            upcoming = self.current_token().type
            if upcoming == TokenType.EOF:
                return
            if depth == 0 and (
                upcoming in starters
                or upcoming == TokenType.RBRACE
                or upcoming in BLOCK_EXIT_KEYWORDS
            ):
                return

    def parse_block(
        self,
        node: CstNode,
        parse_item: Callable[[CstNode], bool],
        starters: frozenset[TokenType],
        item_rule: str,
        stop_at_statements: bool = True,
    ) -> None:
        """
        Parse ``{ item* }`` into node.

        ``parse_item`` returns False when the current token cannot start an
        item; the token is then reported and skipped.
        """
        opener = self.expect(TokenType.LBRACE, node, "LBrace")
        while not self.match(TokenType.RBRACE, TokenType.EOF):
            if stop_at_statements and self.match_any(BLOCK_EXIT_KEYWORDS):
                break
            if parse_item(node):
                continue
            self.record(
                RecognitionKind.NO_VIABLE_ALTERNATIVE,
                expected=sorted(starters, key=lambda t: t.name),
                rule_name=item_rule,
            )
            self.synchronize(starters)
        self.expect_close(opener, TokenType.RBRACE, node, "RBrace")
