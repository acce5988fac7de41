"""
Lexer/Tokenizer for the CellDL diagram DSL.

Converts raw DSL text into a stream of tokens with source span tracking.
Lexical problems (illegal characters, unterminated strings, malformed
numbers) are collected as LexError records rather than raised, so the
lexer always returns a complete token list terminated by EOF.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from .diagnostics.codes import ErrorCode

logger = logging.getLogger(__name__)


class TokenType(Enum):
    """Token types in the CellDL DSL."""

    # Literals
    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"
    NUMBER = "NUMBER"

    # Structural keywords (case-insensitive)
    WORKSPACE = "workspace"
    DIAGRAM = "diagram"
    DESCRIPTION = "description"
    PROPERTY = "property"
    VERSION = "version"
    CELL = "cell"
    CELLS = "cells"
    EXTERNAL = "external"
    USER = "user"
    APPLICATION = "application"
    CONNECTIONS = "connections"
    FLOW = "flow"
    COMPONENTS = "components"
    COMPONENT = "component"
    CLUSTER = "cluster"
    GATEWAY = "gateway"
    LABEL = "label"
    TYPE = "type"
    EXPOSES = "exposes"
    PROVIDES = "provides"
    CHANNELS = "channels"
    POLICIES = "policies"
    POLICY = "policy"
    AUTH = "auth"
    FEDERATED = "federated"
    LOCAL_STS = "local-sts"
    INGRESS = "ingress"
    EGRESS = "egress"
    ROUTE = "route"
    CONTEXT = "context"
    TARGET = "target"
    ENGINE = "engine"
    STORAGE = "storage"
    PORT = "port"
    REPLICAS = "replicas"
    PROTOCOL = "protocol"
    ENV = "env"
    TRUE = "true"
    FALSE = "false"

    # Connection directions (case-insensitive)
    NORTHBOUND = "northbound"
    SOUTHBOUND = "southbound"
    EASTBOUND = "eastbound"
    WESTBOUND = "westbound"

    # Protocols (case-insensitive)
    HTTPS = "https"
    HTTP = "http"
    GRPC = "grpc"
    MTLS = "mtls"
    KAFKA = "kafka"
    TCP = "tcp"

    # External / user types (case-insensitive)
    SAAS = "saas"
    PARTNER = "partner"
    ENTERPRISE = "enterprise"
    INTERNAL = "internal"
    SYSTEM = "system"

    # Cell types (case-sensitive)
    LOGIC = "logic"
    INTEGRATION = "integration"
    DATA = "data"
    SECURITY = "security"
    CHANNEL = "channel"
    LEGACY = "legacy"

    # Component types (case-sensitive)
    MICROSERVICE = "microservice"
    FUNCTION = "function"
    DATABASE = "database"
    BROKER = "broker"
    CACHE = "cache"
    IDP = "idp"
    STS = "sts"
    USERSTORE = "userstore"
    ESB = "esb"
    ADAPTER = "adapter"
    TRANSFORMER = "transformer"
    WEBAPP = "webapp"
    MOBILE = "mobile"
    IOT = "iot"
    MS = "ms"
    FN = "fn"
    DB = "db"

    # Endpoint types (case-sensitive)
    API = "api"
    EVENTS = "events"
    STREAM = "stream"

    # Punctuation
    ARROW = "->"
    EQUALS = "="
    DOT = "."
    COLON = ":"
    COMMA = ","
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    LPAREN = "("
    RPAREN = ")"

    EOF = "EOF"


CASE_SENSITIVE_KEYWORDS = frozenset(
    {
        TokenType.LOGIC,
        TokenType.INTEGRATION,
        TokenType.DATA,
        TokenType.SECURITY,
        TokenType.CHANNEL,
        TokenType.LEGACY,
        TokenType.MICROSERVICE,
        TokenType.FUNCTION,
        TokenType.DATABASE,
        TokenType.BROKER,
        TokenType.CACHE,
        TokenType.IDP,
        TokenType.STS,
        TokenType.USERSTORE,
        TokenType.ESB,
        TokenType.ADAPTER,
        TokenType.TRANSFORMER,
        TokenType.WEBAPP,
        TokenType.MOBILE,
        TokenType.IOT,
        TokenType.MS,
        TokenType.FN,
        TokenType.DB,
        TokenType.API,
        TokenType.EVENTS,
        TokenType.STREAM,
    }
)

_NON_KEYWORD_TYPES = frozenset(
    {
        TokenType.IDENTIFIER,
        TokenType.STRING,
        TokenType.NUMBER,
        TokenType.ARROW,
        TokenType.EQUALS,
        TokenType.DOT,
        TokenType.COLON,
        TokenType.COMMA,
        TokenType.LBRACE,
        TokenType.RBRACE,
        TokenType.LBRACKET,
        TokenType.RBRACKET,
        TokenType.LPAREN,
        TokenType.RPAREN,
        TokenType.EOF,
    }
)

KEYWORD_TYPES = frozenset(t for t in TokenType if t not in _NON_KEYWORD_TYPES)


def _build_keyword_table() -> dict[str, list[tuple[str, TokenType, bool]]]:
    """Group keywords by initial letter, longest first within each group."""
    table: dict[str, list[tuple[str, TokenType, bool]]] = {}
    for token_type in KEYWORD_TYPES:
        word = token_type.value
        case_sensitive = token_type in CASE_SENSITIVE_KEYWORDS
        table.setdefault(word[0], []).append((word, token_type, case_sensitive))
    for entries in table.values():
        entries.sort(key=lambda entry: (-len(entry[0]), entry[0]))
    return table


KEYWORD_TABLE = _build_keyword_table()

_PUNCTUATION = {
    "=": TokenType.EQUALS,
    ".": TokenType.DOT,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
}

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")
_VALID_ESCAPES = frozenset('nrt"\\')


def is_identifier_start(ch: str | None) -> bool:
    return ch is not None and ch.isascii() and (ch.isalpha() or ch == "_")


@dataclass(frozen=True)
class Token:
    """
    A single token in the DSL.

    Attributes:
        type: Type of token
        value: Exact source text of the token (strings keep their quotes)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        offset: Character offset into the source (0-indexed)
        length: Number of source characters covered
    """

    type: TokenType
    value: str
    line: int
    column: int
    offset: int
    length: int

    @property
    def end_offset(self) -> int:
        return self.offset + self.length

    @property
    def end_column(self) -> int:
        return self.column + self.length

    @property
    def is_keyword(self) -> bool:
        return self.type in KEYWORD_TYPES

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


@dataclass(frozen=True)
class LexError:
    """A lexical problem found while tokenizing."""

    code: ErrorCode
    message: str
    line: int
    column: int
    offset: int
    length: int
    end_line: int | None = None  # set when the span was consumed, possibly across lines
    end_column: int | None = None


@dataclass
class TokenizeResult:
    """Tokens plus any lexical errors. ``tokens`` always ends with EOF."""

    tokens: list[Token] = field(default_factory=list)
    errors: list[LexError] = field(default_factory=list)


class Lexer:
    """
    Lexer for the CellDL DSL.

    Keywords are resolved longest-first and only accepted when they are not
    immediately followed by identifier characters, so ``cells`` never lexes
    as ``cell`` + ``s`` and ``databaseName`` stays a plain identifier.
    """

    def __init__(self, text: str):
        """
        Initialize lexer.

        Args:
            text: Source text to tokenize
        """
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []
        self.errors: list[LexError] = []

    def current_char(self) -> str | None:
        """Get current character or None if at end."""
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def peek_char(self, offset: int = 1) -> str | None:
        """Peek ahead at character."""
        pos = self.pos + offset
        if pos >= len(self.text):
            return None
        return self.text[pos]

    def advance(self) -> None:
        """Move to next character, updating line/column."""
        if self.pos < len(self.text):
            if self.text[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def is_identifier_char(self, pos: int) -> bool:
        """Whether the character at pos continues an identifier.

        A hyphen only continues an identifier when it does not start ``->``.
        """
        if pos >= len(self.text):
            return False
        ch = self.text[pos]
        if ch.isascii() and (ch.isalnum() or ch == "_"):
            return True
        return ch == "-" and self.text[pos + 1 : pos + 2] != ">"

    def error(self, code: ErrorCode, message: str, line: int, column: int, offset: int) -> None:
        self.errors.append(
            LexError(
                code=code,
                message=message,
                line=line,
                column=column,
                offset=offset,
                length=max(self.pos - offset, 1),
                end_line=self.line if self.pos > offset else None,
                end_column=self.column if self.pos > offset else None,
            )
        )

    def emit(self, token_type: TokenType, line: int, column: int, offset: int) -> None:
        self.tokens.append(
            Token(
                type=token_type,
                value=self.text[offset : self.pos],
                line=line,
                column=column,
                offset=offset,
                length=self.pos - offset,
            )
        )

    def skip_line_comment(self) -> None:
        """Skip a // comment up to (not including) the newline."""
        while self.current_char() is not None and self.current_char() != "\n":
            self.advance()

    def skip_block_comment(self) -> None:
        """Skip a /* */ comment. Block comments do not nest."""
        line, column, offset = self.line, self.column, self.pos
        self.advance()
        self.advance()
        while self.current_char() is not None:
            if self.current_char() == "*" and self.peek_char() == "/":
                self.advance()
                self.advance()
                return
            self.advance()
        self.error(
            ErrorCode.UNEXPECTED_CHARACTER, "Unterminated block comment", line, column, offset
        )

    def read_string(self) -> None:
        """Read a double-quoted string literal, validating escapes."""
        line, column, offset = self.line, self.column, self.pos
        self.advance()  # opening quote

        while True:
            current = self.current_char()
            if current is None or current == "\n":
                self.error(
                    ErrorCode.UNTERMINATED_STRING,
                    "Unterminated string literal",
                    line,
                    column,
                    offset,
                )
                return
            if current == '"':
                self.advance()
                break
            if current == "\\":
                escape_line, escape_col, escape_offset = self.line, self.column, self.pos
                escape_char = self.peek_char()
                if escape_char is None or escape_char == "\n":
                    self.advance()
                    continue
                self.advance()
                self.advance()
                if escape_char not in _VALID_ESCAPES:
                    self.error(
                        ErrorCode.INVALID_ESCAPE_SEQUENCE,
                        f"Invalid escape sequence '\\{escape_char}'",
                        escape_line,
                        escape_col,
                        escape_offset,
                    )
                continue
            self.advance()

        self.emit(TokenType.STRING, line, column, offset)

    def read_number(self) -> None:
        """Read an integer or decimal literal."""
        line, column, offset = self.line, self.column, self.pos
        match = _NUMBER_PATTERN.match(self.text, self.pos)
        if match is None:
            self.read_illegal()
            return
        while self.pos < match.end():
            self.advance()

        # Reject numbers glued to identifier characters, e.g. "100Gi"
        if is_identifier_start(self.current_char()) or (
            self.current_char() is not None and self.current_char().isdigit()
        ):
            while self.is_identifier_char(self.pos):
                self.advance()
            self.error(
                ErrorCode.INVALID_NUMBER,
                f"Invalid number '{self.text[offset:self.pos]}'",
                line,
                column,
                offset,
            )
            return

        self.emit(TokenType.NUMBER, line, column, offset)

    def match_keyword(self) -> TokenType | None:
        """
        Try every keyword starting at the current position, longest first.

        Returns:
            The keyword token type, or None if the word is an identifier
        """
        initial = self.text[self.pos].lower()
        for word, token_type, case_sensitive in KEYWORD_TABLE.get(initial, ()):
            end = self.pos + len(word)
            candidate = self.text[self.pos : end]
            if not case_sensitive:
                candidate = candidate.lower()
            if candidate != word:
                continue
            # A keyword followed by identifier chars is a longer identifier
            if self.is_identifier_char(end):
                continue
            return token_type
        return None

    def read_word(self) -> None:
        """Read an identifier or keyword."""
        line, column, offset = self.line, self.column, self.pos
        token_type = self.match_keyword()
        if token_type is not None:
            for _ in range(len(token_type.value)):
                self.advance()
        else:
            token_type = TokenType.IDENTIFIER
            self.advance()
            while self.is_identifier_char(self.pos):
                self.advance()
        self.emit(token_type, line, column, offset)

    def read_illegal(self) -> None:
        """Consume a run of characters that cannot start any token."""
        line, column, offset = self.line, self.column, self.pos
        while self.current_char() is not None and not self.can_start_token():
            self.advance()
        text = self.text[offset : self.pos]
        noun = "character" if len(text) == 1 else "characters"
        self.error(
            ErrorCode.UNEXPECTED_CHARACTER,
            f"Unexpected {noun} '{text}'",
            line,
            column,
            offset,
        )

    def can_start_token(self) -> bool:
        ch = self.current_char()
        if ch is None:
            return False
        if ch.isspace() or ch == '"' or ch.isdigit() or ch in _PUNCTUATION:
            return True
        if is_identifier_start(ch):
            return True
        if ch == "/" and self.peek_char() in ("/", "*"):
            return True
        if ch == "-":
            nxt = self.peek_char()
            return nxt == ">" or (nxt is not None and nxt.isdigit())
        return False

    def tokenize(self) -> TokenizeResult:
        """
        Tokenize the entire source text.

        Returns:
            TokenizeResult with tokens (always EOF-terminated) and lexical errors
        """
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            line, column, offset = self.line, self.column, self.pos

            if ch.isspace():
                self.advance()

            elif ch == "/" and self.peek_char() == "/":
                self.skip_line_comment()

            elif ch == "/" and self.peek_char() == "*":
                self.skip_block_comment()

            elif ch == '"':
                self.read_string()

            elif ch.isdigit() or (ch == "-" and (self.peek_char() or "").isdigit()):
                self.read_number()

            elif is_identifier_start(ch):
                self.read_word()

            elif ch == "-" and self.peek_char() == ">":
                self.advance()
                self.advance()
                self.emit(TokenType.ARROW, line, column, offset)

            elif ch in _PUNCTUATION:
                self.advance()
                self.emit(_PUNCTUATION[ch], line, column, offset)

            else:
                self.read_illegal()

        self.tokens.append(
            Token(TokenType.EOF, "", self.line, self.column, len(self.text), 0)
        )
        logger.debug(f"Tokenized {len(self.tokens)} tokens with {len(self.errors)} lexical errors")
        return TokenizeResult(tokens=self.tokens, errors=self.errors)


def tokenize(text: str) -> TokenizeResult:
    """
    Convenience function to tokenize DSL text.

    Args:
        text: Source text

    Returns:
        TokenizeResult with tokens and lexical errors
    """
    lexer = Lexer(text)
    return lexer.tokenize()
