"""
Human-readable diagnostic messages.

Maps token types to display names and turns parser recognition errors and
lexer errors into coded, hinted messages. Messages are context-aware: the
grammar rule active at the error selects the wording and the hint.
"""

from __future__ import annotations

from typing import NamedTuple

from ..ast.enums import CellType, ComponentType, EndpointType, ExternalType, GatewayPosition, UserType
from ..grammar_impl.base import RecognitionError, RecognitionKind
from ..lexer import LexError, Token, TokenType
from .codes import ErrorCode, EnhancedParseError, SuggestedFix, TextRange, create_enhanced_error

T = TokenType

# =============================================================================
# Token display names
# =============================================================================

TOKEN_DISPLAY_NAMES: dict[TokenType, str] = {
    T.LBRACE: "'{'",
    T.RBRACE: "'}'",
    T.LBRACKET: "'['",
    T.RBRACKET: "']'",
    T.LPAREN: "'('",
    T.RPAREN: "')'",
    T.COLON: "':'",
    T.COMMA: "','",
    T.DOT: "'.'",
    T.ARROW: "'->'",
    T.EQUALS: "'='",
    T.STRING: 'a string (e.g. "example")',
    T.NUMBER: "a number (e.g. 8080)",
    T.IDENTIFIER: "an identifier",
    T.EOF: "end of input",
}


def display_token_type(token_type: TokenType) -> str:
    """Display name for a token type; keywords display as quoted words."""
    return TOKEN_DISPLAY_NAMES.get(token_type, f"'{token_type.value}'")


def describe_token(token: Token) -> str:
    """Describe the token actually found."""
    if token.type == T.EOF:
        return "end of input"
    return f"'{token.value}'"


def format_expected_tokens(names: list[str] | tuple[str, ...]) -> str:
    """
    Join display names into prose.

    Examples:
        ["a"] -> "a"
        ["a", "b"] -> "a or b"
        ["a", "b", "c"] -> "a, b, or c"
    """
    unique = list(dict.fromkeys(names))
    if not unique:
        return "valid input"
    if len(unique) == 1:
        return unique[0]
    if len(unique) == 2:
        return f"{unique[0]} or {unique[1]}"
    return f"{', '.join(unique[:-1])}, or {unique[-1]}"


# =============================================================================
# Closed vocabularies
# =============================================================================

VALID_CELL_TYPES = [t.value for t in CellType]
VALID_COMPONENT_TYPES = [t.value for t in ComponentType] + ["ms", "fn", "db"]
VALID_EXTERNAL_TYPES = [t.value for t in ExternalType]
VALID_USER_TYPES = [t.value for t in UserType]
VALID_ENDPOINT_TYPES = [t.value for t in EndpointType]
VALID_GATEWAY_POSITIONS = [p.value for p in GatewayPosition]
VALID_PROTOCOLS = ["https", "http", "grpc", "mtls", "kafka", "tcp"]


class Vocabulary(NamedTuple):
    code: ErrorCode
    noun: str
    values: list[str]


# Keyed by the grammar rule that reads the value
VOCABULARIES: dict[str, Vocabulary] = {
    "cellTypeValue": Vocabulary(ErrorCode.INVALID_CELL_TYPE, "cell type", VALID_CELL_TYPES),
    "componentType": Vocabulary(
        ErrorCode.INVALID_COMPONENT_TYPE, "component type", VALID_COMPONENT_TYPES
    ),
    "externalType": Vocabulary(
        ErrorCode.INVALID_EXTERNAL_TYPE, "external type", VALID_EXTERNAL_TYPES
    ),
    "userType": Vocabulary(ErrorCode.INVALID_USER_TYPE, "user type", VALID_USER_TYPES),
    "protocolValue": Vocabulary(ErrorCode.INVALID_PROTOCOL, "protocol", VALID_PROTOCOLS),
    "gatewayPosition": Vocabulary(
        ErrorCode.INVALID_GATEWAY_DIRECTION, "gateway position", VALID_GATEWAY_POSITIONS
    ),
    "endpointType": Vocabulary(
        ErrorCode.INVALID_ATTRIBUTE_VALUE, "endpoint type", VALID_ENDPOINT_TYPES
    ),
}


class ErrorMessage(NamedTuple):
    """Code, message and optional hint for a diagnostic."""

    code: ErrorCode
    message: str
    hint: str | None = None


# =============================================================================
# Message builders
# =============================================================================

_MISSING_TOKEN: dict[TokenType, tuple[ErrorCode, str]] = {
    T.LBRACE: (ErrorCode.MISSING_OPENING_BRACE, "Add '{' to open the block"),
    T.RBRACE: (ErrorCode.MISSING_CLOSING_BRACE, "Add '}' to close the block"),
    T.LBRACKET: (ErrorCode.MISSING_OPENING_BRACKET, "Lists are written [a, b, c]"),
    T.RBRACKET: (ErrorCode.MISSING_CLOSING_BRACKET, "Add ']' to close the list"),
    T.LPAREN: (ErrorCode.MISSING_OPENING_PAREN, "Add '('"),
    T.RPAREN: (ErrorCode.MISSING_CLOSING_PAREN, "Add ')' to close the reference"),
    T.COLON: (ErrorCode.MISSING_COLON, "Separate the property name and value with ':'"),
    T.ARROW: (ErrorCode.MISSING_ARROW, "Connections are written Source -> Target"),
    T.STRING: (ErrorCode.MISSING_STRING_LITERAL, 'Wrap text in double quotes, e.g. "My Label"'),
    T.NUMBER: (ErrorCode.MISSING_NUMBER_LITERAL, "Use a number here, e.g. 8080"),
    T.EQUALS: (ErrorCode.MISSING_EQUALS, 'Environment entries are written KEY = "value"'),
    T.COMMA: (ErrorCode.MISSING_COMMA, "Separate list items with ','"),
}

_NAME_HINTS = {
    "cellDefinition": "Give the cell a name, e.g. cell Orders { ... }",
    "externalDefinition": "Give the external system a name, e.g. external Stripe { ... }",
    "userDefinition": "Give the user a name, e.g. user Customer { ... }",
    "applicationDefinition": "Give the application a name, e.g. application Shop { ... }",
    "componentDefinition": "Components are written <type> Name, e.g. ms OrderService",
    "clusterDefinition": "Give the cluster a name, e.g. cluster Workers { ... }",
    "reference": "References are written Name or Cell.Component",
    "workspaceDefinition": 'Name the workspace, e.g. workspace "My System" { ... }',
}

_BODY_CONTEXT = {
    "statement": (
        "at top level",
        "Expected a statement: cell, external, user, application, connections or flow",
    ),
    "cellBody": (
        "in cell body",
        "A cell contains label, type, description, gateway, components, cluster "
        "and flow/connections blocks",
    ),
    "gatewayBody": (
        "in gateway",
        "A gateway contains label, position, exposes, policies, auth, route "
        "and protocol/port/context/target settings",
    ),
    "componentDefinition": (
        "in components block",
        "Declare components as <type> Name, e.g. ms OrderService [tech: \"Go\"]",
    ),
    "clusterBody": ("in cluster", "A cluster contains type, replicas and components"),
    "externalBody": ("in external system", "An external system contains label, type and provides"),
    "userBody": ("in user", "A user contains label, type and channels"),
    "applicationBody": ("in application", "An application contains label, version, cells and gateway"),
    "connection": ("in flow", "Connections are written Source -> Target"),
    "connectionAttribute": ("in connection attributes", "Use a direction or key: value"),
    "attribute": ("in attributes", "Attributes are written key: value"),
    "arrayElement": ("in list", "List items are names, strings or numbers separated by ','"),
    "attributeValue": ("as value", "Values are strings, numbers, true/false, names or [lists]"),
    "authType": ("as auth mode", "Use auth: local-sts or auth: federated(Provider)"),
    "workspaceItem": (
        "in workspace",
        "A workspace contains version, description, property and statements",
    ),
    "envEntry": ("in env block", 'Environment entries are written KEY = "value"'),
}


def build_missing_token_message(
    expected: TokenType, actual: Token, rule_name: str | None = None
) -> ErrorMessage:
    """Message for a single expected token that was not found."""
    code, hint = _MISSING_TOKEN.get(expected, (ErrorCode.MISSING_KEYWORD, None))
    if expected == T.IDENTIFIER:
        code = ErrorCode.MISSING_IDENTIFIER
        hint = _NAME_HINTS.get(rule_name or "", "A name is required here")
    message = f"Expected {display_token_type(expected)} but found {describe_token(actual)}"
    return ErrorMessage(code, message, hint)


def build_no_viable_alt_message(
    actual: Token, rule_name: str, expected: tuple[TokenType, ...] = ()
) -> ErrorMessage:
    """Message for a token that no alternative of the rule accepts."""
    vocabulary = VOCABULARIES.get(rule_name)
    if vocabulary is not None:
        return ErrorMessage(
            vocabulary.code,
            f"Expected a {vocabulary.noun} but found {describe_token(actual)}",
            f"Valid {vocabulary.noun}s: {', '.join(vocabulary.values)}",
        )

    context = _BODY_CONTEXT.get(rule_name)
    if context is not None:
        where, hint = context
        return ErrorMessage(
            ErrorCode.NO_VIABLE_ALTERNATIVE, f"Unexpected {describe_token(actual)} {where}", hint
        )

    names = [display_token_type(t) for t in expected]
    return ErrorMessage(
        ErrorCode.NO_VIABLE_ALTERNATIVE,
        f"Unexpected {describe_token(actual)}",
        f"Expected {format_expected_tokens(names)}" if names else None,
    )


def build_early_exit_message(
    actual: Token, rule_name: str, expected: tuple[TokenType, ...] = ()
) -> ErrorMessage:
    """Message for a list that needed at least one element."""
    names = format_expected_tokens([display_token_type(t) for t in expected])
    examples = {
        "exposesProperty": "exposes: [api]",
        "cellsProperty": "cells: [Orders, Payments]",
    }
    hint = f"e.g. {examples[rule_name]}" if rule_name in examples else f"Add {names}"
    return ErrorMessage(
        ErrorCode.EARLY_EXIT,
        f"Expected at least one item but found {describe_token(actual)}",
        hint,
    )


def build_redundant_input_message(actual: Token) -> ErrorMessage:
    return ErrorMessage(
        ErrorCode.REDUNDANT_INPUT,
        f"Unexpected {describe_token(actual)} after the end of the diagram",
        "Remove it, or move it inside the workspace block",
    )


def build_unclosed_scope_message(opener: Token, closing: TokenType) -> ErrorMessage:
    code = _MISSING_TOKEN.get(closing, (ErrorCode.UNTERMINATED_BLOCK, None))[0]
    return ErrorMessage(
        code,
        f"Missing closing {display_token_type(closing)} for '{opener.value}' "
        f"opened at line {opener.line}",
        f"Add {display_token_type(closing)} to close the block",
    )


def build_invalid_value_message(actual: Token, rule_name: str) -> ErrorMessage:
    """Message for a word outside a closed vocabulary."""
    vocabulary = VOCABULARIES.get(rule_name)
    value = actual.value.strip('"')
    if vocabulary is None:
        return ErrorMessage(
            ErrorCode.INVALID_ATTRIBUTE_VALUE, f"Invalid value '{value}'", None
        )
    return ErrorMessage(
        vocabulary.code,
        f"'{value}' is not a valid {vocabulary.noun}",
        f"Valid {vocabulary.noun}s: {', '.join(vocabulary.values)}",
    )


def describe_recognition_error(error: RecognitionError) -> ErrorMessage:
    """Choose the message builder for a parser recognition error."""
    match error.kind:
        case RecognitionKind.MISMATCHED_TOKEN:
            expected = error.expected[0] if error.expected else T.IDENTIFIER
            return build_missing_token_message(expected, error.token, error.rule_name)
        case RecognitionKind.NO_VIABLE_ALTERNATIVE:
            return build_no_viable_alt_message(error.token, error.rule_name, error.expected)
        case RecognitionKind.EARLY_EXIT:
            return build_early_exit_message(error.token, error.rule_name, error.expected)
        case RecognitionKind.NOT_ALL_INPUT_PARSED:
            return build_redundant_input_message(error.token)
        case RecognitionKind.UNCLOSED_SCOPE:
            closing = error.expected[0] if error.expected else T.RBRACE
            return build_unclosed_scope_message(error.token, closing)
        case RecognitionKind.INVALID_VALUE:
            return build_invalid_value_message(error.token, error.rule_name)
    return ErrorMessage(ErrorCode.UNKNOWN_ERROR, f"Syntax error at {describe_token(error.token)}")


# =============================================================================
# Lexer errors
# =============================================================================

_LEXER_HINTS = {
    ErrorCode.UNEXPECTED_CHARACTER: "Remove the character, or quote it inside a string",
    ErrorCode.UNTERMINATED_STRING: 'Add a closing \'"\' before the end of the line',
    ErrorCode.INVALID_NUMBER: 'Quote values that mix digits and letters, e.g. "100Gi"',
    ErrorCode.INVALID_ESCAPE_SEQUENCE: 'Supported escapes are \\n, \\r, \\t, \\" and \\\\',
}


def convert_lexer_error(error: LexError) -> EnhancedParseError:
    """Convert a lexer error into a diagnostic."""
    fix = None
    if error.code == ErrorCode.UNTERMINATED_STRING:
        end = error.offset + error.length
        fix = SuggestedFix(
            description="Close the string",
            replacement='"',
            range=TextRange(start_offset=end, end_offset=end),
        )
    return create_enhanced_error(
        error.code,
        error.message,
        error.line,
        error.column,
        error.offset,
        error.length,
        end_line=error.end_line,
        end_column=error.end_column,
        recovery_hint=_LEXER_HINTS.get(error.code),
        suggested_fix=fix,
    )
