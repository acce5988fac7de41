"""
Error taxonomy for CellDL diagnostics.

Every diagnostic carries a numeric code from a range-partitioned space:

- 1xxx: lexical errors (tokenization)
- 2xxx: structural errors (delimiters, blocks)
- 3xxx: token errors (missing/unexpected tokens)
- 4xxx: grammar/rule errors
- 5xxx: semantic errors (reserved)
- 9999: unknown

Category and severity are looked up from ERROR_CODE_INFO, never inferred.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum


class ErrorCategory(str, Enum):
    """Broad classification of a diagnostic."""

    LEXICAL = "lexical"
    STRUCTURAL = "structural"
    SYNTACTIC = "syntactic"
    SEMANTIC = "semantic"


class ErrorSeverity(str, Enum):
    """Severity of a diagnostic."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


SEVERITY_ORDER: dict[ErrorSeverity, int] = {
    ErrorSeverity.ERROR: 0,
    ErrorSeverity.WARNING: 1,
    ErrorSeverity.INFO: 2,
}


class ErrorCode(IntEnum):
    """Numeric diagnostic codes."""

    # Lexical (1xxx)
    UNEXPECTED_CHARACTER = 1001
    UNTERMINATED_STRING = 1002
    INVALID_NUMBER = 1003
    INVALID_ESCAPE_SEQUENCE = 1004

    # Structural (2xxx)
    MISSING_OPENING_BRACE = 2001
    MISSING_CLOSING_BRACE = 2002
    MISSING_OPENING_BRACKET = 2003
    MISSING_CLOSING_BRACKET = 2004
    MISSING_OPENING_PAREN = 2005
    MISSING_CLOSING_PAREN = 2006
    UNBALANCED_DELIMITERS = 2007
    UNTERMINATED_BLOCK = 2008

    # Token (3xxx)
    MISSING_IDENTIFIER = 3001
    MISSING_STRING_LITERAL = 3002
    MISSING_NUMBER_LITERAL = 3003
    MISSING_COLON = 3004
    MISSING_ARROW = 3005
    MISSING_EQUALS = 3006
    MISSING_COMMA = 3007
    MISSING_KEYWORD = 3008

    # Grammar (4xxx)
    UNEXPECTED_TOKEN = 4001
    INVALID_CELL_TYPE = 4002
    INVALID_COMPONENT_TYPE = 4003
    INVALID_GATEWAY_DIRECTION = 4004
    INVALID_EXTERNAL_TYPE = 4005
    INVALID_USER_TYPE = 4006
    INVALID_PROTOCOL = 4007
    INCOMPLETE_CELL_DEFINITION = 4008
    INCOMPLETE_GATEWAY_DEFINITION = 4009
    INCOMPLETE_COMPONENT_DEFINITION = 4010
    INCOMPLETE_FLOW_STATEMENT = 4011
    NO_VIABLE_ALTERNATIVE = 4012
    EARLY_EXIT = 4013
    REDUNDANT_INPUT = 4014
    INVALID_ATTRIBUTE_VALUE = 4015

    # Semantic (5xxx, reserved)
    UNDEFINED_REFERENCE = 5001
    DUPLICATE_IDENTIFIER = 5002
    TYPE_MISMATCH = 5003

    UNKNOWN_ERROR = 9999


@dataclass(frozen=True)
class ErrorCodeInfo:
    """Static metadata for an error code."""

    category: ErrorCategory
    severity: ErrorSeverity
    name: str


def _info(category: ErrorCategory, name: str, severity: ErrorSeverity = ErrorSeverity.ERROR):
    return ErrorCodeInfo(category=category, severity=severity, name=name)


_LEX = ErrorCategory.LEXICAL
_STRUCT = ErrorCategory.STRUCTURAL
_SYN = ErrorCategory.SYNTACTIC
_SEM = ErrorCategory.SEMANTIC
_WARN = ErrorSeverity.WARNING

ERROR_CODE_INFO: dict[ErrorCode, ErrorCodeInfo] = {
    ErrorCode.UNEXPECTED_CHARACTER: _info(_LEX, "Unexpected Character"),
    ErrorCode.UNTERMINATED_STRING: _info(_LEX, "Unterminated String"),
    ErrorCode.INVALID_NUMBER: _info(_LEX, "Invalid Number"),
    ErrorCode.INVALID_ESCAPE_SEQUENCE: _info(_LEX, "Invalid Escape Sequence"),
    ErrorCode.MISSING_OPENING_BRACE: _info(_STRUCT, "Missing Opening Brace"),
    ErrorCode.MISSING_CLOSING_BRACE: _info(_STRUCT, "Missing Closing Brace"),
    ErrorCode.MISSING_OPENING_BRACKET: _info(_STRUCT, "Missing Opening Bracket"),
    ErrorCode.MISSING_CLOSING_BRACKET: _info(_STRUCT, "Missing Closing Bracket"),
    ErrorCode.MISSING_OPENING_PAREN: _info(_STRUCT, "Missing Opening Parenthesis"),
    ErrorCode.MISSING_CLOSING_PAREN: _info(_STRUCT, "Missing Closing Parenthesis"),
    ErrorCode.UNBALANCED_DELIMITERS: _info(_STRUCT, "Unbalanced Delimiters"),
    ErrorCode.UNTERMINATED_BLOCK: _info(_STRUCT, "Unterminated Block"),
    ErrorCode.MISSING_IDENTIFIER: _info(_SYN, "Missing Identifier"),
    ErrorCode.MISSING_STRING_LITERAL: _info(_SYN, "Missing String"),
    ErrorCode.MISSING_NUMBER_LITERAL: _info(_SYN, "Missing Number"),
    ErrorCode.MISSING_COLON: _info(_SYN, "Missing Colon"),
    ErrorCode.MISSING_ARROW: _info(_SYN, "Missing Arrow"),
    ErrorCode.MISSING_EQUALS: _info(_SYN, "Missing Equals"),
    ErrorCode.MISSING_COMMA: _info(_SYN, "Missing Comma", _WARN),
    ErrorCode.MISSING_KEYWORD: _info(_SYN, "Missing Keyword"),
    ErrorCode.UNEXPECTED_TOKEN: _info(_SYN, "Unexpected Token"),
    ErrorCode.INVALID_CELL_TYPE: _info(_SYN, "Invalid Cell Type"),
    ErrorCode.INVALID_COMPONENT_TYPE: _info(_SYN, "Invalid Component Type"),
    ErrorCode.INVALID_GATEWAY_DIRECTION: _info(_SYN, "Invalid Gateway Direction"),
    ErrorCode.INVALID_EXTERNAL_TYPE: _info(_SYN, "Invalid External Type"),
    ErrorCode.INVALID_USER_TYPE: _info(_SYN, "Invalid User Type"),
    ErrorCode.INVALID_PROTOCOL: _info(_SYN, "Invalid Protocol"),
    ErrorCode.INCOMPLETE_CELL_DEFINITION: _info(_SYN, "Incomplete Cell"),
    ErrorCode.INCOMPLETE_GATEWAY_DEFINITION: _info(_SYN, "Incomplete Gateway"),
    ErrorCode.INCOMPLETE_COMPONENT_DEFINITION: _info(_SYN, "Incomplete Component"),
    ErrorCode.INCOMPLETE_FLOW_STATEMENT: _info(_SYN, "Incomplete Flow"),
    ErrorCode.NO_VIABLE_ALTERNATIVE: _info(_SYN, "No Viable Alternative"),
    ErrorCode.EARLY_EXIT: _info(_SYN, "Early Exit"),
    ErrorCode.REDUNDANT_INPUT: _info(_SYN, "Redundant Input", _WARN),
    ErrorCode.INVALID_ATTRIBUTE_VALUE: _info(_SYN, "Invalid Attribute Value"),
    ErrorCode.UNDEFINED_REFERENCE: _info(_SEM, "Undefined Reference"),
    ErrorCode.DUPLICATE_IDENTIFIER: _info(_SEM, "Duplicate Identifier", _WARN),
    ErrorCode.TYPE_MISMATCH: _info(_SEM, "Type Mismatch"),
    ErrorCode.UNKNOWN_ERROR: _info(_SYN, "Unknown Error"),
}


def get_error_category(code: ErrorCode) -> ErrorCategory:
    """Return the category for an error code."""
    return ERROR_CODE_INFO.get(code, ERROR_CODE_INFO[ErrorCode.UNKNOWN_ERROR]).category


def get_error_severity(code: ErrorCode) -> ErrorSeverity:
    """Return the default severity for an error code."""
    return ERROR_CODE_INFO.get(code, ERROR_CODE_INFO[ErrorCode.UNKNOWN_ERROR]).severity


@dataclass(frozen=True)
class TextRange:
    """Half-open byte range into the source. An empty range is an insertion point."""

    start_offset: int
    end_offset: int

    @property
    def is_insertion(self) -> bool:
        return self.start_offset == self.end_offset


@dataclass(frozen=True)
class SuggestedFix:
    """
    A machine-applicable text edit.

    Attributes:
        description: Human-readable summary of the edit
        replacement: Literal text to put in place of the range
        range: Byte range to replace
    """

    description: str
    replacement: str
    range: TextRange

    def apply(self, source: str) -> str:
        """Return source with this fix applied."""
        return (
            source[: self.range.start_offset] + self.replacement + source[self.range.end_offset :]
        )


@dataclass(frozen=True)
class EnhancedParseError:
    """
    A structured diagnostic with full span, classification and recovery data.

    Attributes:
        code: Numeric error code
        category: Category derived from the code
        severity: Severity derived from the code
        message: Human-readable message
        line: Start line (1-indexed)
        column: Start column (1-indexed)
        end_line: End line (1-indexed)
        end_column: End column (1-indexed, exclusive)
        offset: Start byte offset (0-indexed)
        length: Span length in characters
        recovery_hint: Optional guidance on how to fix the problem
        suggested_fix: Optional machine-applicable edit
        rule_name: Grammar rule active when the error was recorded
        expected_tokens: Display names of the tokens that would have been accepted
        actual_token: Text of the offending token
    """

    code: ErrorCode
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    line: int
    column: int
    end_line: int
    end_column: int
    offset: int
    length: int
    recovery_hint: str | None = None
    suggested_fix: SuggestedFix | None = None
    rule_name: str | None = None
    expected_tokens: tuple[str, ...] = field(default_factory=tuple)
    actual_token: str | None = None

    @property
    def is_fatal(self) -> bool:
        return self.severity == ErrorSeverity.ERROR


def create_enhanced_error(
    code: ErrorCode,
    message: str,
    line: int,
    column: int,
    offset: int,
    length: int = 1,
    *,
    end_line: int | None = None,
    end_column: int | None = None,
    recovery_hint: str | None = None,
    suggested_fix: SuggestedFix | None = None,
    rule_name: str | None = None,
    expected_tokens: tuple[str, ...] | list[str] = (),
    actual_token: str | None = None,
    severity: ErrorSeverity | None = None,
) -> EnhancedParseError:
    """
    Create an EnhancedParseError with category and severity taken from the code table.

    Args:
        code: Error code
        message: Error message
        line: Start line (1-indexed)
        column: Start column (1-indexed)
        offset: Start byte offset
        length: Span length (defaults to 1)
        end_line: End line, defaults to ``line``
        end_column: End column, defaults to ``column + length``
        severity: Override of the table severity

    Returns:
        The constructed diagnostic
    """
    return EnhancedParseError(
        code=code,
        category=get_error_category(code),
        severity=severity or get_error_severity(code),
        message=message,
        line=line,
        column=column,
        end_line=end_line if end_line is not None else line,
        end_column=end_column if end_column is not None else column + length,
        offset=offset,
        length=length,
        recovery_hint=recovery_hint,
        suggested_fix=suggested_fix,
        rule_name=rule_name,
        expected_tokens=tuple(expected_tokens),
        actual_token=actual_token,
    )
