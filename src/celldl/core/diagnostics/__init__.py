"""
CellDL diagnostics: error codes, messages, recovery suggestions and collection.

Only the error taxonomy is imported here; the lexer depends on it. Import the
collector, message builders and recovery engine from their modules.
"""

from .codes import (
    ERROR_CODE_INFO,
    SEVERITY_ORDER,
    EnhancedParseError,
    ErrorCategory,
    ErrorCode,
    ErrorCodeInfo,
    ErrorSeverity,
    SuggestedFix,
    TextRange,
    create_enhanced_error,
    get_error_category,
    get_error_severity,
)

__all__ = [
    "ERROR_CODE_INFO",
    "SEVERITY_ORDER",
    "EnhancedParseError",
    "ErrorCategory",
    "ErrorCode",
    "ErrorCodeInfo",
    "ErrorSeverity",
    "SuggestedFix",
    "TextRange",
    "create_enhanced_error",
    "get_error_category",
    "get_error_severity",
]
