"""
Error placeholder node.

The tolerant visitor substitutes an ErrorNode for any statement or
component it cannot build, so a partial AST is always available to editor
tooling. An ErrorNode never appears in the AST of an error-free parse.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from ..diagnostics.codes import ErrorCode
from .location import SourceSpan


class ErrorNode(BaseModel):
    """
    Placeholder for a subtree that could not be turned into an AST node.

    Attributes:
        code: Diagnostic code describing the failure
        message: Human-readable message
        rule_name: Grammar rule of the failing subtree
        location: Best-known span (first token of the failing subtree)
        recovery_hint: Optional guidance on how to fix the source
        partial_data: Whatever could be salvaged (e.g. the definition's id)
    """

    kind: Literal["error"] = "error"
    code: ErrorCode
    message: str
    rule_name: str
    location: SourceSpan
    recovery_hint: str | None = None
    partial_data: dict[str, Any] | None = None

    model_config = ConfigDict(frozen=True)
