"""Source span tracking for AST nodes.

Records where a DSL construct was written, enabling editor navigation and
placing error placeholders.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SourceSpan(BaseModel):
    """Span of source text covered by a construct.

    Attributes:
        line: 1-indexed start line
        column: 1-indexed start column
        end_line: 1-indexed end line
        end_column: 1-indexed end column (exclusive)
        offset: 0-indexed start offset
        length: Number of characters covered
    """

    line: int
    column: int
    end_line: int
    end_column: int
    offset: int
    length: int

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


DEFAULT_SPAN = SourceSpan(line=1, column=1, end_line=1, end_column=2, offset=0, length=1)
