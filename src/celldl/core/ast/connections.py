"""Connection nodes of the CellDL AST."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .attributes import AttributeValue
from .enums import BlockKind, ConnectionDirection
from .location import SourceSpan


class ConnectionEndpoint(BaseModel):
    """A reference to an entity, optionally narrowed to one of its components."""

    entity: str
    component: str | None = None

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.component:
            return f"{self.entity}.{self.component}"
        return self.entity


class Connection(BaseModel):
    """A directed edge between two endpoints."""

    direction: ConnectionDirection | None = None
    source: ConnectionEndpoint
    target: ConnectionEndpoint
    attributes: dict[str, AttributeValue] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def label(self) -> str | None:
        value = self.attributes.get("label")
        return value if isinstance(value, str) else None


class ConnectionsBlock(BaseModel):
    """A ``connections { ... }`` or ``flow [Name] { ... }`` statement."""

    kind: Literal["connections"] = "connections"
    block_kind: BlockKind = BlockKind.CONNECTIONS
    name: str | None = None
    connections: list[Connection] = Field(default_factory=list)
    location: SourceSpan | None = None

    model_config = ConfigDict(frozen=True)
