"""External system, user and application nodes of the CellDL AST."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .cells import GatewayDefinition
from .enums import EndpointType, ExternalType, UserType
from .location import SourceSpan


class ExternalDefinition(BaseModel):
    """A system outside the architecture (SaaS, partner, enterprise)."""

    kind: Literal["external"] = "external"
    id: str
    label: str | None = None
    external_type: ExternalType = ExternalType.SAAS
    provides: list[EndpointType] | None = None
    location: SourceSpan | None = None

    model_config = ConfigDict(frozen=True)


class UserDefinition(BaseModel):
    """An actor using the system."""

    kind: Literal["user"] = "user"
    id: str
    label: str | None = None
    user_type: UserType = UserType.EXTERNAL
    channels: list[str] | None = None
    location: SourceSpan | None = None

    model_config = ConfigDict(frozen=True)


class ApplicationDefinition(BaseModel):
    """A grouping of cells released together."""

    kind: Literal["application"] = "application"
    id: str
    label: str | None = None
    version: str | None = None
    cells: list[str] = Field(default_factory=list)
    gateway: GatewayDefinition | None = None
    location: SourceSpan | None = None

    model_config = ConfigDict(frozen=True)
