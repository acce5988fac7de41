"""
Cell, gateway, component and cluster nodes of the CellDL AST.

DSL Syntax:

    cell Orders type: logic {
      label: "Order Management"
      gateway ingress {
        exposes: [api]
        auth: federated(Okta)
      }
      components {
        ms OrderService [tech: "Spring Boot", replicas: 3]
        db OrderDB [engine: postgres]
      }
      flow {
        ingress -> OrderService
        OrderService -> OrderDB
      }
    }
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from .attributes import AttributeValue
from .enums import (
    AuthType,
    CellType,
    ComponentType,
    EndpointType,
    GatewayDirection,
    GatewayPosition,
)
from .error_node import ErrorNode
from .location import SourceSpan


class ComponentDefinition(BaseModel):
    """
    A component inside a cell.

    Attributes:
        id: Component identifier
        component_type: Canonical component type (aliases already resolved)
        attributes: Free-form key/value attributes
        sidecars: Sidecar component ids, if any were declared
    """

    kind: Literal["component"] = "component"
    id: str
    component_type: ComponentType
    attributes: dict[str, AttributeValue] = Field(default_factory=dict)
    sidecars: list[str] | None = None
    location: SourceSpan | None = None

    model_config = ConfigDict(frozen=True)


ClusterMember = Annotated[ComponentDefinition | ErrorNode, Field(discriminator="kind")]


class ClusterDefinition(BaseModel):
    """A replicated group of components."""

    kind: Literal["cluster"] = "cluster"
    id: str
    cluster_type: ComponentType | None = None
    replicas: int | None = None
    components: list[ClusterMember] = Field(default_factory=list)
    location: SourceSpan | None = None

    model_config = ConfigDict(frozen=True)


CellMember = Annotated[
    ComponentDefinition | ClusterDefinition | ErrorNode, Field(discriminator="kind")
]


class AuthConfig(BaseModel):
    """Gateway authentication: ``local-sts`` or ``federated(Reference)``."""

    auth_type: AuthType
    reference: str | None = None

    model_config = ConfigDict(frozen=True)


class GatewayRoute(BaseModel):
    """A ``route "/path" -> Target`` entry of a gateway."""

    path: str
    target: str

    model_config = ConfigDict(frozen=True)


class GatewayDefinition(BaseModel):
    """
    Control point of a cell boundary.

    Attributes:
        id: Gateway id (explicit name, else the direction, else "gateway")
        direction: ingress/egress, when written in the header
        position: Boundary side, when given with ``position:``
        label: Display label
        exposes: Exposed endpoint types (defaults to api)
        policies: Ordered policy names
        auth: Authentication configuration
        attributes: protocol, port, context, target and other settings
        routes: Path routes to components
    """

    id: str = "gateway"
    direction: GatewayDirection | None = None
    position: GatewayPosition | None = None
    label: str | None = None
    exposes: list[EndpointType] = Field(default_factory=lambda: [EndpointType.API])
    policies: list[str] | None = None
    auth: AuthConfig | None = None
    attributes: dict[str, AttributeValue] = Field(default_factory=dict)
    routes: list[GatewayRoute] = Field(default_factory=list)
    location: SourceSpan | None = None

    model_config = ConfigDict(frozen=True)


class InternalConnection(BaseModel):
    """An edge between two components of the same cell."""

    source: str
    target: str
    label: str | None = None

    model_config = ConfigDict(frozen=True)


class CellDefinition(BaseModel):
    """
    A bounded architectural unit.

    Attributes:
        id: Cell identifier
        label: Display label
        description: Free-text description
        cell_type: Kind of cell (defaults to logic)
        gateways: Boundary gateways
        components: Components and clusters, in source order
        connections: Internal component-to-component edges
    """

    kind: Literal["cell"] = "cell"
    id: str
    label: str | None = None
    description: str | None = None
    cell_type: CellType = CellType.LOGIC
    gateways: list[GatewayDefinition] = Field(default_factory=list)
    components: list[CellMember] = Field(default_factory=list)
    connections: list[InternalConnection] = Field(default_factory=list)
    location: SourceSpan | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def gateway(self) -> GatewayDefinition | None:
        """The first gateway, if any."""
        return self.gateways[0] if self.gateways else None
