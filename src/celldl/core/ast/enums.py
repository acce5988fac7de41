"""
Closed vocabularies of the CellDL AST.

Component types have short aliases (``ms``, ``fn``, ``db``) that resolve to
their canonical variant. Display label tables are provided for renderers.
"""

from __future__ import annotations

from enum import Enum


class CellType(str, Enum):
    """Kind of architectural cell."""

    LOGIC = "logic"
    INTEGRATION = "integration"
    DATA = "data"
    SECURITY = "security"
    CHANNEL = "channel"
    LEGACY = "legacy"


class ComponentType(str, Enum):
    """Kind of component inside a cell."""

    MICROSERVICE = "microservice"
    FUNCTION = "function"
    DATABASE = "database"
    BROKER = "broker"
    CACHE = "cache"
    GATEWAY = "gateway"
    IDP = "idp"
    STS = "sts"
    USERSTORE = "userstore"
    ESB = "esb"
    ADAPTER = "adapter"
    TRANSFORMER = "transformer"
    WEBAPP = "webapp"
    MOBILE = "mobile"
    IOT = "iot"
    LEGACY = "legacy"


COMPONENT_TYPE_ALIASES: dict[str, ComponentType] = {
    "ms": ComponentType.MICROSERVICE,
    "fn": ComponentType.FUNCTION,
    "db": ComponentType.DATABASE,
}


def resolve_component_type(name: str) -> ComponentType:
    """
    Resolve a component type word, following aliases.

    Raises:
        ValueError: If the word is not a component type or alias
    """
    alias = COMPONENT_TYPE_ALIASES.get(name)
    if alias is not None:
        return alias
    return ComponentType(name)


class EndpointType(str, Enum):
    """Kind of endpoint a gateway exposes or an external system provides."""

    API = "api"
    EVENTS = "events"
    STREAM = "stream"


class ConnectionDirection(str, Enum):
    """Traffic direction of a connection relative to a cell."""

    NORTHBOUND = "northbound"
    SOUTHBOUND = "southbound"
    EASTBOUND = "eastbound"
    WESTBOUND = "westbound"


class GatewayPosition(str, Enum):
    """Side of the cell boundary a gateway sits on."""

    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"


class GatewayDirection(str, Enum):
    """Whether a gateway admits or emits traffic."""

    INGRESS = "ingress"
    EGRESS = "egress"


class AuthType(str, Enum):
    """Gateway authentication mode."""

    LOCAL_STS = "local-sts"
    FEDERATED = "federated"


class ExternalType(str, Enum):
    """Kind of external system."""

    SAAS = "saas"
    PARTNER = "partner"
    ENTERPRISE = "enterprise"


class UserType(str, Enum):
    """Kind of user/actor."""

    EXTERNAL = "external"
    INTERNAL = "internal"
    SYSTEM = "system"


class BlockKind(str, Enum):
    """Keyword that introduced a connections block."""

    CONNECTIONS = "connections"
    FLOW = "flow"


COMPONENT_TYPE_LABELS: dict[ComponentType, str] = {
    ComponentType.MICROSERVICE: "Microservice",
    ComponentType.FUNCTION: "Function",
    ComponentType.DATABASE: "Database",
    ComponentType.BROKER: "Broker",
    ComponentType.CACHE: "Cache",
    ComponentType.GATEWAY: "Gateway",
    ComponentType.IDP: "Identity Provider",
    ComponentType.STS: "Security Token Service",
    ComponentType.USERSTORE: "User Store",
    ComponentType.ESB: "ESB",
    ComponentType.ADAPTER: "Adapter",
    ComponentType.TRANSFORMER: "Transformer",
    ComponentType.WEBAPP: "Web App",
    ComponentType.MOBILE: "Mobile App",
    ComponentType.IOT: "IoT Gateway",
    ComponentType.LEGACY: "Legacy System",
}

CELL_TYPE_LABELS: dict[CellType, str] = {
    CellType.LOGIC: "Logic",
    CellType.INTEGRATION: "Integration",
    CellType.DATA: "Data",
    CellType.SECURITY: "Security",
    CellType.CHANNEL: "Channel",
    CellType.LEGACY: "Legacy",
}

# (short label, description) per direction
DIRECTION_INFO: dict[ConnectionDirection, tuple[str, str]] = {
    ConnectionDirection.NORTHBOUND: ("N", "Ingress from users/channels"),
    ConnectionDirection.SOUTHBOUND: ("S", "Egress to external systems"),
    ConnectionDirection.EASTBOUND: ("E", "Egress to another cell"),
    ConnectionDirection.WESTBOUND: ("W", "Ingress from another cell"),
}
