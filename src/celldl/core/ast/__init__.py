"""
CellDL abstract syntax tree.

Immutable pydantic models describing a parsed diagram. All statement and
member unions are discriminated by the ``kind`` field, so consumers can
dispatch with ``match``.
"""

from .actors import ApplicationDefinition, ExternalDefinition, UserDefinition
from .attributes import AttributeValue
from .cells import (
    AuthConfig,
    CellDefinition,
    CellMember,
    ClusterDefinition,
    ClusterMember,
    ComponentDefinition,
    GatewayDefinition,
    GatewayRoute,
    InternalConnection,
)
from .connections import Connection, ConnectionEndpoint, ConnectionsBlock
from .enums import (
    CELL_TYPE_LABELS,
    COMPONENT_TYPE_ALIASES,
    COMPONENT_TYPE_LABELS,
    DIRECTION_INFO,
    AuthType,
    BlockKind,
    CellType,
    ComponentType,
    ConnectionDirection,
    EndpointType,
    ExternalType,
    GatewayDirection,
    GatewayPosition,
    UserType,
    resolve_component_type,
)
from .error_node import ErrorNode
from .location import DEFAULT_SPAN, SourceSpan
from .program import Program, Statement, count_error_nodes, extract_error_nodes, is_error_node

__all__ = [
    # Root
    "Program",
    "Statement",
    # Statements
    "CellDefinition",
    "ExternalDefinition",
    "UserDefinition",
    "ApplicationDefinition",
    "ConnectionsBlock",
    "ErrorNode",
    # Cell members
    "CellMember",
    "ClusterMember",
    "ComponentDefinition",
    "ClusterDefinition",
    "GatewayDefinition",
    "GatewayRoute",
    "AuthConfig",
    "InternalConnection",
    # Connections
    "Connection",
    "ConnectionEndpoint",
    # Values and locations
    "AttributeValue",
    "SourceSpan",
    "DEFAULT_SPAN",
    # Enums
    "AuthType",
    "BlockKind",
    "CellType",
    "ComponentType",
    "ConnectionDirection",
    "EndpointType",
    "ExternalType",
    "GatewayDirection",
    "GatewayPosition",
    "UserType",
    "COMPONENT_TYPE_ALIASES",
    "COMPONENT_TYPE_LABELS",
    "CELL_TYPE_LABELS",
    "DIRECTION_INFO",
    "resolve_component_type",
    # Helpers
    "count_error_nodes",
    "extract_error_nodes",
    "is_error_node",
]
