"""
Program root of the CellDL AST.

A Program is an ordered list of statements; source order is significant
and preserved by the printer. The optional name, version, description and
properties come from a ``workspace``/``diagram`` wrapper.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from .actors import ApplicationDefinition, ExternalDefinition, UserDefinition
from .attributes import AttributeValue
from .cells import CellDefinition, ClusterDefinition
from .connections import ConnectionsBlock
from .error_node import ErrorNode

Statement = Annotated[
    CellDefinition
    | ExternalDefinition
    | UserDefinition
    | ApplicationDefinition
    | ConnectionsBlock
    | ErrorNode,
    Field(discriminator="kind"),
]


class Program(BaseModel):
    """
    Root of a parsed CellDL document.

    Attributes:
        name: Workspace/diagram name
        version: Workspace version
        description: Workspace description
        properties: Workspace-level ``property`` entries
        statements: Statements in source order
    """

    name: str | None = None
    version: str | None = None
    description: str | None = None
    properties: dict[str, AttributeValue] = Field(default_factory=dict)
    statements: list[Statement] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def cells(self) -> list[CellDefinition]:
        return [s for s in self.statements if isinstance(s, CellDefinition)]

    @property
    def externals(self) -> list[ExternalDefinition]:
        return [s for s in self.statements if isinstance(s, ExternalDefinition)]

    @property
    def users(self) -> list[UserDefinition]:
        return [s for s in self.statements if isinstance(s, UserDefinition)]

    @property
    def applications(self) -> list[ApplicationDefinition]:
        return [s for s in self.statements if isinstance(s, ApplicationDefinition)]

    @property
    def connection_blocks(self) -> list[ConnectionsBlock]:
        return [s for s in self.statements if isinstance(s, ConnectionsBlock)]


def is_error_node(node: object) -> bool:
    return isinstance(node, ErrorNode)


def extract_error_nodes(program: Program) -> list[ErrorNode]:
    """
    Collect every ErrorNode in the program, in source order of discovery.

    Error nodes can appear as statements, as cell components and as cluster
    members.
    """
    found: list[ErrorNode] = []
    for statement in program.statements:
        if isinstance(statement, ErrorNode):
            found.append(statement)
        elif isinstance(statement, CellDefinition):
            for member in statement.components:
                if isinstance(member, ErrorNode):
                    found.append(member)
                elif isinstance(member, ClusterDefinition):
                    found.extend(c for c in member.components if isinstance(c, ErrorNode))
    return found


def count_error_nodes(program: Program) -> int:
    return len(extract_error_nodes(program))
