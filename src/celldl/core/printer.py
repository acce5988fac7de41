"""
AST to CellDL source printer.

Produces canonical, deterministic source text from a Program. Printing the
AST of a successful strict parse and parsing the result again yields a
structurally equal AST.

Printing an AST that contains ErrorNodes is outside this contract; each
ErrorNode is emitted as a comment so the output stays readable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal

from .ast import (
    ApplicationDefinition,
    AttributeValue,
    AuthType,
    CellDefinition,
    CellType,
    ClusterDefinition,
    ComponentDefinition,
    Connection,
    ConnectionEndpoint,
    ConnectionsBlock,
    ErrorNode,
    ExternalDefinition,
    GatewayDefinition,
    Program,
    UserDefinition,
)
from .grammar_impl.base import VALUE_KEYWORDS
from .lexer import TokenType, tokenize

_PLAIN_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")
_STRING_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}


@dataclass(frozen=True)
class StringifyOptions:
    """
    Printer layout options.

    Attributes:
        indent: One level of indentation
        line_ending: Line separator, also terminates the output
        blank_lines_between_statements: Separate top-level statements with a blank line
    """

    indent: str = "  "
    line_ending: str = "\n"
    blank_lines_between_statements: bool = True


def quote(text: str) -> str:
    """Quote and escape text as a string literal."""
    return '"' + "".join(_STRING_ESCAPES.get(ch, ch) for ch in text) + '"'


def _single_token_type(text: str) -> TokenType | None:
    result = tokenize(text)
    if result.errors or len(result.tokens) != 2:
        return None
    return result.tokens[0].type


def format_name(name: str) -> str:
    """Print a name bare when it lexes as an identifier, otherwise quoted."""
    if _PLAIN_NAME.fullmatch(name) and _single_token_type(name) == TokenType.IDENTIFIER:
        return name
    return quote(name)


def format_reference(reference: str | ConnectionEndpoint) -> str:
    if isinstance(reference, ConnectionEndpoint):
        parts = [reference.entity] if reference.component is None else [
            reference.entity,
            reference.component,
        ]
    else:
        parts = reference.split(".", 1)
    return ".".join(format_name(part) for part in parts)


def format_number(value: int | float) -> str:
    """Print a number positionally; the lexer has no exponent notation."""
    if isinstance(value, int):
        return str(value)
    text = format(Decimal(repr(value)), "f")
    return text if "." in text else f"{text}.0"


def format_value(value: AttributeValue) -> str:
    """Print an attribute value. Vocabulary words stay bare; other text is quoted."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, list):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    if _PLAIN_NAME.fullmatch(value) and _single_token_type(value) in VALUE_KEYWORDS:
        return value
    return quote(value)


def format_attributes(attributes: dict[str, AttributeValue]) -> str:
    return ", ".join(f"{key}: {format_value(value)}" for key, value in attributes.items())


class AstPrinter:
    """Prints a Program with fixed layout options."""

    def __init__(self, options: StringifyOptions | None = None):
        self.options = options or StringifyOptions()

    def pad(self, level: int) -> str:
        return self.options.indent * level

    def print(self, program: Program) -> str:
        lines: list[str] = []
        if program.name is not None:
            lines.append(f"workspace {quote(program.name)} {{")
            header = self.workspace_header(program)
            lines.extend(header)
            if header and program.statements:
                lines.append("")
            lines.extend(self.statements(program, level=1))
            lines.append("}")
        else:
            lines.extend(self.statements(program, level=0))

        text = self.options.line_ending.join(lines).strip()
        return text + self.options.line_ending

    def workspace_header(self, program: Program) -> list[str]:
        pad = self.pad(1)
        lines = []
        if program.version is not None:
            lines.append(f"{pad}version: {quote(program.version)}")
        if program.description is not None:
            lines.append(f"{pad}description: {quote(program.description)}")
        for key, value in program.properties.items():
            lines.append(f"{pad}property {format_name(key)}: {format_value(value)}")
        return lines

    def statements(self, program: Program, level: int) -> list[str]:
        lines: list[str] = []
        for index, statement in enumerate(program.statements):
            if index and self.options.blank_lines_between_statements:
                lines.append("")
            lines.extend(self.statement(statement, level))
        return lines

    def statement(self, statement: object, level: int) -> list[str]:
        match statement:
            case CellDefinition():
                return self.cell(statement, level)
            case ExternalDefinition():
                return self.external(statement, level)
            case UserDefinition():
                return self.user(statement, level)
            case ApplicationDefinition():
                return self.application(statement, level)
            case ConnectionsBlock():
                return self.connections_block(statement, level)
            case ErrorNode():
                return [f"{self.pad(level)}// error: {statement.message}"]
            case _:
                raise TypeError(f"Cannot print {type(statement).__name__}")

    # -- Cells ----------------------------------------------------------------

    def cell(self, cell: CellDefinition, level: int) -> list[str]:
        pad, inner = self.pad(level), self.pad(level + 1)
        header = f"{pad}cell {format_name(cell.id)}"
        if cell.cell_type != CellType.LOGIC:
            header += f" type: {cell.cell_type.value}"
        lines = [header + " {"]

        if cell.label is not None:
            lines.append(f"{inner}label: {quote(cell.label)}")
        if cell.description is not None:
            lines.append(f"{inner}description: {quote(cell.description)}")

        for gateway in cell.gateways:
            lines.extend(self.gateway(gateway, level + 1))

        if cell.components:
            lines.append(f"{inner}components {{")
            for member in cell.components:
                lines.extend(self.member(member, level + 2))
            lines.append(f"{inner}}}")

        if cell.connections:
            lines.append(f"{inner}flow {{")
            for connection in cell.connections:
                line = (
                    f"{self.pad(level + 2)}{format_reference(connection.source)}"
                    f" -> {format_reference(connection.target)}"
                )
                if connection.label is not None:
                    line += f" : {quote(connection.label)}"
                lines.append(line)
            lines.append(f"{inner}}}")

        lines.append(f"{pad}}}")
        return lines

    def member(self, member: object, level: int) -> list[str]:
        pad = self.pad(level)
        match member:
            case ComponentDefinition():
                return [pad + self.component(member)]
            case ClusterDefinition():
                return self.cluster(member, level)
            case ErrorNode():
                return [f"{pad}// error: {member.message}"]
            case _:
                raise TypeError(f"Cannot print {type(member).__name__}")

    def component(self, component: ComponentDefinition) -> str:
        attributes: dict[str, AttributeValue] = dict(component.attributes)
        if component.sidecars is not None:
            attributes["sidecar"] = list(component.sidecars)
        text = f"{component.component_type.value} {format_name(component.id)}"
        if attributes:
            text += f" [{format_attributes(attributes)}]"
        return text

    def cluster(self, cluster: ClusterDefinition, level: int) -> list[str]:
        pad, inner = self.pad(level), self.pad(level + 1)
        lines = [f"{pad}cluster {format_name(cluster.id)} {{"]
        if cluster.cluster_type is not None:
            lines.append(f"{inner}type: {cluster.cluster_type.value}")
        if cluster.replicas is not None:
            lines.append(f"{inner}replicas: {cluster.replicas}")
        for member in cluster.components:
            lines.extend(self.member(member, level + 1))
        lines.append(f"{pad}}}")
        return lines

    def gateway(self, gateway: GatewayDefinition, level: int) -> list[str]:
        pad, inner = self.pad(level), self.pad(level + 1)
        header = f"{pad}gateway"
        if gateway.direction is not None:
            header += f" {gateway.direction.value}"
        default_id = gateway.direction.value if gateway.direction is not None else "gateway"
        if gateway.id != default_id:
            header += f" {quote(gateway.id)}"
        lines = [header + " {"]

        if gateway.label is not None:
            lines.append(f"{inner}label: {quote(gateway.label)}")
        if gateway.position is not None:
            lines.append(f"{inner}position: {gateway.position.value}")
        exposes = ", ".join(endpoint.value for endpoint in gateway.exposes)
        lines.append(f"{inner}exposes: [{exposes}]")
        if gateway.policies is not None:
            lines.append(f"{inner}policies: {format_value(list(gateway.policies))}")
        if gateway.auth is not None:
            if gateway.auth.auth_type == AuthType.LOCAL_STS:
                lines.append(f"{inner}auth: local-sts")
            elif gateway.auth.reference is not None:
                lines.append(f"{inner}auth: federated({format_reference(gateway.auth.reference)})")
            else:
                lines.append(f"{inner}auth: federated")
        for key, value in gateway.attributes.items():
            lines.append(f"{inner}{key}: {format_value(value)}")
        for route in gateway.routes:
            lines.append(f"{inner}route {quote(route.path)} -> {format_reference(route.target)}")
        lines.append(f"{pad}}}")
        return lines

    # -- Actors ---------------------------------------------------------------

    def external(self, external: ExternalDefinition, level: int) -> list[str]:
        pad, inner = self.pad(level), self.pad(level + 1)
        lines = [f"{pad}external {format_name(external.id)} {{"]
        if external.label is not None:
            lines.append(f"{inner}label: {quote(external.label)}")
        lines.append(f"{inner}type: {external.external_type.value}")
        if external.provides is not None:
            provides = ", ".join(endpoint.value for endpoint in external.provides)
            lines.append(f"{inner}provides: [{provides}]")
        lines.append(f"{pad}}}")
        return lines

    def user(self, user: UserDefinition, level: int) -> list[str]:
        pad, inner = self.pad(level), self.pad(level + 1)
        lines = [f"{pad}user {format_name(user.id)} {{"]
        if user.label is not None:
            lines.append(f"{inner}label: {quote(user.label)}")
        lines.append(f"{inner}type: {user.user_type.value}")
        if user.channels is not None:
            lines.append(f"{inner}channels: {format_value(list(user.channels))}")
        lines.append(f"{pad}}}")
        return lines

    def application(self, application: ApplicationDefinition, level: int) -> list[str]:
        pad, inner = self.pad(level), self.pad(level + 1)
        lines = [f"{pad}application {format_name(application.id)} {{"]
        if application.label is not None:
            lines.append(f"{inner}label: {quote(application.label)}")
        if application.version is not None:
            lines.append(f"{inner}version: {quote(application.version)}")
        if application.cells:
            cells = ", ".join(format_name(cell) for cell in application.cells)
            lines.append(f"{inner}cells: [{cells}]")
        if application.gateway is not None:
            lines.extend(self.gateway(application.gateway, level + 1))
        lines.append(f"{pad}}}")
        return lines

    # -- Connections ----------------------------------------------------------

    def connections_block(self, block: ConnectionsBlock, level: int) -> list[str]:
        pad = self.pad(level)
        header = f"{pad}{block.block_kind.value}"
        if block.name is not None:
            header += f" {quote(block.name)}"
        lines = [header + " {"]
        for connection in block.connections:
            lines.append(self.pad(level + 1) + self.connection(connection))
        lines.append(f"{pad}}}")
        return lines

    def connection(self, connection: Connection) -> str:
        text = ""
        if connection.direction is not None:
            text += f"{connection.direction.value} "
        text += f"{format_reference(connection.source)} -> {format_reference(connection.target)}"
        attributes = dict(connection.attributes)
        label = attributes.pop("label", None)
        if isinstance(label, str):
            text += f" : {quote(label)}"
        elif label is not None:
            attributes["label"] = label
        if attributes:
            text += f" [{format_attributes(attributes)}]"
        return text


def stringify(program: Program, options: StringifyOptions | None = None) -> str:
    """
    Print a Program as CellDL source.

    Args:
        program: AST to print
        options: Layout options (two-space indent, LF, blank lines between statements)

    Returns:
        Source text ending with the configured line ending
    """
    return AstPrinter(options).print(program)
