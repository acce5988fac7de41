"""
CST to AST conversion.

AstBuilder walks the concrete syntax tree produced by the grammar parser and
builds the immutable AST. It is strict: any node it cannot convert raises
VisitError. TolerantAstBuilder shares the same walk but guards every
statement and component; a failing subtree is replaced by an ErrorNode and
the walk continues, so an AST is always produced.

Both builders are single-use objects: construct one per parse.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from .ast import (
    DEFAULT_SPAN,
    ApplicationDefinition,
    AttributeValue,
    AuthConfig,
    AuthType,
    BlockKind,
    CellDefinition,
    CellType,
    ClusterDefinition,
    ComponentDefinition,
    ComponentType,
    Connection,
    ConnectionDirection,
    ConnectionEndpoint,
    ConnectionsBlock,
    EndpointType,
    ErrorNode,
    ExternalDefinition,
    ExternalType,
    GatewayDefinition,
    GatewayDirection,
    GatewayPosition,
    GatewayRoute,
    InternalConnection,
    Program,
    SourceSpan,
    UserDefinition,
    UserType,
    resolve_component_type,
)
from .cst import CstNode, in_source_order
from .diagnostics.codes import EnhancedParseError, ErrorCode, create_enhanced_error
from .errors import VisitError, make_visit_error
from .lexer import Token, TokenType

logger = logging.getLogger(__name__)

T = TokenType

_ESCAPE_PATTERN = re.compile(r"\\(.)")
_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\"}

# Diagnostic code for a subtree the tolerant builder had to replace
ERROR_CODES_BY_RULE: dict[str, ErrorCode] = {
    "cellDefinition": ErrorCode.INCOMPLETE_CELL_DEFINITION,
    "componentDefinition": ErrorCode.INCOMPLETE_COMPONENT_DEFINITION,
    "clusterDefinition": ErrorCode.INCOMPLETE_COMPONENT_DEFINITION,
    "gatewayDefinition": ErrorCode.INCOMPLETE_GATEWAY_DEFINITION,
    "connectionsBlock": ErrorCode.INCOMPLETE_FLOW_STATEMENT,
}

_RECOVERY_HINTS: dict[str, str] = {
    "cellDefinition": "A cell needs a name and a body: cell Name { ... }",
    "componentDefinition": "Components are written <type> Name, e.g. ms OrderService",
    "clusterDefinition": "Clusters are written cluster Name { type: microservice ... }",
    "connectionsBlock": "Flows contain chains such as A -> B",
}


# =============================================================================
# Token helpers
# =============================================================================


def unescape(body: str) -> str:
    """Resolve ``\\n \\r \\t \\" \\\\`` escapes. Unknown escapes are kept verbatim."""
    return _ESCAPE_PATTERN.sub(lambda m: _ESCAPES.get(m.group(1), m.group(0)), body)


def token_text(token: Token) -> str:
    """The text a token denotes: string bodies unescaped, anything else as written."""
    if token.type == T.STRING:
        return unescape(token.value[1:-1])
    return token.value


def vocabulary_word(token: Token) -> str:
    """Canonical spelling of a bare word. Keywords denote their keyword whatever the case."""
    if token.is_keyword:
        return token.type.value
    return token_text(token)


def parse_number(text: str) -> int | float:
    """Integers stay integers; a decimal point makes a float."""
    return float(text) if "." in text else int(text)


def key_name(token: Token) -> str:
    """Attribute key as stored in the AST. Keyword keys are case-folded."""
    if token.type == T.STRING:
        return token_text(token)
    return token.value.lower() if token.is_keyword else token.value


def span_of(node: CstNode) -> SourceSpan | None:
    """Source span covering every token of a subtree."""
    tokens = list(node.iter_tokens())
    if not tokens:
        return None
    first = min(tokens, key=lambda t: t.offset)
    last = max(tokens, key=lambda t: t.end_offset)
    return SourceSpan(
        line=first.line,
        column=first.column,
        end_line=last.line,
        end_column=last.end_column,
        offset=first.offset,
        length=last.end_offset - first.offset,
    )


# =============================================================================
# Strict builder
# =============================================================================


class AstBuilder:
    """
    Strict CST to AST converter.

    Raises:
        VisitError: When a node cannot be converted
    """

    def build(self, cst: CstNode) -> Program:
        """Convert a ``program`` CST into a Program."""
        program = self.visit_program(cst)
        logger.debug(f"Built AST with {len(program.statements)} statements")
        return program

    # -- Failure boundaries ---------------------------------------------------

    def guard(self, node: CstNode) -> Any:
        """Visit a statement or component. The tolerant builder catches failures here."""
        try:
            return self.visit(node)
        except ValueError as e:
            raise self.fail(node, str(e)) from e

    def fail(self, node: CstNode, message: str) -> VisitError:
        span = span_of(node) or DEFAULT_SPAN
        return make_visit_error(
            message, node.name, span.line, span.column, offset=span.offset, length=span.length
        )

    # -- Dispatch -------------------------------------------------------------

    def visit(self, node: CstNode) -> Any:
        match node.name:
            case "cellDefinition":
                return self.visit_cell(node)
            case "externalDefinition":
                return self.visit_external(node)
            case "userDefinition":
                return self.visit_user(node)
            case "applicationDefinition":
                return self.visit_application(node)
            case "connectionsBlock":
                return self.visit_connections_block(node)
            case "componentDefinition":
                return self.visit_component(node)
            case "clusterDefinition":
                return self.visit_cluster(node)
            case "gatewayDefinition":
                return self.visit_gateway(node)
            case _:
                raise self.fail(node, f"Unexpected '{node.name}' node")

    # -- Program --------------------------------------------------------------

    def visit_program(self, node: CstNode) -> Program:
        wrapper = node.node("workspace") or node.node("diagram")
        if wrapper is None:
            return Program(statements=self.visit_statements(node))

        name_token = wrapper.token("name")
        properties: dict[str, AttributeValue] = {}
        for prop in wrapper.nodes("property"):
            key = prop.token("key")
            value = prop.node("value")
            if key is not None and value is not None:
                properties[key_name(key)] = self.visit_value(value)

        return Program(
            name=token_text(name_token) if name_token else None,
            version=self.string_property(wrapper, "version"),
            description=self.string_property(wrapper, "description"),
            properties=properties,
            statements=self.visit_statements(wrapper),
        )

    def visit_statements(self, node: CstNode) -> list[Any]:
        return [self.guard(statement) for statement in node.nodes("statement")]

    def string_property(self, node: CstNode, label: str) -> str | None:
        """Value of the last ``label "..."`` property node in a slot."""
        values = [p.token("value") for p in node.nodes(label)]
        values = [v for v in values if v is not None]
        return token_text(values[-1]) if values else None

    # -- Shared pieces --------------------------------------------------------

    def require_name(self, node: CstNode, what: str) -> str:
        token = node.token("name")
        if token is None:
            raise self.fail(node, f"{what} is missing a name")
        return token_text(token)

    def properties(self, node: CstNode) -> dict[str, CstNode]:
        """Property nodes of a definition keyed by rule name (last one wins)."""
        return {prop.name: prop for prop in node.nodes("property")}

    def property_text(self, props: dict[str, CstNode], rule: str) -> str | None:
        prop = props.get(rule)
        if prop is None:
            return None
        value = prop.token("value")
        return token_text(value) if value is not None else None

    def property_word(self, props: dict[str, CstNode], rule: str) -> str | None:
        """Like property_text, with keyword values in their canonical spelling."""
        prop = props.get(rule)
        if prop is None:
            return None
        value = prop.token("value")
        return vocabulary_word(value) if value is not None else None

    def list_property(self, props: dict[str, CstNode], rule: str) -> list[str] | None:
        prop = props.get(rule)
        if prop is None:
            return None
        array = prop.node("value")
        return [token_text(t) for t in array.tokens("element")] if array else []

    def visit_value(self, node: CstNode) -> AttributeValue:
        """Convert an ``attributeValue`` node."""
        if (token := node.token("string")) is not None:
            return token_text(token)
        if (token := node.token("number")) is not None:
            return parse_number(token.value)
        if (token := node.token("boolean")) is not None:
            return token.type == T.TRUE
        if (array := node.node("array")) is not None:
            return [token_text(t) for t in array.tokens("element")]
        if (token := node.token("identifier")) is not None:
            return vocabulary_word(token)
        raise self.fail(node, "Missing value")

    def visit_attributes(self, node: CstNode | None) -> dict[str, AttributeValue]:
        """Flatten an attribute list or block. A missing block yields an empty map."""
        attributes: dict[str, AttributeValue] = {}
        if node is None:
            return attributes
        for attribute in node.nodes("attribute"):
            key = attribute.token("key")
            value = attribute.node("value")
            if key is None or value is None:
                raise self.fail(attribute, "Incomplete attribute")
            attributes[key_name(key)] = self.visit_value(value)
        for env in node.nodes("env"):
            entries = [
                f"{token_text(entry.token('key'))}={self._env_value(entry)}"
                for entry in env.nodes("entry")
                if entry.token("key") is not None
            ]
            existing = attributes.get("env")
            attributes["env"] = (existing if isinstance(existing, list) else []) + entries
        return attributes

    def _env_value(self, entry: CstNode) -> str:
        value_node = entry.node("value")
        if value_node is None:
            raise self.fail(entry, "Environment entry is missing a value")
        value = self.visit_value(value_node)
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, list):
            return ",".join(value)
        return str(value)

    def endpoint(self, node: CstNode) -> ConnectionEndpoint:
        entity = node.token("entity")
        if entity is None:
            raise self.fail(node, "Reference is missing a name")
        component = node.token("component")
        return ConnectionEndpoint(
            entity=token_text(entity),
            component=token_text(component) if component is not None else None,
        )

    # -- Cells ----------------------------------------------------------------

    def visit_cell(self, node: CstNode) -> CellDefinition:
        cell_id = self.require_name(node, "Cell")
        props = self.properties(node)

        cell_type = CellType.LOGIC
        if (type_text := self.property_word(props, "typeProperty")) is not None:
            cell_type = CellType(type_text)

        members = in_source_order(
            node.nodes("component"),
            [c for block in node.nodes("components") for c in block.nodes("component")],
        )
        connections = [
            InternalConnection(source=str(edge.source), target=str(edge.target), label=edge.label)
            for block in node.nodes("connections")
            for chain in block.nodes("chain")
            for edge in self.visit_chain(chain)
        ]

        return CellDefinition(
            id=cell_id,
            label=self.property_text(props, "labelProperty"),
            description=self.property_text(props, "descriptionProperty"),
            cell_type=cell_type,
            gateways=[self.visit_gateway(g) for g in node.nodes("gateway")],
            components=[self.guard(member) for member in members],
            connections=connections,
            location=span_of(node),
        )

    def visit_component(self, node: CstNode) -> ComponentDefinition:
        if node.has("invalidType"):
            invalid = node.token("invalidType")
            raise self.fail(node, f"Unknown component type '{invalid.value if invalid else ''}'")
        type_token = node.token("componentType")
        if type_token is None:
            raise self.fail(node, "Component is missing a type")
        component_id = self.require_name(node, "Component")

        attributes = self.visit_attributes(node.node("attributes"))
        sidecars = self._pop_sidecars(attributes)

        if type_token.type == T.COMPONENT:
            declared = attributes.pop("type", None)
            if not isinstance(declared, str):
                raise self.fail(node, f"Component '{component_id}' needs a type attribute")
            component_type = resolve_component_type(declared)
        else:
            component_type = resolve_component_type(vocabulary_word(type_token))

        return ComponentDefinition(
            id=component_id,
            component_type=component_type,
            attributes=attributes,
            sidecars=sidecars,
            location=span_of(node),
        )

    def _pop_sidecars(self, attributes: dict[str, AttributeValue]) -> list[str] | None:
        sidecars: list[str] | None = None
        for key in ("sidecar", "sidecars"):
            if key not in attributes:
                continue
            value = attributes.pop(key)
            values = value if isinstance(value, list) else [str(value)]
            sidecars = (sidecars or []) + values
        return sidecars

    def visit_cluster(self, node: CstNode) -> ClusterDefinition:
        cluster_id = self.require_name(node, "Cluster")
        props = self.properties(node)

        cluster_type = None
        if (type_text := self.property_word(props, "typeProperty")) is not None:
            cluster_type = resolve_component_type(type_text)
        replicas = None
        if (replicas_text := self.property_text(props, "replicasProperty")) is not None:
            replicas = int(parse_number(replicas_text))

        return ClusterDefinition(
            id=cluster_id,
            cluster_type=cluster_type,
            replicas=replicas,
            components=[self.guard(c) for c in node.nodes("component")],
            location=span_of(node),
        )

    def visit_gateway(self, node: CstNode) -> GatewayDefinition:
        direction_token = node.token("direction")
        name_token = node.token("name")
        direction = GatewayDirection(direction_token.value.lower()) if direction_token else None
        if name_token is not None:
            gateway_id = token_text(name_token)
        elif direction is not None:
            gateway_id = direction.value
        else:
            gateway_id = "gateway"

        props = self.properties(node)
        exposes = self.list_property(props, "exposesProperty")
        position = self.property_text(props, "positionProperty")

        auth = None
        if (auth_node := props.get("authProperty")) is not None:
            auth = self.visit_auth(auth_node)

        routes = []
        for route in node.nodes("route"):
            path, target = route.token("path"), route.node("target")
            if path is None or target is None:
                raise self.fail(route, "Incomplete route")
            routes.append(GatewayRoute(path=token_text(path), target=str(self.endpoint(target))))

        attributes: dict[str, AttributeValue] = {}
        for attribute in node.nodes("attribute"):
            key, value = attribute.token("key"), attribute.node("value")
            if key is not None and value is not None:
                attributes[key_name(key)] = self.visit_value(value)

        return GatewayDefinition(
            id=gateway_id,
            direction=direction,
            position=GatewayPosition(position.lower()) if position else None,
            label=self.property_text(props, "labelProperty"),
            exposes=[EndpointType(e) for e in exposes] if exposes else [EndpointType.API],
            policies=self.list_property(props, "policiesProperty"),
            auth=auth,
            attributes=attributes,
            routes=routes,
            location=span_of(node),
        )

    def visit_auth(self, node: CstNode) -> AuthConfig:
        auth_type = node.token("authType")
        if auth_type is None:
            raise self.fail(node, "Missing authentication mode")
        if auth_type.type == T.LOCAL_STS:
            return AuthConfig(auth_type=AuthType.LOCAL_STS)
        reference = node.node("reference")
        return AuthConfig(
            auth_type=AuthType.FEDERATED,
            reference=str(self.endpoint(reference)) if reference is not None else None,
        )

    # -- Actors ---------------------------------------------------------------

    def visit_external(self, node: CstNode) -> ExternalDefinition:
        props = self.properties(node)
        type_text = self.property_word(props, "typeProperty")
        provides = self.list_property(props, "providesProperty")
        return ExternalDefinition(
            id=self.require_name(node, "External system"),
            label=self.property_text(props, "labelProperty"),
            external_type=ExternalType(type_text) if type_text else ExternalType.SAAS,
            provides=[EndpointType(p) for p in provides] if provides is not None else None,
            location=span_of(node),
        )

    def visit_user(self, node: CstNode) -> UserDefinition:
        props = self.properties(node)
        type_text = self.property_word(props, "typeProperty")
        return UserDefinition(
            id=self.require_name(node, "User"),
            label=self.property_text(props, "labelProperty"),
            user_type=UserType(type_text) if type_text else UserType.EXTERNAL,
            channels=self.list_property(props, "channelsProperty"),
            location=span_of(node),
        )

    def visit_application(self, node: CstNode) -> ApplicationDefinition:
        props = self.properties(node)
        gateways = node.nodes("gateway")
        return ApplicationDefinition(
            id=self.require_name(node, "Application"),
            label=self.property_text(props, "labelProperty"),
            version=self.property_text(props, "versionProperty"),
            cells=self.list_property(props, "cellsProperty") or [],
            gateway=self.visit_gateway(gateways[0]) if gateways else None,
            location=span_of(node),
        )

    # -- Connections ----------------------------------------------------------

    def visit_connections_block(self, node: CstNode) -> ConnectionsBlock:
        keyword = node.token("keyword")
        name = node.token("name")
        return ConnectionsBlock(
            block_kind=BlockKind(keyword.value.lower()) if keyword else BlockKind.CONNECTIONS,
            name=token_text(name) if name is not None else None,
            connections=[
                edge for chain in node.nodes("chain") for edge in self.visit_chain(chain)
            ],
            location=span_of(node),
        )

    def visit_chain(self, node: CstNode) -> list[Connection]:
        """
        Desugar ``A -> B -> C : "label" [attrs]`` into pairwise edges.

        A leading direction applies to every edge. The label and the trailing
        attribute list belong to the last edge only.
        """
        endpoints = [self.endpoint(e) for e in node.nodes("endpoint")]
        if len(endpoints) < 2:
            raise self.fail(node, "A connection needs a source and a target")

        direction_token = node.token("direction")
        direction = ConnectionDirection(direction_token.value.lower()) if direction_token else None

        trailing: dict[str, AttributeValue] = {}
        trailing_direction = None
        if (attributes := node.node("attributes")) is not None:
            trailing = self.visit_attributes(attributes)
            if (token := attributes.token("direction")) is not None:
                trailing_direction = ConnectionDirection(token.value.lower())
        if (label := node.token("label")) is not None:
            trailing = {"label": token_text(label), **trailing}

        edges = []
        last = len(endpoints) - 2
        for index, (source, target) in enumerate(zip(endpoints, endpoints[1:])):
            is_last = index == last
            edges.append(
                Connection(
                    direction=(trailing_direction or direction) if is_last else direction,
                    source=source,
                    target=target,
                    attributes=trailing if is_last else {},
                )
            )
        return edges


# =============================================================================
# Tolerant builder
# =============================================================================


class TolerantAstBuilder(AstBuilder):
    """
    Error-tolerant CST to AST converter.

    Statements, cell members and cluster members that fail to convert become
    ErrorNodes. Failures inside subtrees the parser already reported (nodes
    flagged ``recovered``) produce no extra diagnostic; other failures are
    recorded in ``errors``.
    """

    def __init__(self) -> None:
        self.errors: list[EnhancedParseError] = []
        self.error_node_count = 0

    def build(self, cst: CstNode) -> Program:
        try:
            return super().build(cst)
        except (VisitError, ValueError) as e:
            # Only the wrapper itself can fail here; keep an empty program
            logger.debug(f"Program root could not be built: {e}")
            return Program()

    def guard(self, node: CstNode) -> Any:
        try:
            return self.visit(node)
        except (VisitError, ValueError) as e:
            return self.error_node(node, e)

    def error_node(self, node: CstNode, failure: Exception) -> ErrorNode:
        message = failure.message if isinstance(failure, VisitError) else str(failure)
        code = ERROR_CODES_BY_RULE.get(node.name, ErrorCode.UNKNOWN_ERROR)
        token = node.first_token()
        location = (
            SourceSpan(
                line=token.line,
                column=token.column,
                end_line=token.line,
                end_column=token.end_column,
                offset=token.offset,
                length=token.length,
            )
            if token is not None
            else DEFAULT_SPAN
        )
        name = node.token("name")
        hint = _RECOVERY_HINTS.get(node.name)

        if not node.recovered:
            self.errors.append(
                create_enhanced_error(
                    code,
                    message,
                    location.line,
                    location.column,
                    location.offset,
                    location.length,
                    recovery_hint=hint,
                    rule_name=node.name,
                )
            )
        self.error_node_count += 1
        logger.debug(f"Replaced {node.name} with an error node: {message}")
        return ErrorNode(
            code=code,
            message=message,
            rule_name=node.name,
            location=location,
            recovery_hint=hint,
            partial_data={"id": token_text(name)} if name is not None else None,
        )
