"""Tests for CST to AST conversion (strict and tolerant builders)."""

from __future__ import annotations

import pytest

from celldl.core.ast import (
    AuthType,
    BlockKind,
    CellType,
    ClusterDefinition,
    ComponentType,
    ConnectionDirection,
    EndpointType,
    ErrorNode,
    ExternalType,
    GatewayDirection,
    GatewayPosition,
    GatewayRoute,
    InternalConnection,
    UserType,
)
from celldl.core.diagnostics.codes import ErrorCode
from celldl.core.errors import VisitError
from celldl.core.grammar_impl import parse_tokens
from celldl.core.lexer import tokenize
from celldl.core.parser import parse_or_throw, parse_with_recovery
from celldl.core.visitor import AstBuilder, TolerantAstBuilder, parse_number, unescape


def cst_of(source: str):
    return parse_tokens(tokenize(source).tokens).cst


class TestCells:
    """Cells, gateways, components and internal flows."""

    def test_cell_header(self, orders_source):
        cell = parse_or_throw(orders_source).cells[0]
        assert cell.id == "Orders"
        assert cell.cell_type == CellType.LOGIC
        assert cell.label == "Order Management"

    def test_gateway(self, orders_source):
        gateway = parse_or_throw(orders_source).cells[0].gateway
        assert gateway.id == "ingress"
        assert gateway.direction == GatewayDirection.INGRESS
        assert gateway.exposes == [EndpointType.API, EndpointType.EVENTS]
        assert gateway.policies == ["rate-limit", "cors"]
        assert gateway.auth.auth_type == AuthType.FEDERATED
        assert gateway.auth.reference == "Okta"
        assert gateway.attributes == {"protocol": "https", "port": 443}
        assert gateway.routes == [GatewayRoute(path="/orders", target="OrderService")]

    def test_components_resolve_aliases(self, orders_source):
        service, database = parse_or_throw(orders_source).cells[0].components
        assert service.component_type == ComponentType.MICROSERVICE
        assert service.attributes == {"tech": "Spring Boot", "replicas": 3}
        assert database.component_type == ComponentType.DATABASE
        assert database.attributes == {"engine": "postgres"}

    def test_internal_flow(self, orders_source):
        cell = parse_or_throw(orders_source).cells[0]
        assert cell.connections == [
            InternalConnection(source="OrderService", target="OrderDB", label="persist")
        ]

    def test_cell_type_defaults_to_logic(self):
        cell = parse_or_throw("cell A {}").cells[0]
        assert cell.cell_type == CellType.LOGIC
        assert cell.gateways == []
        assert cell.gateway is None

    def test_cluster(self, shop_source):
        orders = parse_or_throw(shop_source).cells[0]
        cluster = orders.components[1]
        assert isinstance(cluster, ClusterDefinition)
        assert cluster.id == "Workers"
        assert cluster.cluster_type == ComponentType.MICROSERVICE
        assert cluster.replicas == 3
        assert [c.id for c in cluster.components] == ["Resize"]
        assert cluster.components[0].component_type == ComponentType.FUNCTION

    def test_named_gateway_with_position(self, shop_source):
        payments = parse_or_throw(shop_source).cells[1]
        assert payments.cell_type == CellType.INTEGRATION
        gateway = payments.gateway
        assert gateway.id == "psp"
        assert gateway.direction == GatewayDirection.EGRESS
        assert gateway.position == GatewayPosition.EAST
        assert gateway.auth.auth_type == AuthType.LOCAL_STS
        assert gateway.exposes == [EndpointType.API]

    def test_component_keyword_form(self):
        cell = parse_or_throw("cell A {\n  component Store { type: cache, ttl: 30 }\n}").cells[0]
        store = cell.components[0]
        assert store.component_type == ComponentType.CACHE
        assert store.attributes == {"ttl": 30}

    def test_members_keep_source_order(self):
        source = "cell A {\n  ms First\n  components {\n    db Second\n  }\n  fn Third\n}"
        cell = parse_or_throw(source).cells[0]
        assert [c.id for c in cell.components] == ["First", "Second", "Third"]

    def test_location(self, orders_source):
        cell = parse_or_throw(orders_source).cells[0]
        assert (cell.location.line, cell.location.column, cell.location.offset) == (1, 1, 0)
        assert cell.location.end_line == 18


class TestAttributes:
    """Attribute values, env blocks and sidecars."""

    def test_value_kinds(self):
        source = "cell A {\n  ms Api [weight: 1.5, replicas: 2, enabled: true, tags: [a, b]]\n}"
        attributes = parse_or_throw(source).cells[0].components[0].attributes
        assert attributes == {"weight": 1.5, "replicas": 2, "enabled": True, "tags": ["a", "b"]}
        assert isinstance(attributes["replicas"], int)

    def test_env_block(self):
        source = (
            "cell A {\n"
            "  ms Api {\n"
            '    env { DB_URL = "postgres://db", DEBUG = true }\n'
            "  }\n"
            "}"
        )
        attributes = parse_or_throw(source).cells[0].components[0].attributes
        assert attributes["env"] == ["DB_URL=postgres://db", "DEBUG=true"]

    def test_single_sidecar(self):
        component = parse_or_throw("cell A {\n  ms Api [sidecar: Envoy]\n}").cells[0].components[0]
        assert component.sidecars == ["Envoy"]
        assert "sidecar" not in component.attributes

    def test_sidecar_list(self):
        source = "cell A {\n  ms Api [sidecars: [Envoy, Logger]]\n}"
        component = parse_or_throw(source).cells[0].components[0]
        assert component.sidecars == ["Envoy", "Logger"]

    def test_no_sidecars_is_none(self):
        component = parse_or_throw("cell A {\n  ms Api\n}").cells[0].components[0]
        assert component.sidecars is None


class TestActors:
    """Externals, users, applications and the workspace wrapper."""

    def test_workspace_metadata(self, shop_source):
        program = parse_or_throw(shop_source)
        assert program.name == "Shop"
        assert program.version == "1.0"
        assert program.description == "Online shop"
        assert program.properties == {"owner": "team-a"}

    def test_externals(self, shop_source):
        stripe, bank = parse_or_throw(shop_source).externals
        assert stripe.external_type == ExternalType.SAAS
        assert stripe.provides is None
        assert bank.external_type == ExternalType.PARTNER
        assert bank.provides == [EndpointType.API, EndpointType.STREAM]
        assert bank.label == "Bank"

    def test_users(self, shop_source):
        customer, ops = parse_or_throw(shop_source).users
        assert customer.user_type == UserType.EXTERNAL
        assert customer.label == "Shopper"
        assert ops.user_type == UserType.INTERNAL
        assert ops.channels == ["web", "mobile app"]

    def test_application(self, shop_source):
        application = parse_or_throw(shop_source).applications[0]
        assert application.label == "Shop"
        assert application.version == "1.2"
        assert application.cells == ["Orders", "Payments"]
        assert application.gateway.id == "gateway"

    def test_legacy_diagram_name(self):
        program = parse_or_throw("diagram Legacy {\n  user U {}\n}")
        assert program.name == "Legacy"
        assert [u.id for u in program.users] == ["U"]

    def test_string_escapes(self):
        program = parse_or_throw('cell A {\n  label: "say \\"hi\\"\\tnow"\n}')
        assert program.cells[0].label == 'say "hi"\tnow'


class TestKeywordCase:
    """Case-insensitive keywords map to their vocabulary whatever the spelling."""

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("external Stripe type: SAAS", ExternalType.SAAS),
            ("external Bank type: Partner", ExternalType.PARTNER),
            ("external Corp type: Enterprise", ExternalType.ENTERPRISE),
        ],
    )
    def test_external_types(self, source, expected):
        assert parse_or_throw(source).externals[0].external_type == expected

    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("user Admin type: Internal", UserType.INTERNAL),
            ("user Guest type: External", UserType.EXTERNAL),
            ("user Cron type: SYSTEM", UserType.SYSTEM),
        ],
    )
    def test_user_types(self, source, expected):
        assert parse_or_throw(source).users[0].user_type == expected

    def test_mixed_case_gateway_component(self):
        program = parse_or_throw("cell A {\n  components {\n    Gateway Edge\n  }\n}")
        component = program.cells[0].components[0]
        assert component.id == "Edge"
        assert component.component_type == ComponentType.GATEWAY

    def test_tolerant_parse_reports_nothing(self):
        result = parse_with_recovery("external Stripe type: SAAS\nuser Admin type: Internal")
        assert result.errors == []
        assert result.error_node_count == 0


class TestConnections:
    """Chain desugaring."""

    def test_chain_edges(self, shop_source):
        block = parse_or_throw(shop_source).connection_blocks[0]
        assert block.block_kind == BlockKind.CONNECTIONS
        first, second, third = block.connections
        assert str(first.source) == "Customer"
        assert str(first.target) == "Orders.OrderService"
        assert first.direction == ConnectionDirection.NORTHBOUND
        assert first.attributes == {}
        assert second.direction == ConnectionDirection.NORTHBOUND
        assert second.attributes == {"label": "checkout", "protocol": "https"}
        assert third.direction == ConnectionDirection.SOUTHBOUND

    def test_trailing_direction_applies_to_last_edge(self):
        block = parse_or_throw("connections {\n  A -> B -> C [southbound]\n}").connection_blocks[0]
        assert [c.direction for c in block.connections] == [None, ConnectionDirection.SOUTHBOUND]

    def test_named_flow_block(self):
        block = parse_or_throw("flow Checkout {\n  A -> B\n}").connection_blocks[0]
        assert block.block_kind == BlockKind.FLOW
        assert block.name == "Checkout"


class TestStrictBuilder:
    """The strict builder raises on unconvertible subtrees."""

    def test_unknown_component_type_raises(self):
        cst = cst_of("cell A {\n  component X { type: foo }\n}")
        with pytest.raises(VisitError) as exc_info:
            AstBuilder().build(cst)
        assert exc_info.value.rule_name == "componentDefinition"
        assert exc_info.value.context.line == 2
        assert exc_info.value.context.column == 3


class TestTolerantBuilder:
    """The tolerant builder substitutes ErrorNodes and keeps going."""

    def test_failing_component_becomes_error_node(self):
        builder = TolerantAstBuilder()
        program = builder.build(cst_of("cell A {\n  component X { type: foo }\n  ms Y\n}"))
        error_node, component = program.cells[0].components
        assert isinstance(error_node, ErrorNode)
        assert error_node.code == ErrorCode.INCOMPLETE_COMPONENT_DEFINITION
        assert error_node.rule_name == "componentDefinition"
        assert error_node.partial_data == {"id": "X"}
        assert component.id == "Y"
        assert builder.error_node_count == 1
        assert len(builder.errors) == 1

    def test_recovered_subtree_adds_no_diagnostic(self):
        builder = TolerantAstBuilder()
        program = builder.build(cst_of("cell {}\ncell B {}"))
        assert isinstance(program.statements[0], ErrorNode)
        assert program.statements[0].code == ErrorCode.INCOMPLETE_CELL_DEFINITION
        assert program.statements[1].id == "B"
        assert builder.errors == []


class TestHelpers:
    """Token conversion helpers."""

    def test_unescape_keeps_unknown_escapes(self):
        assert unescape(r"a\nb\q") == "a\nb\\q"

    def test_parse_number(self):
        assert parse_number("42") == 42
        assert parse_number("-3") == -3
        assert parse_number("2.5") == 2.5
