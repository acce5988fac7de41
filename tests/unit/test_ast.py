"""Tests for AST vocabularies and helpers."""

from __future__ import annotations

import pytest

from celldl.core.ast import (
    CELL_TYPE_LABELS,
    COMPONENT_TYPE_LABELS,
    DEFAULT_SPAN,
    DIRECTION_INFO,
    CellDefinition,
    CellType,
    ClusterDefinition,
    ComponentDefinition,
    ComponentType,
    ConnectionDirection,
    ErrorNode,
    Program,
    UserDefinition,
    count_error_nodes,
    extract_error_nodes,
    is_error_node,
    resolve_component_type,
)
from celldl.core.diagnostics.codes import ErrorCode
from celldl.core.diagnostics.messages import format_expected_tokens


def error_node(message: str) -> ErrorNode:
    return ErrorNode(
        code=ErrorCode.INCOMPLETE_COMPONENT_DEFINITION,
        message=message,
        rule_name="componentDefinition",
        location=DEFAULT_SPAN,
    )


class TestVocabularies:
    """Enums, aliases and label tables."""

    @pytest.mark.parametrize(
        ("word", "expected"),
        [
            ("ms", ComponentType.MICROSERVICE),
            ("fn", ComponentType.FUNCTION),
            ("db", ComponentType.DATABASE),
            ("cache", ComponentType.CACHE),
        ],
    )
    def test_resolve_component_type(self, word, expected):
        assert resolve_component_type(word) == expected

    def test_unknown_component_type(self):
        with pytest.raises(ValueError):
            resolve_component_type("databse")

    def test_label_tables_are_complete(self):
        assert set(COMPONENT_TYPE_LABELS) == set(ComponentType)
        assert set(CELL_TYPE_LABELS) == set(CellType)
        assert set(DIRECTION_INFO) == set(ConnectionDirection)
        assert DIRECTION_INFO[ConnectionDirection.NORTHBOUND][0] == "N"


class TestErrorNodeHelpers:
    """Finding error nodes anywhere in a program."""

    def test_extract_from_every_level(self):
        program = Program(
            statements=[
                error_node("top"),
                CellDefinition(
                    id="A",
                    components=[
                        ComponentDefinition(id="Api", component_type=ComponentType.MICROSERVICE),
                        error_node("member"),
                        ClusterDefinition(id="Pool", components=[error_node("clustered")]),
                    ],
                ),
                UserDefinition(id="U"),
            ]
        )
        assert [n.message for n in extract_error_nodes(program)] == [
            "top",
            "member",
            "clustered",
        ]
        assert count_error_nodes(program) == 3

    def test_is_error_node(self):
        assert is_error_node(error_node("x"))
        assert not is_error_node(UserDefinition(id="U"))

    def test_clean_program(self):
        assert count_error_nodes(Program()) == 0


class TestExpectedTokenProse:
    """Joining expected-token display names."""

    @pytest.mark.parametrize(
        ("names", "expected"),
        [
            ([], "valid input"),
            (["'{'"], "'{'"),
            (["'{'", "'}'"], "'{' or '}'"),
            (["a", "b", "c"], "a, b, or c"),
            (["a", "a", "b"], "a or b"),
        ],
    )
    def test_format_expected_tokens(self, names, expected):
        assert format_expected_tokens(names) == expected
