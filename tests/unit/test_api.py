"""Tests for the public parsing entry points."""

from __future__ import annotations

import pytest

import celldl
from celldl.core.ast import CellType, ConnectionDirection, ErrorNode, Program
from celldl.core.diagnostics.codes import ErrorCategory, ErrorCode
from celldl.core.errors import CellDLParseError
from celldl.core.parser import parse, parse_or_throw, parse_with_recovery, validate


class TestStrictParse:
    """parse, parse_or_throw and validate."""

    def test_valid_source(self):
        result = parse('cell "Test" type:logic {}')
        assert result.success
        assert result.errors == []
        cell = result.ast.cells[0]
        assert cell.id == "Test"
        assert cell.cell_type == CellType.LOGIC

    def test_invalid_source(self):
        result = parse("cell {}")
        assert not result.success
        assert result.ast is None
        (error,) = result.errors
        assert error.message == "Expected an identifier but found '{'"
        assert (error.line, error.column, error.offset) == (1, 6, 5)

    def test_tree_building_failure_is_reported(self):
        result = parse("cell A {\n  component X { type: foo }\n}")
        assert not result.success
        assert len(result.errors) == 1
        assert (result.errors[0].line, result.errors[0].column) == (2, 3)

    def test_tree_building_failure_keeps_subtree_span(self):
        source = "cell A {\n  component X { type: foo }\n}"
        (error,) = parse(source).errors
        assert error.offset == 11
        assert error.length > 1
        assert source[error.offset : error.offset + error.length].startswith("component X {")

    def test_parse_or_throw_lists_errors(self):
        with pytest.raises(CellDLParseError) as exc_info:
            parse_or_throw("cell {}")
        message = str(exc_info.value)
        assert message.startswith("Parse failed with 1 error(s):")
        assert "1:6 Expected an identifier but found '{'" in message
        assert len(exc_info.value.errors) == 1

    def test_parse_or_throw_returns_program(self):
        assert isinstance(parse_or_throw("user U {}"), Program)

    def test_validate(self):
        assert validate("cell A {}") == []
        assert len(validate("cell {}")) == 1

    def test_empty_source(self):
        result = parse("")
        assert result.success
        assert result.ast.statements == []

    def test_calls_share_no_state(self):
        assert not parse("cell {}").success
        assert parse("cell A {}").success


class TestChains:
    """Flow chains desugar into pairwise edges."""

    def test_label_attaches_to_last_edge_only(self):
        source = 'connections {\n  A -> B -> C -> D : "label"\n}'
        block = parse_or_throw(source).connection_blocks[0]
        assert [(str(c.source), str(c.target)) for c in block.connections] == [
            ("A", "B"),
            ("B", "C"),
            ("C", "D"),
        ]
        assert [c.label for c in block.connections] == [None, None, "label"]

    def test_leading_direction_applies_to_every_edge(self):
        source = "connections {\n  northbound A -> B -> C [protocol: https]\n}"
        first, second = parse_or_throw(source).connection_blocks[0].connections
        assert first.direction == second.direction == ConnectionDirection.NORTHBOUND
        assert first.attributes == {}
        assert second.attributes == {"protocol": "https"}


class TestRecovery:
    """parse_with_recovery on broken input."""

    def test_valid_source_is_complete(self, shop_source):
        result = parse_with_recovery(shop_source)
        assert result.success
        assert result.is_complete
        assert result.errors == []
        assert result.error_node_count == 0

    def test_missing_name(self):
        result = parse_with_recovery("cell {}")
        (error,) = result.errors
        assert error.code == ErrorCode.MISSING_IDENTIFIER
        assert error.suggested_fix is None
        assert result.error_node_count == 1
        assert not result.is_complete
        assert isinstance(result.ast.statements[0], ErrorNode)

    def test_unclosed_cell(self):
        source = "cell Orders {"
        result = parse_with_recovery(source)
        (error,) = result.errors
        assert error.code == ErrorCode.MISSING_CLOSING_BRACE
        assert error.category == ErrorCategory.STRUCTURAL
        assert (error.line, error.column, error.offset) == (1, 13, 12)
        fix = error.suggested_fix
        assert fix.replacement == "}"
        assert (fix.range.start_offset, fix.range.end_offset) == (13, 13)
        assert parse(fix.apply(source)).success
        assert result.is_complete
        assert not result.success
        assert result.ast.cells[0].id == "Orders"

    def test_unclosed_cell_lsp_position(self):
        (diagnostic,) = celldl.to_lsp_diagnostics(parse_with_recovery("cell Orders {").errors)
        assert (diagnostic.range.start.line, diagnostic.range.start.character) == (0, 12)

    def test_nested_unclosed_scopes(self):
        source = "cell A {\n  components {\n    ms X\n"
        result = parse_with_recovery(source)
        assert [e.code for e in result.errors] == [ErrorCode.MISSING_CLOSING_BRACE] * 2
        assert [e.suggested_fix.replacement for e in result.errors] == ["}}", "}}"]
        assert parse(result.errors[0].suggested_fix.apply(source)).success

    def test_missing_arrow(self):
        source = "connections {\n  A B\n}"
        (error,) = parse_with_recovery(source).errors
        assert error.code == ErrorCode.MISSING_ARROW
        assert error.suggested_fix.apply(source) == "connections {\n  A -> B\n}"

    def test_cell_type_typo(self):
        source = "cell A type: logik {}"
        result = parse_with_recovery(source)
        (error,) = result.errors
        assert error.code == ErrorCode.INVALID_CELL_TYPE
        assert error.recovery_hint == "Did you mean 'logic'?"
        assert error.suggested_fix.apply(source) == "cell A type: logic {}"
        assert result.is_complete

    def test_unrecognisable_cell_type(self):
        (error,) = parse_with_recovery("cell A type: xyz123 {}").errors
        assert error.suggested_fix is None
        assert error.recovery_hint.startswith("'xyz123' is not a valid cell type.")

    def test_component_type_typo(self):
        source = "cell A {\n  components {\n    databse OrderDB\n  }\n}"
        result = parse_with_recovery(source)
        (error,) = result.errors
        assert error.code == ErrorCode.INVALID_COMPONENT_TYPE
        assert error.suggested_fix.replacement == "database"
        assert result.error_node_count == 1
        assert parse(error.suggested_fix.apply(source)).success

    def test_missing_port_number(self):
        source = "cell A {\n  ms Api [port: http]\n}"
        (error,) = parse_with_recovery(source).errors
        assert error.code == ErrorCode.MISSING_NUMBER_LITERAL
        assert error.suggested_fix.apply(source) == "cell A {\n  ms Api [port: 8080]\n}"

    def test_missing_quotes(self):
        source = "cell Order Service {}"
        (error,) = parse_with_recovery(source).errors
        assert error.code == ErrorCode.MISSING_OPENING_BRACE
        fixed = error.suggested_fix.apply(source)
        assert fixed == 'cell "Order Service" {}'
        assert parse_or_throw(fixed).cells[0].id == "Order Service"

    def test_empty_cells_list(self):
        (error,) = parse_with_recovery("application A {\n  cells: []\n}").errors
        assert error.code == ErrorCode.EARLY_EXIT
        assert error.rule_name == "cellsProperty"
        assert error.recovery_hint == "e.g. cells: [Orders, Payments]"

    def test_unknown_component_type_in_block_form(self):
        result = parse_with_recovery("cell A {\n  component X { type: foo }\n}")
        (error,) = result.errors
        assert error.code == ErrorCode.INCOMPLETE_COMPONENT_DEFINITION
        assert result.error_node_count == 1
        assert result.ast.cells[0].id == "A"

    def test_later_statements_survive(self):
        result = parse_with_recovery("cell {}\ncell B { bogus }\nuser C {}")
        assert [type(s).__name__ for s in result.ast.statements] == [
            "ErrorNode",
            "CellDefinition",
            "UserDefinition",
        ]
        assert len(result.errors) == 2

    @pytest.mark.parametrize(
        "source",
        [
            "",
            "}}}",
            "cell",
            "workspace",
            "@@@ cell A {}",
            '"unterminated',
            "connections { -> }",
            "cell A { gateway {",
            "cell A { components { ms } }",
            "application A { cells: [1, } }",
            "flow { A -> B [northbound, port: x, ] }",
            "cell A { ms B { env { X = } } }",
        ],
    )
    def test_never_raises(self, source):
        result = parse_with_recovery(source)
        assert isinstance(result.ast, Program)
        assert result.success == (result.errors == [])
        assert result.is_complete == (result.error_node_count == 0)


class TestPackageExports:
    """The package root exposes the public API."""

    def test_exports(self):
        assert celldl.parse is parse
        assert celldl.parse_with_recovery is parse_with_recovery
        assert isinstance(celldl.__version__, str)
        assert "stringify" in celldl.__all__
