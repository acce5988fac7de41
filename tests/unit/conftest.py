"""Fixtures for unit tests."""

from __future__ import annotations

import pytest

from celldl.core.ast import Program


def strip_locations(value):
    """Drop ``location`` entries from a model dump so ASTs compare structurally."""
    if isinstance(value, dict):
        return {k: strip_locations(v) for k, v in value.items() if k != "location"}
    if isinstance(value, list):
        return [strip_locations(v) for v in value]
    return value


@pytest.fixture
def structure():
    """Return a location-free dump of a Program."""

    def _structure(program: Program) -> dict:
        return strip_locations(program.model_dump())

    return _structure
