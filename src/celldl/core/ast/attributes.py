"""Attribute values carried by components, gateways and connections."""

from __future__ import annotations

AttributeValue = str | int | float | bool | list[str]
