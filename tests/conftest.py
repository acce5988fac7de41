"""Shared pytest fixtures for CellDL tests."""

from pathlib import Path

import pytest

ORDERS_SOURCE = """\
cell Orders type: logic {
  label: "Order Management"
  gateway ingress {
    exposes: [api, events]
    policies: [rate-limit, cors]
    auth: federated(Okta)
    protocol https
    port 443
    route "/orders" -> OrderService
  }
  components {
    ms OrderService [tech: "Spring Boot", replicas: 3]
    db OrderDB [engine: postgres]
  }
  flow {
    OrderService -> OrderDB : "persist"
  }
}
"""

SHOP_SOURCE = """\
workspace "Shop" {
  version "1.0"
  description "Online shop"
  property owner: "team-a"

  cell Orders {
    components {
      ms OrderService
      cluster Workers {
        type: microservice
        replicas: 3
        fn Resize
      }
    }
  }

  cell Payments type: integration {
    gateway egress "psp" {
      position: east
      auth: local-sts
    }
  }

  external Stripe type: saas

  external Bank {
    type: partner
    provides: [api, stream]
    label: "Bank"
  }

  user Customer type: external label "Shopper"

  user Ops {
    type: internal
    channels: [web, "mobile app"]
  }

  application Shop {
    label: "Shop"
    version: "1.2"
    cells: [Orders, Payments]
    gateway {
      exposes: [api]
    }
  }

  connections {
    northbound Customer -> Orders.OrderService -> Payments : "checkout" [protocol: https]
    Payments -> Stripe [southbound]
  }
}
"""


@pytest.fixture
def orders_source() -> str:
    """A single cell with a gateway, components and an internal flow."""
    return ORDERS_SOURCE


@pytest.fixture
def shop_source() -> str:
    """A workspace exercising every statement kind."""
    return SHOP_SOURCE


@pytest.fixture
def write_dsl(tmp_path: Path):
    """Write a .celldl file into tmp_path and return its path."""

    def _write(content: str, name: str = "diagram.celldl") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
