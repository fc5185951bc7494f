"""Tests for MCP resources."""
from __future__ import annotations

import json
from unittest.mock import MagicMock

from cd_mcp.application.connection_service import PASSENGER_TYPES, ConnectionService
from cd_mcp.mcp.resources import register_resources


def test_passenger_types_resource() -> None:
    registered: dict = {}  # type: ignore[type-arg]

    class MockMcp:
        def resource(self, uri: str, **kwargs):  # type: ignore[no-untyped-def]
            def decorator(fn):  # type: ignore[no-untyped-def]
                registered[uri] = fn
                return fn
            return decorator

    svc = MagicMock(spec=ConnectionService)
    svc.get_passenger_types = MagicMock(return_value=list(PASSENGER_TYPES))
    register_resources(MockMcp(), svc)  # type: ignore[arg-type]

    payload = json.loads(registered["cd://passenger-types"]())

    assert payload[0]["key"] == "ADULT"
    assert payload[0]["discount_percent"] == 0
