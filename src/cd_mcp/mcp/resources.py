from __future__ import annotations

import dataclasses
import json

from mcp.server.fastmcp import FastMCP

from cd_mcp.application.connection_service import ConnectionService


def register_resources(mcp: FastMCP, connection_svc: ConnectionService) -> None:
    """Register static data resources. Called once during server setup."""

    @mcp.resource("cd://passenger-types", mime_type="application/json")
    def passenger_types() -> str:
        """Fare categories known to the server."""
        return json.dumps(
            [dataclasses.asdict(p) for p in connection_svc.get_passenger_types()],
            ensure_ascii=False,
        )
