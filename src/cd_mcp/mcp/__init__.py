from __future__ import annotations

import httpx
from mcp.server.fastmcp import FastMCP

from cd_mcp.application.connection_service import ConnectionService
from cd_mcp.application.session_manager import CdSessionManager
from cd_mcp.infrastructure.cd_client import CdClient
from cd_mcp.mcp.resources import register_resources
from cd_mcp.mcp.tools import register_tools
from cd_mcp.settings import Settings


def create_mcp_app(settings: Settings | None = None) -> FastMCP:
    """Create and configure the FastMCP application with all services wired."""
    settings = settings if settings is not None else Settings()
    http_client = httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True)
    cd_client = CdClient(http_client=http_client, base_url=settings.api_base_url)

    connection_svc = ConnectionService(
        cd_client,
        session_manager=CdSessionManager(cd_client),
        price_timeout=settings.price_timeout,
    )

    mcp = FastMCP("Czech Railways MCP", stateless_http=True)
    register_tools(mcp, connection_svc, search_timeout=settings.search_timeout)
    register_resources(mcp, connection_svc)
    return mcp
