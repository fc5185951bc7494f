from __future__ import annotations

from typing import Protocol

from cd_mcp.domain.exceptions import UpstreamUnavailableError
from cd_mcp.infrastructure.cd_client import CdClient


class SessionManager(Protocol):
    async def open_session(self) -> str | None:
        """Return a token valid for one search, or None when the upstream is stateless."""
        ...


class CdSessionManager:
    """Creates a fresh anonymous ČD session per search. Sessions are never pooled."""

    def __init__(self, client: CdClient) -> None:
        self._client = client

    async def open_session(self) -> str:
        result = await self._client.create_session()
        session_id = (result or {}).get("sSessionID")
        if not session_id:
            raise UpstreamUnavailableError(
                "CreateSession", message="Upstream API returned no session ID"
            )
        return str(session_id)


class StatelessSessionManager:
    """For upstreams that accept searches without a session."""

    async def open_session(self) -> None:
        return None
