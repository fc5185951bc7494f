from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from typing import Any

from mcp import types
from mcp.server.fastmcp import FastMCP

from cd_mcp.application.connection_service import ConnectionService
from cd_mcp.domain.entities import Connection, ConnectionLeg
from cd_mcp.domain.exceptions import (
    NotSupportedError,
    StationNotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from cd_mcp.domain.services import build_booking_url
from cd_mcp.infrastructure.time_utils import parse_departure
from cd_mcp.settings import DEFAULT_SEARCH_TIMEOUT

logger = logging.getLogger(__name__)

_RESULT_URI = "mcp://cd-mcp/result"


def _as_resource(json_str: str) -> list[types.EmbeddedResource]:
    """Wrap a JSON string as an embedded resource so the LLM does not narrate it."""
    return [
        types.EmbeddedResource(
            type="resource",
            resource=types.TextResourceContents(
                uri=_RESULT_URI,  # type: ignore[arg-type]
                mimeType="application/json",
                text=json_str,
            ),
        )
    ]


def _error_json(message: str) -> str:
    return json.dumps({"error": message}, ensure_ascii=False)


def _handle_exception(exc: Exception) -> list[types.EmbeddedResource]:
    if isinstance(exc, (StationNotFoundError, NotSupportedError, ValidationError)):
        return _as_resource(_error_json(str(exc)))
    if isinstance(exc, UpstreamUnavailableError):
        logger.warning(
            "Upstream failure: endpoint=%s status=%s body=%.500s",
            exc.endpoint,
            exc.status_code,
            exc.body,
        )
        if exc.status_code is not None and exc.status_code >= 500:
            return _as_resource(
                _error_json(f"Upstream API error ({exc.status_code}). Please try again later.")
            )
        return _as_resource(_error_json("Czech Railways API is unavailable. Please try again later."))
    if isinstance(exc, asyncio.TimeoutError):
        return _as_resource(_error_json("Request timed out. Please try again."))
    if isinstance(exc, ValueError):
        return _as_resource(_error_json(str(exc)))
    logger.exception("Unexpected error in MCP tool: %s", exc)
    return _as_resource(_error_json("An unexpected error occurred."))


def _leg_to_dict(leg: ConnectionLeg) -> dict[str, Any]:
    return {
        "from": leg.from_station,
        "to": leg.to_station,
        "departure": leg.departure.isoformat(),
        "arrival": leg.arrival.isoformat(),
        "train_type": leg.train_type,
        "train_number": leg.train_number,
    }


def _connection_to_dict(conn: Connection) -> dict[str, Any]:
    price = (
        {"amount": float(conn.price.amount), "currency": conn.price.currency}
        if conn.price is not None
        else None
    )
    return {
        "id": conn.id,
        "departure": conn.departure.isoformat(),
        "arrival": conn.arrival.isoformat(),
        "duration_minutes": conn.duration_minutes,
        "transfers": conn.transfer_count,
        "price": price,
        "legs": [_leg_to_dict(leg) for leg in conn.legs],
    }


def register_tools(
    mcp: FastMCP,
    connection_svc: ConnectionService,
    search_timeout: float = DEFAULT_SEARCH_TIMEOUT,
) -> None:
    """Bind all @mcp.tool decorators. Called once during server setup."""

    @mcp.tool()
    async def search_locations(
        query: str,
        type: str | None = None,
    ) -> list[types.EmbeddedResource]:
        """Search for train stations and cities in the Czech Railways network.

        Args:
            query: Station or city name, e.g. "Praha" or "Brno".
            type: Optional location type filter, e.g. "station" or "city".
        """
        try:
            if not query.strip():
                return _as_resource(_error_json("query cannot be empty"))
            locations = await asyncio.wait_for(
                connection_svc.search_locations(query.strip(), type),
                timeout=search_timeout,
            )
            result = {
                "query": query,
                "locations": [dataclasses.asdict(loc) for loc in locations],
                "count": len(locations),
            }
            return _as_resource(json.dumps(result, default=str, ensure_ascii=False))
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    async def search_connections(
        from_station: str,
        to_station: str,
        departure: str,
        passengers: int = 1,
    ) -> list[types.EmbeddedResource]:
        """Search train connections between two stations, with prices (CZK) and a booking link.

        Args:
            from_station: Departure station or city name, e.g. "Praha" or "Praha hl.n.".
            to_station: Arrival station or city name, e.g. "Brno" or "Brno hl.n.".
            departure: Departure date and time as ISO 8601, e.g. "2025-12-15T08:00:00".
                       Times without an offset are Czech local time.
            passengers: Number of adult passengers, 1 to 9 (default 1).
        """
        try:
            if not from_station.strip() or not to_station.strip():
                return _as_resource(_error_json("Station names cannot be empty"))
            departure_dt = parse_departure(departure)
            deadline = asyncio.get_running_loop().time() + search_timeout

            search = await asyncio.wait_for(
                connection_svc.search_connections(
                    from_query=from_station.strip(),
                    to_query=to_station.strip(),
                    departure=departure_dt,
                    passengers=passengers,
                    deadline=deadline,
                ),
                timeout=search_timeout,
            )

            result = {
                "from_station": search.from_station,
                "to_station": search.to_station,
                "departure": departure_dt.isoformat(),
                "connections": [_connection_to_dict(c) for c in search.connections],
                "count": len(search.connections),
                "booking_url": build_booking_url(
                    search.from_station, search.to_station, departure_dt
                ),
            }
            return _as_resource(json.dumps(result, ensure_ascii=False))
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    async def get_passenger_types() -> list[types.EmbeddedResource]:
        """List the fare categories (passenger types) and their discounts."""
        try:
            types_ = connection_svc.get_passenger_types()
            result = {"passenger_types": [dataclasses.asdict(p) for p in types_]}
            return _as_resource(json.dumps(result, ensure_ascii=False))
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    async def get_connection_details(connection_id: str) -> list[types.EmbeddedResource]:
        """Get details of a connection. Not available for Czech Railways; use search_connections.

        Args:
            connection_id: Connection ID from a search_connections result.
        """
        try:
            await connection_svc.get_connection_details(connection_id)
            return _as_resource(_error_json("Connection details are not available."))
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    async def get_price_offer(connection_id: str) -> list[types.EmbeddedResource]:
        """Get a price offer for a connection. Not available; prices come with search_connections.

        Args:
            connection_id: Connection ID from a search_connections result.
        """
        try:
            await connection_svc.get_price_offer(connection_id)
            return _as_resource(_error_json("Price offers are not available."))
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    async def get_more_connections(search_handle: str) -> list[types.EmbeddedResource]:
        """Page to further connections of a search. Not available; search again with a later time.

        Args:
            search_handle: Handle of a previous search.
        """
        try:
            await connection_svc.get_more_connections(search_handle)
            return _as_resource(_error_json("Further connections are not available."))
        except Exception as exc:
            return _handle_exception(exc)
