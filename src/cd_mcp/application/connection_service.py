from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any

from cd_mcp.application.session_manager import CdSessionManager, SessionManager
from cd_mcp.domain.entities import (
    Connection,
    ConnectionLeg,
    ConnectionSearchResult,
    Location,
    Money,
    PassengerType,
    SearchContext,
    StationIdentity,
)
from cd_mcp.domain.exceptions import NotSupportedError, StationNotFoundError, ValidationError
from cd_mcp.domain.services import join_train_number, minor_to_major
from cd_mcp.domain.value_objects import DEFAULT_CURRENCY, LocationType
from cd_mcp.infrastructure.cd_client import (
    LOCATION_CANDIDATES,
    MAX_CONNECTIONS,
    STATION_CANDIDATES,
    CdClient,
    passenger_descriptors,
)
from cd_mcp.infrastructure.time_utils import decode_cd_datetime, encode_cd_datetime, is_decoded

logger = logging.getLogger(__name__)

DEFAULT_PRICE_TIMEOUT = 8.0  # seconds
DEADLINE_MARGIN = 0.25  # seconds left for merging after the price call gives up
MIN_PASSENGERS = 1
MAX_PASSENGERS = 9

# The mobile API has no passenger-type endpoint; ADULT is the only fare searched.
PASSENGER_TYPES: tuple[PassengerType, ...] = (
    PassengerType(
        key="ADULT",
        name="Adult",
        description="Standard full fare, 2nd class",
        discount_percent=0,
    ),
)

_USE_SEARCH_HINT = "Use search_connections instead."


class ConnectionService:
    """Adapts free-text queries to the ČD mobile API and maps results to domain objects.

    One instance can serve concurrent searches: all per-search state lives in a
    SearchContext local to search_connections().
    """

    def __init__(
        self,
        client: CdClient,
        session_manager: SessionManager | None = None,
        price_timeout: float = DEFAULT_PRICE_TIMEOUT,
        currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self._client = client
        self._sessions = session_manager if session_manager is not None else CdSessionManager(client)
        self._price_timeout = price_timeout
        self._currency = currency

    async def search_locations(self, query: str, type_filter: str | None = None) -> list[Location]:
        """Return up to 10 matching locations; an empty list when nothing matches.

        type_filter is accepted for interface compatibility only: the mobile API
        does not report location types, so every hit is a station.
        """
        if type_filter:
            logger.debug("Ignoring location type filter %r", type_filter)
        results = await self._client.search_stations(query, max_count=LOCATION_CANDIDATES)
        locations = []
        for raw in results:
            item = raw.get("oItem") or {}
            if not item.get("sName"):
                continue
            locations.append(self._map_location(item))
        return locations

    async def resolve_station(self, query: str) -> StationIdentity:
        """Resolve a free-text name to the upstream's top-ranked station.

        Raises StationNotFoundError when the upstream returns no candidates.
        """
        results = await self._client.search_stations(query, max_count=STATION_CANDIDATES)
        item = (results[0].get("oItem") if results else None) or {}
        if "iListID" not in item:
            raise StationNotFoundError(query)
        return StationIdentity(id=int(item["iListID"]), name=item.get("sName") or query)

    async def search_connections(
        self,
        from_query: str,
        to_query: str,
        departure: datetime,
        passengers: int = 1,
        deadline: float | None = None,
    ) -> ConnectionSearchResult:
        """Resolve both stations, search connections and attach prices.

        deadline is an absolute event-loop time (loop.time()). The price step is
        capped so that it gives up before the deadline instead of running past it.

        Steps:
        1. Resolve from_query and to_query concurrently (StationNotFoundError aborts)
        2. Open a session for this search only
        3. SearchConnectionInfo1 with the encoded departure
        4. Empty result → return immediately, no price call
        5. GetConnectionsPrice with the connection IDs in the order received (best effort)
        6. Zip connections and prices by position
        """
        if not MIN_PASSENGERS <= passengers <= MAX_PASSENGERS:
            raise ValidationError(
                f"passengers must be between {MIN_PASSENGERS} and {MAX_PASSENGERS}, got {passengers}"
            )

        from_station, to_station = await self._resolve_pair(from_query, to_query)

        context = SearchContext(session_token=await self._sessions.open_session())
        passenger_list = passenger_descriptors(passengers)

        raw = await self._client.search_connections(
            session_id=context.session_token,
            from_station={"iListID": from_station.id, "sName": from_station.name},
            to_station={"iListID": to_station.id, "sName": to_station.name},
            departure=encode_cd_datetime(departure),
            passengers=passenger_list,
            max_count=MAX_CONNECTIONS,
        )
        handle = raw.get("iHandle")
        context.search_handle = str(handle) if handle is not None else None

        raw_connections: list[dict[str, Any]] = (raw.get("oConnInfo") or {}).get("aoConnections") or []
        if not raw_connections:
            return ConnectionSearchResult(
                from_station=from_station.name,
                to_station=to_station.name,
                search_handle=context.search_handle,
            )

        # The price call answers by position: keep this order untouched.
        connection_ids = [c.get("iID") for c in raw_connections]
        prices = await self._fetch_prices(context, handle, connection_ids, passenger_list, deadline)

        connections: list[Connection] = []
        for raw_conn, price in zip(raw_connections, prices):
            try:
                connections.append(self._map_connection(raw_conn, price))
            except ValueError as exc:
                logger.warning("Skipping connection %s: %s", raw_conn.get("iID"), exc)

        return ConnectionSearchResult(
            from_station=from_station.name,
            to_station=to_station.name,
            connections=tuple(connections),
            search_handle=context.search_handle,
        )

    def get_passenger_types(self) -> list[PassengerType]:
        return list(PASSENGER_TYPES)

    async def get_connection_details(self, connection_id: str) -> Connection:
        raise NotSupportedError(
            f"Connection details are not available from the ČD mobile API. {_USE_SEARCH_HINT}"
        )

    async def get_price_offer(self, connection_id: str) -> Money:
        raise NotSupportedError(
            f"Price offers are not available from the ČD mobile API; "
            f"prices are included in search results. {_USE_SEARCH_HINT}"
        )

    async def get_more_connections(self, search_handle: str) -> list[Connection]:
        raise NotSupportedError(
            "Paging through earlier or later connections is not available from the "
            f"ČD mobile API. {_USE_SEARCH_HINT} with a later departure time."
        )

    async def _resolve_pair(
        self, from_query: str, to_query: str
    ) -> tuple[StationIdentity, StationIdentity]:
        """Resolve both names concurrently; raise the origin's error first if both fail."""
        results = await asyncio.gather(
            self.resolve_station(from_query),
            self.resolve_station(to_query),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        from_station, to_station = results
        return from_station, to_station  # type: ignore[return-value]

    async def _fetch_prices(
        self,
        context: SearchContext,
        handle: int | None,
        connection_ids: list[Any],
        passengers: list[dict[str, Any]],
        deadline: float | None = None,
    ) -> list[Money | None]:
        """Return one price per connection ID, in the same order.

        Pricing is best effort: any failure, including exceeding price_timeout or
        the time left before deadline, yields None for every connection instead of
        failing the search.
        """
        timeout = self._price_timeout
        if deadline is not None:
            timeout = min(timeout, deadline - asyncio.get_running_loop().time() - DEADLINE_MARGIN)
            if timeout <= 0:
                logger.warning(
                    "No time left before the search deadline, returning %d connections without prices",
                    len(connection_ids),
                )
                return [None] * len(connection_ids)
        try:
            raw_prices = await asyncio.wait_for(
                self._client.get_connections_price(
                    session_id=context.session_token,
                    handle=handle,
                    connection_ids=connection_ids,
                    passengers=passengers,
                ),
                timeout=timeout,
            )
            prices = [self._map_price(p) for p in raw_prices]
        except Exception as exc:
            logger.warning(
                "Price lookup failed for %d connections, returning them without prices: %r",
                len(connection_ids),
                exc,
            )
            return [None] * len(connection_ids)

        if len(prices) != len(connection_ids):
            logger.warning(
                "Price lookup returned %d prices for %d connections",
                len(prices),
                len(connection_ids),
            )
        padding: list[Money | None] = [None] * (len(connection_ids) - len(prices))
        return (prices + padding)[: len(connection_ids)]

    def _map_price(self, raw: dict[str, Any]) -> Money | None:
        amount = minor_to_major(int(raw.get("iPrice") or 0))
        if amount is None:
            return None
        return Money(amount=amount, currency=self._currency)

    def _map_connection(self, raw: dict[str, Any], price: Money | None) -> Connection:
        """Map a raw aoConnections entry to a Connection.

        Raises ValueError when the entry has no legs or a leg time cannot be decoded.
        """
        legs = tuple(self._map_leg(leg) for leg in raw.get("aoTrains") or [])
        return Connection(id=str(raw.get("iID", "")), legs=legs, price=price)

    def _map_leg(self, raw: dict[str, Any]) -> ConnectionLeg:
        """Map a raw aoTrains entry to a ConnectionLeg.

        Key mappings:
        - raw["sStationName1"] / raw["sStationName2"] → from_station / to_station
        - raw["dtDateTime1"] / raw["dtDateTime2"] → departure / arrival (/Date(ms)/)
        - raw["sType"] → train_type
        - raw["sNum1"..."sNum3"] → train_number, joined with spaces
        """
        departure = decode_cd_datetime(raw.get("dtDateTime1", ""))
        arrival = decode_cd_datetime(raw.get("dtDateTime2", ""))
        if not is_decoded(departure) or not is_decoded(arrival):
            raise ValueError(
                f"undecodable leg times {raw.get('dtDateTime1')!r} / {raw.get('dtDateTime2')!r}"
            )
        return ConnectionLeg(
            from_station=raw.get("sStationName1", ""),
            to_station=raw.get("sStationName2", ""),
            departure=departure,  # type: ignore[arg-type]
            arrival=arrival,  # type: ignore[arg-type]
            train_type=raw.get("sType") or None,
            train_number=join_train_number(raw.get("sNum1"), raw.get("sNum2"), raw.get("sNum3")),
        )

    def _map_location(self, item: dict[str, Any]) -> Location:
        return Location(
            key=str(item.get("iListID", "")),
            name=item["sName"],
            type=LocationType.STATION,
        )
