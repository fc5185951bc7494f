from __future__ import annotations

import logging
from typing import Any

import httpx

from cd_mcp.domain.exceptions import UpstreamUnavailableError
from cd_mcp.infrastructure.headers import LANG_EN, client_identity, make_headers

logger = logging.getLogger(__name__)

BASE_URL = "https://ipws.cdis.cz/IP.svc"
DEFAULT_TIMEOUT = 15.0  # seconds

STATION_CANDIDATES = 5  # Resolver asks for a handful and takes the first
LOCATION_CANDIDATES = 10
MAX_CONNECTIONS = 8

ADULT_PASSENGER_ID = 5
SECOND_CLASS = 2

# Notification preferences are ignored for searches but CreateSession rejects
# requests without them.
_NOTIFICATION_SETTINGS = {
    "iNotificationMask": 2047,
    "iInitialAdvance": 30,
    "iDelayLimit": 5,
    "iChangeAdvance": 5,
    "iGetOffAdvance": 5,
}


def passenger_descriptors(count: int) -> list[dict[str, Any]]:
    """Return `count` copies of the default adult passenger entry."""
    return [
        {"oPassenger": {"iPassengerId": ADULT_PASSENGER_ID}, "iCount": 1, "iAge": -1}
        for _ in range(count)
    ]


def _price_class() -> dict[str, Any]:
    return {"iClass": SECOND_CLASS, "bBusiness": False}


class CdClient:
    """HTTP client for the ČD mobile API (ipws.cdis.cz).

    Every endpoint is a JSON POST whose response body is wrapped as {"d": ...}.
    The client holds no per-search state; session IDs are passed in explicitly.
    """

    def __init__(self, http_client: httpx.AsyncClient, base_url: str = BASE_URL) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def search_stations(self, mask: str, max_count: int = STATION_CANDIDATES) -> list[dict[str, Any]]:
        """POST SearchGlobalListItemInfoExt — fuzzy name search, ranked upstream."""
        body = {**client_identity(), "sMask": mask, "iMaxCount": max_count}
        result = await self._post("SearchGlobalListItemInfoExt", body)
        if not isinstance(result, list):
            return []
        return result

    async def create_session(self) -> dict[str, Any]:
        """POST CreateSession — anonymous session required by search and price calls."""
        body = {
            **client_identity(),
            "sUser": "",
            "sPwd": "",
            "iTokenType": 1,
            "oRegisterNotificationsSettings": dict(_NOTIFICATION_SETTINGS),
        }
        result: dict[str, Any] = await self._post("CreateSession", body)
        return result

    async def search_connections(
        self,
        session_id: str | None,
        from_station: dict[str, Any],  # {"iListID": ..., "sName": ...}
        to_station: dict[str, Any],
        departure: str,  # already encoded as /Date(ms)/
        passengers: list[dict[str, Any]],
        max_count: int = MAX_CONNECTIONS,
    ) -> dict[str, Any]:
        """POST SearchConnectionInfo1 — departures after `departure`, 2nd class fares."""
        body = {
            "iLang": LANG_EN,
            "sSessionID": session_id,
            "oFrom": from_station,
            "oTo": to_station,
            "aoVia": [],
            "aoChange": [],
            "dtDateTime": departure,
            "bIsDep": True,
            "oConnParms": {"iSearchConnectionFlags": 0, "iCarrier": 2},
            "iMaxObjectsCount": 0,
            "iMaxCount": max_count,
            "oPriceRequestClass": _price_class(),
            "aoPassengers": passengers,
        }
        result: dict[str, Any] = await self._post("SearchConnectionInfo1", body)
        return result or {}

    async def get_connections_price(
        self,
        session_id: str | None,
        handle: int | None,
        connection_ids: list[int],
        passengers: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """POST GetConnectionsPrice — one price entry per ID, in request order."""
        body = {
            "iLang": LANG_EN,
            "sSessionID": session_id,
            "iHandle": handle,
            "aiConnID": connection_ids,
            "oPriceRequest": {
                "aoPassengers": passengers,
                "iConnHandleThere": 0,
                "iConnIDThere": 0,
                "oClass": _price_class(),
                "iDocType": 1,
            },
            "bStopIfAgeError": True,
        }
        result = await self._post("GetConnectionsPrice", body)
        if not isinstance(result, list):
            return []
        return result

    async def _post(self, endpoint: str, body: dict[str, Any]) -> Any:
        """Internal POST helper.

        1. POST JSON body with make_headers().
        2. Wrap transport failures in UpstreamUnavailableError.
        3. Raise UpstreamUnavailableError on non-2xx status.
        4. Unwrap the {"d": ...} envelope.
        """
        url = f"{self._base_url}/{endpoint}"
        logger.debug("POST %s", url)
        try:
            response = await self._http.post(url, json=body, headers=make_headers())
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(
                endpoint, message=f"Upstream API unavailable calling {endpoint}: {type(exc).__name__}"
            ) from exc

        self._raise_for_status(endpoint, response)

        try:
            envelope = response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError(
                endpoint,
                status_code=response.status_code,
                body=response.text,
                message=f"Invalid JSON from {endpoint}",
            ) from exc

        if not isinstance(envelope, dict) or "d" not in envelope:
            raise UpstreamUnavailableError(
                endpoint,
                status_code=response.status_code,
                body=response.text,
                message=f"Unexpected response envelope from {endpoint}",
            )
        return envelope["d"]

    def _raise_for_status(self, endpoint: str, response: httpx.Response) -> None:
        """Raise UpstreamUnavailableError for non-2xx responses."""
        if response.status_code >= 400:
            raise UpstreamUnavailableError(
                endpoint, status_code=response.status_code, body=response.text
            )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()
