"""Tests for CdClient using respx to mock HTTP calls."""
from __future__ import annotations

import json

import httpx
import pytest
import respx

from cd_mcp.domain.exceptions import UpstreamUnavailableError
from cd_mcp.infrastructure.cd_client import (
    ADULT_PASSENGER_ID,
    BASE_URL,
    CdClient,
    passenger_descriptors,
)
from cd_mcp.infrastructure.headers import APP_ID


def make_client() -> CdClient:
    return CdClient(http_client=httpx.AsyncClient())


def sent_body(route: respx.Route, index: int = 0) -> dict:  # type: ignore[type-arg]
    return json.loads(route.calls[index].request.content)


@respx.mock
async def test_search_stations_unwraps_envelope() -> None:
    items = [{"oItem": {"iListID": 5457076, "sName": "Praha hl.n."}}]
    route = respx.post(f"{BASE_URL}/SearchGlobalListItemInfoExt").mock(
        return_value=httpx.Response(200, json={"d": items})
    )

    client = make_client()
    result = await client.search_stations("Praha", max_count=5)

    assert result == items
    body = sent_body(route)
    assert body["sMask"] == "Praha"
    assert body["iMaxCount"] == 5
    assert body["sAppID"] == APP_ID
    await client.close()


@respx.mock
async def test_search_stations_null_payload_is_empty_list() -> None:
    respx.post(f"{BASE_URL}/SearchGlobalListItemInfoExt").mock(
        return_value=httpx.Response(200, json={"d": None})
    )

    client = make_client()
    assert await client.search_stations("Nonexistentville") == []
    await client.close()


@respx.mock
async def test_create_session_sends_notification_defaults() -> None:
    route = respx.post(f"{BASE_URL}/CreateSession").mock(
        return_value=httpx.Response(200, json={"d": {"sSessionID": "abc123"}})
    )

    client = make_client()
    result = await client.create_session()

    assert result["sSessionID"] == "abc123"
    body = sent_body(route)
    assert body["iTokenType"] == 1
    assert body["oRegisterNotificationsSettings"]["iNotificationMask"] == 2047
    await client.close()


@respx.mock
async def test_search_connections_request_shape() -> None:
    route = respx.post(f"{BASE_URL}/SearchConnectionInfo1").mock(
        return_value=httpx.Response(200, json={"d": {"iHandle": 7, "oConnInfo": {"aoConnections": []}}})
    )

    client = make_client()
    result = await client.search_connections(
        session_id="abc123",
        from_station={"iListID": 1, "sName": "Praha hl.n."},
        to_station={"iListID": 2, "sName": "Brno hl.n."},
        departure="/Date(1765792800000)/",
        passengers=passenger_descriptors(2),
    )

    assert result["iHandle"] == 7
    body = sent_body(route)
    assert body["sSessionID"] == "abc123"
    assert body["dtDateTime"] == "/Date(1765792800000)/"
    assert body["bIsDep"] is True
    assert body["iMaxCount"] == 8
    assert len(body["aoPassengers"]) == 2
    assert body["aoPassengers"][0]["oPassenger"]["iPassengerId"] == ADULT_PASSENGER_ID
    await client.close()


@respx.mock
async def test_get_connections_price_keeps_id_order() -> None:
    route = respx.post(f"{BASE_URL}/GetConnectionsPrice").mock(
        return_value=httpx.Response(200, json={"d": [{"iPrice": 1000}, {"iPrice": 0}]})
    )

    client = make_client()
    result = await client.get_connections_price(
        session_id="abc123", handle=7, connection_ids=[3, 1], passengers=passenger_descriptors(1)
    )

    assert [p["iPrice"] for p in result] == [1000, 0]
    body = sent_body(route)
    assert body["aiConnID"] == [3, 1]
    assert body["iHandle"] == 7
    await client.close()


@respx.mock
async def test_non_2xx_raises_with_diagnostics() -> None:
    respx.post(f"{BASE_URL}/CreateSession").mock(
        return_value=httpx.Response(503, text="maintenance")
    )

    client = make_client()
    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await client.create_session()

    assert exc_info.value.status_code == 503
    assert exc_info.value.endpoint == "CreateSession"
    assert exc_info.value.body == "maintenance"
    assert "maintenance" not in str(exc_info.value)
    await client.close()


@respx.mock
async def test_transport_error_raises_without_status() -> None:
    respx.post(f"{BASE_URL}/SearchGlobalListItemInfoExt").mock(
        side_effect=httpx.ConnectError("connection refused")
    )

    client = make_client()
    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await client.search_stations("Praha")

    assert exc_info.value.status_code is None
    await client.close()


@respx.mock
async def test_invalid_json_raises() -> None:
    respx.post(f"{BASE_URL}/SearchGlobalListItemInfoExt").mock(
        return_value=httpx.Response(200, text="<html>oops</html>")
    )

    client = make_client()
    with pytest.raises(UpstreamUnavailableError):
        await client.search_stations("Praha")
    await client.close()


@respx.mock
async def test_missing_envelope_raises() -> None:
    respx.post(f"{BASE_URL}/SearchGlobalListItemInfoExt").mock(
        return_value=httpx.Response(200, json=[{"oItem": {}}])
    )

    client = make_client()
    with pytest.raises(UpstreamUnavailableError, match="envelope"):
        await client.search_stations("Praha")
    await client.close()


@respx.mock
async def test_custom_base_url() -> None:
    route = respx.post("http://stub.local/IP.svc/CreateSession").mock(
        return_value=httpx.Response(200, json={"d": {"sSessionID": "s"}})
    )

    client = CdClient(http_client=httpx.AsyncClient(), base_url="http://stub.local/IP.svc/")
    await client.create_session()

    assert route.called
    await client.close()


def test_passenger_descriptors_count() -> None:
    descriptors = passenger_descriptors(3)
    assert len(descriptors) == 3
    assert all(d["iCount"] == 1 for d in descriptors)
