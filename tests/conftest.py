"""Shared pytest fixtures for the Czech Railways MCP Server test suite."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from cd_mcp.infrastructure.time_utils import encode_cd_datetime


def cd_date(year: int, month: int, day: int, hour: int, minute: int) -> str:
    """Return a /Date(ms)/ wrapper for the given UTC wall-clock time."""
    return encode_cd_datetime(datetime(year, month, day, hour, minute, tzinfo=timezone.utc))


def make_station_item(list_id: int = 5457076, name: str = "Praha hl.n.") -> dict:  # type: ignore[type-arg]
    """A SearchGlobalListItemInfoExt entry."""
    return {"oItem": {"iListID": list_id, "sName": name, "iType": 3}}


def make_leg_raw(
    from_name: str = "Praha hl.n.",
    to_name: str = "Brno hl.n.",
    dep: str | None = None,
    arr: str | None = None,
    train_type: str = "R",
    num1: str = "1045",
    num2: str = "Vysočina",
) -> dict:  # type: ignore[type-arg]
    """An aoTrains entry of a SearchConnectionInfo1 connection."""
    return {
        "sStationName1": from_name,
        "sStationName2": to_name,
        "dtDateTime1": dep or cd_date(2025, 12, 15, 10, 36),
        "dtDateTime2": arr or cd_date(2025, 12, 15, 13, 13),
        "sType": train_type,
        "sNum1": num1,
        "sNum2": num2,
        "sNum3": "",
    }


def make_connection_raw(conn_id: int, legs: list | None = None) -> dict:  # type: ignore[type-arg]
    return {"iID": conn_id, "aoTrains": legs if legs is not None else [make_leg_raw()]}


@pytest.fixture
def praha_brno_connections() -> list:  # type: ignore[type-arg]
    """Two direct Praha → Brno connections on 2025-12-15 (UTC times)."""
    return [
        make_connection_raw(
            101,
            [make_leg_raw(dep=cd_date(2025, 12, 15, 10, 36), arr=cd_date(2025, 12, 15, 13, 13))],
        ),
        make_connection_raw(
            102,
            [
                make_leg_raw(
                    dep=cd_date(2025, 12, 15, 11, 0),
                    arr=cd_date(2025, 12, 15, 13, 50),
                    train_type="EC",
                    num1="171",
                    num2="Hungaria",
                )
            ],
        ),
    ]
