from __future__ import annotations

import math
from datetime import datetime, timezone
from decimal import Decimal
from urllib.parse import urlencode

BOOKING_BASE_URL = "https://www.cd.cz/spojeni-a-jizdenka/"


def duration_minutes(departure: datetime, arrival: datetime) -> int:
    """Return the journey length in whole minutes, rounding half up.

    Both datetimes must be timezone-aware.
    """
    seconds = (arrival - departure).total_seconds()
    return math.floor(seconds / 60 + 0.5)


def minor_to_major(minor_units: int | None) -> Decimal | None:
    """Convert a price in haléře to CZK.

    Returns None for missing, zero or negative values: the API reports 0 when it
    has no fare for a connection, which must not be shown as a free ticket.
    """
    if not minor_units or minor_units <= 0:
        return None
    return Decimal(minor_units) / 100


def join_train_number(*parts: str | None) -> str | None:
    """Join the non-empty number/name fragments of a train, e.g. ("1045", "Vysočina")."""
    joined = " ".join(p for p in parts if p)
    return joined or None


def build_booking_url(from_station: str, to_station: str, departure: datetime) -> str:
    """Return a cd.cz deep link pre-filled with both stations and the departure.

    The departure is truncated to the minute and expressed in UTC
    (YYYY-MM-DDTHH:MM). Station names are percent-encoded, never rejected.
    """
    utc_dt = departure.astimezone(timezone.utc)
    params = {
        "fromCity": from_station,
        "toCity": to_station,
        "dateTime": utc_dt.strftime("%Y-%m-%dT%H:%M"),
    }
    return f"{BOOKING_BASE_URL}?{urlencode(params)}"
