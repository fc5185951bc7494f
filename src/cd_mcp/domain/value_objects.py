from __future__ import annotations

from enum import Enum


class LocationType(str, Enum):
    """Kind of node returned by a location search.

    Using (str, Enum) for Python 3.10 compatibility (StrEnum requires 3.11+).
    """

    STATION = "station"
    CITY = "city"
    UNKNOWN = "unknown"


DEFAULT_CURRENCY = "CZK"
