from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from cd_mcp.domain.services import duration_minutes
from cd_mcp.domain.value_objects import LocationType


@dataclass(frozen=True)
class Location:
    """A station or city returned by a location search."""

    key: str  # Upstream list ID as string — stable within one session
    name: str
    type: LocationType = LocationType.UNKNOWN

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Location name must not be empty")


@dataclass(frozen=True)
class StationIdentity:
    """A free-text query resolved to exactly one upstream station."""

    id: int  # iListID
    name: str  # Canonical display name


@dataclass(frozen=True)
class Money:
    amount: Decimal  # Major units, e.g. Decimal("269") CZK
    currency: str

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"Negative amount: {self.amount}")


@dataclass(frozen=True)
class ConnectionLeg:
    """One vehicle segment of a journey."""

    from_station: str
    to_station: str
    departure: datetime
    arrival: datetime
    train_type: str | None = None  # e.g. "R", "Ex", "EC"
    train_number: str | None = None  # e.g. "1045 Vysočina"

    def __post_init__(self) -> None:
        if self.arrival < self.departure:
            raise ValueError(
                f"Leg {self.from_station} -> {self.to_station} arrives before it departs"
            )


@dataclass(frozen=True)
class Connection:
    """One complete origin-to-destination offer.

    departure, arrival, duration_minutes and transfer_count are derived from legs
    and cannot be supplied independently.
    """

    id: str  # Only meaningful together with the search handle of its search
    legs: tuple[ConnectionLeg, ...]
    price: Money | None = None  # None means "price unknown", never "free"

    def __post_init__(self) -> None:
        if not self.legs:
            raise ValueError(f"Connection {self.id} has no legs")

    @property
    def departure(self) -> datetime:
        return self.legs[0].departure

    @property
    def arrival(self) -> datetime:
        return self.legs[-1].arrival

    @property
    def duration_minutes(self) -> int:
        return duration_minutes(self.departure, self.arrival)

    @property
    def transfer_count(self) -> int:
        return len(self.legs) - 1


@dataclass(frozen=True)
class PassengerType:
    """A fare category. The set is static; users cannot create new ones."""

    key: str
    name: str
    description: str | None = None
    discount_percent: int | None = None  # 0–100

    def __post_init__(self) -> None:
        if self.discount_percent is not None and not 0 <= self.discount_percent <= 100:
            raise ValueError(f"discount_percent out of range: {self.discount_percent}")


@dataclass
class SearchContext:
    """Correlation state owned by a single search call; never returned to callers."""

    session_token: str | None = None
    search_handle: str | None = None


@dataclass(frozen=True)
class ConnectionSearchResult:
    from_station: str
    to_station: str
    connections: tuple[Connection, ...] = ()
    search_handle: str | None = None
