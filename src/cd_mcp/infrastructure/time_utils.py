from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

PRAGUE_TZ: ZoneInfo = ZoneInfo("Europe/Prague")
UTC_TZ = timezone.utc

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC_TZ)
_CD_DATE_PATTERN = re.compile(r"^/Date\((-?\d+)\)/$")


def encode_cd_datetime(dt: datetime) -> str:
    """Encode an aware datetime as the API's "/Date(<epoch ms>)/" wrapper.

    Sub-millisecond precision is dropped.
    Raises ValueError for naive datetimes.
    """
    if dt.tzinfo is None:
        raise ValueError("Cannot encode a naive datetime")
    ms = (dt - _EPOCH) // timedelta(milliseconds=1)
    return f"/Date({ms})/"


def decode_cd_datetime(raw: str) -> datetime | str:
    """Decode a "/Date(<epoch ms>)/" wrapper into a UTC datetime.

    Returns the input unchanged when it does not match the wrapper pattern, so
    callers must check the result with is_decoded() before doing time math.
    """
    match = _CD_DATE_PATTERN.match(raw) if isinstance(raw, str) else None
    if match is None:
        return raw
    try:
        return _EPOCH + timedelta(milliseconds=int(match.group(1)))
    except OverflowError:
        # Outside the range datetime can represent
        return raw


def is_decoded(value: datetime | str) -> bool:
    return isinstance(value, datetime)


def parse_departure(s: str) -> datetime:
    """Parse an ISO 8601 departure given by a caller.

    Handles formats:
    - "2025-12-15T10:00:00Z"        (UTC)
    - "2025-12-15T10:00:00+01:00"   (offset-aware)
    - "2025-12-15T10:00:00"         (naive — assumed Europe/Prague)

    Always returns a timezone-aware datetime.
    Raises ValueError on empty or unparseable input.
    """
    if not s or not s.strip():
        raise ValueError("Empty departure datetime")

    s = s.strip()
    if s.endswith(("Z", "z")):
        # fromisoformat only accepts a trailing Z from Python 3.11
        s = s[:-1] + "+00:00"

    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        raise ValueError(
            f"Invalid departure datetime {s!r}, expected ISO 8601 such as 2025-12-15T08:00:00"
        )

    if dt.tzinfo is None:
        return dt.replace(tzinfo=PRAGUE_TZ)
    return dt
