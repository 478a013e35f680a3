"""Common time utilities."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp."""
    return dt.datetime.now(dt.UTC)


def isoformat_z(value: dt.datetime) -> str:
    """Render an aware timestamp as ISO 8601 with a ``Z`` suffix.

    Persisted documents use the same millisecond ``Z`` form that the
    registry and cache files have always carried, so timestamps written by
    different processes sort and compare as plain strings.

    Examples
    --------
    >>> isoformat_z(dt.datetime(2024, 7, 1, 12, 0, tzinfo=dt.UTC))
    '2024-07-01T12:00:00.000Z'

    """
    if value.tzinfo is None:
        msg = "timestamp must be timezone-aware"
        raise ValueError(msg)
    utc = value.astimezone(dt.UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def now_z() -> str:
    """Return the current UTC time in the persisted ``Z`` form."""
    return isoformat_z(utcnow())
