"""Helpers for working with timezone-aware datetimes."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import get_settings

_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the configured application timezone.

    ``APP_TIMEZONE`` accepts an IANA name (``Europe/Madrid``) or a fixed offset
    (``UTC+05:30``). Unknown or empty values resolve to UTC.
    """

    tz_name = (get_settings().app_timezone or "").strip()
    if not tz_name:
        return timezone.utc
    return _resolve_timezone(tz_name)


def now_in_app_timezone() -> datetime:
    """Return the current time localized to the configured timezone."""

    return datetime.now(tz=get_app_timezone())


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Attach or convert ``value`` to the application timezone.

    Naive values coming back from the database are assumed to be UTC.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(get_app_timezone())


def to_utc_naive(value: datetime) -> datetime:
    """Return ``value`` as a naive UTC datetime suitable for ``DATETIME`` columns."""

    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def seconds_until(moment: datetime, *, now: datetime | None = None) -> float:
    """Return the non-negative number of seconds between ``now`` and ``moment``."""

    reference = now or now_in_app_timezone()
    moment = ensure_app_timezone(moment)
    return max(0.0, (moment - reference).total_seconds())


def _resolve_timezone(tz_name: str) -> tzinfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        match = _OFFSET_PATTERN.match(tz_name)
        if match:
            sign = -1 if match.group("sign") == "-" else 1
            offset = timedelta(
                hours=int(match.group("hours")),
                minutes=int(match.group("minutes") or 0),
            )
            return timezone(sign * offset)
    return timezone.utc
