"""Time zone helpers for attributing sleep to local nights.

Wearable exports carry UTC (or offset) timestamps, but sleep windows and
night keys are defined on the user's wall clock.  These helpers convert
between the two with :mod:`zoneinfo`.

Naive datetimes are treated as already being local wall-clock time.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Bedtime windows reach back this far before local midnight to catch
# overnight sleep that started the previous evening.
BEDTIME_LOOKBACK = timedelta(hours=18)


def resolve_tz(tz: str | tzinfo | None) -> tzinfo:
    """Turn an IANA name (or tzinfo, or None for UTC) into a tzinfo."""
    if tz is None:
        return timezone.utc
    if isinstance(tz, tzinfo):
        return tz
    if tz.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(tz)


def to_local(ts: datetime, tz: str | tzinfo | None = "UTC") -> datetime:
    """Express *ts* on the local wall clock of *tz*."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(resolve_tz(tz))


def local_hour(ts: datetime, tz: str | tzinfo | None = "UTC") -> int:
    """Hour of day (0-23) of *ts* in *tz*."""
    return to_local(ts, tz).hour


def local_date_string(ts: datetime, tz: str | tzinfo | None = "UTC") -> str:
    """``YYYY-MM-DD`` of *ts* in *tz*."""
    return to_local(ts, tz).date().isoformat()


def is_on_local_day(ts: datetime, local_date: str, tz: str | tzinfo | None = "UTC") -> bool:
    """True if *ts* falls on the local calendar day *local_date*."""
    return local_date_string(ts, tz) == local_date


def local_day_to_utc_range(
    local_date: str,
    tz: str | tzinfo | None = "UTC",
) -> tuple[datetime, datetime]:
    """UTC start and end instants covering a full local calendar day.

    Example: ``"2025-10-23"`` in ``Australia/Perth`` (UTC+08:00) gives
    ``2025-10-22T16:00Z`` .. ``2025-10-23T15:59:59.999999Z``.

    Raises:
        ValueError: if *local_date* is not ``YYYY-MM-DD``.
    """
    if not _DATE_RE.match(local_date):
        raise ValueError(f"Invalid date format: {local_date}. Expected YYYY-MM-DD")

    zone = resolve_tz(tz)
    day = date.fromisoformat(local_date)
    start_local = datetime.combine(day, time.min, tzinfo=zone)
    end_local = datetime.combine(day, time.max, tzinfo=zone)
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)


def local_day_to_bedtime_window(
    local_date: str,
    tz: str | tzinfo | None = "UTC",
) -> tuple[datetime, datetime]:
    """Bedtime range (UTC) whose sleep sessions belong to *local_date*.

    Sessions are usually queried by bedtime, so the window starts well
    before local midnight and ends at the local end of day.
    """
    start_utc, end_utc = local_day_to_utc_range(local_date, tz)
    return start_utc - BEDTIME_LOOKBACK, end_utc
