"""Raw segment parsing.

Turns platform sleep samples into :class:`ProcessedSegment` values with a
canonical stage and a whole-minute duration, sorted by start time.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Any, Iterable, Mapping

from nightscore.engine.localtime import resolve_tz
from nightscore.engine.stages import SleepStage, normalize_stage

# "+0800", " +08:00" -> "+08:00"
_OFFSET_RE = re.compile(r"\s*([+-])(\d{2}):?(\d{2})$")


@dataclass
class RawSleepSegment:
    """One sample as exported by the health platform."""

    start_date: datetime | str
    end_date: datetime | str
    value: str | None
    source: str | None = None  # bundle identifier, if known


@dataclass(frozen=True)
class ProcessedSegment:
    """A normalized, immutable stage interval."""

    start: datetime
    end: datetime
    duration_minutes: int  # rounded to the nearest minute
    stage: SleepStage

    @property
    def exact_minutes(self) -> float:
        """Unrounded duration in minutes."""
        return (self.end - self.start).total_seconds() / 60.0


def round_minutes(delta: timedelta) -> int:
    """Round a duration to whole minutes, halves rounding up."""
    return math.floor(delta.total_seconds() / 60.0 + 0.5)


def parse_timestamp(value: datetime | str, tz: str | tzinfo | None = "UTC") -> datetime:
    """Parse an ISO-8601 string or pass a datetime through.

    Accepts a ``Z`` suffix and Apple-style offsets (``+0800``, optionally
    space-separated) as well as ``+08:00``.

    Naive values are local wall-clock time in *tz* and get that zone
    attached, so they compare correctly with offset-aware values.

    Raises:
        ValueError: if *value* is not a parseable timestamp.
    """
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _OFFSET_RE.sub(r"\1\2:\3", text)
        ts = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unparseable timestamp: {value!r}")

    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=resolve_tz(tz))
    return ts


def coerce_raw(entry: RawSleepSegment | Mapping[str, Any]) -> RawSleepSegment:
    if isinstance(entry, RawSleepSegment):
        return entry
    return RawSleepSegment(
        start_date=entry["startDate"],
        end_date=entry["endDate"],
        value=entry.get("value"),
        source=entry.get("source"),
    )


def parse_raw_segments(
    raw_segments: Iterable[RawSleepSegment | Mapping[str, Any]],
    tz: str | tzinfo | None = "UTC",
) -> list[ProcessedSegment]:
    """Normalize raw samples into sorted :class:`ProcessedSegment` values.

    Zero- and negative-length samples are kept; they surface later as
    episode flags rather than being dropped here.

    Args:
        raw_segments: :class:`RawSleepSegment` objects or mappings with
            ``startDate``, ``endDate`` and ``value`` keys.
        tz: Zone used for naive timestamps.

    Returns:
        Segments sorted ascending by ``start``.
    """
    processed: list[ProcessedSegment] = []
    for entry in raw_segments:
        raw = coerce_raw(entry)
        start = parse_timestamp(raw.start_date, tz)
        end = parse_timestamp(raw.end_date, tz)
        processed.append(ProcessedSegment(
            start=start,
            end=end,
            duration_minutes=round_minutes(end - start),
            stage=normalize_stage(raw.value),
        ))

    processed.sort(key=lambda s: s.start)
    return processed
