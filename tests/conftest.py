"""Shared fixtures and helpers for the nightscore test suite."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

from nightscore.engine.episodes import EpisodeFlag, EpisodeType, SleepEpisode
from nightscore.engine.segments import ProcessedSegment, RawSleepSegment, round_minutes
from nightscore.engine.stages import SleepStage

UTC = timezone.utc


# ---------------------------------------------------------------------------
# Raw sample helpers
# ---------------------------------------------------------------------------


def ts(text: str) -> datetime:
    """Parse an ISO string as a UTC datetime (``Z`` optional)."""
    text = text.rstrip("Z")
    return datetime.fromisoformat(text).replace(tzinfo=UTC)


def iso(dt: datetime) -> str:
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def make_raw(start: str, minutes: float, value: str = "asleep_core") -> dict:
    """A raw export entry starting at *start* (UTC ISO) lasting *minutes*."""
    begin = ts(start)
    end = begin + timedelta(minutes=minutes)
    return {"startDate": iso(begin), "endDate": iso(end), "value": value}


def make_night(start: str, plan: list[tuple[str, float]]) -> list[dict]:
    """Back-to-back raw entries following ``[(value, minutes), ...]``."""
    entries = []
    cursor = ts(start)
    for value, minutes in plan:
        end = cursor + timedelta(minutes=minutes)
        entries.append({"startDate": iso(cursor), "endDate": iso(end), "value": value})
        cursor = end
    return entries


def make_segment(
    start: datetime,
    minutes: float,
    stage: SleepStage = SleepStage.LIGHT,
) -> ProcessedSegment:
    end = start + timedelta(minutes=minutes)
    return ProcessedSegment(start, end, round_minutes(end - start), stage)


def make_segments(start: str, plan: list[tuple[SleepStage, float]]) -> list[ProcessedSegment]:
    """Contiguous processed segments following ``[(stage, minutes), ...]``."""
    segments = []
    cursor = ts(start)
    for stage, minutes in plan:
        seg = make_segment(cursor, minutes, stage)
        segments.append(seg)
        cursor = seg.end
    return segments


# ---------------------------------------------------------------------------
# Episode builder
# ---------------------------------------------------------------------------


def make_episode(
    in_bed_minutes: int = 480,
    actual_sleep_minutes: int = 450,
    awake_minutes: int | None = None,
    light_minutes: int = 250,
    deep_minutes: int = 100,
    rem_minutes: int = 100,
    awakenings_count: int = 2,
    longest_awake_bout_minutes: int = 10,
    sleep_midpoint_local: datetime | None = None,
    episode_type: EpisodeType = EpisodeType.PRIMARY,
    flags: frozenset[EpisodeFlag] | set = frozenset(),
    episode_start: datetime | None = None,
) -> SleepEpisode:
    """Build a SleepEpisode directly, bypassing clustering.

    Defaults describe an 8 h night (22:00 UTC) with 7.5 h of sleep.
    """
    if awake_minutes is None:
        awake_minutes = in_bed_minutes - actual_sleep_minutes
    start = episode_start or ts("2025-10-22T22:00:00")
    end = start + timedelta(minutes=in_bed_minutes)
    return SleepEpisode(
        episode_id=str(uuid.uuid4()),
        episode_type=episode_type,
        episode_start=start,
        episode_end=end,
        in_bed_minutes=in_bed_minutes,
        actual_sleep_minutes=actual_sleep_minutes,
        awake_minutes=awake_minutes,
        light_minutes=light_minutes,
        deep_minutes=deep_minutes,
        rem_minutes=rem_minutes,
        sleep_efficiency=actual_sleep_minutes / in_bed_minutes if in_bed_minutes else 0.0,
        awakenings_count=awakenings_count,
        longest_awake_bout_minutes=longest_awake_bout_minutes,
        sleep_midpoint_local=sleep_midpoint_local or ts("2025-10-23T03:00:00"),
        night_key_local_date="2025-10-22",
        flags=frozenset(flags),
    )


# ---------------------------------------------------------------------------
# Export file helpers
# ---------------------------------------------------------------------------


def write_jsonl(path: Path, entries: list[dict]) -> Path:
    """Write a list of dicts as JSONL to the given path."""
    with open(path, "w") as f:
        for entry in entries:
            f.write(json.dumps(entry) + "\n")
    return path


def write_json(path: Path, doc) -> Path:
    path.write_text(json.dumps(doc))
    return path


def as_raw(entries: list[dict]) -> list[RawSleepSegment]:
    return [
        RawSleepSegment(e["startDate"], e["endDate"], e["value"], e.get("source"))
        for e in entries
    ]
