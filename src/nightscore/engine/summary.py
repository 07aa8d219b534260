"""Sleep session record.

Flattens a :class:`~nightscore.engine.pipeline.NightReport` into the
row shape a host service persists per night (bedtime, waketime, stage
minutes, score, quality).  JSON-serializable; nothing is stored here.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any

from nightscore.engine.pipeline import NightReport


@dataclass
class SleepSessionRecord:
    """One night's sleep, ready to persist."""

    night: str  # YYYY-MM-DD local night key
    bedtime: str  # ISO timestamp
    waketime: str
    total_minutes: int  # actual sleep
    awake_minutes: int = 0
    light_minutes: int = 0
    deep_minutes: int = 0
    rem_minutes: int = 0
    sleep_score: int | None = None
    quality: str | None = None
    source: str = "apple-health"

    valid: bool = True
    invalid_reason: str | None = None
    nap_count: int = 0
    nap_readiness_credit: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict (JSON-friendly)."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"SleepSessionRecord({self.night}: "
            f"sleep={self.total_minutes}min, "
            f"score={self.sleep_score}, {self.quality}, "
            f"valid={self.valid})"
        )


def build_session_record(
    report: NightReport,
    source: str = "apple-health",
) -> SleepSessionRecord | None:
    """Build the persisted record for a night.

    Returns None when the night has no primary episode.
    """
    primary = report.primary
    if primary is None:
        return None

    record = SleepSessionRecord(
        night=primary.night_key_local_date,
        bedtime=primary.episode_start.isoformat(),
        waketime=primary.episode_end.isoformat(),
        total_minutes=primary.actual_sleep_minutes,
        awake_minutes=primary.awake_minutes,
        light_minutes=primary.light_minutes,
        deep_minutes=primary.deep_minutes,
        rem_minutes=primary.rem_minutes,
        source=source,
        nap_count=len(report.naps),
        nap_readiness_credit=report.nap_readiness_credit,
    )

    if report.primary_score is not None:
        record.sleep_score = report.primary_score.score
        record.quality = report.primary_score.quality

    if report.validation is not None and not report.validation.valid:
        record.valid = False
        record.invalid_reason = report.validation.reason

    return record
