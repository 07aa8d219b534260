"""Sleep quality scoring.

The nightly score (0-100) is the sum of six independently bounded
components:

    duration       0..25   actual sleep hours
    efficiency     0..20   actual sleep / time in bed
    deep           0..10   deep sleep share of actual sleep
    rem            0..10   REM share of actual sleep
    fragmentation -10..10  penalties for awakenings and long awake bouts
    regularity     0..5    midpoint drift against recent nights

Naps use a separate 0-10 rubric and never feed the nightly score.

Bands are checked top to bottom; the first match wins, so every lower
bound is inclusive.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Sequence

import numpy as np

from nightscore.engine.episodes import SleepEpisode


@dataclass
class ScoreBreakdown:
    """Points awarded per component."""

    duration_component: int = 0  # 0-25
    efficiency_component: int = 0  # 0-20
    deep_component: int = 0  # 0-10
    rem_component: int = 0  # 0-10
    fragmentation_component: int = 0  # -10 to +10
    regularity_component: int = 0  # 0-5

    @property
    def total(self) -> int:
        return (
            self.duration_component
            + self.efficiency_component
            + self.deep_component
            + self.rem_component
            + self.fragmentation_component
            + self.regularity_component
        )


@dataclass
class StagePercentages:
    """Ratios (0-1) used by the rubric."""

    deep: float = 0.0
    rem: float = 0.0
    light: float = 0.0
    efficiency: float = 0.0


@dataclass
class FragmentationStats:
    awakenings_count: int = 0
    longest_awake_bout_minutes: int = 0


@dataclass
class SleepScoreResult:
    """Nightly score for a primary episode."""

    score: int  # 0-100
    quality: str  # excellent | good | fair | poor
    actual_sleep_minutes: int
    sleep_hours: float
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)
    percentages: StagePercentages = field(default_factory=StagePercentages)
    fragmentation: FragmentationStats = field(default_factory=FragmentationStats)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def __repr__(self) -> str:
        return (
            f"SleepScoreResult(score={self.score}, {self.quality}, "
            f"sleep={self.sleep_hours:.1f}h, "
            f"eff={self.percentages.efficiency:.0%})"
        )


@dataclass
class NapScoreResult:
    """Score for a nap episode."""

    score: int  # 0-10
    restorative: bool  # >= 10 min of deep or REM
    readiness_credit: int  # 0 or 2

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Rubric tables
# ---------------------------------------------------------------------------

# Sleep hours: (points, [(lo, hi, lo_inclusive, hi_inclusive), ...])
DURATION_BANDS = [
    (25, [(7.0, 9.0, True, True)]),
    (18, [(6.5, 7.0, True, False), (9.0, 9.5, False, True)]),
    (10, [(6.0, 6.5, True, False), (9.5, 10.0, False, True)]),
    (2, [(5.0, 6.0, True, False), (10.0, 11.0, False, True)]),
]

# Efficiency: (minimum ratio, points), highest first
EFFICIENCY_BANDS = [
    (0.95, 20),
    (0.90, 16),
    (0.85, 10),
    (0.80, 4),
]

# Stage share rubric: optimal band, acceptable bands, score below the floor
DEEP_OPTIMAL = (0.15, 0.25)
DEEP_ACCEPTABLE = (0.10, 0.30)
REM_OPTIMAL = (0.18, 0.28)
REM_ACCEPTABLE = (0.15, 0.32)
STAGE_POINTS_OPTIMAL = 10
STAGE_POINTS_ACCEPTABLE = 6
STAGE_POINTS_LOW = 2

# Fragmentation: start at the max, subtract penalties, floor
FRAGMENTATION_MAX = 10
FRAGMENTATION_FLOOR = -10
AWAKENING_PENALTIES = [(5, 6), (3, 3)]  # (min awakenings, penalty)
LONG_BOUT_PENALTIES = [(30, 6), (15, 3)]  # (min bout minutes, penalty)

# Regularity: (max midpoint drift minutes, points)
REGULARITY_BANDS = [(30, 5), (60, 3), (120, 1)]
REGULARITY_NO_HISTORY = 3
MINUTES_PER_DAY = 24 * 60

QUALITY_TIERS = [(80, "excellent"), (60, "good"), (40, "fair")]
QUALITY_FLOOR = "poor"

NAP_RESTORATIVE_MINUTES = 10
NAP_READINESS_CREDIT = 2


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


def _in_band(value: float, lo: float, hi: float, lo_inc: bool, hi_inc: bool) -> bool:
    above = value >= lo if lo_inc else value > lo
    below = value <= hi if hi_inc else value < hi
    return above and below


def duration_component(sleep_hours: float) -> int:
    """0-25 points; 7-9 h of actual sleep is optimal."""
    for points, bands in DURATION_BANDS:
        if any(_in_band(sleep_hours, *band) for band in bands):
            return points
    return 0


def efficiency_component(efficiency: float) -> int:
    """0-20 points from sleep efficiency (0-1)."""
    for minimum, points in EFFICIENCY_BANDS:
        if efficiency >= minimum:
            return points
    return 0


def _stage_component(
    share: float,
    optimal: tuple[float, float],
    acceptable: tuple[float, float],
) -> int:
    lo_opt, hi_opt = optimal
    lo_ok, hi_ok = acceptable
    if lo_opt <= share <= hi_opt:
        return STAGE_POINTS_OPTIMAL
    if lo_ok <= share < lo_opt or hi_opt < share <= hi_ok:
        return STAGE_POINTS_ACCEPTABLE
    if share < lo_ok:
        return STAGE_POINTS_LOW
    return 0  # above the acceptable band


def deep_component(deep_share: float) -> int:
    """0-10 points; 15-25% deep sleep is optimal, >30% scores 0."""
    return _stage_component(deep_share, DEEP_OPTIMAL, DEEP_ACCEPTABLE)


def rem_component(rem_share: float) -> int:
    """0-10 points; 18-28% REM is optimal, >32% scores 0."""
    return _stage_component(rem_share, REM_OPTIMAL, REM_ACCEPTABLE)


def fragmentation_component(awakenings_count: int, longest_awake_bout_minutes: float) -> int:
    """-10..+10 points.  Both penalties can apply and stack."""
    points = FRAGMENTATION_MAX
    for minimum, penalty in AWAKENING_PENALTIES:
        if awakenings_count >= minimum:
            points -= penalty
            break
    for minimum, penalty in LONG_BOUT_PENALTIES:
        if longest_awake_bout_minutes >= minimum:
            points -= penalty
            break
    return max(FRAGMENTATION_FLOOR, points)


def _clock_minutes(ts: datetime) -> float:
    return ts.hour * 60 + ts.minute + ts.second / 60.0


def _in_zone_of(ts: datetime, reference: datetime) -> datetime:
    if ts.tzinfo is None or reference.tzinfo is None:
        return ts
    return ts.astimezone(reference.tzinfo)


def midpoint_drift_minutes(
    midpoint: datetime,
    previous_midpoints: Sequence[datetime],
) -> float:
    """Minutes between *midpoint* and the mean clock time of earlier midpoints.

    Midpoints are compared on the wall clock (time of day), wrapping
    around midnight, so 23:50 and 00:10 are 20 minutes apart.  Aware
    history values are read in *midpoint*'s zone first.
    """
    current = _clock_minutes(midpoint)
    history = np.array(
        [_clock_minutes(_in_zone_of(mp, midpoint)) for mp in previous_midpoints],
        dtype=np.float64,
    )
    offsets = (history - current + MINUTES_PER_DAY / 2) % MINUTES_PER_DAY - MINUTES_PER_DAY / 2
    return abs(float(np.mean(offsets)))


def regularity_component(
    midpoint: datetime,
    previous_midpoints: Sequence[datetime] | None = None,
) -> int:
    """0-5 points from drift against the mean of previous midpoints.

    No history is neutral (3 points), not a penalty.
    """
    if not previous_midpoints:
        return REGULARITY_NO_HISTORY

    drift_min = midpoint_drift_minutes(midpoint, previous_midpoints)

    for max_drift, points in REGULARITY_BANDS:
        if drift_min <= max_drift:
            return points
    return 0


def quality_tier(score: float) -> str:
    """Map a 0-100 score to excellent / good / fair / poor."""
    for minimum, label in QUALITY_TIERS:
        if score >= minimum:
            return label
    return QUALITY_FLOOR


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def calculate_sleep_score(
    episode: SleepEpisode,
    previous_midpoints: Sequence[datetime] | None = None,
) -> SleepScoreResult:
    """Score a primary sleep episode.

    The episode is scored as-is; run
    :func:`~nightscore.engine.validation.validate_sleep_episode` first to
    decide whether the number can be trusted.

    Args:
        episode: The night's primary episode.
        previous_midpoints: Midpoints of recent nights (e.g. the last 2-3)
            for the regularity component.

    Returns:
        SleepScoreResult with the score, quality tier and breakdown.
    """
    actual = episode.actual_sleep_minutes
    sleep_hours = actual / 60.0

    deep_share = episode.deep_minutes / actual if actual > 0 else 0.0
    rem_share = episode.rem_minutes / actual if actual > 0 else 0.0
    light_share = episode.light_minutes / actual if actual > 0 else 0.0

    breakdown = ScoreBreakdown(
        duration_component=duration_component(sleep_hours),
        efficiency_component=efficiency_component(episode.sleep_efficiency),
        deep_component=deep_component(deep_share),
        rem_component=rem_component(rem_share),
        fragmentation_component=fragmentation_component(
            episode.awakenings_count, episode.longest_awake_bout_minutes,
        ),
        regularity_component=regularity_component(
            episode.sleep_midpoint_local, previous_midpoints,
        ),
    )

    score = int(max(0, min(100, round(breakdown.total))))

    return SleepScoreResult(
        score=score,
        quality=quality_tier(score),
        actual_sleep_minutes=actual,
        sleep_hours=sleep_hours,
        breakdown=breakdown,
        percentages=StagePercentages(
            deep=deep_share,
            rem=rem_share,
            light=light_share,
            efficiency=episode.sleep_efficiency,
        ),
        fragmentation=FragmentationStats(
            awakenings_count=episode.awakenings_count,
            longest_awake_bout_minutes=episode.longest_awake_bout_minutes,
        ),
    )


def nap_duration_score(in_bed_minutes: float) -> int:
    """0-10 points; a 20-30 minute nap is optimal."""
    if 20 <= in_bed_minutes <= 30:
        return 10
    if 30 < in_bed_minutes <= 60:
        return 6
    if 10 <= in_bed_minutes < 20:
        return 4
    if in_bed_minutes > 60:
        return 2
    return 0


def calculate_nap_score(episode: SleepEpisode) -> NapScoreResult:
    """Score a nap.

    ``readiness_credit`` is a bonus signal for a separate readiness
    computation; it is not applied here.
    """
    restorative = (
        episode.deep_minutes >= NAP_RESTORATIVE_MINUTES
        or episode.rem_minutes >= NAP_RESTORATIVE_MINUTES
    )
    return NapScoreResult(
        score=nap_duration_score(episode.in_bed_minutes),
        restorative=restorative,
        readiness_credit=NAP_READINESS_CREDIT if restorative else 0,
    )
