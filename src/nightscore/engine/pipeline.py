"""Sleep pipeline: raw samples in, scored nights out.

Wires the engine stages together:

    parse -> cluster -> classify (primary / naps) -> validate -> score

:func:`score_night` treats the whole input as a single night.
:func:`score_nights` splits a longer export by night key and feeds each
night the midpoints of earlier valid nights for the regularity component.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Iterable, Mapping, Sequence

from nightscore.engine.config import DEFAULT_CONFIG, SleepConfig
from nightscore.engine.episodes import EpisodeType, SleepEpisode, cluster_into_episodes
from nightscore.engine.primary import classify_episodes, group_by_night
from nightscore.engine.scoring import (
    NapScoreResult,
    SleepScoreResult,
    calculate_nap_score,
    calculate_sleep_score,
)
from nightscore.engine.segments import RawSleepSegment, parse_raw_segments
from nightscore.engine.validation import ValidationResult, validate_sleep_episode


@dataclass
class NightReport:
    """Everything the engine worked out for one night."""

    night: str | None  # night key of the primary (or first) episode
    primary: SleepEpisode | None = None
    primary_score: SleepScoreResult | None = None
    validation: ValidationResult | None = None
    naps: list[SleepEpisode] = field(default_factory=list)
    nap_scores: list[NapScoreResult] = field(default_factory=list)
    episodes: list[SleepEpisode] = field(default_factory=list)

    @property
    def scorable(self) -> bool:
        """True if there is a primary episode and it validated."""
        return self.primary is not None and bool(self.validation)

    @property
    def nap_readiness_credit(self) -> int:
        return sum(n.readiness_credit for n in self.nap_scores)

    def __repr__(self) -> str:
        score = self.primary_score.score if self.primary_score else None
        return (
            f"NightReport({self.night}: score={score}, "
            f"valid={self.scorable}, naps={len(self.naps)}, "
            f"episodes={len(self.episodes)})"
        )


def _report_for_episodes(
    episodes: Sequence[SleepEpisode],
    tz: str | tzinfo | None,
    previous_midpoints: Sequence[datetime] | None,
    config: SleepConfig,
) -> NightReport:
    primary, others = classify_episodes(episodes, tz, config)
    naps = [ep for ep in others if ep.episode_type == EpisodeType.NAP]

    if primary is not None:
        night = primary.night_key_local_date
    elif episodes:
        night = episodes[0].night_key_local_date
    else:
        night = None

    report = NightReport(
        night=night,
        primary=primary,
        naps=naps,
        nap_scores=[calculate_nap_score(n) for n in naps],
        episodes=list(episodes),
    )
    if primary is not None:
        report.validation = validate_sleep_episode(primary, config)
        report.primary_score = calculate_sleep_score(primary, previous_midpoints)
    return report


def score_night(
    raw_segments: Iterable[RawSleepSegment | Mapping[str, Any]],
    tz: str | tzinfo | None = "UTC",
    previous_midpoints: Sequence[datetime] | None = None,
    config: SleepConfig = DEFAULT_CONFIG,
) -> NightReport:
    """Run the full engine over samples belonging to one night.

    Args:
        raw_segments: Raw samples (objects or ``startDate``/``endDate``/
            ``value`` mappings).
        tz: The user's IANA time zone.
        previous_midpoints: Recent primary midpoints for regularity.
        config: Engine thresholds.

    Returns:
        A NightReport.  ``primary`` is None when nothing qualifies; a
        primary that fails validation still carries its score.
    """
    segments = parse_raw_segments(raw_segments, tz)
    episodes = cluster_into_episodes(segments, tz, config)
    return _report_for_episodes(episodes, tz, previous_midpoints, config)


def score_nights(
    raw_segments: Iterable[RawSleepSegment | Mapping[str, Any]],
    tz: str | tzinfo | None = "UTC",
    config: SleepConfig = DEFAULT_CONFIG,
) -> list[NightReport]:
    """Score every night in a multi-day export, oldest first."""
    segments = parse_raw_segments(raw_segments, tz)
    episodes = cluster_into_episodes(segments, tz, config)

    reports: list[NightReport] = []
    history: list[datetime] = []
    for _night, night_episodes in group_by_night(episodes).items():
        recent = history[-config.regularity_history_nights:] if config.regularity_history_nights > 0 else []
        report = _report_for_episodes(night_episodes, tz, recent, config)
        reports.append(report)
        if report.scorable:
            history.append(report.primary.sleep_midpoint_local)
    return reports
