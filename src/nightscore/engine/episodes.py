"""Episode clustering.

Groups a time-ordered list of segments into sleep episodes.  A gap of
``long_awake_split_minutes`` (90 by default) or more between consecutive
segments closes the current episode; anything shorter, including
back-to-back segments, stays in the same one.

Each episode aggregates per-stage minutes and awakening statistics and is
tagged with data-quality flags when its totals do not add up.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import Sequence

from nightscore.engine.config import DEFAULT_CONFIG, SleepConfig
from nightscore.engine.localtime import to_local
from nightscore.engine.segments import ProcessedSegment, round_minutes
from nightscore.engine.stages import SleepStage

log = logging.getLogger(__name__)


class EpisodeType(str, Enum):
    """Role of an episode within a night."""

    PRIMARY = "primary"
    NAP = "nap"


class EpisodeFlag(str, Enum):
    """Data-quality problems found while aggregating an episode."""

    DATA_INCONSISTENT = "data_inconsistent"  # stage minutes != span
    OUTLIER_DURATION = "outlier_duration"  # span > 16 h


@dataclass(frozen=True)
class SleepEpisode:
    """A contiguous bout of in-bed time."""

    episode_id: str
    episode_type: EpisodeType
    episode_start: datetime
    episode_end: datetime
    in_bed_minutes: int
    actual_sleep_minutes: int
    awake_minutes: int
    light_minutes: int
    deep_minutes: int
    rem_minutes: int
    sleep_efficiency: float  # actual / in bed (0-1)
    awakenings_count: int
    longest_awake_bout_minutes: int
    sleep_midpoint_local: datetime
    night_key_local_date: str  # YYYY-MM-DD
    segments: tuple[ProcessedSegment, ...] = ()
    flags: frozenset[EpisodeFlag] = field(default_factory=frozenset)

    @property
    def stage_sum_minutes(self) -> int:
        return self.awake_minutes + self.light_minutes + self.deep_minutes + self.rem_minutes

    def has_flag(self, flag: EpisodeFlag) -> bool:
        return flag in self.flags

    def with_type(self, episode_type: EpisodeType) -> SleepEpisode:
        """Copy of this episode with a different :class:`EpisodeType`."""
        if self.episode_type == episode_type:
            return self
        return replace(self, episode_type=episode_type)

    def __repr__(self) -> str:
        flags = ",".join(sorted(f.value for f in self.flags)) or "-"
        return (
            f"SleepEpisode({self.episode_type.value}, "
            f"night={self.night_key_local_date}, "
            f"in_bed={self.in_bed_minutes}min, "
            f"sleep={self.actual_sleep_minutes}min, "
            f"eff={self.sleep_efficiency:.0%}, flags={flags})"
        )


def night_key(start: datetime, tz: str | tzinfo | None = "UTC", boundary_hour: int = 15) -> str:
    """Local date of the night an episode starting at *start* belongs to.

    Episodes starting before *boundary_hour* (local) are attributed to the
    previous calendar day.
    """
    local = to_local(start, tz)
    day = local.date()
    if local.hour < boundary_hour:
        day -= timedelta(days=1)
    return day.isoformat()


def build_episode(
    segments: Sequence[ProcessedSegment],
    tz: str | tzinfo | None = "UTC",
    config: SleepConfig = DEFAULT_CONFIG,
) -> SleepEpisode:
    """Aggregate one cluster of segments into a :class:`SleepEpisode`.

    *segments* must be non-empty and sorted by start.
    """
    episode_start = segments[0].start
    episode_end = segments[-1].end
    in_bed = round_minutes(episode_end - episode_start)

    totals = {stage: 0 for stage in SleepStage}
    awakenings = 0
    longest_bout = 0

    for seg in segments:
        totals[seg.stage] += seg.duration_minutes
        if seg.stage == SleepStage.AWAKE and seg.exact_minutes >= config.min_awakening_minutes:
            awakenings += 1
            longest_bout = max(longest_bout, seg.duration_minutes)

    awake = totals[SleepStage.AWAKE]
    actual_sleep = in_bed - awake
    efficiency = actual_sleep / in_bed if in_bed > 0 else 0.0

    midpoint = episode_start + (episode_end - episode_start) / 2

    # Provisional; primary selection decides the final role.
    if config.nap_min_minutes <= in_bed <= config.nap_max_minutes:
        episode_type = EpisodeType.NAP
    else:
        episode_type = EpisodeType.PRIMARY

    flags: set[EpisodeFlag] = set()
    stage_sum = sum(totals.values())
    if abs(stage_sum - in_bed) > config.stage_sum_tolerance_minutes:
        flags.add(EpisodeFlag.DATA_INCONSISTENT)
    if in_bed > config.primary_max_minutes:
        flags.add(EpisodeFlag.OUTLIER_DURATION)
    if flags:
        log.debug(
            "Episode %s..%s flagged %s (stage sum %d, in bed %d)",
            episode_start.isoformat(), episode_end.isoformat(),
            sorted(f.value for f in flags), stage_sum, in_bed,
        )

    return SleepEpisode(
        episode_id=str(uuid.uuid4()),
        episode_type=episode_type,
        episode_start=episode_start,
        episode_end=episode_end,
        in_bed_minutes=in_bed,
        actual_sleep_minutes=actual_sleep,
        awake_minutes=awake,
        light_minutes=totals[SleepStage.LIGHT],
        deep_minutes=totals[SleepStage.DEEP],
        rem_minutes=totals[SleepStage.REM],
        sleep_efficiency=efficiency,
        awakenings_count=awakenings,
        longest_awake_bout_minutes=longest_bout,
        sleep_midpoint_local=to_local(midpoint, tz),
        night_key_local_date=night_key(episode_start, tz, config.night_boundary_hour),
        segments=tuple(segments),
        flags=frozenset(flags),
    )


def cluster_into_episodes(
    segments: Sequence[ProcessedSegment],
    tz: str | tzinfo | None = "UTC",
    config: SleepConfig = DEFAULT_CONFIG,
) -> list[SleepEpisode]:
    """Split a sorted segment list into episodes on long gaps.

    Args:
        segments: Output of :func:`~nightscore.engine.segments.parse_raw_segments`.
        tz: Zone for local midpoint and night key.
        config: Engine thresholds.

    Returns:
        Episodes in chronological order (empty for empty input).
    """
    episodes: list[SleepEpisode] = []
    current: list[ProcessedSegment] = []

    for seg in segments:
        if current:
            gap = round_minutes(seg.start - current[-1].end)
            if gap >= config.long_awake_split_minutes:
                episodes.append(build_episode(current, tz, config))
                current = []
        current.append(seg)

    if current:
        episodes.append(build_episode(current, tz, config))

    return episodes
