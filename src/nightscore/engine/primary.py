"""Primary episode selection.

Second phase of the episode pipeline: given the clustered episodes, pick
the one that counts as the night's main sleep and re-type the rest as
naps.  Episodes are never mutated; re-typed copies are returned.

Selection rules:
  1. Candidates last 180-960 min and either start at/after 15:00 local or
     cross local midnight and end at/before 12:00 local.  Longest wins.
  2. Otherwise, fall back to the longest episode of >= 180 min starting
     between 12:00 and 15:00 local (late sleepers, shift workers).
  3. Otherwise there is no primary episode.
"""

from __future__ import annotations

import logging
from datetime import time, tzinfo
from typing import Iterable, Sequence

from nightscore.engine.config import DEFAULT_CONFIG, SleepConfig
from nightscore.engine.episodes import EpisodeType, SleepEpisode
from nightscore.engine.localtime import to_local

log = logging.getLogger(__name__)


def is_in_primary_window(
    episode: SleepEpisode,
    tz: str | tzinfo | None = "UTC",
    config: SleepConfig = DEFAULT_CONFIG,
) -> bool:
    """True if *episode* overlaps the 15:00 -> next-day 12:00 window."""
    start = to_local(episode.episode_start, tz)
    end = to_local(episode.episode_end, tz)

    if start.hour >= config.primary_window_start_hour:
        return True
    crosses_midnight = end.date() != start.date()
    ends_by_noon = end.time() <= time(config.primary_window_end_hour)
    return crosses_midnight and ends_by_noon


def _longest(episodes: Iterable[SleepEpisode]) -> SleepEpisode | None:
    # Strict comparison: on equal length the first episode found wins.
    best = None
    for ep in episodes:
        if best is None or ep.in_bed_minutes > best.in_bed_minutes:
            best = ep
    return best


def select_primary_episode(
    episodes: Sequence[SleepEpisode],
    tz: str | tzinfo | None = "UTC",
    config: SleepConfig = DEFAULT_CONFIG,
) -> SleepEpisode | None:
    """Choose the night's main sleep episode.

    Returns:
        A copy of the chosen episode typed ``primary``, or None when no
        episode qualifies (not enough data to score the night).
    """
    eligible = [
        ep for ep in episodes
        if config.primary_min_minutes <= ep.in_bed_minutes <= config.primary_max_minutes
        and is_in_primary_window(ep, tz, config)
    ]
    chosen = _longest(eligible)

    if chosen is None:
        fallback = [
            ep for ep in episodes
            if config.fallback_window_start_hour
            <= to_local(ep.episode_start, tz).hour
            < config.primary_window_start_hour
            and ep.in_bed_minutes >= config.primary_min_minutes
        ]
        chosen = _longest(fallback)
        if chosen is None:
            log.debug("No primary episode among %d episode(s)", len(episodes))
            return None
        log.debug("Primary episode from afternoon fallback: %r", chosen)
    else:
        log.debug("Primary episode selected: %r", chosen)

    return chosen.with_type(EpisodeType.PRIMARY)


def classify_episodes(
    episodes: Sequence[SleepEpisode],
    tz: str | tzinfo | None = "UTC",
    config: SleepConfig = DEFAULT_CONFIG,
) -> tuple[SleepEpisode | None, list[SleepEpisode]]:
    """Split episodes into the primary one and the rest.

    Returns:
        ``(primary, others)``.  *others* keep their clustered type: the
        ones typed ``nap`` are naps, anything else is for the caller to
        discard.
    """
    primary = select_primary_episode(episodes, tz, config)
    primary_id = primary.episode_id if primary is not None else None
    others = [ep for ep in episodes if ep.episode_id != primary_id]
    return primary, others


def group_by_night(episodes: Iterable[SleepEpisode]) -> dict[str, list[SleepEpisode]]:
    """Bucket episodes by ``night_key_local_date``, nights in date order."""
    nights: dict[str, list[SleepEpisode]] = {}
    for ep in sorted(episodes, key=lambda e: e.episode_start):
        nights.setdefault(ep.night_key_local_date, []).append(ep)
    return dict(sorted(nights.items()))
