"""Episode validation.

Scoring never refuses an episode.  This is the explicit check a caller
runs to decide whether a score computed from the episode can be trusted.
"""

from __future__ import annotations

from dataclasses import dataclass

from nightscore.engine.config import DEFAULT_CONFIG, SleepConfig
from nightscore.engine.episodes import EpisodeFlag, EpisodeType, SleepEpisode


@dataclass
class ValidationResult:
    valid: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.valid


def validate_sleep_episode(
    episode: SleepEpisode,
    config: SleepConfig = DEFAULT_CONFIG,
) -> ValidationResult:
    """Check an episode's data-quality flags and primary minimum length."""
    if episode.has_flag(EpisodeFlag.DATA_INCONSISTENT):
        return ValidationResult(False, "Stage minutes sum mismatch")

    if episode.has_flag(EpisodeFlag.OUTLIER_DURATION):
        hours = config.primary_max_minutes / 60
        return ValidationResult(False, f"Duration exceeds {hours:g} hours")

    if (
        episode.episode_type == EpisodeType.PRIMARY
        and episode.in_bed_minutes < config.primary_min_minutes
    ):
        return ValidationResult(
            False,
            f"Primary episode too short (< {config.primary_min_minutes} minutes)",
        )

    return ValidationResult(True)
