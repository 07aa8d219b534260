"""Threshold configuration for the sleep engine.

Every clustering, selection and validation threshold lives on a single
frozen :class:`SleepConfig`.  Engine functions take it as an optional
``config`` keyword and fall back to :data:`DEFAULT_CONFIG`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class SleepConfig:
    """Immutable set of engine thresholds (minutes unless noted)."""

    # Episode clustering
    long_awake_split_minutes: int = 90

    # Primary episode detection
    primary_window_start_hour: int = 15  # 3pm local
    primary_window_end_hour: int = 12  # noon next day local
    fallback_window_start_hour: int = 12
    primary_min_minutes: int = 180
    primary_max_minutes: int = 960

    # Nap detection
    nap_min_minutes: int = 10
    nap_max_minutes: int = 180

    # Awakenings shorter than this are absorbed, not counted
    min_awakening_minutes: float = 2.0

    # Validation
    stage_sum_tolerance_minutes: int = 3

    # Episodes starting before this local hour belong to the previous night
    night_boundary_hour: int = 15

    # How many earlier nights feed the regularity component
    regularity_history_nights: int = 3

    def replace(self, **changes) -> SleepConfig:
        """Return a copy with the given fields changed."""
        return replace(self, **changes)


DEFAULT_CONFIG = SleepConfig()
