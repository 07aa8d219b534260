"""Sleep stage label decoding.

Health platforms report stages as free text (``asleep_core``,
``HKCategoryValueSleepAnalysisAsleepREM``, ``Deep``, ...).  Labels are
decoded by an ordered list of substring rules; the first rule that matches
wins and anything unmatched falls back to light sleep.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable

log = logging.getLogger(__name__)


class SleepStage(str, Enum):
    """Canonical four-state sleep stage."""

    AWAKE = "awake"
    LIGHT = "light"
    DEEP = "deep"
    REM = "rem"


def _contains(*tokens: str) -> Callable[[str], bool]:
    return lambda label: any(tok in label for tok in tokens)


# Evaluated in order against the lower-cased label.  "awake" must precede
# "rem" and "deep" so that e.g. "awake_rem_transition" decodes as awake.
STAGE_RULES: tuple[tuple[Callable[[str], bool], SleepStage], ...] = (
    (_contains("awake"), SleepStage.AWAKE),
    (_contains("rem"), SleepStage.REM),
    (_contains("deep"), SleepStage.DEEP),
    (_contains("core", "light", "asleep", "sleeping"), SleepStage.LIGHT),
)

FALLBACK_STAGE = SleepStage.LIGHT


def match_stage(value: Any) -> tuple[SleepStage, bool]:
    """Decode a raw label.

    Returns:
        ``(stage, recognized)`` where *recognized* is False when no rule
        matched and the fallback stage was used.
    """
    label = "" if value is None else str(value).strip().lower()
    for predicate, stage in STAGE_RULES:
        if predicate(label):
            return stage, True
    return FALLBACK_STAGE, False


def normalize_stage(value: Any) -> SleepStage:
    """Map a free-text label to a :class:`SleepStage`.  Never raises."""
    stage, recognized = match_stage(value)
    if not recognized:
        log.debug("Unknown sleep stage value %r, defaulting to %s", value, stage.value)
    return stage


@dataclass
class StageMappingStats:
    """How a batch of raw labels decoded."""

    total: int = 0
    recognized: int = 0
    unknown: int = 0
    unknown_values: list[str] = field(default_factory=list)
    stage_distribution: dict[str, int] = field(default_factory=dict)


def stage_mapping_stats(values: Iterable[Any]) -> StageMappingStats:
    """Summarize recognized vs. fallback labels for debugging an import."""
    stats = StageMappingStats()
    distribution: Counter[str] = Counter()
    for value in values:
        stage, recognized = match_stage(value)
        stats.total += 1
        distribution[stage.value] += 1
        if recognized:
            stats.recognized += 1
        else:
            stats.unknown += 1
            original = "" if value is None else str(value)
            if original not in stats.unknown_values:
                stats.unknown_values.append(original)
    stats.stage_distribution = dict(distribution)
    return stats
