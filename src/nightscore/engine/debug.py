"""Ingest diagnostics for raw sleep exports.

Used to chase "no sleep data" reports: what time range an export covers,
which stage labels it uses and how they decode.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Iterable, Mapping

from nightscore.engine.segments import RawSleepSegment, coerce_raw, parse_timestamp
from nightscore.engine.stages import stage_mapping_stats

log = logging.getLogger(__name__)


def ingest_summary(
    raw_segments: Iterable[RawSleepSegment | Mapping[str, Any]],
    tz: str = "UTC",
) -> dict[str, Any]:
    """Describe a batch of raw samples.

    Returns a dict with ``sample_count``, ``min_start``/``max_end``
    (ISO), ``span_hours``, ``unique_stages``, ``stage_counts``,
    ``first_sample``/``last_sample`` and the decoded ``stage_mapping``.
    """
    samples = [coerce_raw(s) for s in raw_segments]
    summary: dict[str, Any] = {"sample_count": len(samples), "timezone": tz}
    if not samples:
        return summary

    starts = [parse_timestamp(s.start_date, tz) for s in samples]
    ends = [parse_timestamp(s.end_date, tz) for s in samples]
    min_start = min(starts)
    max_end = max(ends)

    labels = ["" if s.value is None else str(s.value) for s in samples]
    mapping = stage_mapping_stats(s.value for s in samples)

    summary.update({
        "min_start": min_start.isoformat(),
        "max_end": max_end.isoformat(),
        "span_hours": round((max_end - min_start).total_seconds() / 3600.0, 1),
        "unique_stages": list(dict.fromkeys(labels)),
        "stage_counts": dict(Counter(labels)),
        "first_sample": {
            "start": starts[0].isoformat(),
            "end": ends[0].isoformat(),
            "value": labels[0],
        },
        "last_sample": {
            "start": starts[-1].isoformat(),
            "end": ends[-1].isoformat(),
            "value": labels[-1],
        },
        "stage_mapping": {
            "recognized": mapping.recognized,
            "unknown": mapping.unknown,
            "unknown_values": mapping.unknown_values,
            "distribution": mapping.stage_distribution,
        },
    })
    return summary


def log_ingest_summary(
    raw_segments: Iterable[RawSleepSegment | Mapping[str, Any]],
    tz: str = "UTC",
) -> None:
    """Write :func:`ingest_summary` to the debug log."""
    if not log.isEnabledFor(logging.DEBUG):
        return
    summary = ingest_summary(raw_segments, tz)
    log.debug("=== SLEEP INGEST SUMMARY ===")
    for key, value in summary.items():
        log.debug("%s: %s", key, value)
