"""Load raw sleep samples from exported files.

Accepts ``.json`` exports (a list of samples, or an object holding one
under ``data``, ``samples`` or ``segments``) and ``.jsonl`` files with one
sample per line, as produced by Health Auto Export style tools.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from nightscore.engine.segments import RawSleepSegment, parse_timestamp

START_KEYS = ("startDate", "start_date", "start")
END_KEYS = ("endDate", "end_date", "end")
VALUE_KEYS = ("value", "stage")
CONTAINER_KEYS = ("data", "samples", "segments")


def _first(entry: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if entry.get(key) is not None:
            return entry[key]
    return None


def entry_to_segment(entry: dict) -> RawSleepSegment | None:
    """Convert one export entry, or None if it lacks usable timestamps."""
    if not isinstance(entry, dict):
        return None
    start = _first(entry, START_KEYS)
    end = _first(entry, END_KEYS)
    if start is None or end is None:
        return None
    try:
        parse_timestamp(start)
        parse_timestamp(end)
    except (TypeError, ValueError):
        return None
    return RawSleepSegment(
        start_date=start,
        end_date=end,
        value=_first(entry, VALUE_KEYS),
        source=entry.get("source"),
    )


def _read_entries(path: Path, verbose: bool) -> list:
    if path.suffix == ".jsonl":
        entries = []
        with open(path) as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    if verbose:
                        print(f"  [line {line_num}] Invalid JSON, skipping")
        return entries

    with open(path) as f:
        try:
            doc = json.load(f)
        except json.JSONDecodeError as e:
            print(f"Invalid JSON in {path.name}: {e}")
            return []

    if isinstance(doc, dict):
        for key in CONTAINER_KEYS:
            if isinstance(doc.get(key), list):
                return doc[key]
        return []
    return doc if isinstance(doc, list) else []


def load_raw_segments(path: str | Path, verbose: bool = False) -> list[RawSleepSegment]:
    """Read raw sleep samples from *path*.

    Args:
        path: A ``.json`` or ``.jsonl`` export.
        verbose: If True, report skipped lines and entries.

    Returns:
        Parsed samples in file order; an empty list if the file is missing.
    """
    path = Path(path)
    if not path.exists():
        print(f"File not found: {path}")
        return []

    segments: list[RawSleepSegment] = []
    skipped = 0
    for entry in _read_entries(path, verbose):
        seg = entry_to_segment(entry)
        if seg is None:
            skipped += 1
            continue
        segments.append(seg)

    if verbose:
        print(f"Loaded {len(segments)} samples from {path.name} ({skipped} skipped)")
    return segments


def load_midpoints(path: str | Path, tz: str = "UTC") -> list[datetime]:
    """Read previous sleep midpoints: a JSON list or one ISO timestamp per line."""
    path = Path(path)
    text = path.read_text().strip()
    if not text:
        return []
    if text.startswith("["):
        values = json.loads(text)
    else:
        values = [line.strip() for line in text.splitlines() if line.strip()]
    return [parse_timestamp(v, tz) for v in values]
