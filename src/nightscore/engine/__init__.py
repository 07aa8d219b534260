"""Sleep engine: episode reconstruction and scoring from wearable stage data.

Modules:
    config     -- Immutable threshold configuration
    localtime  -- Time zone helpers for local nights
    stages     -- Free-text stage label decoding
    segments   -- Raw sample parsing
    episodes   -- Gap-based episode clustering
    primary    -- Primary episode selection
    scoring    -- Nightly (0-100) and nap (0-10) scoring
    validation -- Episode trust checks
    pipeline   -- End-to-end night / multi-night scoring
    summary    -- Persistable session record
    debug      -- Ingest diagnostics
"""

from nightscore.engine.config import SleepConfig, DEFAULT_CONFIG
from nightscore.engine.stages import (
    SleepStage,
    normalize_stage,
    match_stage,
    stage_mapping_stats,
    StageMappingStats,
)
from nightscore.engine.segments import (
    RawSleepSegment,
    ProcessedSegment,
    parse_raw_segments,
    parse_timestamp,
)
from nightscore.engine.episodes import (
    SleepEpisode,
    EpisodeType,
    EpisodeFlag,
    cluster_into_episodes,
    build_episode,
)
from nightscore.engine.primary import (
    select_primary_episode,
    classify_episodes,
    group_by_night,
)
from nightscore.engine.scoring import (
    calculate_sleep_score,
    calculate_nap_score,
    SleepScoreResult,
    NapScoreResult,
)
from nightscore.engine.validation import validate_sleep_episode, ValidationResult
from nightscore.engine.pipeline import score_night, score_nights, NightReport
from nightscore.engine.summary import build_session_record, SleepSessionRecord

__all__ = [
    # config
    "SleepConfig",
    "DEFAULT_CONFIG",
    # stages
    "SleepStage",
    "normalize_stage",
    "match_stage",
    "stage_mapping_stats",
    "StageMappingStats",
    # segments
    "RawSleepSegment",
    "ProcessedSegment",
    "parse_raw_segments",
    "parse_timestamp",
    # episodes
    "SleepEpisode",
    "EpisodeType",
    "EpisodeFlag",
    "cluster_into_episodes",
    "build_episode",
    # primary
    "select_primary_episode",
    "classify_episodes",
    "group_by_night",
    # scoring
    "calculate_sleep_score",
    "calculate_nap_score",
    "SleepScoreResult",
    "NapScoreResult",
    # validation
    "validate_sleep_episode",
    "ValidationResult",
    # pipeline
    "score_night",
    "score_nights",
    "NightReport",
    # summary
    "build_session_record",
    "SleepSessionRecord",
]
