"""Tests for nightscore.engine.validation -- episode trust checks."""

from nightscore.engine.config import DEFAULT_CONFIG
from nightscore.engine.episodes import EpisodeFlag, EpisodeType
from nightscore.engine.validation import ValidationResult, validate_sleep_episode

from tests.conftest import make_episode


class TestValidateSleepEpisode:
    def test_good_episode(self):
        result = validate_sleep_episode(make_episode(in_bed_minutes=480, actual_sleep_minutes=450))
        assert result.valid
        assert result.reason is None
        assert bool(result)

    def test_data_inconsistent(self):
        result = validate_sleep_episode(make_episode(flags={EpisodeFlag.DATA_INCONSISTENT}))
        assert not result.valid
        assert "mismatch" in result.reason

    def test_inconsistent_regardless_of_quality(self):
        ep = make_episode(
            in_bed_minutes=490, actual_sleep_minutes=480, deep_minutes=96,
            rem_minutes=110, flags={EpisodeFlag.DATA_INCONSISTENT},
        )
        assert not validate_sleep_episode(ep)

    def test_outlier_duration(self):
        result = validate_sleep_episode(make_episode(flags={EpisodeFlag.OUTLIER_DURATION}))
        assert not result.valid
        assert "16 hours" in result.reason

    def test_inconsistent_checked_first(self):
        ep = make_episode(flags={EpisodeFlag.OUTLIER_DURATION, EpisodeFlag.DATA_INCONSISTENT})
        assert "mismatch" in validate_sleep_episode(ep).reason

    def test_short_primary(self):
        result = validate_sleep_episode(make_episode(in_bed_minutes=150, actual_sleep_minutes=140))
        assert not result.valid
        assert "180" in result.reason

    def test_short_nap_is_fine(self):
        nap = make_episode(in_bed_minutes=25, actual_sleep_minutes=25, episode_type=EpisodeType.NAP)
        assert validate_sleep_episode(nap).valid

    def test_custom_minimum(self):
        config = DEFAULT_CONFIG.replace(primary_min_minutes=120)
        ep = make_episode(in_bed_minutes=150, actual_sleep_minutes=140)
        assert validate_sleep_episode(ep, config).valid

    def test_result_is_falsey_when_invalid(self):
        assert not ValidationResult(False, "nope")
