"""Tests for nightscore.engine.primary -- primary episode selection."""

from nightscore.engine.episodes import EpisodeType, cluster_into_episodes
from nightscore.engine.primary import (
    classify_episodes,
    group_by_night,
    is_in_primary_window,
    select_primary_episode,
)
from nightscore.engine.segments import parse_raw_segments

from tests.conftest import make_episode, make_raw, ts


def _episodes(*raw):
    return cluster_into_episodes(parse_raw_segments(list(raw)))


class TestPrimaryWindow:
    def test_evening_start(self):
        ep = make_episode(episode_start=ts("2025-10-22T22:00:00"), in_bed_minutes=480)
        assert is_in_primary_window(ep)

    def test_starts_at_15(self):
        ep = make_episode(episode_start=ts("2025-10-22T15:00:00"), in_bed_minutes=200)
        assert is_in_primary_window(ep)

    def test_after_midnight_ending_before_noon(self):
        # Starts 01:00, ends 08:00 the same day: does not cross midnight
        ep = make_episode(episode_start=ts("2025-10-23T01:00:00"), in_bed_minutes=420)
        assert not is_in_primary_window(ep)

    def test_crosses_midnight_ending_at_noon(self):
        ep = make_episode(episode_start=ts("2025-10-22T14:00:00"), in_bed_minutes=22 * 60)
        assert is_in_primary_window(ep)

    def test_crosses_midnight_ending_after_noon(self):
        ep = make_episode(episode_start=ts("2025-10-22T14:00:00"), in_bed_minutes=22 * 60 + 1)
        assert not is_in_primary_window(ep)

    def test_local_zone(self):
        # 14:00Z is 22:00 in Perth
        ep = make_episode(episode_start=ts("2025-10-22T14:00:00"), in_bed_minutes=480)
        assert is_in_primary_window(ep, tz="Australia/Perth")


class TestSelectPrimaryEpisode:
    def test_selects_night_over_nap(self):
        episodes = _episodes(
            make_raw("2025-10-22T14:00:00", 30),
            make_raw("2025-10-22T22:00:00", 420),
        )
        primary = select_primary_episode(episodes)
        assert primary is not None
        assert primary.in_bed_minutes == 420
        assert primary.episode_type == EpisodeType.PRIMARY

    def test_too_short_returns_none(self):
        episodes = _episodes(make_raw("2025-10-22T22:00:00", 150))
        assert select_primary_episode(episodes) is None

    def test_empty_returns_none(self):
        assert select_primary_episode([]) is None

    def test_too_long_rejected(self):
        ep = make_episode(episode_start=ts("2025-10-22T18:00:00"), in_bed_minutes=1000)
        assert select_primary_episode([ep]) is None

    def test_longest_candidate_wins(self):
        short = make_episode(episode_start=ts("2025-10-22T19:00:00"), in_bed_minutes=200)
        long = make_episode(episode_start=ts("2025-10-22T23:00:00"), in_bed_minutes=400)
        assert select_primary_episode([short, long]).episode_id == long.episode_id

    def test_tie_keeps_first(self):
        a = make_episode(episode_start=ts("2025-10-22T16:00:00"), in_bed_minutes=240)
        b = make_episode(episode_start=ts("2025-10-22T21:00:00"), in_bed_minutes=240)
        assert select_primary_episode([a, b]).episode_id == a.episode_id

    def test_afternoon_fallback(self):
        ep = make_episode(
            episode_start=ts("2025-10-22T12:30:00"),
            in_bed_minutes=200,
            episode_type=EpisodeType.NAP,
        )
        primary = select_primary_episode([ep])
        assert primary is not None
        assert primary.episode_id == ep.episode_id
        assert primary.episode_type == EpisodeType.PRIMARY

    def test_fallback_needs_minimum(self):
        ep = make_episode(episode_start=ts("2025-10-22T12:30:00"), in_bed_minutes=170)
        assert select_primary_episode([ep]) is None

    def test_morning_episode_not_eligible(self):
        # Starts 05:00 and ends 10:00 the same day: neither window applies
        ep = make_episode(episode_start=ts("2025-10-23T05:00:00"), in_bed_minutes=300)
        assert select_primary_episode([ep]) is None

    def test_input_not_mutated(self):
        ep = make_episode(
            episode_start=ts("2025-10-22T22:00:00"),
            in_bed_minutes=480,
            episode_type=EpisodeType.NAP,
        )
        primary = select_primary_episode([ep])
        assert primary.episode_type == EpisodeType.PRIMARY
        assert ep.episode_type == EpisodeType.NAP


class TestClassifyEpisodes:
    def test_primary_and_others(self):
        episodes = _episodes(
            make_raw("2025-10-22T14:00:00", 30),
            make_raw("2025-10-22T22:00:00", 420),
            make_raw("2025-10-23T13:00:00", 25),
        )
        primary, others = classify_episodes(episodes)
        assert primary.in_bed_minutes == 420
        assert [e.in_bed_minutes for e in others] == [30, 25]
        assert all(e.episode_type == EpisodeType.NAP for e in others)

    def test_no_primary(self):
        episodes = _episodes(make_raw("2025-10-22T14:00:00", 30))
        primary, others = classify_episodes(episodes)
        assert primary is None
        assert len(others) == 1


class TestGroupByNight:
    def test_groups_in_date_order(self):
        episodes = _episodes(
            make_raw("2025-10-24T22:00:00", 420),
            make_raw("2025-10-22T22:00:00", 420),
            make_raw("2025-10-23T13:00:00", 25),  # before 15:00 -> night of the 22nd
        )
        nights = group_by_night(episodes)
        assert list(nights) == ["2025-10-22", "2025-10-24"]
        assert len(nights["2025-10-22"]) == 2
