"""Tests for nightscore.engine.localtime -- time zone helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from nightscore.engine.localtime import (
    is_on_local_day,
    local_date_string,
    local_day_to_bedtime_window,
    local_day_to_utc_range,
    local_hour,
    resolve_tz,
    to_local,
)

from tests.conftest import ts


class TestResolveTz:
    def test_utc_aliases(self):
        assert resolve_tz(None) is timezone.utc
        assert resolve_tz("UTC") is timezone.utc
        assert resolve_tz("utc") is timezone.utc

    def test_named_zone(self):
        zone = resolve_tz("Australia/Perth")
        assert datetime(2025, 10, 23, tzinfo=zone).utcoffset() == timedelta(hours=8)

    def test_tzinfo_passthrough(self):
        tz = timezone(timedelta(hours=-5))
        assert resolve_tz(tz) is tz


class TestLocalConversions:
    def test_local_hour(self):
        assert local_hour(ts("2025-10-22T16:00:00"), "Australia/Perth") == 0
        assert local_hour(ts("2025-10-22T16:00:00")) == 16

    def test_local_date_string(self):
        assert local_date_string(ts("2025-10-22T16:00:00"), "Australia/Perth") == "2025-10-23"

    def test_naive_untouched(self):
        naive = datetime(2025, 10, 22, 23, 0)
        assert to_local(naive, "Australia/Perth") is naive

    def test_is_on_local_day(self):
        assert is_on_local_day(ts("2025-10-22T16:00:00"), "2025-10-23", "Australia/Perth")
        assert not is_on_local_day(ts("2025-10-22T15:59:00"), "2025-10-23", "Australia/Perth")


class TestLocalDayRanges:
    def test_utc_range_perth(self):
        start, end = local_day_to_utc_range("2025-10-23", "Australia/Perth")
        assert start == ts("2025-10-22T16:00:00")
        assert end == ts("2025-10-23T15:59:59.999999")

    def test_utc_range_utc(self):
        start, end = local_day_to_utc_range("2025-10-23")
        assert start == ts("2025-10-23T00:00:00")
        assert end.date().isoformat() == "2025-10-23"

    def test_invalid_date(self):
        with pytest.raises(ValueError):
            local_day_to_utc_range("23/10/2025")

    def test_bedtime_window(self):
        start, end = local_day_to_bedtime_window("2025-10-23", "Australia/Perth")
        assert start == ts("2025-10-21T22:00:00")
        assert end == ts("2025-10-23T15:59:59.999999")
