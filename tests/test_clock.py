"""
Unit tests for time sources
"""

from datetime import datetime, timezone

from apns_auth.clock import FixedClock, SystemClock, epoch_seconds


class TestEpochSeconds:
    def test_whole_seconds(self):
        assert epoch_seconds(datetime(1970, 1, 1, 0, 1, tzinfo=timezone.utc)) == 60

    def test_truncates_fraction(self):
        moment = datetime(2024, 1, 1, 0, 0, 0, 999999, tzinfo=timezone.utc)
        assert epoch_seconds(moment) == 1704067200

    def test_naive_is_utc(self):
        assert epoch_seconds(datetime(2024, 1, 1)) == 1704067200


class TestClocks:
    def test_system_clock_is_utc(self):
        now = SystemClock().now()

        assert now.tzinfo is not None
        assert now.utcoffset().total_seconds() == 0

    def test_fixed_clock_only_moves_when_told(self):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        clock = FixedClock(start)

        assert clock.now() == start
        assert clock.now() == start

        clock.advance(90)
        assert epoch_seconds(clock.now()) == epoch_seconds(start) + 90

    def test_fixed_clock_set(self):
        clock = FixedClock(datetime(2024, 1, 1))
        clock.set(datetime(2025, 6, 1))

        assert clock.now() == datetime(2025, 6, 1, tzinfo=timezone.utc)
