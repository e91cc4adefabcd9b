"""
Tests for datetime helpers.
"""
from datetime import datetime, timedelta, timezone

from dm_core.utils.datetime_utils import TICK, ensure_utc, strictly_after, to_iso_utc, utc_now


class TestEnsureUtc:

    def test_naive_assumed_utc(self):
        assert ensure_utc(datetime(2025, 12, 16, 11, 30)) == datetime(2025, 12, 16, 11, 30, tzinfo=timezone.utc)

    def test_other_zone_converted(self):
        plus_three = timezone(timedelta(hours=3))

        result = ensure_utc(datetime(2025, 12, 16, 14, 30, tzinfo=plus_three))

        assert result == datetime(2025, 12, 16, 11, 30, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc

    def test_none(self):
        assert ensure_utc(None) is None


class TestStrictlyAfter:

    def test_clock_ahead_of_previous(self):
        previous = datetime(2025, 1, 1, tzinfo=timezone.utc)
        now = previous + timedelta(seconds=1)

        assert strictly_after(now, previous) == now

    def test_same_reading_bumped_one_tick(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)

        assert strictly_after(now, now) == now + TICK

    def test_clock_behind_previous(self):
        previous = datetime(2025, 1, 1, 0, 0, 5, tzinfo=timezone.utc)

        assert strictly_after(previous - timedelta(seconds=3), previous) == previous + TICK

    def test_naive_previous_from_storage(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)

        assert strictly_after(now, datetime(2025, 1, 1)) == now + TICK

    def test_no_previous(self):
        now = utc_now()

        assert strictly_after(now, None) == now


def test_to_iso_utc():
    assert to_iso_utc(datetime(2025, 12, 16, 11, 30, tzinfo=timezone.utc)) == "2025-12-16T11:30:00Z"
    assert to_iso_utc(None) is None
