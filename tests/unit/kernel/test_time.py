"""Unit tests for kernel clocks."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from flcm_rollout.kernel.time import FrozenClock, SystemClock, utc_now
from flcm_rollout.testing import FakeClock


class TestSystemClock:
    def test_now_is_utc(self) -> None:
        assert SystemClock().now().tzinfo is UTC

    def test_timestamp_close_to_now(self) -> None:
        assert abs(SystemClock().timestamp() - utc_now().timestamp()) < 5

    def test_monotonic_never_goes_backwards(self) -> None:
        clock = SystemClock()
        first = clock.monotonic()
        assert clock.monotonic() >= first


class TestFrozenClock:
    def test_fixed(self) -> None:
        fixed = datetime(2026, 3, 1, tzinfo=UTC)
        clock = FrozenClock(fixed)
        assert clock.now() == fixed
        assert clock.timestamp() == fixed.timestamp()

    def test_advance(self) -> None:
        clock = FakeClock()
        before = clock.now()
        clock.advance(seconds=61)
        assert clock.now() - before == timedelta(seconds=61)

    def test_fake_clock_is_fresh_each_call(self) -> None:
        first = FakeClock()
        first.advance(days=1)
        assert FakeClock().now() == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def test_monotonic_tracks_advance(self) -> None:
        clock = FakeClock()
        start = clock.monotonic()
        clock.advance(milliseconds=250)
        assert clock.monotonic() - start == 0.25

    def test_fake_clock_custom_start(self) -> None:
        start = datetime(2026, 6, 1, tzinfo=UTC)
        assert FakeClock(start).now() == start

    def test_travel_to_keeps_monotonic(self) -> None:
        clock = FakeClock()
        clock.travel_to(datetime(2027, 1, 1, tzinfo=UTC))
        assert clock.now().year == 2027
        assert clock.monotonic() == 0.0
