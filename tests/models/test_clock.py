"""Unit tests for VirtualClock."""

from datetime import datetime, timedelta, timezone

import pytest

from models.clock import ClockMode, VirtualClock
from tests.fixtures.core.times import START_TIME, create_clock


class TestVirtualClockInstantiation:
    def test_starting_at_uses_given_time(self):
        clock = VirtualClock.starting_at(START_TIME)

        assert clock.now() == START_TIME
        assert clock.time_scale == 1.0
        assert clock.is_paused is False
        assert clock.auto_advance is False

    def test_starting_at_defaults_to_now(self):
        before = datetime.now(timezone.utc)
        clock = VirtualClock.starting_at()

        assert clock.now() >= before

    def test_naive_datetime_rejected(self):
        with pytest.raises(Exception):  # Pydantic raises ValidationError
            VirtualClock(current_time=datetime(2025, 1, 1, 12, 0))

    def test_non_positive_scale_rejected(self):
        with pytest.raises(Exception):
            VirtualClock(current_time=START_TIME, time_scale=0)


class TestVirtualClockAdvance:
    def test_advance_moves_forward(self):
        clock = create_clock()

        clock.advance(timedelta(seconds=90))

        assert clock.now() == START_TIME + timedelta(seconds=90)

    def test_advance_zero_is_allowed(self):
        clock = create_clock()

        clock.advance(timedelta(0))

        assert clock.now() == START_TIME

    def test_advance_negative_raises(self):
        clock = create_clock()

        with pytest.raises(ValueError, match="backwards"):
            clock.advance(timedelta(seconds=-1))

    def test_advance_while_paused_raises(self):
        clock = create_clock(is_paused=True)

        with pytest.raises(ValueError, match="paused"):
            clock.advance(timedelta(seconds=1))

    def test_move_to_later_time(self):
        clock = create_clock()
        target = START_TIME + timedelta(hours=1)

        clock.move_to(target)

        assert clock.now() == target

    def test_move_to_earlier_time_raises(self):
        clock = create_clock()

        with pytest.raises(ValueError, match="backwards"):
            clock.move_to(START_TIME - timedelta(seconds=1))

    def test_move_to_naive_time_raises(self):
        clock = create_clock()

        with pytest.raises(ValueError, match="timezone-aware"):
            clock.move_to(datetime(2030, 1, 1))


class TestVirtualClockModes:
    def test_manual_by_default(self):
        assert create_clock().mode == ClockMode.MANUAL

    def test_paused_wins_over_everything(self):
        clock = create_clock(is_paused=True, auto_advance=True, time_scale=10.0)

        assert clock.mode == ClockMode.PAUSED

    @pytest.mark.parametrize(
        "scale, expected",
        [
            (1.0, ClockMode.REAL_TIME),
            (50.0, ClockMode.FAST_FORWARD),
            (0.5, ClockMode.SLOW_MOTION),
        ],
    )
    def test_auto_advance_modes(self, scale, expected):
        clock = create_clock(auto_advance=True, time_scale=scale)

        assert clock.mode == expected

    def test_scaled_applies_time_scale(self):
        clock = create_clock(time_scale=2.5)

        assert clock.scaled(timedelta(seconds=4)) == timedelta(seconds=10)

    def test_scaled_is_zero_while_paused(self):
        clock = create_clock(is_paused=True, time_scale=2.0)

        assert clock.scaled(timedelta(seconds=4)) == timedelta(0)

    def test_set_scale_rejects_non_positive(self):
        clock = create_clock()

        with pytest.raises(ValueError):
            clock.set_scale(0.0)

    def test_pause_and_resume(self):
        clock = create_clock()

        clock.pause()
        assert clock.is_paused is True

        clock.resume()
        assert clock.is_paused is False

    def test_to_dict(self):
        data = create_clock().to_dict()

        assert data == {
            "current_time": START_TIME.isoformat(),
            "time_scale": 1.0,
            "is_paused": False,
            "auto_advance": False,
            "mode": "manual",
        }
