"""Tests for slot discretization and window validation (no database)."""
from datetime import date, datetime, timedelta, timezone

import pytest

from booking_api.services.errors import InvalidIntervalError
from booking_api.services.slot_grid import discretize, is_aligned, is_available, resolve_granularity
from helpers import MONDAY, TUESDAY, at


class TestDiscretize:
    def test_working_day_grid(self):
        """09:00-17:00 at 15 minutes yields 09:00 ... 16:45, nothing at 17:00."""
        slots = discretize(at(9), at(17), 15)

        assert list(slots) == [MONDAY]
        day = slots[MONDAY]
        assert len(day) == 32
        assert day[0] == at(9)
        assert day[-1] == at(16, 45)
        assert at(17) not in day
        assert all(b - a == timedelta(minutes=15) for a, b in zip(day, day[1:]))

    def test_same_input_same_output(self):
        assert discretize(at(9), at(12), 15) == discretize(at(9), at(12), 15)

    def test_partial_last_step_is_emitted(self):
        slots = discretize(at(9), at(9, 20), 15)
        assert slots[MONDAY] == [at(9), at(9, 15)]

    def test_slot_crossing_midnight_stays_on_start_day(self):
        slots = discretize(at(23, 30), at(0, 30, day=TUESDAY), 30)

        assert slots[MONDAY] == [at(23, 30)]
        assert slots[TUESDAY] == [at(0, 0, day=TUESDAY)]

    def test_naive_datetimes_are_utc(self):
        naive = discretize(datetime(2030, 1, 7, 9), datetime(2030, 1, 7, 10), 30)
        assert naive[MONDAY] == [at(9), at(9, 30)]

    def test_other_offsets_are_keyed_by_utc_day(self):
        plus_two = timezone(timedelta(hours=2))
        start = datetime(2030, 1, 8, 1, 0, tzinfo=plus_two)  # 2030-01-07 23:00 UTC
        slots = discretize(start, start + timedelta(minutes=30), 30)
        assert list(slots) == [MONDAY]

    @pytest.mark.parametrize("start,end", [(at(10), at(10)), (at(11), at(10))])
    def test_empty_or_reversed_interval_rejected(self, start, end):
        with pytest.raises(InvalidIntervalError):
            discretize(start, end, 15)

    @pytest.mark.parametrize("granularity", [0, -15])
    def test_non_positive_granularity_rejected(self, granularity):
        with pytest.raises(InvalidIntervalError):
            discretize(at(9), at(10), granularity)


class TestResolveGranularity:
    def test_configured_default(self):
        assert resolve_granularity() == 15
        assert resolve_granularity(None) == 15

    def test_explicit_step_kept(self):
        assert resolve_granularity(30) == 30

    @pytest.mark.parametrize("granularity", [0, -5])
    def test_non_positive_step_rejected(self, granularity):
        with pytest.raises(InvalidIntervalError):
            resolve_granularity(granularity)


class TestIsAligned:
    def test_on_grid(self):
        assert is_aligned(at(9, 45), 15)

    def test_off_grid(self):
        assert not is_aligned(at(9, 50), 15)
        assert not is_aligned(at(9, 45) + timedelta(seconds=1), 15)


class TestIsAvailable:
    def _availability(self):
        free = set(discretize(at(9), at(17), 15)[MONDAY])
        free -= set(discretize(at(12), at(13), 15)[MONDAY])
        return {MONDAY: frozenset(free)}

    def test_fully_free_window(self):
        assert is_available(at(10), at(10, 30), self._availability(), 15)

    def test_window_touching_a_block_is_rejected(self):
        """[11:45, 12:15) needs 12:00, which is blocked."""
        assert not is_available(at(11, 45), at(12, 15), self._availability(), 15)

    def test_window_right_after_block(self):
        assert is_available(at(13), at(13, 30), self._availability(), 15)

    def test_missing_day_is_unavailable(self):
        assert not is_available(at(10, day=TUESDAY), at(11, day=TUESDAY), self._availability(), 15)

    def test_window_spilling_past_working_hours(self):
        assert not is_available(at(16, 30), at(17, 15), self._availability(), 15)

    def test_empty_day_is_unavailable(self):
        assert not is_available(at(10), at(10, 15), {MONDAY: frozenset()}, 15)

    def test_unrelated_dates_do_not_matter(self):
        availability = dict(self._availability())
        availability[date(2030, 2, 1)] = frozenset()
        assert is_available(at(9), at(9, 15), availability, 15)
