"""
Clock session state machine, exercised directly against a sqlite storage.
"""
import gc
from datetime import date, datetime

import pytest

from workclock import clock
from workclock.clock import ClockState, apply_clock_action, derive_state, get_clock_status
from workclock.errors import InvalidTransition

MONDAY = date(2026, 10, 19)
SATURDAY = date(2026, 10, 24)
SUNDAY = date(2026, 10, 25)
USER = "user-1"


def _act(storage, action, time, today=MONDAY, **kwargs):
    return apply_clock_action(storage, USER, action, client_time=time, today=today, **kwargs)


class TestDeriveState:
    def test_no_entry(self):
        assert derive_state(None) == ClockState.IDLE

    @pytest.mark.parametrize("times,state", [
        (("09:00", "", "", ""), ClockState.CLOCKED_IN),
        (("09:00", "13:00", "", ""), ClockState.BETWEEN_SHIFTS),
        (("09:00", "13:00", "14:00", ""), ClockState.CLOCKED_IN_2),
        (("09:00", "13:00", "14:00", "18:00"), ClockState.DONE),
    ])
    def test_from_times(self, times, state):
        entry = dict(zip(("check_in_1", "check_out_1", "check_in_2", "check_out_2"), times))
        assert derive_state(entry) == state


class TestTransitions:
    def test_idle_without_entries(self, storage):
        assert get_clock_status(storage, USER, today=MONDAY) == {"status": "idle"}

    def test_clock_in(self, storage):
        res = _act(storage, "clock-in", "09:00")
        assert res["status"] == "clocked-in"
        assert res["check_in_1"] == "09:00"

        entry = storage.get_entry(USER, res["entry_id"])
        assert entry["date"] == "2026-10-19"
        assert entry["day_name"] == "Monday"
        assert entry["location"] == "Office"
        assert entry["standard_minutes"] == 540
        assert entry["shift1_minutes"] == 0
        assert entry["overtime_minutes"] == 0

    def test_clock_in_custom_location(self, storage):
        res = _act(storage, "clock-in", "09:00", location="Home")
        assert storage.get_entry(USER, res["entry_id"])["location"] == "Home"

    def test_repeated_clock_in_rejected(self, storage):
        _act(storage, "clock-in", "09:00")
        with pytest.raises(InvalidTransition):
            _act(storage, "clock-in", "09:05")
        assert len(storage.find_entries(USER)) == 1

    def test_clock_out_without_clock_in(self, storage):
        with pytest.raises(InvalidTransition):
            _act(storage, "clock-out", "17:00")

    def test_clock_in_2_before_shift_1_done(self, storage):
        _act(storage, "clock-in", "09:00")
        with pytest.raises(InvalidTransition, match="shift 1"):
            _act(storage, "clock-in-2", "10:00")

    def test_clock_out_2_without_clock_in_2(self, storage):
        _act(storage, "clock-in", "09:00")
        _act(storage, "clock-out", "13:00")
        with pytest.raises(InvalidTransition):
            _act(storage, "clock-out-2", "18:00")

    def test_unknown_action(self, storage):
        with pytest.raises(InvalidTransition):
            _act(storage, "lunch-break", "12:00")

    def test_full_day_cycle(self, storage):
        storage.update_settings(USER, {"workday_hours": 8})

        assert _act(storage, "clock-in", "09:00")["status"] == "clocked-in"
        res = _act(storage, "clock-out", "17:00")
        assert res["status"] == "between-shifts"
        entry = storage.get_entry(USER, res["entry_id"])
        assert entry["shift1_minutes"] == 480
        assert entry["overtime_minutes"] == 0

        assert _act(storage, "clock-in-2", "18:00")["status"] == "clocked-in-2"
        res = _act(storage, "clock-out-2", "20:00")
        assert res == {
            "status": "done",
            "entry_id": res["entry_id"],
            "check_in_1": "09:00",
            "check_out_1": "17:00",
            "check_in_2": "18:00",
            "check_out_2": "20:00",
        }

        entry = storage.get_entry(USER, res["entry_id"])
        assert entry["shift1_minutes"] == 480
        assert entry["shift2_minutes"] == 120
        # recomputed over the combined 600 minutes
        assert entry["overtime_minutes"] == 120

    @pytest.mark.parametrize("action", ["clock-in", "clock-out", "clock-in-2", "clock-out-2"])
    def test_done_rejects_everything(self, storage, action):
        for act, t in (("clock-in", "09:00"), ("clock-out", "12:00"), ("clock-in-2", "13:00"), ("clock-out-2", "15:00")):
            _act(storage, act, t)
        with pytest.raises(InvalidTransition):
            _act(storage, action, "16:00")

    def test_sunday_all_overtime(self, storage):
        _act(storage, "clock-in", "10:00", today=SUNDAY)
        res = _act(storage, "clock-out", "13:00", today=SUNDAY)
        entry = storage.get_entry(USER, res["entry_id"])
        assert entry["standard_minutes"] == 0
        assert entry["overtime_minutes"] == 180

    def test_saturday_worked(self, storage):
        storage.update_settings(USER, {"works_saturdays": True})
        _act(storage, "clock-in", "08:00", today=SATURDAY)
        res = _act(storage, "clock-out", "13:00", today=SATURDAY)
        entry = storage.get_entry(USER, res["entry_id"])
        assert entry["standard_minutes"] == 240
        assert entry["overtime_minutes"] == 60

    def test_standard_minutes_follow_current_settings(self, storage):
        res = _act(storage, "clock-in", "09:00")
        assert storage.get_entry(USER, res["entry_id"])["standard_minutes"] == 540
        storage.update_settings(USER, {"workday_hours": 8})
        _act(storage, "clock-out", "18:00")
        entry = storage.get_entry(USER, res["entry_id"])
        assert entry["standard_minutes"] == 480
        assert entry["overtime_minutes"] == 60

    def test_server_time_fallback(self, storage):
        res = apply_clock_action(storage, USER, "clock-in", today=MONDAY, now=datetime(2026, 10, 19, 8, 7))
        assert res["check_in_1"] == "08:07"

    def test_sessions_are_per_day(self, storage):
        _act(storage, "clock-in", "09:00")
        assert get_clock_status(storage, USER, today=date(2026, 10, 20))["status"] == "idle"

    def test_sessions_are_per_user(self, storage):
        _act(storage, "clock-in", "09:00")
        assert get_clock_status(storage, "someone-else", today=MONDAY)["status"] == "idle"


class TestUserLock:
    def test_locks_released_once_idle(self, storage):
        for i in range(50):
            apply_clock_action(storage, f"user-{i}", "clock-in", client_time="09:00", today=MONDAY)
        gc.collect()
        assert len(clock._locks) == 0

    def test_lock_shared_while_held(self):
        with clock.user_lock(USER):
            first = clock._locks[USER]
            assert clock._locks.get(USER) is first
        gc.collect()
        assert USER not in clock._locks
