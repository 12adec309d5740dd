"""
Clock session state machine.

A user's session for a calendar day is the newest work entry dated that day.
Its state is derived from which of the four check-in/check-out times are
filled, and each clock action is only valid from exactly one state.
"""
import logging
import threading
import weakref
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from .calculations import day_name_for, overtime_minutes, shift_duration, standard_minutes_for_day
from .db import Storage
from .errors import InvalidTransition

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "Office"


class ClockState(str, Enum):
    IDLE = "idle"
    CLOCKED_IN = "clocked-in"
    BETWEEN_SHIFTS = "between-shifts"
    CLOCKED_IN_2 = "clocked-in-2"
    DONE = "done"


class ClockAction(str, Enum):
    CLOCK_IN = "clock-in"
    CLOCK_OUT = "clock-out"
    CLOCK_IN_2 = "clock-in-2"
    CLOCK_OUT_2 = "clock-out-2"


# Serializes read-then-write changes per user within this process.
# Entries drop out once no caller holds the lock.
_locks = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


@contextmanager
def user_lock(user_id: str):
    with _locks_guard:
        lock = _locks.get(user_id)
        if lock is None:
            lock = threading.Lock()
            _locks[user_id] = lock
    with lock:
        yield


def derive_state(entry: Optional[dict]) -> ClockState:
    if not entry:
        return ClockState.IDLE
    if entry.get("check_out_2"):
        return ClockState.DONE
    if entry.get("check_in_2"):
        return ClockState.CLOCKED_IN_2
    if entry.get("check_out_1"):
        return ClockState.BETWEEN_SHIFTS
    if entry.get("check_in_1"):
        return ClockState.CLOCKED_IN
    return ClockState.IDLE


def _status(entry: Optional[dict]) -> dict:
    state = derive_state(entry)
    res = {"status": state.value}
    if not entry:
        return res

    res["entry_id"] = entry["id"]
    res["check_in_1"] = entry["check_in_1"]
    if state in (ClockState.BETWEEN_SHIFTS, ClockState.CLOCKED_IN_2, ClockState.DONE):
        res["check_out_1"] = entry["check_out_1"]
    if state in (ClockState.CLOCKED_IN_2, ClockState.DONE):
        res["check_in_2"] = entry["check_in_2"]
    if state == ClockState.DONE:
        res["check_out_2"] = entry["check_out_2"]
    return res


def _today_entry(storage: Storage, user_id: str, today: date) -> Optional[dict]:
    return storage.find_latest_entry(user_id, today, today + timedelta(days=1))


def get_clock_status(storage: Storage, user_id: str, today: Optional[date] = None) -> dict:
    today = today or date.today()
    return _status(_today_entry(storage, user_id, today))


def _standard_for(entry: dict, settings: dict) -> int:
    return standard_minutes_for_day(entry["day_name"], settings["workday_hours"], settings["works_saturdays"])


def apply_clock_action(
    storage: Storage,
    user_id: str,
    action: str,
    client_time: Optional[str] = None,
    location: Optional[str] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Validate `action` against today's state and persist its effect.
    The caller's wall-clock time wins over server time to avoid
    browser/server timezone skew.
    """
    today = today or date.today()
    resolved_time = client_time or (now or datetime.now()).strftime("%H:%M")

    try:
        action = ClockAction(action)
    except ValueError:
        raise InvalidTransition(f"Unknown clock action: {action}") from None

    with user_lock(user_id):
        entry = _today_entry(storage, user_id, today)
        state = derive_state(entry)
        settings = storage.get_or_create_settings(user_id)

        if action == ClockAction.CLOCK_IN:
            if state != ClockState.IDLE:
                raise _reject(user_id, action, state, "Already clocked in today")
            day_name = day_name_for(today)
            entry = storage.create_entry(user_id, {
                "date": today.isoformat(),
                "day_name": day_name,
                "check_in_1": resolved_time,
                "shift1_minutes": 0,
                "shift2_minutes": 0,
                "standard_minutes": standard_minutes_for_day(
                    day_name, settings["workday_hours"], settings["works_saturdays"]
                ),
                "overtime_minutes": 0,
                "location": location or DEFAULT_LOCATION,
            })

        elif action == ClockAction.CLOCK_OUT:
            if state != ClockState.CLOCKED_IN:
                raise _reject(user_id, action, state, "No open clock-in to close")
            shift1 = shift_duration(entry["check_in_1"], resolved_time)
            standard = _standard_for(entry, settings)
            entry = storage.update_entry(user_id, entry["id"], {
                "check_out_1": resolved_time,
                "shift1_minutes": shift1,
                "standard_minutes": standard,
                "overtime_minutes": overtime_minutes(
                    shift1, standard, entry["day_name"], settings["works_saturdays"]
                ),
            })

        elif action == ClockAction.CLOCK_IN_2:
            if state != ClockState.BETWEEN_SHIFTS:
                raise _reject(user_id, action, state, "Must finish shift 1 first")
            entry = storage.update_entry(user_id, entry["id"], {"check_in_2": resolved_time})

        elif action == ClockAction.CLOCK_OUT_2:
            if state != ClockState.CLOCKED_IN_2:
                raise _reject(user_id, action, state, "No open second clock-in to close")
            shift2 = shift_duration(entry["check_in_2"], resolved_time)
            total = entry["shift1_minutes"] + shift2
            standard = _standard_for(entry, settings)
            entry = storage.update_entry(user_id, entry["id"], {
                "check_out_2": resolved_time,
                "shift2_minutes": shift2,
                "standard_minutes": standard,
                "overtime_minutes": overtime_minutes(
                    total, standard, entry["day_name"], settings["works_saturdays"]
                ),
            })

    res = _status(entry)
    logger.info("Clock %s user=%s at %s -> %s", action.value, user_id, resolved_time, res["status"])
    return res


def _reject(user_id: str, action: ClockAction, state: ClockState, reason: str) -> InvalidTransition:
    if state == ClockState.DONE:
        reason = "Both shifts are already closed for today"
    logger.info("Rejected %s for user=%s in state %s", action.value, user_id, state.value)
    return InvalidTransition(reason)
