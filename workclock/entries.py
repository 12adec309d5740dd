import logging
from datetime import date, timedelta
from typing import Optional

from .aggregation import month_bounds
from .calculations import day_name_for, overtime_minutes, shift_duration, standard_minutes_for_day
from .clock import user_lock
from .db import Storage
from .errors import InvalidTransition, NotFound, ValidationError

logger = logging.getLogger(__name__)


def shift_order_problem(values: dict):
    if values.get("check_out_1") and not values.get("check_in_1"):
        return "check_out_1 requires check_in_1"
    if (values.get("check_in_2") or values.get("check_out_2")) and not values.get("check_out_1"):
        return "Shift 2 can only be recorded once shift 1 is closed"
    if values.get("check_out_2") and not values.get("check_in_2"):
        return "check_out_2 requires check_in_2"
    return None


def _is_open(entry: dict) -> bool:
    return bool(entry.get("check_in_1")) and not entry.get("check_out_1")


def _check_single_open(storage: Storage, user_id: str, entry: dict, exclude_id: Optional[int] = None):
    """At most one open shift-1 entry per user per calendar day."""
    if not _is_open(entry):
        return
    day = date.fromisoformat(entry["date"])
    for other in storage.find_entries(user_id, day, day + timedelta(days=1)):
        if other["id"] != exclude_id and _is_open(other):
            raise InvalidTransition("An open shift already exists for this day")


def derive_fields(entry: dict, settings: dict) -> dict:
    """
    Recompute the stored minute fields of an entry from its times.
    standard_minutes always comes from the settings in effect now.
    """
    shift1 = shift_duration(entry.get("check_in_1", ""), entry.get("check_out_1", ""))
    shift2 = 0
    if entry.get("check_in_2") and entry.get("check_out_2"):
        shift2 = shift_duration(entry["check_in_2"], entry["check_out_2"])

    standard = standard_minutes_for_day(entry["day_name"], settings["workday_hours"], settings["works_saturdays"])
    return {
        **entry,
        "shift1_minutes": shift1,
        "shift2_minutes": shift2,
        "standard_minutes": standard,
        "overtime_minutes": overtime_minutes(shift1 + shift2, standard, entry["day_name"], settings["works_saturdays"]),
    }


def list_entries(storage: Storage, user_id: str, month: Optional[int] = None, year: Optional[int] = None) -> list[dict]:
    if month and year:
        start, end = month_bounds(month, year)
        return storage.find_entries(user_id, start, end)
    return storage.find_entries(user_id)


def create_entry(storage: Storage, user_id: str, fields: dict) -> dict:
    fields = dict(fields)
    entry_date = fields["date"]
    if isinstance(entry_date, date):
        fields["date"] = entry_date.isoformat()
    else:
        entry_date = date.fromisoformat(entry_date)
    if not fields.get("day_name"):
        fields["day_name"] = day_name_for(entry_date)

    with user_lock(user_id):
        _check_single_open(storage, user_id, fields)
        settings = storage.get_or_create_settings(user_id)
        entry = storage.create_entry(user_id, derive_fields(fields, settings))
    logger.info("Created entry %s for user=%s on %s", entry["id"], user_id, entry["date"])
    return entry


def update_entry(storage: Storage, user_id: str, entry_id: int, fields: dict) -> dict:
    current = storage.get_entry(user_id, entry_id)
    if not current:
        raise NotFound("Work entry not found")

    merged = {**current, **fields}
    # day_name stays as fixed at creation unless the caller sends one
    if isinstance(merged["date"], date):
        merged["date"] = merged["date"].isoformat()
    if not merged.get("day_name"):
        merged["day_name"] = current["day_name"]

    problem = shift_order_problem(merged)
    if problem:
        raise ValidationError(problem)

    with user_lock(user_id):
        _check_single_open(storage, user_id, merged, exclude_id=entry_id)
        settings = storage.get_or_create_settings(user_id)
        entry = storage.update_entry(user_id, entry_id, derive_fields(merged, settings))
    if entry is None:
        raise NotFound("Work entry not found")
    logger.info("Updated entry %s for user=%s", entry_id, user_id)
    return entry


def delete_entry(storage: Storage, user_id: str, entry_id: int) -> None:
    if not storage.delete_entry(user_id, entry_id):
        raise NotFound("Work entry not found")
    logger.info("Deleted entry %s for user=%s", entry_id, user_id)
