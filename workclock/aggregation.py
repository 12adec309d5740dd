from datetime import date, timedelta
from typing import Iterable, Optional

from .calculations import estimate_salary, minutes_to_display

UNSPECIFIED_LOCATION = "Unspecified"


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """[first day of month, first day of next month)"""
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def week_start(day: date) -> date:
    # Weeks run Monday-Sunday; Sunday belongs to the week that started 6 days earlier
    return day - timedelta(days=day.weekday())


def _as_date(value) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _worked(entry: dict) -> int:
    return (entry.get("shift1_minutes") or 0) + (entry.get("shift2_minutes") or 0)


def _has_work(entry: dict) -> bool:
    return (entry.get("shift1_minutes") or 0) > 0 or (entry.get("shift2_minutes") or 0) > 0


def group_by_week(entries: Iterable[dict]) -> list[dict]:
    weeks: dict[date, dict] = {}
    for e in entries:
        key = week_start(_as_date(e["date"]))
        bucket = weeks.setdefault(key, {"week_start": key.isoformat(), "worked_minutes": 0, "overtime_minutes": 0, "days": 0})
        bucket["worked_minutes"] += _worked(e)
        bucket["overtime_minutes"] += e.get("overtime_minutes") or 0
        if _has_work(e):
            bucket["days"] += 1
    return [weeks[k] for k in sorted(weeks)]


def group_by_location(entries: Iterable[dict], total_worked: int) -> list[dict]:
    minutes: dict[str, int] = {}
    for e in entries:
        label = e.get("location") or UNSPECIFIED_LOCATION
        minutes[label] = minutes.get(label, 0) + _worked(e)

    res = []
    for label, mins in sorted(minutes.items(), key=lambda kv: kv[1], reverse=True):
        if mins <= 0:
            continue
        # Truncated to hundredths so the buckets never add up past 100
        pct = (mins * 10000 // total_worked) / 100 if total_worked > 0 else 0.0
        res.append({"location": label, "minutes": mins, "display": minutes_to_display(mins), "percentage": pct})
    return res


def summarize_entries(entries: Iterable[dict], settings: Optional[dict] = None) -> dict:
    """
    Fold a month of stored entries into totals, weekly and per-location
    breakdowns, plus a salary estimate when a monthly salary is configured.
    Stored derived values are summed as-is, never recomputed.
    """
    entries = list(entries)
    settings = settings or {}

    total_worked = sum(_worked(e) for e in entries)
    total_overtime = sum(e.get("overtime_minutes") or 0 for e in entries)
    total_standard = sum(e.get("standard_minutes") or 0 for e in entries)
    days_worked = sum(1 for e in entries if _has_work(e))
    average = total_worked / days_worked if days_worked else 0

    salary = None
    monthly_salary = settings.get("monthly_salary") or 0
    if monthly_salary > 0:
        salary = estimate_salary(monthly_salary, settings.get("workday_hours", 0), total_standard, total_overtime)

    return {
        "total_worked": total_worked,
        "total_overtime": total_overtime,
        "total_standard": total_standard,
        "days_worked": days_worked,
        "average_per_day": average,
        "total_worked_display": minutes_to_display(total_worked),
        "total_overtime_display": minutes_to_display(total_overtime),
        "average_per_day_display": minutes_to_display(round(average)),
        "weeks": group_by_week(entries),
        "locations": group_by_location(entries, total_worked),
        "salary": salary,
        "currency": settings.get("currency") or "USD",
    }
