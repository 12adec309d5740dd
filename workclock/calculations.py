import re
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

# Config
MONTHLY_WORK_HOURS = 176
SATURDAY_STANDARD_MINUTES = 4 * 60

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
SUNDAY_NAMES = {"sunday", "domingo"}
SATURDAY_NAMES = {"saturday", "sábado", "sabado"}


_LEADING_DIGITS = re.compile(r"\s*(\d+)", re.ASCII)


def _to_int(part: str) -> int:
    # Leading ASCII digits only: "05am" -> 5, "+9" or "x" -> 0
    m = _LEADING_DIGITS.match(part)
    return int(m.group(1)) if m else 0


def time_to_minutes(value: str) -> int:
    """
    "9:05" -> 545. Empty, missing colon or unparseable -> 0.
    Never raises: a bad hour or minute part just counts as 0.
    """
    if not value or not isinstance(value, str):
        return 0
    parts = value.split(":")
    if len(parts) < 2:
        return 0
    return _to_int(parts[0]) * 60 + _to_int(parts[1])


def minutes_to_display(total_minutes: int) -> str:
    if total_minutes <= 0:
        return "0:00"
    total_minutes = int(round(total_minutes))
    hours, mins = divmod(total_minutes, 60)
    return f"{hours}:{mins:02d}"


def shift_duration(start: str, end: str) -> int:
    # No overnight wrap: a shift crossing midnight is entered as two entries
    return max(0, time_to_minutes(end) - time_to_minutes(start))


def day_name_for(day: date) -> str:
    return DAY_NAMES[day.weekday()]


def _is_sunday(day_name: str) -> bool:
    return (day_name or "").strip().lower() in SUNDAY_NAMES


def _is_saturday(day_name: str) -> bool:
    return (day_name or "").strip().lower() in SATURDAY_NAMES


def overtime_minutes(total_worked: int, standard_minutes: int, day_name: str, works_saturdays: bool) -> int:
    """
    Sunday: everything is overtime.
    Saturday: everything is overtime unless the user works Saturdays,
              in which case the standard is a fixed 4h.
    Weekdays: anything above the standard.
    """
    if _is_sunday(day_name):
        return total_worked
    if _is_saturday(day_name):
        if not works_saturdays:
            return total_worked
        return max(0, total_worked - SATURDAY_STANDARD_MINUTES)
    return max(0, total_worked - standard_minutes)


def standard_minutes_for_day(day_name: str, workday_hours: int, works_saturdays: bool) -> int:
    if _is_sunday(day_name):
        return 0
    if _is_saturday(day_name):
        return SATURDAY_STANDARD_MINUTES if works_saturdays else 0
    return int(workday_hours * 60)


def _cents(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def estimate_salary(monthly_salary: float, workday_hours: int, total_standard_minutes: int, total_overtime_minutes: int) -> dict:
    """
    Hourly rate is salary / 176 regardless of workday_hours.
    Overtime is paid at the same rate as normal hours (no multiplier).
    """
    hourly_rate = monthly_salary / MONTHLY_WORK_HOURS
    daily_rate = hourly_rate * workday_hours

    overtime_hours = total_overtime_minutes / 60
    normal_hours = (total_standard_minutes / 60) - overtime_hours

    base_pay = normal_hours * hourly_rate
    overtime_pay = overtime_hours * hourly_rate

    return {
        "hourly_rate": _cents(hourly_rate),
        "daily_rate": _cents(daily_rate),
        "base_pay": _cents(base_pay),
        "overtime_pay": _cents(overtime_pay),
        "total": _cents(base_pay + overtime_pay),
    }
