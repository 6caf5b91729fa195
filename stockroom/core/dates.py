from calendar import monthrange
from datetime import date, datetime, time


def months_ago(moment: datetime, months: int) -> datetime:
    """Same wall-clock moment ``months`` calendar months earlier (day clamped)."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max)
