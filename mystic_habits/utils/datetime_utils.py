# utils/datetime_utils.py

from datetime import date, datetime, timedelta
from typing import List, Optional

import pytz

DAY_FORMAT = "%Y-%m-%d"


def format_day(d: date) -> str:
    return d.strftime(DAY_FORMAT)


def parse_day(day_str: str) -> date:
    return datetime.strptime(day_str, DAY_FORMAT).date()


def is_valid_day(day_str) -> bool:
    if not isinstance(day_str, str):
        return False
    try:
        parse_day(day_str)
    except ValueError:
        return False
    return True


def shift_day(day_str: str, days: int) -> str:
    return format_day(parse_day(day_str) + timedelta(days=days))


def trailing_days(end_day: str, n: int) -> List[str]:
    """N дней, заканчивающихся end_day, в хронологическом порядке"""
    end = parse_day(end_day)
    return [format_day(end - timedelta(days=i)) for i in range(n - 1, -1, -1)]


def short_label(day_str: str) -> str:
    """'2025-06-13' -> '06-13'"""
    return day_str[5:] if day_str else ""


class Clock:
    """Источник текущего дня для движка и графиков"""

    def today(self) -> str:
        raise NotImplementedError

    def days_ago(self, n: int) -> str:
        return shift_day(self.today(), -n)

    def yesterday(self) -> str:
        return self.days_ago(1)

    def range_days(self, n: int) -> List[str]:
        return trailing_days(self.today(), n)


class SystemClock(Clock):
    """Локальная дата устройства или дата в заданном часовом поясе"""

    def __init__(self, timezone: Optional[str] = None):
        self.tz = pytz.timezone(timezone) if timezone else None

    def now(self) -> datetime:
        if self.tz is None:
            return datetime.now()
        return datetime.now(self.tz)

    def today(self) -> str:
        return format_day(self.now())


class FixedClock(Clock):
    """Часы с фиксированным днём (тесты, воспроизведение)"""

    def __init__(self, day: str):
        if not is_valid_day(day):
            raise ValueError(f"Invalid day identifier: {day!r}")
        self.day = day

    def today(self) -> str:
        return self.day

    def advance(self, days: int = 1) -> str:
        self.day = shift_day(self.day, days)
        return self.day

    def set(self, day: str) -> None:
        if not is_valid_day(day):
            raise ValueError(f"Invalid day identifier: {day!r}")
        self.day = day
