"""
Date-range filtering of the synced movements.

A range covers whole local days: ``[start 00:00:00.000, end 23:59:59.999]``.
Either bound may be missing, which disables that side of the filter.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

START_OF_DAY = time(0, 0, 0, 0)
END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class DateRange:
    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_open(self):
        return self.start is None and self.end is None

    def bounds(self, tz):
        """Aware datetimes for the range, ``None`` for a missing side."""
        lower = datetime.combine(self.start, START_OF_DAY, tzinfo=tz) if self.start else None
        upper = datetime.combine(self.end, END_OF_DAY, tzinfo=tz) if self.end else None
        return lower, upper

    def to_dict(self):
        return {
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
        }


def current_week(today=None):
    """Monday..Sunday of the week containing ``today``."""
    today = today or date.today()
    monday = today - timedelta(days=today.weekday())
    return DateRange(start=monday, end=monday + timedelta(days=6))


def parse_date(text):
    """``yyyy-MM-dd`` -> date. Blank -> None. Anything else raises ValueError."""
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None
    return date.fromisoformat(text)


def local_datetime(value, tz):
    """Naive datetimes are taken as local time; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def filter_movements(movements, date_range, tz):
    """Subsequence of ``movements`` inside ``date_range``. Order is preserved."""
    if date_range is None or date_range.is_open:
        return list(movements)
    lower, upper = date_range.bounds(tz)
    result = []
    for m in movements:
        when = local_datetime(m.date, tz)
        if lower is not None and when < lower:
            continue
        if upper is not None and when > upper:
            continue
        result.append(m)
    return result
