import datetime
from typing import Iterable, Set


class CalendarTools:
    """Calendar bucketing helpers for day, week and month boundaries."""

    @staticmethod
    def day_bounds(
        day: datetime.date,
    ) -> tuple[datetime.datetime, datetime.datetime]:
        """Return the half-open ``[start, end)`` datetime range of ``day``."""
        start = datetime.datetime.combine(day, datetime.time.min)
        return start, start + datetime.timedelta(days=1)

    @staticmethod
    def week_start(day: datetime.date, first_weekday: int = 0) -> datetime.date:
        """Return the first day of the calendar week containing ``day``.

        ``first_weekday`` follows :mod:`calendar` numbering (0 is Monday).
        """
        if not 0 <= first_weekday <= 6:
            raise ValueError("first_weekday must be between 0 and 6")
        offset = (day.weekday() - first_weekday) % 7
        return day - datetime.timedelta(days=offset)

    @classmethod
    def week_bounds(
        cls, day: datetime.date, first_weekday: int = 0
    ) -> tuple[datetime.datetime, datetime.datetime]:
        start, _ = cls.day_bounds(cls.week_start(day, first_weekday))
        return start, start + datetime.timedelta(days=7)

    @staticmethod
    def month_bounds(
        day: datetime.date,
    ) -> tuple[datetime.datetime, datetime.datetime]:
        first = day.replace(day=1)
        if first.month == 12:
            following = first.replace(year=first.year + 1, month=1)
        else:
            following = first.replace(month=first.month + 1)
        return (
            datetime.datetime.combine(first, datetime.time.min),
            datetime.datetime.combine(following, datetime.time.min),
        )

    @staticmethod
    def trailing_run(days: Set[datetime.date], end: datetime.date) -> int:
        """Count consecutive days in ``days`` walking backward from ``end``."""
        count = 0
        cursor = end
        while cursor in days:
            count += 1
            cursor -= datetime.timedelta(days=1)
        return count

    @staticmethod
    def longest_run(days: Iterable[datetime.date]) -> int:
        """Return the longest run of consecutive calendar days."""
        best = 0
        current = 0
        previous: datetime.date | None = None
        for day in sorted(set(days), reverse=True):
            if previous is not None and (previous - day).days == 1:
                current += 1
            else:
                current = 1
            best = max(best, current)
            previous = day
        return best
