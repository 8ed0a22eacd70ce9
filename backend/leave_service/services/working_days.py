from __future__ import annotations

from datetime import date

_DAYS_PER_WEEK = 7
_WORKDAYS_PER_WEEK = 5


def count_working_days(start: date, end: date) -> int:
    """Count weekdays (Mon-Fri) from start to end inclusive.

    Returns 0 when start is after end; callers reject that ordering first.
    Counted arithmetically so any range within date.min..date.max is constant time.
    """
    if start > end:
        return 0

    span = (end - start).days + 1
    full_weeks, leftover = divmod(span, _DAYS_PER_WEEK)
    total = full_weeks * _WORKDAYS_PER_WEEK

    first_weekday = start.weekday()
    for offset in range(leftover):
        if (first_weekday + offset) % _DAYS_PER_WEEK < _WORKDAYS_PER_WEEK:
            total += 1
    return total
