"""Shared calendar arithmetic for contracts, warranties and leave."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable

from dateutil import parser
from dateutil.relativedelta import relativedelta

from servicedesk.services.errors import InvalidRangeError

DateLike = date | str

SATURDAY = 5
SUNDAY = 6


def as_date(value: DateLike) -> date:
    """Coerce a date, datetime or ISO string into a plain date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parser.isoparse(value).date()


def add_months_then_back_one_day(start: DateLike, months: int) -> date:
    """Return the last covered day of a period of ``months`` starting at ``start``.

    Month arithmetic clamps to the end of shorter months, so a contract
    starting on 31 January for one month ends on 27 February (or 28 in a
    leap year).
    """
    return as_date(start) + relativedelta(months=int(months)) - timedelta(days=1)


def is_weekend(day: DateLike) -> bool:
    return as_date(day).weekday() in (SATURDAY, SUNDAY)


def inclusive_day_count(
    start: DateLike,
    end: DateLike,
    exclude_weekends: bool,
    holidays: Iterable[DateLike] = (),
) -> int:
    """Count days from ``start`` to ``end`` inclusive.

    Saturdays and Sundays are skipped when ``exclude_weekends`` is set, and
    any date listed in ``holidays`` is never counted.
    """
    first = as_date(start)
    last = as_date(end)
    if last < first:
        raise InvalidRangeError(
            "End date must not be before start date.",
            {"end_date": "End date must be after start date"},
        )
    skipped = {as_date(holiday) for holiday in holidays}
    if not exclude_weekends and not skipped:
        return (last - first).days + 1
    count = 0
    current = first
    while current <= last:
        if not (exclude_weekends and is_weekend(current)) and current not in skipped:
            count += 1
        current += timedelta(days=1)
    return count


def days_between(start: DateLike, end: DateLike) -> int:
    """Signed day difference, positive when ``end`` is after ``start``."""
    return (as_date(end) - as_date(start)).days
