"""Date helpers for the weekly report window."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta


def last_weeks_monday(today: date | None = None) -> date:
    """Get the Monday one full week before the most recent Monday.

    Sunday counts as the 7th day of the week, so on a Sunday the "current
    week" still started six days earlier.
    """
    if today is None:
        today = date.today()
    this_monday = today - timedelta(days=today.isoweekday() - 1)
    return this_monday - timedelta(days=7)


def local_midnight(day: date) -> datetime:
    """Start of ``day`` in the local timezone, as an aware datetime."""
    return datetime.combine(day, time.min).astimezone()
