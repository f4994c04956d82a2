"""
Candidate date planning for recurring booking jobs.

Days of week follow the 0=Sunday .. 6=Saturday convention used by the
booking UI. Amenity-side limits (per-day/per-week caps, disabled date
ranges) are not consulted here; the live availability check rejects those
dates.
"""

from datetime import date, timedelta
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from .models import BookingJob, RecurrenceFrequency, normalize_days

ALWAYS_HORIZON_DAYS = 7
WEEKLY_HORIZON_DAYS = 28


def day_of_week(day: date) -> int:
    """Sunday-based weekday number (Sunday=0)."""
    return (day.weekday() + 1) % 7


def is_day_allowed(day: date, allowed_days: Optional[Iterable] = None) -> bool:
    """True if no days are configured, else whether ``day`` falls on one of them."""
    allowed = normalize_days(allowed_days)
    if not allowed:
        return True
    return day_of_week(day) in allowed


def _upcoming(today: date, count: int) -> list[date]:
    return [today + timedelta(days=offset) for offset in range(1, count + 1)]


def next_candidate_dates(job: BookingJob, today: date) -> list[date]:
    """
    Dates to try booking next for a recurring job, earliest first.

    ALWAYS tries the next 7 days, DAILY tomorrow, WEEKLY every allowed day of
    the next 4 weeks, MONTHLY the same day next month. Dates on days the job
    does not allow are dropped.
    """
    frequency = job.recurrence_frequency

    if frequency is RecurrenceFrequency.ALWAYS:
        candidates = _upcoming(today, ALWAYS_HORIZON_DAYS)
    elif frequency is RecurrenceFrequency.DAILY:
        candidates = _upcoming(today, 1)
    elif frequency is RecurrenceFrequency.WEEKLY:
        # All occurrences, not just the nearest; the caller books the first open one
        candidates = _upcoming(today, WEEKLY_HORIZON_DAYS)
    elif frequency is RecurrenceFrequency.MONTHLY:
        candidates = [today + relativedelta(months=1)]
    else:
        return []

    return [day for day in candidates if is_day_allowed(day, job.preferred_days_of_week)]
