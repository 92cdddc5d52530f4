"""
Billing period arithmetic.

Derives proration inputs from the subscription store's period timestamps.
"""
import math
from datetime import datetime, timedelta, timezone

from .models import BillingCycle

ONE_DAY = timedelta(days=1)


def cycle_length_days(billing_cycle) -> int:
    return BillingCycle.parse(billing_cycle).length_days


def _as_utc(moment: datetime) -> datetime:
    # Naive timestamps from the store are UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _whole_days_between(start: datetime, end: datetime) -> int:
    """Days from start to end, rounded up; negative spans count as 0."""
    span = _as_utc(end) - _as_utc(start)
    if span <= timedelta(0):
        return 0
    return math.ceil(span / ONE_DAY)


def days_remaining_in_period(period_end: datetime, now: datetime, billing_cycle) -> int:
    """
    Whole days left in the current period, rounded up.

    The result is clamped to [0, cycle length] so it is always a valid
    proration input, even for a period end that lies in the past or a
    calendar month longer than the fixed 30-day cycle.
    """
    length = cycle_length_days(billing_cycle)
    return min(_whole_days_between(now, period_end), length)


def period_progress(period_start: datetime, period_end: datetime, now: datetime) -> tuple[int, int]:
    """
    Return (days_used, total_days) using the actual period length.

    Used for usage projections only; proration always uses the fixed
    cycle length.
    """
    total_days = _whole_days_between(period_start, period_end)
    days_remaining = min(_whole_days_between(now, period_end), total_days)
    return total_days - days_remaining, total_days
