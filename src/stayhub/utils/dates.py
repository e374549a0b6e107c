"""Date helpers for half-open stay intervals.

A stay is the interval [check_in, check_out): the guest sleeps every night
from check_in up to, but not including, check_out.
"""

import datetime as dt


def nights_between(start: dt.date, end: dt.date) -> int:
    """Number of nights in [start, end). Negative when end precedes start."""
    return (end - start).days


def date_range(start: dt.date, end: dt.date) -> list[dt.date]:
    """Generate list of dates in range (end exclusive)."""
    return [start + dt.timedelta(days=i) for i in range((end - start).days)]


def intervals_overlap(
    a_start: dt.date,
    a_end: dt.date,
    b_start: dt.date,
    b_end: dt.date,
) -> bool:
    """Half-open overlap test.

    Back-to-back stays (one checks out the day the other checks in) do not
    overlap.
    """
    return a_start < b_end and b_start < a_end


def utc_now() -> dt.datetime:
    """Current time as an aware UTC datetime."""
    return dt.datetime.now(dt.UTC)
