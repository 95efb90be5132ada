"""Date helpers shared across calculations and reporting layers."""

from __future__ import annotations

from datetime import date, datetime

import pandas as pd


def to_timestamp(value: pd.Timestamp | datetime | date | str) -> pd.Timestamp:
    """Convert an input value to a timezone-naive pandas Timestamp."""
    ts = pd.Timestamp(value)
    if ts.tz is not None:
        ts = ts.tz_convert(None)
    return ts


def today() -> pd.Timestamp:
    """Today's date as a normalized Timestamp."""
    return pd.Timestamp.today().normalize()


def resolve_as_of(as_of: pd.Timestamp | datetime | date | str | None) -> pd.Timestamp:
    """Return `as_of` as a normalized Timestamp, defaulting to today."""
    if as_of is None:
        return today()
    return to_timestamp(as_of).normalize()


def add_months(start: pd.Timestamp | datetime | date | str, months: int) -> pd.Timestamp:
    """Shift a date by whole calendar months, clamping to the last day of short months."""
    return to_timestamp(start) + pd.DateOffset(months=int(months))


def months_between(
    start: pd.Timestamp | datetime | date | str,
    end: pd.Timestamp | datetime | date | str,
) -> int:
    """Number of full calendar months from `start` to `end`.

    Partial months are truncated toward zero, so the result is negative when `end`
    precedes `start`. A month that ends on the last day of a short month counts as
    complete (Jan 31 -> Feb 28 is one month), which keeps `months_between(d, add_months(d, n)) == n`.
    """
    s = to_timestamp(start).normalize()
    e = to_timestamp(end).normalize()
    if e < s:
        return -months_between(e, s)
    months = 12 * (e.year - s.year) + (e.month - s.month)
    if e.day < s.day and not e.is_month_end:
        months -= 1
    return max(0, int(months))

