"""Expected distribution cadence from an instrument's income period.

Calendar arithmetic uses dateutil's relativedelta, so 1M from Jan 31 lands
on the last day of February rather than overflowing into March.
"""

from __future__ import annotations

from datetime import datetime

from dateutil.relativedelta import relativedelta

from rightsledger.core.types import Period, UtcDatetime


def _delta(period: Period, times: int = 1) -> relativedelta:
    n = period.multiplier * times
    match period.unit:
        case "D":
            return relativedelta(days=n)
        case "W":
            return relativedelta(weeks=n)
        case "M":
            return relativedelta(months=n)
        case "Y":
            return relativedelta(years=n)


def add_period(anchor: datetime, period: Period, times: int = 1) -> datetime:
    """anchor advanced by `times` periods."""
    return anchor + _delta(period, times)


def next_distribution_due(anchor: UtcDatetime, period: Period) -> UtcDatetime:
    """The next expected distribution after the anchor (last distribution or creation)."""
    return UtcDatetime(value=add_period(anchor.value, period))


def is_distribution_overdue(
    anchor: UtcDatetime, period: Period, now: UtcDatetime,
) -> bool:
    return now.value > next_distribution_due(anchor, period).value


def distribution_schedule(
    start: UtcDatetime, period: Period, count: int,
) -> tuple[UtcDatetime, ...]:
    """The first `count` expected distribution dates after start.

    Each date is computed from start (not chained) so month-end anchors
    do not drift: Jan 31 + 1M, Jan 31 + 2M, ...
    """
    return tuple(
        UtcDatetime(value=add_period(start.value, period, i))
        for i in range(1, count + 1)
    )
