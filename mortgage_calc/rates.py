"""Resolution of piecewise interest-rate periods.

A loan can move through several rates: a two-year fix followed by a reversion
rate, for instance. Periods are given either as a duration (years and months,
consumed one after another from the first payment) or as an explicit
inclusive date range. ``RateResolver`` turns such a list into a lookup from
the 1-based month index to the monthly decimal rate.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, List

from .data_models import DateRange, Duration, RatePeriod
from .errors import InvalidConfiguration
from .utils import add_months


def _validate_periods(periods: List[RatePeriod]) -> None:
    if not periods:
        raise InvalidConfiguration("At least one interest rate period is required")
    ranges: List[DateRange] = []
    for index, period in enumerate(periods, start=1):
        if not period.rate.is_finite():
            raise InvalidConfiguration(f"Rate period {index}: rate must be a finite number")
        if period.rate < 0:
            raise InvalidConfiguration(f"Rate period {index}: rate must not be negative")
        span = period.span
        if isinstance(span, Duration):
            if span.years < 0 or span.months < 0:
                raise InvalidConfiguration(f"Rate period {index}: duration must not be negative")
            if span.total_months == 0:
                raise InvalidConfiguration(f"Rate period {index}: duration must be at least one month")
        elif isinstance(span, DateRange):
            if span.end < span.start:
                raise InvalidConfiguration(f"Rate period {index}: end date precedes start date")
            ranges.append(span)
        else:
            raise InvalidConfiguration(f"Rate period {index}: unsupported span {span!r}")

    ranges.sort(key=lambda r: r.start)
    for previous, current in zip(ranges, ranges[1:]):
        if current.start <= previous.end:
            raise InvalidConfiguration(
                f"Rate periods {previous.start}..{previous.end} and {current.start}..{current.end} overlap"
            )


class RateResolver:
    """Look up the interest rate in effect for a given month of the loan."""

    def __init__(self, start_date: date, periods: Iterable[RatePeriod]) -> None:
        self._start_date = start_date
        self._periods = list(periods)
        _validate_periods(self._periods)

    @property
    def periods(self) -> List[RatePeriod]:
        return list(self._periods)

    def period_for_month(self, month: int) -> RatePeriod:
        """Return the period covering ``month`` (1-based).

        Duration periods claim months cumulatively in list order; date-range
        periods claim the months whose payment date falls inside the range.
        Months that no period covers use the last period.
        """
        if month < 1:
            raise InvalidConfiguration(f"Month index must be 1 or greater, got {month}")
        payment_date = add_months(self._start_date, month - 1)
        consumed = 0
        for period in self._periods:
            span = period.span
            if isinstance(span, Duration):
                consumed += span.total_months
                if month <= consumed:
                    return period
            elif span.start <= payment_date <= span.end:
                return period
        return self._periods[-1]

    def rate_for_month(self, month: int) -> Decimal:
        """Monthly decimal rate, e.g. 0.0041416... for 4.97 % a year."""
        return self.period_for_month(month).monthly_rate

    def annual_rate_for_month(self, month: int) -> Decimal:
        """Annual percentage rate for display."""
        return self.period_for_month(month).rate
