"""Data models for the mortgage calculator.

This module defines the dataclasses passed between the three calculation
stages: rate periods feed the rate resolver, loan parameters drive the
schedule generator, and monthly records are folded into yearly summaries and
lifetime totals. Everything here is plain value data; records are frozen so a
schedule handed to a table or chart cannot be altered after it was produced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Union


@dataclass(frozen=True)
class Duration:
    """A rate period length consumed sequentially from the loan start."""

    years: int = 0
    months: int = 0

    @property
    def total_months(self) -> int:
        return self.years * 12 + self.months


@dataclass(frozen=True)
class DateRange:
    """A rate period bounded by explicit calendar dates (both inclusive)."""

    start: date
    end: date


@dataclass(frozen=True)
class RatePeriod:
    """An annual interest rate and the span of months it applies to.

    Attributes
    ----------
    rate: Decimal
        Annual nominal rate in percent, e.g. ``Decimal("4.97")``.
    span: Duration | DateRange
        Either a month count consumed in list order or an explicit date range.
    """

    rate: Decimal
    span: Union[Duration, DateRange]

    @property
    def monthly_rate(self) -> Decimal:
        return self.rate / Decimal(100) / Decimal(12)


@dataclass(frozen=True)
class LoanParameters:
    """All inputs of a single calculation run.

    ``regular_payment`` may be left as ``None``, in which case the engine
    derives the annuity payment from the principal, the term and the rate in
    effect for the first month. ``first_payment`` covers one-off fees added to
    the first instalment.
    """

    principal: Decimal
    term_months: int
    start_date: date  # date of the first payment
    regular_payment: Optional[Decimal] = None
    first_payment: Optional[Decimal] = None
    monthly_overpayment: Decimal = Decimal("0")
    rental_income: Decimal = Decimal("0")  # per month
    annual_service_charge: Decimal = Decimal("0")

    @property
    def monthly_service_charge(self) -> Decimal:
        return self.annual_service_charge / Decimal(12)


@dataclass(frozen=True)
class MonthlyRecord:
    """One month of the amortization schedule.

    ``payment`` is the total cash paid to the lender in the month and always
    equals ``principal + interest``. It splits into ``regular_payment`` (the
    contractual instalment) and ``overpayment``. ``rate`` is the effective
    annual rate in percent. ``negative_amortization`` is set when the
    instalment did not cover the interest accrued that month.
    """

    month: int
    date: date
    payment: Decimal
    principal: Decimal
    interest: Decimal
    cumulative_interest: Decimal
    balance: Decimal
    regular_payment: Decimal
    overpayment: Decimal
    rate: Decimal
    cash_flow: Decimal
    negative_amortization: bool = False


class YearMode(str, Enum):
    """How monthly records are grouped into years."""

    LOAN_YEAR = "loan_year"  # 12-month blocks counted from the first payment
    CALENDAR_YEAR = "calendar_year"


@dataclass(frozen=True)
class YearlySummary:
    year: int
    months: int
    total_principal: Decimal
    total_interest: Decimal
    total_payment: Decimal
    total_overpayment: Decimal
    total_cash_flow: Decimal
    end_balance: Decimal
    average_rate: Decimal


@dataclass(frozen=True)
class LifetimeTotals:
    """Totals over the whole generated schedule compared with the baseline.

    The baseline is the schedule without overpayments running for the full
    nominal term: the first payment followed by ``term_months - 1`` regular
    payments.
    """

    principal: Decimal
    total_payments: Decimal
    total_interest: Decimal
    total_overpayment: Decimal
    baseline_total_payment: Decimal
    baseline_interest: Decimal
    interest_saved: Decimal
    payoff_months: int
    payoff_years: Decimal
    months_saved: int
    remaining_balance: Decimal
    total_rental_income: Decimal
    total_service_charges: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class RentalOutlook:
    """Monthly position of a let property at the regular payment."""

    monthly_cash_flow: Decimal
    annual_cash_flow: Decimal
    recommended_overpayment: Decimal


@dataclass(frozen=True)
class OverpaymentAllowance:
    """Yearly overpayment measured against the lender's penalty-free limit.

    Attributes
    ----------
    annual_overpayment: Decimal
        Twelve months of the fixed monthly overpayment.
    annual_percent: Decimal
        ``annual_overpayment`` as a percentage of the original principal.
    limit_percent: Decimal
        Share of the principal that may be overpaid each year.
    """

    annual_overpayment: Decimal
    annual_percent: Decimal
    limit_percent: Decimal

    @property
    def exceeds_limit(self) -> bool:
        return self.annual_percent > self.limit_percent


@dataclass(frozen=True)
class Calculation:
    """Output of one full engine run."""

    parameters: LoanParameters
    regular_payment: Decimal
    records: List[MonthlyRecord]
    yearly: List[YearlySummary]
    totals: LifetimeTotals
    warnings: List[Warning] = field(default_factory=list)


@dataclass(frozen=True)
class ActualPayment:
    """A payment the borrower really made, entered for tracking only."""

    date: date
    amount: Decimal
    is_overpayment: bool = False
    note: Optional[str] = None


class PaymentStatus(str, Enum):
    ON_TRACK = "onTrack"
    AHEAD = "ahead"
    BEHIND = "behind"


@dataclass(frozen=True)
class PaymentStats:
    total_paid: Decimal
    total_overpayments: Decimal
    total_regular_payments: Decimal
    payments_made: int


@dataclass(frozen=True)
class Expense:
    """A property running cost such as maintenance or insurance."""

    date: date
    amount: Decimal
    category: str = "Maintenance"
    description: Optional[str] = None
