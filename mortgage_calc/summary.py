"""Aggregation of monthly records into yearly and lifetime figures."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Sequence, Tuple

from .data_models import (
    LifetimeTotals,
    LoanParameters,
    MonthlyRecord,
    OverpaymentAllowance,
    RentalOutlook,
    YearlySummary,
    YearMode,
)

ZERO = Decimal("0")
ONE_PLACE = Decimal("0.1")
# Most lenders allow 20% of the loan to be overpaid each year without penalty
DEFAULT_OVERPAYMENT_LIMIT = Decimal("20")


def _year_key(index: int, record: MonthlyRecord, mode: YearMode) -> int:
    if mode == YearMode.CALENDAR_YEAR:
        return record.date.year
    return index // 12 + 1


def yearly_summaries(
    records: Sequence[MonthlyRecord], mode: YearMode = YearMode.LOAN_YEAR
) -> List[YearlySummary]:
    """Group records into years.

    With ``YearMode.LOAN_YEAR`` year 1 is the first twelve payments, year 2
    the next twelve and so on. With ``YearMode.CALENDAR_YEAR`` records are
    grouped by the calendar year of their payment date, so the first and
    last buckets may hold fewer than twelve months.
    """
    buckets: Dict[int, List[MonthlyRecord]] = {}
    for index, record in enumerate(records):
        buckets.setdefault(_year_key(index, record, mode), []).append(record)

    summaries: List[YearlySummary] = []
    for year, months in buckets.items():
        summaries.append(
            YearlySummary(
                year=year,
                months=len(months),
                total_principal=sum((r.principal for r in months), ZERO),
                total_interest=sum((r.interest for r in months), ZERO),
                total_payment=sum((r.payment for r in months), ZERO),
                total_overpayment=sum((r.overpayment for r in months), ZERO),
                total_cash_flow=sum((r.cash_flow for r in months), ZERO),
                end_balance=months[-1].balance,
                average_rate=sum((r.rate for r in months), ZERO) / Decimal(len(months)),
            )
        )
    return summaries


def lifetime_totals(
    params: LoanParameters, records: Sequence[MonthlyRecord], regular_payment: Decimal
) -> LifetimeTotals:
    """Fold the schedule into lifetime totals.

    Interest saved is measured against paying the first payment and then the
    regular payment for every remaining month of the nominal term.
    """
    first_payment = params.first_payment if params.first_payment is not None else regular_payment
    baseline_total = first_payment + regular_payment * (params.term_months - 1)
    baseline_interest = baseline_total - params.principal

    total_payments = sum((r.payment for r in records), ZERO)
    total_interest = sum((r.interest for r in records), ZERO)
    total_overpayment = sum((r.overpayment for r in records), ZERO)
    payoff_months = len(records)
    remaining = records[-1].balance if records else params.principal

    rental_income = params.rental_income * payoff_months
    service_charges = params.monthly_service_charge * payoff_months

    return LifetimeTotals(
        principal=params.principal,
        total_payments=total_payments,
        total_interest=total_interest,
        total_overpayment=total_overpayment,
        baseline_total_payment=baseline_total,
        baseline_interest=baseline_interest,
        interest_saved=baseline_interest - total_interest,
        payoff_months=payoff_months,
        payoff_years=(Decimal(payoff_months) / Decimal(12)).quantize(ONE_PLACE, ROUND_HALF_UP),
        months_saved=params.term_months - payoff_months,
        remaining_balance=remaining,
        total_rental_income=rental_income,
        total_service_charges=service_charges,
        net_income=rental_income - total_payments - service_charges,
    )


def summarize(
    params: LoanParameters,
    records: Sequence[MonthlyRecord],
    regular_payment: Decimal,
    mode: YearMode = YearMode.LOAN_YEAR,
) -> Tuple[List[YearlySummary], LifetimeTotals]:
    return yearly_summaries(records, mode), lifetime_totals(params, records, regular_payment)


def rental_outlook(params: LoanParameters, regular_payment: Decimal) -> RentalOutlook:
    """Cash flow of the property at the regular payment, before overpayments.

    Any positive monthly cash flow is what could be put towards overpaying.
    """
    monthly = params.rental_income - regular_payment - params.monthly_service_charge
    return RentalOutlook(
        monthly_cash_flow=monthly,
        annual_cash_flow=monthly * 12,
        recommended_overpayment=max(ZERO, monthly),
    )


def overpayment_allowance(
    params: LoanParameters, limit_percent: Decimal = DEFAULT_OVERPAYMENT_LIMIT
) -> OverpaymentAllowance:
    """Annual overpayment as a percentage of the principal, against ``limit_percent``."""
    annual = params.monthly_overpayment * 12
    percent = annual / params.principal * 100 if params.principal else ZERO
    return OverpaymentAllowance(
        annual_overpayment=annual,
        annual_percent=percent,
        limit_percent=limit_percent,
    )


def principal_interest_split(
    params: LoanParameters, records: Sequence[MonthlyRecord]
) -> Dict[str, Decimal]:
    return {
        "principal": params.principal,
        "interest": sum((r.interest for r in records), ZERO),
    }


def sample_records(records: Sequence[MonthlyRecord], every: int = 3) -> List[MonthlyRecord]:
    """Return every ``every``-th record, starting with the first, for charts."""
    if every < 1:
        raise ValueError("Sampling step must be at least 1")
    return list(records[::every])
