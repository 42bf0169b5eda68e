"""Core calculation engine for the mortgage calculator.

This module implements the month-by-month amortization of a loan whose rate
changes over time, with an optional fixed monthly overpayment and rental
cash-flow tracking. ``generate_schedule`` produces the monthly records;
``calculate`` runs the full pipeline (rate resolution, schedule generation and
aggregation) and is the entry point used by the CLI and the web API.

The engine is a pure function of its inputs. It keeps no state between calls,
never reads the current date and never rounds intermediate balances; amounts
are only rounded when they are formatted for display.
"""

from __future__ import annotations

import logging
from decimal import Decimal, getcontext
from typing import Iterable, List, Optional, Tuple

from .data_models import (
    Calculation,
    LoanParameters,
    MonthlyRecord,
    RatePeriod,
    YearMode,
)
from .errors import InvalidConfiguration, NegativeAmortizationDetected, TermExceededWithoutPayoff
from .rates import RateResolver
from .summary import summarize
from .utils import add_months

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
# Anything left below half a cent after a payment is settled in that payment.
RESIDUAL_TOLERANCE = Decimal("0.005")


def annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the annuity (equal installment) monthly payment for a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if term <= 0:
        raise InvalidConfiguration("Term must be positive")
    if rate_per_month == 0:
        return principal / Decimal(term)
    factor = (1 + rate_per_month) ** term
    return principal * (rate_per_month * factor) / (factor - 1)


def regular_payment_for(params: LoanParameters, resolver: RateResolver) -> Decimal:
    """Return the contractual monthly payment.

    An explicit ``regular_payment`` wins; otherwise the annuity payment over
    the full term at the month-1 rate is used.
    """
    if params.regular_payment is not None:
        return params.regular_payment
    return annuity_payment(params.principal, resolver.rate_for_month(1), params.term_months)


def validate_parameters(params: LoanParameters, regular_payment: Optional[Decimal] = None) -> None:
    """Reject parameters that cannot produce a schedule.

    Raises
    ------
    InvalidConfiguration
        On a non-finite amount, a non-positive principal, term or payment,
        or on negative overpayment, rental income or service charge.
    """
    amounts = {
        "Principal": params.principal,
        "Regular payment": regular_payment,
        "First payment": params.first_payment,
        "Monthly overpayment": params.monthly_overpayment,
        "Rental income": params.rental_income,
        "Service charge": params.annual_service_charge,
    }
    for label, amount in amounts.items():
        if amount is not None and not amount.is_finite():
            raise InvalidConfiguration(f"{label} must be a finite number, got {amount}")
    if params.principal <= 0:
        raise InvalidConfiguration(f"Principal must be positive, got {params.principal}")
    if params.term_months <= 0:
        raise InvalidConfiguration(f"Term must be a positive number of months, got {params.term_months}")
    if regular_payment is not None and regular_payment <= 0:
        raise InvalidConfiguration(f"Regular payment must be positive, got {regular_payment}")
    if params.first_payment is not None and params.first_payment <= 0:
        raise InvalidConfiguration(f"First payment must be positive, got {params.first_payment}")
    if params.monthly_overpayment < 0:
        raise InvalidConfiguration("Monthly overpayment must not be negative")
    if params.rental_income < 0:
        raise InvalidConfiguration("Rental income must not be negative")
    if params.annual_service_charge < 0:
        raise InvalidConfiguration("Service charge must not be negative")


def generate_schedule(
    params: LoanParameters, resolver: RateResolver
) -> Tuple[List[MonthlyRecord], List[Warning]]:
    """Compute the month-by-month amortization schedule.

    Parameters
    ----------
    params: LoanParameters
        The loan inputs. Validation happens before the first month is built.
    resolver: RateResolver
        Supplies the monthly rate for each month index.

    Returns
    -------
    records: List[MonthlyRecord]
        One record per month until the balance reaches zero or the nominal
        term runs out, whichever comes first.
    warnings: List[Warning]
        Advisories for months with negative amortization and for a balance
        left outstanding at the end of the term. They are never raised.
    """
    regular_payment = regular_payment_for(params, resolver)
    validate_parameters(params, regular_payment)

    overpayment = params.monthly_overpayment
    service_charge = params.monthly_service_charge
    records: List[MonthlyRecord] = []
    advisories: List[Warning] = []

    balance = params.principal
    cumulative_interest = ZERO

    for month in range(1, params.term_months + 1):
        monthly_rate = resolver.rate_for_month(month)
        interest = balance * monthly_rate
        if month == 1 and params.first_payment is not None:
            scheduled = params.first_payment
        else:
            scheduled = regular_payment
        regular_principal = scheduled - interest

        negative = regular_principal < 0
        if negative:
            advisories.append(NegativeAmortizationDetected(month, -regular_principal))

        if balance - (regular_principal + overpayment) >= RESIDUAL_TOLERANCE:
            principal = regular_principal + overpayment
            payment = scheduled + overpayment
        else:
            # Final payment: settle the balance exactly, whatever the nominal amounts
            principal = balance
            payment = balance + interest

        balance = max(ZERO, balance - principal)
        cumulative_interest += interest
        regular_part = min(scheduled, payment)

        records.append(
            MonthlyRecord(
                month=month,
                date=add_months(params.start_date, month - 1),
                payment=payment,
                principal=principal,
                interest=interest,
                cumulative_interest=cumulative_interest,
                balance=balance,
                regular_payment=regular_part,
                overpayment=payment - regular_part,
                rate=resolver.annual_rate_for_month(month),
                cash_flow=params.rental_income - payment - service_charge,
                negative_amortization=negative,
            )
        )

        if balance == 0:
            break

    if advisories:
        logger.warning(
            "Negative amortization in %d month(s), first at month %d",
            len(advisories),
            advisories[0].month,
        )
    if balance > 0:
        advisories.append(TermExceededWithoutPayoff(params.term_months, balance))
        logger.info("Term of %d months ended with %.2f outstanding", params.term_months, balance)

    return records, advisories


def calculate(
    params: LoanParameters,
    periods: Iterable[RatePeriod],
    year_mode: YearMode = YearMode.LOAN_YEAR,
) -> Calculation:
    """Run rate resolution, schedule generation and aggregation.

    Raises
    ------
    InvalidConfiguration
        If the parameters or rate periods are invalid. Nothing is generated
        in that case.
    """
    resolver = RateResolver(params.start_date, periods)
    regular_payment = regular_payment_for(params, resolver)
    records, advisories = generate_schedule(params, resolver)
    yearly, totals = summarize(params, records, regular_payment, year_mode)
    logger.debug(
        "Calculated %d months for principal %s (paid off: %s)",
        len(records),
        params.principal,
        totals.remaining_balance == 0,
    )
    return Calculation(
        parameters=params,
        regular_payment=regular_payment,
        records=records,
        yearly=yearly,
        totals=totals,
        warnings=advisories,
    )
