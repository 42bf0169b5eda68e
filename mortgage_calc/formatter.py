"""Output helpers for the mortgage calculator.

This module renders schedules, yearly summaries and lifetime totals as simple
text tables, and converts them to JSON-ready dictionaries for file exports and
the web API. Amounts are rounded to pennies here and nowhere else.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import click

from .data_models import (
    Calculation,
    LifetimeTotals,
    MonthlyRecord,
    OverpaymentAllowance,
    RentalOutlook,
    YearlySummary,
)
from .utils import money


def _num(value: Decimal) -> float:
    return float(money(value))


def record_to_dict(record: MonthlyRecord) -> Dict[str, Any]:
    return {
        "month": record.month,
        "date": record.date.isoformat(),
        "payment": _num(record.payment),
        "principal": _num(record.principal),
        "interest": _num(record.interest),
        "total_interest": _num(record.cumulative_interest),
        "balance": _num(record.balance),
        "regular_payment": _num(record.regular_payment),
        "overpayment": _num(record.overpayment),
        "rate": _num(record.rate),
        "cash_flow": _num(record.cash_flow),
        "negative_amortization": record.negative_amortization,
    }


def yearly_to_dict(summary: YearlySummary) -> Dict[str, Any]:
    return {
        "year": summary.year,
        "months": summary.months,
        "total_principal": _num(summary.total_principal),
        "total_interest": _num(summary.total_interest),
        "total_payment": _num(summary.total_payment),
        "total_overpayment": _num(summary.total_overpayment),
        "total_cash_flow": _num(summary.total_cash_flow),
        "end_balance": _num(summary.end_balance),
        "average_rate": _num(summary.average_rate),
    }


def totals_to_dict(totals: LifetimeTotals) -> Dict[str, Any]:
    return {
        "principal": _num(totals.principal),
        "total_payments": _num(totals.total_payments),
        "total_interest": _num(totals.total_interest),
        "total_overpayment": _num(totals.total_overpayment),
        "baseline_total_payment": _num(totals.baseline_total_payment),
        "baseline_interest": _num(totals.baseline_interest),
        "interest_saved": _num(totals.interest_saved),
        "payoff_months": totals.payoff_months,
        "payoff_years": float(totals.payoff_years),
        "months_saved": totals.months_saved,
        "remaining_balance": _num(totals.remaining_balance),
        "total_rental_income": _num(totals.total_rental_income),
        "total_service_charges": _num(totals.total_service_charges),
        "net_income": _num(totals.net_income),
    }


def outlook_to_dict(outlook: RentalOutlook) -> Dict[str, Any]:
    return {
        "monthly_cash_flow": _num(outlook.monthly_cash_flow),
        "annual_cash_flow": _num(outlook.annual_cash_flow),
        "recommended_overpayment": _num(outlook.recommended_overpayment),
    }


def allowance_to_dict(allowance: OverpaymentAllowance) -> Dict[str, Any]:
    return {
        "annual_overpayment": _num(allowance.annual_overpayment),
        "annual_percent": _num(allowance.annual_percent),
        "limit_percent": _num(allowance.limit_percent),
        "exceeds_limit": allowance.exceeds_limit,
    }


def calculation_to_dict(calc: Calculation, include_schedule: bool = True) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "regular_payment": _num(calc.regular_payment),
        "summary": totals_to_dict(calc.totals),
        "yearly": [yearly_to_dict(y) for y in calc.yearly],
        "warnings": [str(w) for w in calc.warnings],
    }
    if include_schedule:
        data["schedule"] = [record_to_dict(r) for r in calc.records]
    return data


def print_summary(
    totals: LifetimeTotals,
    regular_payment: Optional[Decimal] = None,
    allowance: Optional[OverpaymentAllowance] = None,
) -> None:
    """Print lifetime totals in a human-readable format."""
    click.echo("Summary")
    click.echo("-" * 72)
    click.echo(f"Principal          : {money(totals.principal):.2f}")
    if regular_payment is not None:
        click.echo(f"Regular payment    : {money(regular_payment):.2f}")
    click.echo(f"Total payments     : {money(totals.total_payments):.2f}")
    click.echo(f"Total interest     : {money(totals.total_interest):.2f}")
    if totals.total_overpayment:
        click.echo(f"Total overpayment  : {money(totals.total_overpayment):.2f}")
    if allowance is not None and allowance.annual_overpayment:
        note = " (over limit)" if allowance.exceeds_limit else ""
        click.echo(
            f"Overpayment rate   : {money(allowance.annual_percent):.2f}% a year"
            f" (limit {money(allowance.limit_percent):.0f}%){note}"
        )
    click.echo(f"Baseline interest  : {money(totals.baseline_interest):.2f}")
    click.echo(f"Interest saved     : {money(totals.interest_saved):.2f}")
    click.echo(f"Payoff time        : {totals.payoff_months} months ({totals.payoff_years} years)")
    if totals.months_saved:
        click.echo(f"Term reduction     : {totals.months_saved} months")
    if totals.remaining_balance:
        click.echo(f"Outstanding at end : {money(totals.remaining_balance):.2f}")
    if totals.total_rental_income or totals.total_service_charges:
        click.echo(f"Rental income      : {money(totals.total_rental_income):.2f}")
        click.echo(f"Service charges    : {money(totals.total_service_charges):.2f}")
        click.echo(f"Net income         : {money(totals.net_income):.2f}")
    click.echo("-" * 72)


def print_schedule(schedule: Iterable[MonthlyRecord]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = [
        "Month",
        "Date",
        "Rate",
        "Payment",
        "Principal",
        "Interest",
        "Overpay",
        "Balance",
        "CashFlow",
    ]
    click.echo("\t".join(headers))
    for record in schedule:
        row = [
            str(record.month),
            record.date.isoformat(),
            f"{money(record.rate):.2f}",
            f"{money(record.payment):.2f}",
            f"{money(record.principal):.2f}",
            f"{money(record.interest):.2f}",
            f"{money(record.overpayment):.2f}",
            f"{money(record.balance):.2f}",
            f"{money(record.cash_flow):.2f}",
        ]
        if record.negative_amortization:
            row.append("NEG-AM")
        click.echo("\t".join(row))


def print_yearly(yearly: Iterable[YearlySummary]) -> None:
    headers = ["Year", "Months", "Principal", "Interest", "Payment", "Overpay", "CashFlow", "EndBal", "AvgRate"]
    click.echo("\t".join(headers))
    for y in yearly:
        click.echo(
            "\t".join(
                [
                    str(y.year),
                    str(y.months),
                    f"{money(y.total_principal):.2f}",
                    f"{money(y.total_interest):.2f}",
                    f"{money(y.total_payment):.2f}",
                    f"{money(y.total_overpayment):.2f}",
                    f"{money(y.total_cash_flow):.2f}",
                    f"{money(y.end_balance):.2f}",
                    f"{money(y.average_rate):.2f}",
                ]
            )
        )


def print_comparison(t1: LifetimeTotals, t2: LifetimeTotals) -> None:
    """Print a comparison of two loan summaries side by side.

    The difference column is scenario2 - scenario1. A negative difference means
    the second scenario is cheaper or shorter.
    """
    click.echo("Comparison")
    click.echo("=" * 72)
    rows: List[tuple] = [
        ("total_payments", t1.total_payments, t2.total_payments),
        ("total_interest", t1.total_interest, t2.total_interest),
        ("interest_saved", t1.interest_saved, t2.interest_saved),
        ("net_income", t1.net_income, t2.net_income),
        ("payoff_months", Decimal(t1.payoff_months), Decimal(t2.payoff_months)),
    ]
    click.echo(f"{'Metric':20s} {'Scenario1':>15s} {'Scenario2':>15s} {'Difference':>15s}")
    for key, v1, v2 in rows:
        click.echo(f"{key:20s} {float(v1):15.2f} {float(v2):15.2f} {float(v2 - v1):15.2f}")
    click.echo("=" * 72)
