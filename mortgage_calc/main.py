"""Command-line interface for the mortgage calculator.

This module uses the ``click`` library to implement a multi-command interface.
Users can compute full amortization schedules, view summaries and yearly
breakdowns, or compare two mortgage scenarios. Results can be printed to the
terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
import re
import shlex
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import click

from .data_models import Calculation, DateRange, Duration, LoanParameters, RatePeriod, YearMode
from .engine import calculate
from .errors import InvalidConfiguration
from .formatter import (
    calculation_to_dict,
    print_comparison,
    print_schedule,
    print_summary,
    print_yearly,
    record_to_dict,
)
from .summary import overpayment_allowance
from .utils import decimal_from_str, parse_date

DURATION_RE = re.compile(r"^(?:(\d+)y)?(?:(\d+)m)?$")


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("80000") and shorthand with ``k``/``m`` suffixes
    (e.g., "80k" meaning 80_000). Returns a ``Decimal`` scaled without a
    round trip through ``float``.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def _amount(value: Optional[str]) -> Optional[Decimal]:
    if value is None:
        return None
    return parse_amount(value)


def parse_rate_period_strings(values: Tuple[str, ...]) -> List[RatePeriod]:
    """Parse ``RATE:DURATION`` or ``RATE:START:END`` entries.

    Durations are written as years and/or months, e.g. ``2y``, ``1y6m`` or
    ``18m``. Date ranges use ``YYYY-MM-DD`` (or ``YYYY-MM``) for both ends.
    """
    periods: List[RatePeriod] = []
    for item in values:
        parts = item.split(":")
        try:
            rate = decimal_from_str(parts[0].rstrip("%"))
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        if len(parts) == 2:
            match = DURATION_RE.match(parts[1].strip().lower())
            if not match or not any(match.groups()):
                raise click.BadParameter(
                    f"Rate period duration must look like 2y, 1y6m or 18m; got {parts[1]}"
                )
            years, months = (int(g) if g else 0 for g in match.groups())
            periods.append(RatePeriod(rate=rate, span=Duration(years=years, months=months)))
        elif len(parts) == 3:
            try:
                start, end = parse_date(parts[1]), parse_date(parts[2])
            except ValueError as exc:
                raise click.BadParameter(str(exc))
            periods.append(RatePeriod(rate=rate, span=DateRange(start=start, end=end)))
        else:
            raise click.BadParameter(
                f"Rate period must be in RATE:DURATION or RATE:START:END format; got {item}"
            )
    return periods


def build_params_from_options(
    principal: str,
    term: int,
    start_date: str,
    rate_period: Tuple[str, ...],
    payment: Optional[str] = None,
    first_payment: Optional[str] = None,
    overpayment: Optional[str] = None,
    rental_income: Optional[str] = None,
    service_charge: Optional[str] = None,
) -> Tuple[LoanParameters, List[RatePeriod]]:
    """Turn raw option strings into engine inputs.

    Shared by the CLI and the web API. Range checks are left to the engine,
    which raises ``InvalidConfiguration``.
    """
    try:
        start_dt = parse_date(start_date)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    try:
        params = LoanParameters(
            principal=_amount(principal),
            term_months=int(term),
            start_date=start_dt,
            regular_payment=_amount(payment),
            first_payment=_amount(first_payment),
            monthly_overpayment=_amount(overpayment) or decimal_from_str("0"),
            rental_income=_amount(rental_income) or decimal_from_str("0"),
            annual_service_charge=_amount(service_charge) or decimal_from_str("0"),
        )
    except (TypeError, ValueError) as exc:
        raise click.BadParameter(str(exc))
    return params, parse_rate_period_strings(rate_period)


def run_calculation(
    params: LoanParameters, periods: List[RatePeriod], year_mode: YearMode = YearMode.LOAN_YEAR
) -> Calculation:
    try:
        return calculate(params, periods, year_mode)
    except InvalidConfiguration as exc:
        raise click.BadParameter(str(exc))


def export_to_json(path: Path, calc: Calculation) -> None:
    """Export schedule, yearly breakdown and summary to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(calculation_to_dict(calc), f, indent=2)


def export_to_csv(path: Path, calc: Calculation) -> None:
    """Export the monthly schedule to a CSV file."""
    rows = [record_to_dict(r) for r in calc.records]
    header = list(rows[0].keys()) if rows else []
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=header)
        writer.writeheader()
        writer.writerows(rows)


def loan_options(func: Callable) -> Callable:
    """Attach the loan input options shared by every calculating command."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (accepts k/m suffixes)"),
        click.option("--term", "-t", "term", required=True, type=int, help="Loan term in months"),
        click.option("--start-date", "-s", "start_date", required=True, help="First payment date (YYYY-MM or YYYY-MM-DD)"),
        click.option(
            "--rate-period",
            "rate_period",
            multiple=True,
            required=True,
            help="Rate period as RATE:DURATION (4.97:2y, 5:1y6m) or RATE:START:END (5:2027-05-01:2040-04-30)",
        ),
        click.option("--payment", "payment", help="Regular monthly payment; defaults to the annuity payment"),
        click.option("--first-payment", "first_payment", help="First payment if it differs, e.g. with fees added"),
        click.option("--overpayment", "overpayment", help="Fixed overpayment added every month"),
        click.option("--rental-income", "rental_income", help="Monthly rental income"),
        click.option("--service-charge", "service_charge", help="Annual service charge"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log calculation details")
def cli(verbose: bool) -> None:
    """A command-line mortgage and rental property calculator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(output: Optional[str], **options: Any) -> None:
    """Compute and print the full amortization schedule."""
    calc = run_calculation(*build_params_from_options(**options))
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, calc)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, calc)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
        return
    print_summary(calc.totals, calc.regular_payment, overpayment_allowance(calc.parameters))
    for warning in calc.warnings:
        click.echo(f"Warning: {warning}", err=True)
    # Limit schedule length printed to avoid flooding the terminal
    max_rows = 120
    if len(calc.records) > max_rows:
        click.echo(f"Schedule has {len(calc.records)} rows; showing first {max_rows} rows.")
    print_schedule(calc.records[:max_rows])


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(output: Optional[str], **options: Any) -> None:
    """Compute and print only the lifetime totals."""
    calc = run_calculation(*build_params_from_options(**options))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump(calculation_to_dict(calc, include_schedule=False), f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(calc.totals, calc.regular_payment, overpayment_allowance(calc.parameters))


@cli.command()
@loan_options
@click.option("--calendar-years", is_flag=True, help="Group by calendar year instead of loan year")
def yearly(calendar_years: bool, **options: Any) -> None:
    """Print the schedule rolled up by year."""
    mode = YearMode.CALENDAR_YEAR if calendar_years else YearMode.LOAN_YEAR
    calc = run_calculation(*build_params_from_options(**options), year_mode=mode)
    print_yearly(calc.yearly)


# Flag -> (parameter name, repeatable)
SCENARIO_FLAGS: Dict[str, Tuple[str, bool]] = {
    "-p": ("principal", False),
    "--principal": ("principal", False),
    "-t": ("term", False),
    "--term": ("term", False),
    "-s": ("start_date", False),
    "--start-date": ("start_date", False),
    "--rate-period": ("rate_period", True),
    "--payment": ("payment", False),
    "--first-payment": ("first_payment", False),
    "--overpayment": ("overpayment", False),
    "--rental-income": ("rental_income", False),
    "--service-charge": ("service_charge", False),
}


def parse_scenario_opts(opts: str) -> Dict[str, Any]:
    """Map a quoted option string onto ``build_params_from_options`` arguments."""
    tokens = shlex.split(opts)
    params: Dict[str, Any] = {name: None for name, _ in SCENARIO_FLAGS.values()}
    params["rate_period"] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token not in SCENARIO_FLAGS or i + 1 >= len(tokens):
            raise click.BadParameter(f"Unknown or incomplete option in scenario: {token}")
        name, repeatable = SCENARIO_FLAGS[token]
        if repeatable:
            params[name].append(tokens[i + 1])
        else:
            params[name] = tokens[i + 1]
        i += 2
    for required in ("principal", "term", "start_date"):
        if params[required] is None:
            raise click.BadParameter(f"Scenario missing required option {required}")
    if not params["rate_period"]:
        raise click.BadParameter("Scenario missing required option rate_period")
    params["rate_period"] = tuple(params["rate_period"])
    return params


@cli.command()
@click.option("--scenario1", "scenario1", required=True, help="First scenario options quoted string")
@click.option("--scenario2", "scenario2", required=True, help="Second scenario options quoted string")
def compare(scenario1: str, scenario2: str) -> None:
    """Compare two mortgage scenarios.

    Scenarios are provided as quoted option strings, for example:

        mortgage-calc compare --scenario1 "-p 80k -t 180 -s 2025-05 --rate-period 4.97:2y"
        --scenario2 "-p 80k -t 180 -s 2025-05 --rate-period 4.97:2y --overpayment 362"
    """
    calc1 = run_calculation(*build_params_from_options(**parse_scenario_opts(scenario1)))
    calc2 = run_calculation(*build_params_from_options(**parse_scenario_opts(scenario2)))
    print_comparison(calc1.totals, calc2.totals)


if __name__ == "__main__":
    cli()
