from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from conftest import make_record
from mortgage_calc.data_models import LoanParameters, YearMode
from mortgage_calc.engine import calculate
from mortgage_calc.summary import (
    lifetime_totals,
    overpayment_allowance,
    principal_interest_split,
    rental_outlook,
    sample_records,
    yearly_summaries,
)
from mortgage_calc.utils import add_months


class TestYearlySummaries:
    def test_loan_years_are_twelve_month_blocks(self, scenario_a_params, scenario_a_periods):
        calc = calculate(scenario_a_params, scenario_a_periods)
        assert [y.year for y in calc.yearly] == list(range(1, len(calc.yearly) + 1))
        assert all(y.months == 12 for y in calc.yearly[:-1])
        assert sum(y.months for y in calc.yearly) == len(calc.records)

    def test_totals_match_records(self, scenario_a_params, scenario_a_periods):
        calc = calculate(scenario_a_params, scenario_a_periods)
        first_year = calc.records[:12]
        assert calc.yearly[0].total_principal == sum(r.principal for r in first_year)
        assert calc.yearly[0].total_interest == sum(r.interest for r in first_year)
        assert calc.yearly[0].total_payment == sum(r.payment for r in first_year)
        assert calc.yearly[0].total_cash_flow == sum(r.cash_flow for r in first_year)
        assert calc.yearly[0].end_balance == calc.records[11].balance
        assert calc.yearly[-1].end_balance == 0

    def test_average_rate(self, scenario_a_params, scenario_a_periods):
        yearly = calculate(scenario_a_params, scenario_a_periods).yearly
        assert yearly[0].average_rate == Decimal("4.97")
        assert yearly[1].average_rate == Decimal("4.97")
        assert yearly[2].average_rate == Decimal("5.00")

    def test_calendar_years(self, scenario_a_params, scenario_a_periods):
        calc = calculate(scenario_a_params, scenario_a_periods, YearMode.CALENDAR_YEAR)
        assert calc.yearly[0].year == 2025
        # May to December
        assert calc.yearly[0].months == 8
        assert calc.yearly[1].months == 12
        # Four months at 4.97 then eight at 5.00
        assert calc.yearly[2].year == 2027
        assert calc.yearly[2].average_rate == Decimal("4.99")

    def test_empty_schedule(self):
        assert yearly_summaries([]) == []


class TestLifetimeTotals:
    def test_baseline(self, scenario_a_params, scenario_a_periods):
        totals = calculate(scenario_a_params, scenario_a_periods).totals
        assert totals.baseline_total_payment == Decimal("657.23") + Decimal("627.23") * 179
        assert totals.baseline_interest == totals.baseline_total_payment - Decimal("80000")
        assert totals.interest_saved == totals.baseline_interest - totals.total_interest
        assert totals.interest_saved > 0

    def test_payoff_time(self, scenario_a_params, scenario_a_periods):
        calc = calculate(scenario_a_params, scenario_a_periods)
        totals = calc.totals
        assert totals.payoff_months == len(calc.records)
        assert totals.months_saved == 180 - len(calc.records)
        assert totals.remaining_balance == 0

    def test_rental_totals(self, scenario_a_params, scenario_a_periods):
        calc = calculate(scenario_a_params, scenario_a_periods)
        totals = calc.totals
        months = len(calc.records)
        assert totals.total_rental_income == Decimal("1100") * months
        assert totals.total_service_charges == Decimal("112.5") * months
        assert totals.net_income == (
            totals.total_rental_income - totals.total_payments - totals.total_service_charges
        )

    @pytest.mark.parametrize("months, years", [(18, Decimal("1.5")), (100, Decimal("8.3")), (105, Decimal("8.8"))])
    def test_payoff_years_one_decimal(self, months, years):
        start = date(2025, 1, 1)
        records = [make_record(m, add_months(start, m - 1)) for m in range(1, months + 1)]
        params = LoanParameters(Decimal("80000"), 180, start)
        totals = lifetime_totals(params, records, Decimal("1000"))
        assert totals.payoff_years == years


class TestRentalOutlook:
    def test_positive_cash_flow(self, scenario_a_params):
        outlook = rental_outlook(scenario_a_params, Decimal("627.23"))
        assert outlook.monthly_cash_flow == Decimal("360.27")
        assert outlook.annual_cash_flow == Decimal("4323.24")
        assert outlook.recommended_overpayment == Decimal("360.27")

    def test_negative_cash_flow_recommends_nothing(self, scenario_a_params):
        outlook = rental_outlook(scenario_a_params, Decimal("1200"))
        assert outlook.monthly_cash_flow < 0
        assert outlook.recommended_overpayment == 0


class TestOverpaymentAllowance:
    def test_within_limit(self, scenario_a_params):
        allowance = overpayment_allowance(scenario_a_params)
        assert allowance.annual_overpayment == Decimal("4344")
        assert allowance.annual_percent == Decimal("5.43")
        assert not allowance.exceeds_limit

    def test_over_limit(self, scenario_a_params):
        params = replace(scenario_a_params, monthly_overpayment=Decimal("1500"))
        allowance = overpayment_allowance(params)
        assert allowance.annual_percent == Decimal("22.5")
        assert allowance.exceeds_limit

    def test_custom_limit(self, scenario_a_params):
        allowance = overpayment_allowance(scenario_a_params, limit_percent=Decimal("5"))
        assert allowance.exceeds_limit


class TestChartHelpers:
    def test_sample_every_third(self, scenario_a_params, scenario_a_periods):
        records = calculate(scenario_a_params, scenario_a_periods).records
        sample = sample_records(records)
        assert [r.month for r in sample[:3]] == [1, 4, 7]
        assert len(sample) == (len(records) + 2) // 3

    def test_invalid_step(self):
        with pytest.raises(ValueError):
            sample_records([], 0)

    def test_principal_interest_split(self, scenario_a_params, scenario_a_periods):
        records = calculate(scenario_a_params, scenario_a_periods).records
        split = principal_interest_split(scenario_a_params, records)
        assert split["principal"] == Decimal("80000")
        assert split["interest"] == records[-1].cumulative_interest
