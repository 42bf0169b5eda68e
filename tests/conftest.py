import os
from datetime import date
from decimal import Decimal

import pytest

# The web app builds its payment store at import time
os.environ.setdefault("PAYMENT_DATABASE_URL", "sqlite:///:memory:")

from mortgage_calc.data_models import Duration, LoanParameters, MonthlyRecord, RatePeriod


@pytest.fixture
def scenario_a_params():
    """£80K over 15 years with the £30 fee folded into the first payment."""
    return LoanParameters(
        principal=Decimal("80000"),
        term_months=180,
        start_date=date(2025, 5, 1),
        regular_payment=Decimal("627.23"),
        first_payment=Decimal("657.23"),
        monthly_overpayment=Decimal("362"),
        rental_income=Decimal("1100"),
        annual_service_charge=Decimal("1350"),
    )


@pytest.fixture
def scenario_a_periods():
    return [
        RatePeriod(rate=Decimal("4.97"), span=Duration(years=2)),
        RatePeriod(rate=Decimal("5.00"), span=Duration(years=13)),
    ]


def make_record(month, when, payment="1000", principal="800", interest="200", balance="0", rate="5.00"):
    payment, principal, interest = Decimal(payment), Decimal(principal), Decimal(interest)
    return MonthlyRecord(
        month=month,
        date=when,
        payment=payment,
        principal=principal,
        interest=interest,
        cumulative_interest=interest * month,
        balance=Decimal(balance),
        regular_payment=payment,
        overpayment=Decimal("0"),
        rate=Decimal(rate),
        cash_flow=-payment,
    )
