from datetime import date
from decimal import Decimal

import pytest

from conftest import make_record
from mortgage_calc.data_models import ActualPayment, Expense, PaymentStatus
from mortgage_calc.expenses import expenses_by_category, total_expenses
from mortgage_calc.tracking import payment_stats, payment_status, status_timeline


@pytest.fixture
def records():
    return [
        make_record(1, date(2025, 5, 1)),
        make_record(2, date(2025, 6, 1)),
        make_record(3, date(2025, 7, 1)),
    ]


def paid(day, amount, overpayment=False):
    return ActualPayment(date=day, amount=Decimal(amount), is_overpayment=overpayment)


class TestPaymentStatus:
    def test_on_track(self, records):
        payments = [paid(date(2025, 5, 1), "1000"), paid(date(2025, 6, 1), "1000")]
        assert payment_status(payments, records, date(2025, 6, 15)) == PaymentStatus.ON_TRACK

    def test_within_one_unit_is_on_track(self, records):
        payments = [paid(date(2025, 5, 1), "1000.50")]
        assert payment_status(payments, records, date(2025, 5, 31)) == PaymentStatus.ON_TRACK

    def test_ahead(self, records):
        payments = [paid(date(2025, 5, 1), "1001")]
        assert payment_status(payments, records, date(2025, 5, 31)) == PaymentStatus.AHEAD

    def test_behind(self, records):
        payments = [paid(date(2025, 5, 1), "1000")]
        assert payment_status(payments, records, date(2025, 6, 15)) == PaymentStatus.BEHIND

    def test_later_payments_are_ignored(self, records):
        payments = [paid(date(2025, 5, 1), "1000"), paid(date(2025, 8, 1), "5000")]
        assert payment_status(payments, records, date(2025, 5, 2)) == PaymentStatus.ON_TRACK

    def test_nothing_due_nothing_paid(self, records):
        assert payment_status([], records, date(2025, 1, 1)) == PaymentStatus.ON_TRACK

    def test_timeline(self, records):
        payments = [
            paid(date(2025, 6, 1), "1000"),
            paid(date(2025, 5, 1), "1000"),
            paid(date(2025, 7, 1), "1500", overpayment=True),
        ]
        timeline = status_timeline(payments, records)
        assert [status for _, status in timeline] == [
            PaymentStatus.ON_TRACK,
            PaymentStatus.ON_TRACK,
            PaymentStatus.AHEAD,
        ]
        assert [record.month for record, _ in timeline] == [1, 2, 3]


class TestPaymentStats:
    def test_split_by_kind(self):
        stats = payment_stats(
            [
                paid(date(2025, 5, 1), "657.23"),
                paid(date(2025, 5, 1), "362", overpayment=True),
                paid(date(2025, 6, 1), "627.23"),
            ]
        )
        assert stats.total_paid == Decimal("1646.46")
        assert stats.total_overpayments == Decimal("362")
        assert stats.total_regular_payments == Decimal("1284.46")
        assert stats.payments_made == 3

    def test_empty(self):
        stats = payment_stats([])
        assert stats.total_paid == 0
        assert stats.payments_made == 0


class TestExpenses:
    def test_totals_by_category(self):
        expenses = [
            Expense(date(2025, 5, 3), Decimal("120"), "Maintenance"),
            Expense(date(2025, 6, 1), Decimal("300"), "Insurance"),
            Expense(date(2025, 7, 9), Decimal("80.50"), "Maintenance"),
        ]
        assert total_expenses(expenses) == Decimal("500.50")
        assert expenses_by_category(expenses) == {
            "Maintenance": Decimal("200.50"),
            "Insurance": Decimal("300"),
        }
        assert list(expenses_by_category(expenses)) == ["Maintenance", "Insurance"]
