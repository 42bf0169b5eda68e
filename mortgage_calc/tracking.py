"""Comparison of actual payments against the simulated schedule.

Actual payments are kept by the caller and never change the schedule; they
are only measured against it. A borrower is on track while the running total
actually paid is within one currency unit of the running total the schedule
expects by the same date.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Sequence, Tuple

from .data_models import ActualPayment, MonthlyRecord, PaymentStats, PaymentStatus

ZERO = Decimal("0")
ON_TRACK_TOLERANCE = Decimal("1.0")


def paid_by(payments: Sequence[ActualPayment], as_of: date) -> Decimal:
    return sum((p.amount for p in payments if p.date <= as_of), ZERO)


def expected_by(records: Sequence[MonthlyRecord], as_of: date) -> Decimal:
    return sum((r.payment for r in records if r.date <= as_of), ZERO)


def classify(actual: Decimal, expected: Decimal) -> PaymentStatus:
    if abs(actual - expected) < ON_TRACK_TOLERANCE:
        return PaymentStatus.ON_TRACK
    return PaymentStatus.AHEAD if actual > expected else PaymentStatus.BEHIND


def payment_status(
    payments: Sequence[ActualPayment], records: Sequence[MonthlyRecord], as_of: date
) -> PaymentStatus:
    """Classify the cumulative position on ``as_of``."""
    return classify(paid_by(payments, as_of), expected_by(records, as_of))


def status_timeline(
    payments: Sequence[ActualPayment], records: Sequence[MonthlyRecord]
) -> List[Tuple[MonthlyRecord, PaymentStatus]]:
    """Pair every scheduled month with the status as of its payment date."""
    ordered = sorted(payments, key=lambda p: p.date)
    timeline: List[Tuple[MonthlyRecord, PaymentStatus]] = []
    actual = ZERO
    expected = ZERO
    i = 0
    for record in records:
        while i < len(ordered) and ordered[i].date <= record.date:
            actual += ordered[i].amount
            i += 1
        expected += record.payment
        timeline.append((record, classify(actual, expected)))
    return timeline


def payment_stats(payments: Sequence[ActualPayment]) -> PaymentStats:
    overpayments = sum((p.amount for p in payments if p.is_overpayment), ZERO)
    regular = sum((p.amount for p in payments if not p.is_overpayment), ZERO)
    return PaymentStats(
        total_paid=overpayments + regular,
        total_overpayments=overpayments,
        total_regular_payments=regular,
        payments_made=len(payments),
    )
