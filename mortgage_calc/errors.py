"""Exceptions and advisory warnings raised by the calculation engine."""

from __future__ import annotations

from decimal import Decimal


class InvalidConfiguration(ValueError):
    """Loan parameters or rate periods that cannot produce a schedule.

    Raised before any month is generated, so no partial schedule is ever
    returned alongside it.
    """


class NegativeAmortizationDetected(UserWarning):
    """The scheduled instalment did not cover a month's interest."""

    def __init__(self, month: int, shortfall: Decimal) -> None:
        super().__init__(
            f"Month {month}: payment falls {shortfall:.2f} short of the interest due; balance grows"
        )
        self.month = month
        self.shortfall = shortfall


class TermExceededWithoutPayoff(UserWarning):
    """The nominal term ended with part of the loan still outstanding."""

    def __init__(self, term_months: int, remaining_balance: Decimal) -> None:
        super().__init__(
            f"Balance of {remaining_balance:.2f} remains after the {term_months}-month term"
        )
        self.term_months = term_months
        self.remaining_balance = remaining_balance
