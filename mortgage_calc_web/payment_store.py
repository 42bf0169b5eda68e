"""Persistence layer for actual payments entered by borrowers.

Only the payments a user reports are stored here; amortization schedules are
recomputed on every request and never saved. The store defaults to SQLite for
local development, but accepts any SQLAlchemy-compatible URL (e.g.
PostgreSQL/MySQL) for shared deployments.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Dict, Any

from sqlalchemy import Boolean, Column, Date, DateTime, Numeric, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from mortgage_calc.data_models import ActualPayment

Base = declarative_base()


class ActualPaymentModel(Base):
    __tablename__ = "actual_payments"

    id = Column(String(64), primary_key=True)
    user_token = Column(String(64), index=True, nullable=False)
    paid_on = Column(Date, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    is_overpayment = Column(Boolean, default=False, nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class PaymentStore:
    """Database-backed store of actual payments, scoped per user token."""

    def __init__(self, url: str, *, max_per_user: int = 1000) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    def _rows(self, session, user_token: str) -> Iterable[ActualPaymentModel]:
        return session.execute(
            select(ActualPaymentModel)
            .where(ActualPaymentModel.user_token == user_token)
            .order_by(ActualPaymentModel.paid_on.asc(), ActualPaymentModel.created_at.asc())
        ).scalars()

    def list_entries(self, user_token: str) -> List[Dict[str, Any]]:
        if not user_token:
            return []
        with self._session_factory() as session:
            return [self._to_dict(row) for row in self._rows(session, user_token)]

    def list_payments(self, user_token: str) -> List[ActualPayment]:
        if not user_token:
            return []
        with self._session_factory() as session:
            return [self._to_payment(row) for row in self._rows(session, user_token)]

    def add_payment(self, user_token: str, payment_id: str, payment: ActualPayment) -> bool:
        """Store a payment. Returns False when the user already has the maximum number stored."""
        if not user_token:
            return False
        with self._session_factory() as session:
            count = len(list(self._rows(session, user_token)))
            if self._max_per_user and count >= self._max_per_user:
                return False
            session.add(
                ActualPaymentModel(
                    id=payment_id,
                    user_token=user_token,
                    paid_on=payment.date,
                    amount=payment.amount,
                    is_overpayment=payment.is_overpayment,
                    note=payment.note,
                )
            )
            session.commit()
        return True

    def remove_payment(self, user_token: str, payment_id: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            row = session.get(ActualPaymentModel, payment_id)
            if row and row.user_token == user_token:
                session.delete(row)
                session.commit()

    def clear_payments(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(
                ActualPaymentModel.__table__.delete().where(
                    ActualPaymentModel.user_token == user_token
                )
            )
            session.commit()

    @staticmethod
    def _to_payment(row: ActualPaymentModel) -> ActualPayment:
        return ActualPayment(
            date=row.paid_on,
            amount=Decimal(row.amount),
            is_overpayment=row.is_overpayment,
            note=row.note,
        )

    @staticmethod
    def _to_dict(row: ActualPaymentModel) -> Dict[str, Any]:
        return {
            "id": row.id,
            "date": row.paid_on.isoformat(),
            "amount": float(row.amount),
            "is_overpayment": row.is_overpayment,
            "note": row.note,
            "created_at": row.created_at.isoformat(),
        }


def create_store_from_env(url: str | None) -> PaymentStore:
    return PaymentStore(url or "sqlite:///payment_data.sqlite3")
