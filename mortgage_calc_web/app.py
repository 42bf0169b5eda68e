import logging
import os
from uuid import uuid4

import click
from flask import Flask, jsonify, request, session

from mortgage_calc.data_models import ActualPayment, Expense, YearMode
from mortgage_calc.engine import calculate
from mortgage_calc.errors import InvalidConfiguration
from mortgage_calc.expenses import expenses_by_category, total_expenses
from mortgage_calc.formatter import allowance_to_dict, calculation_to_dict, outlook_to_dict, record_to_dict
from mortgage_calc.main import build_params_from_options
from mortgage_calc.summary import (
    overpayment_allowance,
    principal_interest_split,
    rental_outlook,
    sample_records,
)
from mortgage_calc.tracking import payment_stats, payment_status, status_timeline
from mortgage_calc.utils import decimal_from_str, money, parse_date
from mortgage_calc_web.payment_store import create_store_from_env

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
payment_store = create_store_from_env(os.environ.get("PAYMENT_DATABASE_URL"))

CHART_SAMPLE_EVERY = 3


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _period_string(period) -> str:
    """Accept either ``"4.97:2y"`` strings or dicts from a JSON form."""
    if isinstance(period, str):
        return period
    if "start" in period or "end" in period:
        return f"{period['rate']}:{period['start']}:{period['end']}"
    return f"{period['rate']}:{int(period.get('years', 0))}y{int(period.get('months', 0))}m"


def _optional(data: dict, key: str):
    value = data.get(key)
    if value is None or str(value).strip() == "":
        return None
    return str(value)


def _payload_to_inputs(data: dict):
    try:
        periods = tuple(_period_string(p) for p in data.get("rate_periods", []))
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"Malformed rate period: {exc}") from exc
    return build_params_from_options(
        str(data.get("principal", "")),
        data.get("term", 0),
        str(data.get("start_date", "")),
        periods,
        _optional(data, "payment"),
        _optional(data, "first_payment"),
        _optional(data, "overpayment"),
        _optional(data, "rental_income"),
        _optional(data, "service_charge"),
    )


def _run_analysis(data: dict):
    mode = YearMode.CALENDAR_YEAR if data.get("calendar_years") else YearMode.LOAN_YEAR
    params, periods = _payload_to_inputs(data)
    return calculate(params, periods, mode)


def _payment_from_payload(data: dict) -> ActualPayment:
    try:
        return ActualPayment(
            date=parse_date(str(data["date"])),
            amount=decimal_from_str(str(data["amount"])),
            is_overpayment=bool(data.get("is_overpayment", False)),
            note=(data.get("note") or None),
        )
    except (KeyError, ValueError) as exc:
        raise InvalidConfiguration(f"Invalid payment: {exc}") from exc


@app.errorhandler(InvalidConfiguration)
@app.errorhandler(click.BadParameter)
def _invalid_input(exc):
    message = exc.format_message() if isinstance(exc, click.ClickException) else str(exc)
    return jsonify({"error": message}), 400


@app.post("/api/schedule")
def schedule():
    data = request.get_json(silent=True) or {}
    calc = _run_analysis(data)
    payload = calculation_to_dict(calc)
    payload["outlook"] = outlook_to_dict(rental_outlook(calc.parameters, calc.regular_payment))
    payload["allowance"] = allowance_to_dict(overpayment_allowance(calc.parameters))
    payload["chart"] = [record_to_dict(r) for r in sample_records(calc.records, CHART_SAMPLE_EVERY)]
    payload["split"] = {
        k: float(money(v)) for k, v in principal_interest_split(calc.parameters, calc.records).items()
    }
    return jsonify(payload)


@app.get("/api/payments")
def list_payments():
    user_token = _ensure_user_token()
    payments = payment_store.list_payments(user_token)
    stats = payment_stats(payments)
    return jsonify(
        {
            "payments": payment_store.list_entries(user_token),
            "stats": {
                "total_paid": float(money(stats.total_paid)),
                "total_overpayments": float(money(stats.total_overpayments)),
                "total_regular_payments": float(money(stats.total_regular_payments)),
                "payments_made": stats.payments_made,
            },
        }
    )


@app.post("/api/payments")
def add_payment():
    user_token = _ensure_user_token()
    payment = _payment_from_payload(request.get_json(silent=True) or {})
    payment_id = uuid4().hex
    if not payment_store.add_payment(user_token, payment_id, payment):
        return jsonify({"error": "Payment limit reached"}), 409
    logger.info("Recorded payment of %s on %s", payment.amount, payment.date)
    return jsonify({"id": payment_id}), 201


@app.delete("/api/payments/<payment_id>")
def remove_payment(payment_id: str):
    payment_store.remove_payment(session.get("user_token"), payment_id)
    return "", 204


@app.post("/api/payments/clear")
def clear_payments():
    payment_store.clear_payments(session.get("user_token"))
    return "", 204


@app.post("/api/payments/status")
def payments_status():
    user_token = _ensure_user_token()
    data = request.get_json(silent=True) or {}
    if not data.get("as_of"):
        raise InvalidConfiguration("as_of date is required")
    try:
        as_of = parse_date(str(data["as_of"]))
    except ValueError as exc:
        raise InvalidConfiguration(str(exc)) from exc
    calc = _run_analysis(data)
    payments = payment_store.list_payments(user_token)
    body = {"status": payment_status(payments, calc.records, as_of).value}
    if data.get("timeline"):
        body["timeline"] = [
            {"month": record.month, "date": record.date.isoformat(), "status": status.value}
            for record, status in status_timeline(payments, calc.records)
        ]
    return jsonify(body)


@app.post("/api/expenses/summary")
def expenses_summary():
    data = request.get_json(silent=True) or {}
    try:
        expenses = [
            Expense(
                date=parse_date(str(item["date"])),
                amount=decimal_from_str(str(item["amount"])),
                category=item.get("category") or "Maintenance",
                description=item.get("description"),
            )
            for item in data.get("expenses", [])
        ]
    except (KeyError, ValueError) as exc:
        raise InvalidConfiguration(f"Invalid expense: {exc}") from exc
    return jsonify(
        {
            "total": float(money(total_expenses(expenses))),
            "by_category": {k: float(money(v)) for k, v in expenses_by_category(expenses).items()},
        }
    )


if __name__ == "__main__":
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    print("Starting Mortgage Calculator API...")
    app.run(host="0.0.0.0", port=8710, debug=True)
