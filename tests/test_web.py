import pytest

from mortgage_calc_web.app import app

SCENARIO_A = {
    "principal": "80000",
    "term": 180,
    "start_date": "2025-05-01",
    "rate_periods": ["4.97:2y", {"rate": 5.0, "years": 13}],
    "payment": "627.23",
    "first_payment": "657.23",
    "overpayment": "362",
    "rental_income": "1100",
    "service_charge": "1350",
}


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


class TestScheduleEndpoint:
    def test_schedule(self, client):
        resp = client.post("/api/schedule", json=SCENARIO_A)
        assert resp.status_code == 200
        data = resp.get_json()
        first = data["schedule"][0]
        assert first["interest"] == 331.33
        assert first["principal"] == 687.9
        assert first["rate"] == 4.97
        assert data["regular_payment"] == 627.23
        assert data["outlook"]["recommended_overpayment"] == 360.27
        assert len(data["chart"]) == (len(data["schedule"]) + 2) // 3
        assert data["split"]["principal"] == 80000.0
        assert data["yearly"][0]["year"] == 1
        assert data["warnings"] == []
        assert data["allowance"] == {
            "annual_overpayment": 4344.0,
            "annual_percent": 5.43,
            "limit_percent": 20.0,
            "exceeds_limit": False,
        }

    def test_calendar_years(self, client):
        resp = client.post("/api/schedule", json={**SCENARIO_A, "calendar_years": True})
        assert resp.get_json()["yearly"][0]["year"] == 2025

    def test_date_range_periods(self, client):
        payload = {
            **SCENARIO_A,
            "rate_periods": [
                {"rate": 4.97, "start": "2025-05-01", "end": "2027-04-30"},
                {"rate": 5.0, "start": "2027-05-01", "end": "2040-04-30"},
            ],
        }
        schedule = client.post("/api/schedule", json=payload).get_json()["schedule"]
        assert schedule[23]["rate"] == 4.97
        assert schedule[24]["rate"] == 5.0

    @pytest.mark.parametrize(
        "changes",
        [
            {"principal": "0"},
            {"term": 0},
            {"term": None},
            {"rate_periods": []},
            {"principal": "abc"},
            {"rate_periods": [{"years": 2}]},
            {"principal": "nan"},
            {"principal": "inf"},
            {"overpayment": "nan"},
            {"payment": "inf"},
            {"rate_periods": ["nan:2y"]},
        ],
    )
    def test_invalid_input(self, client, changes):
        resp = client.post("/api/schedule", json={**SCENARIO_A, **changes})
        assert resp.status_code == 400
        assert resp.get_json()["error"]


class TestPaymentEndpoints:
    def test_add_list_remove(self, client):
        first = client.post("/api/payments", json={"date": "2025-05-01", "amount": "1019.23"})
        assert first.status_code == 201
        client.post("/api/payments", json={"date": "2025-06-01", "amount": "362", "is_overpayment": True})

        data = client.get("/api/payments").get_json()
        assert len(data["payments"]) == 2
        assert data["stats"]["total_paid"] == 1381.23
        assert data["stats"]["total_overpayments"] == 362.0

        client.delete(f"/api/payments/{first.get_json()['id']}")
        assert len(client.get("/api/payments").get_json()["payments"]) == 1

        client.post("/api/payments/clear")
        assert client.get("/api/payments").get_json()["payments"] == []

    def test_invalid_payment(self, client):
        resp = client.post("/api/payments", json={"amount": "10"})
        assert resp.status_code == 400

    def test_status(self, client):
        client.post("/api/payments", json={"date": "2025-05-01", "amount": "1019.23"})
        resp = client.post("/api/payments/status", json={**SCENARIO_A, "as_of": "2025-05-15", "timeline": True})
        data = resp.get_json()
        assert data["status"] == "onTrack"
        assert data["timeline"][0]["status"] == "onTrack"
        assert data["timeline"][1]["status"] == "behind"

    def test_status_requires_date(self, client):
        resp = client.post("/api/payments/status", json=SCENARIO_A)
        assert resp.status_code == 400


class TestExpensesEndpoint:
    def test_summary(self, client):
        resp = client.post(
            "/api/expenses/summary",
            json={
                "expenses": [
                    {"date": "2025-05-03", "amount": 120, "category": "Maintenance"},
                    {"date": "2025-06-01", "amount": 300, "category": "Insurance"},
                ]
            },
        )
        data = resp.get_json()
        assert data["total"] == 420.0
        assert data["by_category"] == {"Maintenance": 120.0, "Insurance": 300.0}
