from datetime import date

import pytest
from fastapi.testclient import TestClient

from api.server import create_app
from services.daily_job import DailyRecurringJob

SECRET = "s3cret"


@pytest.fixture
def job(user_dao, recurring_dao, materializer):
    return DailyRecurringJob(user_dao, recurring_dao, materializer)


@pytest.fixture
def client(job):
    app = create_app(job, SECRET, "Asia/Kolkata", clock=lambda: date(2024, 6, 4))
    return TestClient(app)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.parametrize("headers", [
    {},
    {"Authorization": "Bearer wrong"},
    {"Authorization": SECRET},
    {"Authorization": f"Basic {SECRET}"},
])
def test_trigger_rejects_bad_credentials(client, headers, make_rule, tx_dao):
    make_rule()
    resp = client.post("/recurring/trigger", headers=headers)
    assert resp.status_code == 401
    assert resp.json() == {"detail": "Unauthorized"}
    assert tx_dao.list_for_user("u1") == []


def test_trigger_without_configured_secret_is_closed(job):
    client = TestClient(create_app(job, None, "Asia/Kolkata"))
    resp = client.post("/recurring/trigger", headers={"Authorization": "Bearer anything"})
    assert resp.status_code == 401


def test_trigger_returns_created_count(client, make_rule, tx_dao):
    make_rule()
    make_rule(user_id="u2", description="Rent", next_due_date="2024-06-04")

    resp = client.post("/recurring/trigger", headers={"Authorization": f"Bearer {SECRET}"})

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True, "createdTransactions": 5, "processed": 2, "timedOut": False,
    }
    again = client.post("/recurring/trigger", headers={"Authorization": f"Bearer {SECRET}"})
    assert again.json()["createdTransactions"] == 0


def test_trigger_reports_internal_errors(job, monkeypatch):
    def boom(ref_date):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(job, "run", boom)
    client = TestClient(create_app(job, SECRET, "Asia/Kolkata"))
    resp = client.post("/recurring/trigger", headers={"Authorization": f"Bearer {SECRET}"})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal server error"}
