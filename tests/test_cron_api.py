import datetime as dt

import pytest
from sqlmodel import select

from app.core import security
from app.models.monthly_snapshot import MonthlySnapshot
from app.models.salary import SalaryRecord
from app.models.sip import SIP


@pytest.fixture
def cron_secret(monkeypatch):
    monkeypatch.setattr(security, "CRON_SECRET", "s3cret")
    return {"Authorization": "Bearer s3cret"}


def test_cron_requires_the_shared_secret(client, cron_secret):
    assert client.post("/cron/monthly-snapshot").status_code == 401
    assert client.post("/cron/monthly-snapshot", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_cron_is_disabled_without_a_configured_secret(client, monkeypatch):
    monkeypatch.setattr(security, "CRON_SECRET", "")
    assert client.post("/cron/monthly-snapshot", headers={"Authorization": "Bearer "}).status_code == 401


def test_monthly_snapshot_closes_the_previous_month(client, session, user, cron_secret):
    session.add(SalaryRecord(user_id=user.id, monthly=60000, effective_from=dt.date(2025, 1, 1)))
    session.commit()

    response = client.post("/cron/monthly-snapshot", headers=cron_secret)

    assert response.status_code == 200
    stats = response.json()
    assert (stats["year"], stats["month"]) == (2025, 3)
    assert (stats["total_users"], stats["created"], stats["failed"]) == (1, 1, 0)

    snapshot = session.exec(select(MonthlySnapshot)).one()
    assert snapshot.is_closed is True
    assert snapshot.net_salary == 60000

    rerun = client.post("/cron/monthly-snapshot", headers=cron_secret).json()
    assert rerun["skipped"] == 1


def test_monthly_snapshot_for_an_explicit_period(client, cron_secret):
    stats = client.post("/cron/monthly-snapshot", params={"year": 2024, "month": 12}, headers=cron_secret).json()
    assert (stats["year"], stats["month"]) == (2024, 12)


def test_sip_execution_runs_due_sips(client, session, user, prices, cron_secret):
    prices.prices["120716"] = 100.0
    session.add(SIP(user_id=user.id, name="Index", symbol="120716", amount=1000, start_date=dt.date(2025, 1, 10)))
    session.commit()

    stats = client.post("/cron/sip-execution", headers=cron_secret).json()

    assert stats["execution_date"] == "2025-04-10"
    assert stats["executed"] == 1
