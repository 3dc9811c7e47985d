import datetime as dt

import pytest
from sqlmodel import select

from app.core.errors import ClosedPeriodError
from app.models.income import Income
from app.models.monthly_snapshot import MonthlySnapshot
from app.services.period_guard import ensure_month_open, is_month_closed


@pytest.fixture
def closed_march(session, user):
    snapshot = MonthlySnapshot(user_id=user.id, year=2025, month=3, is_closed=True,
                               closed_at=dt.datetime(2025, 4, 1))
    session.add(snapshot)
    session.commit()
    return snapshot


def test_open_months_pass(session, user):
    ensure_month_open(session, user.id, dt.date(2025, 3, 15), "add income")
    assert not is_month_closed(session, user.id, dt.date(2025, 3, 15))


def test_unclosed_snapshot_does_not_block(session, user):
    session.add(MonthlySnapshot(user_id=user.id, year=2025, month=3, is_closed=False))
    session.commit()
    ensure_month_open(session, user.id, dt.date(2025, 3, 15), "add income")


def test_closed_month_raises_with_readable_message(session, user, closed_march):
    with pytest.raises(ClosedPeriodError) as exc_info:
        ensure_month_open(session, user.id, dt.date(2025, 3, 15), "add income")

    assert "Cannot add income in March 2025 - this month has been closed." in exc_info.value.message


def test_closure_is_per_user(session, user, other_user, closed_march):
    ensure_month_open(session, other_user.id, dt.date(2025, 3, 15), "add income")


def test_income_in_closed_month_is_rejected_and_not_stored(client, session, closed_march):
    response = client.post(
        "/income/",
        json={"date": "2025-03-15", "title": "Freelance", "amount": 12000},
    )

    assert response.status_code == 400
    assert "March 2025" in response.json()["detail"]
    assert session.exec(select(Income)).all() == []


def test_income_in_open_month_is_stored(client, session, closed_march):
    response = client.post(
        "/income/",
        json={"date": "2025-04-02", "title": "Freelance", "amount": 12000},
    )

    assert response.status_code == 200
    assert len(session.exec(select(Income)).all()) == 1


def test_moving_income_into_a_closed_month_is_rejected(client, session, closed_march):
    created = client.post("/income/", json={"date": "2025-04-02", "title": "Bonus", "amount": 5000}).json()

    response = client.put(f"/income/{created['id']}", json={"date": "2025-03-28"})

    assert response.status_code == 400
    session.expire_all()
    assert session.get(Income, created["id"]).date == dt.date(2025, 4, 2)


def test_income_in_closed_month_cannot_be_deleted(client, session, user, closed_march):
    income = Income(user_id=user.id, date=dt.date(2025, 3, 3), title="Refund", amount=800)
    session.add(income)
    session.commit()

    response = client.delete(f"/income/{income.id}")

    assert response.status_code == 400
    assert session.get(Income, income.id) is not None
