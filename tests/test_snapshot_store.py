import datetime as dt

import pytest
from sqlmodel import select

from app.core.errors import ClosedPeriodError
from app.models.expense import Expense
from app.models.monthly_snapshot import MonthlySnapshot
from app.models.salary import SalaryRecord
from app.services import snapshot_store
from app.services.snapshot_store import (
    CREATED,
    SKIPPED,
    UPDATED,
    close_month,
    close_month_for_all_users,
    period_before,
    refresh_open_snapshot,
)

CLOSED_AT = dt.datetime(2025, 4, 1, 0, 5)


def seed_march(session, user):
    session.add(SalaryRecord(user_id=user.id, monthly=50000, effective_from=dt.date(2025, 1, 1)))
    session.add(Expense(user_id=user.id, date=dt.date(2025, 3, 9), title="Rent", amount=15000))
    session.commit()


def test_period_before_handles_january():
    assert period_before(dt.date(2025, 1, 1)) == (2024, 12)
    assert period_before(dt.date(2025, 4, 10)) == (2025, 3)


def test_closing_twice_is_a_no_op(session, user):
    seed_march(session, user)

    assert close_month(session, user.id, 2025, 3, now=CLOSED_AT) == CREATED
    first = session.exec(select(MonthlySnapshot)).one()
    figures = (first.surplus_amount, first.total_expenses, first.closed_at)

    # Late data must not leak into a closed month
    session.add(Expense(user_id=user.id, date=dt.date(2025, 3, 20), title="Late bill", amount=999))
    session.commit()

    assert close_month(session, user.id, 2025, 3, now=CLOSED_AT + dt.timedelta(days=3)) == SKIPPED
    second = session.exec(select(MonthlySnapshot)).one()
    assert second.is_closed is True
    assert (second.surplus_amount, second.total_expenses, second.closed_at) == figures
    assert second.surplus_amount == 35000


def test_open_snapshot_is_updated_and_closed(session, user):
    seed_march(session, user)
    refresh_open_snapshot(session, user.id, 2025, 3, now=CLOSED_AT)

    assert close_month(session, user.id, 2025, 3, now=CLOSED_AT) == UPDATED
    snapshot = session.exec(select(MonthlySnapshot)).one()
    assert snapshot.is_closed is True
    assert snapshot.closed_at == CLOSED_AT


def test_refreshing_a_closed_month_is_refused(session, user):
    close_month(session, user.id, 2025, 3, now=CLOSED_AT)

    with pytest.raises(ClosedPeriodError):
        refresh_open_snapshot(session, user.id, 2025, 3)


def test_batch_counts_and_isolates_failures(session, user, other_user, monkeypatch):
    seed_march(session, user)
    real_close_month = snapshot_store.close_month

    def flaky_close_month(session, user_id, year, month, now=None):
        if user_id == other_user.id:
            raise RuntimeError("database hiccup")
        return real_close_month(session, user_id, year, month, now=now)

    monkeypatch.setattr(snapshot_store, "close_month", flaky_close_month)

    stats = close_month_for_all_users(session, 2025, 3, now=CLOSED_AT)

    assert stats.total_users == 2
    assert stats.created == 1
    assert stats.failed == 1
    snapshot = session.exec(select(MonthlySnapshot)).one()
    assert snapshot.user_id == user.id


def test_rerunning_the_batch_skips_closed_months(session, user, other_user):
    first = close_month_for_all_users(session, 2025, 3, now=CLOSED_AT)
    second = close_month_for_all_users(session, 2025, 3, now=CLOSED_AT)

    assert (first.created, first.skipped) == (2, 0)
    assert (second.created, second.skipped, second.failed) == (0, 2, 0)
