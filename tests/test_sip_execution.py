import datetime as dt

import pytest
from sqlmodel import select

from app.models.enums import InvestmentBucket, SIPExecutionStatus, SIPFrequency, TransactionType
from app.models.holding import Holding
from app.models.sip import SIP, SIPExecution
from app.models.transaction import Transaction
from app.services.sip_execution import is_due, run_sip_executions

RUN_DAY = dt.date(2025, 4, 5)


def add_sip(session, user, **overrides):
    values = dict(
        user_id=user.id,
        name="Nifty index",
        bucket=InvestmentBucket.MUTUAL_FUND,
        symbol="120716",
        amount=5000,
        start_date=dt.date(2025, 1, 5),
    )
    values.update(overrides)
    sip = SIP(**values)
    session.add(sip)
    session.commit()
    session.refresh(sip)
    return sip


@pytest.mark.parametrize(
    "frequency, start, custom_day, today, due",
    [
        (SIPFrequency.MONTHLY, dt.date(2025, 1, 5), None, dt.date(2025, 4, 5), True),
        (SIPFrequency.MONTHLY, dt.date(2025, 1, 5), None, dt.date(2025, 4, 6), False),
        (SIPFrequency.YEARLY, dt.date(2024, 4, 5), None, dt.date(2025, 4, 5), True),
        (SIPFrequency.YEARLY, dt.date(2024, 3, 5), None, dt.date(2025, 4, 5), False),
        (SIPFrequency.CUSTOM, dt.date(2025, 1, 1), 15, dt.date(2025, 4, 15), True),
        (SIPFrequency.CUSTOM, dt.date(2025, 1, 15), 20, dt.date(2025, 4, 15), False),
    ],
)
def test_due_rules(frequency, start, custom_day, today, due):
    sip = SIP(name="x", amount=1, frequency=frequency, start_date=start, custom_day=custom_day)
    assert is_due(sip, today) is due


def test_due_sip_buys_units_through_the_ledger(session, user, prices):
    prices.prices["120716"] = 250.0
    sip = add_sip(session, user)

    stats = run_sip_executions(session, RUN_DAY, prices)

    assert (stats.total, stats.executed, stats.skipped, stats.failed) == (1, 1, 0, 0)
    holding = session.exec(select(Holding)).one()
    assert holding.qty == pytest.approx(20)
    assert holding.avg_cost == pytest.approx(250.0)
    assert holding.current_price == pytest.approx(250.0)

    tx = session.exec(select(Transaction)).one()
    assert tx.transaction_type == TransactionType.SIP_EXECUTION
    execution = session.exec(select(SIPExecution)).one()
    assert execution.sip_id == sip.id
    assert execution.holding_id == holding.id
    assert execution.status == SIPExecutionStatus.SUCCESS


def test_running_twice_on_the_same_day_skips(session, user, prices):
    prices.prices["120716"] = 250.0
    add_sip(session, user)

    run_sip_executions(session, RUN_DAY, prices)
    again = run_sip_executions(session, RUN_DAY, prices)

    assert (again.executed, again.skipped) == (0, 1)
    assert len(session.exec(select(Transaction)).all()) == 1


def test_failed_sip_is_recorded_and_batch_continues(session, user, prices):
    prices.prices["120716"] = 250.0
    ok = add_sip(session, user)
    broken = add_sip(session, user, name="Delisted fund", symbol="999999")

    stats = run_sip_executions(session, RUN_DAY, prices)

    assert (stats.executed, stats.failed) == (1, 1)
    failed = session.exec(select(SIPExecution).where(SIPExecution.sip_id == broken.id)).one()
    assert failed.status == SIPExecutionStatus.FAILED
    assert "999999" in failed.error_message
    assert session.exec(select(SIPExecution).where(SIPExecution.sip_id == ok.id)).one().status == SIPExecutionStatus.SUCCESS
    # Nothing half-written for the failed SIP
    assert len(session.exec(select(Holding)).all()) == 1


def test_sip_without_symbol_only_logs_the_execution(session, user, prices):
    add_sip(session, user, symbol=None)

    stats = run_sip_executions(session, RUN_DAY, prices)

    assert stats.executed == 1
    assert session.exec(select(Holding)).all() == []
    assert prices.calls == []


def test_us_stock_sip_converts_rupees_to_dollars(session, user, prices):
    prices.prices["VOO"] = 500.0
    prices.usd_inr = 80.0
    add_sip(session, user, bucket=InvestmentBucket.US_STOCK, symbol="VOO", amount=8000)

    run_sip_executions(session, RUN_DAY, prices)

    tx = session.exec(select(Transaction)).one()
    assert tx.qty == pytest.approx(0.2)
    assert tx.amount == pytest.approx(100.0)
    assert tx.amount_inr == pytest.approx(8000.0)
    assert session.exec(select(Holding)).one().usd_inr_rate == pytest.approx(80.0)


def test_ended_and_inactive_sips_are_not_considered(session, user, prices):
    add_sip(session, user, end_date=dt.date(2025, 3, 31))
    add_sip(session, user, is_active=False)

    stats = run_sip_executions(session, RUN_DAY, prices)
    assert stats.total == 0
