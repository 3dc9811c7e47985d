import datetime as dt

import pytest
from sqlmodel import select

from app.models.enums import Currency, InvestmentBucket, TransactionType
from app.models.holding import Holding
from app.models.sip import SIP, SIPExecution
from app.models.transaction import Transaction
from app.services.cost_basis import manual_edit_holding, record_transaction
from app.services.valuation import portfolio_summary, refresh_prices


def buy(session, user, bucket, symbol, qty, price, **kwargs):
    return record_transaction(
        session, user.id, bucket=bucket, symbol=symbol, name=symbol, qty=qty, price=price,
        transaction_type=TransactionType.ONE_TIME_PURCHASE, purchase_date=dt.date(2025, 4, 1), **kwargs,
    )


def test_refresh_counts_updated_failed_and_skipped(session, user, prices):
    prices.prices.update({"INFY": 1600.0})
    buy(session, user, InvestmentBucket.IND_STOCK, "INFY", 10, 1500.0)
    buy(session, user, InvestmentBucket.IND_STOCK, "TCS", 2, 3500.0)
    buy(session, user, InvestmentBucket.EMERGENCY_FUND, "FD-SBI", 1, 100000.0)

    result = refresh_prices(session, user.id, prices)

    assert (result.updated, result.failed, result.skipped) == (1, 1, 1)
    infy = session.exec(select(Holding).where(Holding.symbol == "INFY")).one()
    tcs = session.exec(select(Holding).where(Holding.symbol == "TCS")).one()
    assert infy.current_price == 1600.0
    assert tcs.current_price is None
    # Refresh never touches cost basis
    assert infy.avg_cost == 1500.0 and infy.qty == 10


def test_edited_holdings_still_get_fresh_prices(session, user, prices):
    tx = buy(session, user, InvestmentBucket.IND_STOCK, "INFY", 5, 1500.0)
    manual_edit_holding(session, user.id, tx.holding_id, edit_date=dt.date(2025, 4, 5), qty=6)
    prices.prices.update({"INFY": 1600.0})

    result = refresh_prices(session, user.id, prices)

    assert (result.updated, result.skipped) == (1, 0)
    holding = session.get(Holding, tx.holding_id)
    assert holding.current_price == 1600.0
    assert holding.qty == 6


def test_holdings_added_by_hand_are_refreshed(client, session, prices):
    created = client.post(
        "/investments/holdings/",
        json={"bucket": "IND_STOCK", "symbol": "tcs", "name": "TCS", "qty": 2, "avg_cost": 3500},
    ).json()
    client.put(f"/investments/holdings/{created['id']}", json={"avg_cost": 3400})
    prices.prices.update({"TCS": 3900.0})

    response = client.post("/investments/holdings/refresh-prices")

    assert response.status_code == 200
    assert response.json()["updated"] == 1
    assert session.get(Holding, created["id"]).current_price == 3900.0


def test_portfolio_values_usd_holdings_in_rupees(session, user):
    buy(session, user, InvestmentBucket.US_STOCK, "AAPL", 2, 100.0, currency=Currency.USD, usd_inr_rate=80.0,
        current_price=150.0)
    buy(session, user, InvestmentBucket.IND_STOCK, "INFY", 1, 1000.0, current_price=1100.0)

    summary = portfolio_summary(session, user.id, usd_inr_rate=85.0)

    assert summary.total_investment == pytest.approx(200 * 80 + 1000)
    assert summary.total_current_value == pytest.approx(300 * 85 + 1100)
    us = next(b for b in summary.buckets if b.bucket == InvestmentBucket.US_STOCK)
    assert us.holdings[0].pnl == pytest.approx(300 * 85 - 200 * 80)


def test_manual_holding_create_and_edit(client, session):
    created = client.post(
        "/investments/holdings/",
        json={"bucket": "IND_STOCK", "symbol": "hdfcbank", "name": "HDFC Bank", "qty": 10, "avg_cost": 1500},
    )
    assert created.status_code == 200
    holding = created.json()
    assert holding["symbol"] == "HDFCBANK"
    assert holding["is_manual"] is False

    edited = client.put(f"/investments/holdings/{holding['id']}", json={"qty": 12, "avg_cost": 1450})
    assert edited.status_code == 200
    assert edited.json()["qty"] == 12

    types = [t.transaction_type for t in session.exec(select(Transaction).order_by(Transaction.id)).all()]
    assert types == [TransactionType.MANUAL_ENTRY, TransactionType.MANUAL_EDIT]


def test_transaction_delete_endpoint_reports_holding_removal(client, session, user):
    tx = buy(session, user, InvestmentBucket.CRYPTO, "bitcoin", 0.01, 5000000.0)

    response = client.delete(f"/investments/transactions/{tx.id}")

    assert response.status_code == 200
    assert response.json()["holding_deleted"] is True
    assert session.exec(select(Holding)).all() == []


def test_transaction_edit_endpoint(client, session, user):
    first = buy(session, user, InvestmentBucket.IND_STOCK, "INFY", 4, 90.0)
    buy(session, user, InvestmentBucket.IND_STOCK, "INFY", 6, 110.0)

    response = client.patch(f"/investments/transactions/{first.id}", json={"qty": 2})

    assert response.status_code == 200
    holding = session.get(Holding, first.holding_id)
    session.refresh(holding)
    assert holding.qty == pytest.approx(8)


def test_deleting_over_a_manually_reduced_holding_is_refused(client, session, user):
    tx = buy(session, user, InvestmentBucket.IND_STOCK, "INFY", 5, 100.0)
    client.put(f"/investments/holdings/{tx.holding_id}", json={"qty": 1})

    response = client.delete(f"/investments/transactions/{tx.id}")

    assert response.status_code == 400
    assert "negative quantity" in response.json()["detail"]


def test_deleting_a_holding_detaches_its_history(client, session, user):
    tx = buy(session, user, InvestmentBucket.MUTUAL_FUND, "120716", 10, 250.0)
    sip = SIP(user_id=user.id, name="Index", amount=2500, start_date=dt.date(2025, 1, 1))
    session.add(sip)
    session.commit()
    execution = SIPExecution(sip_id=sip.id, user_id=user.id, holding_id=tx.holding_id,
                             execution_date=dt.date(2025, 4, 1), amount=2500)
    session.add(execution)
    session.commit()

    response = client.delete(f"/investments/holdings/{tx.holding_id}")

    assert response.status_code == 200
    session.refresh(execution)
    assert execution.holding_id is None
    assert session.get(Transaction, tx.id).holding_id is None


def test_refresh_prices_endpoint(client, session, user, prices):
    prices.prices["INFY"] = 1700.0
    buy(session, user, InvestmentBucket.IND_STOCK, "INFY", 1, 1500.0)

    response = client.post("/investments/holdings/refresh-prices")

    assert response.status_code == 200
    assert response.json()["updated"] == 1


def test_portfolio_endpoint_survives_missing_fx_rate(client, session, user, prices):
    prices.usd_inr = None
    buy(session, user, InvestmentBucket.US_STOCK, "AAPL", 1, 100.0, currency=Currency.USD, usd_inr_rate=82.0)

    response = client.get("/investments/holdings/")

    assert response.status_code == 200
    assert response.json()["total_investment"] == pytest.approx(8200)


def test_fx_rate_endpoint(client, prices):
    prices.usd_inr = 83.5
    body = client.get("/fx/rate", params={"from": "USD", "to": "INR"}).json()
    assert body["rate"] == 83.5
    assert client.get("/fx/rate", params={"from": "INR", "to": "INR"}).json()["rate"] == 1.0
