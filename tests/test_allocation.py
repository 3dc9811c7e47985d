import datetime as dt

import pytest
from sqlmodel import select

from app.core.errors import AllocationExceededError, NotFoundError, ValidationError
from app.models.allocation import InvestmentAllocation
from app.models.enums import AllocationType, InvestmentBucket, SIPFrequency, TransactionType
from app.models.holding import Holding
from app.models.loan import Loan
from app.models.salary import SalaryRecord
from app.models.sip import SIP
from app.models.transaction import Transaction
from app.services.allocation import (
    available_for_investment,
    bucket_availability,
    ensure_purchase_fits,
    replace_allocations,
)
from app.services.cost_basis import record_transaction

TODAY = dt.date(2025, 4, 10)

MF = InvestmentBucket.MUTUAL_FUND


@pytest.fixture
def headroom_setup(session, user):
    """₹10,000 allocation, ₹4,000 SIP, ₹3,000 already bought this month."""
    session.add(InvestmentAllocation(user_id=user.id, bucket=MF, allocation_type=AllocationType.AMOUNT,
                                     custom_amount=10000))
    session.add(SIP(user_id=user.id, name="Flexi cap", bucket=MF, amount=4000, start_date=dt.date(2025, 1, 5)))
    session.commit()
    record_transaction(
        session, user.id, bucket=MF, symbol="120503", name="Flexi cap", qty=30, price=100.0,
        transaction_type=TransactionType.ONE_TIME_PURCHASE, purchase_date=dt.date(2025, 4, 3),
    )


def test_headroom_subtracts_sips_and_this_months_purchases(session, user, headroom_setup):
    availability = bucket_availability(session, user.id, MF, TODAY)

    assert availability.total_allocation == 10000
    assert availability.existing_sips == 4000
    assert availability.available_for_one_time == 6000
    assert availability.used_this_month == 3000
    assert availability.remaining == 3000


def test_purchase_beyond_headroom_is_rejected_with_figures(session, user, headroom_setup):
    availability = bucket_availability(session, user.id, MF, TODAY)

    with pytest.raises(AllocationExceededError) as exc_info:
        ensure_purchase_fits(availability, 3500)

    message = exc_info.value.message
    assert "₹10,000.00" in message
    assert "₹7,000.00" in message
    assert "₹3,000.00" in message
    ensure_purchase_fits(availability, 2500)


def test_last_months_purchases_do_not_count(session, user, headroom_setup):
    record_transaction(
        session, user.id, bucket=MF, symbol="120503", name="Flexi cap", qty=10, price=100.0,
        transaction_type=TransactionType.ONE_TIME_PURCHASE, purchase_date=dt.date(2025, 3, 31),
    )
    assert bucket_availability(session, user.id, MF, TODAY).remaining == 3000


def test_yearly_sips_count_as_a_monthly_equivalent(session, user, headroom_setup):
    session.add(SIP(user_id=user.id, name="Yearly top-up", bucket=MF, amount=12000,
                    frequency=SIPFrequency.YEARLY, start_date=dt.date(2025, 1, 5)))
    session.commit()

    assert bucket_availability(session, user.id, MF, TODAY).existing_sips == 5000


def test_percentage_allocation_uses_after_tax_minus_emis(session, user):
    session.add(SalaryRecord(user_id=user.id, monthly=100000, effective_from=dt.date(2024, 1, 1)))
    session.add(Loan(user_id=user.id, name="Home", principal_amount=1000000, emi_amount=20000, tenure=120,
                     start_date=dt.date(2024, 6, 1), current_outstanding=900000))
    session.add(InvestmentAllocation(user_id=user.id, bucket=MF, percent=25))
    session.commit()

    assert available_for_investment(session, user.id, TODAY) == 80000
    assert bucket_availability(session, user.id, MF, TODAY).total_allocation == 20000


def test_missing_allocation_is_not_found(session, user):
    with pytest.raises(NotFoundError):
        bucket_availability(session, user.id, InvestmentBucket.CRYPTO, TODAY)


def test_replace_allocations_swaps_the_whole_set(session, user):
    replace_allocations(session, user.id, [InvestmentAllocation(bucket=MF, percent=60)])
    replace_allocations(
        session,
        user.id,
        [
            InvestmentAllocation(bucket=InvestmentBucket.IND_STOCK, percent=30),
            InvestmentAllocation(bucket=InvestmentBucket.CRYPTO, allocation_type=AllocationType.AMOUNT,
                                 custom_amount=2000),
        ],
    )

    rows = session.exec(select(InvestmentAllocation).where(InvestmentAllocation.user_id == user.id)).all()
    assert {r.bucket for r in rows} == {InvestmentBucket.IND_STOCK, InvestmentBucket.CRYPTO}


def test_percentages_over_one_hundred_are_rejected(session, user):
    replace_allocations(session, user.id, [InvestmentAllocation(bucket=MF, percent=60)])

    with pytest.raises(ValidationError):
        replace_allocations(
            session,
            user.id,
            [
                InvestmentAllocation(bucket=MF, percent=60),
                InvestmentAllocation(bucket=InvestmentBucket.IND_STOCK, percent=50),
            ],
        )

    session.rollback()
    rows = session.exec(select(InvestmentAllocation)).all()
    assert [(r.bucket, r.percent) for r in rows] == [(MF, 60)]


def test_one_time_purchase_endpoint_enforces_headroom(client, session, headroom_setup):
    rejected = client.post(
        "/investments/one-time/",
        json={"bucket": "MUTUAL_FUND", "symbol": "120503", "name": "Flexi cap", "qty": 35, "price": 100},
    )
    assert rejected.status_code == 400
    assert "MUTUAL_FUND bucket allocation" in rejected.json()["detail"]

    accepted = client.post(
        "/investments/one-time/",
        json={"bucket": "MUTUAL_FUND", "symbol": "120503", "name": "Flexi cap", "qty": 25, "price": 100},
    )
    assert accepted.status_code == 200
    assert accepted.json()["transaction_type"] == "ONE_TIME_PURCHASE"

    purchases = session.exec(
        select(Transaction).where(Transaction.transaction_type == TransactionType.ONE_TIME_PURCHASE)
    ).all()
    assert len(purchases) == 2


def test_one_time_purchase_stores_the_current_price(client, session, prices, headroom_setup):
    prices.prices["120503"] = 104.5

    response = client.post(
        "/investments/one-time/",
        json={"bucket": "MUTUAL_FUND", "symbol": "120503", "name": "Flexi cap", "qty": 10, "price": 100},
    )

    assert response.status_code == 200
    holding = session.get(Holding, response.json()["holding_id"])
    assert holding.current_price == 104.5


def test_one_time_purchase_without_a_price_still_goes_through(client, session, headroom_setup):
    response = client.post(
        "/investments/one-time/",
        json={"bucket": "MUTUAL_FUND", "symbol": "999999", "name": "New fund", "qty": 10, "price": 100},
    )

    assert response.status_code == 200
    assert session.get(Holding, response.json()["holding_id"]).current_price is None


def test_backdated_purchase_is_checked_against_its_own_month(client, headroom_setup):
    # March has no one-time purchases yet: 10,000 - 4,000 SIP = 6,000 of room
    payload = {"bucket": "MUTUAL_FUND", "symbol": "120503", "name": "Flexi cap", "price": 100,
               "purchase_date": "2025-03-20"}

    rejected = client.post("/investments/one-time/", json={**payload, "qty": 65})
    accepted = client.post("/investments/one-time/", json={**payload, "qty": 50})

    assert rejected.status_code == 400
    assert accepted.status_code == 200
    assert accepted.json()["purchase_date"] == "2025-03-20"


def test_allocations_endpoint_round_trip(client):
    response = client.post(
        "/investments/allocations/",
        json={"allocations": [{"bucket": "MUTUAL_FUND", "percent": 40},
                              {"bucket": "US_STOCK", "allocation_type": "AMOUNT", "custom_amount": 5000}]},
    )
    assert response.status_code == 200

    availability = client.get("/investments/allocations/availability").json()
    assert {a["bucket"] for a in availability} == {"MUTUAL_FUND", "US_STOCK"}
    us = next(a for a in availability if a["bucket"] == "US_STOCK")
    assert us["remaining"] == 5000
