import datetime as dt

import pytest
from sqlmodel import select

from app.models.expense import Expense
from app.models.member import Member, MemberTransaction
from app.models.monthly_snapshot import MonthlySnapshot


@pytest.fixture
def member(session, user):
    member = Member(user_id=user.id, name="Kiran", relation="Roommate")
    session.add(member)
    session.commit()
    session.refresh(member)
    return member


def expense_payload(**overrides):
    payload = {"date": "2025-04-05", "title": "Dinner", "amount": 1200}
    payload.update(overrides)
    return payload


def test_partial_needs_portions_must_add_up(client, session):
    response = client.post(
        "/expenses/",
        json=expense_payload(category="PARTIAL_NEEDS", needs_portion=700, avoid_portion=400),
    )

    assert response.status_code == 422
    assert session.exec(select(Expense)).all() == []


def test_partial_needs_within_a_paisa_is_accepted(client):
    response = client.post(
        "/expenses/",
        json=expense_payload(category="PARTIAL_NEEDS", needs_portion=800.004, avoid_portion=400),
    )

    assert response.status_code == 200
    assert response.json()["needs_portion"] == pytest.approx(800.004)


def test_portions_are_dropped_for_other_categories(client):
    response = client.post("/expenses/", json=expense_payload(category="AVOID", needs_portion=5))

    assert response.status_code == 200
    assert response.json()["needs_portion"] is None


def test_paying_for_a_member_raises_their_balance(client, session, member):
    response = client.post(
        "/expenses/",
        json=expense_payload(member_id=member.id, paid_for_member=True),
    )

    assert response.status_code == 200
    session.refresh(member)
    assert member.current_balance == 1200
    entry = session.exec(select(MemberTransaction)).one()
    assert entry.expense_id == response.json()["id"]


def test_editing_an_expense_replaces_the_member_entry(client, session, member):
    created = client.post(
        "/expenses/",
        json=expense_payload(member_id=member.id, paid_for_member=True),
    ).json()

    response = client.put(
        f"/expenses/{created['id']}",
        json=expense_payload(amount=500, member_id=member.id, paid_by_member=True),
    )

    assert response.status_code == 200
    session.refresh(member)
    assert member.current_balance == -500
    entries = session.exec(select(MemberTransaction)).all()
    assert len(entries) == 1
    assert entries[0].transaction_type.value == "EXPENSE_PAID_BY_THEM"


def test_deleting_an_expense_reverses_the_member_balance(client, session, member):
    created = client.post(
        "/expenses/",
        json=expense_payload(member_id=member.id, paid_by_member=True),
    ).json()

    assert client.delete(f"/expenses/{created['id']}").status_code == 200

    session.refresh(member)
    assert member.current_balance == 0
    assert session.exec(select(MemberTransaction)).all() == []


def test_member_flags_need_a_member(client):
    response = client.post("/expenses/", json=expense_payload(paid_for_member=True))
    assert response.status_code == 422


def test_unknown_member_is_not_found(client, session):
    response = client.post("/expenses/", json=expense_payload(member_id=999, paid_for_member=True))

    assert response.status_code == 404
    session.rollback()
    assert session.exec(select(Expense)).all() == []


def test_expense_cannot_move_out_of_a_closed_month(client, session, user):
    expense = Expense(user_id=user.id, date=dt.date(2025, 3, 30), title="Internet", amount=999)
    session.add(expense)
    session.add(MonthlySnapshot(user_id=user.id, year=2025, month=3, is_closed=True))
    session.commit()

    response = client.put(f"/expenses/{expense.id}", json=expense_payload(date="2025-04-01"))

    assert response.status_code == 400
    assert "update expenses" in response.json()["detail"]


def test_member_detail_lists_entries(client, member):
    client.post("/expenses/", json=expense_payload(member_id=member.id, paid_for_member=True))

    response = client.get(f"/members/{member.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["current_balance"] == 1200
    assert len(body["transactions"]) == 1
