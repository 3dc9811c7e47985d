import datetime as dt

from app.models.monthly_snapshot import MonthlySnapshot


def create_loan(client, **overrides):
    payload = {
        "name": "Bike loan",
        "principal_amount": 60000,
        "emi_amount": 5500,
        "interest_rate": 9.5,
        "tenure": 12,
        "start_date": "2025-01-31",
    }
    payload.update(overrides)
    return client.post("/loans/", json=payload)


def test_creating_a_loan_generates_its_emi_schedule(client):
    response = create_loan(client)

    assert response.status_code == 200
    loan = response.json()
    assert loan["current_outstanding"] == 60000
    emis = loan["emis"]
    assert [e["installment_number"] for e in emis] == list(range(1, 13))
    assert emis[0]["due_date"] == "2025-01-31"
    assert emis[1]["due_date"] == "2025-02-28"
    assert emis[-1]["due_date"] == "2025-12-31"


def test_paying_an_emi_reduces_outstanding(client):
    loan = create_loan(client).json()
    emi_id = loan["emis"][0]["id"]

    paid = client.post(f"/loans/{loan['id']}/emis/{emi_id}/pay", json={"paid_date": "2025-04-02"})

    assert paid.status_code == 200
    assert paid.json()["current_outstanding"] == 54500
    assert paid.json()["emis"][0]["is_paid"] is True

    again = client.post(f"/loans/{loan['id']}/emis/{emi_id}/pay", json={})
    assert again.status_code == 400


def test_outstanding_never_goes_negative(client):
    loan = create_loan(client, current_outstanding=3000).json()

    paid = client.post(f"/loans/{loan['id']}/emis/{loan['emis'][0]['id']}/pay", json={}).json()

    assert paid["current_outstanding"] == 0


def test_emi_payment_in_a_closed_month_is_rejected(client, session, user):
    session.add(MonthlySnapshot(user_id=user.id, year=2025, month=3, is_closed=True,
                                closed_at=dt.datetime(2025, 4, 1)))
    session.commit()
    loan = create_loan(client).json()

    response = client.post(
        f"/loans/{loan['id']}/emis/{loan['emis'][0]['id']}/pay",
        json={"paid_date": "2025-03-05"},
    )

    assert response.status_code == 400
    assert "pay EMIs" in response.json()["detail"]


def test_closing_a_loan(client):
    loan = create_loan(client).json()

    closed = client.post(f"/loans/{loan['id']}/close", json={})

    assert closed.status_code == 200
    assert closed.json()["is_closed"] is True
    assert closed.json()["closed_at"] == "2025-04-10"
    assert closed.json()["current_outstanding"] == 0
    assert client.post(f"/loans/{loan['id']}/close", json={}).status_code == 400


def test_loan_feeds_the_current_month_preview(client):
    create_loan(client, start_date="2025-01-01")
    client.post("/profile/salary/", json={"monthly": 70000, "effective_from": "2025-01-01"})

    preview = client.get("/monthly-snapshots/current").json()

    assert (preview["year"], preview["month"]) == (2025, 4)
    assert preview["total_loans"] == 5500
    assert preview["available_amount"] == 64500
    assert preview["is_closed"] is False
