import datetime as dt

from sqlmodel import select

from app.models.salary import SalaryRecord


def test_new_salary_closes_the_previous_period(client, session):
    client.post("/profile/salary/", json={"monthly": 80000, "effective_from": "2025-01-01"})
    response = client.post("/profile/salary/", json={"monthly": 90000})

    assert response.status_code == 200
    assert response.json()["effective_from"] == "2025-04-10"

    records = session.exec(select(SalaryRecord).order_by(SalaryRecord.effective_from)).all()
    assert records[0].effective_to == dt.date(2025, 4, 10)
    assert records[1].effective_to is None
    assert client.get("/profile/salary/current").json()["monthly"] == 90000


def test_salary_cannot_start_before_the_current_one(client):
    client.post("/profile/salary/", json={"monthly": 80000, "effective_from": "2025-03-01"})
    response = client.post("/profile/salary/", json={"monthly": 90000, "effective_from": "2025-02-01"})
    assert response.status_code == 400


def test_tax_setting_requires_fields_for_its_mode(client):
    assert client.put("/tax/", json={"mode": "HYBRID", "percentage": 10}).status_code == 422

    saved = client.put("/tax/", json={"mode": "HYBRID", "percentage": 10, "fixed_amount": 2000})
    assert saved.status_code == 200
    assert client.get("/tax/").json()["fixed_amount"] == 2000


def test_tax_and_salary_drive_the_preview(client):
    client.post("/profile/salary/", json={"monthly": 100000, "effective_from": "2025-01-01"})
    client.put("/tax/", json={"mode": "FIXED", "fixed_amount": 12000})
    client.post("/expenses/", json={"date": "2025-04-03", "title": "Rent", "amount": 25000})

    preview = client.get("/monthly-snapshots/current").json()

    assert preview["after_tax"] == 88000
    assert preview["surplus_amount"] == 63000


def test_refresh_and_list_snapshots(client):
    refreshed = client.post("/monthly-snapshots/current/refresh")
    assert refreshed.status_code == 200
    assert refreshed.json()["is_closed"] is False

    listed = client.get("/monthly-snapshots/").json()
    assert [(s["year"], s["month"]) for s in listed] == [(2025, 4)]
    assert client.get("/monthly-snapshots/2025/4").status_code == 200
    assert client.get("/monthly-snapshots/2025/5").status_code == 404


def test_sip_crud_reports_monthly_equivalent(client):
    created = client.post(
        "/sips/",
        json={"name": "Gold", "amount": 12000, "frequency": "YEARLY", "start_date": "2025-02-01", "symbol": " goldbees "},
    )
    assert created.status_code == 200
    assert created.json()["monthly_equivalent"] == 1000
    assert created.json()["symbol"] == "GOLDBEES"

    assert client.post(
        "/sips/", json={"name": "Odd", "amount": 100, "frequency": "CUSTOM", "start_date": "2025-02-01"}
    ).status_code == 422

    sip_id = created.json()["id"]
    assert client.put(f"/sips/{sip_id}", json={"amount": 24000}).json()["monthly_equivalent"] == 2000
    assert client.delete(f"/sips/{sip_id}").status_code == 200
    assert client.get("/sips/").json() == []
