from datetime import datetime, timezone

from suanha.extensions import db
from suanha.models import Quotation
from suanha.services.quotations import dashboard_summary
from conftest import make_user


def _customer(client, headers):
    return client.post(
        "/api/customers", json={"customer_name": "Phạm Dũng", "phone": "0900000001"}, headers=headers
    ).get_json()["customer"]


def test_summary_counts_and_revenue(client, employee_headers):
    cust = _customer(client, employee_headers)
    item = [{"item_name": "Sơn lại cửa", "quantity": 1, "unit_price": 100000}]
    for status in ("DRAFT", "REVIEWED", "CONTRACTED", "CONTRACTED", "CANCELLED"):
        r = client.post(
            "/api/quotations", json={"customer_id": cust["id"], "status": status, "items": item},
            headers=employee_headers,
        )
        assert r.status_code == 201

    r = client.get("/api/dashboard/summary", headers=employee_headers)
    assert r.status_code == 200
    body = r.get_json()
    assert body["today_quotations"] == 5
    assert body["monthly_quotations"] == 5
    assert body["pending_quotations"] == 2
    # two contracted quotations at 126500 each
    assert body["total_revenue"] == 253000
    assert body["customer_count"] == 1
    assert len(body["recent_quotations"]) == 5
    assert body["recent_quotations"][0]["customer"]["customer_name"] == "Phạm Dũng"

def test_summary_empty(client, employee_headers):
    body = client.get("/api/dashboard/summary", headers=employee_headers).get_json()
    assert body["today_quotations"] == 0 and body["total_revenue"] == 0
    assert body["recent_quotations"] == []

def test_summary_requires_login(client):
    assert client.get("/api/dashboard/summary").status_code == 401

def test_summary_excludes_older_months(app, client, employee_headers):
    cust = _customer(client, employee_headers)
    with app.app_context():
        db.session.add(Quotation(
            quotation_number="QT-20200101-001", customer_id=cust["id"], status="DRAFT",
            created_at=datetime(2020, 1, 1, 8, 0, tzinfo=timezone.utc),
        ))
        db.session.commit()
        summary = dashboard_summary(db.session, now=datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc))
    assert summary["monthly_quotations"] == 0
    assert summary["pending_quotations"] == 1

def test_summary_counts_active_and_inactive_users(app, client, employee_headers):
    make_user(app, email="off@example.com", name="off", is_active=False)
    make_user(app, email="tho@example.com", name="tho")
    body = client.get("/api/dashboard/summary", headers=employee_headers).get_json()
    # staff + tho active, off disabled
    assert (body["active_users"], body["inactive_users"]) == (2, 1)
