from suanha.extensions import db
from suanha.models import Quotation


def _customer(**over):
    body = dict(
        customer_name="Nguyễn Văn An",
        phone="0901-234-567",
        email="An@Example.com",
        addresses=[
            dict(name="Nhà riêng", address="12 Lê Lợi, Quận 1"),
            dict(name="Văn phòng", address="45 Nguyễn Huệ, Quận 1", is_main=True),
            dict(name="", address="   "),
        ],
    )
    body.update(over)
    return body


def _create(client, headers, **over):
    r = client.post("/api/customers", json=_customer(**over), headers=headers)
    assert r.status_code == 201, r.get_json()
    return r.get_json()["customer"]


def test_create_customer_normalizes_fields(client, employee_headers):
    c = _create(client, employee_headers)
    assert c["phone"] == "0901234567"
    assert c["email"] == "an@example.com"
    # blank address row dropped; flagged row is the single main address
    assert [a["name"] for a in c["addresses"]] == ["Nhà riêng", "Văn phòng"]
    assert [a["is_main"] for a in c["addresses"]] == [False, True]

def test_first_address_becomes_main_when_none_flagged(client, employee_headers):
    c = _create(client, employee_headers, addresses=[dict(address="1 Hai Bà Trưng"), dict(address="2 Pasteur")])
    assert [a["is_main"] for a in c["addresses"]] == [True, False]
    assert c["addresses"][0]["name"] == "Main"

def test_create_customer_requires_name_and_phone(client, employee_headers):
    r = client.post("/api/customers", json={"phone": "0901234567"}, headers=employee_headers)
    assert r.status_code == 400 and "customer_name" in r.get_json()["errors"]
    r = client.post("/api/customers", json={"customer_name": "X", "phone": "12"}, headers=employee_headers)
    assert r.status_code == 400 and r.get_json()["errors"] == {"phone": "Invalid phone number"}

def test_customers_require_login(client):
    assert client.get("/api/customers").status_code == 401

def test_list_and_search_customers(client, employee_headers):
    _create(client, employee_headers)
    _create(client, employee_headers, customer_name="Trần Thị Bình", company_name="Bình Minh Co", phone="0912345678")
    r = client.get("/api/customers?search=bình minh", headers=employee_headers)
    body = r.get_json()
    assert body["pagination"]["total"] == 1
    assert body["rows"][0]["customer_name"] == "Trần Thị Bình"
    assert body["rows"][0]["quotations"] == []

def test_update_customer_keeps_matched_addresses(app, client, employee_headers):
    c = _create(client, employee_headers)
    home, office = c["addresses"]
    r = client.put(
        f"/api/customers/{c['id']}",
        json={"memo": "Gọi trước 30 phút", "addresses": [
            dict(id=home["id"], name="Nhà", address=home["address"], is_main=True),
            dict(name="Kho", address="7 QL13"),
        ]},
        headers=employee_headers,
    )
    assert r.status_code == 200
    out = r.get_json()["customer"]
    assert out["memo"] == "Gọi trước 30 phút"
    assert out["addresses"][0]["id"] == home["id"]
    assert out["addresses"][0]["name"] == "Nhà"
    assert office["id"] not in [a["id"] for a in out["addresses"]]
    assert len(out["addresses"]) == 2

def test_get_customer_includes_quotations(app, client, employee_headers):
    c = _create(client, employee_headers)
    r = client.post("/api/quotations", json={"customer_id": c["id"], "title": "Sửa điện"}, headers=employee_headers)
    assert r.status_code == 201
    r = client.get(f"/api/customers/{c['id']}", headers=employee_headers)
    assert [q["title"] for q in r.get_json()["customer"]["quotations"]] == ["Sửa điện"]

def test_delete_customer_blocked_by_quotations(app, client, employee_headers):
    c = _create(client, employee_headers)
    client.post("/api/quotations", json={"customer_id": c["id"]}, headers=employee_headers)
    r = client.delete(f"/api/customers/{c['id']}", headers=employee_headers)
    assert r.status_code == 409

    with app.app_context():
        db.session.query(Quotation).delete()
        db.session.commit()
    assert client.delete(f"/api/customers/{c['id']}", headers=employee_headers).status_code == 200
    assert client.get(f"/api/customers/{c['id']}", headers=employee_headers).status_code == 404
