def _category(client, headers, **over):
    body = dict(name="Điện", items=[
        dict(item_name="Thay ổ cắm", unit="cái", base_cost=850000),
        dict(item_name="Công đi dây", unit="m", unit_price=45000, labor_hours=0.5),
    ])
    body.update(over)
    r = client.post("/api/prices/categories", json=body, headers=headers)
    assert r.status_code == 201, r.get_json()
    return r.get_json()["category"]


def test_calculate_default_markups(client, employee_headers):
    r = client.post("/api/prices/calculate", json={"base_cost": 850000}, headers=employee_headers)
    assert r.status_code == 200
    b = r.get_json()["breakdown"]
    assert b["after_personal_income_tax"] == 935000
    assert b["after_profit"] == 1215500
    assert b["final_price_vat_inclusive"] == 1313000
    assert b["net_price_vat_exclusive"] == 1216000
    assert b["vat_amount"] == 97500

def test_calculate_with_overrides(client, employee_headers):
    r = client.post(
        "/api/prices/calculate",
        json={"base_cost": "100000", "personal_income_tax_rate": 0, "profit_rate": 0, "vat_rate": 10},
        headers=employee_headers,
    )
    b = r.get_json()["breakdown"]
    assert b["final_price_vat_inclusive"] == 110000
    assert b["rates"]["vat_rate"] == 10.0

def test_calculate_negative_base_cost(client, employee_headers):
    r = client.post("/api/prices/calculate", json={"base_cost": -1}, headers=employee_headers)
    assert r.status_code == 400
    assert "base_cost" in r.get_json()["errors"]

def test_calculate_requires_login(client):
    assert client.post("/api/prices/calculate", json={"base_cost": 1}).status_code == 401

def test_defaults_follow_config(app, client, employee_headers):
    app.config["PRICE_DEFAULT_VAT_RATE"] = 10
    try:
        r = client.get("/api/prices/defaults", headers=employee_headers)
        assert r.get_json()["rates"] == {"personal_income_tax_rate": 10.0, "profit_rate": 30.0, "vat_rate": 10.0}
    finally:
        app.config["PRICE_DEFAULT_VAT_RATE"] = 8

def test_create_category_prices_items_from_base_cost(client, admin_headers, admin_id):
    c = _category(client, admin_headers)
    assert c["creator"]["id"] == admin_id
    by_name = {i["item_name"]: i for i in c["items"]}
    assert by_name["Thay ổ cắm"]["unit_price"] == 1216000
    assert by_name["Thay ổ cắm"]["base_cost"] == 850000
    assert by_name["Công đi dây"]["unit_price"] == 45000
    assert by_name["Công đi dây"]["base_cost"] is None

def test_create_category_reports_item_errors(client, admin_headers):
    r = client.post(
        "/api/prices/categories",
        json={"name": "Nước", "items": [dict(item_name="Vòi", unit="bộ")]},
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert r.get_json()["errors"] == {"items[0].unit_price": "Unit price or base cost is required"}

def test_employee_reads_but_cannot_write_catalog(client, admin_headers, employee_headers):
    _category(client, admin_headers)
    r = client.get("/api/prices/categories", headers=employee_headers)
    assert r.status_code == 200 and r.get_json()["pagination"]["total"] == 1
    r = client.post("/api/prices/categories", json={"name": "X"}, headers=employee_headers)
    assert r.status_code == 403

def test_item_crud_and_breakdown(client, admin_headers):
    c = _category(client, admin_headers, items=[])
    r = client.post(
        "/api/prices/items",
        json=dict(category_id=c["id"], item_name="Chống thấm", unit="m2", base_cost=180000, profit_rate=20),
        headers=admin_headers,
    )
    assert r.status_code == 201
    item, breakdown = r.get_json()["item"], r.get_json()["breakdown"]
    # 180000 * 1.1 * 1.2 = 237600 -> 238000
    assert item["unit_price"] == 238000
    assert breakdown["after_profit"] == 237600

    r = client.put(f"/api/prices/items/{item['id']}", json={"unit_price": 250000}, headers=admin_headers)
    assert r.status_code == 200
    assert r.get_json()["item"]["unit_price"] == 250000
    assert r.get_json()["item"]["base_cost"] is None
    assert r.get_json()["breakdown"] is None

    assert client.delete(f"/api/prices/items/{item['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/prices/items/{item['id']}", headers=admin_headers).status_code == 404

def test_create_item_unknown_category(client, admin_headers):
    r = client.post(
        "/api/prices/items",
        json=dict(category_id=999, item_name="X", unit="cái", unit_price=1000),
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert "category_id" in r.get_json()["errors"]

def test_list_items_filters(client, admin_headers, employee_headers):
    c = _category(client, admin_headers)
    other = _category(client, admin_headers, name="Nước", items=[dict(item_name="Thay vòi sen", unit="bộ", unit_price=350000)])
    r = client.get(f"/api/prices/items?category_id={other['id']}", headers=employee_headers)
    assert [i["item_name"] for i in r.get_json()["rows"]] == ["Thay vòi sen"]
    r = client.get("/api/prices/items?search=ổ cắm", headers=employee_headers)
    assert [i["category_id"] for i in r.get_json()["rows"]] == [c["id"]]

def test_recalculate_item_with_new_markups(client, admin_headers):
    c = _category(client, admin_headers)
    item = next(i for i in c["items"] if i["base_cost"] is not None)
    r = client.post(
        f"/api/prices/items/{item['id']}/recalculate",
        json={"profit_rate": 0, "personal_income_tax_rate": 0},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.get_json()["item"]["unit_price"] == 850000

def test_recalculate_item_without_base_cost(client, admin_headers):
    c = _category(client, admin_headers)
    item = next(i for i in c["items"] if i["base_cost"] is None)
    r = client.post(f"/api/prices/items/{item['id']}/recalculate", json={}, headers=admin_headers)
    assert r.status_code == 400

def test_delete_category_detaches_quotation_lines(client, admin_headers, employee_headers):
    c = _category(client, admin_headers)
    item = c["items"][0]
    cust = client.post(
        "/api/customers", json={"customer_name": "Khách", "phone": "0901234567"}, headers=employee_headers
    ).get_json()["customer"]
    q = client.post("/api/quotations", json={
        "customer_id": cust["id"],
        "items": [dict(category_id=c["id"], price_item_id=item["id"], item_name=item["item_name"],
                       quantity=1, unit_price=item["unit_price"])],
    }, headers=employee_headers).get_json()["quotation"]

    assert client.delete(f"/api/prices/categories/{c['id']}", headers=admin_headers).status_code == 200
    line = client.get(f"/api/quotations/{q['id']}", headers=employee_headers).get_json()["quotation"]["items"][0]
    assert line["category_id"] is None and line["price_item_id"] is None
    assert line["item_name"] == item["item_name"]
    assert line["amount"] == item["unit_price"]
