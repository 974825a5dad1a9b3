from conftest import make_user, bearer, PASSWORD


def _new_user(**over):
    body = dict(email="new@example.com", name="newbie", full_name="Nguyễn Mới", password="pass1234")
    body.update(over)
    return body


def test_admin_creates_user(client, admin_headers):
    r = client.post("/api/users", json=_new_user(phone="090 123 4567"), headers=admin_headers)
    assert r.status_code == 201
    user = r.get_json()["user"]
    assert user["email"] == "new@example.com"
    assert user["role"] == "EMPLOYEE"
    assert user["phone"] == "0901234567"
    # and can log in
    assert bearer(client, "new@example.com", "pass1234")

def test_employee_cannot_manage_users(client, employee_headers):
    assert client.get("/api/users", headers=employee_headers).status_code == 403
    assert client.post("/api/users", json=_new_user(), headers=employee_headers).status_code == 403

def test_create_user_validation(client, admin_headers):
    r = client.post("/api/users", json=_new_user(email="not-an-email"), headers=admin_headers)
    assert r.status_code == 400
    assert r.get_json() == {"ok": False, "errors": {"email": "Invalid email address"}}

    r = client.post("/api/users", json=_new_user(password="123"), headers=admin_headers)
    assert r.status_code == 400
    assert "password" in r.get_json()["errors"]

    r = client.post("/api/users", json=_new_user(role="OWNER"), headers=admin_headers)
    assert r.status_code == 400
    assert "role" in r.get_json()["errors"]

def test_create_user_duplicate_email(client, admin_headers):
    assert client.post("/api/users", json=_new_user(), headers=admin_headers).status_code == 201
    r = client.post("/api/users", json=_new_user(name="other"), headers=admin_headers)
    assert r.status_code == 409

def test_list_users_search_and_pagination(app, client, admin_headers):
    for i in range(3):
        make_user(app, email=f"tho{i}@example.com", name=f"tho{i}")
    r = client.get("/api/users?search=tho&limit=2", headers=admin_headers)
    body = r.get_json()
    assert r.status_code == 200
    assert len(body["rows"]) == 2
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

def test_update_user_profile_and_role(app, client, admin_headers):
    uid = make_user(app, email="e1@example.com", name="e1")
    r = client.put(f"/api/users/{uid}", json={"role": "ADMIN", "department": "Kỹ thuật"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.get_json()["user"]["role"] == "ADMIN"
    assert r.get_json()["user"]["department"] == "Kỹ thuật"

def test_admin_cannot_demote_or_deactivate_self(client, admin_id, admin_headers):
    r = client.put(f"/api/users/{admin_id}", json={"role": "EMPLOYEE"}, headers=admin_headers)
    assert r.status_code == 400 and "role" in r.get_json()["errors"]
    r = client.put(f"/api/users/{admin_id}/toggle-status", headers=admin_headers)
    assert r.status_code == 400
    r = client.delete(f"/api/users/{admin_id}", headers=admin_headers)
    assert r.status_code == 400

def test_toggle_status_blocks_login(app, client, admin_headers):
    uid = make_user(app, email="e2@example.com", name="e2")
    r = client.put(f"/api/users/{uid}/toggle-status", headers=admin_headers)
    assert r.status_code == 200 and r.get_json()["user"]["is_active"] is False
    r = client.post("/api/auth/login", json={"email": "e2@example.com", "password": PASSWORD})
    assert r.status_code == 401

def test_delete_user(app, client, admin_headers):
    uid = make_user(app, email="e3@example.com", name="e3")
    assert client.delete(f"/api/users/{uid}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/users/{uid}", headers=admin_headers).status_code == 404

def test_change_own_password_requires_current(client, employee_id, employee_headers):
    url = f"/api/users/{employee_id}/change-password"
    r = client.put(url, json={"current_password": "wrong", "new_password": "brandnew1"}, headers=employee_headers)
    assert r.status_code == 400
    assert r.get_json()["errors"] == {"current_password": "Current password is incorrect"}

    r = client.put(url, json={"current_password": PASSWORD, "new_password": "brandnew1"}, headers=employee_headers)
    assert r.status_code == 200
    assert bearer(client, "staff@example.com", "brandnew1")

def test_employee_cannot_change_others_password(app, client, employee_headers):
    uid = make_user(app, email="e4@example.com", name="e4")
    r = client.put(f"/api/users/{uid}/change-password", json={"new_password": "brandnew1"}, headers=employee_headers)
    assert r.status_code == 403

def test_admin_resets_password_without_current(app, client, admin_headers):
    uid = make_user(app, email="e5@example.com", name="e5")
    r = client.put(f"/api/users/{uid}/change-password", json={"new_password": "reset1234"}, headers=admin_headers)
    assert r.status_code == 200
    assert bearer(client, "e5@example.com", "reset1234")
