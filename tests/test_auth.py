from conftest import make_user, bearer, PASSWORD


def test_login_returns_token_and_user(app, client, employee_id):
    r = client.post("/api/auth/login", json={"email": "STAFF@example.com", "password": PASSWORD})
    assert r.status_code == 200
    body = r.get_json()
    assert body["ok"] is True and body["token"]
    assert body["user"]["id"] == employee_id
    assert body["user"]["role"] == "EMPLOYEE"
    assert "password_hash" not in body["user"]

def test_login_missing_fields(client):
    r = client.post("/api/auth/login", json={"email": "x@example.com"})
    assert r.status_code == 400
    assert r.get_json()["ok"] is False

def test_login_wrong_password(client, employee_id):
    r = client.post("/api/auth/login", json={"email": "staff@example.com", "password": "nope-nope"})
    assert r.status_code == 401
    assert r.get_json()["errors"]["__all__"] == "Invalid credentials"

def test_login_inactive_user_rejected(app, client):
    make_user(app, email="gone@example.com", name="gone", is_active=False)
    r = client.post("/api/auth/login", json={"email": "gone@example.com", "password": PASSWORD})
    assert r.status_code == 401

def test_me_with_bearer_token(client, employee_headers):
    r = client.get("/api/auth/me", headers=employee_headers)
    assert r.status_code == 200
    assert r.get_json()["user"]["email"] == "staff@example.com"

def test_me_without_token(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.get_json() == {"error": "unauthorized", "code": 401}

def test_me_with_garbage_token(client):
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401

def test_token_rejected_after_deactivation(app, client, employee_id, employee_headers):
    from suanha.extensions import db
    from suanha.models import User
    with app.app_context():
        db.session.get(User, employee_id).is_active = False
        db.session.commit()
    r = client.get("/api/auth/me", headers=employee_headers)
    assert r.status_code == 401

def test_token_signed_with_other_secret_rejected(app, client, employee_id):
    headers = bearer(app.test_client(), "staff@example.com")
    old = app.config["SECRET_KEY"]
    app.config["SECRET_KEY"] = "rotated"
    try:
        assert client.get("/api/auth/me", headers=headers).status_code == 401
    finally:
        app.config["SECRET_KEY"] = old

def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200 and r.get_json() == {"status": "ok"}

def test_unknown_route_is_json_404(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert r.get_json()["error"] == "not_found"
