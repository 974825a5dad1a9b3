import os
# Ensure the app factory picks the Testing config & SQLite memory DB
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///:memory:")

import pytest
from suanha import create_app
from suanha.extensions import db
from suanha.models import User
from suanha.models.user import ROLE_ADMIN, ROLE_EMPLOYEE

PASSWORD = "secret123"

@pytest.fixture(scope="session")
def app():
    app = create_app()
    app.config.update(
        TESTING=True,
        SECRET_KEY="test-secret",
    )
    with app.app_context():
        db.create_all()
        db.session.expire_on_commit = False
    yield app
    with app.app_context():
        db.drop_all()

@pytest.fixture()
def client(app):
    return app.test_client()

@pytest.fixture(autouse=True)
def _db_clean(app):
    # Clean BEFORE each test
    with app.app_context():
        db.session.rollback()
        for tbl in reversed(db.metadata.sorted_tables):
            db.session.execute(tbl.delete())
        db.session.commit()
    yield
    # And AFTER each test (keeps state hermetic even if a test fails mid-transaction)
    with app.app_context():
        db.session.rollback()
        for tbl in reversed(db.metadata.sorted_tables):
            db.session.execute(tbl.delete())
        db.session.commit()


def make_user(app, *, email, name, role=ROLE_EMPLOYEE, password=PASSWORD, is_active=True):
    with app.app_context():
        u = User(email=email, name=name, full_name=name.title(), role=role, is_active=is_active)
        u.set_password(password)
        db.session.add(u)
        db.session.commit()
        return u.id

def bearer(client, email, password=PASSWORD):
    r = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.get_json()
    return {"Authorization": f"Bearer {r.get_json()['token']}"}

@pytest.fixture()
def admin_id(app):
    return make_user(app, email="admin@example.com", name="admin", role=ROLE_ADMIN)

@pytest.fixture()
def employee_id(app):
    return make_user(app, email="staff@example.com", name="staff", role=ROLE_EMPLOYEE)

@pytest.fixture()
def admin_headers(app, admin_id):
    # Fresh client: login_user() also sets a session cookie we don't want leaking into `client`
    return bearer(app.test_client(), "admin@example.com")

@pytest.fixture()
def employee_headers(app, employee_id):
    return bearer(app.test_client(), "staff@example.com")
