from suanha.extensions import db
from suanha.models import User, PriceCategory, PriceItem, Customer


def test_bootstrap_admin_once(app):
    runner = app.test_cli_runner()
    args = ["bootstrap", "admin", "--email", "Boss@Example.com", "--name", "boss", "--password", "secret123"]
    r = runner.invoke(args=args)
    assert r.exit_code == 0, r.output
    assert "Bootstrap complete" in r.output
    with app.app_context():
        u = db.session.query(User).filter_by(email="boss@example.com").one()
        assert u.role == "ADMIN" and u.full_name == "boss"

    r = runner.invoke(args=args)
    assert r.exit_code != 0
    assert "already exists" in r.output

def test_users_create_and_set_role(app):
    runner = app.test_cli_runner()
    r = runner.invoke(args=["users", "create", "--email", "tho@example.com", "--name", "tho", "--password", "secret123"])
    assert r.exit_code == 0, r.output
    r = runner.invoke(args=["users", "set-role", "--email", "tho@example.com", "--role", "ADMIN"])
    assert r.exit_code == 0, r.output
    with app.app_context():
        assert db.session.query(User).filter_by(email="tho@example.com").one().role == "ADMIN"

def test_users_create_rejects_short_password(app):
    r = app.test_cli_runner().invoke(args=["users", "create", "--email", "x@example.com", "--name", "x", "--password", "1"])
    assert r.exit_code != 0
    assert "password" in r.output

def test_set_role_refuses_last_admin(app, admin_id):
    r = app.test_cli_runner().invoke(args=["users", "set-role", "--email", "admin@example.com", "--role", "EMPLOYEE"])
    assert r.exit_code != 0
    assert "last admin" in r.output

def test_seed_demo_is_idempotent(app, admin_id):
    runner = app.test_cli_runner()
    r = runner.invoke(args=["seed", "demo"])
    assert r.exit_code == 0, r.output
    with app.app_context():
        categories = db.session.query(PriceCategory).count()
        items = db.session.query(PriceItem).all()
        customers = db.session.query(Customer).count()
    assert categories == 3 and customers == 2
    assert all(i.unit_price % 1000 == 0 and i.base_cost is not None for i in items)

    r = runner.invoke(args=["seed", "demo"])
    assert "categories=0 customers=0" in r.output
    with app.app_context():
        assert db.session.query(PriceCategory).count() == categories
