import click
from flask.cli import with_appcontext
from suanha.extensions import db
from suanha.models.user import User, ROLE_ADMIN, ROLE_EMPLOYEE
from suanha.models.customer import Customer
from suanha.models.price_category import PriceCategory
from suanha.services import users as user_service, catalog, customers as customer_service
from suanha.services.errors import ServiceError
from suanha.services.settings import default_markup_rates


def _fail(exc: ServiceError):
    db.session.rollback()
    raise click.ClickException(str(exc))


@click.group()
def bootstrap():
    """Bootstrap helpers."""

@bootstrap.command("admin")
@click.option("--email", required=True)
@click.option("--name", required=True, help="Username")
@click.option("--full-name", default=None)
@click.option("--password", required=True)
@with_appcontext
def bootstrap_admin(email, name, full_name, password):
    # fail fast if an admin already exists
    if db.session.query(User).filter_by(role=ROLE_ADMIN).count():
        raise click.ClickException("An admin user already exists")
    try:
        user = user_service.create_user(db.session, dict(
            email=email, name=name, full_name=full_name or name, password=password, role=ROLE_ADMIN,
        ))
    except ServiceError as e:
        _fail(e)
    db.session.commit()
    click.echo(f"Bootstrap complete: admin_user_id={user.id} email={user.email}")

@click.group()
def users():
    """User management."""

@users.command("create")
@click.option("--email", required=True)
@click.option("--name", required=True, help="Username")
@click.option("--full-name", default=None)
@click.option("--password", required=True)
@click.option("--role", type=click.Choice([ROLE_EMPLOYEE, ROLE_ADMIN]), default=ROLE_EMPLOYEE)
@with_appcontext
def users_create(email, name, full_name, password, role):
    try:
        user = user_service.create_user(db.session, dict(
            email=email, name=name, full_name=full_name or name, password=password, role=role,
        ))
    except ServiceError as e:
        _fail(e)
    db.session.commit()
    click.echo(f"User created id={user.id} email={user.email} role={user.role}")

@users.command("set-role")
@click.option("--email", required=True)
@click.option("--role", type=click.Choice([ROLE_EMPLOYEE, ROLE_ADMIN]), required=True)
@with_appcontext
def users_set_role(email, role):
    user = user_service.find_by_email(db.session, email)
    if not user:
        raise click.ClickException("User not found")

    # Safety rail: never leave the app without an active admin
    if user.role == ROLE_ADMIN and role != ROLE_ADMIN:
        admins = db.session.query(User).filter_by(role=ROLE_ADMIN, is_active=True).count()
        if admins <= 1:
            raise click.ClickException("Refused: cannot demote the last admin")

    user.role = role
    db.session.commit()
    click.echo(f"Set role of {user.email} to {role}")


_DEMO_CATALOG = {
    "Điện": [
        dict(item_name="Thay ổ cắm điện", unit="cái", base_cost=85000, labor_hours=0.5),
        dict(item_name="Đi dây điện âm tường", unit="m", base_cost=45000, labor_hours=0.3),
        dict(item_name="Lắp đèn LED âm trần", unit="bộ", base_cost=150000, labor_hours=0.5),
    ],
    "Nước": [
        dict(item_name="Thay vòi sen", unit="bộ", base_cost=350000, labor_hours=1),
        dict(item_name="Thông tắc bồn cầu", unit="lần", base_cost=250000, labor_hours=1),
    ],
    "Sơn sửa": [
        dict(item_name="Sơn tường nội thất", unit="m2", base_cost=40000, labor_hours=0.2),
        dict(item_name="Chống thấm sàn vệ sinh", unit="m2", base_cost=180000, labor_hours=0.5),
    ],
}

_DEMO_CUSTOMERS = [
    dict(
        customer_name="Nguyễn Văn An",
        phone="0901234567",
        email="an.nguyen@example.com",
        addresses=[dict(name="Nhà riêng", address="12 Lê Lợi, Quận 1, TP.HCM", is_main=True)],
    ),
    dict(
        customer_name="Trần Thị Bình",
        company_name="Công ty TNHH Bình Minh",
        phone="0912345678",
        addresses=[
            dict(name="Văn phòng", address="45 Nguyễn Huệ, Quận 1, TP.HCM", is_main=True),
            dict(name="Kho", address="7 Quốc lộ 13, Thủ Đức, TP.HCM"),
        ],
    ),
]

@click.group()
def seed():
    """Demo data."""

@seed.command("demo")
@with_appcontext
def seed_demo():
    """Idempotent: categories and customers that already exist by name are skipped."""
    rates = default_markup_rates()
    admin = db.session.query(User).filter_by(role=ROLE_ADMIN).order_by(User.id).first()
    created_categories = created_customers = 0
    try:
        for name, rows in _DEMO_CATALOG.items():
            if db.session.query(PriceCategory).filter_by(name=name).count():
                continue
            catalog.create_category(
                db.session,
                dict(name=name, items=rows),
                created_by=admin.id if admin else None,
                defaults=rates,
            )
            created_categories += 1
        for row in _DEMO_CUSTOMERS:
            if db.session.query(Customer).filter_by(customer_name=row["customer_name"]).count():
                continue
            customer_service.create_customer(db.session, row)
            created_customers += 1
    except ServiceError as e:
        _fail(e)
    db.session.commit()
    click.echo(f"Seeded categories={created_categories} customers={created_customers}")


def register_cli(app):
    app.cli.add_command(bootstrap)
    app.cli.add_command(users)
    app.cli.add_command(seed)
