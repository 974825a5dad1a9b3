"""
Quotation persistence around the pricing engine.

Stored ``subtotal``/``tax``/``total`` are always exactly what
``compute_quotation_totals`` returned for the stored items, costs and rates;
they are recomputed on every write and never edited directly.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from suanha.models.customer import Customer, CustomerAddress
from suanha.models.price_category import PriceCategory
from suanha.models.price_item import PriceItem
from suanha.models.user import User
from suanha.models.quotation import (
    Quotation,
    QuotationItem,
    STATUS_CHOICES,
    STATUS_DRAFT,
    STATUS_CONTRACTED,
    PENDING_STATUSES,
)
from suanha.services.errors import ValidationError, NotFoundError
from suanha.services.pricing import (
    LineItem,
    QuotationCostInputs,
    QuotationRates,
    QuotationTotals,
    compute_quotation_totals,
    line_items_from_dicts,
)
from suanha.utils.helpers import money_out
from suanha.utils.pagination import Page, paginate
from suanha.utils.validators import clean_str

log = logging.getLogger(__name__)

NUMBER_PREFIX = "QT"
_COST_FIELDS = ("material_cost", "labor_cost", "travel_cost")


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


# --- engine glue ----------------------------------------------------------

def _pick(data: dict, key: str, stored, default):
    """Payload value if present and not null, else the stored value, else the default."""
    v = data.get(key)
    if v is not None:
        return v
    if stored is not None:
        return stored
    return default


def build_cost_inputs(
    data: dict,
    *,
    defaults: QuotationRates,
    existing: Optional[Quotation] = None,
) -> QuotationCostInputs:
    if "items" in data:
        items = line_items_from_dicts(data.get("items"))
    elif existing is not None:
        items = [LineItem(i.item_name, i.quantity, i.unit_price) for i in existing.items]
    else:
        items = []

    costs = {
        k: _pick(data, k, getattr(existing, k) if existing is not None else None, 0)
        for k in _COST_FIELDS
    }
    rates = QuotationRates(
        margin_rate=_pick(data, "margin_rate", existing.margin_rate if existing is not None else None, defaults.margin_rate),
        tax_rate=_pick(data, "tax_rate", existing.tax_rate if existing is not None else None, defaults.tax_rate),
    )
    return QuotationCostInputs(items=tuple(items), rates=rates, **costs)


def preview_totals(data: dict, *, defaults: QuotationRates) -> Tuple[QuotationCostInputs, QuotationTotals]:
    inputs = build_cost_inputs(data, defaults=defaults)
    return inputs, compute_quotation_totals(inputs)


def _apply_totals(quotation: Quotation, inputs: QuotationCostInputs) -> QuotationTotals:
    totals = compute_quotation_totals(inputs)
    quotation.material_cost = inputs.material_cost
    quotation.labor_cost = inputs.labor_cost
    quotation.travel_cost = inputs.travel_cost
    quotation.margin_rate = inputs.margin_rate
    quotation.tax_rate = inputs.tax_rate
    quotation.subtotal = totals.subtotal_after_margin
    quotation.tax = totals.tax
    quotation.total = totals.total
    return totals


# --- numbering ------------------------------------------------------------

def next_quotation_number(session: Session, today: Optional[date] = None) -> str:
    """QT-YYYYMMDD-NNN; NNN continues from the highest number issued that day."""
    today = today or _utc_today()
    prefix = f"{NUMBER_PREFIX}-{today.strftime('%Y%m%d')}-"
    rows = session.query(Quotation.quotation_number).filter(
        Quotation.quotation_number.like(f"{prefix}%")
    ).all()
    highest = 0
    for (number,) in rows:
        tail = number[len(prefix):]
        if tail.isdigit():
            highest = max(highest, int(tail))
    return f"{prefix}{highest + 1:03d}"


# --- field parsing --------------------------------------------------------

def _parse_status(value) -> str:
    status = (value or "").strip().upper() if isinstance(value, str) else value
    if status not in STATUS_CHOICES:
        raise ValidationError("status", f"Status must be one of {', '.join(STATUS_CHOICES)}")
    return status


def _parse_valid_until(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    try:
        s = str(value).strip().replace("Z", "+00:00")
        if len(s) == 10:
            return datetime.combine(date.fromisoformat(s), time.min)
        return datetime.fromisoformat(s)
    except ValueError:
        raise ValidationError("valid_until", "Must be an ISO date (YYYY-MM-DD)") from None


def _optional_id(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(field_name, "must be an id")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(field_name, "must be an id") from None


def _resolve_customer(session: Session, data: dict, *, current: Optional[Quotation] = None):
    customer_id = _optional_id(data.get("customer_id"), "customer_id")
    if customer_id is None:
        if current is None:
            raise ValidationError("customer_id", "Customer is required")
        customer_id = current.customer_id
    customer = session.get(Customer, customer_id)
    if not customer:
        raise ValidationError("customer_id", "Customer does not exist")

    if "customer_address_id" in data:
        address_id = _optional_id(data.get("customer_address_id"), "customer_address_id")
    elif current is not None and current.customer_id == customer_id:
        address_id = current.customer_address_id
    else:
        address_id = None
    if address_id is not None:
        addr = session.get(CustomerAddress, address_id)
        if not addr or addr.customer_id != customer.id:
            raise ValidationError("customer_address_id", "Address does not belong to the customer")
    return customer, address_id


def _item_rows(session: Session, rows, line_items) -> list:
    """Persistable QuotationItem rows for named lines, in payload order."""
    out = []
    for idx, (row, line) in enumerate(zip(rows or [], line_items)):
        if not line.is_billable:
            continue
        category_id = _optional_id(row.get("category_id"), f"items[{idx}].category_id")
        price_item_id = _optional_id(row.get("price_item_id"), f"items[{idx}].price_item_id")
        if category_id is not None and not session.get(PriceCategory, category_id):
            raise ValidationError(f"items[{idx}].category_id", "Category does not exist")
        if price_item_id is not None and not session.get(PriceItem, price_item_id):
            raise ValidationError(f"items[{idx}].price_item_id", "Price item does not exist")
        out.append(QuotationItem(
            category_id=category_id,
            price_item_id=price_item_id,
            item_name=line.name,
            quantity=line.quantity,
            unit_price=line.unit_price,
            amount=line.amount,
        ))
    return out


def _apply_text_fields(quotation: Quotation, data: dict) -> None:
    for key, max_len in (("title", 255), ("description", 4000), ("notes", 4000)):
        if key in data:
            setattr(quotation, key, clean_str(data.get(key), max_len=max_len))


# --- CRUD -----------------------------------------------------------------

def get_quotation(session: Session, quotation_id: int) -> Quotation:
    obj = session.get(Quotation, quotation_id)
    if not obj:
        raise NotFoundError(f"Quotation {quotation_id} not found")
    return obj


def list_quotations(
    session: Session,
    *,
    search: Optional[str] = None,
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
    page: int = 1,
    limit: int = 10,
) -> Page:
    query = session.query(Quotation).outerjoin(Customer, Quotation.customer_id == Customer.id)
    if search:
        like = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(Quotation.quotation_number).like(like),
            func.lower(Customer.customer_name).like(like),
            func.lower(Customer.company_name).like(like),
        ))
    if status:
        query = query.filter(Quotation.status == _parse_status(status))
    if customer_id:
        query = query.filter(Quotation.customer_id == customer_id)
    query = query.order_by(Quotation.created_at.desc(), Quotation.id.desc())
    return paginate(query, page, limit)


def create_quotation(
    session: Session,
    data: dict,
    *,
    created_by: Optional[int],
    defaults: QuotationRates,
    validity_days: int = 30,
    today: Optional[date] = None,
) -> Quotation:
    today = today or _utc_today()
    customer, address_id = _resolve_customer(session, data)
    inputs = build_cost_inputs(data, defaults=defaults)
    items = _item_rows(session, data.get("items"), inputs.items)

    valid_until = _parse_valid_until(data.get("valid_until"))
    if valid_until is None:
        valid_until = datetime.combine(today + timedelta(days=validity_days), time.min)

    quotation = Quotation(
        quotation_number=next_quotation_number(session, today),
        customer=customer,
        customer_address_id=address_id,
        status=_parse_status(data.get("status") or STATUS_DRAFT),
        valid_until=valid_until,
        created_by=created_by,
        items=items,
    )
    _apply_text_fields(quotation, data)
    totals = _apply_totals(quotation, inputs)
    session.add(quotation)
    session.flush()
    log.info(
        "quotation created id=%s number=%s items=%s total=%s",
        quotation.id, quotation.quotation_number, len(items), totals.total,
    )
    return quotation


def update_quotation(session: Session, quotation_id: int, data: dict, *, defaults: QuotationRates) -> Quotation:
    quotation = get_quotation(session, quotation_id)

    if "customer_id" in data or "customer_address_id" in data:
        customer, address_id = _resolve_customer(session, data, current=quotation)
        quotation.customer = customer
        quotation.customer_address_id = address_id
    if "status" in data:
        quotation.status = _parse_status(data.get("status"))
    if "valid_until" in data:
        quotation.valid_until = _parse_valid_until(data.get("valid_until"))
    _apply_text_fields(quotation, data)

    inputs = build_cost_inputs(data, defaults=defaults, existing=quotation)
    if "items" in data:
        quotation.items = _item_rows(session, data.get("items"), inputs.items)
    before = quotation.total
    totals = _apply_totals(quotation, inputs)
    session.flush()
    log.info("quotation updated id=%s total %s -> %s", quotation.id, money_out(before), totals.total)
    return quotation


def delete_quotation(session: Session, quotation_id: int) -> None:
    quotation = get_quotation(session, quotation_id)
    session.delete(quotation)
    session.flush()
    log.info("quotation deleted id=%s", quotation_id)


# --- dashboard ------------------------------------------------------------

def dashboard_summary(session: Session, *, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    day_start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    month_start = day_start.replace(day=1)

    def _count(*criteria) -> int:
        return session.query(func.count(Quotation.id)).filter(*criteria).scalar() or 0

    revenue = (
        session.query(func.coalesce(func.sum(Quotation.total), 0))
        .filter(Quotation.status == STATUS_CONTRACTED)
        .scalar()
    )
    recent = (
        session.query(Quotation)
        .order_by(Quotation.created_at.desc(), Quotation.id.desc())
        .limit(5)
        .all()
    )
    return dict(
        today_quotations=_count(Quotation.created_at >= day_start),
        monthly_quotations=_count(Quotation.created_at >= month_start),
        pending_quotations=_count(Quotation.status.in_(PENDING_STATUSES)),
        total_revenue=money_out(revenue or 0),
        customer_count=session.query(func.count(Customer.id)).scalar() or 0,
        active_users=session.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0,
        inactive_users=session.query(func.count(User.id)).filter(User.is_active.is_(False)).scalar() or 0,
        recent_quotations=[
            dict(q.to_summary(), customer=q.customer.to_brief() if q.customer else None) for q in recent
        ],
    )
