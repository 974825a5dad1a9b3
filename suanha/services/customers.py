from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from suanha.models.customer import Customer, CustomerAddress
from suanha.models.quotation import Quotation
from suanha.services.errors import ValidationError, NotFoundError, ConflictError
from suanha.utils.helpers import as_bool
from suanha.utils.pagination import Page, paginate
from suanha.utils.validators import clean_str, require_str, is_valid_email, normalize_email, normalize_phone

log = logging.getLogger(__name__)


def get_customer(session: Session, customer_id: int) -> Customer:
    obj = session.get(Customer, customer_id)
    if not obj:
        raise NotFoundError(f"Customer {customer_id} not found")
    return obj


def list_customers(session: Session, *, search: Optional[str] = None, page: int = 1, limit: int = 10) -> Page:
    query = session.query(Customer)
    if search:
        like = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(Customer.customer_name).like(like),
            func.lower(Customer.company_name).like(like),
            Customer.phone.like(f"%{search.strip()}%"),
        ))
    query = query.order_by(Customer.created_at.desc(), Customer.id.desc())
    return paginate(query, page, limit)


def recent_quotations(customer: Customer, limit: Optional[int] = 5) -> List[Quotation]:
    q = customer.quotations.order_by(Quotation.created_at.desc(), Quotation.id.desc())
    if limit:
        q = q.limit(limit)
    return q.all()


def _addresses_from(rows) -> List[CustomerAddress]:
    """
    Build address rows. Blank rows are dropped; exactly one address ends up
    main: the first one flagged, else the first one.
    """
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise ValidationError("addresses", "must be a list")
    out: List[CustomerAddress] = []
    main_seen = False
    for idx, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValidationError(f"addresses[{idx}]", "must be an object")
        address = clean_str(row.get("address"), max_len=500)
        if not address:
            continue
        name = clean_str(row.get("name"), max_len=100) or "Main"
        is_main = as_bool(row.get("is_main")) and not main_seen
        main_seen = main_seen or is_main
        out.append(CustomerAddress(name=name, address=address, is_main=is_main))
    if out and not main_seen:
        out[0].is_main = True
    return out


def _apply_fields(customer: Customer, data: dict, *, partial: bool) -> None:
    if not partial or "customer_name" in data:
        customer.customer_name = require_str(data, "customer_name", label="Customer name")
    if not partial or "phone" in data:
        raw = data.get("phone")
        if not clean_str(raw):
            raise ValidationError("phone", "Phone is required")
        phone = normalize_phone(raw)
        if not phone:
            raise ValidationError("phone", "Invalid phone number")
        customer.phone = phone
    if not partial or "email" in data:
        email = normalize_email(data.get("email"))
        if email and not is_valid_email(email):
            raise ValidationError("email", "Invalid email address")
        customer.email = email
    if not partial or "company_name" in data:
        customer.company_name = clean_str(data.get("company_name"))
    if not partial or "memo" in data:
        customer.memo = clean_str(data.get("memo"), max_len=4000)


def create_customer(session: Session, data: dict) -> Customer:
    customer = Customer()
    _apply_fields(customer, data, partial=False)
    customer.addresses = _addresses_from(data.get("addresses"))
    session.add(customer)
    session.flush()
    log.info("customer created id=%s", customer.id)
    return customer


def update_customer(session: Session, customer_id: int, data: dict) -> Customer:
    customer = get_customer(session, customer_id)
    _apply_fields(customer, data, partial=True)
    if "addresses" in data:
        new_rows = _addresses_from(data.get("addresses"))
        # Keep quotations pointing at addresses that survive (matched by id).
        by_id = {a.id: a for a in customer.addresses}
        keep = []
        for row, raw in zip(new_rows, [r for r in data["addresses"] if clean_str(r.get("address"), 500)]):
            existing = by_id.get(raw.get("id")) if isinstance(raw.get("id"), int) else None
            if existing is not None:
                existing.name, existing.address, existing.is_main = row.name, row.address, row.is_main
                keep.append(existing)
            else:
                keep.append(row)
        dropped = {a.id for a in customer.addresses} - {a.id for a in keep if a.id is not None}
        if dropped:
            session.query(Quotation).filter(Quotation.customer_address_id.in_(dropped)).update(
                {Quotation.customer_address_id: None}, synchronize_session="fetch"
            )
        customer.addresses = keep
    session.flush()
    log.info("customer updated id=%s", customer.id)
    return customer


def delete_customer(session: Session, customer_id: int) -> None:
    customer = get_customer(session, customer_id)
    if customer.quotations.count():
        raise ConflictError("Customer has quotations and cannot be deleted.")
    session.delete(customer)
    session.flush()
    log.info("customer deleted id=%s", customer_id)
