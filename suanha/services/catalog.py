from __future__ import annotations

import logging
from typing import Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from suanha.models.price_category import PriceCategory
from suanha.models.price_item import PriceItem
from suanha.models.quotation import QuotationItem
from suanha.services.errors import ValidationError, NotFoundError
from suanha.services.pricing import MarkupRates, PriceBreakdown, compute_selling_price, to_money, to_quantity
from suanha.services.settings import markup_rates_from
from suanha.utils.helpers import as_bool
from suanha.utils.pagination import Page, paginate
from suanha.utils.validators import clean_str, require_str

log = logging.getLogger(__name__)


# --- categories -----------------------------------------------------------

def get_category(session: Session, category_id: int) -> PriceCategory:
    obj = session.get(PriceCategory, category_id)
    if not obj:
        raise NotFoundError(f"Price category {category_id} not found")
    return obj


def list_categories(session: Session, *, search: Optional[str] = None, page: int = 1, limit: int = 10) -> Page:
    query = session.query(PriceCategory)
    if search:
        like = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(PriceCategory.name).like(like),
            PriceCategory.items.any(func.lower(PriceItem.item_name).like(like)),
        ))
    query = query.order_by(func.lower(PriceCategory.name), PriceCategory.id)
    return paginate(query, page, limit)


def create_category(session: Session, data: dict, *, created_by: Optional[int], defaults: MarkupRates) -> PriceCategory:
    category = PriceCategory(
        name=require_str(data, "name", label="Category name"),
        is_active=True,
        created_by=created_by,
    )
    rows = data.get("items") or []
    if not isinstance(rows, list):
        raise ValidationError("items", "must be a list")
    for idx, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValidationError(f"items[{idx}]", "must be an object")
        try:
            item, _ = _build_item(row, defaults)
        except ValidationError as e:
            raise ValidationError(f"items[{idx}].{e.field}", e.reason) from None
        category.items.append(item)
    session.add(category)
    session.flush()
    log.info("price category created id=%s items=%s", category.id, len(category.items))
    return category


def update_category(session: Session, category_id: int, data: dict) -> PriceCategory:
    category = get_category(session, category_id)
    if "name" in data:
        category.name = require_str(data, "name", label="Category name")
    if "is_active" in data:
        category.is_active = as_bool(data.get("is_active"), True)
    session.flush()
    return category


def delete_category(session: Session, category_id: int) -> None:
    """Delete a category and its items; quotation lines keep their copied name/price."""
    category = get_category(session, category_id)
    item_ids = [i.id for i in category.items]
    session.query(QuotationItem).filter(QuotationItem.category_id == category_id).update(
        {QuotationItem.category_id: None}, synchronize_session="fetch"
    )
    if item_ids:
        session.query(QuotationItem).filter(QuotationItem.price_item_id.in_(item_ids)).update(
            {QuotationItem.price_item_id: None}, synchronize_session="fetch"
        )
    session.delete(category)
    session.flush()
    log.info("price category deleted id=%s items=%s", category_id, len(item_ids))


# --- items ----------------------------------------------------------------

def get_item(session: Session, item_id: int) -> PriceItem:
    obj = session.get(PriceItem, item_id)
    if not obj:
        raise NotFoundError(f"Price item {item_id} not found")
    return obj


def list_items(
    session: Session,
    *,
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    page: int = 1,
    limit: int = 10,
) -> Page:
    query = session.query(PriceItem).filter(PriceItem.is_active.is_(True))
    if search:
        query = query.filter(func.lower(PriceItem.item_name).like(f"%{search.strip().lower()}%"))
    if category_id:
        query = query.filter(PriceItem.category_id == category_id)
    query = query.order_by(func.lower(PriceItem.item_name), PriceItem.id)
    return paginate(query, page, limit)


def _resolve_price(data: dict, defaults: MarkupRates, *, required: bool):
    """
    base_cost wins over unit_price: the engine turns it into the VAT-exclusive
    net price, which is what line items quote.
    Returns (unit_price, base_cost, breakdown); all None when nothing priced.
    """
    if data.get("base_cost") is not None:
        breakdown = compute_selling_price(data.get("base_cost"), markup_rates_from(data, defaults))
        return breakdown.net_price_vat_exclusive, breakdown.base_cost, breakdown
    if data.get("unit_price") is not None:
        return to_money(data.get("unit_price"), "unit_price"), None, None
    if required:
        raise ValidationError("unit_price", "Unit price or base cost is required")
    return None, None, None


def _build_item(data: dict, defaults: MarkupRates) -> Tuple[PriceItem, Optional[PriceBreakdown]]:
    unit_price, base_cost, breakdown = _resolve_price(data, defaults, required=True)
    labor = data.get("labor_hours")
    item = PriceItem(
        item_name=require_str(data, "item_name", label="Item name"),
        unit=require_str(data, "unit", max_len=50, label="Unit"),
        description=clean_str(data.get("description"), max_len=2000),
        unit_price=unit_price,
        base_cost=base_cost,
        labor_hours=to_quantity(labor, "labor_hours", places=2) if labor is not None else 0,
        is_active=as_bool(data.get("is_active"), True),
    )
    return item, breakdown


def create_item(session: Session, data: dict, *, defaults: MarkupRates) -> Tuple[PriceItem, Optional[PriceBreakdown]]:
    category_id = data.get("category_id")
    if not category_id:
        raise ValidationError("category_id", "Category is required")
    try:
        category = get_category(session, int(category_id))
    except (TypeError, ValueError):
        raise ValidationError("category_id", "Category is invalid") from None
    except NotFoundError:
        raise ValidationError("category_id", "Category does not exist") from None

    item, breakdown = _build_item(data, defaults)
    item.category = category
    session.add(item)
    session.flush()
    log.info("price item created id=%s unit_price=%s base_cost=%s", item.id, item.unit_price, item.base_cost)
    return item, breakdown


def update_item(
    session: Session, item_id: int, data: dict, *, defaults: MarkupRates
) -> Tuple[PriceItem, Optional[PriceBreakdown]]:
    item = get_item(session, item_id)
    if "item_name" in data:
        item.item_name = require_str(data, "item_name", label="Item name")
    if "unit" in data:
        item.unit = require_str(data, "unit", max_len=50, label="Unit")
    if "description" in data:
        item.description = clean_str(data.get("description"), max_len=2000)
    if "labor_hours" in data:
        labor = data.get("labor_hours")
        item.labor_hours = to_quantity(labor, "labor_hours", places=2) if labor is not None else 0
    if "is_active" in data:
        item.is_active = as_bool(data.get("is_active"), True)
    if "category_id" in data:
        try:
            item.category = get_category(session, int(data.get("category_id")))
        except (TypeError, ValueError, NotFoundError):
            raise ValidationError("category_id", "Category does not exist") from None

    unit_price, base_cost, breakdown = _resolve_price(data, defaults, required=False)
    if unit_price is not None:
        old = item.unit_price
        item.unit_price = unit_price
        # An explicit unit price without a cost drops the stale cost basis.
        item.base_cost = base_cost
        log.info("price item %s repriced %s -> %s", item.id, old, unit_price)
    session.flush()
    return item, breakdown


def delete_item(session: Session, item_id: int) -> None:
    item = get_item(session, item_id)
    session.query(QuotationItem).filter(QuotationItem.price_item_id == item_id).update(
        {QuotationItem.price_item_id: None}, synchronize_session="fetch"
    )
    session.delete(item)
    session.flush()
    log.info("price item deleted id=%s", item_id)


def recompute_item_price(session: Session, item_id: int, *, rates: MarkupRates) -> Tuple[PriceItem, PriceBreakdown]:
    """Re-derive unit_price from the stored base_cost (e.g. after a markup change)."""
    item = get_item(session, item_id)
    if item.base_cost is None:
        raise ValidationError("base_cost", "Item has no stored base cost")
    breakdown = compute_selling_price(item.base_cost, rates)
    item.unit_price = breakdown.net_price_vat_exclusive
    session.flush()
    return item, breakdown
