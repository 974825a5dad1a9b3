from flask import request, jsonify, current_app
from flask_login import current_user
from suanha.extensions import db
from suanha.services import catalog
from suanha.services.pricing import compute_selling_price
from suanha.services.settings import default_markup_rates, markup_rates_from
from suanha.services.policy import require_admin, login_required_json
from suanha.utils.helpers import safe_int
from suanha.utils.pagination import page_args
from . import bp


def _search_arg():
    return (request.args.get("search") or "").strip() or None


# --- calculator -----------------------------------------------------------

@bp.post("/calculate")
@login_required_json
def calculate():
    """
    Price preview: base cost -> PIT -> profit -> VAT, each markup on the previous stage.
    Body: { base_cost, personal_income_tax_rate?, profit_rate?, vat_rate? }
    """
    data = request.get_json(silent=True) or {}
    rates = markup_rates_from(data, default_markup_rates())
    breakdown = compute_selling_price(data.get("base_cost"), rates)
    return jsonify(ok=True, breakdown=breakdown.to_dict())


@bp.get("/defaults")
@login_required_json
def defaults():
    return jsonify(ok=True, rates=default_markup_rates().to_dict())


# --- categories -----------------------------------------------------------

@bp.get("/categories")
@login_required_json
def list_categories():
    page, limit = page_args(request.args)
    result = catalog.list_categories(db.session, search=_search_arg(), page=page, limit=limit)
    return jsonify(
        ok=True,
        rows=[c.to_dict(active_items_only=True) for c in result.items],
        pagination=result.meta(),
    )


@bp.get("/categories/<int:category_id>")
@login_required_json
def get_category(category_id: int):
    return jsonify(ok=True, category=catalog.get_category(db.session, category_id).to_dict())


@bp.post("/categories")
@require_admin
def create_category():
    data = request.get_json(silent=True) or {}
    c = catalog.create_category(
        db.session, data, created_by=current_user.id, defaults=default_markup_rates()
    )
    db.session.commit()
    return jsonify(ok=True, category=c.to_dict()), 201


@bp.put("/categories/<int:category_id>")
@require_admin
def update_category(category_id: int):
    data = request.get_json(silent=True) or {}
    c = catalog.update_category(db.session, category_id, data)
    db.session.commit()
    return jsonify(ok=True, category=c.to_dict())


@bp.delete("/categories/<int:category_id>")
@require_admin
def delete_category(category_id: int):
    catalog.delete_category(db.session, category_id)
    db.session.commit()
    return jsonify(ok=True)


# --- items ----------------------------------------------------------------

@bp.get("/items")
@login_required_json
def list_items():
    page, limit = page_args(request.args)
    result = catalog.list_items(
        db.session,
        search=_search_arg(),
        category_id=safe_int(request.args.get("category_id"), 0) or None,
        page=page,
        limit=limit,
    )
    return jsonify(ok=True, rows=[i.to_dict() for i in result.items], pagination=result.meta())


@bp.get("/items/<int:item_id>")
@login_required_json
def get_item(item_id: int):
    return jsonify(ok=True, item=catalog.get_item(db.session, item_id).to_dict())


@bp.post("/items")
@require_admin
def create_item():
    data = request.get_json(silent=True) or {}
    item, breakdown = catalog.create_item(db.session, data, defaults=default_markup_rates())
    db.session.commit()
    return jsonify(ok=True, item=item.to_dict(), breakdown=breakdown.to_dict() if breakdown else None), 201


@bp.put("/items/<int:item_id>")
@require_admin
def update_item(item_id: int):
    data = request.get_json(silent=True) or {}
    item, breakdown = catalog.update_item(db.session, item_id, data, defaults=default_markup_rates())
    db.session.commit()
    return jsonify(ok=True, item=item.to_dict(), breakdown=breakdown.to_dict() if breakdown else None)


@bp.post("/items/<int:item_id>/recalculate")
@require_admin
def recalculate_item(item_id: int):
    data = request.get_json(silent=True) or {}
    item, breakdown = catalog.recompute_item_price(
        db.session, item_id, rates=markup_rates_from(data, default_markup_rates())
    )
    db.session.commit()
    current_app.logger.info("price item %s recalculated unit_price=%s", item.id, item.unit_price)
    return jsonify(ok=True, item=item.to_dict(), breakdown=breakdown.to_dict())


@bp.delete("/items/<int:item_id>")
@require_admin
def delete_item(item_id: int):
    catalog.delete_item(db.session, item_id)
    db.session.commit()
    return jsonify(ok=True)
