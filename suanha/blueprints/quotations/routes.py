from flask import request, jsonify, current_app
from flask_login import current_user
from suanha.extensions import db
from suanha.services import quotations as quotation_service
from suanha.services.settings import default_quotation_rates
from suanha.services.policy import require_employee
from suanha.utils.helpers import money_out, number_out, safe_int
from suanha.utils.pagination import page_args
from . import bp


@bp.get("")
@require_employee
def list_quotations():
    page, limit = page_args(request.args)
    result = quotation_service.list_quotations(
        db.session,
        search=(request.args.get("search") or "").strip() or None,
        status=(request.args.get("status") or "").strip() or None,
        customer_id=safe_int(request.args.get("customer_id"), 0) or None,
        page=page,
        limit=limit,
    )
    return jsonify(ok=True, rows=[q.to_dict() for q in result.items], pagination=result.meta())


@bp.post("/preview")
@require_employee
def preview():
    """Totals for an unsaved quotation; nothing is persisted."""
    data = request.get_json(silent=True) or {}
    inputs, totals = quotation_service.preview_totals(data, defaults=default_quotation_rates())
    lines = [
        dict(
            item_name=i.name,
            quantity=number_out(i.quantity),
            unit_price=money_out(i.unit_price),
            amount=money_out(i.amount),
        )
        for i in inputs.billable_items
    ]
    return jsonify(
        ok=True,
        totals=totals.to_dict(),
        items=lines,
        margin_rate=number_out(inputs.margin_rate),
        tax_rate=number_out(inputs.tax_rate),
    )


@bp.get("/<int:quotation_id>")
@require_employee
def get_quotation(quotation_id: int):
    q = quotation_service.get_quotation(db.session, quotation_id)
    return jsonify(ok=True, quotation=q.to_dict())


@bp.post("")
@require_employee
def create_quotation():
    data = request.get_json(silent=True) or {}
    q = quotation_service.create_quotation(
        db.session,
        data,
        created_by=current_user.id,
        defaults=default_quotation_rates(),
        validity_days=int(current_app.config.get("QUOTATION_VALIDITY_DAYS", 30)),
    )
    db.session.commit()
    return jsonify(ok=True, quotation=q.to_dict()), 201


@bp.put("/<int:quotation_id>")
@require_employee
def update_quotation(quotation_id: int):
    data = request.get_json(silent=True) or {}
    q = quotation_service.update_quotation(db.session, quotation_id, data, defaults=default_quotation_rates())
    db.session.commit()
    return jsonify(ok=True, quotation=q.to_dict())


@bp.delete("/<int:quotation_id>")
@require_employee
def delete_quotation(quotation_id: int):
    quotation_service.delete_quotation(db.session, quotation_id)
    db.session.commit()
    return jsonify(ok=True)
