from flask import request, jsonify
from suanha.extensions import db
from suanha.services import customers as customer_service
from suanha.services.policy import require_employee
from suanha.utils.pagination import page_args
from . import bp


@bp.get("")
@require_employee
def list_customers():
    page, limit = page_args(request.args)
    result = customer_service.list_customers(
        db.session, search=(request.args.get("search") or "").strip() or None, page=page, limit=limit
    )
    rows = [
        c.to_dict(quotations=customer_service.recent_quotations(c, limit=5))
        for c in result.items
    ]
    return jsonify(ok=True, rows=rows, pagination=result.meta())


@bp.get("/<int:customer_id>")
@require_employee
def get_customer(customer_id: int):
    c = customer_service.get_customer(db.session, customer_id)
    return jsonify(ok=True, customer=c.to_dict(quotations=customer_service.recent_quotations(c, limit=None)))


@bp.post("")
@require_employee
def create_customer():
    data = request.get_json(silent=True) or {}
    c = customer_service.create_customer(db.session, data)
    db.session.commit()
    return jsonify(ok=True, customer=c.to_dict()), 201


@bp.put("/<int:customer_id>")
@require_employee
def update_customer(customer_id: int):
    data = request.get_json(silent=True) or {}
    c = customer_service.update_customer(db.session, customer_id, data)
    db.session.commit()
    return jsonify(ok=True, customer=c.to_dict())


@bp.delete("/<int:customer_id>")
@require_employee
def delete_customer(customer_id: int):
    customer_service.delete_customer(db.session, customer_id)
    db.session.commit()
    return jsonify(ok=True)
