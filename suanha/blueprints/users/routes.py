from flask import request, jsonify
from flask_login import current_user
from suanha.extensions import db
from suanha.models.user import ROLE_ADMIN
from suanha.services import users as user_service
from suanha.services.policy import require_admin, login_required_json, abort_json
from suanha.utils.pagination import page_args
from . import bp


@bp.get("")
@require_admin
def list_users():
    page, limit = page_args(request.args)
    result = user_service.list_users(
        db.session, search=(request.args.get("search") or "").strip() or None, page=page, limit=limit
    )
    return jsonify(ok=True, rows=[u.to_dict() for u in result.items], pagination=result.meta())


@bp.get("/<int:user_id>")
@require_admin
def get_user(user_id: int):
    return jsonify(ok=True, user=user_service.get_user(db.session, user_id).to_dict())


@bp.post("")
@require_admin
def create_user():
    data = request.get_json(silent=True) or {}
    user = user_service.create_user(db.session, data)
    db.session.commit()
    return jsonify(ok=True, user=user.to_dict()), 201


@bp.put("/<int:user_id>")
@require_admin
def update_user(user_id: int):
    data = request.get_json(silent=True) or {}
    user = user_service.update_user(db.session, user_id, data, acting_user=current_user)
    db.session.commit()
    return jsonify(ok=True, user=user.to_dict())


@bp.delete("/<int:user_id>")
@require_admin
def delete_user(user_id: int):
    user_service.delete_user(db.session, user_id, acting_user=current_user)
    db.session.commit()
    return jsonify(ok=True)


@bp.put("/<int:user_id>/toggle-status")
@require_admin
def toggle_status(user_id: int):
    user = user_service.toggle_status(db.session, user_id, acting_user=current_user)
    db.session.commit()
    return jsonify(ok=True, user=user.to_dict())


@bp.put("/<int:user_id>/change-password")
@login_required_json
def change_password(user_id: int):
    # Own password, or any password for admins
    if user_id != current_user.id and current_user.role != ROLE_ADMIN:
        return abort_json(403)
    data = request.get_json(silent=True) or {}
    user_service.change_password(
        db.session,
        user_id,
        acting_user=current_user,
        current_password=data.get("current_password"),
        new_password=data.get("new_password"),
    )
    db.session.commit()
    return jsonify(ok=True)
