from flask import request, jsonify, current_app
from flask_login import login_user, logout_user, current_user
from suanha.extensions import db, limiter
from suanha.services import tokens, users as user_service
from suanha.services.policy import login_required_json
from . import bp


def _login_email_scope():
    data_json = request.get_json(silent=True) or {}
    email = str(data_json.get("email") or request.form.get("email") or "").strip().lower()
    # Keep a stable scope even if email is blank
    return f"login-email:{email or 'missing'}"


@bp.post("/login")
@limiter.limit("10 per minute; 100 per hour")              # per-IP (anon -> IP via _rate_limit_key)
@limiter.limit("5 per minute; 20 per hour", key_func=_login_email_scope)  # per-account
def login():
    data = request.get_json(silent=True) or {}
    email = str(data.get("email") or "").strip()
    password = data.get("password") or ""

    if not email or not password:
        return jsonify(ok=False, errors={"__all__": "Email and password are required"}), 400

    user = user_service.authenticate(db.session, email, password)
    if not user:
        current_app.logger.info("login failed email=%s ip=%s", email.lower(), request.remote_addr)
        return jsonify(ok=False, errors={"__all__": "Invalid credentials"}), 401

    # Cookie session for same-origin callers; bearer token for the SPA.
    login_user(user)
    return jsonify(ok=True, token=tokens.issue_access_token(user), user=user.to_dict())


@bp.post("/logout")
def logout():
    if current_user.is_authenticated:
        logout_user()
    return jsonify(ok=True)


@bp.get("/me")
@login_required_json
def me():
    return jsonify(ok=True, user=current_user.to_dict())
