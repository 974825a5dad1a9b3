from functools import wraps
from flask import jsonify
from flask_login import current_user
from suanha.models.user import ROLE_ADMIN, ROLE_EMPLOYEE

def login_required_json(fn):
    @wraps(fn)
    def _wrap(*args, **kwargs):
        if not getattr(current_user, "is_authenticated", False):
            return abort_json(401)
        if not getattr(current_user, "is_active", False):
            return abort_json(401)
        return fn(*args, **kwargs)
    return _wrap

def role_required(*roles):
    def deco(fn):
        @wraps(fn)
        def _wrap(*args, **kwargs):
            if not getattr(current_user, "is_authenticated", False):
                return abort_json(401)
            if not getattr(current_user, "is_active", False):
                return abort_json(401)
            if getattr(current_user, "role", None) not in roles:
                return abort_json(403)
            return fn(*args, **kwargs)
        return _wrap
    return deco

require_admin = role_required(ROLE_ADMIN)
require_employee = role_required(ROLE_ADMIN, ROLE_EMPLOYEE)

def abort_json(code: int):
    return jsonify({"error": {401: "unauthorized", 403: "forbidden"}[code], "code": code}), code
