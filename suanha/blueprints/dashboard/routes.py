from flask import jsonify
from suanha.extensions import db
from suanha.services.quotations import dashboard_summary
from suanha.services.policy import require_employee
from . import bp


@bp.get("/summary")
@require_employee
def summary():
    return jsonify(ok=True, **dashboard_summary(db.session))
