import os
from flask import Flask, jsonify, request

# Load .env only for local/dev. In prod, env vars come from the platform.
if os.getenv("APP_ENV", "development") != "production":
    from dotenv import load_dotenv
    load_dotenv(".env", override=False)


from sqlalchemy.exc import IntegrityError

from .config import get_config
from .extensions import db, migrate, login_manager, limiter
from .security import init_security
from .observability import init_logging, init_sentry
from .services.errors import ValidationError, NotFoundError, ConflictError


def create_app():
    app = Flask(__name__)

    # ---- Rate limiting storage ----
    app_env = (os.getenv("APP_ENV", "development") or "development").lower()
    use_redis = app_env in ("staging", "production")
    storage_uri = os.environ.get("REDIS_URL") if use_redis else "memory://"
    if use_redis and not storage_uri:
        raise RuntimeError("REDIS_URL is required in staging/production for rate limiting")

    app.config["RATELIMIT_STORAGE_URI"] = storage_uri
    app.config.setdefault("RATELIMIT_DEFAULTS", ["1000 per hour"])
    app.config.setdefault("RATELIMIT_HEADERS_ENABLED", True)

    app.config.from_object(get_config())
    app.config["APP_ENV"] = app_env

    def _require(name: str):
        val = os.getenv(name) or app.config.get(name)
        if not val:
            raise RuntimeError(f"Missing required environment variable: {name}")
        return val

    if app_env in ("staging", "production"):
        _require("SECRET_KEY")
        _require("DATABASE_URL")

    # --- Observability & Security ---
    init_logging(app)
    init_sentry(app)
    if app_env in ("staging", "production"):
        init_security(app)

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db, directory="migrations")
    login_manager.init_app(app)
    limiter.init_app(app)

    @login_manager.unauthorized_handler
    def _unauthorized():
        return jsonify(error="unauthorized", code=401), 401

    # Blueprints
    from .blueprints.auth import bp as auth_bp
    from .blueprints.users import bp as users_bp
    from .blueprints.customers import bp as customers_bp
    from .blueprints.prices import bp as prices_bp
    from .blueprints.quotations import bp as quotations_bp
    from .blueprints.dashboard import bp as dashboard_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(customers_bp, url_prefix="/api/customers")
    app.register_blueprint(prices_bp, url_prefix="/api/prices")
    app.register_blueprint(quotations_bp, url_prefix="/api/quotations")
    app.register_blueprint(dashboard_bp, url_prefix="/api/dashboard")

    @app.get("/healthz")
    @limiter.exempt
    def healthz():
        return {"status": "ok"}, 200

    # --- Service errors -> JSON ---
    @app.errorhandler(ValidationError)
    def handle_validation(e):
        db.session.rollback()
        return jsonify(ok=False, errors=e.to_dict()), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        db.session.rollback()
        return jsonify(error="not_found", code=404, message=str(e)), 404

    @app.errorhandler(ConflictError)
    def handle_conflict(e):
        db.session.rollback()
        return jsonify(error="conflict", code=409, message=str(e)), 409

    @app.errorhandler(IntegrityError)
    def handle_integrity(e):
        db.session.rollback()
        app.logger.warning("integrity error path=%s: %s", request.path, e.orig)
        return jsonify(error="conflict", code=409, message="Record conflicts with existing data"), 409

    # --- HTTP errors -> JSON ---
    @app.errorhandler(400)
    def bad_request(e):
        return {"error": "bad_request", "code": 400}, 400

    @app.errorhandler(401)
    def unauthorized(e):
        return {"error": "unauthorized", "code": 401}, 401

    @app.errorhandler(403)
    def forbidden(e):
        return {"error": "forbidden", "code": 403}, 403

    @app.errorhandler(404)
    def not_found(e):
        return {"error": "not_found", "code": 404}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "method_not_allowed", "code": 405}, 405

    # 429 Too Many Requests with Retry-After
    @app.errorhandler(429)
    def too_many_requests(e):
        retry_after = getattr(e, "retry_after", None)
        headers = {}
        payload = {"error": "rate_limited", "code": 429}
        if retry_after is not None:
            headers["Retry-After"] = str(int(retry_after))
            payload["retry_after"] = int(retry_after)
        return (payload, 429, headers)

    @app.errorhandler(500)
    def server_error(e):
        db.session.rollback()
        return {"error": "server_error", "code": 500}, 500

    # CLI commands
    from .cli import register_cli
    register_cli(app)

    return app
