from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

db = SQLAlchemy()
migrate = Migrate()

# JSON API: no login_view redirect; create_app() installs a 401 JSON handler.
login_manager = LoginManager()
login_manager.session_protection = "basic"


def _rate_limit_key():
    """Bucket per authenticated user (cookie or bearer token), else per client IP."""
    from flask_login import current_user  # lazy: avoids circulars during app init
    user_id = getattr(current_user, "id", None) if getattr(current_user, "is_authenticated", False) else None
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address()}"


# Storage is configured in create_app() via RATELIMIT_STORAGE_URI.
limiter = Limiter(key_func=_rate_limit_key)
