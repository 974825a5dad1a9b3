import os

class BaseConfig:
    # Secrets (env in prod; dev/test may use defaults)
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-not-secure")

    # Database (env in prod; dev/test may use default)
    try:
        from dotenv import dotenv_values
        _ENV_FALLBACK = dotenv_values(".env")
    except Exception:
        _ENV_FALLBACK = {}
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or _ENV_FALLBACK.get("DATABASE_URL") or "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging / misc
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    JSON_SORT_KEYS = False

    # Cookies: secure-by-default (session login is still accepted next to bearer tokens)
    SESSION_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # Flask-Limiter default: off globally; prefer per-route limits
    RATELIMIT_DEFAULT = None

    # --- Auth tokens ---
    AUTH_TOKEN_SALT = os.getenv("AUTH_TOKEN_SALT", "auth-token-v1")
    AUTH_TOKEN_MAX_AGE = int(os.getenv("AUTH_TOKEN_MAX_AGE", str(7 * 24 * 3600)))
    MIN_PASSWORD_LENGTH = int(os.getenv("MIN_PASSWORD_LENGTH", "6"))

    # --- Quotation rates (margin before tax, then tax on the margined subtotal) ---
    QUOTATION_DEFAULT_MARGIN_RATE = float(os.getenv("QUOTATION_DEFAULT_MARGIN_RATE", "15"))
    QUOTATION_DEFAULT_TAX_RATE = float(os.getenv("QUOTATION_DEFAULT_TAX_RATE", "10"))
    QUOTATION_VALIDITY_DAYS = int(os.getenv("QUOTATION_VALIDITY_DAYS", "30"))

    # --- Price calculator markups (unrelated to the quotation rates above) ---
    PRICE_DEFAULT_PIT_RATE = float(os.getenv("PRICE_DEFAULT_PIT_RATE", "10"))
    PRICE_DEFAULT_PROFIT_RATE = float(os.getenv("PRICE_DEFAULT_PROFIT_RATE", "30"))
    PRICE_DEFAULT_VAT_RATE = float(os.getenv("PRICE_DEFAULT_VAT_RATE", "8"))

    # Listing defaults
    PAGE_SIZE_DEFAULT = int(os.getenv("PAGE_SIZE_DEFAULT", "10"))
    PAGE_SIZE_MAX = int(os.getenv("PAGE_SIZE_MAX", "100"))

class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")
    SESSION_COOKIE_SECURE = False
    REMEMBER_COOKIE_SECURE = False

class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "WARNING")
    # Required values are checked in create_app() so importing this module never fails
    SECRET_KEY = os.environ.get("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    SESSION_COOKIE_SECURE = True
    REMEMBER_COOKIE_SECURE = True
    SESSION_COOKIE_SAMESITE = os.environ.get("SESSION_COOKIE_SAMESITE", "Lax")

class TestingConfig(BaseConfig):
    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite:///:memory:")
    SESSION_COOKIE_SECURE = False
    REMEMBER_COOKIE_SECURE = False
    RATELIMIT_ENABLED = False

_ENV_MAP = {
    "development": DevelopmentConfig,
    "staging": ProductionConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}

def get_config():
    env = os.environ.get("APP_ENV", "development").lower()
    return _ENV_MAP.get(env, DevelopmentConfig)
