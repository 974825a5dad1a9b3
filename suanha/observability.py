import os
import logging
from logging.config import dictConfig

from pythonjsonlogger import jsonlogger  # noqa: F401  (referenced by dotted path below)

# Never ship credentials to log aggregation or Sentry
_SCRUB_HEADERS = ("authorization", "cookie")
_SCRUB_FIELDS = ("password", "current_password", "new_password", "token")


def init_logging(app):
    """JSON logs in staging/prod; plain console with the configured level in dev/tests."""
    app_env = (os.getenv("APP_ENV", "development") or "development").lower()
    level = app.config.get("LOG_LEVEL", "INFO")
    if app_env in ("staging", "production"):
        dictConfig({
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                    "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                    "rename_fields": {"levelname": "level", "asctime": "ts"},
                    "static_fields": {"service": "suanha", "env": app_env},
                },
            },
            "handlers": {"stdout": {"class": "logging.StreamHandler", "formatter": "json"}},
            "root": {"level": level, "handlers": ["stdout"]},
        })
    else:
        logging.getLogger("suanha").setLevel(level)
    app.logger.setLevel(level)


def _scrub_event(event, hint):
    request = event.get("request") or {}
    headers = request.get("headers") or {}
    for key in list(headers):
        if key.lower() in _SCRUB_HEADERS:
            headers[key] = "[Filtered]"
    data = request.get("data")
    if isinstance(data, dict):
        for key in _SCRUB_FIELDS:
            if key in data:
                data[key] = "[Filtered]"
    return event


def init_sentry(app):
    """Wire Sentry if DSN present; no-op otherwise."""
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=float(os.getenv("SENTRY_TRACES", "0.0")),
            environment=os.getenv("APP_ENV", "development"),
            send_default_pii=False,
            before_send=_scrub_event,
        )
    except Exception as exc:
        app.logger.warning("Sentry init skipped: %s", exc)
