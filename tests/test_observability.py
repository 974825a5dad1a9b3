from suanha.observability import _scrub_event


def test_scrub_event_filters_credentials():
    event = {"request": {
        "headers": {"Authorization": "Bearer abc", "Accept": "application/json"},
        "data": {"email": "a@example.com", "password": "hunter22"},
    }}
    out = _scrub_event(event, None)
    assert out["request"]["headers"] == {"Authorization": "[Filtered]", "Accept": "application/json"}
    assert out["request"]["data"] == {"email": "a@example.com", "password": "[Filtered]"}

def test_scrub_event_without_request():
    assert _scrub_event({"message": "boom"}, None) == {"message": "boom"}

def test_rate_limit_disabled_in_tests(app):
    assert app.config["RATELIMIT_ENABLED"] is False
