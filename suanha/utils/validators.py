import re

from suanha.services.errors import ValidationError

# Simple, pragmatic patterns
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_STRIP_RE = re.compile(r"[\s\-.()]")
_PHONE_RE = re.compile(r"^\+?\d{8,15}$")

def clean_str(val, max_len: int = 255):
    """
    Collapse whitespace, trim, enforce max length. Returns None if empty after cleaning.
    """
    if val is None:
        return None
    if not isinstance(val, str):
        val = str(val)
    s = re.sub(r"\s+", " ", val).strip()
    if not s:
        return None
    return s[:max_len]

def require_str(data: dict, key: str, max_len: int = 255, label: str = None) -> str:
    s = clean_str(data.get(key), max_len=max_len)
    if not s:
        raise ValidationError(key, f"{label or key} is required")
    return s

def is_valid_email(val) -> bool:
    if not val:
        return True
    return bool(_EMAIL_RE.match(val))

def normalize_email(val):
    s = clean_str(val)
    return s.lower() if s else None

def normalize_phone(val):
    """
    Normalize phone numbers to digits with an optional leading '+',
    e.g. '090-123 4567' -> '0901234567', '+84 90 123 4567' -> '+84901234567'.
    Returns None if invalid or empty.
    """
    if not val:
        return None
    s = _PHONE_STRIP_RE.sub("", str(val))
    if not _PHONE_RE.match(s):
        return None
    return s
