from decimal import Decimal
from typing import Any, Optional

def money_out(value: Any) -> Optional[int]:
    """Whole-đồng Decimal/Numeric column -> int for JSON (None passes through)."""
    if value is None:
        return None
    return int(Decimal(str(value)))

def number_out(value: Any) -> Optional[float]:
    """Rates, quantities, hours -> float for JSON (None passes through)."""
    if value is None:
        return None
    return float(value)

def safe_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(default)

def as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ("1", "true", "yes", "on")
