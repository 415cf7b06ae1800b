"""
Price change helpers (discount / increase badges)
"""
import math
from typing import Dict, Optional, Union

Number = Union[int, float, str, None]


def _to_number(value: Number) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_discount_percentage(previous_price: Number, current_price: Number) -> int:
    """Percentage off the previous price, rounded to an integer (0 if not applicable)"""
    previous = _to_number(previous_price)
    current = _to_number(current_price)
    if not previous or previous <= 0:
        return 0
    if not current or current <= 0:
        return 0

    return _round_half_up((previous - current) / previous * 100)


def calculate_increase_percentage(previous_price: Number, current_price: Number) -> int:
    previous = _to_number(previous_price)
    current = _to_number(current_price)
    if not previous or previous <= 0:
        return 0
    if not current or current <= 0:
        return 0

    return _round_half_up((current - previous) / previous * 100)


def get_price_change(previous_price: Number, current_price: Number) -> Dict:
    """
    Returns {"type": "discount" | "increase" | "none", "percentage": int}
    """
    previous = _to_number(previous_price)
    current = _to_number(current_price)

    if not previous or not current or previous == current:
        return {"type": "none", "percentage": 0}

    if previous > current:
        return {"type": "discount", "percentage": calculate_discount_percentage(previous, current)}

    return {"type": "increase", "percentage": calculate_increase_percentage(previous, current)}
