"""
Input coercion helpers shared by the services
"""

import math

def clean_text(value):
    """str() of value with surrounding whitespace removed; None becomes ''"""
    return str(value if value is not None else '').strip()

def to_number(value):
    """
    Numeric value of a stored or supplied field, or None when it is not a finite number
    """
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None

def clamp_points(value):
    """floor(max(0, value)), treating anything non-numeric as 0"""
    number = to_number(value) or 0
    return max(0, math.floor(number))
