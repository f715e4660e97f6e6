from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_int(value, field_name: str) -> int:
    """Whole numbers only: JSON ints, integral floats or digit strings. No truncation."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a whole number")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("+-").isdigit():
        return int(value.strip())
    raise ValidationError(f"{field_name} must be a whole number")


def require_positive_int(value: int, field_name: str) -> int:
    if value is None or int(value) <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    return int(value)


def require_non_negative_int(value: int, field_name: str) -> int:
    if value is None or int(value) < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return int(value)


def require_money(value, field_name: str) -> Decimal:
    """Coerce a non-negative money amount into Decimal."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field_name} must be a non-negative number")
    return amount
