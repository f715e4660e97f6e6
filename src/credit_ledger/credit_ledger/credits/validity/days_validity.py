from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from ...core.exceptions import ValidationError
from .base import ValidityDecision, ValidityPolicy


class DaysValidity(ValidityPolicy):
    def decide_expiry(self, *, purchase_date: date, validity_value: Optional[int]) -> ValidityDecision:
        if not validity_value or int(validity_value) <= 0:
            raise ValidationError("Package validity (days) must be greater than 0")
        return ValidityDecision(has_expiry=True, expiry_date=purchase_date + timedelta(days=int(validity_value)))
