from __future__ import annotations

from datetime import date
from typing import Optional

from dateutil.relativedelta import relativedelta

from ...core.exceptions import ValidationError
from .base import ValidityDecision, ValidityPolicy


class MonthsValidity(ValidityPolicy):
    """Calendar months; month-end purchases clamp to the last day of the target month."""

    def decide_expiry(self, *, purchase_date: date, validity_value: Optional[int]) -> ValidityDecision:
        if not validity_value or int(validity_value) <= 0:
            raise ValidationError("Package validity (months) must be greater than 0")
        return ValidityDecision(has_expiry=True, expiry_date=purchase_date + relativedelta(months=int(validity_value)))
