from __future__ import annotations

from datetime import date
from typing import Optional

from .base import ValidityDecision, ValidityPolicy


class UnlimitedValidity(ValidityPolicy):
    """Never expires."""

    def decide_expiry(self, *, purchase_date: date, validity_value: Optional[int]) -> ValidityDecision:
        return ValidityDecision(has_expiry=False, expiry_date=None)
