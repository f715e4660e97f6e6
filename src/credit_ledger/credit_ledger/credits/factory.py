from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import ValidityType
from .validity.base import ValidityPolicy
from .validity.days_validity import DaysValidity
from .validity.months_validity import MonthsValidity
from .validity.unlimited_validity import UnlimitedValidity


@dataclass
class ValidityPolicyFactory:
    """Factory Pattern: choose the expiry rule from the package's validity type."""

    def for_validity(self, validity_type: ValidityType) -> ValidityPolicy:
        if validity_type == ValidityType.MONTHS:
            return MonthsValidity()
        if validity_type == ValidityType.DAYS:
            return DaysValidity()
        return UnlimitedValidity()
