from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class ValidityDecision:
    has_expiry: bool
    expiry_date: Optional[date] = None


class ValidityPolicy(ABC):
    """Strategy Pattern: encapsulate how a package's validity becomes an expiry date."""

    @abstractmethod
    def decide_expiry(self, *, purchase_date: date, validity_value: Optional[int]) -> ValidityDecision:
        raise NotImplementedError
