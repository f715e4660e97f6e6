from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import CreditFilters, CreditRecord


class CreditRepository(Protocol):
    """Persistence of credit lots.

    ``update_balance`` is a compare-and-swap: it must write only when the
    stored version still equals ``credit.version`` and raise
    ``TransactionConflict`` otherwise.
    """

    def get_by_id(self, credit_id: int) -> Optional[CreditRecord]:
        raise NotImplementedError

    def insert(self, credit: CreditRecord) -> CreditRecord:
        """Persist a new record and return it with its assigned id/version."""

        raise NotImplementedError

    def update_balance(self, credit: CreditRecord) -> CreditRecord:
        raise NotImplementedError

    def receipt_number_exists(self, *, school_id: int, receipt_number: str) -> bool:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[CreditRecord]:
        raise NotImplementedError

    def list_for_school(self, school_id: int, filters: CreditFilters) -> Sequence[CreditRecord]:
        """Filter by course/student/purchase-date range. Status is filtered by callers."""

        raise NotImplementedError

    def list_expirable(self, *, school_id: int, today: date) -> Sequence[CreditRecord]:
        """Active or depleted records whose expiry date is before ``today``."""

        raise NotImplementedError
