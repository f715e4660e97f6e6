from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AdjustmentRecord


class AdjustmentRepository(Protocol):
    """Append-only: there is deliberately no update or delete."""

    def append(self, record: AdjustmentRecord) -> AdjustmentRecord:
        raise NotImplementedError

    def list_history(
        self,
        school_id: int,
        *,
        credit_id: Optional[int] = None,
        student_id: Optional[int] = None,
        limit: int,
    ) -> Sequence[AdjustmentRecord]:
        """Newest first."""

        raise NotImplementedError
