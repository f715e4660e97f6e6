from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AdjustmentType


@dataclass(frozen=True)
class AdjustmentRecord:
    """Append-only audit entry for one manual balance correction."""

    adjustment_id: int
    school_id: int
    student_id: int
    credit_id: int
    student_name: str
    course_name: str
    adjustment_type: AdjustmentType
    amount: int
    credits_before: int
    credits_after: int
    reason: str
    adjusted_by: str
    adjusted_by_name: str
    adjusted_by_role: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AdjustmentRequest:
    adjustment_type: AdjustmentType
    amount: int
    reason: str
