from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CheckInMethod


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one check-in that debited one credit lot.

    ``credits_before``/``credits_after`` are a point-in-time snapshot taken
    inside the check-in transaction, independent of the lot's current values.
    ``check_in_date`` is the session date (may be backdated) while
    ``check_in_time`` is when the check-in was actually recorded.
    """

    attendance_id: int
    school_id: int
    student_id: int
    course_id: int
    credit_id: int

    student_name: str
    student_code: str
    course_name: str

    check_in_date: date
    check_in_time: datetime
    check_in_method: CheckInMethod
    status: AttendanceStatus

    credits_deducted: int
    credits_before: int
    credits_after: int

    checked_by: str
    checked_by_name: str
    checked_by_role: str

    is_late: bool = False
    late_minutes: int = 0
    teacher_notes: Optional[str] = None


@dataclass(frozen=True)
class CheckInRequest:
    student_id: int
    course_id: int
    credit_id: int
    check_in_method: CheckInMethod = CheckInMethod.MANUAL
    status: AttendanceStatus = AttendanceStatus.PRESENT
    is_late: bool = False
    late_minutes: int = 0
    teacher_notes: Optional[str] = None


@dataclass(frozen=True)
class AttendanceFilters:
    course_id: Optional[int] = None
    student_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
