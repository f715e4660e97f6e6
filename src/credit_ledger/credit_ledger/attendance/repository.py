from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceFilters, AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def insert(self, record: AttendanceRecord) -> AttendanceRecord:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> None:
        """Hard delete. A row already gone must raise ``TransactionConflict``."""

        raise NotImplementedError

    def exists_for_day(self, *, student_id: int, course_id: int, check_in_date: date) -> bool:
        raise NotImplementedError

    def list_history(self, school_id: int, filters: AttendanceFilters, *, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
