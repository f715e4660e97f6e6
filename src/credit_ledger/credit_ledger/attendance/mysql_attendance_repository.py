from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..core.enums import AttendanceStatus, CheckInMethod
from ..database.mysql_base import ensure_row_written, fetchall, fetchone
from .model import AttendanceFilters, AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, school_id, student_id, course_id, credit_id,
    student_name, student_code, course_name,
    check_in_date, check_in_time, check_in_method, status, is_late, late_minutes,
    credits_deducted, credits_before, credits_after,
    checked_by, checked_by_name, checked_by_role, teacher_notes
"""


def _to_record(r: dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        school_id=int(r["school_id"]),
        student_id=int(r["student_id"]),
        course_id=int(r["course_id"]),
        credit_id=int(r["credit_id"]),
        student_name=r["student_name"],
        student_code=r.get("student_code") or "",
        course_name=r["course_name"],
        check_in_date=r["check_in_date"],
        check_in_time=r["check_in_time"],
        check_in_method=CheckInMethod(r["check_in_method"]),
        status=AttendanceStatus(r["status"]),
        is_late=bool(r.get("is_late")),
        late_minutes=int(r.get("late_minutes") or 0),
        credits_deducted=int(r["credits_deducted"]),
        credits_before=int(r["credits_before"]),
        credits_after=int(r["credits_after"]),
        checked_by=str(r["checked_by"]),
        checked_by_name=r.get("checked_by_name") or "",
        checked_by_role=r.get("checked_by_role") or "",
        teacher_notes=r.get("teacher_notes"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, cur):
        self._cur = cur

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        self._cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
        r = fetchone(self._cur)
        return _to_record(r) if r else None

    def insert(self, record: AttendanceRecord) -> AttendanceRecord:
        self._cur.execute(
            """
            INSERT INTO attendance(
                school_id, student_id, course_id, credit_id,
                student_name, student_code, course_name,
                check_in_date, check_in_time, check_in_method, status, is_late, late_minutes,
                credits_deducted, credits_before, credits_after,
                checked_by, checked_by_name, checked_by_role, teacher_notes
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                record.school_id,
                record.student_id,
                record.course_id,
                record.credit_id,
                record.student_name,
                record.student_code,
                record.course_name,
                record.check_in_date,
                record.check_in_time,
                record.check_in_method.value,
                record.status.value,
                int(record.is_late),
                int(record.late_minutes),
                record.credits_deducted,
                record.credits_before,
                record.credits_after,
                record.checked_by,
                record.checked_by_name,
                record.checked_by_role,
                record.teacher_notes,
            ),
        )
        return self.get_by_id(int(self._cur.lastrowid))

    def delete(self, attendance_id: int) -> None:
        self._cur.execute("DELETE FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
        ensure_row_written(self._cur, table="attendance", key=attendance_id)

    def exists_for_day(self, *, student_id: int, course_id: int, check_in_date: date) -> bool:
        self._cur.execute(
            """
            SELECT 1 AS hit FROM attendance
            WHERE student_id=%s AND course_id=%s AND check_in_date=%s
            LIMIT 1
            """,
            (int(student_id), int(course_id), check_in_date),
        )
        return fetchone(self._cur) is not None

    def list_history(self, school_id: int, filters: AttendanceFilters, *, limit: int) -> Sequence[AttendanceRecord]:
        clauses = ["school_id=%s"]
        params: list[object] = [int(school_id)]

        if filters.course_id is not None:
            clauses.append("course_id=%s")
            params.append(int(filters.course_id))
        if filters.student_id is not None:
            clauses.append("student_id=%s")
            params.append(int(filters.student_id))
        if filters.status is not None:
            clauses.append("status=%s")
            params.append(filters.status.value)
        if filters.start_date is not None:
            clauses.append("check_in_date >= %s")
            params.append(filters.start_date)
        if filters.end_date is not None:
            clauses.append("check_in_date <= %s")
            params.append(filters.end_date)

        where = " AND ".join(clauses)
        params.append(int(limit))
        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM attendance
            WHERE {where}
            ORDER BY check_in_date DESC, check_in_time DESC
            LIMIT %s
            """,
            tuple(params),
        )
        return [_to_record(r) for r in fetchall(self._cur)]
