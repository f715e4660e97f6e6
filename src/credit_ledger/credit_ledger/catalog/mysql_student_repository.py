from __future__ import annotations

from typing import Optional

from ..database.mysql_base import fetchone
from .model import Student
from .repository import StudentRepository


class MySQLStudentRepository(StudentRepository):
    def __init__(self, cur):
        self._cur = cur

    def get_by_id(self, student_id: int) -> Optional[Student]:
        self._cur.execute(
            """
            SELECT student_id, school_id, student_code, first_name, last_name, nickname, is_deleted
            FROM students
            WHERE student_id=%s
            """,
            (int(student_id),),
        )
        row = fetchone(self._cur)
        if not row:
            return None
        return Student(
            student_id=int(row["student_id"]),
            school_id=int(row["school_id"]),
            student_code=row.get("student_code") or "",
            first_name=row.get("first_name") or "",
            last_name=row.get("last_name") or "",
            nickname=row.get("nickname"),
            is_deleted=bool(row.get("is_deleted", False)),
        )
