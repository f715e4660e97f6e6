from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import AdjustmentType
from ..database.mysql_base import fetchall, fetchone
from .model import AdjustmentRecord
from .repository import AdjustmentRepository

_COLUMNS = """
    adjustment_id, school_id, student_id, credit_id, student_name, course_name,
    adjustment_type, amount, credits_before, credits_after, reason,
    adjusted_by, adjusted_by_name, adjusted_by_role, created_at
"""


def _to_adjustment(r: dict) -> AdjustmentRecord:
    return AdjustmentRecord(
        adjustment_id=int(r["adjustment_id"]),
        school_id=int(r["school_id"]),
        student_id=int(r["student_id"]),
        credit_id=int(r["credit_id"]),
        student_name=r.get("student_name") or "",
        course_name=r.get("course_name") or "",
        adjustment_type=AdjustmentType(r["adjustment_type"]),
        amount=int(r["amount"]),
        credits_before=int(r["credits_before"]),
        credits_after=int(r["credits_after"]),
        reason=r["reason"],
        adjusted_by=str(r["adjusted_by"]),
        adjusted_by_name=r.get("adjusted_by_name") or "",
        adjusted_by_role=r.get("adjusted_by_role") or "",
        created_at=r.get("created_at"),
    )


class MySQLAdjustmentRepository(AdjustmentRepository):
    def __init__(self, cur):
        self._cur = cur

    def append(self, record: AdjustmentRecord) -> AdjustmentRecord:
        self._cur.execute(
            """
            INSERT INTO credit_adjustments(
                school_id, student_id, credit_id, student_name, course_name,
                adjustment_type, amount, credits_before, credits_after, reason,
                adjusted_by, adjusted_by_name, adjusted_by_role
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                record.school_id,
                record.student_id,
                record.credit_id,
                record.student_name,
                record.course_name,
                record.adjustment_type.value,
                record.amount,
                record.credits_before,
                record.credits_after,
                record.reason,
                record.adjusted_by,
                record.adjusted_by_name,
                record.adjusted_by_role,
            ),
        )
        self._cur.execute(
            f"SELECT {_COLUMNS} FROM credit_adjustments WHERE adjustment_id=%s",
            (int(self._cur.lastrowid),),
        )
        return _to_adjustment(fetchone(self._cur))

    def list_history(
        self,
        school_id: int,
        *,
        credit_id: Optional[int] = None,
        student_id: Optional[int] = None,
        limit: int,
    ) -> Sequence[AdjustmentRecord]:
        clauses = ["school_id=%s"]
        params: list[object] = [int(school_id)]
        if credit_id is not None:
            clauses.append("credit_id=%s")
            params.append(int(credit_id))
        if student_id is not None:
            clauses.append("student_id=%s")
            params.append(int(student_id))

        where = " AND ".join(clauses)
        params.append(int(limit))
        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM credit_adjustments
            WHERE {where}
            ORDER BY created_at DESC, adjustment_id DESC
            LIMIT %s
            """,
            tuple(params),
        )
        return [_to_adjustment(r) for r in fetchall(self._cur)]
