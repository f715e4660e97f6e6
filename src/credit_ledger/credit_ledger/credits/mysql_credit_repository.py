from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..core.enums import CreditStatus, PaymentMethod, PaymentStatus
from ..database.mysql_base import ensure_row_written, fetchall, fetchone, to_decimal
from .model import CreditFilters, CreditRecord
from .repository import CreditRepository

_COLUMNS = """
    credit_id, school_id, student_id, course_id, package_id, is_universal,
    student_name, student_code, course_name, package_name, package_code,
    total_credits, bonus_credits, used_credits, remaining_credits,
    original_price, discount_amount, final_price, price_per_credit,
    payment_method, payment_status, payment_reference, payment_note, receipt_number,
    purchase_date, activation_date, has_expiry, expiry_date, status,
    last_used_date, version, created_at, updated_at
"""


def _to_credit(r: dict[str, Any]) -> CreditRecord:
    return CreditRecord(
        credit_id=int(r["credit_id"]),
        school_id=int(r["school_id"]),
        student_id=int(r["student_id"]),
        course_id=int(r["course_id"]) if r.get("course_id") is not None else None,
        package_id=int(r["package_id"]),
        is_universal=bool(r.get("is_universal")),
        student_name=r["student_name"],
        student_code=r.get("student_code") or "",
        course_name=r["course_name"],
        package_name=r["package_name"],
        package_code=r.get("package_code"),
        total_credits=int(r["total_credits"]),
        bonus_credits=int(r.get("bonus_credits") or 0),
        used_credits=int(r["used_credits"]),
        remaining_credits=int(r["remaining_credits"]),
        original_price=to_decimal(r.get("original_price")),
        discount_amount=to_decimal(r.get("discount_amount")),
        final_price=to_decimal(r.get("final_price")),
        price_per_credit=to_decimal(r.get("price_per_credit")),
        payment_method=PaymentMethod(r["payment_method"]),
        payment_status=PaymentStatus(r["payment_status"]),
        payment_reference=r.get("payment_reference"),
        payment_note=r.get("payment_note"),
        receipt_number=r.get("receipt_number"),
        purchase_date=r["purchase_date"],
        activation_date=r["activation_date"],
        has_expiry=bool(r.get("has_expiry")),
        expiry_date=r.get("expiry_date"),
        status=CreditStatus(r["status"]),
        last_used_date=r.get("last_used_date"),
        version=int(r.get("version") or 0),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLCreditRepository(CreditRepository):
    """Credit lots in ``student_credits``; bound to the cursor of one unit of work."""

    def __init__(self, cur):
        self._cur = cur

    def get_by_id(self, credit_id: int) -> Optional[CreditRecord]:
        self._cur.execute(f"SELECT {_COLUMNS} FROM student_credits WHERE credit_id=%s", (int(credit_id),))
        r = fetchone(self._cur)
        return _to_credit(r) if r else None

    def insert(self, credit: CreditRecord) -> CreditRecord:
        self._cur.execute(
            """
            INSERT INTO student_credits(
                school_id, student_id, course_id, package_id, is_universal,
                student_name, student_code, course_name, package_name, package_code,
                total_credits, bonus_credits, used_credits, remaining_credits,
                original_price, discount_amount, final_price, price_per_credit,
                payment_method, payment_status, payment_reference, payment_note, receipt_number,
                purchase_date, activation_date, has_expiry, expiry_date, status, version
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
            """,
            (
                credit.school_id,
                credit.student_id,
                credit.course_id,
                credit.package_id,
                int(credit.is_universal),
                credit.student_name,
                credit.student_code,
                credit.course_name,
                credit.package_name,
                credit.package_code,
                credit.total_credits,
                credit.bonus_credits,
                credit.used_credits,
                credit.remaining_credits,
                credit.original_price,
                credit.discount_amount,
                credit.final_price,
                credit.price_per_credit,
                credit.payment_method.value,
                credit.payment_status.value,
                credit.payment_reference,
                credit.payment_note,
                credit.receipt_number,
                credit.purchase_date,
                credit.activation_date,
                int(credit.has_expiry),
                credit.expiry_date,
                credit.status.value,
            ),
        )
        credit_id = int(self._cur.lastrowid)
        return self.get_by_id(credit_id)

    def update_balance(self, credit: CreditRecord) -> CreditRecord:
        self._cur.execute(
            """
            UPDATE student_credits
            SET total_credits=%s, used_credits=%s, remaining_credits=%s, status=%s,
                last_used_date=%s, version=version+1, updated_at=CURRENT_TIMESTAMP
            WHERE credit_id=%s AND version=%s
            """,
            (
                credit.total_credits,
                credit.used_credits,
                credit.remaining_credits,
                credit.status.value,
                credit.last_used_date,
                credit.credit_id,
                credit.version,
            ),
        )
        ensure_row_written(self._cur, table="student_credits", key=credit.credit_id)
        return self.get_by_id(credit.credit_id)

    def receipt_number_exists(self, *, school_id: int, receipt_number: str) -> bool:
        self._cur.execute(
            "SELECT 1 AS hit FROM student_credits WHERE school_id=%s AND receipt_number=%s LIMIT 1",
            (int(school_id), receipt_number),
        )
        return fetchone(self._cur) is not None

    def list_for_student(self, student_id: int) -> Sequence[CreditRecord]:
        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM student_credits
            WHERE student_id=%s
            ORDER BY purchase_date DESC, credit_id DESC
            """,
            (int(student_id),),
        )
        return [_to_credit(r) for r in fetchall(self._cur)]

    def list_for_school(self, school_id: int, filters: CreditFilters) -> Sequence[CreditRecord]:
        clauses = ["school_id=%s"]
        params: list[object] = [int(school_id)]

        if filters.course_id is not None:
            clauses.append("course_id=%s")
            params.append(int(filters.course_id))
        if filters.student_id is not None:
            clauses.append("student_id=%s")
            params.append(int(filters.student_id))
        if filters.start_date is not None:
            clauses.append("purchase_date >= %s")
            params.append(filters.start_date)
        if filters.end_date is not None:
            clauses.append("purchase_date <= %s")
            params.append(filters.end_date)

        where = " AND ".join(clauses)
        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM student_credits
            WHERE {where}
            ORDER BY purchase_date DESC, credit_id DESC
            """,
            tuple(params),
        )
        return [_to_credit(r) for r in fetchall(self._cur)]

    def list_expirable(self, *, school_id: int, today: date) -> Sequence[CreditRecord]:
        self._cur.execute(
            f"""
            SELECT {_COLUMNS}
            FROM student_credits
            WHERE school_id=%s AND status IN ('active', 'depleted')
              AND has_expiry=1 AND expiry_date < %s
            """,
            (int(school_id), today),
        )
        return [_to_credit(r) for r in fetchall(self._cur)]
