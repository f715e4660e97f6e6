from __future__ import annotations

from typing import Optional

from ..core.enums import ValidityType
from ..database.mysql_base import fetchall, fetchone, to_decimal
from .model import Course, CreditPackage
from .repository import CourseRepository, PackageRepository


class MySQLCourseRepository(CourseRepository):
    def __init__(self, cur):
        self._cur = cur

    def get_by_id(self, course_id: int) -> Optional[Course]:
        self._cur.execute(
            "SELECT course_id, school_id, code, name, is_deleted FROM courses WHERE course_id=%s",
            (int(course_id),),
        )
        row = fetchone(self._cur)
        if not row:
            return None
        return Course(
            course_id=int(row["course_id"]),
            school_id=int(row["school_id"]),
            code=row.get("code") or "",
            name=row.get("name") or "",
            is_deleted=bool(row.get("is_deleted", False)),
        )


class MySQLPackageRepository(PackageRepository):
    """Packages plus their applicable courses from ``credit_package_courses``."""

    def __init__(self, cur):
        self._cur = cur

    def get_by_id(self, package_id: int) -> Optional[CreditPackage]:
        self._cur.execute(
            """
            SELECT package_id, school_id, code, name, credits, bonus_credits, price,
                   validity_type, validity_value, is_universal, is_deleted
            FROM credit_packages
            WHERE package_id=%s
            """,
            (int(package_id),),
        )
        row = fetchone(self._cur)
        if not row:
            return None

        self._cur.execute(
            "SELECT course_id FROM credit_package_courses WHERE package_id=%s ORDER BY course_id",
            (int(package_id),),
        )
        course_ids = tuple(int(r["course_id"]) for r in fetchall(self._cur))

        return CreditPackage(
            package_id=int(row["package_id"]),
            school_id=int(row["school_id"]),
            code=row.get("code") or "",
            name=row.get("name") or "",
            credits=int(row["credits"]),
            bonus_credits=int(row.get("bonus_credits") or 0),
            price=to_decimal(row.get("price")),
            validity_type=ValidityType(row["validity_type"]),
            validity_value=int(row["validity_value"]) if row.get("validity_value") is not None else None,
            applicable_course_ids=course_ids,
            is_universal=bool(row.get("is_universal", False)),
            is_deleted=bool(row.get("is_deleted", False)),
        )
