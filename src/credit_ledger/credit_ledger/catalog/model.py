from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from ..core.enums import ValidityType


@dataclass(frozen=True)
class Student:
    """Domain entity: Student (read-only from the ledger's point of view)."""

    student_id: int
    school_id: int
    student_code: str
    first_name: str
    last_name: str
    nickname: Optional[str] = None
    is_deleted: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


@dataclass(frozen=True)
class Course:
    course_id: int
    school_id: int
    code: str
    name: str
    is_deleted: bool = False


@dataclass(frozen=True)
class CreditPackage:
    """Domain entity: a sellable bundle of class credits.

    A package applies to the listed courses, or to every course when
    ``is_universal`` is set.
    """

    package_id: int
    school_id: int
    code: str
    name: str
    credits: int
    bonus_credits: int
    price: Decimal
    validity_type: ValidityType
    validity_value: Optional[int] = None
    applicable_course_ids: tuple[int, ...] = field(default_factory=tuple)
    is_universal: bool = False
    is_deleted: bool = False

    @property
    def total_credits_with_bonus(self) -> int:
        return int(self.credits) + int(self.bonus_credits or 0)

    def applies_to(self, course_id: int) -> bool:
        return self.is_universal or int(course_id) in self.applicable_course_ids
