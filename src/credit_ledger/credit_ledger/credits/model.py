from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import CreditStatus, PaymentMethod, PaymentStatus


@dataclass(frozen=True)
class CreditRecord:
    """Domain entity: one purchased package instance and its remaining balance.

    Display fields (student/course/package names) are captured at purchase
    time and deliberately not kept in sync with later renames.

    ``version`` is bumped on every write; writers compare it to detect
    concurrent modification.
    """

    credit_id: int
    school_id: int
    student_id: int
    course_id: Optional[int]
    package_id: int

    student_name: str
    student_code: str
    course_name: str
    package_name: str

    total_credits: int
    bonus_credits: int
    used_credits: int
    remaining_credits: int

    original_price: Decimal
    discount_amount: Decimal
    final_price: Decimal
    price_per_credit: Decimal

    payment_method: PaymentMethod
    payment_status: PaymentStatus

    purchase_date: date
    activation_date: date
    has_expiry: bool
    status: CreditStatus

    expiry_date: Optional[date] = None
    is_universal: bool = False
    package_code: Optional[str] = None
    payment_reference: Optional[str] = None
    payment_note: Optional[str] = None
    receipt_number: Optional[str] = None
    last_used_date: Optional[date] = None
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def covers_course(self, course_id: int) -> bool:
        if self.is_universal:
            return True
        return self.course_id is not None and int(self.course_id) == int(course_id)

    def with_balance(self, *, used: int, remaining: int, status: CreditStatus, **changes) -> "CreditRecord":
        return replace(self, used_credits=used, remaining_credits=remaining, status=status, **changes)


@dataclass(frozen=True)
class PurchaseRequest:
    student_id: int
    package_id: int
    payment_method: PaymentMethod
    payment_amount: Decimal
    discount_amount: Decimal = Decimal("0")
    payment_note: Optional[str] = None
    payment_reference: Optional[str] = None
    course_id: Optional[int] = None


@dataclass(frozen=True)
class CreditFilters:
    course_id: Optional[int] = None
    student_id: Optional[int] = None
    status: Optional[CreditStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class CreditSummary:
    """Read-model for balance tooltips and per-package listings."""

    credit_id: int
    course_name: str
    package_name: str
    remaining_credits: int
    total_credits: int
    status: CreditStatus
    expiry_date: Optional[date]
    days_until_expiry: Optional[int]
