from __future__ import annotations

import logging
import random
from datetime import date
from typing import Optional, Sequence

from ..catalog.model import CreditPackage
from ..common.datetime_utils import days_until, now_local
from ..common.validators import require_money
from ..core.constants import (
    DEFAULT_LOW_CREDIT_THRESHOLD,
    DEFAULT_TRANSACTION_ATTEMPTS,
    RECEIPT_MAX_DRAWS,
    UNIVERSAL_COURSE_NAME,
)
from ..core.enums import CreditStatus, PaymentStatus
from ..core.exceptions import NotFound, ValidationError
from ..database.unit_of_work import UnitOfWork, UnitOfWorkFactory, run_atomic, run_read
from .factory import ValidityPolicyFactory
from .model import CreditFilters, CreditRecord, CreditSummary, PurchaseRequest
from .rules import effective_status, generate_receipt_number, is_past_expiry, price_per_credit

logger = logging.getLogger(__name__)


def _require_display(value: Optional[str], field_name: str) -> str:
    v = (value or "").strip()
    if not v:
        raise ValidationError(f"Cannot record credits: {field_name} is missing")
    return v


class CreditIssuanceService:
    """Turns a package purchase into a new credit lot."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        *,
        validity_factory: ValidityPolicyFactory | None = None,
        max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
        rng: random.Random | None = None,
    ):
        self._uow_factory = uow_factory
        self._validity = validity_factory or ValidityPolicyFactory()
        self._max_attempts = int(max_attempts)
        self._rng = rng

    def purchase_credits(self, school_id: int, request: PurchaseRequest, *, today: date | None = None) -> CreditRecord:
        today = today or now_local().date()
        payment_amount = require_money(request.payment_amount, "Payment amount")
        discount_amount = require_money(request.discount_amount or 0, "Discount amount")

        def work(uow: UnitOfWork) -> CreditRecord:
            student = uow.students.get_by_id(int(request.student_id))
            if not student or student.is_deleted or student.school_id != int(school_id):
                raise NotFound(f"Student {request.student_id} not found")

            package = uow.packages.get_by_id(int(request.package_id))
            if not package or package.is_deleted or package.school_id != int(school_id):
                raise NotFound(f"Package {request.package_id} not found")

            course_id, course_name = self._resolve_course(uow, school_id=int(school_id), package=package, requested=request.course_id)

            total = package.total_credits_with_bonus
            if total <= 0:
                raise ValidationError(f"Package {package.name} has no credits")

            validity = self._validity.for_validity(package.validity_type).decide_expiry(
                purchase_date=today,
                validity_value=package.validity_value,
            )

            credit = CreditRecord(
                credit_id=0,
                school_id=int(school_id),
                student_id=student.student_id,
                course_id=course_id,
                package_id=package.package_id,
                student_name=_require_display(student.full_name, "student name"),
                student_code=student.student_code or "",
                course_name=_require_display(course_name, "course name"),
                package_name=_require_display(package.name, "package name"),
                package_code=package.code,
                total_credits=total,
                bonus_credits=int(package.bonus_credits or 0),
                used_credits=0,
                remaining_credits=total,
                original_price=package.price,
                discount_amount=discount_amount,
                final_price=payment_amount,
                price_per_credit=price_per_credit(payment_amount, total),
                payment_method=request.payment_method,
                payment_status=PaymentStatus.PAID,
                payment_reference=(request.payment_reference or "").strip() or None,
                payment_note=(request.payment_note or "").strip() or None,
                purchase_date=today,
                activation_date=today,
                has_expiry=validity.has_expiry,
                expiry_date=validity.expiry_date,
                status=CreditStatus.ACTIVE,
                is_universal=course_id is None,
                receipt_number=self._draw_receipt_number(uow, school_id=int(school_id), today=today),
            )
            return uow.credits.insert(credit)

        credit = run_atomic(self._uow_factory, work, max_attempts=self._max_attempts, operation="credit purchase")
        logger.info(
            "Credits purchased: credit=%s student=%s package=%s total=%s receipt=%s",
            credit.credit_id,
            credit.student_id,
            credit.package_id,
            credit.total_credits,
            credit.receipt_number,
        )
        return credit

    @staticmethod
    def _resolve_course(uow: UnitOfWork, *, school_id: int, package: CreditPackage, requested: Optional[int]):
        """Pick the course a new lot is scoped to; ``None`` means a universal credit."""

        if requested is not None:
            if not package.applies_to(int(requested)):
                raise ValidationError(f"Package {package.name} cannot be used for course {requested}")
            course_id = int(requested)
        elif len(package.applicable_course_ids) == 1:
            course_id = package.applicable_course_ids[0]
        elif package.is_universal:
            return None, UNIVERSAL_COURSE_NAME
        else:
            raise ValidationError(f"Package {package.name} covers several courses; choose one")

        course = uow.courses.get_by_id(course_id)
        if not course or course.is_deleted or course.school_id != school_id:
            raise NotFound(f"Course {course_id} not found")
        return course.course_id, course.name

    def _draw_receipt_number(self, uow: UnitOfWork, *, school_id: int, today: date) -> str:
        number = generate_receipt_number(today, rng=self._rng)
        for _ in range(RECEIPT_MAX_DRAWS - 1):
            if not uow.credits.receipt_number_exists(school_id=school_id, receipt_number=number):
                return number
            number = generate_receipt_number(today, rng=self._rng)
        logger.warning("Receipt number space for %s/%02d looks crowded; last draw %s", today.year, today.month, number)
        return number


class CreditQueryService:
    """Read-only balance aggregation. Results are point-in-time snapshots."""

    def __init__(self, uow_factory: UnitOfWorkFactory, *, low_credit_threshold: int = DEFAULT_LOW_CREDIT_THRESHOLD):
        self._uow_factory = uow_factory
        self._low_credit_threshold = int(low_credit_threshold)

    def get_credit(self, credit_id: int, *, today: date | None = None) -> CreditRecord:
        today = today or now_local().date()
        credit = run_read(self._uow_factory, lambda uow: uow.credits.get_by_id(int(credit_id)))
        if not credit:
            raise NotFound(f"Credit {credit_id} not found")
        return self._with_effective_status(credit, today)

    def get_student_active_credits(
        self,
        student_id: int,
        course_id: Optional[int] = None,
        *,
        available_only: bool = True,
        today: date | None = None,
    ) -> list[CreditRecord]:
        """Credits the student can still use, optionally for one course.

        A course scope also returns universal credits. With
        ``available_only=False`` zero-balance rows are kept.
        """

        today = today or now_local().date()
        out = []
        for credit in self.get_student_credit_history(student_id, today=today):
            if credit.status != CreditStatus.ACTIVE:
                continue
            if course_id is not None and not credit.covers_course(course_id):
                continue
            if available_only and credit.remaining_credits <= 0:
                continue
            out.append(credit)
        return out

    def get_student_credit_history(self, student_id: int, *, today: date | None = None) -> list[CreditRecord]:
        today = today or now_local().date()
        rows = run_read(self._uow_factory, lambda uow: uow.credits.list_for_student(int(student_id)))
        return [self._with_effective_status(c, today) for c in rows]

    def total_remaining(self, student_id: int, course_id: Optional[int] = None, *, today: date | None = None) -> int:
        credits = self.get_student_active_credits(student_id, course_id, today=today)
        return sum(c.remaining_credits for c in credits)

    def credit_summaries(
        self,
        student_id: int,
        course_id: Optional[int] = None,
        *,
        today: date | None = None,
    ) -> list[CreditSummary]:
        today = today or now_local().date()
        return [
            CreditSummary(
                credit_id=c.credit_id,
                course_name=c.course_name,
                package_name=c.package_name,
                remaining_credits=c.remaining_credits,
                total_credits=c.total_credits,
                status=c.status,
                expiry_date=c.expiry_date,
                days_until_expiry=days_until(c.expiry_date, today) if c.has_expiry else None,
            )
            for c in self.get_student_active_credits(student_id, course_id, today=today)
        ]

    def get_school_credits(
        self,
        school_id: int,
        filters: CreditFilters | None = None,
        *,
        today: date | None = None,
    ) -> list[CreditRecord]:
        """Full history for reporting; zero-balance and expired rows included."""

        today = today or now_local().date()
        filters = filters or CreditFilters()
        rows = run_read(self._uow_factory, lambda uow: uow.credits.list_for_school(int(school_id), filters))
        credits = [self._with_effective_status(c, today) for c in rows]
        if filters.status is not None:
            credits = [c for c in credits if c.status == filters.status]
        return credits

    def enrollment_counts(self, school_id: int, *, today: date | None = None) -> dict[int, int]:
        """Distinct students holding a usable, course-scoped credit, per course."""

        students_by_course: dict[int, set[int]] = {}
        for credit in self.get_school_credits(school_id, today=today):
            if credit.course_id is None or credit.status != CreditStatus.ACTIVE or credit.remaining_credits <= 0:
                continue
            students_by_course.setdefault(int(credit.course_id), set()).add(credit.student_id)
        return {course_id: len(students) for course_id, students in students_by_course.items()}

    def enrollment_count(self, school_id: int, course_id: int, *, today: date | None = None) -> int:
        return self.enrollment_counts(school_id, today=today).get(int(course_id), 0)

    def low_credit_alerts(
        self,
        school_id: int,
        *,
        threshold: Optional[int] = None,
        today: date | None = None,
    ) -> list[CreditRecord]:
        limit = self._low_credit_threshold if threshold is None else int(threshold)
        credits = [
            c
            for c in self.get_school_credits(school_id, CreditFilters(status=CreditStatus.ACTIVE), today=today)
            if 0 < c.remaining_credits <= limit
        ]
        credits.sort(key=lambda c: (c.remaining_credits, c.student_name))
        return credits

    @staticmethod
    def _with_effective_status(credit: CreditRecord, today: date) -> CreditRecord:
        status = effective_status(credit, today)
        if status == credit.status:
            return credit
        return credit.with_balance(used=credit.used_credits, remaining=credit.remaining_credits, status=status)


class CreditExpiryService:
    """Reconciles lazily-computed expiry into the stored status."""

    def __init__(self, uow_factory: UnitOfWorkFactory, *, max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS):
        self._uow_factory = uow_factory
        self._max_attempts = int(max_attempts)

    def expire_credits(self, school_id: int, *, today: date | None = None) -> int:
        today = today or now_local().date()
        candidates: Sequence[CreditRecord] = run_read(
            self._uow_factory,
            lambda uow: uow.credits.list_expirable(school_id=int(school_id), today=today),
        )

        expired = 0
        for candidate in candidates:

            def work(uow: UnitOfWork, credit_id: int = candidate.credit_id) -> bool:
                credit = uow.credits.get_by_id(credit_id)
                if not credit or credit.status not in (CreditStatus.ACTIVE, CreditStatus.DEPLETED):
                    return False
                if not is_past_expiry(credit, today):
                    return False
                uow.credits.update_balance(
                    credit.with_balance(
                        used=credit.used_credits,
                        remaining=credit.remaining_credits,
                        status=CreditStatus.EXPIRED,
                    )
                )
                return True

            if run_atomic(self._uow_factory, work, max_attempts=self._max_attempts, operation="credit expiry"):
                expired += 1

        logger.info("Expiry sweep for school %s on %s: %s credit(s) expired", school_id, today, expired)
        return expired
