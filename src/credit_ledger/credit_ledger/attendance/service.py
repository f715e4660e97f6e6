from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_non_negative_int
from ..core.constants import CREDITS_PER_CHECKIN, DEFAULT_HISTORY_LIMIT, DEFAULT_TRANSACTION_ATTEMPTS
from ..core.context import ActorContext
from ..core.exceptions import DuplicateCheckIn, NotFound, ValidationError
from ..credits import rules
from ..credits.model import CreditRecord
from ..database.unit_of_work import UnitOfWork, UnitOfWorkFactory, run_atomic, run_read
from .model import AttendanceFilters, AttendanceRecord, CheckInRequest

logger = logging.getLogger(__name__)


class AttendanceService:
    """Check-in / cancellation engine.

    Both mutations read the credit lot and write it back inside one unit of
    work; a concurrent writer makes the compare-and-swap fail and the whole
    operation is retried from fresh reads.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        *,
        max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
        prevent_duplicate_checkin: bool = False,
    ):
        self._uow_factory = uow_factory
        self._max_attempts = int(max_attempts)
        self._prevent_duplicate = bool(prevent_duplicate_checkin)

    def check_in(
        self,
        actor: ActorContext,
        request: CheckInRequest,
        effective_date: date | None = None,
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()
        check_in_date = effective_date or today
        if check_in_date > today:
            raise ValidationError("Check-in date cannot be in the future")
        late_minutes = require_non_negative_int(request.late_minutes or 0, "Late minutes")
        school_id = int(actor.school_id)

        def work(uow: UnitOfWork) -> AttendanceRecord:
            student = uow.students.get_by_id(int(request.student_id))
            if not student or student.school_id != school_id:
                raise NotFound(f"Student {request.student_id} not found")

            course = uow.courses.get_by_id(int(request.course_id))
            if not course or course.school_id != school_id:
                raise NotFound(f"Course {request.course_id} not found")

            credit = uow.credits.get_by_id(int(request.credit_id))
            if not credit or credit.school_id != school_id:
                raise NotFound(f"Credit {request.credit_id} not found")
            if credit.student_id != student.student_id:
                raise ValidationError("Credit does not belong to this student")
            if not credit.covers_course(course.course_id):
                raise ValidationError(f"Credit {credit.package_name} cannot be used for {course.name}")

            rules.ensure_debitable(credit, amount=CREDITS_PER_CHECKIN, today=today)

            if self._prevent_duplicate and uow.attendance.exists_for_day(
                student_id=student.student_id,
                course_id=course.course_id,
                check_in_date=check_in_date,
            ):
                raise DuplicateCheckIn(f"{student.full_name} is already checked in for {course.name} on {check_in_date}")

            record = uow.attendance.insert(
                AttendanceRecord(
                    attendance_id=0,
                    school_id=school_id,
                    student_id=student.student_id,
                    course_id=course.course_id,
                    credit_id=credit.credit_id,
                    student_name=student.full_name,
                    student_code=student.student_code or "",
                    course_name=course.name,
                    check_in_date=check_in_date,
                    check_in_time=now,
                    check_in_method=request.check_in_method,
                    status=request.status,
                    is_late=bool(request.is_late),
                    late_minutes=late_minutes,
                    credits_deducted=CREDITS_PER_CHECKIN,
                    credits_before=credit.remaining_credits,
                    credits_after=credit.remaining_credits - CREDITS_PER_CHECKIN,
                    checked_by=str(actor.user_id),
                    checked_by_name=actor.user_name,
                    checked_by_role=actor.user_role,
                    teacher_notes=(request.teacher_notes or "").strip() or None,
                )
            )
            uow.credits.update_balance(rules.debit(credit, amount=CREDITS_PER_CHECKIN, used_on=check_in_date))
            return record

        record = run_atomic(self._uow_factory, work, max_attempts=self._max_attempts, operation="check-in")
        logger.info(
            "Checked in student=%s course=%s credit=%s date=%s (%s -> %s) by %s",
            record.student_id,
            record.course_id,
            record.credit_id,
            record.check_in_date,
            record.credits_before,
            record.credits_after,
            record.checked_by,
        )
        return record

    def cancel_attendance(self, attendance_id: int, reason: str, actor: Optional[ActorContext] = None) -> CreditRecord:
        """Undo a check-in: delete the attendance row and refund its credits.

        The attendance row is gone afterwards; only the log line keeps the reason.
        """

        def work(uow: UnitOfWork) -> CreditRecord:
            record = uow.attendance.get_by_id(int(attendance_id))
            if not record or (actor is not None and record.school_id != int(actor.school_id)):
                raise NotFound(f"Attendance {attendance_id} not found")

            credit = uow.credits.get_by_id(record.credit_id)
            if not credit:
                raise NotFound(f"Credit {record.credit_id} not found")

            uow.attendance.delete(record.attendance_id)
            return uow.credits.update_balance(rules.refund(credit, amount=record.credits_deducted))

        credit = run_atomic(self._uow_factory, work, max_attempts=self._max_attempts, operation="attendance cancellation")
        logger.info(
            "Cancelled attendance %s, refunded credit %s (remaining %s) by %s: %s",
            attendance_id,
            credit.credit_id,
            credit.remaining_credits,
            actor.user_id if actor else "-",
            (reason or "").strip() or "-",
        )
        return credit

    def get_attendance_history(
        self,
        school_id: int,
        filters: AttendanceFilters | None = None,
        *,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[AttendanceRecord]:
        filters = filters or AttendanceFilters()
        return list(
            run_read(
                self._uow_factory,
                lambda uow: uow.attendance.list_history(int(school_id), filters, limit=int(limit)),
            )
        )

    def get_today_attendance(self, school_id: int, course_id: int, *, today: date | None = None) -> list[AttendanceRecord]:
        today = today or now_local().date()
        return self.get_attendance_history(
            school_id,
            AttendanceFilters(course_id=int(course_id), start_date=today, end_date=today),
        )

    def has_checked_in(self, *, student_id: int, course_id: int, check_in_date: date) -> bool:
        """Pre-query callers use to avoid same-day duplicates when the guard is off."""
        return run_read(
            self._uow_factory,
            lambda uow: uow.attendance.exists_for_day(
                student_id=int(student_id),
                course_id=int(course_id),
                check_in_date=check_in_date,
            ),
        )
