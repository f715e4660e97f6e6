from __future__ import annotations

from datetime import date, datetime

import pytest

from credit_ledger.attendance.model import CheckInRequest
from credit_ledger.attendance.service import AttendanceService
from credit_ledger.core.context import ActorContext
from credit_ledger.core.enums import CheckInMethod, CreditStatus
from credit_ledger.core.exceptions import (
    CreditExpired,
    CreditNotActive,
    DuplicateCheckIn,
    InsufficientCredits,
    NotFound,
    ValidationError,
)

from fakes import ACTOR, seeded_ledger

NOW = datetime(2024, 3, 1, 9, 30)


def _request(credit_id: int, **kw) -> CheckInRequest:
    return CheckInRequest(student_id=kw.pop("student_id", 1), course_id=kw.pop("course_id", 10), credit_id=credit_id, **kw)


def test_check_in_debits_one_credit_and_snapshots_balance():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=3, total=10)
    svc = AttendanceService(ledger)

    record = svc.check_in(ACTOR, _request(credit.credit_id, teacher_notes=" good "), now=NOW)

    stored = ledger.credits[credit.credit_id]
    assert stored.remaining_credits == 2
    assert stored.used_credits == 8
    assert stored.status == CreditStatus.ACTIVE
    assert stored.last_used_date == date(2024, 3, 1)
    assert stored.version == credit.version + 1

    assert record.credits_before == 3
    assert record.credits_after == 2
    assert record.credits_deducted == 1
    assert record.check_in_date == date(2024, 3, 1)
    assert record.check_in_time == NOW
    assert record.check_in_method == CheckInMethod.MANUAL
    assert record.checked_by == "u-1"
    assert record.checked_by_name == "Teacher Ann"
    assert record.checked_by_role == "teacher"
    assert record.teacher_notes == "good"
    assert ledger.attendance[record.attendance_id] == record


def test_last_credit_marks_lot_depleted():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=1, total=10)

    AttendanceService(ledger).check_in(ACTOR, _request(credit.credit_id), now=NOW)

    stored = ledger.credits[credit.credit_id]
    assert stored.remaining_credits == 0
    assert stored.used_credits == 10
    assert stored.status == CreditStatus.DEPLETED


def test_zero_balance_fails_without_side_effects():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=0, total=10)

    with pytest.raises(InsufficientCredits):
        AttendanceService(ledger).check_in(ACTOR, _request(credit.credit_id), now=NOW)

    assert ledger.attendance == {}
    assert ledger.credits[credit.credit_id] == credit


def test_zero_balance_is_reported_before_suspension():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=0, total=10, status=CreditStatus.SUSPENDED)

    with pytest.raises(InsufficientCredits):
        AttendanceService(ledger).check_in(ACTOR, _request(credit.credit_id), now=NOW)


def test_lot_expired_yesterday_is_rejected_even_if_stored_active():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=5, has_expiry=True, expiry_date=date(2024, 2, 29))

    with pytest.raises(CreditExpired):
        AttendanceService(ledger).check_in(ACTOR, _request(credit.credit_id), now=NOW)

    assert ledger.credits[credit.credit_id].remaining_credits == 5
    assert ledger.attendance == {}


def test_lot_is_usable_on_its_expiry_date():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=5, has_expiry=True, expiry_date=date(2024, 3, 1))

    AttendanceService(ledger).check_in(ACTOR, _request(credit.credit_id), now=NOW)

    assert ledger.credits[credit.credit_id].remaining_credits == 4


def test_suspended_lot_with_balance_is_not_active():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=5, status=CreditStatus.SUSPENDED)

    with pytest.raises(CreditNotActive):
        AttendanceService(ledger).check_in(ACTOR, _request(credit.credit_id), now=NOW)


def test_backdated_check_in_keeps_real_check_in_time():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=5)

    record = AttendanceService(ledger).check_in(ACTOR, _request(credit.credit_id), date(2024, 2, 27), now=NOW)

    assert record.check_in_date == date(2024, 2, 27)
    assert record.check_in_time == NOW
    assert ledger.credits[credit.credit_id].last_used_date == date(2024, 2, 27)


def test_future_check_in_date_is_rejected():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=5)

    with pytest.raises(ValidationError):
        AttendanceService(ledger).check_in(ACTOR, _request(credit.credit_id), date(2024, 3, 2), now=NOW)


def test_universal_lot_covers_any_course():
    ledger = seeded_ledger()
    ledger.add_course(11, name="Swimming")
    credit = ledger.add_credit(remaining=5, course_id=None, course_name="All courses", is_universal=True)

    record = AttendanceService(ledger).check_in(ACTOR, _request(credit.credit_id, course_id=11), now=NOW)

    assert record.course_name == "Swimming"
    assert ledger.credits[credit.credit_id].remaining_credits == 4


def test_lot_for_another_course_is_rejected():
    ledger = seeded_ledger()
    ledger.add_course(11, name="Swimming")
    credit = ledger.add_credit(remaining=5)

    with pytest.raises(ValidationError):
        AttendanceService(ledger).check_in(ACTOR, _request(credit.credit_id, course_id=11), now=NOW)


def test_lot_of_another_student_is_rejected():
    ledger = seeded_ledger()
    ledger.add_student(2)
    credit = ledger.add_credit(remaining=5)

    with pytest.raises(ValidationError):
        AttendanceService(ledger).check_in(ACTOR, _request(credit.credit_id, student_id=2), now=NOW)


def test_unknown_credit_and_foreign_school_are_not_found():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=5)
    svc = AttendanceService(ledger)
    outsider = ActorContext(school_id=2, user_id="u-9", user_name="Other", user_role="admin")

    with pytest.raises(NotFound):
        svc.check_in(ACTOR, _request(999), now=NOW)
    with pytest.raises(NotFound):
        svc.check_in(outsider, _request(credit.credit_id), now=NOW)


def test_same_day_check_ins_are_allowed_by_default():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=5)
    svc = AttendanceService(ledger)

    svc.check_in(ACTOR, _request(credit.credit_id), now=NOW)
    svc.check_in(ACTOR, _request(credit.credit_id), now=NOW)

    assert ledger.credits[credit.credit_id].remaining_credits == 3
    assert svc.has_checked_in(student_id=1, course_id=10, check_in_date=date(2024, 3, 1))


def test_duplicate_guard_blocks_second_same_day_check_in():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=5)
    svc = AttendanceService(ledger, prevent_duplicate_checkin=True)

    svc.check_in(ACTOR, _request(credit.credit_id), now=NOW)
    with pytest.raises(DuplicateCheckIn):
        svc.check_in(ACTOR, _request(credit.credit_id), now=NOW)

    assert ledger.credits[credit.credit_id].remaining_credits == 4


def test_today_attendance_lists_course_check_ins():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=5)
    svc = AttendanceService(ledger)
    svc.check_in(ACTOR, _request(credit.credit_id), date(2024, 2, 28), now=NOW)
    today = svc.check_in(ACTOR, _request(credit.credit_id), now=NOW)

    rows = svc.get_today_attendance(1, 10, today=date(2024, 3, 1))

    assert [r.attendance_id for r in rows] == [today.attendance_id]
    assert len(svc.get_attendance_history(1)) == 2
