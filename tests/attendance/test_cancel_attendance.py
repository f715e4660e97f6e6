from __future__ import annotations

from datetime import datetime

import pytest

from credit_ledger.adjustments.model import AdjustmentRequest
from credit_ledger.adjustments.service import CreditAdjustmentService
from credit_ledger.attendance.model import CheckInRequest
from credit_ledger.attendance.service import AttendanceService
from credit_ledger.core.context import ActorContext
from credit_ledger.core.enums import AdjustmentType, CreditStatus
from credit_ledger.core.exceptions import NotFound
from credit_ledger.credits import rules

from fakes import ACTOR, seeded_ledger

NOW = datetime(2024, 3, 1, 9, 30)


def test_cancel_refunds_credit_and_removes_attendance():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=3, total=10)
    svc = AttendanceService(ledger)
    record = svc.check_in(ACTOR, CheckInRequest(student_id=1, course_id=10, credit_id=credit.credit_id), now=NOW)

    restored = svc.cancel_attendance(record.attendance_id, "marked by mistake", ACTOR)

    assert restored.remaining_credits == 3
    assert restored.used_credits == 7
    assert restored.status == CreditStatus.ACTIVE
    assert ledger.credits[credit.credit_id] == restored
    assert record.attendance_id not in ledger.attendance


def test_cancel_reactivates_depleted_lot():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=1, total=10)
    svc = AttendanceService(ledger)
    record = svc.check_in(ACTOR, CheckInRequest(student_id=1, course_id=10, credit_id=credit.credit_id), now=NOW)
    assert ledger.credits[credit.credit_id].status == CreditStatus.DEPLETED

    restored = svc.cancel_attendance(record.attendance_id, "wrong student")

    assert restored.remaining_credits == 1
    assert restored.status == CreditStatus.ACTIVE


def test_cancel_keeps_suspension():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=3, total=10)
    svc = AttendanceService(ledger)
    record = svc.check_in(ACTOR, CheckInRequest(student_id=1, course_id=10, credit_id=credit.credit_id), now=NOW)
    current = ledger.credits[credit.credit_id]
    ledger.credits[credit.credit_id] = current.with_balance(
        used=current.used_credits, remaining=current.remaining_credits, status=CreditStatus.SUSPENDED
    )

    restored = svc.cancel_attendance(record.attendance_id, "refund while on hold")

    assert restored.remaining_credits == 3
    assert restored.status == CreditStatus.SUSPENDED


def test_cancel_after_manual_reset_grows_lot_and_keeps_balance_consistent():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=10, total=10)
    svc = AttendanceService(ledger)
    record = svc.check_in(ACTOR, CheckInRequest(student_id=1, course_id=10, credit_id=credit.credit_id), now=NOW)
    CreditAdjustmentService(ledger).adjust_credit(
        credit.credit_id, AdjustmentRequest(AdjustmentType.SET, 10, "restore full pack"), ACTOR
    )
    assert ledger.credits[credit.credit_id].used_credits == 0

    restored = svc.cancel_attendance(record.attendance_id, "session did not happen", ACTOR)

    assert restored.remaining_credits == 11
    assert restored.total_credits == 11
    assert restored.used_credits == 0
    assert restored.used_credits + restored.remaining_credits == restored.total_credits
    assert ledger.credits[credit.credit_id] == restored


def test_refund_grows_total_only_by_the_shortfall():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=9, total=10)

    refunded = rules.refund(credit, amount=3)

    assert (refunded.used_credits, refunded.remaining_credits, refunded.total_credits) == (0, 12, 12)


def test_cancel_unknown_attendance_is_not_found():
    ledger = seeded_ledger()

    with pytest.raises(NotFound):
        AttendanceService(ledger).cancel_attendance(999, "typo")


def test_cancel_twice_refunds_once():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=3, total=10)
    svc = AttendanceService(ledger)
    record = svc.check_in(ACTOR, CheckInRequest(student_id=1, course_id=10, credit_id=credit.credit_id), now=NOW)
    svc.cancel_attendance(record.attendance_id, "first")

    with pytest.raises(NotFound):
        svc.cancel_attendance(record.attendance_id, "second")

    assert ledger.credits[credit.credit_id].remaining_credits == 3


def test_cancel_from_another_school_is_not_found():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=3, total=10)
    svc = AttendanceService(ledger)
    record = svc.check_in(ACTOR, CheckInRequest(student_id=1, course_id=10, credit_id=credit.credit_id), now=NOW)
    outsider = ActorContext(school_id=2, user_id="u-9", user_name="Other", user_role="admin")

    with pytest.raises(NotFound):
        svc.cancel_attendance(record.attendance_id, "not mine", outsider)

    assert record.attendance_id in ledger.attendance
