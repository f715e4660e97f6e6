from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from credit_ledger.core.constants import UNIVERSAL_COURSE_NAME
from credit_ledger.core.enums import CreditStatus, PaymentMethod, ValidityType
from credit_ledger.core.exceptions import NotFound, ValidationError
from credit_ledger.credits.model import PurchaseRequest
from credit_ledger.credits.service import CreditIssuanceService

from fakes import SCHOOL_ID, seeded_ledger


class SequenceRng:
    def __init__(self, *draws: int):
        self._draws = list(draws)

    def randint(self, a: int, b: int) -> int:
        return self._draws.pop(0)


def _purchase(package_id: int = 100, **kw) -> PurchaseRequest:
    return PurchaseRequest(
        student_id=kw.pop("student_id", 1),
        package_id=package_id,
        payment_method=kw.pop("payment_method", PaymentMethod.CASH),
        payment_amount=kw.pop("payment_amount", Decimal("1500")),
        **kw,
    )


def test_purchase_creates_active_lot_with_bonus_and_month_expiry():
    ledger = seeded_ledger()
    svc = CreditIssuanceService(ledger)

    credit = svc.purchase_credits(SCHOOL_ID, _purchase(payment_note="  first lesson pack "), today=date(2024, 1, 1))

    assert credit.total_credits == 10
    assert credit.bonus_credits == 2
    assert credit.used_credits == 0
    assert credit.remaining_credits == 10
    assert credit.status == CreditStatus.ACTIVE
    assert credit.has_expiry is True
    assert credit.expiry_date == date(2024, 4, 1)
    assert credit.purchase_date == credit.activation_date == date(2024, 1, 1)
    assert credit.price_per_credit == Decimal("150.00")
    assert credit.course_id == 10
    assert credit.course_name == "Piano Basics"
    assert credit.student_name == "Mali Srisuk"
    assert credit.package_name == "Piano 8 + 2"
    assert credit.payment_note == "first lesson pack"
    assert credit.receipt_number.startswith("RCP202401")
    assert len(credit.receipt_number) == 13
    assert ledger.credits[credit.credit_id] == credit


def test_unlimited_package_never_expires():
    ledger = seeded_ledger()
    ledger.add_package(101, validity_type=ValidityType.UNLIMITED, validity_value=None)

    credit = CreditIssuanceService(ledger).purchase_credits(SCHOOL_ID, _purchase(101), today=date(2024, 1, 1))

    assert credit.has_expiry is False
    assert credit.expiry_date is None


def test_days_package_expires_after_given_days():
    ledger = seeded_ledger()
    ledger.add_package(102, validity_type=ValidityType.DAYS, validity_value=180)

    credit = CreditIssuanceService(ledger).purchase_credits(SCHOOL_ID, _purchase(102), today=date(2024, 1, 1))

    assert credit.expiry_date == date(2024, 6, 29)


def test_price_per_credit_rounds_half_up_to_cents():
    ledger = seeded_ledger()
    ledger.add_package(103, credits=3, bonus_credits=0)

    credit = CreditIssuanceService(ledger).purchase_credits(
        SCHOOL_ID, _purchase(103, payment_amount=Decimal("1000")), today=date(2024, 1, 1)
    )

    assert credit.price_per_credit == Decimal("333.33")


def test_unknown_student_or_package_is_not_found():
    ledger = seeded_ledger()
    svc = CreditIssuanceService(ledger)

    with pytest.raises(NotFound):
        svc.purchase_credits(SCHOOL_ID, _purchase(student_id=999), today=date(2024, 1, 1))
    with pytest.raises(NotFound):
        svc.purchase_credits(SCHOOL_ID, _purchase(package_id=999), today=date(2024, 1, 1))

    assert ledger.credits == {}


def test_student_of_another_school_is_not_found():
    ledger = seeded_ledger()
    ledger.add_student(2, school_id=2)

    with pytest.raises(NotFound):
        CreditIssuanceService(ledger).purchase_credits(SCHOOL_ID, _purchase(student_id=2), today=date(2024, 1, 1))


def test_missing_student_name_rejects_purchase_without_writing():
    ledger = seeded_ledger()
    ledger.add_student(3, first_name="", last_name="  ")

    with pytest.raises(ValidationError):
        CreditIssuanceService(ledger).purchase_credits(SCHOOL_ID, _purchase(student_id=3), today=date(2024, 1, 1))

    assert ledger.credits == {}
    assert ledger.commits == 0


def test_negative_payment_is_rejected():
    ledger = seeded_ledger()

    with pytest.raises(ValidationError):
        CreditIssuanceService(ledger).purchase_credits(
            SCHOOL_ID, _purchase(payment_amount=Decimal("-1")), today=date(2024, 1, 1)
        )


def test_universal_package_without_course_creates_universal_lot():
    ledger = seeded_ledger()
    ledger.add_package(
        104,
        name="Any class 20",
        credits=20,
        bonus_credits=0,
        applicable_course_ids=(),
        is_universal=True,
        validity_type=ValidityType.DAYS,
        validity_value=180,
    )

    credit = CreditIssuanceService(ledger).purchase_credits(SCHOOL_ID, _purchase(104), today=date(2024, 1, 1))

    assert credit.course_id is None
    assert credit.is_universal is True
    assert credit.course_name == UNIVERSAL_COURSE_NAME
    assert credit.covers_course(10)


def test_multi_course_package_needs_a_course_choice():
    ledger = seeded_ledger()
    ledger.add_course(11, name="Swimming")
    ledger.add_package(105, applicable_course_ids=(10, 11))
    svc = CreditIssuanceService(ledger)

    with pytest.raises(ValidationError):
        svc.purchase_credits(SCHOOL_ID, _purchase(105), today=date(2024, 1, 1))

    credit = svc.purchase_credits(SCHOOL_ID, _purchase(105, course_id=11), today=date(2024, 1, 1))
    assert credit.course_id == 11
    assert credit.course_name == "Swimming"
    assert credit.is_universal is False


def test_course_outside_package_is_rejected():
    ledger = seeded_ledger()
    ledger.add_course(11, name="Swimming")

    with pytest.raises(ValidationError):
        CreditIssuanceService(ledger).purchase_credits(SCHOOL_ID, _purchase(course_id=11), today=date(2024, 1, 1))


def test_receipt_number_is_redrawn_on_collision():
    ledger = seeded_ledger()
    ledger.add_credit(receipt_number="RCP2024010042")
    svc = CreditIssuanceService(ledger, rng=SequenceRng(42, 7))

    credit = svc.purchase_credits(SCHOOL_ID, _purchase(), today=date(2024, 1, 15))

    assert credit.receipt_number == "RCP2024010007"
