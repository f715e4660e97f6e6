from __future__ import annotations

from datetime import date

import pytest

from credit_ledger.core.enums import CreditStatus, ValidityType
from credit_ledger.core.exceptions import ValidationError
from credit_ledger.credits.factory import ValidityPolicyFactory
from credit_ledger.credits.service import CreditExpiryService
from credit_ledger.credits.validity.days_validity import DaysValidity
from credit_ledger.credits.validity.months_validity import MonthsValidity
from credit_ledger.credits.validity.unlimited_validity import UnlimitedValidity

from fakes import SCHOOL_ID, seeded_ledger


def test_factory_picks_policy_by_validity_type():
    f = ValidityPolicyFactory()
    assert isinstance(f.for_validity(ValidityType.MONTHS), MonthsValidity)
    assert isinstance(f.for_validity(ValidityType.DAYS), DaysValidity)
    assert isinstance(f.for_validity(ValidityType.UNLIMITED), UnlimitedValidity)


def test_months_validity_clamps_to_month_end():
    decision = MonthsValidity().decide_expiry(purchase_date=date(2024, 1, 31), validity_value=1)
    assert decision.has_expiry is True
    assert decision.expiry_date == date(2024, 2, 29)


@pytest.mark.parametrize("policy", [MonthsValidity(), DaysValidity()])
@pytest.mark.parametrize("value", [None, 0, -3])
def test_bounded_validity_requires_positive_value(policy, value):
    with pytest.raises(ValidationError):
        policy.decide_expiry(purchase_date=date(2024, 1, 1), validity_value=value)


def test_expiry_sweep_marks_only_lapsed_lots():
    ledger = seeded_ledger()
    lapsed = ledger.add_credit(has_expiry=True, expiry_date=date(2024, 2, 29))
    lapsed_depleted = ledger.add_credit(remaining=0, has_expiry=True, expiry_date=date(2024, 1, 1))
    last_day = ledger.add_credit(has_expiry=True, expiry_date=date(2024, 3, 1))
    suspended = ledger.add_credit(status=CreditStatus.SUSPENDED, has_expiry=True, expiry_date=date(2024, 1, 1))
    unlimited = ledger.add_credit()

    expired = CreditExpiryService(ledger).expire_credits(SCHOOL_ID, today=date(2024, 3, 1))

    assert expired == 2
    assert ledger.credits[lapsed.credit_id].status == CreditStatus.EXPIRED
    assert ledger.credits[lapsed_depleted.credit_id].status == CreditStatus.EXPIRED
    assert ledger.credits[last_day.credit_id].status == CreditStatus.ACTIVE
    assert ledger.credits[suspended.credit_id].status == CreditStatus.SUSPENDED
    assert ledger.credits[unlimited.credit_id].status == CreditStatus.ACTIVE
    assert ledger.credits[lapsed.credit_id].remaining_credits == 10


def test_expiry_sweep_is_idempotent():
    ledger = seeded_ledger()
    ledger.add_credit(has_expiry=True, expiry_date=date(2024, 2, 1))
    svc = CreditExpiryService(ledger)

    assert svc.expire_credits(SCHOOL_ID, today=date(2024, 3, 1)) == 1
    assert svc.expire_credits(SCHOOL_ID, today=date(2024, 3, 1)) == 0
