"""Balance transition rules shared by check-in, cancellation and adjustment.

All functions are pure: they take a CreditRecord and return the record as it
should be written. Persistence (and the version check) is the caller's job.
"""

from __future__ import annotations

import random
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..core.constants import RECEIPT_PREFIX
from ..core.enums import AdjustmentType, CreditStatus
from ..core.exceptions import CreditExpired, CreditNotActive, InsufficientCredits, ValidationError
from .model import CreditRecord

_CENT = Decimal("0.01")


def effective_status(credit: CreditRecord, today: date) -> CreditStatus:
    """Status as of ``today``, with expiry evaluated lazily.

    The stored status is only reconciled by a write or by the expiry sweep,
    so this is the value read paths should show.
    """

    if credit.status in (CreditStatus.ACTIVE, CreditStatus.DEPLETED) and is_past_expiry(credit, today):
        return CreditStatus.EXPIRED
    return credit.status


def is_past_expiry(credit: CreditRecord, today: date) -> bool:
    return bool(credit.has_expiry and credit.expiry_date is not None and credit.expiry_date < today)


def price_per_credit(final_price: Decimal, total_credits: int) -> Decimal:
    if total_credits <= 0:
        return Decimal("0.00")
    return (Decimal(final_price) / Decimal(total_credits)).quantize(_CENT, rounding=ROUND_HALF_UP)


def generate_receipt_number(today: date, *, rng: Optional[random.Random] = None) -> str:
    """RCP + year + month + 4 random digits (not unique by construction)."""
    draw = (rng or random).randint(0, 9999)
    return f"{RECEIPT_PREFIX}{today.year}{today.month:02d}{draw:04d}"


def ensure_debitable(credit: CreditRecord, *, amount: int, today: date) -> None:
    if credit.remaining_credits < amount:
        raise InsufficientCredits(
            f"No credits left on {credit.package_name} for {credit.student_name} "
            f"(remaining {credit.remaining_credits})"
        )
    if credit.status == CreditStatus.EXPIRED or is_past_expiry(credit, today):
        raise CreditExpired(f"Credit {credit.package_name} expired on {credit.expiry_date}")
    if credit.status != CreditStatus.ACTIVE:
        raise CreditNotActive(f"Credit {credit.package_name} is {credit.status.value}")


def debit(credit: CreditRecord, *, amount: int, used_on: date) -> CreditRecord:
    remaining = credit.remaining_credits - amount
    status = CreditStatus.DEPLETED if remaining == 0 else credit.status
    return credit.with_balance(
        used=credit.used_credits + amount,
        remaining=remaining,
        status=status,
        last_used_date=used_on,
    )


def refund(credit: CreditRecord, *, amount: int) -> CreditRecord:
    remaining = credit.remaining_credits + amount
    used = credit.used_credits - amount
    total = credit.total_credits
    if used < 0:
        # A manual adjustment already wrote the used credits back; grow the lot instead.
        total -= used
        used = 0
    status = credit.status
    if remaining > 0 and status == CreditStatus.DEPLETED:
        status = CreditStatus.ACTIVE
    return credit.with_balance(
        used=used,
        remaining=remaining,
        status=status,
        total_credits=total,
    )


def adjusted_remaining(adjustment_type: AdjustmentType, *, current: int, amount: int) -> int:
    if adjustment_type == AdjustmentType.ADD:
        return current + amount
    if adjustment_type == AdjustmentType.SUBTRACT:
        return max(0, current - amount)
    if adjustment_type == AdjustmentType.SET:
        return max(0, amount)
    raise ValidationError(f"Unknown adjustment type: {adjustment_type}")


def apply_adjustment(credit: CreditRecord, *, new_remaining: int) -> CreditRecord:
    total = credit.total_credits
    if new_remaining > total:
        # Manual top-up past the purchased amount grows the lot.
        total = new_remaining
    status = CreditStatus.DEPLETED if new_remaining == 0 else CreditStatus.ACTIVE
    return credit.with_balance(
        used=total - new_remaining,
        remaining=new_remaining,
        status=status,
        total_credits=total,
    )
