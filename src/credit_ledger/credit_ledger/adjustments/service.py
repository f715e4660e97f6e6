from __future__ import annotations

import logging
from typing import Optional

from ..common.validators import require_non_empty, require_non_negative_int, require_positive_int
from ..core.constants import DEFAULT_ADJUSTMENT_HISTORY_LIMIT, DEFAULT_TRANSACTION_ATTEMPTS
from ..core.context import ActorContext
from ..core.enums import AdjustmentType, CreditStatus
from ..core.exceptions import NotFound, ValidationError
from ..credits import rules
from ..credits.model import CreditRecord
from ..database.unit_of_work import UnitOfWork, UnitOfWorkFactory, run_atomic, run_read
from .model import AdjustmentRecord, AdjustmentRequest

logger = logging.getLogger(__name__)


class CreditAdjustmentService:
    """Manual balance corrections, each paired with an audit entry in one transaction."""

    def __init__(self, uow_factory: UnitOfWorkFactory, *, max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS):
        self._uow_factory = uow_factory
        self._max_attempts = int(max_attempts)

    def adjust_credit(self, credit_id: int, request: AdjustmentRequest, actor: ActorContext) -> AdjustmentRecord:
        reason = require_non_empty(request.reason, "Reason")
        try:
            adjustment_type = AdjustmentType(request.adjustment_type)
        except ValueError:
            raise ValidationError(f"Unknown adjustment type: {request.adjustment_type}")
        if adjustment_type == AdjustmentType.SET:
            amount = require_non_negative_int(request.amount, "Amount")
        else:
            amount = require_positive_int(request.amount, "Amount")

        def work(uow: UnitOfWork) -> AdjustmentRecord:
            credit = self._load(uow, credit_id, actor)
            new_remaining = rules.adjusted_remaining(adjustment_type, current=credit.remaining_credits, amount=amount)
            uow.credits.update_balance(rules.apply_adjustment(credit, new_remaining=new_remaining))
            return uow.adjustments.append(
                AdjustmentRecord(
                    adjustment_id=0,
                    school_id=credit.school_id,
                    student_id=credit.student_id,
                    credit_id=credit.credit_id,
                    student_name=credit.student_name,
                    course_name=credit.course_name,
                    adjustment_type=adjustment_type,
                    amount=new_remaining if adjustment_type == AdjustmentType.SET else amount,
                    credits_before=credit.remaining_credits,
                    credits_after=new_remaining,
                    reason=reason,
                    adjusted_by=str(actor.user_id),
                    adjusted_by_name=actor.user_name,
                    adjusted_by_role=actor.user_role,
                )
            )

        record = run_atomic(self._uow_factory, work, max_attempts=self._max_attempts, operation="credit adjustment")
        logger.info(
            "Credit %s adjusted (%s %s): %s -> %s by %s: %s",
            record.credit_id,
            record.adjustment_type.value,
            record.amount,
            record.credits_before,
            record.credits_after,
            record.adjusted_by,
            record.reason,
        )
        return record

    def suspend_credit(self, credit_id: int, actor: ActorContext, reason: str) -> CreditRecord:
        reason = require_non_empty(reason, "Reason")

        def work(uow: UnitOfWork) -> CreditRecord:
            credit = self._load(uow, credit_id, actor)
            if credit.status not in (CreditStatus.ACTIVE, CreditStatus.DEPLETED):
                raise ValidationError(f"Credit {credit.package_name} is {credit.status.value} and cannot be suspended")
            return uow.credits.update_balance(
                credit.with_balance(used=credit.used_credits, remaining=credit.remaining_credits, status=CreditStatus.SUSPENDED)
            )

        credit = run_atomic(self._uow_factory, work, max_attempts=self._max_attempts, operation="credit suspension")
        logger.info("Credit %s suspended by %s: %s", credit.credit_id, actor.user_id, reason)
        return credit

    def resume_credit(self, credit_id: int, actor: ActorContext, reason: str) -> CreditRecord:
        reason = require_non_empty(reason, "Reason")

        def work(uow: UnitOfWork) -> CreditRecord:
            credit = self._load(uow, credit_id, actor)
            if credit.status != CreditStatus.SUSPENDED:
                raise ValidationError(f"Credit {credit.package_name} is not suspended")
            status = CreditStatus.ACTIVE if credit.remaining_credits > 0 else CreditStatus.DEPLETED
            return uow.credits.update_balance(
                credit.with_balance(used=credit.used_credits, remaining=credit.remaining_credits, status=status)
            )

        credit = run_atomic(self._uow_factory, work, max_attempts=self._max_attempts, operation="credit reactivation")
        logger.info("Credit %s resumed (%s) by %s: %s", credit.credit_id, credit.status.value, actor.user_id, reason)
        return credit

    def get_adjustment_history(
        self,
        school_id: int,
        *,
        credit_id: Optional[int] = None,
        student_id: Optional[int] = None,
        limit: int = DEFAULT_ADJUSTMENT_HISTORY_LIMIT,
    ) -> list[AdjustmentRecord]:
        return list(
            run_read(
                self._uow_factory,
                lambda uow: uow.adjustments.list_history(
                    int(school_id),
                    credit_id=credit_id,
                    student_id=student_id,
                    limit=int(limit),
                ),
            )
        )

    @staticmethod
    def _load(uow: UnitOfWork, credit_id: int, actor: ActorContext) -> CreditRecord:
        credit = uow.credits.get_by_id(int(credit_id))
        if not credit or credit.school_id != int(actor.school_id):
            raise NotFound(f"Credit {credit_id} not found")
        return credit
