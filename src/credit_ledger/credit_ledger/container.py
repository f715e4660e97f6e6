from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Optional

from .adjustments.service import CreditAdjustmentService
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_LOW_CREDIT_THRESHOLD, DEFAULT_TRANSACTION_ATTEMPTS
from .credits.factory import ValidityPolicyFactory
from .credits.service import CreditExpiryService, CreditIssuanceService, CreditQueryService
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_unit_of_work import MySQLUnitOfWork
from .database.unit_of_work import UnitOfWorkFactory


@dataclass(frozen=True)
class Container:
    uow_factory: UnitOfWorkFactory

    issuance_service: CreditIssuanceService
    credit_query_service: CreditQueryService
    expiry_service: CreditExpiryService
    attendance_service: AttendanceService
    adjustment_service: CreditAdjustmentService


def build_container(
    *,
    db_config: Optional[dict] = None,
    uow_factory: Optional[UnitOfWorkFactory] = None,
    max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
    prevent_duplicate_checkin: bool = False,
    low_credit_threshold: int = DEFAULT_LOW_CREDIT_THRESHOLD,
) -> Container:
    if uow_factory is None:
        if db_config is None:
            raise ValueError("build_container needs db_config or uow_factory")
        conn = DatabaseConnection.get_instance(DBConfig.from_settings(db_config))
        uow_factory = partial(MySQLUnitOfWork, conn)

    return Container(
        uow_factory=uow_factory,
        issuance_service=CreditIssuanceService(
            uow_factory,
            validity_factory=ValidityPolicyFactory(),
            max_attempts=max_attempts,
        ),
        credit_query_service=CreditQueryService(uow_factory, low_credit_threshold=low_credit_threshold),
        expiry_service=CreditExpiryService(uow_factory, max_attempts=max_attempts),
        attendance_service=AttendanceService(
            uow_factory,
            max_attempts=max_attempts,
            prevent_duplicate_checkin=prevent_duplicate_checkin,
        ),
        adjustment_service=CreditAdjustmentService(uow_factory, max_attempts=max_attempts),
    )
