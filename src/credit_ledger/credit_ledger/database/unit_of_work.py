from __future__ import annotations

import logging
from typing import Callable, Protocol, TypeVar

from ..adjustments.repository import AdjustmentRepository
from ..attendance.repository import AttendanceRepository
from ..catalog.repository import CourseRepository, PackageRepository, StudentRepository
from ..core.constants import DEFAULT_TRANSACTION_ATTEMPTS
from ..core.exceptions import TransactionConflict
from ..credits.repository import CreditRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnitOfWork(Protocol):
    """One atomic read-modify-write scope over every ledger table.

    Repositories exposed here all read and write through the same
    transaction. Leaving the ``with`` block without ``commit()`` rolls back.
    """

    students: StudentRepository
    courses: CourseRepository
    packages: PackageRepository
    credits: CreditRepository
    attendance: AttendanceRepository
    adjustments: AdjustmentRepository

    def __enter__(self) -> "UnitOfWork":
        raise NotImplementedError

    def __exit__(self, exc_type, exc, tb) -> None:
        raise NotImplementedError

    def commit(self) -> None:
        raise NotImplementedError


UnitOfWorkFactory = Callable[[], UnitOfWork]


def run_atomic(
    uow_factory: UnitOfWorkFactory,
    work: Callable[[UnitOfWork], T],
    *,
    max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
    operation: str = "ledger operation",
) -> T:
    """Run ``work`` inside a fresh unit of work, retrying lost optimistic races.

    Each attempt re-reads everything, so a retry never reuses a stale balance.
    Domain errors other than ``TransactionConflict`` propagate immediately.
    """

    attempts = max(1, int(max_attempts))
    last_conflict: TransactionConflict | None = None

    for attempt in range(1, attempts + 1):
        try:
            with uow_factory() as uow:
                result = work(uow)
                uow.commit()
                return result
        except TransactionConflict as exc:
            last_conflict = exc
            logger.warning("%s conflicted (attempt %s/%s): %s", operation, attempt, attempts, exc)

    raise TransactionConflict(
        f"The {operation} could not be completed because the record was changed by someone else. Please try again."
    ) from last_conflict


def run_read(uow_factory: UnitOfWorkFactory, work: Callable[[UnitOfWork], T]) -> T:
    """Run a read-only query; nothing is committed."""
    with uow_factory() as uow:
        return work(uow)
