from __future__ import annotations

import threading
from datetime import datetime

import pytest

from credit_ledger.attendance.model import CheckInRequest
from credit_ledger.attendance.service import AttendanceService
from credit_ledger.core.enums import CreditStatus
from credit_ledger.core.exceptions import InsufficientCredits, TransactionConflict

from fakes import ACTOR, seeded_ledger

NOW = datetime(2024, 3, 1, 9, 30)


def _first_read_barrier(parties: int):
    """Hold every thread's first credit read until all of them have read the same balance."""
    barrier = threading.Barrier(parties, timeout=5)
    seen: set[int] = set()
    lock = threading.Lock()

    def hook(credit_id: int) -> None:
        me = threading.get_ident()
        with lock:
            first = me not in seen
            seen.add(me)
        if first:
            barrier.wait()

    return hook


def _run_parallel(fn, n: int) -> list[str]:
    results: list[str] = []
    lock = threading.Lock()

    def worker():
        try:
            fn()
            outcome = "ok"
        except InsufficientCredits:
            outcome = "insufficient"
        except TransactionConflict:
            outcome = "conflict"
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return sorted(results)


def test_two_check_ins_on_last_credit_debit_only_once():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=1, total=10)
    ledger.credit_read_hook = _first_read_barrier(2)
    svc = AttendanceService(ledger)

    results = _run_parallel(
        lambda: svc.check_in(ACTOR, CheckInRequest(student_id=1, course_id=10, credit_id=credit.credit_id), now=NOW),
        2,
    )

    assert results == ["insufficient", "ok"]
    stored = ledger.credits[credit.credit_id]
    assert stored.remaining_credits == 0
    assert stored.used_credits == 10
    assert stored.status == CreditStatus.DEPLETED
    assert len(ledger.attendance) == 1


def test_concurrent_check_ins_on_larger_balance_all_land():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=5, total=5)
    ledger.credit_read_hook = _first_read_barrier(3)
    svc = AttendanceService(ledger)

    results = _run_parallel(
        lambda: svc.check_in(ACTOR, CheckInRequest(student_id=1, course_id=10, credit_id=credit.credit_id), now=NOW),
        3,
    )

    assert results == ["ok", "ok", "ok"]
    stored = ledger.credits[credit.credit_id]
    assert stored.remaining_credits == 2
    assert stored.used_credits + stored.remaining_credits == stored.total_credits
    assert len(ledger.attendance) == 3
    assert sorted(r.credits_after for r in ledger.attendance.values()) == [2, 3, 4]


def test_retry_budget_exhaustion_surfaces_conflict():
    ledger = seeded_ledger()
    credit = ledger.add_credit(remaining=5, total=5)
    svc = AttendanceService(ledger, max_attempts=2)

    def someone_else_writes_first() -> None:
        current = ledger.credits[credit.credit_id]
        ledger.credits[credit.credit_id] = current.with_balance(
            used=current.used_credits, remaining=current.remaining_credits, status=current.status, version=current.version + 1
        )

    ledger.commit_hook = someone_else_writes_first

    with pytest.raises(TransactionConflict):
        svc.check_in(ACTOR, CheckInRequest(student_id=1, course_id=10, credit_id=credit.credit_id), now=NOW)

    assert ledger.attendance == {}
