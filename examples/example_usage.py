"""Example: drive the ledger through the service layer (no Flask).

Controllers are a thin layer; the purchase -> check-in -> cancel flow lives in services.
Run after scripts/init_db.py and scripts/seed_db.py.
"""

import importlib
from decimal import Decimal

from credit_ledger.attendance.model import CheckInRequest
from credit_ledger.config import get_settings_module
from credit_ledger.container import build_container
from credit_ledger.core.context import ActorContext
from credit_ledger.core.enums import PaymentMethod
from credit_ledger.credits.model import PurchaseRequest


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    actor = ActorContext(school_id=1, user_id="1", user_name="Front Desk", user_role="admin")

    credit = container.issuance_service.purchase_credits(
        actor.school_id,
        PurchaseRequest(student_id=1, package_id=1, payment_method=PaymentMethod.CASH, payment_amount=Decimal("1500")),
    )
    print("purchased", credit.receipt_number, credit.remaining_credits)

    record = container.attendance_service.check_in(
        actor,
        CheckInRequest(student_id=1, course_id=credit.course_id, credit_id=credit.credit_id),
    )
    print("checked in", record.credits_before, "->", record.credits_after)

    restored = container.attendance_service.cancel_attendance(record.attendance_id, "demo undo", actor)
    print("cancelled, remaining", restored.remaining_credits)


if __name__ == "__main__":
    main()
