from __future__ import annotations

from enum import Enum


class CreditStatus(str, Enum):
    """Lifecycle state of a purchased credit lot."""

    ACTIVE = "active"
    EXPIRED = "expired"
    DEPLETED = "depleted"
    SUSPENDED = "suspended"


class ValidityType(str, Enum):
    MONTHS = "months"
    DAYS = "days"
    UNLIMITED = "unlimited"


class PaymentMethod(str, Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    CREDIT_CARD = "credit_card"
    PROMPTPAY = "promptpay"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class CheckInMethod(str, Enum):
    MANUAL = "manual"
    QR_CODE = "qr_code"
    FACE_RECOGNITION = "face_recognition"


class AttendanceStatus(str, Enum):
    """Status recorded on an attendance row."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"
    HOLIDAY = "holiday"


class AdjustmentType(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"
