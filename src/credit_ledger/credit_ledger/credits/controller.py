from __future__ import annotations

from decimal import Decimal

from flask import Flask, request

from ..common.datetime_utils import parse_optional_date
from ..common.http import actor_required, current_actor, domain_errors, json_body, ok, optional_int
from ..container import Container
from ..core.enums import CreditStatus, PaymentMethod
from ..core.exceptions import NotFound
from .model import CreditFilters, PurchaseRequest


def register(app: Flask, container: Container) -> None:
    def _own_school(credits):
        school_id = current_actor().school_id
        return [c for c in credits if c.school_id == school_id]

    @app.route("/api/credits/purchase", methods=["POST"], endpoint="credits_purchase")
    @actor_required
    @domain_errors
    def credits_purchase():
        data = json_body()
        purchase = PurchaseRequest(
            student_id=int(data["student_id"]),
            package_id=int(data["package_id"]),
            payment_method=PaymentMethod(data.get("payment_method") or PaymentMethod.CASH.value),
            payment_amount=Decimal(str(data["payment_amount"])),
            discount_amount=Decimal(str(data.get("discount_amount") or 0)),
            payment_note=data.get("payment_note"),
            payment_reference=data.get("payment_reference"),
            course_id=optional_int(data.get("course_id")),
        )
        credit = container.issuance_service.purchase_credits(current_actor().school_id, purchase)
        return ok(credit, 201)

    @app.route("/api/credits/<int:credit_id>", methods=["GET"], endpoint="credits_detail")
    @actor_required
    @domain_errors
    def credits_detail(credit_id: int):
        credit = container.credit_query_service.get_credit(credit_id)
        if credit.school_id != current_actor().school_id:
            raise NotFound(f"Credit {credit_id} not found")
        return ok(credit)

    @app.route("/api/students/<int:student_id>/credits", methods=["GET"], endpoint="student_credits")
    @actor_required
    @domain_errors
    def student_credits(student_id: int):
        svc = container.credit_query_service
        if request.args.get("history") == "1":
            return ok(_own_school(svc.get_student_credit_history(student_id)))

        course_id = optional_int(request.args.get("course_id"))
        available_only = request.args.get("available_only", "1") != "0"
        credits = svc.get_student_active_credits(student_id, course_id, available_only=available_only)
        return ok(_own_school(credits))

    @app.route("/api/students/<int:student_id>/credits/summary", methods=["GET"], endpoint="student_credit_summary")
    @actor_required
    @domain_errors
    def student_credit_summary(student_id: int):
        course_id = optional_int(request.args.get("course_id"))
        svc = container.credit_query_service
        own_ids = {c.credit_id for c in _own_school(svc.get_student_active_credits(student_id, course_id))}
        packages = [s for s in svc.credit_summaries(student_id, course_id) if s.credit_id in own_ids]
        return ok(
            {
                "total_remaining": sum(s.remaining_credits for s in packages),
                "packages": packages,
            }
        )

    @app.route("/api/credits", methods=["GET"], endpoint="school_credits")
    @actor_required
    @domain_errors
    def school_credits():
        status = request.args.get("status")
        filters = CreditFilters(
            course_id=optional_int(request.args.get("course_id")),
            student_id=optional_int(request.args.get("student_id")),
            status=CreditStatus(status) if status else None,
            start_date=parse_optional_date(request.args.get("start")),
            end_date=parse_optional_date(request.args.get("end")),
        )
        return ok(container.credit_query_service.get_school_credits(current_actor().school_id, filters))

    @app.route("/api/credits/low", methods=["GET"], endpoint="low_credit_alerts")
    @actor_required
    @domain_errors
    def low_credit_alerts():
        threshold = optional_int(request.args.get("threshold"))
        return ok(container.credit_query_service.low_credit_alerts(current_actor().school_id, threshold=threshold))

    @app.route("/api/courses/enrollment", methods=["GET"], endpoint="enrollment_counts")
    @actor_required
    @domain_errors
    def enrollment_counts():
        counts = container.credit_query_service.enrollment_counts(current_actor().school_id)
        return ok({str(course_id): n for course_id, n in counts.items()})

    @app.route("/api/courses/<int:course_id>/enrollment", methods=["GET"], endpoint="course_enrollment")
    @actor_required
    @domain_errors
    def course_enrollment(course_id: int):
        count = container.credit_query_service.enrollment_count(current_actor().school_id, course_id)
        return ok({"course_id": course_id, "enrolled": count})

    @app.route("/api/credits/expire", methods=["POST"], endpoint="credits_expire")
    @actor_required
    @domain_errors
    def credits_expire():
        expired = container.expiry_service.expire_credits(current_actor().school_id)
        return ok({"expired": expired})
