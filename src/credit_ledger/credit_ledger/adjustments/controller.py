from __future__ import annotations

from flask import Flask, request

from ..common.http import actor_required, current_actor, domain_errors, json_body, ok, optional_int
from ..common.validators import require_int
from ..container import Container
from ..core.constants import DEFAULT_ADJUSTMENT_HISTORY_LIMIT
from .model import AdjustmentRequest


def register(app: Flask, container: Container) -> None:
    @app.route("/api/credits/<int:credit_id>/adjust", methods=["POST"], endpoint="credits_adjust")
    @actor_required
    @domain_errors
    def credits_adjust(credit_id: int):
        data = json_body()
        adjustment = AdjustmentRequest(
            adjustment_type=data.get("type") or "",
            amount=require_int(data["amount"], "Amount"),
            reason=data.get("reason") or "",
        )
        record = container.adjustment_service.adjust_credit(credit_id, adjustment, current_actor())
        return ok(record, 201)

    @app.route("/api/credits/<int:credit_id>/suspend", methods=["POST"], endpoint="credits_suspend")
    @actor_required
    @domain_errors
    def credits_suspend(credit_id: int):
        reason = json_body().get("reason") or ""
        return ok(container.adjustment_service.suspend_credit(credit_id, current_actor(), reason))

    @app.route("/api/credits/<int:credit_id>/resume", methods=["POST"], endpoint="credits_resume")
    @actor_required
    @domain_errors
    def credits_resume(credit_id: int):
        reason = json_body().get("reason") or ""
        return ok(container.adjustment_service.resume_credit(credit_id, current_actor(), reason))

    @app.route("/api/adjustments", methods=["GET"], endpoint="adjustment_history")
    @actor_required
    @domain_errors
    def adjustment_history():
        limit = optional_int(request.args.get("limit")) or DEFAULT_ADJUSTMENT_HISTORY_LIMIT
        records = container.adjustment_service.get_adjustment_history(
            current_actor().school_id,
            credit_id=optional_int(request.args.get("credit_id")),
            student_id=optional_int(request.args.get("student_id")),
            limit=limit,
        )
        return ok(records)
