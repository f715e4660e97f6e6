from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_optional_date
from ..common.http import actor_required, current_actor, domain_errors, json_body, ok, optional_int
from ..container import Container
from ..core.enums import AttendanceStatus, CheckInMethod
from .model import AttendanceFilters, CheckInRequest


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="attendance_checkin")
    @actor_required
    @domain_errors
    def attendance_checkin():
        data = json_body()
        check_in = CheckInRequest(
            student_id=int(data["student_id"]),
            course_id=int(data["course_id"]),
            credit_id=int(data["credit_id"]),
            check_in_method=CheckInMethod(data.get("check_in_method") or CheckInMethod.MANUAL.value),
            status=AttendanceStatus(data.get("status") or AttendanceStatus.PRESENT.value),
            is_late=bool(data.get("is_late", False)),
            late_minutes=int(data.get("late_minutes") or 0),
            teacher_notes=data.get("teacher_notes"),
        )
        record = container.attendance_service.check_in(
            current_actor(),
            check_in,
            effective_date=parse_optional_date(data.get("check_in_date")),
        )
        return ok(record, 201)

    @app.route("/api/attendance/<int:attendance_id>/cancel", methods=["POST"], endpoint="attendance_cancel")
    @actor_required
    @domain_errors
    def attendance_cancel(attendance_id: int):
        data = json_body()
        credit = container.attendance_service.cancel_attendance(
            attendance_id,
            data.get("reason") or "",
            current_actor(),
        )
        return ok(credit)

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_history")
    @actor_required
    @domain_errors
    def attendance_history():
        status = request.args.get("status")
        filters = AttendanceFilters(
            course_id=optional_int(request.args.get("course_id")),
            student_id=optional_int(request.args.get("student_id")),
            status=AttendanceStatus(status) if status else None,
            start_date=parse_optional_date(request.args.get("start")),
            end_date=parse_optional_date(request.args.get("end")),
        )
        return ok(container.attendance_service.get_attendance_history(current_actor().school_id, filters))

    @app.route("/api/courses/<int:course_id>/attendance/today", methods=["GET"], endpoint="attendance_today")
    @actor_required
    @domain_errors
    def attendance_today(course_id: int):
        return ok(container.attendance_service.get_today_attendance(current_actor().school_id, course_id))
