from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import ensure_can_review, json_body, location_from, query_date, query_int, respond
from ..common.security import current_user, roles_required, token_required
from ..common.validators import optional_int, optional_text, parse_bool, require_enum
from ..core.constants import API_PREFIX
from ..core.enums import Role, WorkingStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .model import AttendanceQuery

PREFIX = f"{API_PREFIX}/attendance"


def _query_from_args(*, user_id=None) -> AttendanceQuery:
    status = request.args.get("status")
    return AttendanceQuery(
        user_id=user_id if user_id is not None else query_int("user_id"),
        dept_id=query_int("dept_id"),
        status=require_enum(WorkingStatus, status, "status") if status else None,
        start_date=query_date("start_date"),
        end_date=query_date("end_date"),
    )


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service
    departments = container.department_service

    @app.route(f"{PREFIX}/check-in", methods=["POST"], endpoint="attendance_check_in")
    @token_required
    def check_in():
        data = json_body()
        record = attendance.check_in(
            current_user().user_id,
            location_from(data),
            notes=optional_text(data.get("notes"), "notes"),
            photo_id=optional_int(data.get("photo_id"), "photo_id"),
        )
        return respond(record, 201)

    @app.route(f"{PREFIX}/check-out", methods=["POST"], endpoint="attendance_check_out")
    @token_required
    def check_out():
        data = json_body()
        record = attendance.check_out(
            current_user().user_id,
            location_from(data),
            notes=optional_text(data.get("notes"), "notes"),
            photo_id=optional_int(data.get("photo_id"), "photo_id"),
        )
        return respond(record)

    @app.route(f"{PREFIX}/today", methods=["GET"], endpoint="attendance_today")
    @token_required
    def today():
        return respond(attendance.find_today_attendance(current_user().user_id))

    @app.route(PREFIX, methods=["GET"], endpoint="attendance_list")
    @roles_required(Role.ADMIN, Role.KAJUR)
    def list_attendance():
        return respond(attendance.find_all(_query_from_args()))

    @app.route(f"{PREFIX}/my-records", methods=["GET"], endpoint="attendance_my_records")
    @token_required
    def my_records():
        return respond(attendance.find_all(_query_from_args(user_id=current_user().user_id)))

    @app.route(f"{PREFIX}/summary", methods=["GET"], endpoint="attendance_summary")
    @roles_required(Role.ADMIN, Role.KAJUR)
    def summary():
        summary = attendance.get_attendance_summary(
            query_date("start_date", required=True),
            query_date("end_date", required=True),
            user_id=query_int("user_id"),
            dept_id=query_int("dept_id"),
        )
        return respond(summary)

    @app.route(f"{PREFIX}/my-summary", methods=["GET"], endpoint="attendance_my_summary")
    @token_required
    def my_summary():
        summary = attendance.get_attendance_summary(
            query_date("start_date", required=True),
            query_date("end_date", required=True),
            user_id=current_user().user_id,
        )
        return respond(summary)

    @app.route(f"{PREFIX}/<int:attendance_id>", methods=["GET"], endpoint="attendance_detail")
    @token_required
    def detail(attendance_id: int):
        record = attendance.find_one(attendance_id)
        user = current_user()
        if record.user_id != user.user_id:
            ensure_can_review(departments, user, record.dept_id, "You do not have permission to view this attendance record")
        return respond(record)

    @app.route(f"{PREFIX}/<int:attendance_id>/verify", methods=["PUT"], endpoint="attendance_verify")
    @roles_required(Role.ADMIN, Role.KAJUR)
    def verify(attendance_id: int):
        data = json_body()
        if "verified" not in data:
            raise ValidationError("verified is required")
        record = attendance.find_one(attendance_id)
        ensure_can_review(departments, current_user(), record.dept_id, "You can only verify attendance in departments you lead")
        return respond(attendance.verify_attendance(attendance_id, current_user().user_id, parse_bool(data["verified"])))

    @app.route(f"{PREFIX}/synchronize", methods=["POST"], endpoint="attendance_synchronize")
    @roles_required(Role.ADMIN)
    def synchronize():
        data = json_body()
        start = data.get("start_date")
        end = data.get("end_date")
        if not start or not end:
            raise ValidationError("start_date and end_date are required")
        start_date, end_date = parse_iso_date(start), parse_iso_date(end)
        if start_date > end_date:
            raise ValidationError("Start date must be before or equal to end date")
        report = attendance.synchronize_with_leave_requests(
            start_date, end_date, user_id=optional_int(data.get("user_id"), "user_id")
        )
        return respond(report)
