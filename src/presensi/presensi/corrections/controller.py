from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date, parse_moment
from ..common.http import ensure_can_review, json_body, query_date, query_int, respond
from ..common.security import current_user, roles_required, token_required
from ..common.validators import optional_int, require_enum
from ..core.constants import API_PREFIX
from ..core.enums import CorrectionType, RequestStatus, Role
from ..core.exceptions import ValidationError
from ..container import Container
from .model import CorrectionQuery

PREFIX = f"{API_PREFIX}/corrections"


def _query_from_args(*, user_id=None) -> CorrectionQuery:
    status = request.args.get("status")
    kind = request.args.get("type")
    return CorrectionQuery(
        user_id=user_id if user_id is not None else query_int("user_id"),
        dept_id=query_int("dept_id"),
        status=require_enum(RequestStatus, status, "status") if status else None,
        correction_type=require_enum(CorrectionType, kind, "type") if kind else None,
        start_date=query_date("start_date"),
        end_date=query_date("end_date"),
    )


def register(app: Flask, container: Container) -> None:
    corrections = container.correction_service
    departments = container.department_service

    @app.route(PREFIX, methods=["POST"], endpoint="correction_create")
    @token_required
    def create():
        data = json_body()
        if not data.get("date"):
            raise ValidationError("date is required")
        work_date = parse_iso_date(data["date"])
        proposed = data.get("proposed_time")
        correction = corrections.create(
            current_user().user_id,
            require_enum(CorrectionType, data.get("type"), "type"),
            work_date,
            data.get("reason") or "",
            proposed_time=parse_moment(proposed, on_date=work_date) if proposed else None,
            attendance_id=optional_int(data.get("attendance_id"), "attendance_id"),
        )
        return respond(correction, 201)

    @app.route(PREFIX, methods=["GET"], endpoint="correction_list")
    @roles_required(Role.ADMIN, Role.KAJUR)
    def list_corrections():
        return respond(corrections.find_all(_query_from_args()))

    @app.route(f"{PREFIX}/my-requests", methods=["GET"], endpoint="correction_my_requests")
    @token_required
    def my_requests():
        user_id = current_user().user_id
        return respond(corrections.find_user_corrections(user_id, _query_from_args(user_id=user_id)))

    @app.route(f"{PREFIX}/monthly-usage", methods=["GET"], endpoint="correction_monthly_usage")
    @token_required
    def monthly_usage():
        return respond(corrections.get_monthly_usage(current_user().user_id))

    @app.route(f"{PREFIX}/department/<int:dept_id>/pending", methods=["GET"], endpoint="correction_pending")
    @roles_required(Role.ADMIN, Role.KAJUR)
    def pending(dept_id: int):
        ensure_can_review(departments, current_user(), dept_id, "You can only view corrections for departments you lead")
        return respond(corrections.find_pending_by_department(dept_id))

    @app.route(f"{PREFIX}/<int:correction_id>", methods=["GET"], endpoint="correction_detail")
    @token_required
    def detail(correction_id: int):
        correction = corrections.find_one(correction_id)
        user = current_user()
        if correction.user_id != user.user_id:
            ensure_can_review(departments, user, correction.dept_id, "You do not have permission to view this correction")
        return respond(correction)

    @app.route(f"{PREFIX}/<int:correction_id>/review", methods=["PUT"], endpoint="correction_review")
    @roles_required(Role.ADMIN, Role.KAJUR)
    def review(correction_id: int):
        data = json_body()
        correction = corrections.find_one(correction_id)
        ensure_can_review(departments, current_user(), correction.dept_id, "You do not have permission to review this correction")
        reviewed = corrections.review_correction(
            correction_id,
            current_user().user_id,
            require_enum(RequestStatus, data.get("status"), "status"),
            rejection_reason=data.get("rejection_reason"),
        )
        return respond(reviewed)
