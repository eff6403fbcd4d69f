from __future__ import annotations

from dataclasses import replace

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date, parse_optional_date
from ..common.http import ensure_can_review, json_body, query_date, query_int, respond
from ..common.security import current_user, roles_required, token_required
from ..common.validators import optional_int, optional_text, require_enum
from ..core.constants import API_PREFIX
from ..core.enums import LeaveType, RequestStatus, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container
from .model import LeaveQuery

PREFIX = f"{API_PREFIX}/leave-requests"


def _enum_list(enum_cls, name: str) -> tuple:
    raw = request.args.getlist(name)
    values = [v for item in raw for v in item.split(",") if v.strip()]
    return tuple(require_enum(enum_cls, v.strip(), name) for v in values)


def _query_from_args() -> LeaveQuery:
    dept_id = query_int("dept_id")
    return LeaveQuery(
        user_id=query_int("user_id"),
        dept_ids=(dept_id,) if dept_id is not None else None,
        leave_types=_enum_list(LeaveType, "type"),
        statuses=_enum_list(RequestStatus, "status"),
        start_from=query_date("start_from"),
        start_to=query_date("start_to"),
        end_from=query_date("end_from"),
        end_to=query_date("end_to"),
    )


def register(app: Flask, container: Container) -> None:
    leaves = container.leave_service
    departments = container.department_service

    @app.route(PREFIX, methods=["POST"], endpoint="leave_create")
    @token_required
    def create():
        data = json_body()
        if not data.get("start_date") or not data.get("end_date"):
            raise ValidationError("start_date and end_date are required")
        leave = leaves.create(
            current_user().user_id,
            require_enum(LeaveType, data.get("type"), "type"),
            parse_iso_date(data["start_date"]),
            parse_iso_date(data["end_date"]),
            data.get("reason") or "",
            dept_id=optional_int(data.get("dept_id"), "dept_id"),
            attachment_id=optional_int(data.get("attachment_id"), "attachment_id"),
        )
        return respond(leave, 201)

    @app.route(PREFIX, methods=["GET"], endpoint="leave_list")
    @token_required
    def list_requests():
        user = current_user()
        query = _query_from_args()

        if user.role == Role.ADMIN:
            return respond(leaves.find_all(query))

        if user.role == Role.KAJUR:
            headed = tuple(departments.headed_department_ids(user.user_id))
            if query.dept_ids is not None and not set(query.dept_ids) <= set(headed):
                raise AuthorizationError("You can only view leave requests for departments you lead")
            scoped = replace(query, dept_ids=query.dept_ids or headed)
            return respond(leaves.find_all(scoped))

        own = replace(query, user_id=user.user_id)
        return respond(leaves.find_all(own))

    @app.route(f"{PREFIX}/my-requests", methods=["GET"], endpoint="leave_my_requests")
    @token_required
    def my_requests():
        return respond(leaves.find_by_user(current_user().user_id))

    @app.route(f"{PREFIX}/pending", methods=["GET"], endpoint="leave_pending")
    @roles_required(Role.ADMIN, Role.KAJUR)
    def pending():
        user = current_user()
        dept_id = query_int("dept_id")
        if user.role == Role.ADMIN:
            if dept_id is None:
                raise ValidationError("dept_id is required for admin")
            return respond(leaves.find_pending_by_department(dept_id))

        headed = departments.headed_department_ids(user.user_id)
        if dept_id is None:
            if not headed:
                return respond([])
            dept_id = headed[0]
        elif dept_id not in headed:
            raise AuthorizationError("You can only view leave requests for departments you lead")
        return respond(leaves.find_pending_by_department(dept_id))

    @app.route(f"{PREFIX}/department/<int:dept_id>/active", methods=["GET"], endpoint="leave_active_by_department")
    @roles_required(Role.ADMIN, Role.KAJUR)
    def active_by_department(dept_id: int):
        ensure_can_review(departments, current_user(), dept_id, "You can only view leave requests for departments you lead")
        start = query_date("start_date", required=True)
        end = query_date("end_date", required=True)
        if start > end:
            raise ValidationError("Start date must be before or equal to end date")
        return respond(leaves.get_active_for_department(dept_id, start, end))

    @app.route(f"{PREFIX}/<int:leave_id>", methods=["GET"], endpoint="leave_detail")
    @token_required
    def detail(leave_id: int):
        leave = leaves.find_one(leave_id)
        user = current_user()
        if leave.user_id != user.user_id:
            ensure_can_review(departments, user, leave.dept_id, "You do not have permission to view this leave request")
        return respond(leave)

    @app.route(f"{PREFIX}/<int:leave_id>", methods=["PATCH"], endpoint="leave_update")
    @token_required
    def update(leave_id: int):
        data = json_body()
        leave = leaves.update(
            leave_id,
            current_user().user_id,
            leave_type=require_enum(LeaveType, data["type"], "type") if data.get("type") else None,
            start_date=parse_optional_date(data.get("start_date")),
            end_date=parse_optional_date(data.get("end_date")),
            reason=data.get("reason"),
            attachment_id=optional_int(data.get("attachment_id"), "attachment_id"),
        )
        return respond(leave)

    @app.route(f"{PREFIX}/<int:leave_id>", methods=["DELETE"], endpoint="leave_delete")
    @token_required
    def delete(leave_id: int):
        return respond(leaves.remove(leave_id, current_user().user_id))

    @app.route(f"{PREFIX}/<int:leave_id>/review", methods=["POST"], endpoint="leave_review")
    @roles_required(Role.ADMIN, Role.KAJUR)
    def review(leave_id: int):
        data = json_body()
        leave = leaves.find_one(leave_id)
        ensure_can_review(departments, current_user(), leave.dept_id, "You do not have permission to review this leave request")
        reviewed = leaves.review_request(
            leave_id,
            current_user().user_id,
            require_enum(RequestStatus, data.get("status"), "status"),
            comments=optional_text(data.get("comments"), "comments"),
        )
        return respond(reviewed)
