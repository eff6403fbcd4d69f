from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import LeaveType, RequestStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..files.service import FileService
from ..users.service import DepartmentService, UserService
from .model import LeaveQuery, LeaveRequest, LeaveStatus
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


class LeaveRequestService:
    """Leave / WFH / WFA / official travel requests and their review."""

    def __init__(
        self,
        leaves: LeaveRepository,
        users: UserService,
        departments: DepartmentService,
        files: Optional[FileService] = None,
    ):
        self._leaves = leaves
        self._users = users
        self._departments = departments
        self._files = files

    def create(
        self,
        user_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
        *,
        dept_id: Optional[int] = None,
        attachment_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        if start_date > end_date:
            raise ValidationError("Start date must be before or equal to end date")
        reason = require_non_empty(reason, "Reason")

        self._users.get(user_id)
        if dept_id is None:
            dept_id = self._departments.primary_department_id(user_id)
            if dept_id is None:
                raise ValidationError("User does not belong to any department")
        self._departments.get(dept_id)
        if not self._departments.is_member(dept_id, user_id):
            raise ValidationError("User does not belong to the specified department")

        leave_id = self._leaves.create(
            user_id=int(user_id),
            dept_id=int(dept_id),
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            attachment_id=attachment_id,
            created_at=now or now_local(),
        )
        if attachment_id is not None and self._files is not None:
            self._files.link_to_record(attachment_id, leave_id)

        logger.info("Leave request %s created by user %s (%s %s..%s)", leave_id, user_id, leave_type.value, start_date, end_date)
        return self.find_one(leave_id)

    def find_one(self, leave_id: int) -> LeaveRequest:
        leave = self._leaves.get_by_id(leave_id)
        if not leave:
            raise NotFoundError(f"Leave request with ID {leave_id} not found")
        return leave

    def find_all(self, query: LeaveQuery) -> Sequence[LeaveRequest]:
        return self._leaves.find_all(query)

    def find_by_user(self, user_id: int) -> Sequence[LeaveRequest]:
        return self._leaves.find_all(LeaveQuery(user_id=user_id))

    def find_pending_by_department(self, dept_id: int) -> Sequence[LeaveRequest]:
        return self._leaves.list_pending_by_department(dept_id)

    def get_active_for_department(self, dept_id: int, start: date, end: date) -> Sequence[LeaveRequest]:
        """Approved requests of the department overlapping [start, end]."""
        return self._leaves.list_approved_overlapping(dept_id, start, end)

    def _editable(self, leave_id: int, user_id: int, action: str) -> LeaveRequest:
        leave = self.find_one(leave_id)
        if leave.user_id != user_id:
            raise AuthorizationError(f"You can only {action} your own leave requests")
        if leave.status != RequestStatus.PENDING:
            raise ConflictError(f"Only pending leave requests can be {action}d")
        return leave

    def update(
        self,
        leave_id: int,
        user_id: int,
        *,
        leave_type: Optional[LeaveType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        reason: Optional[str] = None,
        attachment_id: Optional[int] = None,
    ) -> LeaveRequest:
        leave = self._editable(leave_id, user_id, "update")

        if start_date is not None and end_date is not None:
            if start_date > end_date:
                raise ValidationError("Start date must be before or equal to end date")
        elif start_date is not None:
            if start_date > leave.end_date:
                raise ValidationError("Start date must be before or equal to existing end date")
        elif end_date is not None:
            if leave.start_date > end_date:
                raise ValidationError("Existing start date must be before or equal to end date")

        if reason is not None:
            reason = require_non_empty(reason, "Reason")

        ok = self._leaves.update(
            leave_id,
            leave_type=leave_type or leave.leave_type,
            start_date=start_date or leave.start_date,
            end_date=end_date or leave.end_date,
            reason=reason or leave.reason,
            attachment_id=attachment_id if attachment_id is not None else leave.attachment_id,
        )
        if not ok:
            raise ConflictError("Only pending leave requests can be updated")
        if attachment_id is not None and attachment_id != leave.attachment_id and self._files is not None:
            self._files.link_to_record(attachment_id, leave_id)
        return self.find_one(leave_id)

    def remove(self, leave_id: int, user_id: int) -> LeaveRequest:
        leave = self._editable(leave_id, user_id, "delete")
        if not self._leaves.delete(leave_id):
            raise ConflictError("Only pending leave requests can be deleted")
        logger.info("Leave request %s deleted by user %s", leave_id, user_id)
        return leave

    def review_request(
        self,
        leave_id: int,
        reviewer_id: int,
        status: RequestStatus,
        *,
        comments: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        if status not in (RequestStatus.APPROVED, RequestStatus.REJECTED):
            raise ValidationError("Review status must be APPROVED or REJECTED")

        leave = self.find_one(leave_id)
        if leave.status != RequestStatus.PENDING:
            raise ConflictError("This leave request has already been reviewed")

        ok = self._leaves.decide(
            leave_id,
            status=status,
            reviewed_by=int(reviewer_id),
            reviewed_at=now or now_local(),
            comments=(comments or "").strip() or None,
        )
        if not ok:
            raise ConflictError("This leave request has already been reviewed")

        # Attendance is reconciled by the nightly sync job, not here.
        logger.info("Leave request %s %s by %s", leave_id, status.value, reviewer_id)
        return self.find_one(leave_id)

    def check_user_leave_status(self, user_id: int, day: date) -> LeaveStatus:
        if isinstance(day, datetime):
            day = day.date()
        leave = self._leaves.find_approved_covering(user_id, day)
        if not leave:
            return LeaveStatus(is_on_leave=False)
        return LeaveStatus(is_on_leave=True, leave_type=leave.leave_type)
