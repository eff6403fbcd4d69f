from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveType, RequestStatus
from .model import LeaveQuery, LeaveRequest


class LeaveRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        dept_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
        attachment_id: Optional[int],
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def update(
        self,
        leave_id: int,
        *,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
        attachment_id: Optional[int],
    ) -> bool:
        raise NotImplementedError

    def delete(self, leave_id: int) -> bool:
        raise NotImplementedError

    def decide(
        self,
        leave_id: int,
        *,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        comments: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def find_approved_covering(self, user_id: int, day: date) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def find_all(self, query: LeaveQuery) -> Sequence[LeaveRequest]:
        """Newest first."""
        raise NotImplementedError

    def list_pending_by_department(self, dept_id: int) -> Sequence[LeaveRequest]:
        """Oldest first."""
        raise NotImplementedError

    def list_approved_ending_on_or_after(self, day: date) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_approved_overlapping(self, dept_id: int, start: date, end: date) -> Sequence[LeaveRequest]:
        raise NotImplementedError
