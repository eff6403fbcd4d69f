from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveType, RequestStatus


@dataclass(frozen=True)
class LeaveRequest:
    """Leave / WFH / WFA / official travel request over [start_date, end_date]."""

    leave_id: int
    user_id: int
    dept_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: RequestStatus
    created_at: datetime
    attachment_id: Optional[int] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    comments: Optional[str] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class LeaveStatus:
    is_on_leave: bool
    leave_type: Optional[LeaveType] = None


@dataclass(frozen=True)
class LeaveQuery:
    user_id: Optional[int] = None
    dept_ids: Optional[tuple[int, ...]] = None
    leave_types: tuple[LeaveType, ...] = ()
    statuses: tuple[RequestStatus, ...] = ()
    start_from: Optional[date] = None
    start_to: Optional[date] = None
    end_from: Optional[date] = None
    end_to: Optional[date] = None
