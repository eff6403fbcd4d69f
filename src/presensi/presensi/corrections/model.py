from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import CorrectionType, RequestStatus

MISSED_TYPES = frozenset({CorrectionType.MISSED_CHECK_IN, CorrectionType.MISSED_CHECK_OUT})


@dataclass(frozen=True)
class Correction:
    """Retroactive request to amend one day of attendance."""

    correction_id: int
    user_id: int
    dept_id: int
    correction_type: CorrectionType
    work_date: date
    reason: str
    status: RequestStatus
    created_at: datetime
    attendance_id: Optional[int] = None
    proposed_time: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class CorrectionQuery:
    user_id: Optional[int] = None
    dept_id: Optional[int] = None
    status: Optional[RequestStatus] = None
    correction_type: Optional[CorrectionType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class MonthlyUsage:
    used: int
    limit: int

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)
