from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CorrectionType, RequestStatus
from .model import Correction, CorrectionQuery


class CorrectionRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        dept_id: int,
        correction_type: CorrectionType,
        work_date: date,
        reason: str,
        attendance_id: Optional[int],
        proposed_time: Optional[datetime],
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, correction_id: int) -> Optional[Correction]:
        raise NotImplementedError

    def count_created_between(self, user_id: int, start: datetime, end: datetime) -> int:
        """Corrections of the user with start <= created_at < end."""
        raise NotImplementedError

    def find_all(self, query: CorrectionQuery) -> Sequence[Correction]:
        """Newest first."""
        raise NotImplementedError

    def list_pending_by_department(self, dept_id: int) -> Sequence[Correction]:
        """Oldest first."""
        raise NotImplementedError

    def decide(
        self,
        correction_id: int,
        *,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        rejection_reason: Optional[str] = None,
        attendance_id: Optional[int] = None,
    ) -> bool:
        raise NotImplementedError
