from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceQuery, AttendanceRecord


class AttendanceRepository(Protocol):
    """Attendance records keyed by id and by (user_id, work_date).

    Note: ``create`` must reject a second record for the same user and day
    with ``ConflictError``.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(self, record: AttendanceRecord) -> int:
        """Insert ``record`` (its ``attendance_id`` is ignored) and return the new id."""
        raise NotImplementedError

    def update(self, record: AttendanceRecord) -> bool:
        raise NotImplementedError

    def find_all(self, query: AttendanceQuery) -> Sequence[AttendanceRecord]:
        """Matching records, newest work_date first."""
        raise NotImplementedError
