from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..common.geo import GeoPoint
from ..core.enums import WorkingStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per (user, work_date)."""

    attendance_id: int
    user_id: int
    dept_id: Optional[int]
    work_date: date
    status: WorkingStatus
    check_in_time: Optional[datetime] = None
    check_in_location: Optional[GeoPoint] = None
    check_in_photo_id: Optional[int] = None
    check_in_notes: Optional[str] = None
    check_out_time: Optional[datetime] = None
    check_out_location: Optional[GeoPoint] = None
    check_out_photo_id: Optional[int] = None
    check_out_notes: Optional[str] = None
    work_hours: Optional[float] = None
    is_manual_check_in: bool = False
    is_manual_check_out: bool = False
    verified: bool = False
    verified_by: Optional[int] = None
    verified_at: Optional[datetime] = None
    correction_id: Optional[int] = None


@dataclass(frozen=True)
class AttendanceQuery:
    user_id: Optional[int] = None
    dept_id: Optional[int] = None
    status: Optional[WorkingStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class AttendanceSummary:
    start_date: date
    end_date: date
    total_days: int
    present: int = 0
    absent: int = 0
    late: int = 0
    early_departure: int = 0
    on_leave: int = 0
    official_travel: int = 0
    remote_working: int = 0
    total_work_hours: float = 0.0
    average_work_hours: float = 0.0
    total_attendances: int = 0


@dataclass
class JobReport:
    """Outcome counters of a batch job run."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def merge(self, other: "JobReport") -> None:
        self.created += other.created
        self.updated += other.updated
        self.skipped += other.skipped
        self.failed += other.failed
        self.errors.extend(other.errors)
