from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta

from ..core.constants import (
    DEFAULT_EARLY_LEAVE_TOLERANCE_MINUTES,
    DEFAULT_LATE_TOLERANCE_MINUTES,
    DEFAULT_WORK_END,
    DEFAULT_WORK_START,
)


@dataclass(frozen=True)
class AttendancePolicy:
    """Working day window and tolerances (minutes)."""

    work_start: time = DEFAULT_WORK_START
    work_end: time = DEFAULT_WORK_END
    late_tolerance_minutes: int = DEFAULT_LATE_TOLERANCE_MINUTES
    early_leave_tolerance_minutes: int = DEFAULT_EARLY_LEAVE_TOLERANCE_MINUTES

    def late_cutoff(self, day) -> datetime:
        return datetime.combine(day, self.work_start) + timedelta(minutes=self.late_tolerance_minutes)

    def early_cutoff(self, day) -> datetime:
        return datetime.combine(day, self.work_end) - timedelta(minutes=self.early_leave_tolerance_minutes)

    def is_late(self, moment: datetime) -> bool:
        # Compared at minute granularity: 08:15:59 is still on time.
        return moment.replace(second=0, microsecond=0) > self.late_cutoff(moment.date())

    def is_early_departure(self, moment: datetime) -> bool:
        return moment.replace(second=0, microsecond=0) < self.early_cutoff(moment.date())
