from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceService
from ..common.datetime_utils import month_bounds, now_local
from ..common.validators import require_non_empty
from ..core.constants import BREAK_TIME_CREDIT_HOURS, CORRECTION_MAX_AGE_DAYS, CORRECTION_MONTHLY_LIMIT
from ..core.enums import CorrectionType, RequestStatus, WorkingStatus
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from ..users.service import DepartmentService
from .model import MISSED_TYPES, Correction, CorrectionQuery, MonthlyUsage
from .repository import CorrectionRepository

logger = logging.getLogger(__name__)

# Status a correction type excuses, reset to PRESENT on approval.
_EXCUSED_STATUS = {
    CorrectionType.EARLY_DEPARTURE: WorkingStatus.EARLY_DEPARTURE,
    CorrectionType.LATE_ARRIVAL: WorkingStatus.LATE,
}


class CorrectionService:
    def __init__(
        self,
        corrections: CorrectionRepository,
        attendance_service: AttendanceService,
        attendance: AttendanceRepository,
        departments: DepartmentService,
        *,
        monthly_limit: int = CORRECTION_MONTHLY_LIMIT,
        max_age_days: int = CORRECTION_MAX_AGE_DAYS,
    ):
        self._corrections = corrections
        self._attendance_service = attendance_service
        self._attendance = attendance
        self._departments = departments
        self._monthly_limit = int(monthly_limit)
        self._max_age_days = int(max_age_days)

    def _used_this_month(self, user_id: int, now: datetime) -> int:
        start, end = month_bounds(now)
        return self._corrections.count_created_between(user_id, start, end)

    def create(
        self,
        user_id: int,
        correction_type: CorrectionType,
        work_date: date,
        reason: str,
        *,
        proposed_time: Optional[datetime] = None,
        attendance_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Correction:
        now = now or now_local()
        today = now.date()

        dept_id = self._departments.primary_department_id(user_id)
        if dept_id is None:
            raise ValidationError("User is not associated with any department")

        if self._used_this_month(user_id, now) >= self._monthly_limit:
            raise QuotaExceededError(
                f"You have reached the maximum limit of {self._monthly_limit} corrections per month"
            )

        if work_date > today:
            raise ValidationError("Correction date cannot be in the future")
        if work_date < today - timedelta(days=self._max_age_days):
            raise ValidationError(f"Correction date cannot be more than {self._max_age_days} days old")

        reason = require_non_empty(reason, "Reason")

        if correction_type in MISSED_TYPES:
            if proposed_time is None:
                raise ValidationError("Proposed time is required for missed check-in/out corrections")
            if proposed_time.date() != work_date:
                raise ValidationError("Proposed time must fall on the correction date")

        if attendance_id is None:
            if correction_type != CorrectionType.MISSED_CHECK_IN:
                raise ValidationError("Attendance record is required for this correction type")
        else:
            record = self._attendance.get_by_id(attendance_id)
            if not record:
                raise NotFoundError(f"Attendance record with ID {attendance_id} not found")
            if record.user_id != user_id:
                raise AuthorizationError("You can only correct your own attendance records")
            if record.work_date != work_date:
                raise ValidationError("Attendance record date does not match the correction date")

        correction_id = self._corrections.create(
            user_id=user_id,
            dept_id=dept_id,
            correction_type=correction_type,
            work_date=work_date,
            reason=reason,
            attendance_id=attendance_id,
            proposed_time=proposed_time,
            created_at=now,
        )
        logger.info("Correction %s (%s) created by user %s for %s", correction_id, correction_type.value, user_id, work_date)
        return self.find_one(correction_id)

    # -------- Queries --------
    def find_one(self, correction_id: int) -> Correction:
        correction = self._corrections.get_by_id(correction_id)
        if not correction:
            raise NotFoundError(f"Correction with ID {correction_id} not found")
        return correction

    def find_all(self, query: CorrectionQuery) -> Sequence[Correction]:
        return self._corrections.find_all(query)

    def find_user_corrections(self, user_id: int, query: Optional[CorrectionQuery] = None) -> Sequence[Correction]:
        query = query or CorrectionQuery()
        return self._corrections.find_all(
            CorrectionQuery(
                user_id=user_id,
                status=query.status,
                correction_type=query.correction_type,
                start_date=query.start_date,
                end_date=query.end_date,
            )
        )

    def find_pending_by_department(self, dept_id: int) -> Sequence[Correction]:
        return self._corrections.list_pending_by_department(dept_id)

    def get_monthly_usage(self, user_id: int, *, now: Optional[datetime] = None) -> MonthlyUsage:
        return MonthlyUsage(used=self._used_this_month(user_id, now or now_local()), limit=self._monthly_limit)

    # -------- Review --------
    def review_correction(
        self,
        correction_id: int,
        reviewer_id: int,
        status: RequestStatus,
        *,
        rejection_reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Correction:
        if status not in (RequestStatus.APPROVED, RequestStatus.REJECTED):
            raise ValidationError("Review status must be APPROVED or REJECTED")

        correction = self.find_one(correction_id)
        if correction.status != RequestStatus.PENDING:
            raise ConflictError("This correction has already been reviewed")

        attendance_id = None
        if status == RequestStatus.REJECTED:
            rejection_reason = require_non_empty(rejection_reason, "Rejection reason")
        else:
            rejection_reason = None
            # Applied before the status is persisted: a failed application leaves it PENDING.
            attendance_id = self.apply_correction(correction).attendance_id

        ok = self._corrections.decide(
            correction_id,
            status=status,
            reviewed_by=reviewer_id,
            reviewed_at=now or now_local(),
            rejection_reason=rejection_reason,
            attendance_id=attendance_id,
        )
        if not ok:
            raise ConflictError("This correction has already been reviewed")

        logger.info("Correction %s %s by %s", correction_id, status.value, reviewer_id)
        return self.find_one(correction_id)

    def _target_record(self, correction: Correction) -> Optional[AttendanceRecord]:
        if correction.attendance_id is not None:
            record = self._attendance.get_by_id(correction.attendance_id)
        else:
            record = self._attendance.get_for_user_and_date(correction.user_id, correction.work_date)
        if record and record.user_id != correction.user_id:
            raise AuthorizationError("Attendance record does not belong to the correction requester")
        return record

    def apply_correction(self, correction: Correction) -> AttendanceRecord:
        record = self._target_record(correction)
        kind = correction.correction_type

        if kind == CorrectionType.MISSED_CHECK_IN:
            if record is None:
                return self._attendance_service.create_manual_attendance(
                    correction.user_id,
                    correction.work_date,
                    correction.correction_id,
                    check_in_time=correction.proposed_time,
                    dept_id=correction.dept_id,
                )
            return self._attendance_service.update_attendance_for_correction(
                record.attendance_id,
                correction.correction_id,
                check_in_time=correction.proposed_time,
            )

        if record is None:
            raise ValidationError("No attendance record found for this date")

        if kind == CorrectionType.MISSED_CHECK_OUT:
            if record.check_in_time is None:
                raise ValidationError("Cannot apply a missed check-out without a check-in")
            return self._attendance_service.update_attendance_for_correction(
                record.attendance_id,
                correction.correction_id,
                check_out_time=correction.proposed_time,
            )

        if kind == CorrectionType.BREAK_TIME_AS_WORK:
            return self._attendance_service.update_attendance_for_correction(
                record.attendance_id,
                correction.correction_id,
                status=record.status,
                work_hours=(record.work_hours or 0.0) + BREAK_TIME_CREDIT_HOURS,
            )

        # EARLY_DEPARTURE / LATE_ARRIVAL
        status = record.status
        if status == _EXCUSED_STATUS[kind]:
            status = WorkingStatus.PRESENT
        return self._attendance_service.update_attendance_for_correction(
            record.attendance_id,
            correction.correction_id,
            status=status,
        )
