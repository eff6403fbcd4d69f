"""Nightly reconciliation of approved leave requests into attendance records."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from ..attendance.model import AttendanceRecord, JobReport
from ..attendance.repository import AttendanceRepository
from ..attendance.status import StatusContext, StatusEvent, derive_status
from ..common.datetime_utils import at, iter_days, now_local
from ..core.constants import FULL_DAY_CHECK_IN, FULL_DAY_CHECK_OUT, FULL_DAY_WORK_HOURS
from ..core.enums import RequestStatus
from .model import LeaveRequest
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


class LeaveAttendanceSynchronizer:
    def __init__(self, leaves: LeaveRepository, attendance: AttendanceRepository):
        self._leaves = leaves
        self._attendance = attendance

    def sync_leave_request(self, leave: LeaveRequest, *, now: Optional[datetime] = None) -> JobReport:
        """Write a full leave day for every date of an approved request."""
        report = JobReport()
        if leave.status != RequestStatus.APPROVED:
            return report

        now = now or now_local()
        status = derive_status(StatusContext(event=StatusEvent.LEAVE_SYNC, leave_type=leave.leave_type))
        note = f"Automatically marked from approved {leave.leave_type.value} request"

        for day in iter_days(leave.start_date, leave.end_date):
            full_day = dict(
                status=status,
                check_in_time=at(day, FULL_DAY_CHECK_IN),
                check_out_time=at(day, FULL_DAY_CHECK_OUT),
                work_hours=FULL_DAY_WORK_HOURS,
                is_manual_check_in=True,
                is_manual_check_out=True,
                check_in_notes=note,
                check_out_notes=note,
            )
            existing = self._attendance.get_for_user_and_date(leave.user_id, day)
            if existing:
                updated = replace(existing, **full_day)
                if updated == existing:
                    report.skipped += 1
                    continue
                self._attendance.update(updated)
                report.updated += 1
            else:
                self._attendance.create(
                    AttendanceRecord(
                        attendance_id=0,
                        user_id=leave.user_id,
                        dept_id=leave.dept_id,
                        work_date=day,
                        verified=True,
                        verified_by=leave.reviewed_by,
                        verified_at=now,
                        **full_day,
                    )
                )
                report.created += 1

        logger.info(
            "Leave request %s synced: %s created, %s updated (%s)",
            leave.leave_id,
            report.created,
            report.updated,
            status.value,
        )
        return report

    def synchronize_active(self, *, today: Optional[date] = None, now: Optional[datetime] = None) -> JobReport:
        """Sweep every approved request whose end date is today or later."""
        now = now or now_local()
        today = today or now.date()
        report = JobReport()

        active = self._leaves.list_approved_ending_on_or_after(today)
        logger.info("Found %s active approved leave requests to process", len(active))

        for leave in active:
            try:
                report.merge(self.sync_leave_request(leave, now=now))
            except Exception as exc:
                logger.exception("Failed to sync leave request %s", leave.leave_id)
                report.failed += 1
                report.errors.append(f"leave {leave.leave_id}: {exc}")

        logger.info(
            "Leave synchronization done: created=%s updated=%s failed=%s", report.created, report.updated, report.failed
        )
        return report
