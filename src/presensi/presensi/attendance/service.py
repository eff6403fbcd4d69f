from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import at, hours_between, now_local
from ..common.geo import GeoPoint, Geofence
from ..core.constants import FULL_DAY_CHECK_IN, FULL_DAY_CHECK_OUT, FULL_DAY_WORK_HOURS
from ..core.enums import WorkingStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..files.service import FileService
from ..leaves.service import LeaveRequestService
from ..users.service import DepartmentService, UserService
from .model import AttendanceQuery, AttendanceRecord, AttendanceSummary, JobReport
from .policy import AttendancePolicy
from .repository import AttendanceRepository
from .status import StatusContext, StatusEvent, derive_status

logger = logging.getLogger(__name__)

ABSENT_NOTE = "Automatically marked as absent"


def leave_sync_tag(leave_type) -> str:
    return f"[Updated based on approved {leave_type.value}]"


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserService,
        departments: DepartmentService,
        leaves: LeaveRequestService,
        files: FileService,
        *,
        policy: AttendancePolicy,
        geofence: Geofence,
    ):
        self._attendance = attendance
        self._users = users
        self._departments = departments
        self._leaves = leaves
        self._files = files
        self._policy = policy
        self._geofence = geofence

    # -------- Check-in / check-out --------
    def check_in(
        self,
        user_id: int,
        location: GeoPoint,
        *,
        notes: Optional[str] = None,
        photo_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        self._users.get(user_id)
        if photo_id is not None:
            self._files.get(photo_id)

        leave = self._leaves.check_user_leave_status(user_id, today)
        if leave.is_on_leave:
            raise ConflictError(f"You are on {leave.leave_type.value} today and cannot check in")

        existing = self._attendance.get_for_user_and_date(user_id, today)
        if existing and existing.check_in_time is not None:
            raise ConflictError("You have already checked in today")

        within = self._geofence.contains(location)
        status = derive_status(
            StatusContext(
                event=StatusEvent.CHECK_IN,
                within_geofence=within,
                is_late=self._policy.is_late(now),
            )
        )

        if existing:
            # e.g. an ABSENT row written by the nightly job
            record = replace(
                existing,
                check_in_time=now,
                check_in_location=location,
                check_in_photo_id=photo_id,
                check_in_notes=notes,
                is_manual_check_in=False,
                status=status,
            )
            self._attendance.update(record)
        else:
            record = AttendanceRecord(
                attendance_id=0,
                user_id=user_id,
                dept_id=self._departments.primary_department_id(user_id),
                work_date=today,
                status=status,
                check_in_time=now,
                check_in_location=location,
                check_in_photo_id=photo_id,
                check_in_notes=notes,
            )
            record = replace(record, attendance_id=self._attendance.create(record))

        if photo_id is not None:
            self._files.link_to_record(photo_id, record.attendance_id)

        logger.info(
            "User %s checked in at %s (%s, %.0fm from office)",
            user_id,
            now.strftime("%H:%M"),
            status.value,
            self._geofence.distance_to(location),
        )
        return record

    def check_out(
        self,
        user_id: int,
        location: GeoPoint,
        *,
        notes: Optional[str] = None,
        photo_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        record = self._attendance.get_for_user_and_date(user_id, today)
        if not record or record.check_in_time is None:
            raise ConflictError("You have not checked in today")
        if record.check_out_time is not None:
            raise ConflictError("You have already checked out today")
        if photo_id is not None:
            self._files.get(photo_id)

        early = self._policy.is_early_departure(now)
        leave_type = None
        if early and record.status == WorkingStatus.PRESENT:
            leave_type = self._leaves.check_user_leave_status(user_id, today).leave_type

        status = derive_status(
            StatusContext(
                event=StatusEvent.CHECK_OUT,
                current=record.status,
                is_early_departure=early,
                leave_type=leave_type,
            )
        )

        record = replace(
            record,
            check_out_time=now,
            check_out_location=location,
            check_out_photo_id=photo_id,
            check_out_notes=notes,
            work_hours=hours_between(record.check_in_time, now),
            status=status,
        )
        self._attendance.update(record)

        if photo_id is not None:
            self._files.link_to_record(photo_id, record.attendance_id)

        logger.info("User %s checked out at %s (%s, %.2fh)", user_id, now.strftime("%H:%M"), status.value, record.work_hours)
        return record

    def verify_attendance(
        self,
        attendance_id: int,
        verifier_id: int,
        verified: bool,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        record = replace(
            self.find_one(attendance_id),
            verified=bool(verified),
            verified_by=verifier_id,
            verified_at=now or now_local(),
        )
        self._attendance.update(record)
        return record

    # -------- Queries --------
    def find_all(self, query: AttendanceQuery) -> Sequence[AttendanceRecord]:
        return self._attendance.find_all(query)

    def find_one(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError(f"Attendance record with ID {attendance_id} not found")
        return record

    def find_today_attendance(self, user_id: int, *, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_user_and_date(user_id, (now or now_local()).date())

    def get_attendance_summary(
        self,
        start_date: date,
        end_date: date,
        *,
        user_id: Optional[int] = None,
        dept_id: Optional[int] = None,
    ) -> AttendanceSummary:
        if start_date > end_date:
            raise ValidationError("Start date must be before or equal to end date")

        records = self._attendance.find_all(
            AttendanceQuery(user_id=user_id, dept_id=dept_id, start_date=start_date, end_date=end_date)
        )
        counts = {s: 0 for s in WorkingStatus}
        total_hours = 0.0
        for rec in records:
            counts[rec.status] += 1
            if rec.work_hours:
                total_hours += rec.work_hours

        average = round(total_hours / len(records), 2) if records else 0.0
        return AttendanceSummary(
            start_date=start_date,
            end_date=end_date,
            total_days=(end_date - start_date).days + 1,
            present=counts[WorkingStatus.PRESENT],
            absent=counts[WorkingStatus.ABSENT],
            late=counts[WorkingStatus.LATE],
            early_departure=counts[WorkingStatus.EARLY_DEPARTURE],
            on_leave=counts[WorkingStatus.ON_LEAVE],
            official_travel=counts[WorkingStatus.OFFICIAL_TRAVEL],
            remote_working=counts[WorkingStatus.REMOTE_WORKING],
            total_work_hours=round(total_hours, 2),
            average_work_hours=average,
            # Absences and leave days are not attendances.
            total_attendances=(
                counts[WorkingStatus.PRESENT]
                + counts[WorkingStatus.LATE]
                + counts[WorkingStatus.EARLY_DEPARTURE]
                + counts[WorkingStatus.REMOTE_WORKING]
                + counts[WorkingStatus.OFFICIAL_TRAVEL]
            ),
        )

    # -------- Manual entries (corrections) --------
    def create_manual_attendance(
        self,
        user_id: int,
        work_date: date,
        correction_id: int,
        *,
        check_in_time: Optional[datetime] = None,
        check_out_time: Optional[datetime] = None,
        dept_id: Optional[int] = None,
    ) -> AttendanceRecord:
        existing = self._attendance.get_for_user_and_date(user_id, work_date)
        if existing:
            logger.info("Updating existing attendance %s for correction %s", existing.attendance_id, correction_id)
            return self.update_attendance_for_correction(
                existing.attendance_id,
                correction_id,
                check_in_time=check_in_time,
                check_out_time=check_out_time,
            )

        if check_in_time and check_out_time and check_out_time < check_in_time:
            raise ValidationError("Check-out time cannot be earlier than check-in time")

        leave = self._leaves.check_user_leave_status(user_id, work_date)
        record = AttendanceRecord(
            attendance_id=0,
            user_id=user_id,
            dept_id=dept_id if dept_id is not None else self._departments.primary_department_id(user_id),
            work_date=work_date,
            status=derive_status(StatusContext(event=StatusEvent.MANUAL, leave_type=leave.leave_type)),
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            is_manual_check_in=check_in_time is not None,
            is_manual_check_out=check_out_time is not None,
            work_hours=hours_between(check_in_time, check_out_time) if check_in_time and check_out_time else None,
            correction_id=correction_id,
        )
        record = replace(record, attendance_id=self._attendance.create(record))
        logger.info("Manual attendance %s created for user %s on %s", record.attendance_id, user_id, work_date)
        return record

    def update_attendance_for_correction(
        self,
        attendance_id: int,
        correction_id: int,
        *,
        check_in_time: Optional[datetime] = None,
        check_out_time: Optional[datetime] = None,
        status: Optional[WorkingStatus] = None,
        work_hours: Optional[float] = None,
    ) -> AttendanceRecord:
        record = self.find_one(attendance_id)
        changes: dict = {"correction_id": correction_id}

        if check_in_time is not None:
            changes.update(check_in_time=check_in_time, is_manual_check_in=True)
        if check_out_time is not None:
            changes.update(check_out_time=check_out_time, is_manual_check_out=True)

        new_in = changes.get("check_in_time", record.check_in_time)
        new_out = changes.get("check_out_time", record.check_out_time)
        if new_in and new_out and new_out < new_in:
            raise ValidationError("Check-out time cannot be earlier than check-in time")

        leave_type = None
        if status is None:
            leave_type = self._leaves.check_user_leave_status(record.user_id, record.work_date).leave_type
        changes["status"] = derive_status(
            StatusContext(event=StatusEvent.MANUAL, explicit=status, leave_type=leave_type, current=record.status)
        )

        if work_hours is not None:
            changes["work_hours"] = round(work_hours, 2)
        elif (check_in_time is not None or check_out_time is not None) and new_in and new_out:
            changes["work_hours"] = hours_between(new_in, new_out)

        record = replace(record, **changes)
        self._attendance.update(record)
        return record

    # -------- Batch jobs --------
    def mark_absences_for_today(self, *, now: Optional[datetime] = None) -> JobReport:
        """Give every active user without a record today an ABSENT (or leave) record."""
        today = (now or now_local()).date()
        report = JobReport()
        logger.info("Starting daily absence marking for %s", today)

        for user in self._users.list_active():
            try:
                if self._attendance.get_for_user_and_date(user.user_id, today):
                    report.skipped += 1
                    continue
                self._attendance.create(self._absence_record(user.user_id, today))
                report.created += 1
            except ConflictError:
                # A check-in landed between the lookup and the insert.
                report.skipped += 1
            except Exception as exc:
                logger.exception("Failed to mark absence for user %s", user.user_id)
                report.failed += 1
                report.errors.append(f"user {user.user_id}: {exc}")

        logger.info(
            "Absence marking done: created=%s skipped=%s failed=%s", report.created, report.skipped, report.failed
        )
        return report

    def _absence_record(self, user_id: int, today: date) -> AttendanceRecord:
        leave = self._leaves.check_user_leave_status(user_id, today)
        status = derive_status(StatusContext(event=StatusEvent.ABSENCE_SWEEP, leave_type=leave.leave_type))
        base = AttendanceRecord(
            attendance_id=0,
            user_id=user_id,
            dept_id=self._departments.primary_department_id(user_id),
            work_date=today,
            status=status,
        )
        if not leave.is_on_leave:
            return replace(base, check_in_notes=ABSENT_NOTE)
        return replace(
            base,
            check_in_time=at(today, FULL_DAY_CHECK_IN),
            check_out_time=at(today, FULL_DAY_CHECK_OUT),
            work_hours=FULL_DAY_WORK_HOURS,
            is_manual_check_in=True,
            is_manual_check_out=True,
            check_in_notes=f"Auto-generated for {leave.leave_type.value}",
        )

    def synchronize_with_leave_requests(
        self,
        start_date: date,
        end_date: date,
        *,
        user_id: Optional[int] = None,
    ) -> JobReport:
        """Re-derive statuses of existing records from the approved leave covering their day."""
        report = JobReport()
        records = self._attendance.find_all(AttendanceQuery(user_id=user_id, start_date=start_date, end_date=end_date))
        logger.info("Synchronizing %s attendance records with leave requests (%s..%s)", len(records), start_date, end_date)

        for record in records:
            try:
                leave = self._leaves.check_user_leave_status(record.user_id, record.work_date)
                if not leave.is_on_leave:
                    report.skipped += 1
                    continue
                status = derive_status(
                    StatusContext(event=StatusEvent.LEAVE_SYNC, leave_type=leave.leave_type, current=record.status)
                )
                if status == record.status:
                    report.skipped += 1
                    continue

                tag = leave_sync_tag(leave.leave_type)
                notes = record.check_in_notes or ""
                if tag not in notes:
                    notes = f"{notes} {tag}".strip()
                self._attendance.update(replace(record, status=status, check_in_notes=notes))
                report.updated += 1
            except Exception as exc:
                logger.exception("Failed to synchronize attendance %s", record.attendance_id)
                report.failed += 1
                report.errors.append(f"attendance {record.attendance_id}: {exc}")

        logger.info("Attendance sync done: updated=%s skipped=%s failed=%s", report.updated, report.skipped, report.failed)
        return report

