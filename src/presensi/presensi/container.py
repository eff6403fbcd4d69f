from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.policy import AttendancePolicy
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import parse_clock
from .common.geo import Geofence
from .core.constants import (
    CORRECTION_MAX_AGE_DAYS,
    CORRECTION_MONTHLY_LIMIT,
    DEFAULT_EARLY_LEAVE_TOLERANCE_MINUTES,
    DEFAULT_GEOFENCE_RADIUS_M,
    DEFAULT_LATE_TOLERANCE_MINUTES,
)
from .corrections.mysql_correction_repository import MySQLCorrectionRepository
from .corrections.repository import CorrectionRepository
from .corrections.service import CorrectionService
from .database.connection import DBConfig, DatabaseConnection
from .files.mysql_file_repository import MySQLFileRepository
from .files.repository import FileRepository
from .files.service import FileService
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .leaves.service import LeaveRequestService
from .leaves.sync import LeaveAttendanceSynchronizer
from .users.department_repository import DepartmentRepository
from .users.mysql_department_repository import MySQLDepartmentRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import DepartmentService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    departments_repo: DepartmentRepository
    files_repo: FileRepository
    leaves_repo: LeaveRepository
    attendance_repo: AttendanceRepository
    corrections_repo: CorrectionRepository

    user_service: UserService
    department_service: DepartmentService
    file_service: FileService
    leave_service: LeaveRequestService
    attendance_service: AttendanceService
    correction_service: CorrectionService
    leave_sync: LeaveAttendanceSynchronizer

    conn: Optional[DatabaseConnection] = None


def policy_from_settings(settings) -> AttendancePolicy:
    return AttendancePolicy(
        work_start=parse_clock(getattr(settings, "WORK_START", "08:00")),
        work_end=parse_clock(getattr(settings, "WORK_END", "17:00")),
        late_tolerance_minutes=int(getattr(settings, "LATE_TOLERANCE_MINUTES", DEFAULT_LATE_TOLERANCE_MINUTES)),
        early_leave_tolerance_minutes=int(
            getattr(settings, "EARLY_LEAVE_TOLERANCE_MINUTES", DEFAULT_EARLY_LEAVE_TOLERANCE_MINUTES)
        ),
    )


def geofence_from_settings(settings) -> Geofence:
    return Geofence(
        latitude=float(getattr(settings, "OFFICE_LATITUDE", 0.0)),
        longitude=float(getattr(settings, "OFFICE_LONGITUDE", 0.0)),
        radius_m=float(getattr(settings, "GEOFENCE_RADIUS", DEFAULT_GEOFENCE_RADIUS_M)),
    )


def wire(
    *,
    users_repo: UserRepository,
    departments_repo: DepartmentRepository,
    files_repo: FileRepository,
    leaves_repo: LeaveRepository,
    attendance_repo: AttendanceRepository,
    corrections_repo: CorrectionRepository,
    policy: AttendancePolicy,
    geofence: Geofence,
    monthly_limit: int = CORRECTION_MONTHLY_LIMIT,
    max_age_days: int = CORRECTION_MAX_AGE_DAYS,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build services on top of any repository implementations."""
    user_service = UserService(users_repo)
    department_service = DepartmentService(departments_repo)
    file_service = FileService(files_repo)
    leave_service = LeaveRequestService(leaves_repo, user_service, department_service, file_service)
    attendance_service = AttendanceService(
        attendance_repo,
        user_service,
        department_service,
        leave_service,
        file_service,
        policy=policy,
        geofence=geofence,
    )
    correction_service = CorrectionService(
        corrections_repo,
        attendance_service,
        attendance_repo,
        department_service,
        monthly_limit=monthly_limit,
        max_age_days=max_age_days,
    )

    return Container(
        users_repo=users_repo,
        departments_repo=departments_repo,
        files_repo=files_repo,
        leaves_repo=leaves_repo,
        attendance_repo=attendance_repo,
        corrections_repo=corrections_repo,
        user_service=user_service,
        department_service=department_service,
        file_service=file_service,
        leave_service=leave_service,
        attendance_service=attendance_service,
        correction_service=correction_service,
        leave_sync=LeaveAttendanceSynchronizer(leaves_repo, attendance_repo),
        conn=conn,
    )


def build_container(*, db_config: dict, settings) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        users_repo=MySQLUserRepository(conn),
        departments_repo=MySQLDepartmentRepository(conn),
        files_repo=MySQLFileRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        corrections_repo=MySQLCorrectionRepository(conn),
        policy=policy_from_settings(settings),
        geofence=geofence_from_settings(settings),
        monthly_limit=int(getattr(settings, "CORRECTION_MONTHLY_LIMIT", CORRECTION_MONTHLY_LIMIT)),
        max_age_days=int(getattr(settings, "CORRECTION_MAX_AGE_DAYS", CORRECTION_MAX_AGE_DAYS)),
        conn=conn,
    )
