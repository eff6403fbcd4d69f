from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

import pytest

from presensi.attendance.model import AttendanceQuery, AttendanceRecord
from presensi.attendance.policy import AttendancePolicy
from presensi.common.geo import GeoPoint, Geofence
from presensi.common.security import create_access_token
from presensi.container import Container, wire
from presensi.core.enums import RequestStatus, Role
from presensi.core.exceptions import ConflictError
from presensi.corrections.model import Correction, CorrectionQuery
from presensi.files.model import StoredFile
from presensi.leaves.model import LeaveQuery, LeaveRequest
from presensi.users.department_model import Department
from presensi.users.model import User

OFFICE = GeoPoint(latitude=-0.2264, longitude=100.6326, accuracy=5.0, provider="gps")
# Roughly 1.1 km south of the office.
FAR_AWAY = GeoPoint(latitude=-0.2364, longitude=100.6326, accuracy=5.0, provider="gps")

ADMIN_ID = 1
KAJUR_ID = 2
DOSEN_ID = 3
NO_DEPT_ID = 4
OTHER_DOSEN_ID = 5
TI_DEPT = 10
SIPIL_DEPT = 20

JWT_SECRET = "test-jwt-secret"


class InMemoryUsers:
    def __init__(self, users: list[User]):
        self.users_by_id = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(user_id)

    def list_active(self):
        return [u for u in sorted(self.users_by_id.values(), key=lambda u: u.user_id) if u.is_active]


class InMemoryDepartments:
    def __init__(self, departments: list[Department]):
        self.by_id = {d.dept_id: d for d in departments}

    def get_by_id(self, dept_id: int) -> Optional[Department]:
        return self.by_id.get(dept_id)

    def list_by_member(self, user_id: int):
        found = [d for d in self.by_id.values() if d.is_active and d.has_member(user_id)]
        return sorted(found, key=lambda d: (user_id not in d.primary_member_ids, d.dept_id))

    def list_by_head(self, head_id: int):
        return sorted((d for d in self.by_id.values() if d.is_active and d.head_id == head_id), key=lambda d: d.dept_id)


class InMemoryFiles:
    def __init__(self, files: list[StoredFile]):
        self.by_id = {f.file_id: f for f in files}

    def get_by_id(self, file_id: int) -> Optional[StoredFile]:
        return self.by_id.get(file_id)

    def update_relation(self, file_id: int, related_id: int) -> bool:
        stored = self.by_id.get(file_id)
        if not stored:
            return False
        self.by_id[file_id] = replace(stored, related_id=related_id)
        return True


class InMemoryAttendance:
    """Keyed by id with a (user_id, work_date) index, like the unique key in MySQL."""

    def __init__(self):
        self.by_id: dict[int, AttendanceRecord] = {}
        self._by_user_date: dict[tuple[int, date], int] = {}
        self._next_id = 1

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.by_id.get(attendance_id)

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        attendance_id = self._by_user_date.get((user_id, work_date))
        return self.by_id.get(attendance_id) if attendance_id else None

    def create(self, record: AttendanceRecord) -> int:
        key = (record.user_id, record.work_date)
        if key in self._by_user_date:
            raise ConflictError("Record already exists")
        attendance_id = self._next_id
        self._next_id += 1
        self.by_id[attendance_id] = replace(record, attendance_id=attendance_id)
        self._by_user_date[key] = attendance_id
        return attendance_id

    def update(self, record: AttendanceRecord) -> bool:
        if record.attendance_id not in self.by_id:
            return False
        self.by_id[record.attendance_id] = record
        return True

    def find_all(self, query: AttendanceQuery):
        out = []
        for r in self.by_id.values():
            if query.user_id is not None and r.user_id != query.user_id:
                continue
            if query.dept_id is not None and r.dept_id != query.dept_id:
                continue
            if query.status is not None and r.status != query.status:
                continue
            if query.start_date is not None and r.work_date < query.start_date:
                continue
            if query.end_date is not None and r.work_date > query.end_date:
                continue
            out.append(r)
        return sorted(out, key=lambda r: (r.work_date, r.attendance_id), reverse=True)


class InMemoryLeaves:
    def __init__(self):
        self.by_id: dict[int, LeaveRequest] = {}
        self._next_id = 1

    def create(self, *, user_id, dept_id, leave_type, start_date, end_date, reason, attachment_id, created_at) -> int:
        leave_id = self._next_id
        self._next_id += 1
        self.by_id[leave_id] = LeaveRequest(
            leave_id=leave_id,
            user_id=user_id,
            dept_id=dept_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=created_at,
            attachment_id=attachment_id,
        )
        return leave_id

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        return self.by_id.get(leave_id)

    def update(self, leave_id, *, leave_type, start_date, end_date, reason, attachment_id) -> bool:
        leave = self.by_id.get(leave_id)
        if not leave or leave.status != RequestStatus.PENDING:
            return False
        self.by_id[leave_id] = replace(
            leave,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            attachment_id=attachment_id,
        )
        return True

    def delete(self, leave_id: int) -> bool:
        leave = self.by_id.get(leave_id)
        if not leave or leave.status != RequestStatus.PENDING:
            return False
        del self.by_id[leave_id]
        return True

    def decide(self, leave_id, *, status, reviewed_by, reviewed_at, comments) -> bool:
        leave = self.by_id.get(leave_id)
        if not leave or leave.status != RequestStatus.PENDING:
            return False
        self.by_id[leave_id] = replace(
            leave, status=status, reviewed_by=reviewed_by, reviewed_at=reviewed_at, comments=comments
        )
        return True

    def find_approved_covering(self, user_id: int, day: date) -> Optional[LeaveRequest]:
        for leave in sorted(self.by_id.values(), key=lambda l: (l.start_date, l.leave_id)):
            if leave.user_id == user_id and leave.status == RequestStatus.APPROVED and leave.covers(day):
                return leave
        return None

    def find_all(self, query: LeaveQuery):
        out = []
        for leave in self.by_id.values():
            if query.user_id is not None and leave.user_id != query.user_id:
                continue
            if query.dept_ids is not None and leave.dept_id not in query.dept_ids:
                continue
            if query.leave_types and leave.leave_type not in query.leave_types:
                continue
            if query.statuses and leave.status not in query.statuses:
                continue
            if query.start_from and leave.start_date < query.start_from:
                continue
            if query.start_to and leave.start_date > query.start_to:
                continue
            if query.end_from and leave.end_date < query.end_from:
                continue
            if query.end_to and leave.end_date > query.end_to:
                continue
            out.append(leave)
        return sorted(out, key=lambda l: (l.created_at, l.leave_id), reverse=True)

    def list_pending_by_department(self, dept_id: int):
        out = [l for l in self.by_id.values() if l.dept_id == dept_id and l.status == RequestStatus.PENDING]
        return sorted(out, key=lambda l: (l.created_at, l.leave_id))

    def list_approved_ending_on_or_after(self, day: date):
        out = [l for l in self.by_id.values() if l.status == RequestStatus.APPROVED and l.end_date >= day]
        return sorted(out, key=lambda l: (l.start_date, l.leave_id))

    def list_approved_overlapping(self, dept_id: int, start: date, end: date):
        return [
            l
            for l in self.by_id.values()
            if l.dept_id == dept_id and l.status == RequestStatus.APPROVED and l.start_date <= end and l.end_date >= start
        ]


class InMemoryCorrections:
    def __init__(self):
        self.by_id: dict[int, Correction] = {}
        self._next_id = 1

    def create(self, *, user_id, dept_id, correction_type, work_date, reason, attendance_id, proposed_time, created_at) -> int:
        correction_id = self._next_id
        self._next_id += 1
        self.by_id[correction_id] = Correction(
            correction_id=correction_id,
            user_id=user_id,
            dept_id=dept_id,
            correction_type=correction_type,
            work_date=work_date,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=created_at,
            attendance_id=attendance_id,
            proposed_time=proposed_time,
        )
        return correction_id

    def get_by_id(self, correction_id: int) -> Optional[Correction]:
        return self.by_id.get(correction_id)

    def count_created_between(self, user_id: int, start: datetime, end: datetime) -> int:
        return sum(1 for c in self.by_id.values() if c.user_id == user_id and start <= c.created_at < end)

    def find_all(self, query: CorrectionQuery):
        out = []
        for c in self.by_id.values():
            if query.user_id is not None and c.user_id != query.user_id:
                continue
            if query.dept_id is not None and c.dept_id != query.dept_id:
                continue
            if query.status is not None and c.status != query.status:
                continue
            if query.correction_type is not None and c.correction_type != query.correction_type:
                continue
            if query.start_date is not None and c.work_date < query.start_date:
                continue
            if query.end_date is not None and c.work_date > query.end_date:
                continue
            out.append(c)
        return sorted(out, key=lambda c: (c.created_at, c.correction_id), reverse=True)

    def list_pending_by_department(self, dept_id: int):
        out = [c for c in self.by_id.values() if c.dept_id == dept_id and c.status == RequestStatus.PENDING]
        return sorted(out, key=lambda c: (c.created_at, c.correction_id))

    def decide(self, correction_id, *, status, reviewed_by, reviewed_at, rejection_reason=None, attendance_id=None) -> bool:
        c = self.by_id.get(correction_id)
        if not c or c.status != RequestStatus.PENDING:
            return False
        self.by_id[correction_id] = replace(
            c,
            status=status,
            reviewed_by=reviewed_by,
            reviewed_at=reviewed_at,
            rejection_reason=rejection_reason,
            attendance_id=attendance_id if attendance_id is not None else c.attendance_id,
        )
        return True


def _directory():
    users = [
        User(user_id=ADMIN_ID, full_name="Admin", email="admin@presensi.local", nip="1", role=Role.ADMIN),
        User(user_id=KAJUR_ID, full_name="Kajur TI", email="kajur@presensi.local", nip="2", role=Role.KAJUR),
        User(user_id=DOSEN_ID, full_name="Dosen A", email="dosen.a@presensi.local", nip="3", role=Role.DOSEN),
        User(user_id=NO_DEPT_ID, full_name="Dosen Lepas", email="lepas@presensi.local", nip="4", role=Role.DOSEN),
        User(user_id=OTHER_DOSEN_ID, full_name="Dosen B", email="dosen.b@presensi.local", nip="5", role=Role.DOSEN),
        User(user_id=6, full_name="Inactive", email="old@presensi.local", nip="6", role=Role.DOSEN, is_active=False),
    ]
    departments = [
        # Sipil has the lower id but is not Dosen A's primary department.
        Department(
            dept_id=SIPIL_DEPT,
            name="Teknik Sipil",
            code="TS",
            head_id=None,
            member_ids=(DOSEN_ID, OTHER_DOSEN_ID),
            primary_member_ids=(OTHER_DOSEN_ID,),
        ),
        Department(
            dept_id=TI_DEPT,
            name="Teknologi Informasi",
            code="TI",
            head_id=KAJUR_ID,
            member_ids=(KAJUR_ID, DOSEN_ID),
            primary_member_ids=(KAJUR_ID, DOSEN_ID),
        ),
    ]
    files = [
        StoredFile(file_id=100, owner_id=DOSEN_ID, category="attendance_photo", original_name="in.jpg", mime_type="image/jpeg", path="uploads/attendance/in.jpg"),
        StoredFile(file_id=101, owner_id=DOSEN_ID, category="leave_attachment", original_name="surat.pdf", mime_type="application/pdf", path="uploads/permission/surat.pdf"),
    ]
    return users, departments, files


@pytest.fixture
def container() -> Container:
    users, departments, files = _directory()
    return wire(
        users_repo=InMemoryUsers(users),
        departments_repo=InMemoryDepartments(departments),
        files_repo=InMemoryFiles(files),
        leaves_repo=InMemoryLeaves(),
        attendance_repo=InMemoryAttendance(),
        corrections_repo=InMemoryCorrections(),
        policy=AttendancePolicy(),
        geofence=Geofence(latitude=OFFICE.latitude, longitude=OFFICE.longitude, radius_m=100.0),
    )


@pytest.fixture
def approved_leave(container):
    """Create and approve a leave request; returns the approved LeaveRequest."""

    def _make(user_id, leave_type, start, end, *, reviewer_id=KAJUR_ID):
        leave = container.leave_service.create(
            user_id, leave_type, start, end, "Family matters", now=datetime(start.year, start.month, start.day)
        )
        return container.leave_service.review_request(
            leave.leave_id, reviewer_id, RequestStatus.APPROVED, now=datetime(start.year, start.month, start.day, 7, 0)
        )

    return _make


@pytest.fixture
def app(container):
    from presensi.main import create_app

    return create_app("presensi.config.testing", container=container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_header():
    def _make(user_id: int, role: Role, *, secret: str = JWT_SECRET, ttl_seconds: int = 3600) -> dict:
        token = create_access_token(
            user_id=user_id,
            email=f"user{user_id}@presensi.local",
            role=role,
            secret=secret,
            ttl_seconds=ttl_seconds,
        )
        return {"Authorization": f"Bearer {token}"}

    return _make
