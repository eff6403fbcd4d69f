from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.geo import GeoPoint
from ..core.enums import WorkingStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceQuery, AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, dept_id, work_date, status,
    check_in_time, check_in_lat, check_in_lng, check_in_accuracy, check_in_provider,
    check_in_photo_id, check_in_notes,
    check_out_time, check_out_lat, check_out_lng, check_out_accuracy, check_out_provider,
    check_out_photo_id, check_out_notes,
    work_hours, is_manual_check_in, is_manual_check_out,
    verified, verified_by, verified_at, correction_id
"""

# Everything except the primary key, in INSERT/UPDATE order.
_WRITABLE = (
    "user_id", "dept_id", "work_date", "status",
    "check_in_time", "check_in_lat", "check_in_lng", "check_in_accuracy", "check_in_provider",
    "check_in_photo_id", "check_in_notes",
    "check_out_time", "check_out_lat", "check_out_lng", "check_out_accuracy", "check_out_provider",
    "check_out_photo_id", "check_out_notes",
    "work_hours", "is_manual_check_in", "is_manual_check_out",
    "verified", "verified_by", "verified_at", "correction_id",
)


def _point(r: dict, prefix: str) -> Optional[GeoPoint]:
    lat = r.get(f"{prefix}_lat")
    lng = r.get(f"{prefix}_lng")
    if lat is None or lng is None:
        return None
    accuracy = r.get(f"{prefix}_accuracy")
    return GeoPoint(
        latitude=float(lat),
        longitude=float(lng),
        accuracy=float(accuracy) if accuracy is not None else None,
        provider=r.get(f"{prefix}_provider"),
    )


def _point_values(point: Optional[GeoPoint]) -> tuple:
    if point is None:
        return (None, None, None, None)
    return (point.latitude, point.longitude, point.accuracy, point.provider)


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        dept_id=r.get("dept_id"),
        work_date=r["work_date"],
        status=WorkingStatus(r["status"]),
        check_in_time=r.get("check_in_time"),
        check_in_location=_point(r, "check_in"),
        check_in_photo_id=r.get("check_in_photo_id"),
        check_in_notes=r.get("check_in_notes"),
        check_out_time=r.get("check_out_time"),
        check_out_location=_point(r, "check_out"),
        check_out_photo_id=r.get("check_out_photo_id"),
        check_out_notes=r.get("check_out_notes"),
        work_hours=float(r["work_hours"]) if r.get("work_hours") is not None else None,
        is_manual_check_in=bool(r.get("is_manual_check_in")),
        is_manual_check_out=bool(r.get("is_manual_check_out")),
        verified=bool(r.get("verified")),
        verified_by=r.get("verified_by"),
        verified_at=r.get("verified_at"),
        correction_id=r.get("correction_id"),
    )


def _record_values(rec: AttendanceRecord) -> tuple:
    return (
        rec.user_id,
        rec.dept_id,
        rec.work_date,
        rec.status.value,
        rec.check_in_time,
        *_point_values(rec.check_in_location),
        rec.check_in_photo_id,
        rec.check_in_notes,
        rec.check_out_time,
        *_point_values(rec.check_out_location),
        rec.check_out_photo_id,
        rec.check_out_notes,
        rec.work_hours,
        int(rec.is_manual_check_in),
        int(rec.is_manual_check_out),
        int(rec.verified),
        rec.verified_by,
        rec.verified_at,
        rec.correction_id,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create(self, record: AttendanceRecord) -> int:
        # uq_attendance_user_day turns a second row for the day into ConflictError.
        placeholders = ",".join(["%s"] * len(_WRITABLE))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO attendance_records({', '.join(_WRITABLE)}) VALUES({placeholders})",
                _record_values(record),
            )
            return int(cur.lastrowid)

    def update(self, record: AttendanceRecord) -> bool:
        assignments = ", ".join(f"{col}=%s" for col in _WRITABLE)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE attendance_records SET {assignments} WHERE attendance_id=%s",
                _record_values(record) + (int(record.attendance_id),),
            )
            # rowcount is 0 when nothing changed; existence is what matters here.
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM attendance_records WHERE attendance_id=%s", (int(record.attendance_id),))
            return fetchone(cur) is not None

    def find_all(self, query: AttendanceQuery) -> Sequence[AttendanceRecord]:
        clauses = ["1=1"]
        params: list[object] = []

        if query.user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(query.user_id))
        if query.dept_id is not None:
            clauses.append("dept_id=%s")
            params.append(int(query.dept_id))
        if query.status is not None:
            clauses.append("status=%s")
            params.append(query.status.value)
        if query.start_date is not None:
            clauses.append("work_date>=%s")
            params.append(query.start_date)
        if query.end_date is not None:
            clauses.append("work_date<=%s")
            params.append(query.end_date)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE {where} ORDER BY work_date DESC, attendance_id DESC",
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]
