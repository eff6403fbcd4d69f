from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import CorrectionType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Correction, CorrectionQuery
from .repository import CorrectionRepository

_COLUMNS = """
    correction_id, user_id, dept_id, correction_type, work_date, reason, attendance_id,
    proposed_time, status, created_at, reviewed_by, reviewed_at, rejection_reason
"""


def _row_to_correction(r: dict) -> Correction:
    return Correction(
        correction_id=int(r["correction_id"]),
        user_id=int(r["user_id"]),
        dept_id=int(r["dept_id"]),
        correction_type=CorrectionType(r["correction_type"]),
        work_date=r["work_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        attendance_id=r.get("attendance_id"),
        proposed_time=r.get("proposed_time"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        rejection_reason=r.get("rejection_reason"),
    )


class MySQLCorrectionRepository(CorrectionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO corrections(
                    user_id, dept_id, correction_type, work_date, reason,
                    attendance_id, proposed_time, status, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    int(dept_id),
                    correction_type.value,
                    work_date,
                    reason,
                    attendance_id,
                    proposed_time,
                    RequestStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, correction_id: int) -> Optional[Correction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM corrections WHERE correction_id=%s", (int(correction_id),))
            r = fetchone(cur)
            return _row_to_correction(r) if r else None

    def count_created_between(self, user_id: int, start: datetime, end: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS total FROM corrections WHERE user_id=%s AND created_at>=%s AND created_at<%s",
                (int(user_id), start, end),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def find_all(self, query: CorrectionQuery) -> Sequence[Correction]:
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
        if query.correction_type is not None:
            clauses.append("correction_type=%s")
            params.append(query.correction_type.value)
        if query.start_date is not None:
            clauses.append("work_date>=%s")
            params.append(query.start_date)
        if query.end_date is not None:
            clauses.append("work_date<=%s")
            params.append(query.end_date)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM corrections WHERE {where} ORDER BY created_at DESC, correction_id DESC",
                tuple(params),
            )
            return [_row_to_correction(r) for r in fetchall(cur)]

    def list_pending_by_department(self, dept_id: int) -> Sequence[Correction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM corrections
                WHERE dept_id=%s AND status=%s
                ORDER BY created_at ASC, correction_id ASC
                """,
                (int(dept_id), RequestStatus.PENDING.value),
            )
            return [_row_to_correction(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE corrections
                SET status=%s, reviewed_by=%s, reviewed_at=%s, rejection_reason=%s,
                    attendance_id=COALESCE(%s, attendance_id)
                WHERE correction_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(reviewed_by),
                    reviewed_at,
                    rejection_reason,
                    attendance_id,
                    int(correction_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0
