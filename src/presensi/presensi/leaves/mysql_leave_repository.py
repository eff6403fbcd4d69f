from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import LeaveType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveQuery, LeaveRequest
from .repository import LeaveRepository

_COLUMNS = """
    leave_id, user_id, dept_id, leave_type, start_date, end_date, reason,
    attachment_id, status, created_at, reviewed_by, reviewed_at, comments
"""


def _row_to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_id=int(r["leave_id"]),
        user_id=int(r["user_id"]),
        dept_id=int(r["dept_id"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        attachment_id=r.get("attachment_id"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        comments=r.get("comments"),
    )


def _in_clause(column: str, values) -> str:
    return f"{column} IN ({', '.join(['%s'] * len(values))})"


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        dept_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
        attachment_id: Optional[int],
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    user_id, dept_id, leave_type, start_date, end_date, reason, attachment_id, status, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    int(dept_id),
                    leave_type.value,
                    start_date,
                    end_date,
                    reason,
                    attachment_id,
                    RequestStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE leave_id=%s", (int(leave_id),))
            r = fetchone(cur)
            return _row_to_leave(r) if r else None

    def update(
        self,
        leave_id: int,
        *,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
        attachment_id: Optional[int],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET leave_type=%s, start_date=%s, end_date=%s, reason=%s, attachment_id=%s
                WHERE leave_id=%s AND status=%s
                """,
                (leave_type.value, start_date, end_date, reason, attachment_id, int(leave_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def delete(self, leave_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM leave_requests WHERE leave_id=%s AND status=%s",
                (int(leave_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def decide(
        self,
        leave_id: int,
        *,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        comments: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, comments=%s
                WHERE leave_id=%s AND status=%s
                """,
                (status.value, int(reviewed_by), reviewed_at, comments, int(leave_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def find_approved_covering(self, user_id: int, day: date) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE user_id=%s AND status=%s AND start_date<=%s AND end_date>=%s
                ORDER BY start_date, leave_id
                LIMIT 1
                """,
                (int(user_id), RequestStatus.APPROVED.value, day, day),
            )
            r = fetchone(cur)
            return _row_to_leave(r) if r else None

    def find_all(self, query: LeaveQuery) -> Sequence[LeaveRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if query.user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(query.user_id))
        if query.dept_ids is not None:
            if not query.dept_ids:
                return []
            clauses.append(_in_clause("dept_id", query.dept_ids))
            params.extend(int(d) for d in query.dept_ids)
        if query.leave_types:
            clauses.append(_in_clause("leave_type", query.leave_types))
            params.extend(t.value for t in query.leave_types)
        if query.statuses:
            clauses.append(_in_clause("status", query.statuses))
            params.extend(s.value for s in query.statuses)
        for column, op, value in (
            ("start_date", ">=", query.start_from),
            ("start_date", "<=", query.start_to),
            ("end_date", ">=", query.end_from),
            ("end_date", "<=", query.end_to),
        ):
            if value is not None:
                clauses.append(f"{column}{op}%s")
                params.append(value)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests WHERE {where} ORDER BY created_at DESC, leave_id DESC",
                tuple(params),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]

    def list_pending_by_department(self, dept_id: int) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leave_requests
                WHERE dept_id=%s AND status=%s
                ORDER BY created_at ASC, leave_id ASC
                """,
                (int(dept_id), RequestStatus.PENDING.value),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]

    def list_approved_ending_on_or_after(self, day: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leave_requests
                WHERE status=%s AND end_date>=%s
                ORDER BY start_date, leave_id
                """,
                (RequestStatus.APPROVED.value, day),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]

    def list_approved_overlapping(self, dept_id: int, start: date, end: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leave_requests
                WHERE dept_id=%s AND status=%s AND start_date<=%s AND end_date>=%s
                ORDER BY start_date, leave_id
                """,
                (int(dept_id), RequestStatus.APPROVED.value, end, start),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]
