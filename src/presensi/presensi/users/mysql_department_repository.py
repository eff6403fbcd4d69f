from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .department_model import Department
from .department_repository import DepartmentRepository


class MySQLDepartmentRepository(DepartmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, row: dict) -> Department:
        cur.execute(
            "SELECT user_id, is_primary FROM department_members WHERE dept_id=%s ORDER BY user_id",
            (row["dept_id"],),
        )
        members = fetchall(cur)
        return Department(
            dept_id=int(row["dept_id"]),
            name=row["name"],
            code=row["code"],
            head_id=int(row["head_id"]) if row.get("head_id") is not None else None,
            member_ids=tuple(int(m["user_id"]) for m in members),
            primary_member_ids=tuple(int(m["user_id"]) for m in members if m["is_primary"]),
            is_active=bool(row.get("is_active", True)),
        )

    def get_by_id(self, dept_id: int) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT dept_id, name, code, head_id, is_active FROM departments WHERE dept_id=%s",
                (dept_id,),
            )
            row = fetchone(cur)
            return self._hydrate(cur, row) if row else None

    def list_by_member(self, user_id: int) -> Sequence[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT d.dept_id, d.name, d.code, d.head_id, d.is_active,
                       COALESCE(MAX(m.is_primary), 0) AS is_primary
                FROM departments d
                LEFT JOIN department_members m ON m.dept_id = d.dept_id AND m.user_id = %s
                WHERE d.is_active = 1 AND (m.user_id IS NOT NULL OR d.head_id = %s)
                GROUP BY d.dept_id, d.name, d.code, d.head_id, d.is_active
                ORDER BY is_primary DESC, d.dept_id ASC
                """,
                (user_id, user_id),
            )
            rows = fetchall(cur)
            return [self._hydrate(cur, r) for r in rows]

    def list_by_head(self, head_id: int) -> Sequence[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT dept_id, name, code, head_id, is_active
                FROM departments
                WHERE head_id=%s AND is_active=1
                ORDER BY dept_id
                """,
                (head_id,),
            )
            rows = fetchall(cur)
            return [self._hydrate(cur, r) for r in rows]
