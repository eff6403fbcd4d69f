from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from .connection import DBConfig, DatabaseConnection

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"


def _strip_create_db_and_use(sql: str) -> str:
    # The database name comes from DB_CONFIG, not from the file.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_line_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside of quoted literals."""
    buf: list[str] = []
    quote: Optional[str] = None
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(db_config: dict, *, with_database: bool = True):
    return DatabaseConnection(DBConfig.from_dict(db_config)).connect(with_database=with_database)


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(db_config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    ensure_database_exists(db_config)
    sql = _strip_line_comments(_strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8")))

    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied from %s", schema_path)


def ensure_demo_directory(db_config: dict) -> None:
    """Upsert a demo department with an admin, a head and two lecturers."""
    conn = _connect(db_config)
    try:
        cur = conn.cursor(dictionary=True)

        def upsert_user(full_name: str, email: str, nip: str, role: str) -> int:
            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            row = cur.fetchone()
            if row:
                cur.execute(
                    "UPDATE users SET full_name=%s, nip=%s, role=%s, is_active=1 WHERE user_id=%s",
                    (full_name, nip, role, row["user_id"]),
                )
                return int(row["user_id"])
            cur.execute(
                "INSERT INTO users (full_name, email, nip, role) VALUES (%s, %s, %s, %s)",
                (full_name, email, nip, role),
            )
            return int(cur.lastrowid)

        upsert_user("Admin Presensi", "admin@presensi.local", "000000000000000001", "admin")
        head_id = upsert_user("Kepala Jurusan TI", "kajur.ti@presensi.local", "198001012005011001", "kajur")
        dosen_a = upsert_user("Dosen A", "dosen.a@presensi.local", "198502022010012002", "dosen")
        dosen_b = upsert_user("Dosen B", "dosen.b@presensi.local", "198703032012013003", "dosen")

        cur.execute("SELECT dept_id FROM departments WHERE code=%s", ("TI",))
        row = cur.fetchone()
        if row:
            dept_id = int(row["dept_id"])
            cur.execute("UPDATE departments SET head_id=%s, is_active=1 WHERE dept_id=%s", (head_id, dept_id))
        else:
            cur.execute(
                "INSERT INTO departments (name, code, head_id) VALUES (%s, %s, %s)",
                ("Teknologi Informasi", "TI", head_id),
            )
            dept_id = int(cur.lastrowid)

        for member_id in (head_id, dosen_a, dosen_b):
            cur.execute(
                """
                INSERT INTO department_members (dept_id, user_id, is_primary)
                VALUES (%s, %s, 1)
                ON DUPLICATE KEY UPDATE is_primary=VALUES(is_primary)
                """,
                (dept_id, member_id),
            )

        conn.commit()
    finally:
        conn.close()
    logger.info("Demo directory ready")


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
