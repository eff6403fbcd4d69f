from __future__ import annotations

from presensi.database.bootstrap import (
    SCHEMA_PATH,
    _strip_create_db_and_use,
    _strip_line_comments,
    iter_sql_statements,
)


def test_split_ignores_semicolons_inside_literals():
    sql = "INSERT INTO t VALUES ('a;b');\nINSERT INTO t VALUES (\"c\\\";d\");\nSELECT 1"
    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'INSERT INTO t VALUES ("c\\";d")',
        "SELECT 1",
    ]


def test_database_name_is_not_taken_from_script():
    sql = "CREATE DATABASE foo;\nUSE foo;\nCREATE TABLE x (id INT);"
    assert list(iter_sql_statements(_strip_create_db_and_use(sql))) == ["CREATE TABLE x (id INT)"]


def test_bundled_schema_creates_every_table():
    sql = _strip_line_comments(_strip_create_db_and_use(SCHEMA_PATH.read_text(encoding="utf-8")))
    statements = list(iter_sql_statements(sql))
    tables = [s.split("(")[0].split()[-1].strip("`") for s in statements if s.upper().startswith("CREATE TABLE")]
    assert tables == [
        "users",
        "departments",
        "department_members",
        "files",
        "attendance_records",
        "leave_requests",
        "corrections",
    ]
