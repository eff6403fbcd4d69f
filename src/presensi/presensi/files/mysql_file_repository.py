from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import StoredFile
from .repository import FileRepository


class MySQLFileRepository(FileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, file_id: int) -> Optional[StoredFile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT file_id, owner_id, category, original_name, mime_type, path, related_id
                FROM files
                WHERE file_id=%s
                """,
                (file_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return StoredFile(
                file_id=int(row["file_id"]),
                owner_id=int(row["owner_id"]),
                category=row["category"],
                original_name=row["original_name"],
                mime_type=row["mime_type"],
                path=row["path"],
                related_id=row.get("related_id"),
            )

    def update_relation(self, file_id: int, related_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE files SET related_id=%s WHERE file_id=%s", (related_id, file_id))
            return cur.rowcount > 0
