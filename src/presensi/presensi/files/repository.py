from __future__ import annotations

from typing import Optional, Protocol

from .model import StoredFile


class FileRepository(Protocol):
    def get_by_id(self, file_id: int) -> Optional[StoredFile]:
        raise NotImplementedError

    def update_relation(self, file_id: int, related_id: int) -> bool:
        raise NotImplementedError
