from __future__ import annotations

import logging

from ..core.exceptions import NotFoundError
from .model import StoredFile
from .repository import FileRepository

logger = logging.getLogger(__name__)


class FileService:
    """Associates already uploaded files with the records they document."""

    def __init__(self, files: FileRepository):
        self._files = files

    def get(self, file_id: int) -> StoredFile:
        stored = self._files.get_by_id(file_id)
        if not stored:
            raise NotFoundError(f"File with ID {file_id} not found")
        return stored

    def link_to_record(self, file_id: int, related_id: int) -> None:
        if not self._files.update_relation(file_id, related_id):
            raise NotFoundError(f"File with ID {file_id} not found")
        logger.debug("File %s linked to record %s", file_id, related_id)
