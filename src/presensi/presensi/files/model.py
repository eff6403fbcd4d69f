from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StoredFile:
    """An uploaded file; the bytes are kept by the storage service."""

    file_id: int
    owner_id: int
    category: str  # attendance_photo | leave_attachment | ...
    original_name: str
    mime_type: str
    path: str
    related_id: Optional[int] = None
