from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Department:
    dept_id: int
    name: str
    code: str
    head_id: Optional[int] = None
    member_ids: tuple[int, ...] = field(default_factory=tuple)
    # Members whose canonical department this is.
    primary_member_ids: tuple[int, ...] = field(default_factory=tuple)
    is_active: bool = True

    def has_member(self, user_id: int) -> bool:
        return user_id in self.member_ids or user_id == self.head_id
