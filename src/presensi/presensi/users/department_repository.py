from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .department_model import Department


class DepartmentRepository(Protocol):
    def get_by_id(self, dept_id: int) -> Optional[Department]:
        raise NotImplementedError

    def list_by_member(self, user_id: int) -> Sequence[Department]:
        """Departments the user belongs to or heads; primary membership first."""
        raise NotImplementedError

    def list_by_head(self, head_id: int) -> Sequence[Department]:
        raise NotImplementedError
