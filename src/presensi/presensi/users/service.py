from __future__ import annotations

from typing import Optional, Sequence

from ..core.exceptions import NotFoundError
from .department_model import Department
from .department_repository import DepartmentRepository
from .model import User
from .repository import UserRepository


class UserService:
    def __init__(self, users: UserRepository):
        self._users = users

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user

    def list_active(self) -> Sequence[User]:
        return self._users.list_active()


class DepartmentService:
    """Read side of the department registry (membership, heads)."""

    def __init__(self, departments: DepartmentRepository):
        self._departments = departments

    def get(self, dept_id: int) -> Department:
        dept = self._departments.get_by_id(dept_id)
        if not dept:
            raise NotFoundError(f"Department with ID {dept_id} not found")
        return dept

    def primary_department_id(self, user_id: int) -> Optional[int]:
        """Explicit primary membership wins, then the first membership."""
        departments = list(self._departments.list_by_member(user_id))
        for dept in departments:
            if user_id in dept.primary_member_ids:
                return dept.dept_id
        return departments[0].dept_id if departments else None

    def is_member(self, dept_id: int, user_id: int) -> bool:
        dept = self._departments.get_by_id(dept_id)
        return bool(dept and dept.has_member(user_id))

    def is_head_of(self, dept_id: int, user_id: int) -> bool:
        dept = self._departments.get_by_id(dept_id)
        return bool(dept and dept.head_id == user_id)

    def headed_department_ids(self, head_id: int) -> list[int]:
        return [d.dept_id for d in self._departments.list_by_head(head_id)]
