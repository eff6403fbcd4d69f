from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: plain data object (no DB access code). Credentials live elsewhere.
    """

    user_id: int
    full_name: str
    email: str
    nip: str
    role: Role
    is_active: bool = True
