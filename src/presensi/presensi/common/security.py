"""Bearer-token guards for the JSON API.

Tokens are issued elsewhere; here they are only verified. ``create_access_token``
exists for tests and local tooling.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Optional

import jwt
from flask import current_app, g, request

from ..core.constants import DEFAULT_TOKEN_TTL_SECONDS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError


@dataclass(frozen=True)
class CurrentUser:
    """What the guards attach to ``flask.g`` for the current request."""

    user_id: int
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def create_access_token(
    *,
    user_id: int,
    email: str,
    role: Role,
    secret: str,
    algorithm: str = "HS256",
    ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role.value,
        "iat": now,
        "exp": now + timedelta(seconds=int(ttl_seconds)),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_access_token(token: str, *, secret: str, algorithm: str = "HS256") -> CurrentUser:
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    try:
        return CurrentUser(
            user_id=int(payload["sub"]),
            email=str(payload.get("email") or ""),
            role=Role(payload["role"]),
        )
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid token")


def _bearer_token() -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    token = auth.split(" ", 1)[1].strip()
    return token or None


def current_user() -> CurrentUser:
    return g.current_user


def token_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if not token:
            raise AuthenticationError("Authentication required")
        g.current_user = decode_access_token(
            token,
            secret=current_app.config["JWT_SECRET"],
            algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
        )
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    """Allow only the given roles (implies ``token_required``)."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if g.current_user.role not in roles:
                raise AuthorizationError("You do not have permission to perform this action")
            return view(*args, **kwargs)

        return token_required(wrapper)

    return decorator
