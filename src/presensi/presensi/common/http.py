"""Request parsing and response helpers shared by the JSON controllers."""

from __future__ import annotations

from typing import Optional

from flask import jsonify, request

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from .datetime_utils import parse_iso_date, parse_optional_date
from .geo import GeoPoint
from .security import CurrentUser
from .serialization import to_jsonable
from .validators import optional_float, require_float


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def respond(value, status: int = 200):
    return jsonify(to_jsonable(value)), status


def query_date(name: str, *, required: bool = False):
    raw = request.args.get(name)
    if required and not raw:
        raise ValidationError(f"{name} is required")
    return parse_iso_date(raw) if required else parse_optional_date(raw)


def query_int(name: str) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def location_from(data: dict) -> GeoPoint:
    provider = data.get("provider")
    return GeoPoint(
        latitude=require_float(data.get("latitude"), "latitude"),
        longitude=require_float(data.get("longitude"), "longitude"),
        accuracy=optional_float(data.get("accuracy"), "accuracy"),
        provider=str(provider) if provider else None,
    )


def ensure_can_review(departments, user: CurrentUser, dept_id: Optional[int], message: str) -> None:
    """ADMIN reviews everything; KAJUR only inside departments they head."""
    if user.is_admin:
        return
    if user.role == Role.KAJUR and dept_id is not None and departments.is_head_of(dept_id, user.user_id):
        return
    raise AuthorizationError(message)
