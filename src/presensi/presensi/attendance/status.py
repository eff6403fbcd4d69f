"""Working status derivation.

Every writer of ``AttendanceRecord.status`` goes through ``derive_status`` so
the leave type mapping and the check-in/check-out rules live in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..core.enums import LeaveType, WorkingStatus

_LEAVE_STATUS = {
    LeaveType.LEAVE: WorkingStatus.ON_LEAVE,
    LeaveType.WFH: WorkingStatus.REMOTE_WORKING,
    LeaveType.WFA: WorkingStatus.REMOTE_WORKING,
    LeaveType.DL: WorkingStatus.OFFICIAL_TRAVEL,
}

REMOTE_LEAVE_TYPES = frozenset({LeaveType.WFH, LeaveType.WFA})


class StatusEvent(str, Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    MANUAL = "manual"  # correction / manual entry
    ABSENCE_SWEEP = "absence_sweep"
    LEAVE_SYNC = "leave_sync"


@dataclass(frozen=True)
class StatusContext:
    event: StatusEvent
    leave_type: Optional[LeaveType] = None
    current: Optional[WorkingStatus] = None
    explicit: Optional[WorkingStatus] = None
    within_geofence: bool = True
    is_late: bool = False
    is_early_departure: bool = False


def status_for_leave_type(leave_type: Optional[LeaveType]) -> WorkingStatus:
    if leave_type is None:
        return WorkingStatus.PRESENT
    return _LEAVE_STATUS.get(leave_type, WorkingStatus.PRESENT)


def derive_status(ctx: StatusContext) -> WorkingStatus:
    if ctx.event == StatusEvent.CHECK_IN:
        # Geofence beats lateness.
        if not ctx.within_geofence:
            return WorkingStatus.REMOTE_WORKING
        if ctx.is_late:
            return WorkingStatus.LATE
        return WorkingStatus.PRESENT

    if ctx.event == StatusEvent.CHECK_OUT:
        current = ctx.current or WorkingStatus.PRESENT
        # Early departure only downgrades a plain PRESENT day.
        if ctx.is_early_departure and current == WorkingStatus.PRESENT:
            if ctx.leave_type in REMOTE_LEAVE_TYPES:
                return WorkingStatus.REMOTE_WORKING
            return WorkingStatus.EARLY_DEPARTURE
        return current

    if ctx.event == StatusEvent.MANUAL:
        if ctx.explicit is not None:
            return ctx.explicit
        if ctx.leave_type is not None:
            return status_for_leave_type(ctx.leave_type)
        return ctx.current or WorkingStatus.PRESENT

    if ctx.event == StatusEvent.ABSENCE_SWEEP:
        if ctx.leave_type is not None:
            return status_for_leave_type(ctx.leave_type)
        return WorkingStatus.ABSENT

    if ctx.event == StatusEvent.LEAVE_SYNC:
        if ctx.leave_type is not None:
            return status_for_leave_type(ctx.leave_type)
        return ctx.current or WorkingStatus.PRESENT

    raise ValueError(f"Unknown status event: {ctx.event!r}")
