from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used by the HTTP guards."""

    ADMIN = "admin"
    KAJUR = "kajur"
    DOSEN = "dosen"


class WorkingStatus(str, Enum):
    """Status of one attendance day, as stored."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EARLY_DEPARTURE = "early_departure"
    ON_LEAVE = "on_leave"
    OFFICIAL_TRAVEL = "official_travel"
    REMOTE_WORKING = "remote_working"


class RequestStatus(str, Enum):
    """Review workflow state shared by leave requests and corrections."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LeaveType(str, Enum):
    LEAVE = "LEAVE"
    WFH = "WFH"
    WFA = "WFA"
    DL = "DL"  # official travel


class CorrectionType(str, Enum):
    BREAK_TIME_AS_WORK = "BREAK_TIME_AS_WORK"
    EARLY_DEPARTURE = "EARLY_DEPARTURE"
    LATE_ARRIVAL = "LATE_ARRIVAL"
    MISSED_CHECK_IN = "MISSED_CHECK_IN"
    MISSED_CHECK_OUT = "MISSED_CHECK_OUT"
