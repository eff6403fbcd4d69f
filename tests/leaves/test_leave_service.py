from __future__ import annotations

from datetime import date, datetime

import pytest

from presensi.core.enums import LeaveType, RequestStatus
from presensi.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from presensi.leaves.model import LeaveQuery

from conftest import DOSEN_ID, KAJUR_ID, NO_DEPT_ID, OTHER_DOSEN_ID, SIPIL_DEPT, TI_DEPT


def _create(container, user_id=DOSEN_ID, **kwargs):
    kwargs.setdefault("now", datetime(2026, 2, 1, 10, 0, 0))
    return container.leave_service.create(
        user_id, LeaveType.LEAVE, date(2026, 2, 10), date(2026, 2, 12), "Family event", **kwargs
    )


def test_create_uses_primary_department(container):
    leave = _create(container)
    assert leave.status == RequestStatus.PENDING
    assert leave.dept_id == TI_DEPT


def test_create_with_explicit_department(container):
    leave = _create(container, dept_id=SIPIL_DEPT)
    assert leave.dept_id == SIPIL_DEPT


def test_create_rejects_foreign_department(container):
    with pytest.raises(ValidationError, match="specified department"):
        _create(container, user_id=OTHER_DOSEN_ID, dept_id=TI_DEPT)


def test_create_requires_department(container):
    with pytest.raises(ValidationError, match="any department"):
        _create(container, user_id=NO_DEPT_ID)


def test_create_rejects_inverted_dates(container):
    with pytest.raises(ValidationError, match="Start date"):
        container.leave_service.create(DOSEN_ID, LeaveType.WFH, date(2026, 2, 12), date(2026, 2, 10), "x")


def test_create_requires_reason(container):
    with pytest.raises(ValidationError):
        container.leave_service.create(DOSEN_ID, LeaveType.WFH, date(2026, 2, 10), date(2026, 2, 10), "   ")


def test_create_unknown_user(container):
    with pytest.raises(NotFoundError):
        _create(container, user_id=999)


def test_create_links_attachment(container):
    leave = _create(container, attachment_id=101)
    assert leave.attachment_id == 101
    assert container.files_repo.by_id[101].related_id == leave.leave_id


def test_update_partial_dates(container):
    svc = container.leave_service
    leave = _create(container)

    updated = svc.update(leave.leave_id, DOSEN_ID, end_date=date(2026, 2, 14), reason="Longer trip")
    assert updated.end_date == date(2026, 2, 14)
    assert updated.start_date == date(2026, 2, 10)
    assert updated.reason == "Longer trip"

    with pytest.raises(ValidationError, match="existing end date"):
        svc.update(leave.leave_id, DOSEN_ID, start_date=date(2026, 2, 20))
    with pytest.raises(ValidationError, match="Existing start date"):
        svc.update(leave.leave_id, DOSEN_ID, end_date=date(2026, 2, 1))


def test_update_only_by_owner(container):
    leave = _create(container)
    with pytest.raises(AuthorizationError, match="update your own"):
        container.leave_service.update(leave.leave_id, OTHER_DOSEN_ID, reason="mine now")


def test_reviewed_request_is_frozen(container):
    svc = container.leave_service
    leave = _create(container)
    svc.review_request(leave.leave_id, KAJUR_ID, RequestStatus.REJECTED, comments="Busy week")

    with pytest.raises(ConflictError, match="already been reviewed"):
        svc.review_request(leave.leave_id, KAJUR_ID, RequestStatus.APPROVED)
    with pytest.raises(ConflictError, match="Only pending"):
        svc.update(leave.leave_id, DOSEN_ID, reason="again")
    with pytest.raises(ConflictError, match="Only pending"):
        svc.remove(leave.leave_id, DOSEN_ID)


def test_review_rejects_pending_as_target(container):
    leave = _create(container)
    with pytest.raises(ValidationError):
        container.leave_service.review_request(leave.leave_id, KAJUR_ID, RequestStatus.PENDING)


def test_review_records_reviewer(container):
    leave = _create(container)
    reviewed = container.leave_service.review_request(
        leave.leave_id, KAJUR_ID, RequestStatus.APPROVED, comments="  ok  ", now=datetime(2026, 2, 2, 9, 0)
    )
    assert reviewed.status == RequestStatus.APPROVED
    assert reviewed.reviewed_by == KAJUR_ID
    assert reviewed.reviewed_at == datetime(2026, 2, 2, 9, 0)
    assert reviewed.comments == "ok"


def test_remove_pending(container):
    svc = container.leave_service
    leave = _create(container)
    svc.remove(leave.leave_id, DOSEN_ID)
    with pytest.raises(NotFoundError):
        svc.find_one(leave.leave_id)


def test_check_user_leave_status(container, approved_leave):
    approved_leave(DOSEN_ID, LeaveType.WFH, date(2026, 2, 10), date(2026, 2, 11))
    svc = container.leave_service

    assert svc.check_user_leave_status(DOSEN_ID, date(2026, 2, 11)).leave_type == LeaveType.WFH
    assert svc.check_user_leave_status(DOSEN_ID, date(2026, 2, 12)).is_on_leave is False
    # pending requests do not count
    _create(container)
    assert svc.check_user_leave_status(DOSEN_ID, date(2026, 2, 12)).is_on_leave is False


def test_queries(container, approved_leave):
    svc = container.leave_service
    first = _create(container, now=datetime(2026, 2, 1, 9, 0))
    second = _create(container, user_id=OTHER_DOSEN_ID, now=datetime(2026, 2, 1, 11, 0))
    approved_leave(DOSEN_ID, LeaveType.DL, date(2026, 3, 2), date(2026, 3, 4))

    assert [l.leave_id for l in svc.find_pending_by_department(TI_DEPT)] == [first.leave_id]
    assert [l.leave_id for l in svc.find_pending_by_department(SIPIL_DEPT)] == [second.leave_id]
    assert len(svc.find_by_user(DOSEN_ID)) == 2
    assert svc.find_all(LeaveQuery(dept_ids=())) == []
    found = svc.find_all(LeaveQuery(statuses=(RequestStatus.APPROVED,)))
    assert [l.leave_type for l in found] == [LeaveType.DL]
    assert len(svc.get_active_for_department(TI_DEPT, date(2026, 3, 1), date(2026, 3, 2))) == 1
