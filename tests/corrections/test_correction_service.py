from __future__ import annotations

from datetime import date, datetime

import pytest

from presensi.core.enums import CorrectionType, RequestStatus, WorkingStatus
from presensi.core.exceptions import (
    AuthorizationError,
    ConflictError,
    QuotaExceededError,
    ValidationError,
)

from conftest import DOSEN_ID, KAJUR_ID, NO_DEPT_ID, OFFICE, OTHER_DOSEN_ID, TI_DEPT

NOW = datetime(2026, 2, 10, 9, 0, 0)


def _missed_check_in(container, user_id=DOSEN_ID, day=date(2026, 2, 5), now=NOW):
    return container.correction_service.create(
        user_id,
        CorrectionType.MISSED_CHECK_IN,
        day,
        "Forgot to check in",
        proposed_time=datetime(day.year, day.month, day.day, 8, 5),
        now=now,
    )


def test_monthly_quota(container):
    svc = container.correction_service
    _missed_check_in(container, day=date(2026, 2, 5))
    _missed_check_in(container, day=date(2026, 2, 6))

    with pytest.raises(QuotaExceededError, match="maximum limit of 2"):
        _missed_check_in(container, day=date(2026, 2, 7))

    usage = svc.get_monthly_usage(DOSEN_ID, now=NOW)
    assert (usage.used, usage.limit, usage.remaining) == (2, 2, 0)
    # counted by creation month, so March starts fresh
    assert svc.get_monthly_usage(DOSEN_ID, now=datetime(2026, 3, 1)).used == 0


def test_create_assigns_primary_department(container):
    correction = _missed_check_in(container)
    assert correction.dept_id == TI_DEPT
    assert correction.status == RequestStatus.PENDING


def test_create_requires_department(container):
    with pytest.raises(ValidationError, match="not associated"):
        _missed_check_in(container, user_id=NO_DEPT_ID)


def test_create_date_window(container):
    with pytest.raises(ValidationError, match="future"):
        _missed_check_in(container, day=date(2026, 2, 11))
    with pytest.raises(ValidationError, match="30 days"):
        _missed_check_in(container, day=date(2026, 1, 10))


def test_missed_types_require_proposed_time(container):
    with pytest.raises(ValidationError, match="Proposed time is required"):
        container.correction_service.create(
            DOSEN_ID, CorrectionType.MISSED_CHECK_IN, date(2026, 2, 5), "forgot", now=NOW
        )
    with pytest.raises(ValidationError, match="fall on the correction date"):
        container.correction_service.create(
            DOSEN_ID,
            CorrectionType.MISSED_CHECK_IN,
            date(2026, 2, 5),
            "forgot",
            proposed_time=datetime(2026, 2, 6, 8, 0),
            now=NOW,
        )


def test_other_types_require_attendance_record(container):
    with pytest.raises(ValidationError, match="Attendance record is required"):
        container.correction_service.create(
            DOSEN_ID, CorrectionType.LATE_ARRIVAL, date(2026, 2, 5), "traffic", now=NOW
        )


def test_cannot_correct_someone_elses_record(container):
    rec = container.attendance_service.check_in(DOSEN_ID, OFFICE, now=datetime(2026, 2, 5, 8, 40))
    with pytest.raises(AuthorizationError):
        container.correction_service.create(
            OTHER_DOSEN_ID, CorrectionType.LATE_ARRIVAL, date(2026, 2, 5), "traffic", attendance_id=rec.attendance_id, now=NOW
        )


def test_attendance_date_must_match(container):
    rec = container.attendance_service.check_in(DOSEN_ID, OFFICE, now=datetime(2026, 2, 5, 8, 40))
    with pytest.raises(ValidationError, match="does not match"):
        container.correction_service.create(
            DOSEN_ID, CorrectionType.LATE_ARRIVAL, date(2026, 2, 6), "traffic", attendance_id=rec.attendance_id, now=NOW
        )


def test_reject_requires_reason(container):
    correction = _missed_check_in(container)
    with pytest.raises(ValidationError, match="Rejection reason"):
        container.correction_service.review_correction(correction.correction_id, KAJUR_ID, RequestStatus.REJECTED)

    rejected = container.correction_service.review_correction(
        correction.correction_id, KAJUR_ID, RequestStatus.REJECTED, rejection_reason="No evidence"
    )
    assert rejected.status == RequestStatus.REJECTED
    assert rejected.rejection_reason == "No evidence"
    assert container.attendance_repo.by_id == {}


def test_approve_missed_check_in_creates_single_record(container):
    svc = container.correction_service
    correction = _missed_check_in(container)

    approved = svc.review_correction(correction.correction_id, KAJUR_ID, RequestStatus.APPROVED, now=NOW)

    records = list(container.attendance_repo.by_id.values())
    assert len(records) == 1
    rec = records[0]
    assert rec.check_in_time == datetime(2026, 2, 5, 8, 5)
    assert rec.is_manual_check_in is True
    assert rec.status == WorkingStatus.PRESENT
    assert rec.correction_id == correction.correction_id
    assert approved.attendance_id == rec.attendance_id
    assert approved.reviewed_by == KAJUR_ID

    with pytest.raises(ConflictError, match="already been reviewed"):
        svc.review_correction(correction.correction_id, KAJUR_ID, RequestStatus.APPROVED)


def test_approve_missed_check_out_recomputes_hours(container):
    rec = container.attendance_service.check_in(DOSEN_ID, OFFICE, now=datetime(2026, 2, 5, 8, 0))
    correction = container.correction_service.create(
        DOSEN_ID,
        CorrectionType.MISSED_CHECK_OUT,
        date(2026, 2, 5),
        "Phone died",
        attendance_id=rec.attendance_id,
        proposed_time=datetime(2026, 2, 5, 17, 30),
        now=NOW,
    )
    container.correction_service.review_correction(correction.correction_id, KAJUR_ID, RequestStatus.APPROVED)

    rec = container.attendance_repo.get_by_id(rec.attendance_id)
    assert rec.check_out_time == datetime(2026, 2, 5, 17, 30)
    assert rec.is_manual_check_out is True
    assert rec.work_hours == 9.5


def test_failed_application_leaves_correction_pending(container):
    container.attendance_service.mark_absences_for_today(now=datetime(2026, 2, 5, 23, 55))
    absent = container.attendance_repo.get_for_user_and_date(DOSEN_ID, date(2026, 2, 5))
    correction = container.correction_service.create(
        DOSEN_ID,
        CorrectionType.MISSED_CHECK_OUT,
        date(2026, 2, 5),
        "Forgot",
        attendance_id=absent.attendance_id,
        proposed_time=datetime(2026, 2, 5, 17, 0),
        now=NOW,
    )

    with pytest.raises(ValidationError, match="without a check-in"):
        container.correction_service.review_correction(correction.correction_id, KAJUR_ID, RequestStatus.APPROVED)
    assert container.correction_service.find_one(correction.correction_id).status == RequestStatus.PENDING


def test_late_arrival_resets_to_present(container):
    rec = container.attendance_service.check_in(DOSEN_ID, OFFICE, now=datetime(2026, 2, 5, 8, 40))
    assert rec.status == WorkingStatus.LATE
    correction = container.correction_service.create(
        DOSEN_ID, CorrectionType.LATE_ARRIVAL, date(2026, 2, 5), "Flat tyre", attendance_id=rec.attendance_id, now=NOW
    )
    container.correction_service.review_correction(correction.correction_id, KAJUR_ID, RequestStatus.APPROVED)
    assert container.attendance_repo.get_by_id(rec.attendance_id).status == WorkingStatus.PRESENT


def test_break_time_adds_an_hour(container):
    svc = container.attendance_service
    svc.check_in(DOSEN_ID, OFFICE, now=datetime(2026, 2, 5, 8, 0))
    rec = svc.check_out(DOSEN_ID, OFFICE, now=datetime(2026, 2, 5, 17, 0))
    correction = container.correction_service.create(
        DOSEN_ID, CorrectionType.BREAK_TIME_AS_WORK, date(2026, 2, 5), "Worked through lunch", attendance_id=rec.attendance_id, now=NOW
    )
    container.correction_service.review_correction(correction.correction_id, KAJUR_ID, RequestStatus.APPROVED)

    rec = container.attendance_repo.get_by_id(rec.attendance_id)
    assert rec.work_hours == 10.0
    assert rec.status == WorkingStatus.PRESENT


def test_pending_by_department_and_user_queries(container):
    svc = container.correction_service
    first = _missed_check_in(container, now=datetime(2026, 2, 10, 8, 0))
    _missed_check_in(container, user_id=OTHER_DOSEN_ID, now=datetime(2026, 2, 10, 8, 30))

    assert [c.correction_id for c in svc.find_pending_by_department(TI_DEPT)] == [first.correction_id]
    assert [c.user_id for c in svc.find_user_corrections(DOSEN_ID)] == [DOSEN_ID]


def _early_departure_correction(container, rec):
    return container.correction_service.create(
        DOSEN_ID, CorrectionType.EARLY_DEPARTURE, rec.work_date, "Left for a faculty meeting", attendance_id=rec.attendance_id, now=NOW
    )


def test_early_departure_resets_to_present(container):
    svc = container.attendance_service
    svc.check_in(DOSEN_ID, OFFICE, now=datetime(2026, 2, 5, 8, 0))
    rec = svc.check_out(DOSEN_ID, OFFICE, now=datetime(2026, 2, 5, 15, 0))
    assert rec.status == WorkingStatus.EARLY_DEPARTURE

    correction = _early_departure_correction(container, rec)
    container.correction_service.review_correction(correction.correction_id, KAJUR_ID, RequestStatus.APPROVED)

    updated = container.attendance_repo.get_by_id(rec.attendance_id)
    assert updated.status == WorkingStatus.PRESENT
    assert updated.correction_id == correction.correction_id
    assert updated.work_hours == 7.0


def test_early_departure_correction_keeps_late_status(container):
    svc = container.attendance_service
    svc.check_in(DOSEN_ID, OFFICE, now=datetime(2026, 2, 5, 8, 40))
    rec = svc.check_out(DOSEN_ID, OFFICE, now=datetime(2026, 2, 5, 15, 0))
    assert rec.status == WorkingStatus.LATE

    correction = _early_departure_correction(container, rec)
    container.correction_service.review_correction(correction.correction_id, KAJUR_ID, RequestStatus.APPROVED)

    assert container.attendance_repo.get_by_id(rec.attendance_id).status == WorkingStatus.LATE


def test_rejection_leaves_linked_record_untouched(container):
    rec = container.attendance_service.check_in(DOSEN_ID, OFFICE, now=datetime(2026, 2, 5, 8, 40))
    before = container.attendance_repo.get_by_id(rec.attendance_id)
    correction = container.correction_service.create(
        DOSEN_ID, CorrectionType.LATE_ARRIVAL, date(2026, 2, 5), "Flat tyre", attendance_id=rec.attendance_id, now=NOW
    )

    rejected = container.correction_service.review_correction(
        correction.correction_id, KAJUR_ID, RequestStatus.REJECTED, rejection_reason="No evidence"
    )

    after = container.attendance_repo.get_by_id(rec.attendance_id)
    assert after == before
    assert after.status == WorkingStatus.LATE
    assert after.correction_id is None
    assert rejected.attendance_id == rec.attendance_id
