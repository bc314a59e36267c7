from datetime import datetime, timezone

import pytest
from sqlalchemy.orm.exc import StaleDataError

from obralink import database
from obralink.core.errors import CoreError, ErrorKind
from obralink.database import SessionLocal
from obralink.models.daily_report import DailyReport
from obralink.services import daily_report_service as reports

T0 = datetime(2026, 5, 4, 17, 30, tzinfo=timezone.utc)

row_locks_block_competitor = pytest.mark.skipif(
    database.engine.dialect.name == "postgresql",
    reason="competing commit cannot run under a PostgreSQL row lock",
)


@pytest.fixture
def report(make_project, make_worker):
    project = make_project()
    worker = make_worker(project.subcontractor_id, name="Ana Ruiz", projects=[project])
    created = reports.submit_report(
        project.id,
        "sup-1",
        [{"worker_id": worker.id, "attended": True, "hours": 8}],
        now=T0,
    )
    assert not isinstance(created, CoreError), created
    return created


def _attendance(report, hours: float):
    worker_id = report.attendance_records[0]["worker_id"]
    return [{"worker_id": worker_id, "attended": True, "hours": hours}]


def test_amend_after_lock_committed_elsewhere_is_already_locked(report):
    stale = SessionLocal()
    try:
        # Reader loaded the report before the subcontractor signed it off.
        seen = stale.get(DailyReport, report.id)
        assert seen.is_locked is False

        validated = reports.advance_validation(report.id, "subcontractor", now=T0)
        assert not isinstance(validated, CoreError), validated

        result = reports.amend_report(report.id, "delegate-7", _attendance(report, 4), db=stale)

        assert isinstance(result, CoreError)
        assert result.kind == ErrorKind.ALREADY_LOCKED
        stale.rollback()
    finally:
        stale.close()

    stored = reports.get_report(report.id)
    assert stored.attendance_records == report.attendance_records
    assert stored.modification_record() is None


def test_every_write_bumps_the_version(report):
    assert report.version == 1

    amended = reports.amend_report(report.id, "delegate-7", _attendance(report, 6))
    assert amended.version == 2

    validated = reports.advance_validation(report.id, "subcontractor")
    assert validated.version == 3


def test_expected_version_mismatch_is_conflict(report):
    first = reports.amend_report(
        report.id, "delegate-7", _attendance(report, 6), expected_version=1
    )
    assert not isinstance(first, CoreError), first

    second = reports.amend_report(
        report.id, "delegate-8", _attendance(report, 2), expected_version=1
    )

    assert isinstance(second, CoreError)
    assert second.kind == ErrorKind.CONFLICT
    assert second.retryable is True
    assert reports.get_report(report.id).modified_by_delegate_id == "delegate-7"


def test_validate_with_stale_expected_version_is_conflict(report):
    reports.amend_report(report.id, "delegate-7", _attendance(report, 6))

    result = reports.advance_validation(report.id, "subcontractor", expected_version=1)

    assert isinstance(result, CoreError)
    assert result.kind == ErrorKind.CONFLICT
    assert reports.get_report(report.id).subcontractor_validated is False


def test_version_column_rejects_lost_update(report):
    writer = SessionLocal()
    try:
        row = writer.get(DailyReport, report.id)

        reports.amend_report(report.id, "delegate-7", _attendance(report, 6))

        row.comments = "overwritten"
        with pytest.raises(StaleDataError):
            writer.flush()
        writer.rollback()
    finally:
        writer.close()


@row_locks_block_competitor
def test_amend_losing_race_to_validation_is_conflict(report, before_first_flush):
    db = SessionLocal()
    try:
        before_first_flush(
            db, lambda: reports.advance_validation(report.id, "subcontractor", now=T0)
        )

        result = reports.amend_report(report.id, "delegate-7", _attendance(report, 4), db=db)

        assert isinstance(result, CoreError)
        assert result.kind == ErrorKind.CONFLICT
        assert result.retryable is True
        assert db.is_active is False
        db.rollback()
    finally:
        db.close()

    stored = reports.get_report(report.id)
    assert stored.attendance_records == report.attendance_records
    assert stored.modification_record() is None
    assert stored.subcontractor_validated is True
    assert stored.version == 2


@row_locks_block_competitor
def test_validation_losing_race_to_amendment_is_conflict(report, before_first_flush):
    db = SessionLocal()
    try:
        before_first_flush(
            db, lambda: reports.amend_report(report.id, "delegate-7", _attendance(report, 6))
        )

        result = reports.advance_validation(report.id, "subcontractor", db=db)

        assert isinstance(result, CoreError)
        assert result.kind == ErrorKind.CONFLICT
        db.rollback()
    finally:
        db.close()

    stored = reports.get_report(report.id)
    assert stored.subcontractor_validated is False
    assert stored.attendance_records[0]["hours"] == 6
    assert stored.modified_by_delegate_id == "delegate-7"
    assert stored.version == 2
