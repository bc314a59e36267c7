from datetime import datetime, timezone

import pytest
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from obralink import database
from obralink.core.errors import CoreError
from obralink.services import daily_report_service as reports
from obralink.services.report_immutability import install_daily_report_guards

pytestmark = pytest.mark.skipif(
    database.engine.dialect.name != "postgresql",
    reason="report guard triggers are PostgreSQL-only",
)

T0 = datetime(2026, 5, 4, 17, 30, tzinfo=timezone.utc)


@pytest.fixture
def locked_report(make_project, make_worker):
    project = make_project()
    worker = make_worker(project.subcontractor_id, projects=[project])
    report = reports.submit_report(
        project.id,
        "sup-1",
        [{"worker_id": worker.id, "attended": True, "hours": 8}],
        now=T0,
    )
    assert not isinstance(report, CoreError), report
    reports.advance_validation(report.id, "subcontractor", now=T0)
    return report


def test_install_is_idempotent():
    install_daily_report_guards(database.engine)
    install_daily_report_guards(database.engine)


def test_attendance_update_on_locked_report_is_blocked_in_database(locked_report):
    with pytest.raises(DBAPIError):
        with database.engine.begin() as conn:
            conn.execute(
                text("UPDATE daily_reports SET attendance_records = '[]' WHERE id = :id"),
                {"id": locked_report.id},
            )

    assert reports.get_report(locked_report.id).attendance_records == locked_report.attendance_records


def test_validation_stage_cannot_be_revoked_in_database(locked_report):
    with pytest.raises(DBAPIError):
        with database.engine.begin() as conn:
            conn.execute(
                text("UPDATE daily_reports SET subcontractor_validated = false WHERE id = :id"),
                {"id": locked_report.id},
            )


def test_report_delete_is_blocked_in_database(locked_report):
    with pytest.raises(DBAPIError):
        with database.engine.begin() as conn:
            conn.execute(text("DELETE FROM daily_reports WHERE id = :id"), {"id": locked_report.id})

    assert reports.get_report(locked_report.id) is not None
