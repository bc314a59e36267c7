from datetime import date, datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from obralink.database import SessionLocal
from obralink.models import DailyReport, Project, TimeEntry, Worker

T0 = datetime(2026, 5, 4, 17, 30, tzinfo=timezone.utc)


def _report(project_id: str, **overrides) -> DailyReport:
    values = dict(
        id=f"{project_id}-20260504-ck",
        project_id=project_id,
        report_date=date(2026, 5, 4),
        supervisor_id="sup-1",
        created_at=T0,
        attendance_records=[
            {"worker_id": "w-1", "worker_name": "Ana", "attended": True, "hours": 8.0}
        ],
        photo_refs=[],
        supervisor_validated=True,
        supervisor_validated_at=T0,
        subcontractor_validated=False,
        general_contractor_validated=False,
    )
    values.update(overrides)
    return DailyReport(**values)


@pytest.mark.parametrize(
    "overrides",
    [
        {"supervisor_validated": False, "supervisor_validated_at": None},
        # general contractor without subcontractor
        {"general_contractor_validated": True, "general_contractor_validated_at": T0},
        # subcontractor stage without a timestamp
        {"subcontractor_validated": True, "subcontractor_validated_at": None},
    ],
)
def test_check_constraints_block_out_of_order_stages(make_project, overrides):
    project = make_project()

    db = SessionLocal()
    try:
        db.add(_report(project.id, **overrides))

        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
    finally:
        db.close()


def test_check_constraint_blocks_project_ending_before_start(make_project):
    existing = make_project()

    db = SessionLocal()
    try:
        db.add(
            Project(
                name="Bad dates",
                address="Calle Mayor 1",
                general_contractor_id=existing.general_contractor_id,
                subcontractor_id=existing.subcontractor_id,
                start_date=date(2026, 6, 1),
                end_date=date(2026, 5, 1),
            )
        )

        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
    finally:
        db.close()


def test_unique_access_code_per_subcontractor(make_project, make_worker):
    project = make_project()
    make_worker(project.subcontractor_id, name="Ana Ruiz", access_code="A-1")

    db = SessionLocal()
    try:
        db.add(Worker(subcontractor_id=project.subcontractor_id, name="Ana Bis", access_code="A-1"))

        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
    finally:
        db.close()


def test_unique_active_time_entry_per_worker(make_project, make_worker):
    project = make_project()
    worker = make_worker(project.subcontractor_id, projects=[project])

    db = SessionLocal()
    try:
        for n in range(2):
            db.add(
                TimeEntry(
                    time_entry_id=f"te-{n}",
                    worker_id=worker.id,
                    project_id=project.id,
                    started_at=T0,
                    status="active",
                )
            )

        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
    finally:
        db.close()
