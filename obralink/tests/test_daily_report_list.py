from datetime import date, datetime, timedelta, timezone

from obralink.core.enums import ReportStatus
from obralink.core.errors import CoreError, ErrorKind
from obralink.services import daily_report_service as reports

T0 = datetime(2026, 5, 4, 17, 30, tzinfo=timezone.utc)


def _submit(project, worker, day: date, supervisor_id: str = "sup-1", now=None):
    result = reports.submit_report(
        project.id,
        supervisor_id,
        [{"worker_id": worker.id, "attended": True, "hours": 8}],
        report_date=day,
        now=now or T0,
    )
    assert not isinstance(result, CoreError), result
    return result


def test_list_filters_by_owning_companies_and_status(
    make_general_contractor, make_subcontractor, make_project, make_worker
):
    gc = make_general_contractor("Constructora Norte")
    sub_a = make_subcontractor("Estructuras A", clients=[gc])
    sub_b = make_subcontractor("Estructuras B", clients=[gc])
    project_a = make_project("Torre A", general_contractor=gc, subcontractor=sub_a)
    project_b = make_project("Torre B", general_contractor=gc, subcontractor=sub_b)
    worker_a = make_worker(sub_a.id, name="Ana Ruiz", projects=[project_a])
    worker_b = make_worker(sub_b.id, name="Pedro Gil", projects=[project_b])

    a1 = _submit(project_a, worker_a, date(2026, 5, 4))
    a2 = _submit(project_a, worker_a, date(2026, 5, 5), supervisor_id="sup-2")
    b1 = _submit(project_b, worker_b, date(2026, 5, 4))
    reports.advance_validation(a1.id, "subcontractor")

    assert [r.id for r in reports.list_reports(subcontractor_id=sub_a.id)] == [a2.id, a1.id]
    assert {r.id for r in reports.list_reports(general_contractor_id=gc.id)} == {a1.id, a2.id, b1.id}
    assert [r.id for r in reports.list_reports(supervisor_id="sup-2")] == [a2.id]
    assert [r.id for r in reports.list_reports(project_id=project_b.id)] == [b1.id]

    validated = reports.list_reports(status=ReportStatus.VALIDATED_BY_SUBCONTRACTOR)
    assert [r.id for r in validated] == [a1.id]

    submitted = reports.list_reports(general_contractor_id=gc.id, status="submitted")
    assert {r.id for r in submitted} == {a2.id, b1.id}

    assert reports.list_reports(status=ReportStatus.FULLY_VALIDATED) == []


def test_list_pagination_is_newest_day_first(make_project, make_worker):
    project = make_project()
    worker = make_worker(project.subcontractor_id, projects=[project])
    days = [date(2026, 5, 1) + timedelta(days=i) for i in range(5)]
    for day in days:
        _submit(project, worker, day)

    page = reports.list_reports(project_id=project.id, limit=2, offset=1)

    assert [r.report_date for r in page] == [days[3], days[2]]


def test_latest_report_of_the_day_wins(make_project, make_worker):
    project = make_project()
    worker = make_worker(project.subcontractor_id, projects=[project])
    day = date(2026, 5, 4)

    _submit(project, worker, day, now=T0)
    later = _submit(project, worker, day, now=T0 + timedelta(hours=1))

    latest = reports.latest_for_project_day(project.id, day)

    assert latest.id == later.id
    assert len(reports.list_reports(project_id=project.id)) == 2
    assert reports.latest_for_project_day(project.id, day + timedelta(days=1)) is None


def test_attendance_template_lists_assigned_workers_as_absent(make_project, make_worker):
    project = make_project()
    make_worker(project.subcontractor_id, name="Pedro Gil", projects=[project])
    make_worker(project.subcontractor_id, name="ana Ruiz", projects=[project])
    make_worker(project.subcontractor_id, name="Otra Obra")

    template = reports.attendance_template(project.id, date(2026, 5, 4))

    assert not isinstance(template, CoreError), template
    assert template.report_id is None
    assert template.report_date == date(2026, 5, 4)
    assert [(r["worker_name"], r["attended"], r["hours"]) for r in template.records] == [
        ("ana Ruiz", False, 0),
        ("Pedro Gil", False, 0),
    ]


def test_attendance_template_keeps_day_report_and_adds_missing_workers(make_project, make_worker):
    project = make_project()
    ana = make_worker(project.subcontractor_id, name="Ana Ruiz", projects=[project])
    submitted = _submit(project, ana, date(2026, 5, 4))
    pedro = make_worker(project.subcontractor_id, name="Pedro Gil", projects=[project])

    template = reports.attendance_template(project.id, date(2026, 5, 4))

    assert template.report_id == submitted.id
    assert template.records == [
        {"worker_id": ana.id, "worker_name": "Ana Ruiz", "attended": True, "hours": 8},
        {"worker_id": pedro.id, "worker_name": "Pedro Gil", "attended": False, "hours": 0},
    ]
    other_day = reports.attendance_template(project.id, date(2026, 5, 5))
    assert other_day.report_id is None
    assert [r["attended"] for r in other_day.records] == [False, False]


def test_attendance_template_for_unknown_project_is_not_found():
    result = reports.attendance_template("missing")

    assert isinstance(result, CoreError)
    assert result.kind == ErrorKind.NOT_FOUND
