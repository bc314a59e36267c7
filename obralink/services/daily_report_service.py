import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.orm import Query, Session
from sqlalchemy.orm.exc import StaleDataError

from obralink.core.enums import ReportStatus, ResourceKind, ValidationStage
from obralink.core.errors import CoreError, ErrorKind, Result, invalid, not_found
from obralink.database import SessionLocal
from obralink.models.daily_report import DailyReport
from obralink.models.project import Project
from obralink.models.worker import Worker
from obralink.schemas.daily_report import AttendanceRecordIn
from obralink.services import assignment_service

logger = logging.getLogger(__name__)

# stage -> (flag column, timestamp column, stage that must already be validated)
_STAGES = {
    ValidationStage.SUBCONTRACTOR: (
        "subcontractor_validated",
        "subcontractor_validated_at",
        ValidationStage.SUPERVISOR,
    ),
    ValidationStage.GENERAL_CONTRACTOR: (
        "general_contractor_validated",
        "general_contractor_validated_at",
        ValidationStage.SUBCONTRACTOR,
    ),
}

_STAGE_FLAGS = {
    ValidationStage.SUPERVISOR: "supervisor_validated",
    ValidationStage.SUBCONTRACTOR: "subcontractor_validated",
    ValidationStage.GENERAL_CONTRACTOR: "general_contractor_validated",
}

_STAGE_LABELS = {
    ValidationStage.SUPERVISOR: "the site supervisor",
    ValidationStage.SUBCONTRACTOR: "the subcontractor",
    ValidationStage.GENERAL_CONTRACTOR: "the general contractor",
}

AttendanceInput = Union[AttendanceRecordIn, dict]


@dataclass(frozen=True)
class AttendanceTemplate:
    project_id: str
    report_date: date
    report_id: Optional[str]
    records: List[dict]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_report_id(project_id: str, report_date: date) -> str:
    return f"{project_id}-{report_date:%Y%m%d}-{uuid.uuid4().hex[:8]}"


def _rejected(operation: str, error: CoreError, **ids) -> CoreError:
    level = logging.WARNING if error.kind == ErrorKind.CONFLICT else logging.INFO
    logger.log(
        level,
        "daily report %s rejected: %s",
        operation,
        error.detail,
        extra={"operation": operation, "error_kind": error.kind.value, **ids},
    )
    return error


def _parse_attendance(attendance: Optional[Iterable[AttendanceInput]]) -> Result[List[AttendanceRecordIn]]:
    if attendance is None:
        return invalid("attendance is required")

    parsed: List[AttendanceRecordIn] = []
    for index, raw in enumerate(attendance):
        if isinstance(raw, AttendanceRecordIn):
            parsed.append(raw)
            continue
        try:
            parsed.append(AttendanceRecordIn.model_validate(raw))
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ())) or "record"
            return invalid(f"attendance[{index}].{field}: {first.get('msg')}")

    seen = set()
    for record in parsed:
        if record.worker_id in seen:
            return invalid(f"Worker {record.worker_id} appears more than once in attendance")
        seen.add(record.worker_id)

    return parsed


def _require_someone_present(records: List[AttendanceRecordIn]) -> Optional[CoreError]:
    if any(r.attended for r in records):
        return None
    return CoreError(
        ErrorKind.EMPTY_ATTENDANCE,
        "A daily report must mark at least one worker as present",
    )


def _snapshot_records(db: Session, records: List[AttendanceRecordIn]) -> Result[List[dict]]:
    missing = [r.worker_id for r in records if not (r.worker_name or "").strip()]
    names = {}
    if missing:
        names = dict(db.query(Worker.id, Worker.name).filter(Worker.id.in_(missing)).all())
        unknown = [wid for wid in missing if wid not in names]
        if unknown:
            return invalid(
                f"Unknown worker(s) {', '.join(unknown)}; provide worker_name for workers not on the roster"
            )

    return [
        {
            "worker_id": r.worker_id,
            "worker_name": (r.worker_name or "").strip() or names[r.worker_id],
            "attended": bool(r.attended),
            "hours": float(r.hours),
        }
        for r in records
    ]


def _load_for_update(db: Session, report_id: str) -> Optional[DailyReport]:
    # Re-read committed state under a row lock so lock checks are made against
    # what will actually be overwritten, not against a stale identity map.
    return (
        db.query(DailyReport)
        .filter(DailyReport.id == str(report_id))
        .populate_existing()
        .with_for_update()
        .first()
    )


def _conflict(report_id: str, detail: Optional[str] = None) -> CoreError:
    return CoreError(
        ErrorKind.CONFLICT,
        detail or f"Daily report {report_id} was changed by another request; reload it and try again",
    )


def _check_version(report: DailyReport, expected_version: Optional[int]) -> Optional[CoreError]:
    if expected_version is None or int(expected_version) == int(report.version):
        return None
    return _conflict(
        report.id,
        f"Daily report {report.id} is at version {report.version}, not {expected_version}; "
        "reload it and try again",
    )


def _locked_detail(report: DailyReport) -> str:
    stage = (
        ValidationStage.GENERAL_CONTRACTOR
        if report.general_contractor_validated
        else ValidationStage.SUBCONTRACTOR
    )
    return (
        f"Daily report {report.id} was already validated by {_STAGE_LABELS[stage]} "
        "and can no longer be edited"
    )


def submit_report(
    project_id: str,
    supervisor_id: str,
    attendance: Iterable[AttendanceInput],
    comments: Optional[str] = None,
    photo_refs: Optional[Iterable[str]] = None,
    report_date: Optional[date] = None,
    *,
    now: Optional[datetime] = None,
    db: Optional[Session] = None,
) -> Result[DailyReport]:
    """
    Create a report on behalf of a site supervisor. Submission counts as the
    supervisor's own validation.

    If db is provided, this function will NOT commit/close. Caller owns the transaction.
    If db is None, this function manages its own session + commit.
    """
    ids = {"project_id": project_id, "supervisor_id": supervisor_id}

    if not (supervisor_id or "").strip():
        return _rejected("submit", invalid("supervisor_id is required"), **ids)

    parsed = _parse_attendance(attendance)
    if isinstance(parsed, CoreError):
        return _rejected("submit", parsed, **ids)

    empty = _require_someone_present(parsed)
    if empty is not None:
        return _rejected("submit", empty, **ids)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        project = db.get(Project, str(project_id))
        if project is None:
            return _rejected("submit", not_found("Project", project_id), **ids)

        records = _snapshot_records(db, parsed)
        if isinstance(records, CoreError):
            return _rejected("submit", records, **ids)

        now = now or _utc_now()
        day = report_date or now.date()

        report = DailyReport(
            id=_new_report_id(project.id, day),
            project_id=project.id,
            report_date=day,
            supervisor_id=str(supervisor_id),
            created_at=now,
            attendance_records=records,
            comments=comments,
            photo_refs=[str(ref) for ref in (photo_refs or [])],
            supervisor_validated=True,
            supervisor_validated_at=now,
            subcontractor_validated=False,
            subcontractor_validated_at=None,
            general_contractor_validated=False,
            general_contractor_validated_at=None,
        )

        db.add(report)
        db.flush()

        if owns_db:
            db.commit()

        logger.info(
            "daily report submitted",
            extra={"report_id": report.id, "report_date": day.isoformat(), **ids},
        )
        return report
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def amend_report(
    report_id: str,
    delegate_id: str,
    attendance: Iterable[AttendanceInput],
    *,
    expected_version: Optional[int] = None,
    now: Optional[datetime] = None,
    db: Optional[Session] = None,
) -> Result[DailyReport]:
    """
    Replace the attendance of a report that nobody above the supervisor has
    validated yet.

    The attendance as it stood before the first amendment is kept as the
    original snapshot; later amendments only move the editor and timestamp.

    A lost concurrent-write race returns a Conflict. A caller-owned session
    is left in its failed state for the caller to roll back.
    """
    ids = {"report_id": report_id, "delegate_id": delegate_id}

    if not (delegate_id or "").strip():
        return _rejected("amend", invalid("delegate_id is required"), **ids)

    parsed = _parse_attendance(attendance)
    if isinstance(parsed, CoreError):
        return _rejected("amend", parsed, **ids)

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        report = _load_for_update(db, report_id)
        if report is None:
            return _rejected("amend", not_found("Daily report", report_id), **ids)

        stale = _check_version(report, expected_version)
        if stale is not None:
            return _rejected("amend", stale, **ids)

        if report.is_locked:
            return _rejected(
                "amend", CoreError(ErrorKind.ALREADY_LOCKED, _locked_detail(report)), **ids
            )

        empty = _require_someone_present(parsed)
        if empty is not None:
            return _rejected("amend", empty, **ids)

        records = _snapshot_records(db, parsed)
        if isinstance(records, CoreError):
            return _rejected("amend", records, **ids)

        if not report.is_modified:
            report.original_attendance_snapshot = [dict(r) for r in report.attendance_records or []]

        report.attendance_records = records
        report.modified_by_delegate_id = str(delegate_id)
        report.modified_at = now or _utc_now()

        db.flush()

        if owns_db:
            db.commit()

        logger.info(
            "daily report attendance amended",
            extra={"version": report.version, **ids},
        )
        return report
    except StaleDataError:
        if owns_db:
            db.rollback()
        return _rejected("amend", _conflict(report_id), **ids)
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def advance_validation(
    report_id: str,
    stage: Union[ValidationStage, str],
    *,
    expected_version: Optional[int] = None,
    now: Optional[datetime] = None,
    db: Optional[Session] = None,
) -> Result[DailyReport]:
    """
    Move a report through the subcontractor and general-contractor stages,
    strictly in that order. Re-validating a stage is reported as
    AlreadyValidated instead of being ignored.

    A lost concurrent-write race returns a Conflict, with a caller-owned
    session left for the caller to roll back.
    """
    ids = {"report_id": report_id, "stage": str(getattr(stage, "value", stage))}

    try:
        stage = ValidationStage(stage)
    except ValueError:
        return _rejected("validate", invalid(f"Unknown validation stage {stage!r}"), **ids)

    if stage not in _STAGES:
        return _rejected(
            "validate",
            invalid("The supervisor stage is validated by submitting the report"),
            **ids,
        )

    flag, stamp, preceding = _STAGES[stage]

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        report = _load_for_update(db, report_id)
        if report is None:
            return _rejected("validate", not_found("Daily report", report_id), **ids)

        stale = _check_version(report, expected_version)
        if stale is not None:
            return _rejected("validate", stale, **ids)

        if getattr(report, flag):
            return _rejected(
                "validate",
                CoreError(
                    ErrorKind.ALREADY_VALIDATED,
                    f"Daily report {report.id} was already validated by {_STAGE_LABELS[stage]}",
                ),
                **ids,
            )

        if not getattr(report, _STAGE_FLAGS[preceding]):
            return _rejected(
                "validate",
                CoreError(
                    ErrorKind.PRECEDING_STAGE_NOT_VALIDATED,
                    f"Daily report {report.id} must be validated by {_STAGE_LABELS[preceding]} "
                    f"before {_STAGE_LABELS[stage]} can validate it",
                ),
                **ids,
            )

        setattr(report, flag, True)
        setattr(report, stamp, now or _utc_now())

        db.flush()

        if owns_db:
            db.commit()

        logger.info(
            "daily report validated",
            extra={"version": report.version, "status": report.status.value, **ids},
        )
        return report
    except StaleDataError:
        if owns_db:
            db.rollback()
        return _rejected("validate", _conflict(report_id), **ids)
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def get_report(report_id: str, *, db: Optional[Session] = None) -> Optional[DailyReport]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return db.query(DailyReport).filter(DailyReport.id == str(report_id)).first()
    finally:
        if owns_db:
            db.close()


def _filter_status(q: Query, status: ReportStatus) -> Query:
    if status == ReportStatus.FULLY_VALIDATED:
        return q.filter(DailyReport.general_contractor_validated.is_(True))
    if status == ReportStatus.VALIDATED_BY_SUBCONTRACTOR:
        return q.filter(
            DailyReport.subcontractor_validated.is_(True),
            DailyReport.general_contractor_validated.is_(False),
        )
    if status == ReportStatus.SUBMITTED:
        return q.filter(
            DailyReport.supervisor_validated.is_(True),
            DailyReport.subcontractor_validated.is_(False),
            DailyReport.general_contractor_validated.is_(False),
        )
    return q.filter(DailyReport.supervisor_validated.is_(False))


def list_reports(
    *,
    project_id: Optional[str] = None,
    supervisor_id: Optional[str] = None,
    subcontractor_id: Optional[str] = None,
    general_contractor_id: Optional[str] = None,
    status: Optional[ReportStatus] = None,
    limit: Optional[int] = None,
    offset: int = 0,
    db: Optional[Session] = None,
) -> List[DailyReport]:
    """
    Reports matching every given filter, newest business day first.

    Company filters are resolved through project ownership; reports do not
    store the owning companies themselves.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        q = db.query(DailyReport)

        if project_id is not None:
            q = q.filter(DailyReport.project_id == str(project_id))
        if supervisor_id is not None:
            q = q.filter(DailyReport.supervisor_id == str(supervisor_id))
        if subcontractor_id is not None:
            owned = select(Project.id).where(Project.subcontractor_id == str(subcontractor_id))
            q = q.filter(DailyReport.project_id.in_(owned))
        if general_contractor_id is not None:
            owned = select(Project.id).where(
                Project.general_contractor_id == str(general_contractor_id)
            )
            q = q.filter(DailyReport.project_id.in_(owned))
        if status is not None:
            q = _filter_status(q, ReportStatus(status))

        q = q.order_by(
            DailyReport.report_date.desc(),
            DailyReport.created_at.desc(),
            DailyReport.id.asc(),
        )

        if offset:
            q = q.offset(int(offset))
        if limit is not None:
            q = q.limit(int(limit))

        return q.all()
    finally:
        if owns_db:
            db.close()


def latest_for_project_day(
    project_id: str,
    report_date: date,
    *,
    db: Optional[Session] = None,
) -> Optional[DailyReport]:
    """Several reports may exist for one project and day; the last submitted one is shown."""
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return (
            db.query(DailyReport)
            .filter(
                DailyReport.project_id == str(project_id),
                DailyReport.report_date == report_date,
            )
            .order_by(DailyReport.created_at.desc(), DailyReport.id.desc())
            .first()
        )
    finally:
        if owns_db:
            db.close()


def attendance_template(
    project_id: str,
    report_date: Optional[date] = None,
    *,
    db: Optional[Session] = None,
) -> Result[AttendanceTemplate]:
    """
    Attendance sheet a supervisor starts the day from.

    Every worker assigned to the project is listed as absent with no hours.
    When a report already exists for the day, its records are kept as they
    are and assigned workers missing from it are appended. Rows are sorted
    by worker name.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        if db.get(Project, str(project_id)) is None:
            return not_found("Project", project_id)

        day = report_date or _utc_now().date()
        report = latest_for_project_day(project_id, day, db=db)

        records = [dict(r) for r in report.attendance_records or []] if report else []
        listed = {r["worker_id"] for r in records}

        for worker in assignment_service.list_by_project(project_id, ResourceKind.WORKER, db=db):
            if worker.id not in listed:
                records.append(
                    {"worker_id": worker.id, "worker_name": worker.name, "attended": False, "hours": 0}
                )

        records.sort(key=lambda r: (r["worker_name"].casefold(), r["worker_id"]))
        return AttendanceTemplate(
            project_id=str(project_id),
            report_date=day,
            report_id=report.id if report else None,
            records=records,
        )
    finally:
        if owns_db:
            db.close()
