from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from obralink.core.enums import ReportStatus
from obralink.core.errors import CoreError
from obralink.database import SessionLocal
from obralink.deps.errors import etag_for, expected_version, http_error, unwrap
from obralink.schemas.daily_report import (
    AttendanceTemplateResponse,
    DailyReportAmend,
    DailyReportResponse,
    DailyReportSubmit,
    DailyReportValidate,
)
from obralink.services import daily_report_service

router = APIRouter(prefix="/daily_reports", tags=["Daily Reports"])


def _respond(response: Response, report) -> DailyReportResponse:
    response.headers["ETag"] = etag_for(report.version)
    return DailyReportResponse.from_report(report)


def _commit_or_raise(db, result, *, precondition_sent: bool = False):
    if isinstance(result, CoreError):
        db.rollback()
        raise http_error(result, precondition_sent=precondition_sent)
    db.commit()
    return result


@router.post("", response_model=DailyReportResponse, status_code=201)
def submit_daily_report(payload: DailyReportSubmit, response: Response):
    db = SessionLocal()
    try:
        result = daily_report_service.submit_report(
            project_id=payload.project_id,
            supervisor_id=payload.supervisor_id,
            attendance=payload.attendance,
            comments=payload.comments,
            photo_refs=[str(ref) for ref in payload.photo_refs],
            report_date=payload.report_date,
            db=db,
        )
        report = _commit_or_raise(db, result)
        return _respond(response, report)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("", response_model=List[DailyReportResponse])
def list_daily_reports(
    project_id: Optional[str] = None,
    supervisor_id: Optional[str] = None,
    subcontractor_id: Optional[str] = None,
    general_contractor_id: Optional[str] = None,
    status: Optional[ReportStatus] = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    rows = daily_report_service.list_reports(
        project_id=project_id,
        supervisor_id=supervisor_id,
        subcontractor_id=subcontractor_id,
        general_contractor_id=general_contractor_id,
        status=status,
        limit=limit,
        offset=offset,
    )
    return [DailyReportResponse.from_report(r) for r in rows]


@router.get("/template", response_model=AttendanceTemplateResponse)
def get_attendance_template(project_id: str, report_date: Optional[date] = None):
    template = unwrap(daily_report_service.attendance_template(project_id, report_date))
    return AttendanceTemplateResponse(
        project_id=template.project_id,
        report_date=template.report_date,
        report_id=template.report_id,
        attendance=template.records,
    )


@router.get("/latest", response_model=DailyReportResponse)
def get_latest_daily_report(project_id: str, report_date: date, response: Response):
    report = daily_report_service.latest_for_project_day(project_id, report_date)
    if report is None:
        raise HTTPException(
            status_code=404,
            detail=f"No daily report for project {project_id} on {report_date.isoformat()}",
        )
    return _respond(response, report)


@router.get("/{report_id}", response_model=DailyReportResponse)
def get_daily_report(report_id: str, response: Response):
    report = daily_report_service.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"Daily report {report_id} not found")
    return _respond(response, report)


@router.put("/{report_id}/attendance", response_model=DailyReportResponse)
def amend_daily_report(
    report_id: str,
    payload: DailyReportAmend,
    response: Response,
    if_match_version: Optional[int] = Depends(expected_version),
):
    db = SessionLocal()
    try:
        result = daily_report_service.amend_report(
            report_id,
            delegate_id=payload.delegate_id,
            attendance=payload.attendance,
            expected_version=if_match_version,
            db=db,
        )
        report = _commit_or_raise(db, result, precondition_sent=if_match_version is not None)
        return _respond(response, report)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{report_id}/validate", response_model=DailyReportResponse)
def validate_daily_report(
    report_id: str,
    payload: DailyReportValidate,
    response: Response,
    if_match_version: Optional[int] = Depends(expected_version),
):
    db = SessionLocal()
    try:
        result = daily_report_service.advance_validation(
            report_id,
            payload.stage,
            expected_version=if_match_version,
            db=db,
        )
        report = _commit_or_raise(db, result, precondition_sent=if_match_version is not None)
        return _respond(response, report)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
