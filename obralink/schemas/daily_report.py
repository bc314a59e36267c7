from datetime import date, datetime
from typing import List, Optional

from pydantic import AnyUrl, BaseModel, Field

from obralink.core.enums import ReportStatus, ValidationStage
from obralink.models.daily_report import DailyReport

MAX_HOURS_PER_DAY = 12


class AttendanceRecordIn(BaseModel):
    worker_id: str = Field(..., min_length=1)
    worker_name: Optional[str] = Field(
        default=None,
        description="Name snapshot. Looked up from the worker record when omitted.",
    )
    attended: bool
    hours: float = Field(default=0, ge=0, le=MAX_HOURS_PER_DAY)


class AttendanceRecordOut(BaseModel):
    worker_id: str
    worker_name: str
    attended: bool
    hours: float


class DailyReportSubmit(BaseModel):
    project_id: str = Field(..., min_length=1)
    supervisor_id: str = Field(..., min_length=1)
    attendance: List[AttendanceRecordIn]
    comments: Optional[str] = None
    photo_refs: List[AnyUrl] = Field(default_factory=list)
    report_date: Optional[date] = Field(
        default=None,
        description="Business day of the report. If omitted, server uses the current UTC date.",
    )


class DailyReportAmend(BaseModel):
    delegate_id: str = Field(..., min_length=1)
    attendance: List[AttendanceRecordIn]


class DailyReportValidate(BaseModel):
    stage: ValidationStage


class AttendanceTemplateResponse(BaseModel):
    project_id: str
    report_date: date
    report_id: Optional[str] = Field(
        default=None,
        description="Report the rows were taken from, if one exists for the day.",
    )
    attendance: List[AttendanceRecordOut]


class StageStateResponse(BaseModel):
    validated: bool
    timestamp: Optional[datetime]


class ValidationResponse(BaseModel):
    supervisor: StageStateResponse
    subcontractor: StageStateResponse
    general_contractor: StageStateResponse


class ModificationRecordResponse(BaseModel):
    modified: bool
    modified_by_delegate_id: Optional[str]
    timestamp: Optional[datetime]
    original_attendance_snapshot: List[AttendanceRecordOut]


class DailyReportResponse(BaseModel):
    id: str
    project_id: str
    report_date: date
    supervisor_id: str
    created_at: datetime
    attendance_records: List[AttendanceRecordOut]
    comments: Optional[str]
    photo_refs: List[str]
    validation: ValidationResponse
    modification_record: Optional[ModificationRecordResponse]
    status: ReportStatus
    status_label: str
    version: int

    @classmethod
    def from_report(cls, report: DailyReport) -> "DailyReportResponse":
        v = report.validation
        status = report.status
        return cls(
            id=report.id,
            project_id=report.project_id,
            report_date=report.report_date,
            supervisor_id=report.supervisor_id,
            created_at=report.created_at,
            attendance_records=report.attendance_records or [],
            comments=report.comments,
            photo_refs=report.photo_refs or [],
            validation={
                "supervisor": {"validated": v.supervisor.validated, "timestamp": v.supervisor.timestamp},
                "subcontractor": {
                    "validated": v.subcontractor.validated,
                    "timestamp": v.subcontractor.timestamp,
                },
                "general_contractor": {
                    "validated": v.general_contractor.validated,
                    "timestamp": v.general_contractor.timestamp,
                },
            },
            modification_record=report.modification_record(),
            status=status,
            status_label=status.label,
            version=report.version,
        )
