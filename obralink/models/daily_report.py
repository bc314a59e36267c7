from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)

from obralink.core.enums import ReportStatus
from obralink.core.report_status import StageState, ValidationState, derive_status
from obralink.core.types import UTCDateTime
from obralink.database import Base


class DailyReport(Base):
    __tablename__ = "daily_reports"

    id = Column(String, primary_key=True)

    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    report_date = Column(Date, nullable=False, index=True)
    supervisor_id = Column(String, nullable=False, index=True)
    created_at = Column(UTCDateTime(), nullable=False)

    # [{"worker_id", "worker_name", "attended", "hours"}, ...] in submission order
    attendance_records = Column(JSON, nullable=False)
    comments = Column(Text, nullable=True)
    photo_refs = Column(JSON, nullable=False, default=list)

    supervisor_validated = Column(Boolean, nullable=False, default=True)
    supervisor_validated_at = Column(UTCDateTime(), nullable=True)
    subcontractor_validated = Column(Boolean, nullable=False, default=False)
    subcontractor_validated_at = Column(UTCDateTime(), nullable=True)
    general_contractor_validated = Column(Boolean, nullable=False, default=False)
    general_contractor_validated_at = Column(UTCDateTime(), nullable=True)

    modified_by_delegate_id = Column(String, nullable=True)
    modified_at = Column(UTCDateTime(), nullable=True)
    original_attendance_snapshot = Column(JSON, nullable=True)

    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("supervisor_validated", name="ck_daily_reports_supervisor_validated"),
        CheckConstraint(
            "NOT subcontractor_validated OR supervisor_validated",
            name="ck_daily_reports_subcontractor_after_supervisor",
        ),
        CheckConstraint(
            "NOT general_contractor_validated OR subcontractor_validated",
            name="ck_daily_reports_general_contractor_after_subcontractor",
        ),
        CheckConstraint(
            "NOT subcontractor_validated OR subcontractor_validated_at IS NOT NULL",
            name="ck_daily_reports_subcontractor_timestamp",
        ),
        CheckConstraint(
            "NOT general_contractor_validated OR general_contractor_validated_at IS NOT NULL",
            name="ck_daily_reports_general_contractor_timestamp",
        ),
        Index("ix_daily_reports_project_date", "project_id", "report_date"),
    )

    @property
    def validation(self) -> ValidationState:
        return ValidationState(
            supervisor=StageState(bool(self.supervisor_validated), self.supervisor_validated_at),
            subcontractor=StageState(
                bool(self.subcontractor_validated), self.subcontractor_validated_at
            ),
            general_contractor=StageState(
                bool(self.general_contractor_validated), self.general_contractor_validated_at
            ),
        )

    @property
    def status(self) -> ReportStatus:
        return derive_status(self.validation)

    @property
    def is_locked(self) -> bool:
        return bool(self.subcontractor_validated or self.general_contractor_validated)

    @property
    def is_modified(self) -> bool:
        return self.modified_at is not None

    @property
    def attended_count(self) -> int:
        return sum(1 for r in self.attendance_records or [] if r.get("attended"))

    def modification_record(self) -> Optional[dict]:
        if not self.is_modified:
            return None
        return {
            "modified": True,
            "modified_by_delegate_id": self.modified_by_delegate_id,
            "timestamp": self.modified_at,
            "original_attendance_snapshot": self.original_attendance_snapshot or [],
        }

    def __repr__(self) -> str:
        return f"<DailyReport {self.id} v{self.version} {self.status.value}>"
