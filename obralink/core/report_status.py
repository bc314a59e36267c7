from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from obralink.core.enums import ReportStatus


@dataclass(frozen=True)
class StageState:
    validated: bool
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class ValidationState:
    supervisor: StageState
    subcontractor: StageState
    general_contractor: StageState


def derive_status(validation: ValidationState) -> ReportStatus:
    """
    Single source of truth for a report's display status.

    Evaluated highest stage first, so a report that is general-contractor
    validated is "fully validated" regardless of how the lower stages read.
    """
    if validation.general_contractor.validated:
        return ReportStatus.FULLY_VALIDATED
    if validation.subcontractor.validated:
        return ReportStatus.VALIDATED_BY_SUBCONTRACTOR
    if validation.supervisor.validated:
        return ReportStatus.SUBMITTED
    return ReportStatus.DRAFT
