from enum import Enum


class ProfessionalCategory(str, Enum):
    OFICIAL = "oficial"
    PEON = "peon"
    MAQUINISTA = "maquinista"
    ENCOFRADOR = "encofrador"


class ValidationStage(str, Enum):
    SUPERVISOR = "supervisor"
    SUBCONTRACTOR = "subcontractor"
    GENERAL_CONTRACTOR = "general_contractor"


class ReportStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    VALIDATED_BY_SUBCONTRACTOR = "validated_by_subcontractor"
    FULLY_VALIDATED = "fully_validated"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    ReportStatus.DRAFT: "draft",
    ReportStatus.SUBMITTED: "submitted",
    ReportStatus.VALIDATED_BY_SUBCONTRACTOR: "validated by subcontractor",
    ReportStatus.FULLY_VALIDATED: "fully validated",
}


class ResourceKind(str, Enum):
    WORKER = "worker"
    MACHINERY = "machinery"


class TimeEntryStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
