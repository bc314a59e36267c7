from obralink.models.company import GeneralContractor, Subcontractor
from obralink.models.daily_report import DailyReport
from obralink.models.machinery import Machinery
from obralink.models.project import Project
from obralink.models.time_entry import TimeEntry
from obralink.models.worker import Worker

__all__ = [
    "DailyReport",
    "GeneralContractor",
    "Machinery",
    "Project",
    "Subcontractor",
    "TimeEntry",
    "Worker",
]
