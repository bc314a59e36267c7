from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from obralink.core.enums import ProfessionalCategory


class WorkerCreate(BaseModel):
    subcontractor_id: str
    name: str = Field(..., min_length=1)
    access_code: str = Field(..., min_length=1)
    category: Optional[ProfessionalCategory] = None
    project_id: Optional[str] = Field(
        default=None,
        description="Assign the worker to this project on creation.",
    )


class WorkerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    subcontractor_id: str
    name: str
    access_code: str
    category: Optional[ProfessionalCategory]
    assigned_project_ids: List[str]
    created_at: datetime


class MachineryCreate(BaseModel):
    subcontractor_id: str
    name: str = Field(..., min_length=1)
    registration_code: str = Field(..., min_length=1)
    project_id: Optional[str] = None


class MachineryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    subcontractor_id: str
    name: str
    registration_code: str
    assigned_project_ids: List[str]
    created_at: datetime


class AssignRequest(BaseModel):
    resource_ids: List[str] = Field(..., min_length=1)


class AssignResponse(BaseModel):
    project_id: str
    kind: str
    added: int
    already_assigned: int
