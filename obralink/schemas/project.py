from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    general_contractor_id: str
    subcontractor_id: str
    start_date: Optional[date] = None
    end_date: Optional[date] = Field(
        default=None,
        description="Null means the project is open-ended.",
    )
    client_name: Optional[str] = None

    @model_validator(mode="after")
    def _end_not_before_start(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ProjectUpdate(BaseModel):
    """Editable project fields. Owning companies are fixed at creation."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    client_name: Optional[str] = None


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    address: str
    general_contractor_id: str
    subcontractor_id: str
    start_date: Optional[date]
    end_date: Optional[date]
    client_name: Optional[str]
    created_at: datetime
