from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class GeneralContractorCreate(BaseModel):
    name: str = Field(..., min_length=1)


class GeneralContractorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: datetime


class SubcontractorCreate(BaseModel):
    name: str = Field(..., min_length=1)
    client_general_contractor_ids: List[str] = Field(default_factory=list)


class SubcontractorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    client_general_contractor_ids: List[str]
    created_at: datetime
