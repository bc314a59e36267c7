from typing import List, Optional

from fastapi import APIRouter, HTTPException

from obralink.deps.errors import unwrap
from obralink.schemas.company import (
    GeneralContractorCreate,
    GeneralContractorResponse,
    SubcontractorCreate,
    SubcontractorResponse,
)
from obralink.services import company_service

router = APIRouter(prefix="/companies", tags=["Companies"])


@router.post("/general_contractors", response_model=GeneralContractorResponse, status_code=201)
def create_general_contractor(payload: GeneralContractorCreate):
    return unwrap(company_service.create_general_contractor(payload.name))


@router.get("/general_contractors", response_model=List[GeneralContractorResponse])
def list_general_contractors():
    return company_service.list_general_contractors()


@router.get("/general_contractors/{gc_id}", response_model=GeneralContractorResponse)
def get_general_contractor(gc_id: str):
    row = company_service.get_general_contractor(gc_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"General contractor {gc_id} not found")
    return row


@router.post("/subcontractors", response_model=SubcontractorResponse, status_code=201)
def create_subcontractor(payload: SubcontractorCreate):
    return unwrap(
        company_service.create_subcontractor(
            payload.name,
            payload.client_general_contractor_ids,
        )
    )


@router.get("/subcontractors", response_model=List[SubcontractorResponse])
def list_subcontractors(general_contractor_id: Optional[str] = None):
    return company_service.list_subcontractors(general_contractor_id)


@router.get("/subcontractors/{sub_id}", response_model=SubcontractorResponse)
def get_subcontractor(sub_id: str):
    row = company_service.get_subcontractor(sub_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"Subcontractor {sub_id} not found")
    return row
