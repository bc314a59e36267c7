from typing import List

from fastapi import APIRouter, HTTPException, Response

from obralink.core.enums import ResourceKind
from obralink.deps.errors import unwrap
from obralink.schemas.resources import MachineryCreate, MachineryResponse
from obralink.services import assignment_service

router = APIRouter(prefix="/machinery", tags=["Machinery"])


@router.post("", response_model=MachineryResponse, status_code=201)
def create_machinery(payload: MachineryCreate):
    return unwrap(
        assignment_service.create_machinery(
            subcontractor_id=payload.subcontractor_id,
            name=payload.name,
            registration_code=payload.registration_code,
            project_id=payload.project_id,
        )
    )


@router.get("", response_model=List[MachineryResponse])
def list_machinery(subcontractor_id: str):
    return assignment_service.list_by_subcontractor(subcontractor_id, ResourceKind.MACHINERY)


@router.get("/{machinery_id}", response_model=MachineryResponse)
def get_machinery(machinery_id: str):
    machine = assignment_service.get_resource(machinery_id, ResourceKind.MACHINERY)
    if machine is None:
        raise HTTPException(status_code=404, detail=f"Machinery {machinery_id} not found")
    return machine


@router.delete("/{machinery_id}", status_code=204)
def remove_machinery(machinery_id: str):
    unwrap(assignment_service.remove_resource(machinery_id, ResourceKind.MACHINERY))
    return Response(status_code=204)
