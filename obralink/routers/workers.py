from typing import List

from fastapi import APIRouter, HTTPException, Response

from obralink.core.enums import ResourceKind
from obralink.deps.errors import unwrap
from obralink.schemas.resources import WorkerCreate, WorkerResponse
from obralink.services import assignment_service

router = APIRouter(prefix="/workers", tags=["Workers"])


@router.post("", response_model=WorkerResponse, status_code=201)
def create_worker(payload: WorkerCreate, response: Response):
    """201 for a new worker; 200 when the access code is already on the roster."""
    registration = unwrap(
        assignment_service.create_worker(
            subcontractor_id=payload.subcontractor_id,
            name=payload.name,
            access_code=payload.access_code,
            category=payload.category,
            project_id=payload.project_id,
        )
    )
    if not registration.created:
        response.status_code = 200
    return registration.worker


@router.get("", response_model=List[WorkerResponse])
def list_workers(subcontractor_id: str):
    return assignment_service.list_by_subcontractor(subcontractor_id, ResourceKind.WORKER)


@router.get("/{worker_id}", response_model=WorkerResponse)
def get_worker(worker_id: str):
    worker = assignment_service.get_resource(worker_id, ResourceKind.WORKER)
    if worker is None:
        raise HTTPException(status_code=404, detail=f"Worker {worker_id} not found")
    return worker


@router.delete("/{worker_id}", status_code=204)
def remove_worker(worker_id: str):
    unwrap(assignment_service.remove_resource(worker_id, ResourceKind.WORKER))
    return Response(status_code=204)
