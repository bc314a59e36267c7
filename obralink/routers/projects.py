from typing import List, Optional

from fastapi import APIRouter, HTTPException, Response

from obralink.core.enums import ResourceKind
from obralink.deps.errors import unwrap
from obralink.schemas.project import ProjectCreate, ProjectResponse, ProjectUpdate
from obralink.schemas.resources import (
    AssignRequest,
    AssignResponse,
    MachineryResponse,
    WorkerResponse,
)
from obralink.services import assignment_service, company_service

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.post("", response_model=ProjectResponse, status_code=201)
def create_project(payload: ProjectCreate):
    return unwrap(company_service.create_project(**payload.model_dump()))


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    general_contractor_id: Optional[str] = None,
    subcontractor_id: Optional[str] = None,
):
    return company_service.list_projects(
        general_contractor_id=general_contractor_id,
        subcontractor_id=subcontractor_id,
    )


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(project_id: str):
    project = company_service.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail=f"Project {project_id} not found")
    return project


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(project_id: str, payload: ProjectUpdate):
    changes = payload.model_dump(exclude_unset=True)
    return unwrap(company_service.update_project(project_id, **changes))


def _assign(project_id: str, payload: AssignRequest, kind: ResourceKind) -> AssignResponse:
    result = unwrap(assignment_service.assign(project_id, payload.resource_ids, kind))
    return AssignResponse(
        project_id=result.project_id,
        kind=result.kind.value,
        added=result.added,
        already_assigned=result.already_assigned,
    )


def _unassign(project_id: str, resource_id: str, kind: ResourceKind) -> Response:
    unwrap(assignment_service.unassign(project_id, resource_id, kind))
    return Response(status_code=204)


@router.post("/{project_id}/workers", response_model=AssignResponse)
def assign_workers(project_id: str, payload: AssignRequest):
    return _assign(project_id, payload, ResourceKind.WORKER)


@router.get("/{project_id}/workers", response_model=List[WorkerResponse])
def list_project_workers(project_id: str):
    return assignment_service.list_by_project(project_id, ResourceKind.WORKER)


@router.delete("/{project_id}/workers/{worker_id}", status_code=204)
def unassign_worker(project_id: str, worker_id: str):
    return _unassign(project_id, worker_id, ResourceKind.WORKER)


@router.post("/{project_id}/machinery", response_model=AssignResponse)
def assign_machinery(project_id: str, payload: AssignRequest):
    return _assign(project_id, payload, ResourceKind.MACHINERY)


@router.get("/{project_id}/machinery", response_model=List[MachineryResponse])
def list_project_machinery(project_id: str):
    return assignment_service.list_by_project(project_id, ResourceKind.MACHINERY)


@router.delete("/{project_id}/machinery/{machinery_id}", status_code=204)
def unassign_machinery(project_id: str, machinery_id: str):
    return _unassign(project_id, machinery_id, ResourceKind.MACHINERY)
