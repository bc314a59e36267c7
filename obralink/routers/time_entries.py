from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from obralink.core.enums import TimeEntryStatus
from obralink.core.errors import CoreError
from obralink.database import SessionLocal
from obralink.deps.errors import http_error
from obralink.models.time_entry import TimeEntry
from obralink.services import time_engine

router = APIRouter(
    prefix="/time_entries",
    tags=["Time Entries"],
)


class ClockInRequest(BaseModel):
    worker_id: str
    project_id: str
    started_at: Optional[datetime] = Field(
        default=None,
        description="If omitted, server uses current UTC time.",
    )


class ClockOutRequest(BaseModel):
    worker_id: str
    ended_at: Optional[datetime] = Field(
        default=None,
        description="If omitted, server uses current UTC time.",
    )


class TimeEntryResponse(BaseModel):
    time_entry_id: str
    worker_id: str
    project_id: str
    status: TimeEntryStatus
    started_at: datetime
    ended_at: Optional[datetime]


def _to_response(entry: TimeEntry) -> TimeEntryResponse:
    return TimeEntryResponse(
        time_entry_id=entry.time_entry_id,
        worker_id=entry.worker_id,
        project_id=entry.project_id,
        status=entry.status,
        started_at=entry.started_at,
        ended_at=entry.ended_at,
    )


@router.get("", response_model=list[TimeEntryResponse])
def list_time_entries(
    worker_id: Optional[str] = None,
    project_id: Optional[str] = None,
    status: Optional[TimeEntryStatus] = None,
    started_at_from: Optional[datetime] = None,
    started_at_to: Optional[datetime] = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    rows = time_engine.list_entries(
        worker_id=worker_id,
        project_id=project_id,
        status=status.value if status is not None else None,
        started_at_from=started_at_from,
        started_at_to=started_at_to,
        limit=limit,
        offset=offset,
    )
    return [_to_response(r) for r in rows]


@router.post("/clock_in", response_model=TimeEntryResponse, status_code=201)
def clock_in_endpoint(payload: ClockInRequest):
    started_at = payload.started_at or datetime.now(timezone.utc)

    db = SessionLocal()
    try:
        entry = time_engine.clock_in(
            worker_id=payload.worker_id,
            project_id=payload.project_id,
            started_at=started_at,
            db=db,
        )
        if isinstance(entry, CoreError):
            db.rollback()
            raise http_error(entry)
        db.commit()
        db.refresh(entry)
        return _to_response(entry)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/clock_out", response_model=TimeEntryResponse)
def clock_out_endpoint(payload: ClockOutRequest):
    ended_at = payload.ended_at or datetime.now(timezone.utc)

    db = SessionLocal()
    try:
        entry = time_engine.clock_out(
            worker_id=payload.worker_id,
            ended_at=ended_at,
            db=db,
        )
        if isinstance(entry, CoreError):
            db.rollback()
            raise http_error(entry)
        db.commit()
        db.refresh(entry)
        return _to_response(entry)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("/active", response_model=TimeEntryResponse)
def get_active_time_entry(worker_id: str):
    entry = time_engine.get_active_entry(worker_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="No active time entry")
    return _to_response(entry)
