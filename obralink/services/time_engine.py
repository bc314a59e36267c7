import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from obralink.core.enums import TimeEntryStatus
from obralink.core.errors import CoreError, ErrorKind, Result, invalid, not_found
from obralink.database import SessionLocal
from obralink.models.project import Project
from obralink.models.time_entry import TimeEntry
from obralink.models.worker import Worker

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # Naive input is taken as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _get_active_entry(db: Session, worker_id: str) -> Optional[TimeEntry]:
    return (
        db.query(TimeEntry)
        .filter(
            TimeEntry.worker_id == str(worker_id),
            TimeEntry.status == TimeEntryStatus.ACTIVE.value,
        )
        .first()
    )


def clock_in(
    worker_id: str,
    project_id: str,
    started_at: datetime,
    *,
    db: Optional[Session] = None,
) -> Result[TimeEntry]:
    """
    If db is provided, this function will NOT commit/close. Caller owns the transaction,
    and must roll it back after a Conflict from a lost clock-in race.
    If db is None, this function manages its own session + commit.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        worker = db.get(Worker, str(worker_id))
        if worker is None:
            return not_found("Worker", worker_id)
        if db.get(Project, str(project_id)) is None:
            return not_found("Project", project_id)
        if str(project_id) not in worker.assigned_project_ids:
            return invalid(f"Worker {worker_id} is not assigned to project {project_id}")

        if _get_active_entry(db, worker.id) is not None:
            logger.warning(
                "clock in rejected: entry already active",
                extra={"worker_id": worker.id, "project_id": project_id},
            )
            return CoreError(
                ErrorKind.CONFLICT,
                f"Worker {worker_id} is already clocked in; clock out first",
            )

        time_entry = TimeEntry(
            time_entry_id=str(uuid4()),
            worker_id=worker.id,
            project_id=str(project_id),
            started_at=started_at,
            ended_at=None,
            status=TimeEntryStatus.ACTIVE.value,
        )

        db.add(time_entry)
        try:
            db.flush()
        except IntegrityError:
            # Lost the race on uq_time_entries_active.
            if owns_db:
                db.rollback()
            return CoreError(
                ErrorKind.CONFLICT,
                f"Worker {worker_id} is already clocked in; clock out first",
            )
        db.refresh(time_entry)

        if owns_db:
            db.commit()

        logger.info(
            "worker clocked in",
            extra={
                "time_entry_id": time_entry.time_entry_id,
                "worker_id": worker.id,
                "project_id": project_id,
            },
        )
        return time_entry
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def clock_out(
    worker_id: str,
    ended_at: datetime,
    *,
    db: Optional[Session] = None,
) -> Result[TimeEntry]:
    """
    If db is provided, this function will NOT commit/close. Caller owns the transaction.
    If db is None, this function manages its own session + commit.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        active_entry = _get_active_entry(db, worker_id)
        if active_entry is None:
            return CoreError(
                ErrorKind.NOT_FOUND,
                f"No active time entry found for worker {worker_id}",
            )

        if _as_utc(ended_at) < _as_utc(active_entry.started_at):
            return invalid("Clock-out time must not be before the clock-in time")

        active_entry.ended_at = ended_at
        active_entry.status = TimeEntryStatus.COMPLETED.value

        db.flush()
        db.refresh(active_entry)

        if owns_db:
            db.commit()

        logger.info(
            "worker clocked out",
            extra={"time_entry_id": active_entry.time_entry_id, "worker_id": str(worker_id)},
        )
        return active_entry
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def get_active_entry(worker_id: str, *, db: Optional[Session] = None) -> Optional[TimeEntry]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        return _get_active_entry(db, worker_id)
    finally:
        if owns_db:
            db.close()


def list_entries(
    *,
    worker_id: Optional[str] = None,
    project_id: Optional[str] = None,
    status: Optional[str] = None,
    started_at_from: Optional[datetime] = None,
    started_at_to: Optional[datetime] = None,
    limit: int = 50,
    offset: int = 0,
    db: Optional[Session] = None,
) -> List[TimeEntry]:
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        q = db.query(TimeEntry)

        if worker_id is not None:
            q = q.filter(TimeEntry.worker_id == str(worker_id))
        if project_id is not None:
            q = q.filter(TimeEntry.project_id == str(project_id))
        if status is not None:
            q = q.filter(TimeEntry.status == str(status))
        if started_at_from is not None:
            q = q.filter(TimeEntry.started_at >= started_at_from)
        if started_at_to is not None:
            q = q.filter(TimeEntry.started_at <= started_at_to)

        return (
            q.order_by(TimeEntry.started_at.desc())
            .offset(int(offset))
            .limit(int(limit))
            .all()
        )
    finally:
        if owns_db:
            db.close()
